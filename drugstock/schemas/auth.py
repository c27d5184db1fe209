# drugstock/schemas/auth.py
from pydantic import EmailStr

from drugstock.schemas.common import CamelModel


class LoginIn(CamelModel):
    email: EmailStr
    password: str


class RefreshIn(CamelModel):
    refresh_token: str


class TokenOut(CamelModel):
    access_token: str
    refresh_token: str
    token_type: str = "bearer"


class UserOut(CamelModel):
    id: int
    name: str
    email: str
    is_active: bool
