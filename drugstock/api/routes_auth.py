# drugstock/api/routes_auth.py
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from drugstock.api.deps import get_db, current_user, get_user_from_token
from drugstock.core.security import verify_password
from drugstock.models.user import User
from drugstock.schemas.auth import LoginIn, RefreshIn, TokenOut, UserOut
from drugstock.utils.jwt import REFRESH, create_access_refresh

logger = logging.getLogger(__name__)

router = APIRouter()


# ---------------------------------------------------------------------
#  Login (email + password -> tokens)
# ---------------------------------------------------------------------


@router.post("/login", response_model=TokenOut)
def login(
        payload: LoginIn,
        db: Session = Depends(get_db),
):
    """
    Credentials login for staff. Returns an access + refresh token pair.
    """
    email = payload.email.strip().lower()
    user = db.query(User).filter(User.email == email).first()
    if not user or not verify_password(payload.password, user.password_hash):
        logger.info("Failed login for %s", email)
        raise HTTPException(status_code=401, detail="Invalid credentials")
    if not user.is_active:
        raise HTTPException(status_code=401, detail="User inactive")

    access_token, refresh_token = create_access_refresh(user.email)
    return TokenOut(access_token=access_token, refresh_token=refresh_token)


@router.post("/refresh", response_model=TokenOut)
def refresh(
        payload: RefreshIn,
        db: Session = Depends(get_db),
):
    user = get_user_from_token(payload.refresh_token, db, expected_type=REFRESH)
    access_token, refresh_token = create_access_refresh(user.email)
    return TokenOut(access_token=access_token, refresh_token=refresh_token)


@router.get("/me", response_model=UserOut)
def me(user: User = Depends(current_user)):
    return user
