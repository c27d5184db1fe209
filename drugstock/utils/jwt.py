# drugstock/utils/jwt.py
from datetime import datetime, timedelta, timezone
from typing import Tuple

from jose import jwt, JWTError

from drugstock.core.config import settings

ACCESS = "access"
REFRESH = "refresh"


def _create_token(
    *,
    subject: str,
    token_type: str,
    expires_delta: timedelta,
) -> str:
    now = datetime.now(timezone.utc)
    payload = {
        "sub": subject,  # user email
        "typ": token_type,  # access / refresh
        "iat": now,
        "exp": now + expires_delta,
    }
    return jwt.encode(payload, settings.JWT_SECRET, algorithm=settings.JWT_ALG)


def create_access_refresh(subject: str) -> Tuple[str, str]:
    """
    Create access + refresh tokens for one user (email as subject).
    """
    access_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    refresh_delta = timedelta(minutes=settings.REFRESH_TOKEN_EXPIRE_MINUTES)

    access_token = _create_token(
        subject=subject,
        token_type=ACCESS,
        expires_delta=access_delta,
    )
    refresh_token = _create_token(
        subject=subject,
        token_type=REFRESH,
        expires_delta=refresh_delta,
    )
    return access_token, refresh_token


def decode_token(raw_token: str, expected_type: str = ACCESS) -> dict:
    """
    Decode and check a token. Raises JWTError when the signature, expiry or
    token type is wrong.
    """
    payload = jwt.decode(raw_token, settings.JWT_SECRET, algorithms=[settings.JWT_ALG])
    if payload.get("typ") != expected_type:
        raise JWTError(f"Expected {expected_type} token")
    return payload
