"""JWT session tokens, login-link secrets and FastAPI auth dependencies."""

from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
from fastapi import Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import JWTError, jwt
from sqlalchemy.orm import Session

from stickerbook.config import settings
from stickerbook.database import get_db
from stickerbook.exceptions import NotAuthenticatedError
from stickerbook.models.identity import Identity

security = HTTPBearer(auto_error=False)


def hash_secret(secret: str) -> str:
    """Hash a login-link secret using bcrypt directly."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(secret.encode("utf-8"), salt).decode("utf-8")


def verify_secret(plain_secret: str, hashed_secret: str) -> bool:
    """Verify a login-link secret against its bcrypt hash."""
    return bcrypt.checkpw(
        plain_secret.encode("utf-8"),
        hashed_secret.encode("utf-8"),
    )


def create_access_token(data: dict, expires_at: Optional[datetime] = None) -> str:
    to_encode = data.copy()
    expire = expires_at or datetime.now(timezone.utc) + timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        raise NotAuthenticatedError("Invalid or expired token")


def get_session_manager(request: Request):
    """The application's SessionManager (created in main.py)."""
    return request.app.state.session_manager


def get_session_context(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    db: Session = Depends(get_db),
    manager=Depends(get_session_manager),
):
    """Resolve the bearer token into an explicit SessionContext."""
    if credentials is None:
        raise NotAuthenticatedError()
    return manager.resolve_session(db, credentials.credentials)


def get_current_identity(
    ctx=Depends(get_session_context),
    db: Session = Depends(get_db),
    manager=Depends(get_session_manager),
) -> Identity:
    """The signed-in user's profile; fails if the profile is not complete yet."""
    return manager.require_identity(db, ctx)
