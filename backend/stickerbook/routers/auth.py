"""Auth router — passwordless login links, session exchange and sign-out."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from stickerbook.config import settings
from stickerbook.database import get_db
from stickerbook.middleware.auth import get_session_context, get_session_manager
from stickerbook.middleware.rate_limit import limiter
from stickerbook.schemas.auth import LoginLinkRequest, LoginLinkResponse, TokenResponse, VerifyLinkRequest

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/login-link", response_model=LoginLinkResponse, status_code=202)
@limiter.limit(settings.LOGIN_RATE_LIMIT)
def request_login_link(
    request: Request,
    req: LoginLinkRequest,
    db: Session = Depends(get_db),
    manager=Depends(get_session_manager),
):
    """Send a one-time sign-in link to an e-mail address."""
    url = manager.request_login_link(db, req.email, req.redirect_to)
    return LoginLinkResponse(login_url=url if settings.EXPOSE_LOGIN_LINKS else None)


@router.post("/verify", response_model=TokenResponse)
def verify_login_link(
    req: VerifyLinkRequest,
    db: Session = Depends(get_db),
    manager=Depends(get_session_manager),
):
    """Exchange a login-link token for an access token."""
    ctx, token = manager.verify_login_link(db, req.token)
    return TokenResponse(access_token=token, profile_complete=manager.is_profile_complete(db, ctx))


@router.post("/logout", status_code=204)
def logout(
    ctx=Depends(get_session_context),
    db: Session = Depends(get_db),
    manager=Depends(get_session_manager),
):
    """Revoke the current session."""
    manager.sign_out(db, ctx)
