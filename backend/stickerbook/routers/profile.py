"""Profile router — completing and editing the user's public profile."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stickerbook.database import get_db
from stickerbook.middleware.auth import get_session_context, get_session_manager
from stickerbook.schemas.profile import (
    IdentityResponse,
    MeResponse,
    ProfileCreate,
    ProfileUpdate,
    UsernameAvailability,
)

router = APIRouter(prefix="/api/profile", tags=["profile"])


@router.get("/me", response_model=MeResponse)
def get_me(
    refresh: bool = Query(False),
    ctx=Depends(get_session_context),
    db: Session = Depends(get_db),
    manager=Depends(get_session_manager),
):
    """Current principal and profile (if completed)."""
    identity = manager.refresh(db, ctx) if refresh else manager.get_current_identity(db, ctx)
    return MeResponse(
        principal_id=ctx.principal_id,
        email=ctx.email,
        profile_complete=identity is not None,
        identity=identity,
    )


@router.post("", response_model=IdentityResponse, status_code=201)
def complete_profile(
    req: ProfileCreate,
    ctx=Depends(get_session_context),
    db: Session = Depends(get_db),
    manager=Depends(get_session_manager),
):
    """Pick a username and avatar; generates the friend code."""
    return manager.complete_profile(db, ctx, req.username, req.avatar_path)


@router.patch("", response_model=IdentityResponse)
def update_profile(
    req: ProfileUpdate,
    ctx=Depends(get_session_context),
    db: Session = Depends(get_db),
    manager=Depends(get_session_manager),
):
    """Change username and/or avatar."""
    return manager.update_profile(db, ctx, req.username, req.avatar_path)


@router.get("/username-available", response_model=UsernameAvailability)
def username_available(
    username: str = Query(..., min_length=1, max_length=64),
    db: Session = Depends(get_db),
    manager=Depends(get_session_manager),
):
    return UsernameAvailability(username=username, available=manager.check_username_available(db, username))
