"""Share + notification router — invite links, album brag links and badge counts."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stickerbook.database import get_db
from stickerbook.middleware.auth import get_current_identity
from stickerbook.models.identity import Identity
from stickerbook.schemas.misc import PendingCounts, ShareLinkResponse
from stickerbook.services import catalog_service, notification_service, progress_service, share_service

router = APIRouter(prefix="/api", tags=["share"])


@router.get("/share/invite", response_model=ShareLinkResponse)
def invite_link(identity: Identity = Depends(get_current_identity)):
    """Deep link inviting a friend with the user's friend code."""
    return ShareLinkResponse(**share_service.invite_link(identity.username, identity.friend_code))


@router.get("/share/albums/{album_id}", response_model=ShareLinkResponse)
def album_share_link(
    album_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    album = catalog_service.get_album(db, album_id)
    progress = progress_service.album_progress(db, identity.id, album_id)
    return ShareLinkResponse(**share_service.album_share_link(identity.username, album.name, progress))


@router.get("/notifications/counts", response_model=PendingCounts)
def pending_counts(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Pending friend requests and trades (polled by the client)."""
    return PendingCounts(**notification_service.pending_counts(db, identity.id))
