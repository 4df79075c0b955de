"""Packs router — opening sticker packs."""

from fastapi import APIRouter, Depends, Request
from sqlalchemy.orm import Session

from stickerbook.config import settings
from stickerbook.database import get_db
from stickerbook.middleware.auth import get_current_identity
from stickerbook.middleware.rate_limit import limiter
from stickerbook.models.identity import Identity
from stickerbook.schemas.album import StickerResponse
from stickerbook.schemas.pack import PackEntry, PackOdds, PackResponse
from stickerbook.services import pack_service

router = APIRouter(prefix="/api/packs", tags=["packs"])


@router.post("/open", response_model=PackResponse)
@limiter.limit(settings.PACK_RATE_LIMIT)
def open_pack(
    request: Request,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Open a pack of stickers and add them to the collection."""
    entries = pack_service.open_pack(db, identity.id)
    new_count = sum(1 for e in entries if e["was_new"])
    return PackResponse(
        entries=[
            PackEntry(sticker=StickerResponse.model_validate(e["sticker"]), was_new=e["was_new"])
            for e in entries
        ],
        new_count=new_count,
        duplicate_count=len(entries) - new_count,
    )


@router.get("/odds", response_model=PackOdds)
def pack_odds(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return PackOdds(**pack_service.pack_odds(db))
