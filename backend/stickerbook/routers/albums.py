"""Albums router — album list, album stickers, progress and collection edits."""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from stickerbook.database import get_db
from stickerbook.middleware.auth import get_current_identity
from stickerbook.models.identity import Identity
from stickerbook.schemas.album import (
    AlbumListResponse,
    AlbumResponse,
    AlbumStatusUpdate,
    AlbumStickersResponse,
    CollectedStickerResponse,
    DuplicateResponse,
    ProgressResponse,
    QuantityUpdate,
    StickerResponse,
    StickerView,
)
from stickerbook.services import catalog_service, inventory_service, progress_service

router = APIRouter(prefix="/api", tags=["albums"])


@router.get("/albums", response_model=AlbumListResponse)
def list_albums(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Active albums with the user's progress and status."""
    albums = catalog_service.list_albums(db, identity.id)
    return AlbumListResponse(
        albums=[
            AlbumResponse(
                id=a["album"].id,
                name=a["album"].name,
                description=a["album"].description,
                total_stickers=a["album"].total_stickers,
                image_url=a["album"].image_url,
                user_album_status=a["user_album_status"],
                progress=ProgressResponse(**a["progress"]),
            )
            for a in albums
        ],
        overall=ProgressResponse(**progress_service.overall_progress(db, identity.id)),
        completed_albums=progress_service.completed_album_count(db, identity.id),
    )


@router.get("/albums/{album_id}/stickers", response_model=AlbumStickersResponse)
def album_stickers(
    album_id: str,
    view: StickerView = Query("all"),
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    result = catalog_service.album_stickers(db, identity.id, album_id, view)
    return AlbumStickersResponse(
        album_id=result["album_id"],
        view=result["view"],
        stickers=[
            CollectedStickerResponse(
                **StickerResponse.model_validate(r["sticker"]).model_dump(),
                quantity=r["quantity"],
                collected=r["quantity"] > 0,
            )
            for r in result["stickers"]
        ],
        counts=result["counts"],
        progress=ProgressResponse(**result["progress"]),
    )


@router.get("/albums/{album_id}/progress", response_model=ProgressResponse)
def album_progress(
    album_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return ProgressResponse(**progress_service.album_progress(db, identity.id, album_id))


@router.put("/albums/{album_id}/status", response_model=AlbumStatusUpdate)
def set_album_status(
    album_id: str,
    req: AlbumStatusUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    row = catalog_service.set_album_status(db, identity.id, album_id, req.status)
    return AlbumStatusUpdate(status=row.status)


@router.get("/progress", response_model=ProgressResponse)
def overall_progress(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Completion across every sticker in the catalogue."""
    return ProgressResponse(**progress_service.overall_progress(db, identity.id))


@router.put("/collection/stickers/{sticker_id}", response_model=QuantityUpdate)
def set_sticker_quantity(
    sticker_id: str,
    req: QuantityUpdate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Manually track a sticker (quantity 0 removes it)."""
    quantity = inventory_service.set_quantity(db, identity.id, sticker_id, req.quantity)
    return QuantityUpdate(quantity=quantity)


@router.get("/collection/duplicates", response_model=list[DuplicateResponse])
def my_duplicates(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Stickers the user holds more than once."""
    return [
        DuplicateResponse(sticker=StickerResponse.model_validate(s), quantity=q)
        for s, q in inventory_service.tradeable_duplicates(db, identity.id)
    ]
