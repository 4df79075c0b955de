"""Catalog service — albums, album stickers and per-user album status."""

import logging

from sqlalchemy.orm import Session

from stickerbook.exceptions import InvalidInputError, NotFoundError
from stickerbook.models.album import ALBUM_STATUSES, Album, Sticker, UserAlbum
from stickerbook.services import inventory_service, progress_service

logger = logging.getLogger(__name__)

STICKER_VIEWS = ("all", "collected", "missing", "duplicates")


def get_album(db: Session, album_id: str) -> Album:
    album = db.query(Album).filter(Album.id == album_id).first()
    if not album:
        raise NotFoundError("Album", album_id)
    return album


def list_albums(db: Session, identity_id: str) -> list[dict]:
    """Active albums, newest first, with the user's status and progress."""
    albums = db.query(Album).filter(Album.is_active.is_(True)).order_by(Album.created_at.desc()).all()
    statuses = dict(
        db.query(UserAlbum.album_id, UserAlbum.status).filter(UserAlbum.identity_id == identity_id).all()
    )
    progress = progress_service.progress_by_album(db, identity_id, [a.id for a in albums])
    return [
        {
            "album": album,
            "user_album_status": statuses.get(album.id, "active"),
            "progress": progress[album.id],
        }
        for album in albums
    ]


def set_album_status(db: Session, identity_id: str, album_id: str, status: str) -> UserAlbum:
    """Mark an album as active, inactive or rejected for this user (upsert)."""
    if status not in ALBUM_STATUSES:
        raise InvalidInputError(f"Album status must be one of {', '.join(ALBUM_STATUSES)}")
    get_album(db, album_id)

    row = (
        db.query(UserAlbum)
        .filter(UserAlbum.identity_id == identity_id, UserAlbum.album_id == album_id)
        .first()
    )
    if row:
        row.status = status
    else:
        row = UserAlbum(identity_id=identity_id, album_id=album_id, status=status)
        db.add(row)
    db.commit()
    db.refresh(row)
    logger.info("Album status identity=%s album=%s status=%s", identity_id, album_id, status)
    return row


def album_stickers(db: Session, identity_id: str, album_id: str, view: str = "all") -> dict:
    """Stickers of an album with the owned quantity, filtered by view.

    Views: all, collected (quantity >= 1), missing (not owned),
    duplicates (quantity > 1). Counts for every view are always returned.
    """
    if view not in STICKER_VIEWS:
        raise InvalidInputError(f"View must be one of {', '.join(STICKER_VIEWS)}")
    get_album(db, album_id)

    stickers = (
        db.query(Sticker)
        .filter(Sticker.album_id == album_id)
        .order_by(Sticker.sticker_number)
        .all()
    )
    held = inventory_service.quantities(db, identity_id, [s.id for s in stickers])
    rows = [{"sticker": s, "quantity": held.get(s.id, 0)} for s in stickers]

    filters = {
        "all": lambda r: True,
        "collected": lambda r: r["quantity"] > 0,
        "missing": lambda r: r["quantity"] == 0,
        "duplicates": lambda r: r["quantity"] > 1,
    }
    counts = {name: sum(1 for r in rows if keep(r)) for name, keep in filters.items()}
    return {
        "album_id": album_id,
        "view": view,
        "stickers": [r for r in rows if filters[view](r)],
        "counts": counts,
        "progress": progress_service.album_progress(db, identity_id, album_id),
    }
