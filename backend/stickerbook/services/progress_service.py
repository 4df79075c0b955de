"""Progress service — album and overall completion statistics.

Pure reads: callers re-query after any ownership change.
"""

from sqlalchemy import func
from sqlalchemy.orm import Session

from stickerbook.exceptions import NotFoundError
from stickerbook.models.album import Album, Sticker
from stickerbook.models.ownership import OwnershipRecord


def completion_percentage(collected: int, total: int) -> int:
    """Integer percentage, rounded half up and clamped to [0, 100].

    An album without stickers is 0% complete.
    """
    if total <= 0 or collected <= 0:
        return 0
    # round-half-up in integer arithmetic: floor(collected * 100 / total + 1/2)
    percentage = (collected * 200 + total) // (2 * total)
    return max(0, min(100, percentage))


def _progress(collected: int, total: int) -> dict:
    return {
        "collected": collected,
        "total": total,
        "percentage": completion_percentage(collected, total),
    }


def album_progress(db: Session, identity_id: str, album_id: str) -> dict:
    """Distinct stickers collected out of the stickers defined for one album."""
    if not db.query(Album.id).filter(Album.id == album_id).first():
        raise NotFoundError("Album", album_id)

    total = db.query(func.count(Sticker.id)).filter(Sticker.album_id == album_id).scalar()
    collected = (
        db.query(func.count(func.distinct(OwnershipRecord.sticker_id)))
        .join(Sticker, OwnershipRecord.sticker_id == Sticker.id)
        .filter(OwnershipRecord.identity_id == identity_id, Sticker.album_id == album_id)
        .scalar()
    )
    return _progress(collected or 0, total or 0)


def overall_progress(db: Session, identity_id: str) -> dict:
    """Distinct stickers collected out of every sticker in the catalogue."""
    total = db.query(func.count(Sticker.id)).scalar()
    collected = (
        db.query(func.count(func.distinct(OwnershipRecord.sticker_id)))
        .join(Sticker, OwnershipRecord.sticker_id == Sticker.id)
        .filter(OwnershipRecord.identity_id == identity_id)
        .scalar()
    )
    return _progress(collected or 0, total or 0)


def overall_progress_many(db: Session, identity_ids: list[str]) -> dict[str, dict]:
    """Overall progress for several identities with two queries (leaderboards)."""
    if not identity_ids:
        return {}
    total = db.query(func.count(Sticker.id)).scalar() or 0
    rows = (
        db.query(OwnershipRecord.identity_id, func.count(func.distinct(OwnershipRecord.sticker_id)))
        .join(Sticker, OwnershipRecord.sticker_id == Sticker.id)
        .filter(OwnershipRecord.identity_id.in_(identity_ids))
        .group_by(OwnershipRecord.identity_id)
        .all()
    )
    collected = dict(rows)
    return {i: _progress(collected.get(i, 0), total) for i in identity_ids}


def progress_by_album(db: Session, identity_id: str, album_ids=None) -> dict[str, dict]:
    """Progress for every album (or the given ones), keyed by album id."""
    totals_query = db.query(Sticker.album_id, func.count(Sticker.id)).group_by(Sticker.album_id)
    collected_query = (
        db.query(Sticker.album_id, func.count(func.distinct(OwnershipRecord.sticker_id)))
        .join(OwnershipRecord, OwnershipRecord.sticker_id == Sticker.id)
        .filter(OwnershipRecord.identity_id == identity_id)
        .group_by(Sticker.album_id)
    )
    if album_ids is not None:
        album_ids = list(album_ids)
        totals_query = totals_query.filter(Sticker.album_id.in_(album_ids))
        collected_query = collected_query.filter(Sticker.album_id.in_(album_ids))
    else:
        album_ids = [a for (a,) in db.query(Album.id).all()]

    totals = dict(totals_query.all())
    collected = dict(collected_query.all())
    return {a: _progress(collected.get(a, 0), totals.get(a, 0)) for a in album_ids}


def completed_album_count(db: Session, identity_id: str) -> int:
    """Number of albums with at least one sticker that are fully collected."""
    return sum(
        1
        for p in progress_by_album(db, identity_id).values()
        if p["total"] > 0 and p["collected"] >= p["total"]
    )
