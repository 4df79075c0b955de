"""Inventory service — ownership record upserts, decrements and lookups.

The helpers that mutate ownership only stage changes on the session; the
calling workflow owns the transaction and decides when to commit.
"""

import logging

from sqlalchemy.orm import Session

from stickerbook.exceptions import InsufficientInventoryError, InvalidInputError, NotFoundError
from stickerbook.models.album import Sticker
from stickerbook.models.ownership import OwnershipRecord

logger = logging.getLogger(__name__)


def _get_record(db: Session, identity_id: str, sticker_id: str, for_update: bool = False):
    query = db.query(OwnershipRecord).filter(
        OwnershipRecord.identity_id == identity_id,
        OwnershipRecord.sticker_id == sticker_id,
    )
    if for_update:
        query = query.with_for_update()
    return query.first()


def quantities(db: Session, identity_id: str, sticker_ids=None) -> dict[str, int]:
    """Map sticker_id -> quantity for an identity, optionally limited to some stickers."""
    query = db.query(OwnershipRecord).filter(OwnershipRecord.identity_id == identity_id)
    if sticker_ids is not None:
        sticker_ids = list(sticker_ids)
        if not sticker_ids:
            return {}
        query = query.filter(OwnershipRecord.sticker_id.in_(sticker_ids))
    return {r.sticker_id: r.quantity for r in query.all()}


def lock_records(db: Session, keys) -> None:
    """Lock the ownership rows for several (identity_id, sticker_id) pairs.

    Rows are locked one at a time in sorted key order; missing rows are skipped.
    """
    for identity_id, sticker_id in sorted(keys):
        _get_record(db, identity_id, sticker_id, for_update=True)


def add_stickers(db: Session, identity_id: str, sticker_id: str, amount: int = 1) -> OwnershipRecord:
    """Insert the record with ``amount`` or increment the existing quantity."""
    if amount < 1:
        raise InvalidInputError("Amount must be at least 1")

    record = _get_record(db, identity_id, sticker_id, for_update=True)
    if record:
        record.quantity += amount
    else:
        record = OwnershipRecord(identity_id=identity_id, sticker_id=sticker_id, quantity=amount)
        db.add(record)
    db.flush()
    return record


def remove_stickers(db: Session, identity_id: str, sticker_id: str, amount: int) -> int:
    """Decrement a quantity, deleting the record when it reaches zero.

    Returns:
        The remaining quantity.

    Raises:
        InsufficientInventoryError: If fewer than ``amount`` copies are held.
    """
    if amount < 1:
        raise InvalidInputError("Amount must be at least 1")

    record = _get_record(db, identity_id, sticker_id, for_update=True)
    held = record.quantity if record else 0
    if held < amount:
        raise InsufficientInventoryError(
            f"Holds {held} of sticker {sticker_id}, needs {amount}",
            identity_id=identity_id,
            sticker_id=sticker_id,
        )

    remaining = held - amount
    if remaining == 0:
        db.delete(record)
    else:
        record.quantity = remaining
    db.flush()
    return remaining


def set_quantity(db: Session, identity_id: str, sticker_id: str, quantity: int) -> int:
    """Manually set how many copies of a sticker are held (0 removes it)."""
    if quantity < 0:
        raise InvalidInputError("Quantity cannot be negative")
    if not db.query(Sticker.id).filter(Sticker.id == sticker_id).first():
        raise NotFoundError("Sticker", sticker_id)

    record = _get_record(db, identity_id, sticker_id, for_update=True)
    if quantity == 0:
        if record:
            db.delete(record)
    elif record:
        record.quantity = quantity
    else:
        db.add(OwnershipRecord(identity_id=identity_id, sticker_id=sticker_id, quantity=quantity))
    db.commit()
    logger.info("Quantity set identity=%s sticker=%s quantity=%d", identity_id, sticker_id, quantity)
    return quantity


def tradeable_duplicates(db: Session, identity_id: str) -> list[tuple[Sticker, int]]:
    """Stickers held more than once, with the held quantity."""
    rows = (
        db.query(Sticker, OwnershipRecord.quantity)
        .join(OwnershipRecord, OwnershipRecord.sticker_id == Sticker.id)
        .filter(OwnershipRecord.identity_id == identity_id, OwnershipRecord.quantity > 1)
        .order_by(Sticker.album_id, Sticker.sticker_number)
        .all()
    )
    return [(sticker, quantity) for sticker, quantity in rows]
