"""Pack service — opens a sticker pack and records the new ownership."""

import logging
import random
from typing import Optional

from sqlalchemy.orm import Session

from stickerbook import rarity
from stickerbook.config import settings
from stickerbook.exceptions import InvalidInputError, NoStickersAvailableError
from stickerbook.models.album import Sticker
from stickerbook.services import audit_service, inventory_service

logger = logging.getLogger(__name__)


def open_pack(
    db: Session,
    identity_id: str,
    rng: Optional[random.Random] = None,
    size: Optional[int] = None,
) -> list[dict]:
    """Draw a pack of stickers and add them to the identity's collection.

    Newness is judged against the collection as it was before the pack:
    a sticker is new only if it was not owned before and this is its first
    appearance in the pack.

    Returns:
        ``[{"sticker": Sticker, "was_new": bool}, ...]`` in draw order.
    """
    if size is None:
        size = settings.PACK_SIZE
    if size < 1:
        raise InvalidInputError("A pack holds at least one sticker")
    catalogue = db.query(Sticker).all()
    if not catalogue:
        raise NoStickersAvailableError()

    drawn = rarity.draw(catalogue, [s.rarity for s in catalogue], size, rng=rng)

    owned_before = set(inventory_service.quantities(db, identity_id, {s.id for s in drawn}))
    seen: set[str] = set()
    entries = []
    for sticker in drawn:
        was_new = sticker.id not in owned_before and sticker.id not in seen
        seen.add(sticker.id)
        inventory_service.add_stickers(db, identity_id, sticker.id)
        entries.append({"sticker": sticker, "was_new": was_new})

    new_count = sum(1 for e in entries if e["was_new"])
    audit_service.record(db, "pack", identity_id, "opened", identity_id, new_data={
        "stickers": [e["sticker"].id for e in entries],
        "new_count": new_count,
    })
    db.commit()
    logger.info("Pack opened identity=%s new=%d duplicates=%d", identity_id, new_count, len(entries) - new_count)
    return entries


def pack_odds(db: Session) -> dict:
    """Chance that a single draw lands in each rarity tier for the current catalogue."""
    rarities = [r for (r,) in db.query(Sticker.rarity).all()]
    shares = rarity.expected_share(rarities) if rarities else {}
    return {
        "pack_size": settings.PACK_SIZE,
        "tiers": {tier: round(shares.get(tier, 0.0), 4) for tier in rarity.RARITY_WEIGHTS},
    }
