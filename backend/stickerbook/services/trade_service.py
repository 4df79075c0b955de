"""Trade service — proposing, answering and settling sticker exchanges.

State machine per TradeProposal:
    pending --respond(accept=True)--> accepted --settle--> completed
    pending --respond(accept=False)--> declined

Only one respond call can win: the pending -> accepted/declined transition is
a conditional single-row UPDATE, and settlement runs in the same transaction.
"""

import json
import logging
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from stickerbook.config import settings
from stickerbook.exceptions import (
    AlreadyResolvedError,
    ForbiddenError,
    InsufficientInventoryError,
    InvalidOfferError,
    NotFoundError,
)
from stickerbook.models.album import Sticker
from stickerbook.models.identity import Identity
from stickerbook.models.trade import TradeItem, TradeProposal
from stickerbook.services import audit_service, friendship_service, inventory_service

logger = logging.getLogger(__name__)


def _normalize_lines(lines: list, side: str) -> dict[str, int]:
    """Turn [{sticker_id, quantity}, ...] into {sticker_id: quantity}, validating each line."""
    if not lines:
        raise InvalidOfferError(f"The {side} list cannot be empty")

    result: dict[str, int] = {}
    for line in lines:
        sticker_id = line["sticker_id"] if isinstance(line, dict) else line.sticker_id
        quantity = line["quantity"] if isinstance(line, dict) else line.quantity
        if not sticker_id:
            raise InvalidOfferError(f"Every {side} line needs a sticker")
        if not isinstance(quantity, int) or quantity < 1:
            raise InvalidOfferError(f"Quantities must be at least 1 ({side} sticker {sticker_id})")
        if sticker_id in result:
            raise InvalidOfferError(f"Sticker {sticker_id} appears twice in the {side} list")
        result[sticker_id] = quantity
    return result


def _check_holds(db: Session, identity_id: str, wanted: dict[str, int]) -> None:
    held = inventory_service.quantities(db, identity_id, wanted.keys())
    for sticker_id, quantity in wanted.items():
        if held.get(sticker_id, 0) < quantity:
            raise InsufficientInventoryError(
                f"Holds {held.get(sticker_id, 0)} of sticker {sticker_id}, trade needs {quantity}",
                identity_id=identity_id,
                sticker_id=sticker_id,
            )


def propose(
    db: Session,
    initiator_id: str,
    partner_id: str,
    offered: list,
    requested: list,
) -> TradeProposal:
    """Create a pending trade proposal.

    Both parties must hold the listed quantities at proposal time; the
    quantities are checked again when the partner accepts.
    """
    offered_map = _normalize_lines(offered, "offered")
    requested_map = _normalize_lines(requested, "requested")
    if partner_id == initiator_id:
        raise InvalidOfferError("You cannot trade with yourself")

    if not db.query(Identity.id).filter(Identity.id == partner_id).first():
        raise NotFoundError("Trade partner", partner_id)
    if settings.TRADES_REQUIRE_FRIENDSHIP and not friendship_service.are_friends(db, initiator_id, partner_id):
        raise ForbiddenError("You can only trade with friends")

    sticker_ids = set(offered_map) | set(requested_map)
    known = {s for (s,) in db.query(Sticker.id).filter(Sticker.id.in_(sticker_ids)).all()}
    missing = sorted(sticker_ids - known)
    if missing:
        raise NotFoundError("Sticker", missing[0])

    _check_holds(db, initiator_id, offered_map)
    _check_holds(db, partner_id, requested_map)

    trade = TradeProposal(initiator_id=initiator_id, partner_id=partner_id, status="pending")
    for sticker_id, quantity in offered_map.items():
        trade.items.append(TradeItem(side="offered", sticker_id=sticker_id, quantity=quantity))
    for sticker_id, quantity in requested_map.items():
        trade.items.append(TradeItem(side="requested", sticker_id=sticker_id, quantity=quantity))
    db.add(trade)
    db.flush()

    audit_service.record(db, "trade", trade.id, "proposed", initiator_id, new_data={
        "partner_id": partner_id,
        "offered": offered_map,
        "requested": requested_map,
    })
    db.commit()
    db.refresh(trade)
    logger.info("Trade proposed id=%s initiator=%s partner=%s", trade.id, initiator_id, partner_id)
    return trade


def _settle(db: Session, trade: TradeProposal) -> None:
    """Move every line between the two inventories; all or nothing.

    Every ownership row the trade touches is locked in one sorted order, so
    two trades between the same pair cannot wait on each other. Quantities
    are then re-validated before anything changes.
    """
    offered = {i.sticker_id: i.quantity for i in trade.offered}
    requested = {i.sticker_id: i.quantity for i in trade.requested}

    touched = {(identity_id, sticker_id)
               for sticker_id in (*offered, *requested)
               for identity_id in (trade.initiator_id, trade.partner_id)}
    inventory_service.lock_records(db, touched)

    _check_holds(db, trade.initiator_id, offered)
    _check_holds(db, trade.partner_id, requested)

    for sticker_id, quantity in offered.items():
        inventory_service.remove_stickers(db, trade.initiator_id, sticker_id, quantity)
        inventory_service.add_stickers(db, trade.partner_id, sticker_id, quantity)
    for sticker_id, quantity in requested.items():
        inventory_service.remove_stickers(db, trade.partner_id, sticker_id, quantity)
        inventory_service.add_stickers(db, trade.initiator_id, sticker_id, quantity)


def respond(db: Session, trade_id: str, by_id: str, accept: bool) -> TradeProposal:
    """Accept (and settle) or decline a pending trade; only the partner may answer.

    Raises:
        InsufficientInventoryError: If either side no longer holds the traded
            quantities. Nothing is changed and the proposal stays pending.
    """
    trade = db.query(TradeProposal).filter(TradeProposal.id == trade_id).first()
    if not trade:
        raise NotFoundError("Trade", trade_id)
    if trade.partner_id != by_id:
        raise ForbiddenError("Only the trade partner can answer this trade")
    if trade.status != "pending":
        raise AlreadyResolvedError("This trade has already been answered")

    new_status = "accepted" if accept else "declined"
    changed = (
        db.query(TradeProposal)
        .filter(TradeProposal.id == trade_id, TradeProposal.status == "pending")
        .update(
            {"status": new_status, "resolved_at": datetime.now(timezone.utc)},
            synchronize_session=False,
        )
    )
    if changed != 1:
        db.rollback()
        raise AlreadyResolvedError("This trade has already been answered")

    if accept:
        try:
            _settle(db, trade)
        except InsufficientInventoryError:
            db.rollback()
            logger.warning("Trade settlement failed id=%s: inventory changed since proposal", trade_id)
            raise
        db.query(TradeProposal).filter(TradeProposal.id == trade_id).update(
            {"status": "completed"}, synchronize_session=False
        )
        new_status = "completed"

    audit_service.record(db, "trade", trade_id, new_status, by_id,
                         old_data={"status": "pending"},
                         new_data={"status": new_status})
    db.commit()
    db.refresh(trade)
    logger.info("Trade %s id=%s by=%s", new_status, trade_id, by_id)
    return trade


def list_incoming(db: Session, identity_id: str) -> list[TradeProposal]:
    """Pending proposals where the identity is the partner, newest first."""
    return (
        db.query(TradeProposal)
        .filter(TradeProposal.partner_id == identity_id, TradeProposal.status == "pending")
        .order_by(TradeProposal.created_at.desc())
        .all()
    )


def list_outgoing(db: Session, identity_id: str, limit: int = 50) -> list[TradeProposal]:
    """Proposals the identity started (any status), newest first."""
    return (
        db.query(TradeProposal)
        .filter(TradeProposal.initiator_id == identity_id)
        .order_by(TradeProposal.created_at.desc())
        .limit(limit)
        .all()
    )


def history(db: Session, trade_id: str, by_id: str) -> list[dict]:
    """Audit timeline of a trade, oldest first; only its two parties may read it."""
    trade = db.query(TradeProposal).filter(TradeProposal.id == trade_id).first()
    if not trade:
        raise NotFoundError("Trade", trade_id)
    if by_id not in (trade.initiator_id, trade.partner_id):
        raise ForbiddenError("Only the trade's parties can see its history")

    return [
        {
            "action": entry.action,
            "actor_id": entry.actor_id,
            "data": json.loads(entry.new_data) if entry.new_data else None,
            "created_at": entry.created_at,
        }
        for entry in audit_service.history(db, "trade", trade_id)
    ]
