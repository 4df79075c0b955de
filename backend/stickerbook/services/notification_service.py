"""Pending counters for the dashboard badges (polled, not pushed)."""

from sqlalchemy import func
from sqlalchemy.orm import Session

from stickerbook.models.friendship import Friendship
from stickerbook.models.trade import TradeProposal


def pending_counts(db: Session, identity_id: str) -> dict:
    friend_requests = (
        db.query(func.count(Friendship.id))
        .filter(Friendship.recipient_id == identity_id, Friendship.status == "pending")
        .scalar()
    )
    trades = (
        db.query(func.count(TradeProposal.id))
        .filter(TradeProposal.partner_id == identity_id, TradeProposal.status == "pending")
        .scalar()
    )
    return {"friend_requests": friend_requests or 0, "trades": trades or 0}
