"""Trades router — proposing and answering sticker trades."""

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from stickerbook.database import get_db
from stickerbook.middleware.auth import get_current_identity
from stickerbook.models.identity import Identity
from stickerbook.routers.serializers import trade_to_response
from stickerbook.schemas.trade import TradeCreate, TradeEvent, TradeRespond, TradeResponse
from stickerbook.services import trade_service

router = APIRouter(prefix="/api/trades", tags=["trades"])


@router.post("", response_model=TradeResponse, status_code=201)
def propose_trade(
    req: TradeCreate,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Offer some of your stickers for some of a friend's."""
    trade = trade_service.propose(db, identity.id, req.partner_id, req.offered, req.requested)
    return trade_to_response(trade)


@router.get("/incoming", response_model=list[TradeResponse])
def incoming_trades(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Pending trades waiting for the user's answer, newest first."""
    return [trade_to_response(t) for t in trade_service.list_incoming(db, identity.id)]


@router.get("/outgoing", response_model=list[TradeResponse])
def outgoing_trades(
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    return [trade_to_response(t) for t in trade_service.list_outgoing(db, identity.id)]


@router.post("/{trade_id}/respond", response_model=TradeResponse)
def respond_trade(
    trade_id: str,
    req: TradeRespond,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Accept (settles immediately) or decline a trade."""
    trade = trade_service.respond(db, trade_id, identity.id, req.accept)
    return trade_to_response(trade)


@router.get("/{trade_id}/history", response_model=list[TradeEvent])
def trade_history(
    trade_id: str,
    db: Session = Depends(get_db),
    identity: Identity = Depends(get_current_identity),
):
    """Who proposed, answered and settled the trade, and when."""
    return [
        TradeEvent(**{**event, "created_at": event["created_at"].isoformat()})
        for event in trade_service.history(db, trade_id, identity.id)
    ]
