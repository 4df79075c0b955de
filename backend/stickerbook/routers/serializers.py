"""ORM -> response schema conversions shared by the routers."""

from stickerbook.models.friendship import Friendship
from stickerbook.models.trade import TradeProposal
from stickerbook.schemas.album import StickerResponse
from stickerbook.schemas.friendship import FriendshipResponse
from stickerbook.schemas.trade import TradeItemResponse, TradeResponse


def friendship_to_response(f: Friendship) -> FriendshipResponse:
    return FriendshipResponse(
        id=f.id,
        requester_id=f.requester_id,
        recipient_id=f.recipient_id,
        status=f.status,
        created_at=f.created_at.isoformat(),
    )


def trade_to_response(t: TradeProposal) -> TradeResponse:
    def items(lines):
        return [
            TradeItemResponse(sticker=StickerResponse.model_validate(i.sticker), quantity=i.quantity)
            for i in lines
        ]

    return TradeResponse(
        id=t.id,
        initiator_id=t.initiator_id,
        initiator_username=t.initiator.username,
        partner_id=t.partner_id,
        partner_username=t.partner.username,
        status=t.status,
        offered=items(t.offered),
        requested=items(t.requested),
        created_at=t.created_at.isoformat(),
        resolved_at=t.resolved_at.isoformat() if t.resolved_at else None,
    )
