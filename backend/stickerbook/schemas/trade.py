"""Trade proposal request/response schemas."""

from typing import Optional

from pydantic import BaseModel

from stickerbook.schemas.album import StickerResponse


class TradeLine(BaseModel):
    sticker_id: str
    # Range checks happen in the service so that bad lines surface as invalid_offer
    quantity: int = 1


class TradeCreate(BaseModel):
    partner_id: str
    offered: list[TradeLine] = []
    requested: list[TradeLine] = []


class TradeRespond(BaseModel):
    accept: bool


class TradeItemResponse(BaseModel):
    sticker: StickerResponse
    quantity: int


class TradeResponse(BaseModel):
    id: str
    initiator_id: str
    initiator_username: str
    partner_id: str
    partner_username: str
    status: str
    offered: list[TradeItemResponse]
    requested: list[TradeItemResponse]
    created_at: str
    resolved_at: Optional[str] = None


class TradeEvent(BaseModel):
    action: str
    actor_id: str
    data: Optional[dict] = None
    created_at: str
