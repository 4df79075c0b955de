"""Trade proposal and its offered/requested line items."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from stickerbook.database import Base


class TradeProposal(Base):
    __tablename__ = "trade_proposals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    initiator_id = Column(String(36), ForeignKey("identities.id"), nullable=False, index=True)
    partner_id = Column(String(36), ForeignKey("identities.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")  # pending | accepted | declined | completed
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )
    resolved_at = Column(DateTime, nullable=True)

    __table_args__ = (
        CheckConstraint(
            "status IN ('pending', 'accepted', 'declined', 'completed')",
            name="ck_trade_status",
        ),
    )

    # Relationships
    initiator = relationship("Identity", foreign_keys=[initiator_id])
    partner = relationship("Identity", foreign_keys=[partner_id])
    items = relationship("TradeItem", back_populates="trade", cascade="all, delete-orphan")

    @property
    def offered(self) -> list["TradeItem"]:
        return [i for i in self.items if i.side == "offered"]

    @property
    def requested(self) -> list["TradeItem"]:
        return [i for i in self.items if i.side == "requested"]


class TradeItem(Base):
    __tablename__ = "trade_items"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    trade_id = Column(String(36), ForeignKey("trade_proposals.id"), nullable=False, index=True)
    side = Column(String(10), nullable=False)  # offered | requested
    sticker_id = Column(String(36), ForeignKey("stickers.id"), nullable=False)
    quantity = Column(Integer, nullable=False)

    __table_args__ = (
        UniqueConstraint("trade_id", "side", "sticker_id", name="uq_trade_side_sticker"),
        CheckConstraint("side IN ('offered', 'requested')", name="ck_trade_item_side"),
        CheckConstraint("quantity >= 1", name="ck_trade_item_quantity_positive"),
    )

    trade = relationship("TradeProposal", back_populates="items")
    sticker = relationship("Sticker")
