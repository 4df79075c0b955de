"""Ownership record — how many copies of a sticker an identity holds.

Rows with quantity 0 are deleted, never stored.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, Integer, String, UniqueConstraint
from sqlalchemy.orm import relationship

from stickerbook.database import Base


class OwnershipRecord(Base):
    __tablename__ = "ownership_records"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    identity_id = Column(String(36), ForeignKey("identities.id"), nullable=False, index=True)
    sticker_id = Column(String(36), ForeignKey("stickers.id"), nullable=False)
    quantity = Column(Integer, nullable=False, default=1)
    collected_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("identity_id", "sticker_id", name="uq_identity_sticker"),
        CheckConstraint("quantity >= 1", name="ck_ownership_quantity_positive"),
    )

    # Relationships
    identity = relationship("Identity", back_populates="ownerships")
    sticker = relationship("Sticker")
