"""Friendship model — directed request that becomes symmetric once accepted."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import CheckConstraint, Column, DateTime, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import relationship

from stickerbook.database import Base


class Friendship(Base):
    __tablename__ = "friendships"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    requester_id = Column(String(36), ForeignKey("identities.id"), nullable=False, index=True)
    recipient_id = Column(String(36), ForeignKey("identities.id"), nullable=False, index=True)
    status = Column(String(20), nullable=False, default="pending")  # pending | accepted | blocked
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    __table_args__ = (
        UniqueConstraint("requester_id", "recipient_id", name="uq_friendship_pair"),
        CheckConstraint("status IN ('pending', 'accepted', 'blocked')", name="ck_friendship_status"),
        CheckConstraint("requester_id <> recipient_id", name="ck_friendship_not_self"),
    )

    # Relationships
    requester = relationship("Identity", foreign_keys=[requester_id])
    recipient = relationship("Identity", foreign_keys=[recipient_id])
