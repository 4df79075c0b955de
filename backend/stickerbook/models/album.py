"""Album, Sticker and per-user album status models."""

import uuid
from datetime import datetime, timezone

from sqlalchemy import (
    Boolean,
    CheckConstraint,
    Column,
    DateTime,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import relationship

from stickerbook.database import Base

RARITIES = ("common", "uncommon", "rare", "epic", "legendary")
ALBUM_STATUSES = ("active", "inactive", "rejected")


class Album(Base):
    __tablename__ = "albums"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    name = Column(String(255), nullable=False)
    description = Column(Text, nullable=True)
    total_stickers = Column(Integer, nullable=False, default=0)  # declared, informational
    image_url = Column(String(500), nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    # Relationships
    stickers = relationship("Sticker", back_populates="album", order_by="Sticker.sticker_number")


class Sticker(Base):
    __tablename__ = "stickers"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    album_id = Column(String(36), ForeignKey("albums.id"), nullable=False, index=True)
    sticker_number = Column(Integer, nullable=False)
    name = Column(String(255), nullable=False)
    image_url = Column(String(500), nullable=True)
    rarity = Column(String(20), nullable=False, default="common")  # common | uncommon | rare | epic | legendary
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        UniqueConstraint("album_id", "sticker_number", name="uq_album_sticker_number"),
        CheckConstraint(
            "rarity IN ('common', 'uncommon', 'rare', 'epic', 'legendary')",
            name="ck_sticker_rarity",
        ),
    )

    album = relationship("Album", back_populates="stickers")


class UserAlbum(Base):
    """Whether a user is collecting an album (active), paused it or rejected it."""

    __tablename__ = "user_albums"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    identity_id = Column(String(36), ForeignKey("identities.id"), nullable=False)
    album_id = Column(String(36), ForeignKey("albums.id"), nullable=False)
    status = Column(String(20), nullable=False, default="active")  # active | inactive | rejected

    __table_args__ = (
        UniqueConstraint("identity_id", "album_id", name="uq_user_album"),
        CheckConstraint("status IN ('active', 'inactive', 'rejected')", name="ck_user_album_status"),
    )

    identity = relationship("Identity", back_populates="album_statuses")
    album = relationship("Album")
