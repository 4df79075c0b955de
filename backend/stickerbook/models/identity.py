"""Principal and Identity models.

A Principal is an authenticated e-mail address; an Identity is the public
profile created once the principal picks a username and avatar. Both share
the same id.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from stickerbook.database import Base


class Principal(Base):
    __tablename__ = "principals"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    email = Column(String(255), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    last_sign_in_at = Column(DateTime, nullable=True)

    # Relationships
    identity = relationship("Identity", back_populates="principal", uselist=False)
    sessions = relationship("AuthSession", back_populates="principal")


class Identity(Base):
    __tablename__ = "identities"

    id = Column(String(36), ForeignKey("principals.id"), primary_key=True)
    email = Column(String(255), nullable=False)
    username = Column(String(20), unique=True, nullable=False, index=True)
    avatar_path = Column(String(255), nullable=False)
    friend_code = Column(String(12), unique=True, nullable=False, index=True)
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))
    updated_at = Column(
        DateTime,
        nullable=False,
        default=lambda: datetime.now(timezone.utc),
        onupdate=lambda: datetime.now(timezone.utc),
    )

    # Relationships
    principal = relationship("Principal", back_populates="identity")
    ownerships = relationship("OwnershipRecord", back_populates="identity")
    album_statuses = relationship("UserAlbum", back_populates="identity")
