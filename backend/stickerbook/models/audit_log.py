"""Audit trail of collection and social workflow transitions.

Rows are append-only and written in the same transaction as the change they
describe, so a rolled-back settlement leaves no trace here either.
"""

import uuid
from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, ForeignKey, Index, String, Text

from stickerbook.database import Base


class AuditLog(Base):
    __tablename__ = "audit_logs"

    id = Column(String(36), primary_key=True, default=lambda: str(uuid.uuid4()))
    entity_type = Column(String(50), nullable=False)  # friendship | trade | pack | identity
    entity_id = Column(String(36), nullable=False)
    action = Column(String(50), nullable=False)  # requested | proposed | completed | opened | ...
    actor_id = Column(String(36), ForeignKey("identities.id"), nullable=False)
    old_data = Column(Text, nullable=True)  # JSON
    new_data = Column(Text, nullable=True)  # JSON
    created_at = Column(DateTime, nullable=False, default=lambda: datetime.now(timezone.utc))

    __table_args__ = (
        # trade timelines and per-entity history
        Index("ix_audit_entity", "entity_type", "entity_id", "created_at"),
    )
