"""Audit trail helper shared by the workflow services."""

import json
from typing import Optional

from sqlalchemy.orm import Session

from stickerbook.models.audit_log import AuditLog


def record(
    db: Session,
    entity_type: str,
    entity_id: str,
    action: str,
    actor_id: str,
    old_data: Optional[dict] = None,
    new_data: Optional[dict] = None,
) -> AuditLog:
    """Stage an audit row in the caller's transaction (no commit)."""
    audit = AuditLog(
        entity_type=entity_type,
        entity_id=entity_id,
        action=action,
        actor_id=actor_id,
        old_data=json.dumps(old_data) if old_data is not None else None,
        new_data=json.dumps(new_data) if new_data is not None else None,
    )
    db.add(audit)
    return audit


def history(db: Session, entity_type: str, entity_id: str) -> list[AuditLog]:
    """All audit rows for one entity, oldest first."""
    return (
        db.query(AuditLog)
        .filter(AuditLog.entity_type == entity_type, AuditLog.entity_id == entity_id)
        .order_by(AuditLog.created_at.asc())
        .all()
    )
