"""Audit service for organizer and admin actions."""

from __future__ import annotations

import json
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from codearena.models.audit import AuditEvent


class AuditService:
    """Persist immutable audit trail entries."""

    @staticmethod
    def log_event(
        db: Session,
        *,
        user_id: Optional[int],
        action: str,
        target_type: Optional[str] = None,
        target_id: Optional[str] = None,
        ip_address: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
        commit: bool = True,
    ) -> AuditEvent:
        """
        Record an audit event.

        With commit=False the event joins the caller's transaction and is
        persisted (or discarded) with the change it describes.
        """
        event = AuditEvent(
            user_id=user_id,
            action=action,
            target_type=target_type,
            target_id=str(target_id) if target_id is not None else None,
            ip_address=ip_address,
            metadata_json=json.dumps(metadata or {}, ensure_ascii=False, default=str),
        )
        db.add(event)
        if commit:
            db.commit()
            db.refresh(event)
        else:
            db.flush()
        return event

    @staticmethod
    def events_for(db: Session, target_type: str, target_id: Any) -> List[AuditEvent]:
        return (
            db.query(AuditEvent)
            .filter(AuditEvent.target_type == target_type, AuditEvent.target_id == str(target_id))
            .order_by(AuditEvent.id.asc())
            .all()
        )


audit_service = AuditService()
