"""Admin routes - audit trail and player moderation"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import List, Optional
import json

from codearena.core.database import get_db
from codearena.schemas.audit import AuditEventResponse
from codearena.schemas.player import PlayerResponse
from codearena.services.audit_service import audit_service
from codearena.services.player_service import player_service
from codearena.api.deps import get_current_admin_user
from codearena.models.audit import AuditEvent
from codearena.models.user import User

router = APIRouter()


def _audit_response(event: AuditEvent) -> AuditEventResponse:
    metadata = {}
    if event.metadata_json:
        try:
            metadata = json.loads(event.metadata_json)
        except ValueError:
            metadata = {"raw": event.metadata_json}
    return AuditEventResponse(
        id=event.id,
        user_id=event.user_id,
        action=event.action,
        target_type=event.target_type,
        target_id=event.target_id,
        ip_address=event.ip_address,
        metadata=metadata,
        created_at=event.created_at,
    )


@router.get("/audit-events", response_model=List[AuditEventResponse])
def get_audit_events(
    limit: int = Query(100, ge=1, le=500),
    action: Optional[str] = None,
    target_type: Optional[str] = None,
    target_id: Optional[str] = None,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db),
):
    """
    Recent audit trail entries; with a target given, that target's full history in order
    """
    if target_type and target_id:
        return [_audit_response(e) for e in audit_service.events_for(db, target_type, target_id)]

    query = db.query(AuditEvent).order_by(AuditEvent.created_at.desc(), AuditEvent.id.desc())
    if action:
        query = query.filter(AuditEvent.action == action)
    return [_audit_response(e) for e in query.limit(limit).all()]


@router.delete("/players/{player_id}", response_model=PlayerResponse)
def deactivate_player(
    player_id: int,
    current_user: User = Depends(get_current_admin_user),
    db: Session = Depends(get_db),
):
    """
    Hide a player from the global leaderboard; contest history is kept
    """
    player = player_service.deactivate_player(db, player_id)
    audit_service.log_event(
        db,
        user_id=current_user.id,
        action="player.deactivate",
        target_type="player",
        target_id=player_id,
    )
    return player_service.get_profile(player)
