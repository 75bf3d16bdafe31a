"""Global leaderboard routes"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session
from typing import Optional

from codearena.core.database import get_db
from codearena.schemas.enums import Tier
from codearena.schemas.leaderboard import GlobalLeaderboardResponse
from codearena.api.deps import get_current_user
from codearena.models.user import User
from codearena.services.leaderboard import leaderboard_service

router = APIRouter()


@router.get("/global", response_model=GlobalLeaderboardResponse)
def get_global_leaderboard(
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    tier: Optional[Tier] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Active players ranked by XP, optionally within one tier
    """
    return leaderboard_service.global_leaderboard(db, page=page, limit=limit, tier=tier)
