"""Player routes - profile, stats and XP history"""

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from codearena.core.database import get_db
from codearena.schemas.player import (
    PlayerResponse,
    PlayerStats,
    PreferredModeUpdate,
    XpHistoryResponse,
)
from codearena.api.deps import get_current_player
from codearena.models.player import Player
from codearena.services.player_service import player_service

router = APIRouter()


@router.get("/me", response_model=PlayerResponse)
def get_my_profile(player: Player = Depends(get_current_player)):
    """
    Current player's profile with level progress
    """
    return player_service.get_profile(player)


@router.get("/me/stats", response_model=PlayerStats)
def get_my_stats(
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db)
):
    return player_service.get_stats(db, player)


@router.get("/me/xp-history", response_model=XpHistoryResponse)
def get_my_xp_history(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db)
):
    return player_service.get_xp_history(db, player, page=page, limit=limit)


@router.put("/me/preferred-mode", response_model=PlayerResponse)
def update_preferred_mode(
    data: PreferredModeUpdate,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db)
):
    player = player_service.update_preferred_mode(db, player, data.preferred_mode)
    return player_service.get_profile(player)
