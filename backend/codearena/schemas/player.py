"""Player schemas"""

from pydantic import BaseModel
from typing import Optional, List
from datetime import datetime
from codearena.schemas.enums import ScoringMode


class LevelProgress(BaseModel):
    """Where a player's XP sits in the level table"""
    level: int
    tier: str
    sub_rank: str
    next_level_xp: Optional[int] = None
    xp_to_next_level: Optional[int] = None


class PlayerResponse(BaseModel):
    """Player profile"""
    id: int
    user_id: int
    username: Optional[str] = None
    xp: int
    level: int
    tier: str
    sub_rank: str
    preferred_mode: str
    total_contests: int
    total_wins: int
    win_streak: int
    best_win_streak: int
    streak_days: int
    last_contest_at: Optional[datetime] = None
    last_level_up_at: Optional[datetime] = None
    progress: Optional[LevelProgress] = None

    class Config:
        from_attributes = True


class PlayerStats(BaseModel):
    """Aggregated player performance"""
    player_id: int
    total_contests: int
    total_wins: int
    best_win_streak: int
    total_submissions: int
    accepted_submissions: int
    problems_solved: int
    acceptance_rate: float
    best_rank: Optional[int] = None
    average_rating: Optional[float] = None
    xp_by_source: dict = {}


class PreferredModeUpdate(BaseModel):
    preferred_mode: ScoringMode


class XpHistoryEntry(BaseModel):
    id: int
    contest_id: Optional[int] = None
    problem_id: Optional[int] = None
    source: str
    base_xp: int
    multiplier: float
    final_xp: int
    earned_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class XpHistoryResponse(BaseModel):
    player_id: int
    page: int
    limit: int
    total_xp: int
    entries: List[XpHistoryEntry]
