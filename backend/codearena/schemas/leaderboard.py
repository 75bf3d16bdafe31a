"""Leaderboard schemas"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel


class ContestLeaderboardEntry(BaseModel):
    """One row of a contest leaderboard"""
    rank: int
    participant_id: int
    player_id: int
    username: Optional[str] = None
    tier: Optional[str] = None
    sub_rank: Optional[str] = None
    mode: str
    final_rating: float
    raw_score: int
    accuracy_score: int
    xp_score: float
    problems_solved: int
    penalty_mins: int
    last_solved_at: Optional[datetime] = None
    final_rank: Optional[int] = None


class ContestLeaderboardResponse(BaseModel):
    contest_id: int
    page: int
    limit: int
    total: int
    frozen: bool
    entries: List[ContestLeaderboardEntry]


class GlobalLeaderboardEntry(BaseModel):
    """One row of the global XP leaderboard"""
    rank: int
    player_id: int
    username: Optional[str] = None
    xp: int
    level: int
    tier: str
    sub_rank: str
    total_contests: int
    total_wins: int


class GlobalLeaderboardResponse(BaseModel):
    page: int
    limit: int
    total: int
    tier: Optional[str] = None
    entries: List[GlobalLeaderboardEntry]
