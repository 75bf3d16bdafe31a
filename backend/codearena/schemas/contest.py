"""Contest schemas"""

from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import datetime
from codearena.schemas.enums import ContestStatus, ScoringMode


class ContestCreate(BaseModel):
    """Create contest schema"""
    title: str = Field(..., min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=10000)
    problem_ids: List[int] = Field(default_factory=list)
    start_time: datetime
    end_time: datetime
    duration_mins: int = Field(90, gt=0, le=7 * 24 * 60)
    is_public: bool = True

    @field_validator('problem_ids')
    @classmethod
    def unique_problems(cls, v):
        """Reject duplicate problem ids"""
        if len(v) != len(set(v)):
            raise ValueError('Duplicate problem ids')
        return v

    @model_validator(mode='after')
    def check_window(self):
        if self.end_time <= self.start_time:
            raise ValueError('end_time must be after start_time')
        return self


class ContestUpdate(BaseModel):
    """Organizer-editable contest fields"""
    title: Optional[str] = Field(None, min_length=3, max_length=200)
    description: Optional[str] = Field(None, max_length=10000)
    problem_ids: Optional[List[int]] = None
    start_time: Optional[datetime] = None
    end_time: Optional[datetime] = None
    duration_mins: Optional[int] = Field(None, gt=0, le=7 * 24 * 60)
    is_public: Optional[bool] = None
    leaderboard_frozen: Optional[bool] = None


class ContestStatusUpdate(BaseModel):
    """Status change request; validated against the lifecycle in the service"""
    status: str = Field(..., min_length=1, max_length=20)


class ContestJoin(BaseModel):
    """Join request"""
    mode: Optional[ScoringMode] = None
    invite_code: Optional[str] = Field(None, max_length=16)


class ContestResponse(BaseModel):
    """Contest response schema"""
    id: int
    title: str
    description: Optional[str] = None
    problem_ids: List[int] = []
    start_time: datetime
    end_time: datetime
    duration_mins: int
    is_public: bool
    status: ContestStatus
    participant_count: int
    leaderboard_frozen: bool
    winner_ids: Optional[List[int]] = None
    finalized_at: Optional[datetime] = None
    created_by: Optional[int] = None
    invite_code: Optional[str] = None

    class Config:
        from_attributes = True


class ContestListResponse(BaseModel):
    page: int
    limit: int
    total: int
    contests: List[ContestResponse]


class ParticipantResponse(BaseModel):
    """Participant record"""
    id: int
    contest_id: int
    player_id: int
    mode: str
    raw_score: int
    accuracy_score: int
    xp_score: float
    final_rating: float
    problems_solved: int
    penalty_mins: int
    xp_earned: int
    last_solved_at: Optional[datetime] = None
    final_rank: Optional[int] = None
    joined_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class StatusChangeResponse(BaseModel):
    contest_id: int
    old_status: str
    new_status: str
    changed: bool
    finalized: bool = False
    winner_ids: Optional[List[int]] = None
