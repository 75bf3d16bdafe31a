"""Pydantic schemas for API validation"""

from codearena.schemas.contest import (
    ContestCreate,
    ContestUpdate,
    ContestStatusUpdate,
    ContestJoin,
    ContestResponse,
    ContestListResponse,
    ParticipantResponse,
    StatusChangeResponse,
)
from codearena.schemas.submission import (
    SubmissionCreate,
    JudgeResult,
    SubmissionResponse,
    SubmissionListResponse,
    VerdictResponse,
)
from codearena.schemas.player import (
    PlayerResponse,
    PlayerStats,
    PreferredModeUpdate,
    XpHistoryResponse,
)
from codearena.schemas.problem import ProblemCreate, ProblemResponse, ProblemListResponse
from codearena.schemas.leaderboard import ContestLeaderboardResponse, GlobalLeaderboardResponse
from codearena.schemas.audit import AuditEventResponse

__all__ = [
    "ContestCreate", "ContestUpdate", "ContestStatusUpdate", "ContestJoin", "ContestResponse",
    "ContestListResponse", "ParticipantResponse", "StatusChangeResponse",
    "SubmissionCreate", "JudgeResult", "SubmissionResponse", "SubmissionListResponse", "VerdictResponse",
    "PlayerResponse", "PlayerStats", "PreferredModeUpdate", "XpHistoryResponse",
    "ProblemCreate", "ProblemResponse", "ProblemListResponse",
    "ContestLeaderboardResponse", "GlobalLeaderboardResponse",
    "AuditEventResponse",
]
