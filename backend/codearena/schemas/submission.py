"""Submission schemas"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from datetime import datetime
from enum import Enum
from codearena.schemas.enums import Verdict


class LanguageEnum(str, Enum):
    """Supported programming languages"""
    PYTHON = "python"
    JAVASCRIPT = "javascript"
    JAVA = "java"
    CPP = "cpp"
    C = "c"
    GO = "go"


class SubmissionCreate(BaseModel):
    """Create submission schema"""
    problem_id: int = Field(..., gt=0)
    contest_id: Optional[int] = Field(None, gt=0)
    language: LanguageEnum
    code: str = Field(..., min_length=1, max_length=51200)

    @field_validator('code')
    @classmethod
    def sanitize_code(cls, v):
        """Sanitize code input"""
        v = v.replace('\x00', '')
        lines = v.split('\n')
        if len(lines) > 1000:
            raise ValueError('Code exceeds 1000 lines')
        return v


class JudgeResult(BaseModel):
    """Verdict reported by the external judge"""
    verdict: Verdict
    runtime_ms: Optional[int] = Field(None, ge=0)
    memory_mb: Optional[float] = Field(None, ge=0)

    @field_validator('verdict')
    @classmethod
    def judged(cls, v):
        if v == Verdict.PENDING:
            raise ValueError('verdict must be a judged result')
        return v


class SubmissionResponse(BaseModel):
    """Submission response schema"""
    id: int
    player_id: int
    problem_id: int
    contest_id: Optional[int] = None
    language: str
    verdict: str
    wrong_attempts: int
    points_earned: int
    runtime_ms: Optional[int] = None
    memory_mb: Optional[float] = None
    submitted_at: Optional[datetime] = None
    judged_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class SubmissionListResponse(BaseModel):
    page: int
    limit: int
    submissions: List[SubmissionResponse]


class VerdictResponse(BaseModel):
    """Result of applying a judge verdict"""
    submission_id: int
    verdict: str
    outcome: str
    points_earned: int
    xp_earned: int = 0
    final_rating: Optional[float] = None
