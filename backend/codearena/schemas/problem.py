"""Problem schemas"""

from pydantic import BaseModel, Field, field_validator
from typing import Optional, List
from codearena.schemas.enums import Difficulty


class ProblemCreate(BaseModel):
    """Create problem schema"""
    title: str = Field(..., min_length=1, max_length=200)
    difficulty: Difficulty
    points: int = Field(..., ge=0)
    tags: List[str] = Field(default_factory=list)

    @field_validator('difficulty', mode='before')
    @classmethod
    def normalize_difficulty(cls, v):
        return Difficulty.normalize(v)

    @field_validator('tags')
    @classmethod
    def clean_tags(cls, v):
        return [t.strip().lower() for t in v if t and t.strip()]


class ProblemResponse(BaseModel):
    """Problem response schema"""
    id: int
    title: str
    difficulty: str
    points: int
    tags: List[str] = []

    class Config:
        from_attributes = True


class ProblemListResponse(BaseModel):
    page: int
    limit: int
    total: int
    difficulty: Optional[str] = None
    problems: List[ProblemResponse]
