"""Problem model"""

from sqlalchemy import Column, Integer, String, DateTime, JSON, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import validates
from codearena.core.database import Base
from codearena.schemas.enums import Difficulty, sql_in


class Problem(Base):
    """Problem bank entry; read-only from the scoring engine's perspective"""

    __tablename__ = "problems"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    difficulty = Column(String(10), nullable=False, index=True)
    points = Column(Integer, nullable=False)
    tags = Column(JSON, default=list, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    __table_args__ = (
        CheckConstraint(f"difficulty IN ({sql_in(Difficulty)})", name='chk_problem_difficulty'),
        CheckConstraint('points >= 0', name='chk_problem_points'),
    )

    @validates("difficulty")
    def _normalize_difficulty(self, key, value):
        return Difficulty.normalize(value).value

    def __repr__(self):
        return f"<Problem(id={self.id}, title='{self.title}', difficulty='{self.difficulty}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "title": self.title,
            "difficulty": self.difficulty,
            "points": self.points,
            "tags": list(self.tags or []),
        }
