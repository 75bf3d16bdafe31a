"""Submission model"""

from sqlalchemy import Column, Integer, String, Text, Float, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from codearena.core.database import Base
from codearena.schemas.enums import Verdict, sql_in


class Submission(Base):
    """
    Judged attempt.

    Created PENDING, updated once when the judge reports back, immutable
    afterwards. wrong_attempts is frozen at creation time.
    """

    __tablename__ = "submissions"

    id = Column(Integer, primary_key=True, index=True)
    idempotency_key = Column(String(64), unique=True, nullable=False)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="RESTRICT"), nullable=False)
    contest_id = Column(Integer, ForeignKey("contests.id", ondelete="SET NULL"))
    language = Column(String(20), nullable=False)
    code = Column(Text, nullable=False)
    verdict = Column(String(32), default=Verdict.PENDING.value, nullable=False)
    wrong_attempts = Column(Integer, default=0, nullable=False)
    points_earned = Column(Integer, default=0, nullable=False)
    runtime_ms = Column(Integer)
    memory_mb = Column(Float)
    submitted_at = Column(DateTime(timezone=True), server_default=func.now())
    judged_at = Column(DateTime(timezone=True))

    # Relationships
    player = relationship("Player")
    problem = relationship("Problem")

    __table_args__ = (
        Index('idx_submissions_triple', 'player_id', 'problem_id', 'contest_id'),
        Index('idx_submissions_verdict', 'verdict'),
        Index('idx_submissions_submitted_at', 'submitted_at'),
        CheckConstraint(f"verdict IN ({sql_in(Verdict)})", name='chk_submission_verdict'),
        CheckConstraint('wrong_attempts >= 0', name='chk_wrong_attempts'),
        CheckConstraint('points_earned >= 0', name='chk_points_earned'),
        CheckConstraint('runtime_ms >= 0', name='chk_runtime_ms'),
        CheckConstraint('memory_mb >= 0', name='chk_memory_mb'),
    )

    def __repr__(self):
        return f"<Submission(id={self.id}, player_id={self.player_id}, problem_id={self.problem_id}, verdict='{self.verdict}')>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "player_id": self.player_id,
            "problem_id": self.problem_id,
            "contest_id": self.contest_id,
            "language": self.language,
            "verdict": self.verdict,
            "wrong_attempts": self.wrong_attempts,
            "points_earned": self.points_earned,
            "runtime_ms": self.runtime_ms,
            "memory_mb": self.memory_mb,
            "submitted_at": self.submitted_at.isoformat() if self.submitted_at else None,
            "judged_at": self.judged_at.isoformat() if self.judged_at else None,
        }
