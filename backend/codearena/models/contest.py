"""Contest and participant models"""

from sqlalchemy import (
    Column, Integer, String, Text, Float, Boolean, DateTime, ForeignKey, JSON,
    UniqueConstraint, Index, CheckConstraint
)
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from codearena.core.database import Base
from codearena.schemas.enums import ContestStatus, ScoringMode, sql_in


class Contest(Base):
    """Scheduled competitive event. Status only moves forward; never deleted."""

    __tablename__ = "contests"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(200), nullable=False)
    description = Column(Text)
    problem_ids = Column(JSON, default=list, nullable=False)
    start_time = Column(DateTime(timezone=True), nullable=False)
    end_time = Column(DateTime(timezone=True), nullable=False)
    duration_mins = Column(Integer, default=90, nullable=False)
    is_public = Column(Boolean, default=True, nullable=False)
    invite_code = Column(String(16))
    status = Column(String(20), default=ContestStatus.DRAFT.value, nullable=False)
    participant_count = Column(Integer, default=0, nullable=False)
    leaderboard_frozen = Column(Boolean, default=False, nullable=False)
    winner_ids = Column(JSON)
    # Set once by the first finalization; never cleared.
    finalized_at = Column(DateTime(timezone=True))
    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"))
    created_at = Column(DateTime(timezone=True), server_default=func.now())
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now())

    # Relationships
    participants = relationship("ContestParticipant", back_populates="contest")

    __table_args__ = (
        Index('idx_contests_status', 'status'),
        Index('idx_contests_start_time', 'start_time'),
        CheckConstraint(f"status IN ({sql_in(ContestStatus)})", name='chk_contest_status'),
        CheckConstraint('end_time > start_time', name='chk_contest_window'),
        CheckConstraint('duration_mins > 0', name='chk_contest_duration'),
        CheckConstraint('participant_count >= 0', name='chk_contest_participant_count'),
    )

    def __repr__(self):
        return f"<Contest(id={self.id}, title='{self.title}', status='{self.status}')>"

    def to_dict(self, include_invite_code: bool = False):
        """Convert to dictionary"""
        data = {
            "id": self.id,
            "title": self.title,
            "description": self.description,
            "problem_ids": list(self.problem_ids or []),
            "start_time": self.start_time.isoformat() if self.start_time else None,
            "end_time": self.end_time.isoformat() if self.end_time else None,
            "duration_mins": self.duration_mins,
            "is_public": self.is_public,
            "status": self.status,
            "participant_count": self.participant_count,
            "leaderboard_frozen": self.leaderboard_frozen,
            "winner_ids": self.winner_ids,
            "finalized_at": self.finalized_at.isoformat() if self.finalized_at else None,
            "created_by": self.created_by,
        }
        if include_invite_code:
            data["invite_code"] = self.invite_code
        return data


class ContestParticipant(Base):
    """Join record; holds the running score of one player in one contest"""

    __tablename__ = "contest_participants"

    id = Column(Integer, primary_key=True, index=True)
    contest_id = Column(Integer, ForeignKey("contests.id", ondelete="CASCADE"), nullable=False)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    mode = Column(String(20), nullable=False)
    raw_score = Column(Integer, default=0, nullable=False)
    accuracy_score = Column(Integer, default=0, nullable=False)
    xp_score = Column(Float, default=0.0, nullable=False)
    final_rating = Column(Float, default=0.0, nullable=False)
    problems_solved = Column(Integer, default=0, nullable=False)
    penalty_mins = Column(Integer, default=0, nullable=False)
    xp_earned = Column(Integer, default=0, nullable=False)
    last_solved_at = Column(DateTime(timezone=True))
    final_rank = Column(Integer)
    joined_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    contest = relationship("Contest", back_populates="participants")
    player = relationship("Player", back_populates="participations")

    __table_args__ = (
        UniqueConstraint('contest_id', 'player_id', name='uq_contest_player'),
        Index('idx_participants_rating', 'contest_id', 'final_rating'),
        CheckConstraint(f"mode IN ({sql_in(ScoringMode)})", name='chk_participant_mode'),
        CheckConstraint('problems_solved >= 0', name='chk_participant_solved'),
        CheckConstraint('penalty_mins >= 0', name='chk_participant_penalty'),
        CheckConstraint('final_rank IS NULL OR final_rank >= 1', name='chk_participant_rank'),
    )

    def __repr__(self):
        return (
            f"<ContestParticipant(id={self.id}, contest_id={self.contest_id}, "
            f"player_id={self.player_id}, rating={self.final_rating})>"
        )

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "contest_id": self.contest_id,
            "player_id": self.player_id,
            "mode": self.mode,
            "raw_score": self.raw_score,
            "accuracy_score": self.accuracy_score,
            "xp_score": self.xp_score,
            "final_rating": self.final_rating,
            "problems_solved": self.problems_solved,
            "penalty_mins": self.penalty_mins,
            "xp_earned": self.xp_earned,
            "last_solved_at": self.last_solved_at.isoformat() if self.last_solved_at else None,
            "final_rank": self.final_rank,
        }
