"""XP ledger model"""

from sqlalchemy import Column, Integer, String, Float, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from codearena.core.database import Base
from codearena.schemas.enums import XpSource, sql_in


class XpLedgerEntry(Base):
    """
    Append-only XP grant.

    idempotency_key is unique when set, so a retried join, solve credit or
    rank bonus cannot be recorded twice.
    """

    __tablename__ = "xp_ledger"

    id = Column(Integer, primary_key=True, index=True)
    player_id = Column(Integer, ForeignKey("players.id", ondelete="CASCADE"), nullable=False)
    contest_id = Column(Integer, ForeignKey("contests.id", ondelete="SET NULL"))
    problem_id = Column(Integer, ForeignKey("problems.id", ondelete="SET NULL"))
    source = Column(String(20), nullable=False)
    base_xp = Column(Integer, nullable=False)
    multiplier = Column(Float, default=1.0, nullable=False)
    final_xp = Column(Integer, nullable=False)
    idempotency_key = Column(String(96), unique=True)
    earned_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    player = relationship("Player", back_populates="ledger_entries")

    __table_args__ = (
        Index('idx_xp_ledger_player', 'player_id', 'earned_at'),
        Index('idx_xp_ledger_contest_source', 'contest_id', 'source'),
        CheckConstraint(f"source IN ({sql_in(XpSource)})", name='chk_xp_source'),
        CheckConstraint('base_xp >= 0', name='chk_xp_base'),
        CheckConstraint('multiplier >= 0', name='chk_xp_multiplier'),
        CheckConstraint('final_xp >= 0', name='chk_xp_final'),
    )

    def __repr__(self):
        return f"<XpLedgerEntry(id={self.id}, player_id={self.player_id}, source='{self.source}', final_xp={self.final_xp})>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "player_id": self.player_id,
            "contest_id": self.contest_id,
            "problem_id": self.problem_id,
            "source": self.source,
            "base_xp": self.base_xp,
            "multiplier": self.multiplier,
            "final_xp": self.final_xp,
            "earned_at": self.earned_at.isoformat() if self.earned_at else None,
        }
