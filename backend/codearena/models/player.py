"""Player model - competitive profile attached to a player account"""

from sqlalchemy import Column, Integer, String, Boolean, DateTime, ForeignKey, Index, CheckConstraint
from sqlalchemy.sql import func
from sqlalchemy.orm import relationship
from codearena.core.database import Base
from codearena.schemas.enums import ScoringMode, Tier, sql_in


class Player(Base):
    """
    Player profile.

    xp, level, tier and sub_rank change only through the XP ledger and the
    level table. Rows are deactivated, never deleted.
    """

    __tablename__ = "players"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), unique=True, nullable=False)
    xp = Column(Integer, default=0, nullable=False)
    level = Column(Integer, default=1, nullable=False)
    tier = Column(String(20), default=Tier.BRONZE.value, nullable=False)
    sub_rank = Column(String(32), default="Bronze III", nullable=False)
    preferred_mode = Column(String(20), default=ScoringMode.GRINDER.value, nullable=False)
    total_contests = Column(Integer, default=0, nullable=False)
    total_wins = Column(Integer, default=0, nullable=False)
    win_streak = Column(Integer, default=0, nullable=False)
    best_win_streak = Column(Integer, default=0, nullable=False)
    streak_days = Column(Integer, default=0, nullable=False)
    last_contest_at = Column(DateTime(timezone=True))
    last_level_up_at = Column(DateTime(timezone=True))
    is_active = Column(Boolean, default=True, nullable=False)
    created_at = Column(DateTime(timezone=True), server_default=func.now())

    # Relationships
    user = relationship("User", back_populates="player")
    participations = relationship("ContestParticipant", back_populates="player")
    ledger_entries = relationship("XpLedgerEntry", back_populates="player", order_by="XpLedgerEntry.id")

    __table_args__ = (
        Index('idx_players_xp', 'xp'),
        Index('idx_players_tier', 'tier'),
        CheckConstraint('xp >= 0', name='chk_player_xp'),
        CheckConstraint('level >= 1', name='chk_player_level'),
        CheckConstraint(f"tier IN ({sql_in(Tier)})", name='chk_player_tier'),
        CheckConstraint(f"preferred_mode IN ({sql_in(ScoringMode)})", name='chk_player_mode'),
    )

    def __repr__(self):
        return f"<Player(id={self.id}, user_id={self.user_id}, xp={self.xp}, level={self.level})>"

    def to_dict(self):
        """Convert to dictionary"""
        return {
            "id": self.id,
            "user_id": self.user_id,
            "username": self.user.username if self.user else None,
            "xp": self.xp,
            "level": self.level,
            "tier": self.tier,
            "sub_rank": self.sub_rank,
            "preferred_mode": self.preferred_mode,
            "total_contests": self.total_contests,
            "total_wins": self.total_wins,
            "win_streak": self.win_streak,
            "best_win_streak": self.best_win_streak,
            "streak_days": self.streak_days,
            "is_active": self.is_active,
        }
