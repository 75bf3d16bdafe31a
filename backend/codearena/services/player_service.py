"""Player service - profiles, stats and XP history"""

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session
from typing import Optional

from codearena.models.contest import ContestParticipant
from codearena.models.player import Player
from codearena.models.submission import Submission
from codearena.models.user import User
from codearena.models.xp_ledger import XpLedgerEntry
from codearena.schemas.enums import ScoringMode, UserRole, Verdict
from codearena.schemas.player import (
    LevelProgress,
    PlayerResponse,
    PlayerStats,
    XpHistoryEntry,
    XpHistoryResponse,
)
from codearena.services.level_table import LevelTable, level_table
from codearena.services.xp_ledger import xp_ledger
from codearena.core.exceptions import AuthorizationError, ResourceNotFoundError, ValidationError
import logging

logger = logging.getLogger(__name__)


class PlayerService:
    """Service for player profiles"""

    def __init__(self, levels: Optional[LevelTable] = None) -> None:
        self.levels = levels or level_table

    @staticmethod
    def ensure_player(db: Session, user: User) -> Player:
        """
        Player profile for a user, created on first use.

        Raises:
            AuthorizationError: Only player accounts have profiles
        """
        if user.role != UserRole.PLAYER.value:
            raise AuthorizationError("Player account required")

        player = db.query(Player).filter(Player.user_id == user.id).first()
        if player:
            return player

        player = Player(user_id=user.id)
        db.add(player)
        try:
            db.commit()
        except IntegrityError:
            # Concurrent first request created it.
            db.rollback()
            return db.query(Player).filter(Player.user_id == user.id).one()
        db.refresh(player)
        logger.info(f"Created player profile {player.id} for user {user.username}")
        return player

    @staticmethod
    def get_player(db: Session, player_id: int) -> Player:
        player = db.query(Player).filter(Player.id == player_id).first()
        if not player:
            raise ResourceNotFoundError("Player")
        return player

    def progress(self, player: Player) -> LevelProgress:
        """Level position and distance to the next threshold"""
        info = self.levels.level_for(player.xp or 0)
        next_xp = self.levels.next_threshold(player.xp or 0)
        return LevelProgress(
            level=info.level,
            tier=info.tier.value,
            sub_rank=info.sub_rank,
            next_level_xp=next_xp,
            xp_to_next_level=(next_xp - (player.xp or 0)) if next_xp is not None else None,
        )

    def get_profile(self, player: Player) -> PlayerResponse:
        profile = PlayerResponse.model_validate(player)
        return profile.model_copy(update={
            "username": player.user.username if player.user else None,
            "progress": self.progress(player),
        })

    @staticmethod
    def get_stats(db: Session, player: Player) -> PlayerStats:
        """Submission and contest aggregates for a player"""
        total_submissions = db.query(func.count(Submission.id)).filter(
            Submission.player_id == player.id
        ).scalar() or 0
        accepted = db.query(func.count(Submission.id)).filter(
            Submission.player_id == player.id,
            Submission.verdict == Verdict.ACCEPTED.value,
        ).scalar() or 0
        solved = db.query(func.count(func.distinct(Submission.problem_id))).filter(
            Submission.player_id == player.id,
            Submission.verdict == Verdict.ACCEPTED.value,
        ).scalar() or 0

        best_rank, average_rating = db.query(
            func.min(ContestParticipant.final_rank),
            func.avg(ContestParticipant.final_rating),
        ).filter(ContestParticipant.player_id == player.id).one()

        xp_by_source = dict(
            db.query(XpLedgerEntry.source, func.sum(XpLedgerEntry.final_xp))
            .filter(XpLedgerEntry.player_id == player.id)
            .group_by(XpLedgerEntry.source)
            .all()
        )

        return PlayerStats(
            player_id=player.id,
            total_contests=player.total_contests,
            total_wins=player.total_wins,
            best_win_streak=player.best_win_streak,
            total_submissions=total_submissions,
            accepted_submissions=accepted,
            problems_solved=solved,
            acceptance_rate=round(accepted / total_submissions, 4) if total_submissions else 0.0,
            best_rank=best_rank,
            average_rating=float(average_rating) if average_rating is not None else None,
            xp_by_source={source: int(total) for source, total in xp_by_source.items()},
        )

    @staticmethod
    def get_xp_history(db: Session, player: Player, page: int = 1, limit: int = 20) -> XpHistoryResponse:
        if page < 1 or limit < 1 or limit > 100:
            raise ValidationError("page must be >= 1 and limit between 1 and 100")
        entries = xp_ledger.history(db, player.id, page=page, limit=limit)
        return XpHistoryResponse(
            player_id=player.id,
            page=page,
            limit=limit,
            total_xp=xp_ledger.total_for_player(db, player.id),
            entries=[XpHistoryEntry.model_validate(entry) for entry in entries],
        )

    @staticmethod
    def update_preferred_mode(db: Session, player: Player, mode: ScoringMode) -> Player:
        player.preferred_mode = ScoringMode(mode).value
        db.commit()
        db.refresh(player)
        logger.info(f"Player {player.id} preferred mode set to {player.preferred_mode}")
        return player

    @staticmethod
    def deactivate_player(db: Session, player_id: int) -> Player:
        """Soft delete: hidden from the global leaderboard, history kept"""
        player = PlayerService.get_player(db, player_id)
        player.is_active = False
        db.commit()
        db.refresh(player)
        logger.info(f"Deactivated player {player_id}")
        return player


# Singleton instance
player_service = PlayerService()
