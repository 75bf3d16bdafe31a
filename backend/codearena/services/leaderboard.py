"""Leaderboard service - contest standings and global XP ranking"""

from __future__ import annotations

from datetime import datetime
from typing import Dict, Iterable, List, Optional, Sequence
import logging

from sqlalchemy.orm import Session, joinedload

from codearena.config import settings
from codearena.core.exceptions import ResourceNotFoundError, ValidationError
from codearena.models.contest import Contest, ContestParticipant
from codearena.models.player import Player
from codearena.schemas.enums import ScoringMode, Tier
from codearena.schemas.events import PlayerRankChanged
from codearena.schemas.leaderboard import (
    ContestLeaderboardEntry,
    ContestLeaderboardResponse,
    GlobalLeaderboardEntry,
    GlobalLeaderboardResponse,
)

logger = logging.getLogger(__name__)


def standing_key(participant: ContestParticipant):
    """
    Contest ordering: rating DESC, last solve ASC (never solved sorts last
    among equal ratings), then join order.
    """
    solved_at = participant.last_solved_at
    return (
        -(participant.final_rating or 0.0),
        solved_at is None,
        solved_at or datetime.min,
        participant.id or 0,
    )


def rank_participants(participants: Iterable[ContestParticipant]) -> List[ContestParticipant]:
    """Participants in standing order; position + 1 is the rank."""
    return sorted(participants, key=standing_key)


def rank_change_events(
    contest_id: int,
    before: Dict[int, int],
    after: Dict[int, int],
) -> List[PlayerRankChanged]:
    """PLAYER_RANK_CHANGED for every player whose rank moved."""
    events = []
    for player_id, new_rank in sorted(after.items(), key=lambda item: item[1]):
        old_rank = before.get(player_id)
        if old_rank != new_rank:
            events.append(PlayerRankChanged(
                player_id=player_id,
                contest_id=contest_id,
                old_rank=old_rank,
                new_rank=new_rank,
            ))
    return events


class LeaderboardService:
    """Read-side ranking; ranks are recomputed from stored scores on demand."""

    @staticmethod
    def _page_window(page: int, limit: Optional[int]) -> tuple:
        if page < 1:
            raise ValidationError("page must be >= 1")
        limit = limit or settings.LEADERBOARD_DEFAULT_PAGE_SIZE
        if limit < 1 or limit > settings.LEADERBOARD_MAX_PAGE_SIZE:
            raise ValidationError(
                f"limit must be between 1 and {settings.LEADERBOARD_MAX_PAGE_SIZE}"
            )
        return limit, (page - 1) * limit

    @staticmethod
    def _standings_query(db: Session, contest_id: int):
        return (
            db.query(ContestParticipant)
            .filter(ContestParticipant.contest_id == contest_id)
            .order_by(
                ContestParticipant.final_rating.desc(),
                ContestParticipant.last_solved_at.asc().nulls_last(),
                ContestParticipant.id.asc(),
            )
        )

    def standings(self, db: Session, contest_id: int) -> List[ContestParticipant]:
        """Full contest standings in rank order"""
        return rank_participants(
            db.query(ContestParticipant).filter(ContestParticipant.contest_id == contest_id).all()
        )

    def current_ranks(self, db: Session, contest_id: int) -> Dict[int, int]:
        """player_id -> current rank"""
        return {
            participant.player_id: position
            for position, participant in enumerate(self.standings(db, contest_id), 1)
        }

    def contest_leaderboard(
        self,
        db: Session,
        contest_id: int,
        page: int = 1,
        limit: Optional[int] = None,
        mode: Optional[ScoringMode] = None,
    ) -> ContestLeaderboardResponse:
        """
        Paginated contest leaderboard.

        Rank is the global position: offset + position in page.
        """
        contest = db.query(Contest).filter(Contest.id == contest_id).first()
        if not contest:
            raise ResourceNotFoundError("Contest")

        limit, offset = self._page_window(page, limit)
        query = self._standings_query(db, contest_id)
        if mode is not None:
            query = query.filter(ContestParticipant.mode == ScoringMode(mode).value)

        total = query.count()
        rows = (
            query.options(joinedload(ContestParticipant.player).joinedload(Player.user))
            .offset(offset)
            .limit(limit)
            .all()
        )

        entries = [
            ContestLeaderboardEntry(
                rank=offset + position,
                participant_id=row.id,
                player_id=row.player_id,
                username=row.player.user.username if row.player and row.player.user else None,
                tier=row.player.tier if row.player else None,
                sub_rank=row.player.sub_rank if row.player else None,
                mode=row.mode,
                final_rating=row.final_rating or 0.0,
                raw_score=row.raw_score or 0,
                accuracy_score=row.accuracy_score or 0,
                xp_score=row.xp_score or 0.0,
                problems_solved=row.problems_solved or 0,
                penalty_mins=row.penalty_mins or 0,
                last_solved_at=row.last_solved_at,
                final_rank=row.final_rank,
            )
            for position, row in enumerate(rows, 1)
        ]

        return ContestLeaderboardResponse(
            contest_id=contest_id,
            page=page,
            limit=limit,
            total=total,
            frozen=bool(contest.leaderboard_frozen),
            entries=entries,
        )

    def global_leaderboard(
        self,
        db: Session,
        page: int = 1,
        limit: Optional[int] = None,
        tier: Optional[Tier] = None,
    ) -> GlobalLeaderboardResponse:
        """Active players by XP, optionally restricted to one tier"""
        limit, offset = self._page_window(page, limit)

        query = db.query(Player).filter(Player.is_active.is_(True))
        tier_value = Tier(tier).value if tier is not None else None
        if tier_value:
            query = query.filter(Player.tier == tier_value)

        total = query.count()
        players: Sequence[Player] = (
            query.options(joinedload(Player.user))
            .order_by(Player.xp.desc(), Player.id.asc())
            .offset(offset)
            .limit(limit)
            .all()
        )

        entries = [
            GlobalLeaderboardEntry(
                rank=offset + position,
                player_id=player.id,
                username=player.user.username if player.user else None,
                xp=player.xp,
                level=player.level,
                tier=player.tier,
                sub_rank=player.sub_rank,
                total_contests=player.total_contests,
                total_wins=player.total_wins,
            )
            for position, player in enumerate(players, 1)
        ]

        return GlobalLeaderboardResponse(
            page=page,
            limit=limit,
            total=total,
            tier=tier_value,
            entries=entries,
        )


# Singleton instance
leaderboard_service = LeaderboardService()
