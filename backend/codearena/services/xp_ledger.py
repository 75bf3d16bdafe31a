"""XP ledger service - append-only XP grants and level refresh"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.orm import Session

from codearena.core.exceptions import ScoringInvariantError
from codearena.core.metrics import XP_GRANTED
from codearena.models.player import Player
from codearena.models.xp_ledger import XpLedgerEntry
from codearena.schemas.enums import Tier, XpSource
from codearena.services.level_table import LevelTable, level_table as default_level_table

logger = logging.getLogger(__name__)


def round_half_up(value: Decimal) -> int:
    """Round to the nearest integer, halves away from zero."""
    return int(value.quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def compute_final_xp(base_xp: int, multiplier: float) -> int:
    """
    final_xp = round_half_up(base_xp * multiplier)

    The multiplier goes through str() so 1.1 is treated as exactly 1.1.
    """
    if base_xp < 0:
        raise ScoringInvariantError(f"Negative base XP: {base_xp}")
    if multiplier < 0:
        raise ScoringInvariantError(f"Negative XP multiplier: {multiplier}")
    return round_half_up(Decimal(int(base_xp)) * Decimal(str(multiplier)))


def join_key(contest_id: int, player_id: int) -> str:
    return f"join:{contest_id}:{player_id}"


def solve_key(contest_id: int, problem_id: int, player_id: int) -> str:
    return f"solve:{contest_id}:{problem_id}:{player_id}"


def rank_bonus_key(contest_id: int, player_id: int) -> str:
    return f"rank-bonus:{contest_id}:{player_id}"


@dataclass(frozen=True)
class LevelChange:
    player_id: int
    old_level: int
    new_level: int
    old_tier: str
    new_tier: str
    sub_rank: str

    @property
    def leveled_up(self) -> bool:
        return self.new_level > self.old_level

    @property
    def tier_changed(self) -> bool:
        return self.new_tier != self.old_tier


class XpLedgerService:
    """
    Owns every write to Player.xp.

    Methods flush but never commit: the caller's transaction decides whether
    the ledger entry and the counter increment persist together.
    """

    def __init__(self, levels: Optional[LevelTable] = None) -> None:
        self.levels = levels or default_level_table

    def grant(
        self,
        db: Session,
        player: Player,
        contest_id: Optional[int],
        source: XpSource,
        base_xp: int,
        multiplier: float = 1.0,
        *,
        problem_id: Optional[int] = None,
        idempotency_key: Optional[str] = None,
    ) -> int:
        """
        Append a ledger entry and add its XP to the player's counter.

        Args:
            db: Database session (transaction owned by the caller)
            player: Player receiving XP
            contest_id: Contest the grant belongs to, if any
            source: Reason for the grant
            base_xp: XP before the multiplier
            multiplier: Mode multiplier
            problem_id: Problem for solve grants
            idempotency_key: Unique key guarding against repeated grants

        Returns:
            The XP actually granted
        """
        final_xp = compute_final_xp(base_xp, multiplier)

        entry = XpLedgerEntry(
            player_id=player.id,
            contest_id=contest_id,
            problem_id=problem_id,
            source=XpSource(source).value,
            base_xp=int(base_xp),
            multiplier=float(multiplier),
            final_xp=final_xp,
            idempotency_key=idempotency_key,
        )
        db.add(entry)
        player.xp = (player.xp or 0) + final_xp
        db.flush()
        XP_GRANTED.labels(entry.source).inc(final_xp)

        logger.info(
            f"XP grant: player={player.id} contest={contest_id} source={entry.source} "
            f"base={base_xp} x{multiplier} = {final_xp} (total {player.xp})"
        )
        return final_xp

    def refresh_level(self, player: Player, now: Optional[datetime] = None) -> Optional[LevelChange]:
        """
        Re-resolve level/tier/sub-rank from the player's XP.

        Returns:
            LevelChange if anything changed, otherwise None
        """
        info = self.levels.level_for(player.xp or 0)
        old_level = player.level or 1
        old_tier = player.tier or Tier.BRONZE.value
        if info.level == old_level and info.tier.value == old_tier and info.sub_rank == player.sub_rank:
            return None

        player.level = info.level
        player.tier = info.tier.value
        player.sub_rank = info.sub_rank
        if info.level > old_level:
            player.last_level_up_at = now or datetime.utcnow()

        return LevelChange(
            player_id=player.id,
            old_level=old_level,
            new_level=info.level,
            old_tier=old_tier,
            new_tier=info.tier.value,
            sub_rank=info.sub_rank,
        )

    @staticmethod
    def has_entry(db: Session, idempotency_key: str) -> bool:
        return db.query(XpLedgerEntry.id).filter(
            XpLedgerEntry.idempotency_key == idempotency_key
        ).first() is not None

    @staticmethod
    def total_for_player(db: Session, player_id: int, contest_id: Optional[int] = None) -> int:
        """Sum of granted XP; equals Player.xp when no contest filter is given."""
        query = db.query(func.coalesce(func.sum(XpLedgerEntry.final_xp), 0)).filter(
            XpLedgerEntry.player_id == player_id
        )
        if contest_id is not None:
            query = query.filter(XpLedgerEntry.contest_id == contest_id)
        return int(query.scalar() or 0)

    @staticmethod
    def history(
        db: Session,
        player_id: int,
        page: int = 1,
        limit: int = 20,
    ) -> List[XpLedgerEntry]:
        """Ledger entries for a player, newest first"""
        offset = (max(page, 1) - 1) * limit
        return (
            db.query(XpLedgerEntry)
            .filter(XpLedgerEntry.player_id == player_id)
            .order_by(XpLedgerEntry.id.desc())
            .offset(offset)
            .limit(limit)
            .all()
        )


# Singleton instance
xp_ledger = XpLedgerService()
