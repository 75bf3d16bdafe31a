"""Level table - maps cumulative XP to level, tier and sub-rank"""

from __future__ import annotations

from bisect import bisect_right
from dataclasses import dataclass
from functools import lru_cache
from typing import Optional

from codearena.core.exceptions import ScoringInvariantError
from codearena.core.scoring_config import ScoringConfig, get_scoring_config
from codearena.schemas.enums import Tier


@dataclass(frozen=True)
class LevelInfo:
    level: int
    tier: Tier
    sub_rank: str


DEFAULT_LEVEL = LevelInfo(level=1, tier=Tier.BRONZE, sub_rank="Bronze III")


class LevelTable:
    """Pure threshold lookup over the configured level table."""

    def __init__(self, config: Optional[ScoringConfig] = None) -> None:
        self._config = config or get_scoring_config()
        self._thresholds = [row.xp_required for row in self._config.levels]
        self._entries = [
            LevelInfo(level=row.level, tier=row.tier, sub_rank=row.sub_rank)
            for row in self._config.levels
        ]
        self.level_for = lru_cache(maxsize=4096)(self._lookup)

    @property
    def max_level(self) -> int:
        return self._entries[-1].level

    def _lookup(self, xp: int) -> LevelInfo:
        """
        Highest level whose threshold is <= xp.

        Args:
            xp: Cumulative XP, must be non-negative

        Returns:
            LevelInfo for the player

        Raises:
            ScoringInvariantError: If xp is negative
        """
        if xp < 0:
            raise ScoringInvariantError(f"XP cannot be negative: {xp}")
        index = bisect_right(self._thresholds, xp) - 1
        if index < 0:
            return DEFAULT_LEVEL
        return self._entries[index]

    def next_threshold(self, xp: int) -> Optional[int]:
        """XP required for the next level, None at the top of the table."""
        index = bisect_right(self._thresholds, xp)
        if index >= len(self._thresholds):
            return None
        return self._thresholds[index]


level_table = LevelTable()
