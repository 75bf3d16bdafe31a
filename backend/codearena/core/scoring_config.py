"""Scoring and leveling tables.

All tuning numbers used by the scoring engine, XP ledger, level table and
rank finalization live here as immutable data. ``get_scoring_config()``
builds them once per process, optionally overlaying a JSON file named by
``SCORING_CONFIG_FILE``. Services accept an explicit ``ScoringConfig`` so
tests can run against alternate tuning.

Override file shape (every key optional)::

    {
      "modes": {"LEGEND": {"multiplier": 2.0, "accuracy": 0.2, "raw": 0.2, "xp": 0.6}},
      "base_xp": {"HARD": 350},
      "points": {"EASY": 120},
      "penalty_per_wrong_mins": 10,
      "accuracy_penalty_factor": 2,
      "join_xp": 50,
      "rank_bonus": [500, 400, 300, 200, 100],
      "winners_count": 3,
      "levels": [{"xp_required": 0, "level": 1, "tier": "BRONZE", "sub_rank": "Bronze III"}]
    }
"""

from __future__ import annotations

import json
import logging
import math
from dataclasses import asdict, dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from types import MappingProxyType
from typing import Any, Dict, Mapping, Optional, Tuple

from codearena.config import settings
from codearena.core.exceptions import ScoringInvariantError
from codearena.schemas.enums import Difficulty, ScoringMode, Tier

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ModeProfile:
    """Multiplier and (accuracy, raw, xp) weight triple for one scoring mode."""

    multiplier: float
    accuracy: float
    raw: float
    xp: float


@dataclass(frozen=True)
class LevelThreshold:
    xp_required: int
    level: int
    tier: Tier
    sub_rank: str


_TIER_LABELS = (
    (Tier.BRONZE, "Bronze", (0, 100, 250)),
    (Tier.SILVER, "Silver", (500, 800, 1200)),
    (Tier.GOLD, "Gold", (1700, 2300, 3000)),
    (Tier.PLATINUM, "Platinum", (3800, 4700, 5700)),
    (Tier.DIAMOND, "Diamond", (6800, 8000, 9500)),
    (Tier.MASTER, "Master", (11000, 13000, 15500)),
)


def _default_levels() -> Tuple[LevelThreshold, ...]:
    levels = []
    for tier, label, thresholds in _TIER_LABELS:
        for numeral, xp_required in zip(("III", "II", "I"), thresholds):
            levels.append(
                LevelThreshold(
                    xp_required=xp_required,
                    level=len(levels) + 1,
                    tier=tier,
                    sub_rank=f"{label} {numeral}",
                )
            )
    return tuple(levels)


def _frozen(mapping: Dict[Any, Any]) -> Mapping[Any, Any]:
    return MappingProxyType(dict(mapping))


@dataclass(frozen=True)
class ScoringConfig:
    """Immutable scoring configuration."""

    modes: Mapping[ScoringMode, ModeProfile] = field(default_factory=lambda: _frozen({
        ScoringMode.PRECISION: ModeProfile(multiplier=1.0, accuracy=0.60, raw=0.25, xp=0.15),
        ScoringMode.GRINDER: ModeProfile(multiplier=1.1, accuracy=0.20, raw=0.60, xp=0.20),
        ScoringMode.LEGEND: ModeProfile(multiplier=1.5, accuracy=0.20, raw=0.20, xp=0.60),
    }))
    base_xp: Mapping[Difficulty, int] = field(default_factory=lambda: _frozen({
        Difficulty.EASY: 75,
        Difficulty.MEDIUM: 150,
        Difficulty.HARD: 300,
    }))
    points: Mapping[Difficulty, int] = field(default_factory=lambda: _frozen({
        Difficulty.EASY: 100,
        Difficulty.MEDIUM: 200,
        Difficulty.HARD: 400,
    }))
    penalty_per_wrong_mins: int = 10
    accuracy_penalty_factor: int = 2
    join_xp: int = 50
    rank_bonus: Tuple[int, ...] = (500, 400, 300, 200, 100)
    winners_count: int = 3
    levels: Tuple[LevelThreshold, ...] = field(default_factory=_default_levels)

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """
        Check internal consistency.

        Raises:
            ValueError: If any table is malformed.
        """
        missing_modes = set(ScoringMode) - set(self.modes)
        if missing_modes:
            raise ValueError(f"Scoring modes missing: {sorted(m.value for m in missing_modes)}")
        for mode, profile in self.modes.items():
            total = profile.accuracy + profile.raw + profile.xp
            if not math.isclose(total, 1.0, abs_tol=1e-9):
                raise ValueError(f"Weights for {mode.value} sum to {total}, expected 1.0")
            if profile.multiplier < 0:
                raise ValueError(f"Negative multiplier for {mode.value}")

        for table_name in ("base_xp", "points"):
            table = getattr(self, table_name)
            if set(table) != set(Difficulty):
                raise ValueError(f"{table_name} must define every difficulty")
            if any(value < 0 for value in table.values()):
                raise ValueError(f"{table_name} values must be non-negative")

        if any(bonus < 0 for bonus in self.rank_bonus):
            raise ValueError("rank_bonus values must be non-negative")

        if not self.levels:
            raise ValueError("Level table is empty")
        if self.levels[0].xp_required != 0:
            raise ValueError("Level table must start at 0 XP")
        for previous, current in zip(self.levels, self.levels[1:]):
            if current.xp_required <= previous.xp_required or current.level <= previous.level:
                raise ValueError(
                    f"Level table not strictly ascending at level {current.level}"
                )

    def mode_profile(self, mode: str) -> ModeProfile:
        """
        Look up the profile for a mode.

        Raises:
            ScoringInvariantError: Unknown mode. Callers validate modes at
                join time, so reaching here with one is a bug.
        """
        try:
            return self.modes[ScoringMode(mode)]
        except (KeyError, ValueError):
            raise ScoringInvariantError(f"Unknown scoring mode: {mode!r}") from None

    @classmethod
    def from_dict(cls, data: Dict[str, Any], base: Optional["ScoringConfig"] = None) -> "ScoringConfig":
        """Overlay a plain dict (e.g. parsed JSON) on top of ``base``."""
        base = base or cls()
        changes: Dict[str, Any] = {}

        if "modes" in data:
            modes = dict(base.modes)
            for name, profile in data["modes"].items():
                current = modes.get(ScoringMode(name))
                merged = {**(asdict(current) if current else {}), **profile}
                modes[ScoringMode(name)] = ModeProfile(**merged)
            changes["modes"] = _frozen(modes)

        for table_name in ("base_xp", "points"):
            if table_name in data:
                table = dict(getattr(base, table_name))
                for difficulty, value in data[table_name].items():
                    table[Difficulty.normalize(difficulty)] = int(value)
                changes[table_name] = _frozen(table)

        for scalar in ("penalty_per_wrong_mins", "accuracy_penalty_factor", "join_xp", "winners_count"):
            if scalar in data:
                changes[scalar] = int(data[scalar])

        if "rank_bonus" in data:
            changes["rank_bonus"] = tuple(int(v) for v in data["rank_bonus"])

        if "levels" in data:
            changes["levels"] = tuple(
                LevelThreshold(
                    xp_required=int(row["xp_required"]),
                    level=int(row["level"]),
                    tier=Tier(row["tier"]),
                    sub_rank=str(row["sub_rank"]),
                )
                for row in data["levels"]
            )

        return replace(base, **changes)

    @classmethod
    def from_file(cls, path: str) -> "ScoringConfig":
        with open(path, "r", encoding="utf-8") as fh:
            data = json.load(fh)
        return cls.from_dict(data)


@lru_cache()
def get_scoring_config() -> ScoringConfig:
    """Process-wide scoring configuration, built once."""
    path = settings.get_scoring_config_file()
    if path and Path(path).exists():
        logger.info(f"Loading scoring configuration from {path}")
        return ScoringConfig.from_file(path)
    if path:
        logger.warning(f"SCORING_CONFIG_FILE {path} not found, using built-in tables")
    return ScoringConfig()
