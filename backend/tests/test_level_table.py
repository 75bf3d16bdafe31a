import pytest

from codearena.core.exceptions import ScoringInvariantError
from codearena.core.scoring_config import LevelThreshold, ScoringConfig
from codearena.schemas.enums import Tier
from codearena.services.level_table import DEFAULT_LEVEL, LevelTable, level_table


def test_zero_xp_is_bronze_three():
    info = level_table.level_for(0)
    assert info == DEFAULT_LEVEL
    assert info.level == 1
    assert info.tier == Tier.BRONZE
    assert info.sub_rank == "Bronze III"


def test_threshold_boundaries_are_inclusive():
    assert level_table.level_for(99).level == 1
    assert level_table.level_for(100).level == 2
    assert level_table.level_for(100).sub_rank == "Bronze II"
    assert level_table.level_for(499).tier == Tier.BRONZE
    assert level_table.level_for(500).tier == Tier.SILVER
    assert level_table.level_for(500).sub_rank == "Silver III"


def test_xp_beyond_top_threshold_stays_at_max_level():
    info = level_table.level_for(10_000_000)
    assert info.level == level_table.max_level == 18
    assert info.tier == Tier.MASTER
    assert info.sub_rank == "Master I"


def test_level_is_monotonic_in_xp():
    previous = 0
    for xp in range(0, 17000, 37):
        level = level_table.level_for(xp).level
        assert level >= previous
        previous = level


def test_lookup_is_deterministic():
    assert level_table.level_for(2345) == level_table.level_for(2345)


def test_negative_xp_is_an_invariant_violation():
    with pytest.raises(ScoringInvariantError):
        level_table.level_for(-1)


def test_next_threshold():
    assert level_table.next_threshold(0) == 100
    assert level_table.next_threshold(100) == 250
    assert level_table.next_threshold(15500) is None


def test_custom_table():
    config = ScoringConfig(levels=(
        LevelThreshold(0, 1, Tier.BRONZE, "Rookie"),
        LevelThreshold(10, 2, Tier.SILVER, "Pro"),
    ))
    table = LevelTable(config)
    assert table.level_for(9).sub_rank == "Rookie"
    assert table.level_for(10).tier == Tier.SILVER
    assert table.max_level == 2
