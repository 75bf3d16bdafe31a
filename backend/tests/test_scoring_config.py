import json

import pytest

from codearena.core.exceptions import ScoringInvariantError
from codearena.core.scoring_config import ScoringConfig
from codearena.schemas.enums import Difficulty, ScoringMode


def test_default_weights_sum_to_one():
    config = ScoringConfig()
    for profile in config.modes.values():
        assert profile.accuracy + profile.raw + profile.xp == pytest.approx(1.0)


def test_tables_are_read_only():
    config = ScoringConfig()
    with pytest.raises(TypeError):
        config.base_xp[Difficulty.EASY] = 1


def test_unknown_mode_is_an_invariant_violation():
    with pytest.raises(ScoringInvariantError):
        ScoringConfig().mode_profile("SPEEDRUN")


def test_override_merges_partial_mode():
    config = ScoringConfig.from_dict({"modes": {"LEGEND": {"multiplier": 2.0}}, "base_xp": {"hard": 350}})
    legend = config.mode_profile(ScoringMode.LEGEND)
    assert legend.multiplier == 2.0
    assert legend.xp == pytest.approx(0.60)
    assert config.base_xp[Difficulty.HARD] == 350
    assert config.base_xp[Difficulty.EASY] == 75


def test_override_rejects_bad_weights():
    with pytest.raises(ValueError):
        ScoringConfig.from_dict({"modes": {"GRINDER": {"accuracy": 0.9}}})


def test_override_rejects_unordered_levels():
    with pytest.raises(ValueError):
        ScoringConfig.from_dict({"levels": [
            {"xp_required": 0, "level": 1, "tier": "BRONZE", "sub_rank": "a"},
            {"xp_required": 0, "level": 2, "tier": "BRONZE", "sub_rank": "b"},
        ]})


def test_from_file(tmp_path):
    path = tmp_path / "scoring.json"
    path.write_text(json.dumps({"join_xp": 80, "rank_bonus": [10, 5]}), encoding="utf-8")
    config = ScoringConfig.from_file(str(path))
    assert config.join_xp == 80
    assert config.rank_bonus == (10, 5)
