from decimal import Decimal

import pytest
from sqlalchemy.exc import IntegrityError

from codearena.core.exceptions import ScoringInvariantError
from codearena.models.xp_ledger import XpLedgerEntry
from codearena.schemas.enums import Tier, XpSource
from codearena.services.xp_ledger import (
    compute_final_xp,
    join_key,
    rank_bonus_key,
    round_half_up,
    solve_key,
    xp_ledger,
)


def test_round_half_up():
    assert round_half_up(Decimal("82.5")) == 83
    assert round_half_up(Decimal("82.49")) == 82
    assert round_half_up(Decimal("0.5")) == 1


@pytest.mark.parametrize(
    "base,multiplier,expected",
    [
        (75, 1.0, 75),
        (75, 1.1, 83),    # 82.5 rounds up
        (150, 1.1, 165),
        (300, 1.1, 330),
        (75, 1.5, 113),   # 112.5 rounds up
        (300, 1.5, 450),
    ],
)
def test_compute_final_xp(base, multiplier, expected):
    assert compute_final_xp(base, multiplier) == expected


def test_compute_final_xp_rejects_negative_input():
    with pytest.raises(ScoringInvariantError):
        compute_final_xp(-1, 1.0)
    with pytest.raises(ScoringInvariantError):
        compute_final_xp(10, -0.5)


def test_idempotency_keys():
    assert join_key(3, 7) == "join:3:7"
    assert solve_key(3, 11, 7) == "solve:3:11:7"
    assert rank_bonus_key(3, 7) == "rank-bonus:3:7"


def test_grant_appends_entry_and_increments_xp(db, make_player):
    player = make_player()
    granted = xp_ledger.grant(db, player, None, XpSource.SOLVE_EASY, 75, 1.1)
    db.commit()

    assert granted == 83
    assert player.xp == 83
    entry = db.query(XpLedgerEntry).one()
    assert entry.base_xp == 75
    assert entry.multiplier == pytest.approx(1.1)
    assert entry.final_xp == 83
    assert entry.source == "SOLVE_EASY"


def test_ledger_reconciles_with_player_xp(db, make_player):
    player = make_player()
    for base, mult in [(50, 1.0), (75, 1.5), (300, 1.1), (500, 1.0)]:
        xp_ledger.grant(db, player, None, XpSource.RANK_BONUS, base, mult)
    db.commit()

    assert xp_ledger.total_for_player(db, player.id) == player.xp == 50 + 113 + 330 + 500


def test_duplicate_idempotency_key_is_rejected(db, make_player):
    player = make_player()
    xp_ledger.grant(db, player, None, XpSource.CONTEST_JOIN, 50, idempotency_key="join:1:1")
    db.commit()
    assert xp_ledger.has_entry(db, "join:1:1")

    with pytest.raises(IntegrityError):
        xp_ledger.grant(db, player, None, XpSource.CONTEST_JOIN, 50, idempotency_key="join:1:1")
    db.rollback()

    db.refresh(player)
    assert player.xp == 50
    assert db.query(XpLedgerEntry).count() == 1


def test_refresh_level_reports_level_and_tier_change(db, make_player):
    player = make_player(xp=480, level=3, tier="BRONZE", sub_rank="Bronze I")
    xp_ledger.grant(db, player, None, XpSource.SOLVE_EASY, 75)
    change = xp_ledger.refresh_level(player)

    assert player.xp == 555
    assert change is not None
    assert change.old_level == 3
    assert change.new_level == 4
    assert change.leveled_up
    assert change.tier_changed
    assert change.new_tier == Tier.SILVER.value
    assert player.sub_rank == "Silver III"
    assert player.last_level_up_at is not None


def test_refresh_level_without_change_returns_none(make_player):
    player = make_player(xp=10)
    assert xp_ledger.refresh_level(player) is None


def test_history_is_newest_first(db, make_player):
    player = make_player()
    for base in (10, 20, 30):
        xp_ledger.grant(db, player, None, XpSource.RANK_BONUS, base)
    db.commit()

    history = xp_ledger.history(db, player.id, page=1, limit=2)
    assert [e.final_xp for e in history] == [30, 20]
    assert [e.final_xp for e in xp_ledger.history(db, player.id, page=2, limit=2)] == [10]
