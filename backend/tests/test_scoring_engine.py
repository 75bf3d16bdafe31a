from datetime import datetime

import pytest

from codearena.core.exceptions import ScoringInvariantError
from codearena.models.xp_ledger import XpLedgerEntry
from codearena.schemas.enums import ScoringMode
from codearena.services.scoring_engine import ParticipantScore, scoring_engine


def test_precision_easy_with_one_wrong_attempt():
    score = scoring_engine.compute_solve(ParticipantScore(), ScoringMode.PRECISION, "EASY", 100, 1)

    assert score.raw_score == 100
    assert score.penalty_mins == 10
    assert score.accuracy_score == 80
    assert score.solve_xp == 75
    assert score.xp_score == pytest.approx(37.5)
    assert score.final_rating == pytest.approx(78.625)


def test_grinder_hard_clean_solve():
    score = scoring_engine.compute_solve(ParticipantScore(), ScoringMode.GRINDER, "HARD", 400, 0)

    assert score.raw_score == 400
    assert score.accuracy_score == 400
    assert score.solve_xp == 330
    assert score.xp_score == pytest.approx(165)
    assert score.final_rating == pytest.approx(353)


def test_second_solve_accumulates_penalty_and_xp():
    before = ParticipantScore(raw_score=100, penalty_mins=10, xp_earned=75)
    score = scoring_engine.compute_solve(before, ScoringMode.PRECISION, "MEDIUM", 200, 2)

    assert score.raw_score == 300
    assert score.penalty_mins == 30
    assert score.accuracy_score == 300 - 60
    assert score.solve_xp == 150
    assert score.xp_earned == 225
    assert score.xp_score == pytest.approx((75 + 150) / 2)


def test_accuracy_may_go_negative():
    score = scoring_engine.compute_solve(ParticipantScore(), ScoringMode.PRECISION, "EASY", 100, 6)
    assert score.accuracy_score == 100 - 120


def test_legend_multiplier_rounds_half_up():
    score = scoring_engine.compute_solve(ParticipantScore(), ScoringMode.LEGEND, "EASY", 100, 0)
    assert score.solve_xp == 113


def test_unknown_mode_is_fatal():
    with pytest.raises(ScoringInvariantError):
        scoring_engine.compute_solve(ParticipantScore(), "TURBO", "EASY", 100, 0)


def test_apply_solve_updates_participant_and_grants_xp(db, make_player, make_problem, make_contest, add_participant):
    player = make_player()
    problem = make_problem("HARD", 400)
    contest = make_contest(problems=[problem])
    participant = add_participant(contest, player, mode="GRINDER")
    solved_at = datetime(2026, 10, 1, 12, 30)

    result = scoring_engine.apply_solve(db, participant, problem, 0, solved_at)
    db.commit()

    assert participant.raw_score == 400
    assert participant.accuracy_score == 400
    assert participant.final_rating == pytest.approx(353)
    assert participant.problems_solved == 1
    assert participant.xp_earned == 330
    assert participant.last_solved_at == solved_at

    db.refresh(player)
    assert player.xp == 330
    assert player.level == 3
    assert player.sub_rank == "Bronze I"
    assert result.level_change is not None
    assert result.level_change.leveled_up
    assert not result.level_change.tier_changed

    entry = db.query(XpLedgerEntry).one()
    assert entry.source == "SOLVE_HARD"
    assert entry.idempotency_key == f"solve:{contest.id}:{problem.id}:{player.id}"


def test_apply_solve_without_participant_is_a_no_op(db, make_problem):
    assert scoring_engine.apply_solve(db, None, make_problem(), 0) is None
    assert db.query(XpLedgerEntry).count() == 0
