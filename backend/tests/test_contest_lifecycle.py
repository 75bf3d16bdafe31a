from datetime import datetime, timedelta
import json

import pytest

from codearena.core.exceptions import (
    AlreadyJoinedError,
    ContestNotOpenError,
    InvalidInviteCodeError,
    InvalidStatusTransitionError,
)
from codearena.models.audit import AuditEvent
from codearena.models.xp_ledger import XpLedgerEntry
from codearena.schemas.contest import ContestUpdate
from codearena.schemas.enums import ContestStatus
from codearena.schemas.events import EventType
from codearena.services.audit_service import audit_service
from codearena.services.contest_lifecycle import contest_lifecycle, is_legal_transition
from codearena.services.contest_service import contest_service


@pytest.mark.parametrize(
    "current,requested,legal",
    [
        (ContestStatus.DRAFT, ContestStatus.UPCOMING, True),
        (ContestStatus.DRAFT, ContestStatus.LIVE, True),
        (ContestStatus.UPCOMING, ContestStatus.ENDED, True),
        (ContestStatus.LIVE, ContestStatus.CANCELLED, True),
        (ContestStatus.LIVE, ContestStatus.UPCOMING, False),
        (ContestStatus.ENDED, ContestStatus.LIVE, False),
        (ContestStatus.ENDED, ContestStatus.CANCELLED, False),
        (ContestStatus.CANCELLED, ContestStatus.ENDED, False),
        (ContestStatus.ENDED, ContestStatus.ENDED, True),
    ],
)
def test_transition_table(current, requested, legal):
    assert is_legal_transition(current, requested) is legal


def test_status_change_is_audited_and_announced(db, make_contest, sink):
    contest = make_contest(status=ContestStatus.DRAFT)

    result = contest_lifecycle.change_status(db, contest.id, "upcoming", actor_id=None)

    assert result.changed
    assert contest.status == "UPCOMING"
    events = sink.of_type(EventType.CONTEST_STATUS_CHANGED)
    assert [(e.old_status, e.new_status) for e in events] == [("DRAFT", "UPCOMING")]
    audit = db.query(AuditEvent).one()
    assert audit.action == "contest.status"
    assert audit.target_id == str(contest.id)


def test_backward_and_unknown_transitions_are_rejected(db, make_contest):
    contest = make_contest(status=ContestStatus.LIVE)
    with pytest.raises(InvalidStatusTransitionError):
        contest_lifecycle.change_status(db, contest.id, "UPCOMING")
    with pytest.raises(InvalidStatusTransitionError):
        contest_lifecycle.change_status(db, contest.id, "PAUSED")
    db.refresh(contest)
    assert contest.status == "LIVE"


def test_same_status_request_is_a_no_op(db, make_contest, sink):
    contest = make_contest(status=ContestStatus.LIVE)
    result = contest_lifecycle.change_status(db, contest.id, "LIVE")
    assert not result.changed
    assert sink.events == []
    assert db.query(AuditEvent).count() == 0


def test_contest_history_is_kept_per_target(db, make_organizer, make_contest, sink):
    organizer = make_organizer()
    contest = make_contest(status=ContestStatus.UPCOMING)
    other = make_contest(status=ContestStatus.UPCOMING)
    contest_lifecycle.change_status(db, contest.id, "LIVE", actor_id=organizer.id)
    contest_lifecycle.change_status(db, other.id, "CANCELLED", actor_id=organizer.id)
    contest_lifecycle.change_status(db, contest.id, "ENDED", actor_id=organizer.id)

    history = audit_service.events_for(db, "contest", contest.id)
    assert [e.action for e in history] == ["contest.status", "contest.status"]
    assert [json.loads(e.metadata_json)["to"] for e in history] == ["LIVE", "ENDED"]
    assert history[0].actor.username == "organizer"


def test_join_applies_side_effects(db, make_player, make_contest, sink):
    player = make_player(preferred_mode="LEGEND")
    contest = make_contest(status=ContestStatus.UPCOMING)

    participant = contest_lifecycle.join(db, contest.id, player)

    assert participant.mode == "LEGEND"
    db.refresh(contest)
    db.refresh(player)
    assert contest.participant_count == 1
    assert player.total_contests == 1
    assert player.xp == 50
    assert player.streak_days == 1
    assert player.last_contest_at is not None
    entry = db.query(XpLedgerEntry).one()
    assert entry.source == "CONTEST_JOIN"
    assert entry.final_xp == 50
    assert entry.multiplier == 1.0
    assert len(sink.of_type(EventType.PLAYER_JOINED_CONTEST)) == 1


def test_duplicate_join_is_rejected(db, make_player, make_contest):
    player = make_player()
    contest = make_contest()
    contest_lifecycle.join(db, contest.id, player)

    with pytest.raises(AlreadyJoinedError):
        contest_lifecycle.join(db, contest.id, player)
    db.refresh(contest)
    db.refresh(player)
    assert contest.participant_count == 1
    assert player.xp == 50


@pytest.mark.parametrize("status", [ContestStatus.DRAFT, ContestStatus.ENDED, ContestStatus.CANCELLED])
def test_join_requires_open_contest(db, make_player, make_contest, status):
    contest = make_contest(status=status)
    with pytest.raises(ContestNotOpenError):
        contest_lifecycle.join(db, contest.id, make_player())


def test_private_contest_needs_invite_code(db, make_player, make_contest):
    contest = make_contest(is_public=False, invite_code="ABCD1234")
    with pytest.raises(InvalidInviteCodeError):
        contest_lifecycle.join(db, contest.id, make_player(), invite_code="WRONG")
    participant = contest_lifecycle.join(db, contest.id, make_player(), invite_code="ABCD1234")
    assert participant.id is not None


def test_streak_days_follow_consecutive_days(db, make_player, make_contest):
    day = datetime(2026, 10, 1, 9, 0)
    player = make_player(last_contest_at=day - timedelta(days=1), streak_days=4)
    contest_lifecycle.join(db, make_contest().id, player, now=day)
    assert player.streak_days == 5

    contest_lifecycle.join(db, make_contest().id, player, now=day + timedelta(hours=3))
    assert player.streak_days == 5

    contest_lifecycle.join(db, make_contest().id, player, now=day + timedelta(days=3))
    assert player.streak_days == 1


def _end_with_ratings(db, make_player, make_contest, add_participant, ratings):
    contest = make_contest(status=ContestStatus.LIVE)
    base = datetime(2026, 10, 1, 12, 0)
    players = []
    for i, rating in enumerate(ratings):
        player = make_player()
        add_participant(contest, player, final_rating=rating, last_solved_at=base + timedelta(minutes=i))
        players.append(player)
    result = contest_lifecycle.change_status(db, contest.id, ContestStatus.ENDED)
    return contest, players, result


def test_finalization_assigns_ranks_bonuses_and_winners(db, make_player, make_contest, add_participant):
    contest, players, result = _end_with_ratings(
        db, make_player, make_contest, add_participant, [10, 60, 50, 40, 30, 20]
    )
    fin = result.finalization

    ordered = [players[i].id for i in (1, 2, 3, 4, 5, 0)]
    assert [fin.ranks[pid] for pid in ordered] == [1, 2, 3, 4, 5, 6]
    assert [fin.bonuses.get(pid) for pid in ordered] == [500, 400, 300, 200, 100, None]

    db.refresh(contest)
    assert contest.status == "ENDED"
    assert contest.leaderboard_frozen is True
    assert len(contest.winner_ids) == 3

    winner = players[1]
    db.refresh(winner)
    assert winner.total_wins == 1
    assert winner.win_streak == 1
    assert winner.best_win_streak == 1
    assert winner.xp == 500


def test_refinalization_is_idempotent(db, make_player, make_contest, add_participant):
    contest, players, first = _end_with_ratings(
        db, make_player, make_contest, add_participant, [30, 20, 10]
    )
    second = contest_lifecycle.change_status(db, contest.id, "ENDED")

    assert not second.changed
    assert second.finalization is not None
    assert second.finalization.ranks == first.finalization.ranks
    assert second.finalization.bonuses == {}
    assert not second.finalization.first_run

    bonuses = db.query(XpLedgerEntry).filter(XpLedgerEntry.source == "RANK_BONUS").count()
    assert bonuses == 3
    db.refresh(players[0])
    assert players[0].total_wins == 1


def test_unfreezing_then_ending_again_keeps_win_stats(db, make_player, make_organizer, make_contest, add_participant):
    contest, players, first = _end_with_ratings(db, make_player, make_contest, add_participant, [50, 10])
    finalized_at = contest.finalized_at
    assert finalized_at is not None

    contest_service.update_contest(db, make_organizer(), contest.id, ContestUpdate(leaderboard_frozen=False))
    again = contest_lifecycle.change_status(db, contest.id, "ENDED")

    assert not again.finalization.first_run
    assert again.finalization.ranks == first.finalization.ranks
    db.refresh(contest)
    assert contest.leaderboard_frozen is True
    assert contest.finalized_at == finalized_at

    winner, runner_up = players
    db.refresh(winner)
    db.refresh(runner_up)
    assert (winner.total_wins, winner.win_streak, winner.best_win_streak) == (1, 1, 1)
    assert (runner_up.total_wins, runner_up.win_streak) == (0, 0)


def test_cancelled_contest_is_not_finalized(db, make_player, make_contest, add_participant):
    contest = make_contest(status=ContestStatus.LIVE)
    add_participant(contest, make_player(), final_rating=10)
    result = contest_lifecycle.change_status(db, contest.id, "CANCELLED")

    assert result.finalization is None
    assert db.query(XpLedgerEntry).count() == 0
    with pytest.raises(InvalidStatusTransitionError):
        contest_lifecycle.change_status(db, contest.id, "ENDED")
