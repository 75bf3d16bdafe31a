import threading
import time

import pytest

from codearena.core.exceptions import (
    ContestNotLiveError,
    NotParticipantError,
    ResourceNotFoundError,
    SubmissionAlreadyJudgedError,
    ValidationError,
)
from codearena.models.submission import Submission
from codearena.models.xp_ledger import XpLedgerEntry
from codearena.schemas.enums import ContestStatus, Verdict
from codearena.schemas.events import EventType
from codearena.schemas.submission import SubmissionCreate
from codearena.services.award_rules import AwardOutcome, award_rules
from codearena.services.locks import KeyedLock
from codearena.services.submission_service import submission_service


def _submit(db, player, problem, contest=None):
    return submission_service.create_submission(
        db,
        player,
        SubmissionCreate(
            problem_id=problem.id,
            contest_id=contest.id if contest else None,
            language="python",
            code="print(42)",
        ),
    )


@pytest.fixture
def arena(db, make_player, make_problem, make_contest, add_participant):
    player = make_player()
    problem = make_problem("EASY", 100)
    contest = make_contest(problems=[problem])
    participant = add_participant(contest, player, mode="PRECISION")
    return player, problem, contest, participant


def _solve_entries(db):
    return db.query(XpLedgerEntry).filter(XpLedgerEntry.source.like("SOLVE_%")).all()


def test_second_acceptance_is_not_credited(db, arena, sink):
    player, problem, contest, participant = arena
    first = _submit(db, player, problem, contest)
    second = _submit(db, player, problem, contest)

    r1 = award_rules.process_judge_result(db, first.id, Verdict.ACCEPTED)
    r2 = award_rules.process_judge_result(db, second.id, Verdict.ACCEPTED)

    assert r1.outcome == AwardOutcome.CREDITED
    assert r1.points_earned == 100
    assert r2.outcome == AwardOutcome.SKIPPED_ALREADY_CREDITED
    assert r2.skipped and not r2.credited

    db.refresh(second)
    assert second.verdict == "ACCEPTED"
    assert second.points_earned == 0

    db.refresh(participant)
    assert participant.raw_score == 100
    assert participant.problems_solved == 1
    assert len(_solve_entries(db)) == 1
    assert len(sink.of_type(EventType.PROBLEM_SOLVED)) == 1


def test_wrong_attempts_are_frozen_at_creation(db, arena):
    player, problem, contest, participant = arena
    wrong = _submit(db, player, problem, contest)
    award_rules.process_judge_result(db, wrong.id, Verdict.WRONG_ANSWER)

    accepted = _submit(db, player, problem, contest)
    assert accepted.wrong_attempts == 1

    result = award_rules.process_judge_result(db, accepted.id, Verdict.ACCEPTED)
    assert result.credited
    db.refresh(participant)
    assert participant.penalty_mins == 10
    assert participant.accuracy_score == 80
    assert participant.final_rating == pytest.approx(78.625)


def test_unjudged_earlier_attempt_counts_as_wrong(db, arena):
    player, problem, contest, participant = arena
    first = _submit(db, player, problem, contest)
    second = _submit(db, player, problem, contest)
    assert second.wrong_attempts == 1

    award_rules.process_judge_result(db, first.id, Verdict.WRONG_ANSWER)
    result = award_rules.process_judge_result(db, second.id, Verdict.ACCEPTED)
    assert result.credited
    db.refresh(participant)
    assert participant.penalty_mins == 10


def test_rejected_verdict_changes_nothing(db, arena, sink):
    player, problem, contest, participant = arena
    submission = _submit(db, player, problem, contest)

    result = award_rules.process_judge_result(db, submission.id, Verdict.TIME_LIMIT_EXCEEDED, runtime_ms=2000)

    assert result.outcome == AwardOutcome.NOT_ACCEPTED
    db.refresh(submission)
    assert submission.verdict == "TIME_LIMIT_EXCEEDED"
    assert submission.runtime_ms == 2000
    assert submission.judged_at is not None
    db.refresh(participant)
    assert participant.raw_score == 0
    assert db.query(XpLedgerEntry).count() == 0
    assert sink.events == []


def test_practice_acceptance_earns_points_but_no_xp(db, make_player, make_problem, sink):
    player = make_player()
    problem = make_problem("MEDIUM", 200)
    submission = _submit(db, player, problem)

    result = award_rules.process_judge_result(db, submission.id, Verdict.ACCEPTED)

    assert result.outcome == AwardOutcome.PRACTICE
    db.refresh(submission)
    assert submission.points_earned == 200
    db.refresh(player)
    assert player.xp == 0
    assert db.query(XpLedgerEntry).count() == 0
    solved = sink.of_type(EventType.PROBLEM_SOLVED)
    assert len(solved) == 1
    assert solved[0].payload()["contestId"] is None


def test_acceptance_after_contest_ended_is_skipped(db, arena):
    player, problem, contest, participant = arena
    submission = _submit(db, player, problem, contest)
    contest.status = ContestStatus.ENDED.value
    db.commit()

    result = award_rules.process_judge_result(db, submission.id, Verdict.ACCEPTED)

    assert result.outcome == AwardOutcome.SKIPPED_CONTEST_NOT_LIVE
    db.refresh(participant)
    assert participant.raw_score == 0
    assert _solve_entries(db) == []


def test_acceptance_without_participant_is_skipped(db, make_player, make_problem, make_contest):
    player = make_player()
    problem = make_problem()
    contest = make_contest(problems=[problem])
    submission = Submission(
        idempotency_key="orphan",
        player_id=player.id,
        problem_id=problem.id,
        contest_id=contest.id,
        language="python",
        code="pass",
    )
    db.add(submission)
    db.commit()

    result = award_rules.process_judge_result(db, submission.id, Verdict.ACCEPTED)
    assert result.outcome == AwardOutcome.SKIPPED_NO_PARTICIPANT
    assert db.query(XpLedgerEntry).count() == 0


def test_verdict_is_recorded_once(db, arena):
    player, problem, contest, _ = arena
    submission = _submit(db, player, problem, contest)
    award_rules.process_judge_result(db, submission.id, Verdict.WRONG_ANSWER)

    with pytest.raises(SubmissionAlreadyJudgedError):
        award_rules.process_judge_result(db, submission.id, Verdict.ACCEPTED)
    db.refresh(submission)
    assert submission.verdict == "WRONG_ANSWER"


def test_pending_is_not_a_judge_result(db, arena):
    player, problem, contest, _ = arena
    submission = _submit(db, player, problem, contest)
    with pytest.raises(ValidationError):
        award_rules.process_judge_result(db, submission.id, Verdict.PENDING)


def test_unknown_submission(db):
    with pytest.raises(ResourceNotFoundError):
        award_rules.process_judge_result(db, 999, Verdict.ACCEPTED)


def test_rank_change_events_follow_a_credited_solve(db, make_player, make_problem, make_contest, add_participant, sink):
    problem = make_problem("EASY", 100)
    contest = make_contest(problems=[problem])
    first, second = make_player(), make_player()
    add_participant(contest, first)
    add_participant(contest, second)

    submission = _submit(db, second, problem, contest)
    award_rules.process_judge_result(db, submission.id, Verdict.ACCEPTED)

    moves = {e.player_id: (e.old_rank, e.new_rank) for e in sink.of_type(EventType.PLAYER_RANK_CHANGED)}
    assert moves == {second.id: (2, 1), first.id: (1, 2)}


def test_sink_failure_does_not_undo_the_award(db, arena):
    player, problem, contest, participant = arena

    class BrokenSink:
        def publish(self, event):
            raise RuntimeError("transport down")

    previous = award_rules.dispatcher.sink
    award_rules.dispatcher.configure(BrokenSink())
    try:
        submission = _submit(db, player, problem, contest)
        result = award_rules.process_judge_result(db, submission.id, Verdict.ACCEPTED)
    finally:
        award_rules.dispatcher.configure(previous)

    assert result.credited
    db.refresh(participant)
    assert participant.raw_score == 100


def test_contest_submission_requires_live_contest(db, make_player, make_problem, make_contest, add_participant):
    player = make_player()
    problem = make_problem()
    contest = make_contest(status=ContestStatus.UPCOMING, problems=[problem])
    add_participant(contest, player)
    with pytest.raises(ContestNotLiveError):
        _submit(db, player, problem, contest)


def test_contest_submission_requires_join(db, make_player, make_problem, make_contest):
    player = make_player()
    problem = make_problem()
    contest = make_contest(problems=[problem])
    with pytest.raises(NotParticipantError):
        _submit(db, player, problem, contest)


def test_keyed_lock_serializes_same_key():
    locks = KeyedLock()
    inside = []
    overlap = []

    def worker():
        with locks.hold((1, 1)):
            inside.append(1)
            if len(inside) > 1:
                overlap.append(True)
            time.sleep(0.01)
            inside.pop()

    threads = [threading.Thread(target=worker) for _ in range(8)]
    for t in threads:
        t.start()
    for t in threads:
        t.join()

    assert overlap == []
    assert locks.active_keys() == 0
