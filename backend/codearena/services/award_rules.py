"""Award rules - decides whether a judged submission earns score and XP"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import List, Optional
import logging

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from codearena.config import settings
from codearena.core.exceptions import (
    ResourceNotFoundError,
    SubmissionAlreadyJudgedError,
    ValidationError,
)
from codearena.core.metrics import AWARD_OUTCOMES
from codearena.models.contest import Contest, ContestParticipant
from codearena.models.problem import Problem
from codearena.models.submission import Submission
from codearena.schemas.enums import ContestStatus, Verdict
from codearena.schemas.events import NotificationEvent, ProblemSolved
from codearena.services.leaderboard import (
    LeaderboardService,
    leaderboard_service as default_leaderboard,
    rank_change_events,
)
from codearena.services.locks import KeyedLock, participant_locks
from codearena.services.notifications import (
    NotificationDispatcher,
    level_change_events,
    notification_dispatcher as default_dispatcher,
)
from codearena.services.scoring_engine import (
    ScoringEngine,
    SolveResult,
    scoring_engine as default_scoring_engine,
)
from codearena.services.xp_ledger import solve_key

logger = logging.getLogger(__name__)


class AwardOutcome(str, Enum):
    CREDITED = "credited"
    PRACTICE = "practice"
    NOT_ACCEPTED = "not_accepted"
    SKIPPED_ALREADY_CREDITED = "skipped_already_credited"
    SKIPPED_NO_PARTICIPANT = "skipped_no_participant"
    SKIPPED_CONTEST_NOT_LIVE = "skipped_contest_not_live"


@dataclass
class AwardResult:
    submission_id: int
    verdict: Verdict
    outcome: AwardOutcome
    points_earned: int = 0
    solve: Optional[SolveResult] = None
    events: List[NotificationEvent] = field(default_factory=list)

    @property
    def credited(self) -> bool:
        return self.outcome == AwardOutcome.CREDITED

    @property
    def skipped(self) -> bool:
        return self.outcome.value.startswith("skipped")


class AwardRules:
    """
    First-acceptance-only gate in front of the scoring engine.

    For a contest submission the gate check and the score mutation run
    under a lock keyed by (player_id, contest_id) plus a row lock on the
    participant, and commit in one transaction with the verdict.
    """

    def __init__(
        self,
        engine: Optional[ScoringEngine] = None,
        leaderboard: Optional[LeaderboardService] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
        locks: Optional[KeyedLock] = None,
    ) -> None:
        self.engine = engine or default_scoring_engine
        self.leaderboard = leaderboard or default_leaderboard
        self.dispatcher = dispatcher or default_dispatcher
        self.locks = locks or participant_locks

    @staticmethod
    def count_prior_wrong_attempts(
        db: Session,
        player_id: int,
        problem_id: int,
        contest_id: Optional[int],
    ) -> int:
        """Prior non-accepted submissions for the (player, problem, contest) triple, PENDING included"""
        if contest_id is None:
            return 0
        return int(
            db.query(func.count(Submission.id))
            .filter(
                Submission.player_id == player_id,
                Submission.problem_id == problem_id,
                Submission.contest_id == contest_id,
                Submission.verdict != Verdict.ACCEPTED.value,
            )
            .scalar()
            or 0
        )

    def process_judge_result(
        self,
        db: Session,
        submission_id: int,
        verdict: Verdict,
        runtime_ms: Optional[int] = None,
        memory_mb: Optional[float] = None,
        now: Optional[datetime] = None,
    ) -> AwardResult:
        """
        Record the judge's verdict and apply any award it earns.

        Raises:
            ResourceNotFoundError: Unknown submission
            ValidationError: PENDING is not a judge result
            SubmissionAlreadyJudgedError: Verdict already recorded
        """
        verdict = Verdict(verdict)
        if verdict == Verdict.PENDING:
            raise ValidationError("Judge result cannot be PENDING")
        now = now or datetime.utcnow()

        key_row = (
            db.query(Submission.player_id, Submission.contest_id)
            .filter(Submission.id == submission_id)
            .first()
        )
        if key_row is None:
            raise ResourceNotFoundError("Submission")

        if verdict != Verdict.ACCEPTED or key_row.contest_id is None:
            result = self._record_without_contest_credit(
                db, submission_id, verdict, runtime_ms, memory_mb, now
            )
        else:
            with self.locks.hold((key_row.player_id, key_row.contest_id)):
                result = self._record_contest_acceptance(
                    db, submission_id, runtime_ms, memory_mb, now
                )

        AWARD_OUTCOMES.labels(result.outcome.value).inc()
        self.dispatcher.dispatch(result.events)
        return result

    def _load_pending(self, db: Session, submission_id: int) -> Submission:
        submission = (
            db.query(Submission)
            .filter(Submission.id == submission_id)
            .with_for_update()
            .first()
        )
        if submission is None:
            raise ResourceNotFoundError("Submission")
        if submission.verdict != Verdict.PENDING.value:
            raise SubmissionAlreadyJudgedError(submission.id, submission.verdict)
        return submission

    @staticmethod
    def _stamp(submission: Submission, verdict: Verdict, runtime_ms, memory_mb, now: datetime) -> None:
        submission.verdict = verdict.value
        submission.runtime_ms = runtime_ms
        submission.memory_mb = memory_mb
        submission.judged_at = now
        submission.points_earned = 0

    def _record_without_contest_credit(
        self, db: Session, submission_id: int, verdict: Verdict, runtime_ms, memory_mb, now: datetime
    ) -> AwardResult:
        try:
            submission = self._load_pending(db, submission_id)
            self._stamp(submission, verdict, runtime_ms, memory_mb, now)

            result = AwardResult(submission.id, verdict, AwardOutcome.NOT_ACCEPTED)
            if verdict == Verdict.ACCEPTED:
                problem = db.get(Problem, submission.problem_id)
                submission.points_earned = problem.points
                result.outcome = AwardOutcome.PRACTICE
                result.points_earned = problem.points
                result.events.append(ProblemSolved(
                    player_id=submission.player_id,
                    problem_id=problem.id,
                    contest_id=None,
                    points=problem.points,
                ))
            db.commit()
        except Exception:
            db.rollback()
            raise

        logger.info(f"Submission {submission_id} judged {verdict.value}: {result.outcome.value}")
        return result

    def _record_contest_acceptance(
        self, db: Session, submission_id: int, runtime_ms, memory_mb, now: datetime
    ) -> AwardResult:
        try:
            submission = self._load_pending(db, submission_id)
            self._stamp(submission, Verdict.ACCEPTED, runtime_ms, memory_mb, now)
            result = AwardResult(submission.id, Verdict.ACCEPTED, AwardOutcome.CREDITED)

            contest = db.get(Contest, submission.contest_id)
            participant = (
                db.query(ContestParticipant)
                .filter(
                    ContestParticipant.contest_id == submission.contest_id,
                    ContestParticipant.player_id == submission.player_id,
                )
                .with_for_update()
                .first()
            )

            if participant is None:
                result.outcome = AwardOutcome.SKIPPED_NO_PARTICIPANT
            elif contest is None or contest.status != ContestStatus.LIVE.value:
                result.outcome = AwardOutcome.SKIPPED_CONTEST_NOT_LIVE
            elif self.engine.ledger.has_entry(
                db, solve_key(submission.contest_id, submission.problem_id, submission.player_id)
            ):
                result.outcome = AwardOutcome.SKIPPED_ALREADY_CREDITED
            else:
                problem = db.get(Problem, submission.problem_id)
                ranks_before = self.leaderboard.current_ranks(db, submission.contest_id)

                result.solve = self.engine.apply_solve(
                    db, participant, problem, submission.wrong_attempts, now
                )
                submission.points_earned = problem.points
                result.points_earned = problem.points
                db.flush()

                result.events.append(ProblemSolved(
                    player_id=submission.player_id,
                    problem_id=problem.id,
                    contest_id=submission.contest_id,
                    points=problem.points,
                ))
                result.events.extend(level_change_events(result.solve.level_change))
                if settings.RANK_CHANGE_EVENTS:
                    ranks_after = self.leaderboard.current_ranks(db, submission.contest_id)
                    result.events.extend(
                        rank_change_events(submission.contest_id, ranks_before, ranks_after)
                    )

            db.commit()
        except IntegrityError:
            # Another process credited the same triple first.
            db.rollback()
            return self._record_duplicate_credit(db, submission_id, runtime_ms, memory_mb, now)
        except Exception:
            db.rollback()
            raise

        if result.skipped:
            logger.info(f"Submission {submission_id} accepted, {result.outcome.value}")
        else:
            logger.info(
                f"Submission {submission_id} accepted and credited: +{result.points_earned} points"
            )
        return result

    def _record_duplicate_credit(
        self, db: Session, submission_id: int, runtime_ms, memory_mb, now: datetime
    ) -> AwardResult:
        try:
            submission = self._load_pending(db, submission_id)
            self._stamp(submission, Verdict.ACCEPTED, runtime_ms, memory_mb, now)
            db.commit()
        except Exception:
            db.rollback()
            raise
        logger.info(f"Submission {submission_id} accepted, credit already recorded elsewhere")
        return AwardResult(submission_id, Verdict.ACCEPTED, AwardOutcome.SKIPPED_ALREADY_CREDITED)


# Singleton instance
award_rules = AwardRules()
