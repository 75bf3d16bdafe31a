"""Submission service - records attempts and hands judge verdicts to the award rules"""

from sqlalchemy.orm import Session
from typing import List, Optional
from datetime import datetime
import secrets

from codearena.models.contest import Contest, ContestParticipant
from codearena.models.player import Player
from codearena.models.problem import Problem
from codearena.models.submission import Submission
from codearena.schemas.enums import ContestStatus
from codearena.schemas.submission import JudgeResult, SubmissionCreate
from codearena.services.award_rules import AwardResult, AwardRules, award_rules
from codearena.core.exceptions import (
    AuthorizationError,
    ContestNotLiveError,
    NotParticipantError,
    ResourceNotFoundError,
    ValidationError,
)
import logging

logger = logging.getLogger(__name__)


class SubmissionService:
    """Service for handling submissions"""

    def __init__(self, rules: Optional[AwardRules] = None) -> None:
        self.rules = rules or award_rules

    def create_submission(
        self,
        db: Session,
        player: Player,
        submission_data: SubmissionCreate,
    ) -> Submission:
        """
        Record a PENDING submission for the judge.

        Args:
            db: Database session
            player: Submitting player
            submission_data: Submission data

        Returns:
            Created submission
        """
        problem = db.query(Problem).filter(Problem.id == submission_data.problem_id).first()
        if not problem:
            raise ResourceNotFoundError("Problem")

        contest_id = submission_data.contest_id
        if contest_id is not None:
            contest = db.query(Contest).filter(Contest.id == contest_id).first()
            if not contest:
                raise ResourceNotFoundError("Contest")
            if contest.status != ContestStatus.LIVE.value:
                raise ContestNotLiveError(contest.status)
            if problem.id not in (contest.problem_ids or []):
                raise ValidationError(
                    "Problem is not part of this contest",
                    details={"contest_id": contest_id, "problem_id": problem.id},
                )
            joined = db.query(ContestParticipant.id).filter(
                ContestParticipant.contest_id == contest_id,
                ContestParticipant.player_id == player.id,
            ).first()
            if not joined:
                raise NotParticipantError(contest_id)

        wrong_attempts = self.rules.count_prior_wrong_attempts(
            db, player.id, problem.id, contest_id
        )

        submission = Submission(
            idempotency_key=secrets.token_urlsafe(32),
            player_id=player.id,
            problem_id=problem.id,
            contest_id=contest_id,
            language=submission_data.language.value,
            code=submission_data.code,
            wrong_attempts=wrong_attempts,
            submitted_at=datetime.utcnow(),
        )
        db.add(submission)
        db.commit()
        db.refresh(submission)

        logger.info(
            f"Submission {submission.id} queued: player={player.id} problem={problem.id} "
            f"contest={contest_id} prior_wrong={wrong_attempts}"
        )
        return submission

    def apply_verdict(self, db: Session, submission_id: int, result: JudgeResult) -> AwardResult:
        """Record the judge's verdict; scoring happens inside the award rules"""
        return self.rules.process_judge_result(
            db,
            submission_id,
            result.verdict,
            runtime_ms=result.runtime_ms,
            memory_mb=result.memory_mb,
        )

    @staticmethod
    def get_submission(db: Session, submission_id: int, player: Optional[Player] = None) -> Submission:
        """
        Fetch one submission; with a player given, only that player's own.
        """
        submission = db.query(Submission).filter(Submission.id == submission_id).first()
        if not submission:
            raise ResourceNotFoundError("Submission")
        if player is not None and submission.player_id != player.id:
            raise AuthorizationError("Not your submission")
        return submission

    @staticmethod
    def get_player_submissions(
        db: Session,
        player_id: int,
        contest_id: Optional[int] = None,
        problem_id: Optional[int] = None,
        page: int = 1,
        limit: int = 20,
    ) -> List[Submission]:
        """Player's submissions, newest first"""
        query = db.query(Submission).filter(Submission.player_id == player_id)
        if contest_id is not None:
            query = query.filter(Submission.contest_id == contest_id)
        if problem_id is not None:
            query = query.filter(Submission.problem_id == problem_id)
        return (
            query.order_by(Submission.submitted_at.desc(), Submission.id.desc())
            .offset((max(page, 1) - 1) * limit)
            .limit(limit)
            .all()
        )


# Singleton instance
submission_service = SubmissionService()
