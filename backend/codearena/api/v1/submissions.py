"""Submission routes - player submissions and judge verdict callbacks"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from codearena.core.database import get_db
from codearena.schemas.submission import (
    JudgeResult,
    SubmissionCreate,
    SubmissionListResponse,
    SubmissionResponse,
    VerdictResponse,
)
from codearena.api.deps import get_current_player, require_judge
from codearena.models.player import Player
from codearena.services.submission_service import submission_service

router = APIRouter()


@router.post("", response_model=SubmissionResponse, status_code=status.HTTP_201_CREATED)
def create_submission(
    submission: SubmissionCreate,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db)
):
    """
    Record a submission for judging

    Args:
        submission: Submission data
        player: Current player
        db: Database session

    Returns:
        The PENDING submission
    """
    created = submission_service.create_submission(db, player, submission)
    return SubmissionResponse.model_validate(created)


@router.post("/{submission_id}/verdict", response_model=VerdictResponse)
def submit_verdict(
    submission_id: int,
    result: JudgeResult,
    _: None = Depends(require_judge),
    db: Session = Depends(get_db)
):
    """
    Judge callback: records the verdict and applies any award it earns
    """
    award = submission_service.apply_verdict(db, submission_id, result)
    score = award.solve.score if award.solve else None
    return VerdictResponse(
        submission_id=award.submission_id,
        verdict=award.verdict.value,
        outcome=award.outcome.value,
        points_earned=award.points_earned,
        xp_earned=score.solve_xp if score else 0,
        final_rating=score.final_rating if score else None,
    )


@router.get("/my", response_model=SubmissionListResponse)
def get_my_submissions(
    contest_id: Optional[int] = None,
    problem_id: Optional[int] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db)
):
    submissions = submission_service.get_player_submissions(
        db, player.id, contest_id=contest_id, problem_id=problem_id, page=page, limit=limit
    )
    return SubmissionListResponse(
        page=page,
        limit=limit,
        submissions=[SubmissionResponse.model_validate(s) for s in submissions],
    )


@router.get("/{submission_id}", response_model=SubmissionResponse)
def get_submission(
    submission_id: int,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db)
):
    return SubmissionResponse.model_validate(
        submission_service.get_submission(db, submission_id, player=player)
    )
