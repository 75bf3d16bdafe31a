"""Contest routes - organizer management, joins and contest leaderboards"""

from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.orm import Session
from typing import List, Optional

from codearena.core.database import get_db
from codearena.schemas.contest import (
    ContestCreate,
    ContestJoin,
    ContestListResponse,
    ContestResponse,
    ContestStatusUpdate,
    ContestUpdate,
    ParticipantResponse,
    StatusChangeResponse,
)
from codearena.schemas.enums import ContestStatus, ScoringMode, UserRole
from codearena.schemas.leaderboard import ContestLeaderboardResponse
from codearena.schemas.problem import ProblemResponse
from codearena.api.deps import get_current_organizer, get_current_player, get_current_user
from codearena.models.contest import Contest
from codearena.models.player import Player
from codearena.models.user import User
from codearena.services.contest_lifecycle import contest_lifecycle
from codearena.services.contest_service import contest_service
from codearena.services.leaderboard import leaderboard_service

router = APIRouter()


def _contest_response(contest: Contest, user: Optional[User] = None) -> ContestResponse:
    show_code = user is not None and contest_service.can_see_invite_code(contest, user)
    return ContestResponse(**contest.to_dict(include_invite_code=show_code))


@router.get("", response_model=ContestListResponse)
def list_contests(
    status_filter: Optional[ContestStatus] = Query(None, alias="status"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    List contests; drafts are visible to organizers only
    """
    include_drafts = current_user.role in (UserRole.ORGANIZER.value, UserRole.ADMIN.value)
    contests, total = contest_service.list_contests(
        db, status=status_filter, page=page, limit=limit, include_drafts=include_drafts
    )
    return ContestListResponse(
        page=page,
        limit=limit,
        total=total,
        contests=[_contest_response(c, current_user) for c in contests],
    )


@router.get("/{contest_id}", response_model=ContestResponse)
def get_contest(
    contest_id: int,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    return _contest_response(contest_service.get_contest(db, contest_id), current_user)


@router.post("", response_model=ContestResponse, status_code=status.HTTP_201_CREATED)
def create_contest(
    data: ContestCreate,
    current_user: User = Depends(get_current_organizer),
    db: Session = Depends(get_db)
):
    """
    Create a contest in DRAFT

    Args:
        data: Contest fields
        current_user: Current organizer
        db: Database session

    Returns:
        Created contest, with invite code for private contests
    """
    contest = contest_service.create_contest(db, current_user, data)
    return _contest_response(contest, current_user)


@router.patch("/{contest_id}", response_model=ContestResponse)
def update_contest(
    contest_id: int,
    data: ContestUpdate,
    current_user: User = Depends(get_current_organizer),
    db: Session = Depends(get_db)
):
    contest = contest_service.update_contest(db, current_user, contest_id, data)
    return _contest_response(contest, current_user)


@router.post("/{contest_id}/status", response_model=StatusChangeResponse)
def change_contest_status(
    contest_id: int,
    data: ContestStatusUpdate,
    request: Request,
    current_user: User = Depends(get_current_organizer),
    db: Session = Depends(get_db)
):
    """
    Move a contest through its lifecycle; entering ENDED finalizes ranks
    """
    result = contest_lifecycle.change_status(
        db,
        contest_id,
        data.status,
        actor_id=current_user.id,
        ip_address=request.client.host if request.client else None,
    )
    finalization = result.finalization
    return StatusChangeResponse(
        contest_id=contest_id,
        old_status=result.old_status,
        new_status=result.new_status,
        changed=result.changed,
        finalized=finalization is not None,
        winner_ids=finalization.winner_ids if finalization else None,
    )


@router.post("/{contest_id}/join", response_model=ParticipantResponse, status_code=status.HTTP_201_CREATED)
def join_contest(
    contest_id: int,
    data: Optional[ContestJoin] = None,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db)
):
    """
    Join a contest in the chosen scoring mode (defaults to the player's preferred mode)
    """
    data = data or ContestJoin()
    participant = contest_lifecycle.join(
        db, contest_id, player, mode=data.mode, invite_code=data.invite_code
    )
    return ParticipantResponse.model_validate(participant)


@router.get("/{contest_id}/problems", response_model=List[ProblemResponse])
def get_contest_problems(
    contest_id: int,
    player: Player = Depends(get_current_player),
    db: Session = Depends(get_db)
):
    problems = contest_service.get_problems(db, contest_id, player.id)
    return [ProblemResponse.model_validate(p) for p in problems]


@router.get("/{contest_id}/leaderboard", response_model=ContestLeaderboardResponse)
def get_contest_leaderboard(
    contest_id: int,
    page: int = Query(1, ge=1),
    limit: Optional[int] = Query(None, ge=1),
    mode: Optional[ScoringMode] = None,
    current_user: User = Depends(get_current_user),
    db: Session = Depends(get_db)
):
    """
    Contest standings; rank is global across pages
    """
    return leaderboard_service.contest_leaderboard(db, contest_id, page=page, limit=limit, mode=mode)
