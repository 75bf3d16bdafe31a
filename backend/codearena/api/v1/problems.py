"""Problem bank routes"""

from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.orm import Session
from typing import Optional

from codearena.core.database import get_db
from codearena.schemas.problem import ProblemCreate, ProblemListResponse, ProblemResponse
from codearena.api.deps import get_current_organizer
from codearena.models.user import User
from codearena.services.problem_service import problem_service

router = APIRouter()


@router.get("", response_model=ProblemListResponse)
def list_problems(
    difficulty: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_organizer),
    db: Session = Depends(get_db)
):
    problems, total = problem_service.list_problems(db, difficulty=difficulty, page=page, limit=limit)
    return ProblemListResponse(
        page=page,
        limit=limit,
        total=total,
        difficulty=difficulty.upper() if difficulty else None,
        problems=[ProblemResponse.model_validate(p) for p in problems],
    )


@router.get("/{problem_id}", response_model=ProblemResponse)
def get_problem(
    problem_id: int,
    current_user: User = Depends(get_current_organizer),
    db: Session = Depends(get_db)
):
    return ProblemResponse.model_validate(problem_service.get_problem(db, problem_id))


@router.post("", response_model=ProblemResponse, status_code=status.HTTP_201_CREATED)
def create_problem(
    data: ProblemCreate,
    current_user: User = Depends(get_current_organizer),
    db: Session = Depends(get_db)
):
    """
    Add a problem to the bank (organizers; used to seed contests)
    """
    return ProblemResponse.model_validate(problem_service.create_problem(db, data))
