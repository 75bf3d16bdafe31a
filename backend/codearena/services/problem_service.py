"""Problem service - minimal problem bank used to seed contests"""

from sqlalchemy.orm import Session
from typing import List, Optional, Tuple

from codearena.models.problem import Problem
from codearena.schemas.enums import Difficulty
from codearena.schemas.problem import ProblemCreate
from codearena.core.exceptions import ResourceNotFoundError, ValidationError
import logging

logger = logging.getLogger(__name__)


class ProblemService:
    """Service for the problem bank"""

    @staticmethod
    def create_problem(db: Session, data: ProblemCreate) -> Problem:
        problem = Problem(
            title=data.title,
            difficulty=data.difficulty.value,
            points=data.points,
            tags=list(data.tags),
        )
        db.add(problem)
        db.commit()
        db.refresh(problem)
        logger.info(f"Created problem {problem.id}: {problem.title} ({problem.difficulty})")
        return problem

    @staticmethod
    def get_problem(db: Session, problem_id: int) -> Problem:
        problem = db.query(Problem).filter(Problem.id == problem_id).first()
        if not problem:
            raise ResourceNotFoundError("Problem")
        return problem

    @staticmethod
    def list_problems(
        db: Session,
        difficulty: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> Tuple[List[Problem], int]:
        if page < 1 or limit < 1 or limit > 100:
            raise ValidationError("page must be >= 1 and limit between 1 and 100")
        query = db.query(Problem)
        if difficulty:
            try:
                query = query.filter(Problem.difficulty == Difficulty.normalize(difficulty).value)
            except ValueError:
                raise ValidationError(f"Unknown difficulty: {difficulty}")
        total = query.count()
        problems = query.order_by(Problem.id.asc()).offset((page - 1) * limit).limit(limit).all()
        return problems, total


problem_service = ProblemService()
