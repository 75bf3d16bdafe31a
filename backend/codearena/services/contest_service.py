"""Contest service - organizer CRUD and participant-facing reads"""

from sqlalchemy.orm import Session
from typing import List, Optional, Tuple

from codearena.models.contest import Contest, ContestParticipant
from codearena.models.problem import Problem
from codearena.models.user import User
from codearena.schemas.contest import ContestCreate, ContestUpdate
from codearena.schemas.enums import ContestStatus, UserRole
from codearena.services.audit_service import audit_service
from codearena.core.security import generate_invite_code
from codearena.core.exceptions import (
    AuthorizationError,
    BusinessLogicError,
    NotParticipantError,
    ResourceNotFoundError,
    ValidationError,
)
import logging

logger = logging.getLogger(__name__)

# Fields frozen once the contest has left DRAFT.
LOCKED_AFTER_DRAFT = {"problem_ids", "start_time", "end_time", "duration_mins"}


class ContestService:
    """Service for contest management"""

    @staticmethod
    def _check_problems(db: Session, problem_ids: List[int]) -> None:
        if not problem_ids:
            return
        found = {pid for (pid,) in db.query(Problem.id).filter(Problem.id.in_(problem_ids)).all()}
        missing = sorted(set(problem_ids) - found)
        if missing:
            raise ValidationError("Unknown problems", details={"problem_ids": missing})

    @staticmethod
    def get_contest(db: Session, contest_id: int) -> Contest:
        contest = db.query(Contest).filter(Contest.id == contest_id).first()
        if not contest:
            raise ResourceNotFoundError("Contest")
        return contest

    @staticmethod
    def list_contests(
        db: Session,
        status: Optional[ContestStatus] = None,
        page: int = 1,
        limit: int = 20,
        include_drafts: bool = False,
    ) -> Tuple[List[Contest], int]:
        """
        Contests by start time, newest first.

        Drafts are only listed for organizers.
        """
        if page < 1 or limit < 1 or limit > 100:
            raise ValidationError("page must be >= 1 and limit between 1 and 100")
        if status == ContestStatus.DRAFT and not include_drafts:
            raise AuthorizationError("Only organizers can list draft contests")

        query = db.query(Contest)
        if status is not None:
            query = query.filter(Contest.status == ContestStatus(status).value)
        elif not include_drafts:
            query = query.filter(Contest.status != ContestStatus.DRAFT.value)

        total = query.count()
        contests = (
            query.order_by(Contest.start_time.desc(), Contest.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
            .all()
        )
        return contests, total

    def create_contest(self, db: Session, organizer: User, data: ContestCreate) -> Contest:
        """Create a DRAFT contest; private contests get an invite code"""
        self._check_problems(db, data.problem_ids)

        contest = Contest(
            title=data.title,
            description=data.description,
            problem_ids=list(data.problem_ids),
            start_time=data.start_time,
            end_time=data.end_time,
            duration_mins=data.duration_mins,
            is_public=data.is_public,
            invite_code=None if data.is_public else generate_invite_code(),
            status=ContestStatus.DRAFT.value,
            created_by=organizer.id,
        )
        db.add(contest)
        db.flush()
        audit_service.log_event(
            db,
            user_id=organizer.id,
            action="contest.create",
            target_type="contest",
            target_id=contest.id,
            metadata={"title": contest.title, "is_public": contest.is_public},
            commit=False,
        )
        db.commit()
        db.refresh(contest)

        logger.info(f"Contest {contest.id} created by {organizer.username}")
        return contest

    def update_contest(self, db: Session, organizer: User, contest_id: int, data: ContestUpdate) -> Contest:
        """
        Apply organizer edits.

        Status is not editable here; see the lifecycle service. Terminal
        contests are read-only apart from leaderboard_frozen.
        """
        contest = self.get_contest(db, contest_id)
        changes = data.model_dump(exclude_unset=True)
        if not changes:
            return contest

        status = ContestStatus(contest.status)
        if status in (ContestStatus.ENDED, ContestStatus.CANCELLED) and set(changes) - {"leaderboard_frozen"}:
            raise BusinessLogicError(
                "Contest is closed; only leaderboard_frozen can change",
                details={"status": status.value},
            )
        if status != ContestStatus.DRAFT and set(changes) & LOCKED_AFTER_DRAFT:
            raise BusinessLogicError(
                "Schedule and problem set are locked once the contest is published",
                details={"fields": sorted(set(changes) & LOCKED_AFTER_DRAFT)},
            )
        if "problem_ids" in changes:
            self._check_problems(db, changes["problem_ids"] or [])

        start = changes.get("start_time", contest.start_time)
        end = changes.get("end_time", contest.end_time)
        if start and end and end <= start:
            raise ValidationError("end_time must be after start_time")

        if changes.get("is_public") is False and not contest.invite_code:
            contest.invite_code = generate_invite_code()

        for field, value in changes.items():
            setattr(contest, field, value)

        audit_service.log_event(
            db,
            user_id=organizer.id,
            action="contest.update",
            target_type="contest",
            target_id=contest.id,
            metadata=changes,
            commit=False,
        )
        db.commit()
        db.refresh(contest)

        logger.info(f"Contest {contest.id} updated by {organizer.username}: {sorted(changes)}")
        return contest

    @staticmethod
    def can_see_invite_code(contest: Contest, user: User) -> bool:
        return user.role == UserRole.ADMIN.value or contest.created_by == user.id

    def get_problems(self, db: Session, contest_id: int, player_id: int) -> List[Problem]:
        """
        Problem set for a joined player, only once the contest is LIVE or ENDED.
        """
        contest = self.get_contest(db, contest_id)
        if contest.status not in (ContestStatus.LIVE.value, ContestStatus.ENDED.value):
            raise BusinessLogicError(
                "Problems are available once the contest is live",
                status_code=403,
                details={"status": contest.status},
            )
        joined = db.query(ContestParticipant.id).filter(
            ContestParticipant.contest_id == contest_id,
            ContestParticipant.player_id == player_id,
        ).first()
        if not joined:
            raise NotParticipantError(contest_id)

        ids = list(contest.problem_ids or [])
        by_id = {p.id: p for p in db.query(Problem).filter(Problem.id.in_(ids)).all()}
        return [by_id[pid] for pid in ids if pid in by_id]


# Singleton instance
contest_service = ContestService()
