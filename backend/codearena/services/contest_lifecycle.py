"""Contest lifecycle - status transitions, joins and end-of-contest finalization"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
from typing import Dict, List, Optional
import logging

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from codearena.config import settings
from codearena.core.exceptions import (
    AlreadyJoinedError,
    ContestNotOpenError,
    InvalidInviteCodeError,
    InvalidStatusTransitionError,
    ResourceNotFoundError,
)
from codearena.core.metrics import CONTEST_FINALIZATIONS
from codearena.core.scoring_config import ScoringConfig, get_scoring_config
from codearena.models.contest import Contest, ContestParticipant
from codearena.models.player import Player
from codearena.schemas.enums import ContestStatus, ScoringMode, XpSource
from codearena.schemas.events import (
    ContestStatusChanged,
    NotificationEvent,
    PlayerJoinedContest,
)
from codearena.services.audit_service import audit_service
from codearena.services.leaderboard import (
    LeaderboardService,
    leaderboard_service as default_leaderboard,
    rank_change_events,
)
from codearena.services.notifications import (
    NotificationDispatcher,
    level_change_events,
    notification_dispatcher as default_dispatcher,
)
from codearena.services.xp_ledger import (
    XpLedgerService,
    join_key,
    rank_bonus_key,
    xp_ledger as default_xp_ledger,
)

logger = logging.getLogger(__name__)

STATUS_ORDER: Dict[ContestStatus, int] = {
    ContestStatus.DRAFT: 0,
    ContestStatus.UPCOMING: 1,
    ContestStatus.LIVE: 2,
    ContestStatus.ENDED: 3,
    ContestStatus.CANCELLED: 3,
}
TERMINAL_STATUSES = frozenset({ContestStatus.ENDED, ContestStatus.CANCELLED})
JOINABLE_STATUSES = frozenset({ContestStatus.UPCOMING, ContestStatus.LIVE})


def _parse_status(value) -> Optional[ContestStatus]:
    if isinstance(value, ContestStatus):
        return value
    try:
        return ContestStatus(str(value).strip().upper())
    except ValueError:
        return None


def is_legal_transition(current: ContestStatus, requested: ContestStatus) -> bool:
    """
    Forward moves only. CANCELLED is reachable from any non-terminal status;
    nothing leaves a terminal status except ENDED -> ENDED (re-finalize).
    """
    if current == requested:
        return True
    if current in TERMINAL_STATUSES:
        return False
    if requested == ContestStatus.CANCELLED:
        return True
    return STATUS_ORDER[requested] > STATUS_ORDER[current]


@dataclass
class FinalizationResult:
    contest_id: int
    ranks: Dict[int, int] = field(default_factory=dict)
    bonuses: Dict[int, int] = field(default_factory=dict)
    winner_ids: List[int] = field(default_factory=list)
    first_run: bool = True


@dataclass
class StatusChangeResult:
    contest: Contest
    old_status: str
    new_status: str
    changed: bool
    finalization: Optional[FinalizationResult] = None
    events: List[NotificationEvent] = field(default_factory=list)


class ContestLifecycleService:
    """Owns Contest.status and the participant set."""

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        ledger: Optional[XpLedgerService] = None,
        leaderboard: Optional[LeaderboardService] = None,
        dispatcher: Optional[NotificationDispatcher] = None,
    ) -> None:
        self.config = config or get_scoring_config()
        self.ledger = ledger or default_xp_ledger
        self.leaderboard = leaderboard or default_leaderboard
        self.dispatcher = dispatcher or default_dispatcher

    @staticmethod
    def _get_contest(db: Session, contest_id: int, lock: bool = False) -> Contest:
        query = db.query(Contest).filter(Contest.id == contest_id)
        if lock:
            query = query.with_for_update()
        contest = query.first()
        if not contest:
            raise ResourceNotFoundError("Contest")
        return contest

    def change_status(
        self,
        db: Session,
        contest_id: int,
        requested,
        actor_id: Optional[int] = None,
        ip_address: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> StatusChangeResult:
        """
        Move a contest to a new status.

        Entering ENDED finalizes ranks; requesting ENDED again re-runs the
        (idempotent) finalization. Any other same-status request is a no-op.

        Raises:
            ResourceNotFoundError: Unknown contest
            InvalidStatusTransitionError: Unknown status or backward move
        """
        now = now or datetime.utcnow()
        try:
            contest = self._get_contest(db, contest_id, lock=True)
            current = ContestStatus(contest.status)
            target = _parse_status(requested)
            if target is None or not is_legal_transition(current, target):
                raise InvalidStatusTransitionError(current.value, str(getattr(requested, "value", requested)))

            result = StatusChangeResult(
                contest=contest,
                old_status=current.value,
                new_status=target.value,
                changed=current != target,
            )

            if not result.changed and target != ContestStatus.ENDED:
                db.rollback()
                logger.info(f"Contest {contest_id} already {current.value}; nothing to do")
                return result

            if result.changed:
                contest.status = target.value
                result.events.append(ContestStatusChanged(
                    contest_id=contest.id,
                    old_status=current.value,
                    new_status=target.value,
                ))

            if target == ContestStatus.ENDED:
                result.finalization, finalize_events = self._finalize(db, contest, now)
                result.events.extend(finalize_events)

            audit_service.log_event(
                db,
                user_id=actor_id,
                action="contest.status" if result.changed else "contest.refinalize",
                target_type="contest",
                target_id=contest.id,
                ip_address=ip_address,
                metadata={"from": current.value, "to": target.value},
                commit=False,
            )
            db.commit()
            db.refresh(contest)
        except Exception:
            db.rollback()
            raise

        logger.info(f"Contest {contest_id} status {result.old_status} -> {result.new_status}")
        self.dispatcher.dispatch(result.events)
        return result

    def finalize(self, db: Session, contest_id: int, now: Optional[datetime] = None) -> FinalizationResult:
        """Finalize an ENDED contest on its own transaction."""
        try:
            contest = self._get_contest(db, contest_id, lock=True)
            if contest.status != ContestStatus.ENDED.value:
                raise InvalidStatusTransitionError(contest.status, "finalize")
            result, events = self._finalize(db, contest, now or datetime.utcnow())
            db.commit()
        except Exception:
            db.rollback()
            raise
        self.dispatcher.dispatch(events)
        return result

    def _finalize(self, db: Session, contest: Contest, now: datetime):
        """
        Assign final ranks, rank bonuses, winners and player win stats.

        Every write is repeat-safe: ranks are a pure function of stored
        scores, bonuses are keyed in the ledger, win stats only move on the
        first run (finalized_at not yet set). Unfreezing the leaderboard
        does not reopen them.
        """
        first_run = contest.finalized_at is None
        standings = self.leaderboard.standings(db, contest.id)
        result = FinalizationResult(contest_id=contest.id, first_run=first_run)
        events: List[NotificationEvent] = []
        bonus_table = self.config.rank_bonus

        for position, participant in enumerate(standings, 1):
            participant.final_rank = position
            result.ranks[participant.player_id] = position

            player = db.get(Player, participant.player_id)
            if position <= len(bonus_table):
                key = rank_bonus_key(contest.id, participant.player_id)
                if not self.ledger.has_entry(db, key):
                    result.bonuses[participant.player_id] = self.ledger.grant(
                        db,
                        player,
                        contest.id,
                        XpSource.RANK_BONUS,
                        bonus_table[position - 1],
                        idempotency_key=key,
                    )
                    events.extend(level_change_events(self.ledger.refresh_level(player, now)))

            if first_run:
                self._record_outcome(player, won=position == 1)

        result.winner_ids = [p.id for p in standings[: self.config.winners_count]]
        contest.winner_ids = result.winner_ids
        contest.leaderboard_frozen = True
        if first_run:
            contest.finalized_at = now
        db.flush()

        CONTEST_FINALIZATIONS.inc()
        logger.info(
            f"Finalized contest {contest.id}: {len(standings)} ranked, "
            f"bonuses={result.bonuses}, winners={result.winner_ids}, first_run={first_run}"
        )
        return result, events

    @staticmethod
    def _record_outcome(player: Player, won: bool) -> None:
        if won:
            player.total_wins = (player.total_wins or 0) + 1
            player.win_streak = (player.win_streak or 0) + 1
            player.best_win_streak = max(player.best_win_streak or 0, player.win_streak)
        else:
            player.win_streak = 0

    @staticmethod
    def _advance_streak(player: Player, now: datetime) -> None:
        """Consecutive calendar days with a contest join."""
        last = player.last_contest_at
        if last is None:
            player.streak_days = 1
            return
        gap = (now.date() - last.date()).days
        if gap == 0:
            player.streak_days = max(player.streak_days or 0, 1)
        elif gap == 1:
            player.streak_days = (player.streak_days or 0) + 1
        else:
            player.streak_days = 1

    def join(
        self,
        db: Session,
        contest_id: int,
        player: Player,
        mode: Optional[ScoringMode] = None,
        invite_code: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> ContestParticipant:
        """
        Create the participant record and apply join side effects.

        Raises:
            ResourceNotFoundError: Unknown contest
            ContestNotOpenError: Contest not UPCOMING or LIVE
            InvalidInviteCodeError: Private contest, wrong code
            AlreadyJoinedError: Participant record already exists
        """
        now = now or datetime.utcnow()
        mode = ScoringMode(mode or player.preferred_mode or ScoringMode.GRINDER)
        events: List[NotificationEvent] = []
        try:
            contest = self._get_contest(db, contest_id, lock=True)
            if ContestStatus(contest.status) not in JOINABLE_STATUSES:
                raise ContestNotOpenError(contest.status)
            if not contest.is_public and (not invite_code or invite_code != contest.invite_code):
                raise InvalidInviteCodeError()

            existing = db.query(ContestParticipant.id).filter(
                ContestParticipant.contest_id == contest_id,
                ContestParticipant.player_id == player.id,
            ).first()
            if existing:
                raise AlreadyJoinedError(contest_id)

            ranks_before = self.leaderboard.current_ranks(db, contest_id)

            participant = ContestParticipant(
                contest_id=contest_id,
                player_id=player.id,
                mode=mode.value,
                joined_at=now,
            )
            db.add(participant)
            db.flush()

            contest.participant_count = (contest.participant_count or 0) + 1
            player.total_contests = (player.total_contests or 0) + 1
            self._advance_streak(player, now)
            player.last_contest_at = now

            self.ledger.grant(
                db,
                player,
                contest_id,
                XpSource.CONTEST_JOIN,
                self.config.join_xp,
                idempotency_key=join_key(contest_id, player.id),
            )
            events.append(PlayerJoinedContest(player_id=player.id, contest_id=contest_id))
            events.extend(level_change_events(self.ledger.refresh_level(player, now)))
            if settings.RANK_CHANGE_EVENTS:
                events.extend(rank_change_events(
                    contest_id, ranks_before, self.leaderboard.current_ranks(db, contest_id)
                ))

            db.commit()
            db.refresh(participant)
        except IntegrityError:
            db.rollback()
            raise AlreadyJoinedError(contest_id)
        except Exception:
            db.rollback()
            raise

        logger.info(f"Player {player.id} joined contest {contest_id} in {mode.value} mode")
        self.dispatcher.dispatch(events)
        return participant


# Singleton instance
contest_lifecycle = ContestLifecycleService()
