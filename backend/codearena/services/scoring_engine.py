"""Scoring engine - contest participant scores and weighted final rating"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional
import logging

from sqlalchemy.orm import Session

from codearena.core.scoring_config import ScoringConfig, get_scoring_config
from codearena.models.contest import ContestParticipant
from codearena.models.player import Player
from codearena.models.problem import Problem
from codearena.schemas.enums import Difficulty, XpSource
from codearena.services.xp_ledger import (
    LevelChange,
    XpLedgerService,
    compute_final_xp,
    solve_key,
    xp_ledger as default_xp_ledger,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ParticipantScore:
    """Score fields of a participant before a solve."""
    raw_score: int = 0
    penalty_mins: int = 0
    xp_earned: int = 0

    @classmethod
    def of(cls, participant: ContestParticipant) -> "ParticipantScore":
        return cls(
            raw_score=participant.raw_score or 0,
            penalty_mins=participant.penalty_mins or 0,
            xp_earned=participant.xp_earned or 0,
        )


@dataclass(frozen=True)
class SolveScore:
    """Participant score fields after one credited solve."""
    raw_score: int
    penalty_mins: int
    accuracy_score: int
    solve_xp: int
    base_xp: int
    multiplier: float
    xp_score: float
    xp_earned: int
    final_rating: float


@dataclass(frozen=True)
class SolveResult:
    score: SolveScore
    level_change: Optional[LevelChange]


class ScoringEngine:
    """Applies credited solves to contest participants."""

    def __init__(
        self,
        config: Optional[ScoringConfig] = None,
        ledger: Optional[XpLedgerService] = None,
    ) -> None:
        self.config = config or get_scoring_config()
        self.ledger = ledger or default_xp_ledger

    def final_rating(self, mode: str, raw_score: float, accuracy_score: float, xp_score: float) -> float:
        """Weighted sum of the three score components for the participant's mode."""
        profile = self.config.mode_profile(mode)
        return (
            profile.accuracy * accuracy_score
            + profile.raw * raw_score
            + profile.xp * xp_score
        )

    def compute_solve(
        self,
        before: ParticipantScore,
        mode: str,
        difficulty: str,
        points: int,
        wrong_attempts: int,
    ) -> SolveScore:
        """
        Pure score arithmetic for one credited solve.

        xp_score is (xp earned before + this solve's xp) / 2, not a mean
        over all solves.
        """
        profile = self.config.mode_profile(mode)
        difficulty = Difficulty.normalize(difficulty)

        raw_score = before.raw_score + points
        penalty_mins = before.penalty_mins + wrong_attempts * self.config.penalty_per_wrong_mins
        accuracy_score = raw_score - penalty_mins * self.config.accuracy_penalty_factor

        base_xp = self.config.base_xp[difficulty]
        solve_xp = compute_final_xp(base_xp, profile.multiplier)
        xp_score = (before.xp_earned + solve_xp) / 2

        return SolveScore(
            raw_score=raw_score,
            penalty_mins=penalty_mins,
            accuracy_score=accuracy_score,
            solve_xp=solve_xp,
            base_xp=base_xp,
            multiplier=profile.multiplier,
            xp_score=xp_score,
            xp_earned=before.xp_earned + solve_xp,
            final_rating=self.final_rating(mode, raw_score, accuracy_score, xp_score),
        )

    def apply_solve(
        self,
        db: Session,
        participant: Optional[ContestParticipant],
        problem: Problem,
        wrong_attempts: int,
        now: Optional[datetime] = None,
    ) -> Optional[SolveResult]:
        """
        Write a credited solve onto the participant and grant its XP.

        Flushes only; the caller commits. Returns None when there is no
        participant record (nothing to score).
        """
        if participant is None:
            return None

        now = now or datetime.utcnow()
        score = self.compute_solve(
            ParticipantScore.of(participant),
            participant.mode,
            problem.difficulty,
            problem.points,
            wrong_attempts,
        )

        participant.raw_score = score.raw_score
        participant.accuracy_score = score.accuracy_score
        participant.xp_score = score.xp_score
        participant.final_rating = score.final_rating
        participant.problems_solved = (participant.problems_solved or 0) + 1
        participant.penalty_mins = score.penalty_mins
        participant.xp_earned = score.xp_earned
        participant.last_solved_at = now

        player = db.get(Player, participant.player_id)
        self.ledger.grant(
            db,
            player,
            participant.contest_id,
            XpSource.for_difficulty(problem.difficulty),
            score.base_xp,
            score.multiplier,
            problem_id=problem.id,
            idempotency_key=solve_key(participant.contest_id, problem.id, participant.player_id),
        )
        level_change = self.ledger.refresh_level(player, now)

        logger.info(
            f"Scored solve: contest={participant.contest_id} player={participant.player_id} "
            f"problem={problem.id} raw={score.raw_score} accuracy={score.accuracy_score} "
            f"xp_score={score.xp_score} rating={score.final_rating:.3f}"
        )
        return SolveResult(score=score, level_change=level_change)


# Singleton instance
scoring_engine = ScoringEngine()
