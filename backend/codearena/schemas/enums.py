"""Enumerations shared by models, schemas and services"""

from enum import Enum


class UserRole(str, Enum):
    """User role enumeration"""
    ADMIN = "admin"
    ORGANIZER = "organizer"
    PLAYER = "player"


class ScoringMode(str, Enum):
    """Scoring profile a participant picks when joining a contest"""
    PRECISION = "PRECISION"
    GRINDER = "GRINDER"
    LEGEND = "LEGEND"


class Tier(str, Enum):
    """Coarse player rank bands, lowest first"""
    BRONZE = "BRONZE"
    SILVER = "SILVER"
    GOLD = "GOLD"
    PLATINUM = "PLATINUM"
    DIAMOND = "DIAMOND"
    MASTER = "MASTER"


class ContestStatus(str, Enum):
    """Contest lifecycle states"""
    DRAFT = "DRAFT"
    UPCOMING = "UPCOMING"
    LIVE = "LIVE"
    ENDED = "ENDED"
    CANCELLED = "CANCELLED"


class Verdict(str, Enum):
    """Judge verdicts"""
    PENDING = "PENDING"
    ACCEPTED = "ACCEPTED"
    WRONG_ANSWER = "WRONG_ANSWER"
    TIME_LIMIT_EXCEEDED = "TIME_LIMIT_EXCEEDED"
    RUNTIME_ERROR = "RUNTIME_ERROR"
    COMPILATION_ERROR = "COMPILATION_ERROR"
    MEMORY_LIMIT_EXCEEDED = "MEMORY_LIMIT_EXCEEDED"


class Difficulty(str, Enum):
    """Problem difficulty"""
    EASY = "EASY"
    MEDIUM = "MEDIUM"
    HARD = "HARD"

    @classmethod
    def normalize(cls, value: str) -> "Difficulty":
        """Accept any casing or surrounding whitespace."""
        if isinstance(value, cls):
            return value
        return cls(str(value).strip().upper())


class XpSource(str, Enum):
    """Reasons recorded on XP ledger entries"""
    CONTEST_JOIN = "CONTEST_JOIN"
    SOLVE_EASY = "SOLVE_EASY"
    SOLVE_MEDIUM = "SOLVE_MEDIUM"
    SOLVE_HARD = "SOLVE_HARD"
    RANK_BONUS = "RANK_BONUS"

    @classmethod
    def for_difficulty(cls, difficulty: Difficulty) -> "XpSource":
        return cls(f"SOLVE_{Difficulty(difficulty).value}")


def sql_in(values) -> str:
    """Render enum values for a CHECK constraint IN (...) list."""
    return ", ".join(f"'{v.value}'" for v in values)
