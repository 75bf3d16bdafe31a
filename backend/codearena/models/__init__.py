"""Database models"""

from codearena.models.user import User
from codearena.models.player import Player
from codearena.models.problem import Problem
from codearena.models.contest import Contest, ContestParticipant
from codearena.models.submission import Submission
from codearena.models.xp_ledger import XpLedgerEntry
from codearena.models.audit import AuditEvent

__all__ = [
    "User", "Player", "Problem", "Contest", "ContestParticipant",
    "Submission", "XpLedgerEntry", "AuditEvent",
]
