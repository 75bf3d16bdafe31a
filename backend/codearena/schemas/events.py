"""Notification event payloads emitted by the scoring engine"""

from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class EventType(str, Enum):
    PLAYER_LEVEL_UP = "PLAYER_LEVEL_UP"
    PLAYER_TIER_CHANGED = "PLAYER_TIER_CHANGED"
    PLAYER_RANK_CHANGED = "PLAYER_RANK_CHANGED"
    PROBLEM_SOLVED = "PROBLEM_SOLVED"
    CONTEST_STATUS_CHANGED = "CONTEST_STATUS_CHANGED"
    PLAYER_JOINED_CONTEST = "PLAYER_JOINED_CONTEST"


class NotificationEvent(BaseModel):
    """Base payload; serialized with camelCase keys for the push transport"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, frozen=True)

    type: EventType
    timestamp: datetime = Field(default_factory=datetime.utcnow)

    def payload(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class PlayerLevelUp(NotificationEvent):
    type: EventType = EventType.PLAYER_LEVEL_UP
    player_id: int
    old_level: int
    new_level: int
    tier: str
    sub_rank: str


class PlayerTierChanged(NotificationEvent):
    type: EventType = EventType.PLAYER_TIER_CHANGED
    player_id: int
    old_tier: str
    new_tier: str


class PlayerRankChanged(NotificationEvent):
    type: EventType = EventType.PLAYER_RANK_CHANGED
    player_id: int
    contest_id: int
    old_rank: Optional[int] = None
    new_rank: int


class ProblemSolved(NotificationEvent):
    type: EventType = EventType.PROBLEM_SOLVED
    player_id: int
    problem_id: int
    contest_id: Optional[int] = None
    points: int


class ContestStatusChanged(NotificationEvent):
    type: EventType = EventType.CONTEST_STATUS_CHANGED
    contest_id: int
    old_status: str
    new_status: str


class PlayerJoinedContest(NotificationEvent):
    type: EventType = EventType.PLAYER_JOINED_CONTEST
    player_id: int
    contest_id: int
