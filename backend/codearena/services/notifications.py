"""Notification dispatch to the external real-time transport."""

from __future__ import annotations

import json
import logging
import threading
from typing import Iterable, List, Optional, Protocol

from codearena.core.metrics import NOTIFICATION_FAILURES
from codearena.schemas.events import NotificationEvent, PlayerLevelUp, PlayerTierChanged
from codearena.services.xp_ledger import LevelChange

logger = logging.getLogger(__name__)


class NotificationSink(Protocol):
    """Anything that accepts engine events for broadcast."""

    def publish(self, event: NotificationEvent) -> None:
        ...


class LoggingSink:
    """Default sink: writes each event as a JSON line to the log."""

    def publish(self, event: NotificationEvent) -> None:
        logger.info(f"event {json.dumps(event.payload(), sort_keys=True)}")


class InMemorySink:
    """Collects events; used by in-process consumers and tests."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self.events: List[NotificationEvent] = []

    def publish(self, event: NotificationEvent) -> None:
        with self._lock:
            self.events.append(event)

    def of_type(self, event_type) -> List[NotificationEvent]:
        with self._lock:
            return [e for e in self.events if e.type == event_type]

    def clear(self) -> None:
        with self._lock:
            self.events.clear()


class NotificationDispatcher:
    """
    Hands events to the configured sink after the scoring transaction commits.

    Sink failures are logged and counted, never raised and never retried.
    """

    def __init__(self, sink: Optional[NotificationSink] = None) -> None:
        self._sink: NotificationSink = sink or LoggingSink()

    @property
    def sink(self) -> NotificationSink:
        return self._sink

    def configure(self, sink: NotificationSink) -> None:
        self._sink = sink

    def dispatch(self, events: Iterable[NotificationEvent]) -> int:
        """
        Publish events in order.

        Returns:
            Number of events the sink accepted
        """
        delivered = 0
        for event in events:
            try:
                self._sink.publish(event)
                delivered += 1
            except Exception:
                NOTIFICATION_FAILURES.labels(event.type.value).inc()
                logger.exception(f"Notification sink rejected {event.type.value} event")
        return delivered


def level_change_events(change: Optional[LevelChange]) -> List[NotificationEvent]:
    """Events describing a level refresh; empty when nothing changed upward."""
    if change is None:
        return []
    events: List[NotificationEvent] = []
    if change.leveled_up:
        events.append(PlayerLevelUp(
            player_id=change.player_id,
            old_level=change.old_level,
            new_level=change.new_level,
            tier=change.new_tier,
            sub_rank=change.sub_rank,
        ))
    if change.tier_changed:
        events.append(PlayerTierChanged(
            player_id=change.player_id,
            old_tier=change.old_tier,
            new_tier=change.new_tier,
        ))
    return events


notification_dispatcher = NotificationDispatcher()
