"""In-process keyed mutual exclusion."""

from __future__ import annotations

import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from typing import Dict, Hashable, Iterator


@dataclass
class _Slot:
    lock: threading.Lock = field(default_factory=threading.Lock)
    holders: int = 0


class KeyedLock:
    """
    One lock per key, created on demand and dropped when no thread holds
    or waits for it. Serializes work within a single process; database row
    locks and unique keys cover multi-process deployments.
    """

    def __init__(self) -> None:
        self._guard = threading.Lock()
        self._slots: Dict[Hashable, _Slot] = {}

    @contextmanager
    def hold(self, key: Hashable) -> Iterator[None]:
        with self._guard:
            slot = self._slots.setdefault(key, _Slot())
            slot.holders += 1
        slot.lock.acquire()
        try:
            yield
        finally:
            slot.lock.release()
            with self._guard:
                slot.holders -= 1
                if slot.holders == 0:
                    self._slots.pop(key, None)

    def active_keys(self) -> int:
        with self._guard:
            return len(self._slots)


participant_locks = KeyedLock()
