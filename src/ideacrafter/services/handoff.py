from __future__ import annotations

"""Short-lived handoff of a conversation snapshot between views.

A snapshot put under a key is returned by the first ``take`` and then cleared;
expired snapshots are dropped.
"""

from dataclasses import dataclass
from threading import RLock
from typing import Callable, Dict, Optional
import time

from ..domain.chat_models import Conversation


DEFAULT_TTL_SECONDS = 300.0


@dataclass
class _Entry:
    conversation: Conversation
    expires_at: float


class HandoffChannel:
    def __init__(self, ttl_seconds: float = DEFAULT_TTL_SECONDS, clock: Callable[[], float] = time.monotonic) -> None:
        self._ttl = ttl_seconds
        self._clock = clock
        self._entries: Dict[str, _Entry] = {}
        self._lock = RLock()

    def _drop_expired(self, now: float) -> None:
        for key in [k for k, e in self._entries.items() if e.expires_at < now]:
            del self._entries[key]

    def put(self, key: str, conversation: Conversation) -> None:
        with self._lock:
            self._drop_expired(self._clock())
            snapshot = conversation.model_copy(deep=True)
            self._entries[key] = _Entry(snapshot, self._clock() + self._ttl)

    def take(self, key: str) -> Optional[Conversation]:
        with self._lock:
            self._drop_expired(self._clock())
            entry = self._entries.pop(key, None)
        return entry.conversation if entry else None

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()
