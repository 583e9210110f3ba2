"""
Small explicit caches used by the engine.

  TTLCache        — key → value store whose entries expire after a fixed TTL
  StateCache      — holds the last computed AuraState and reports freshness
  RefreshThrottle — allows at most one trigger per interval

All three take an injectable clock so tests can advance time by hand.
"""

from __future__ import annotations

import time
from typing import Callable, Dict, Generic, Hashable, Optional, Tuple, TypeVar

from .models import AuraState

V = TypeVar("V")

Clock = Callable[[], float]


class TTLCache(Generic[V]):
    """Entries older than `ttl_s` are treated as absent and evicted on access."""

    def __init__(self, ttl_s: float, clock: Clock = time.time):
        self.ttl_s = ttl_s
        self._clock = clock
        self._entries: Dict[Hashable, Tuple[V, float]] = {}

    def get(self, key: Hashable) -> Optional[V]:
        entry = self._entries.get(key)
        if entry is None:
            return None
        value, stored_at = entry
        if self._clock() - stored_at >= self.ttl_s:
            del self._entries[key]
            return None
        return value

    def set(self, key: Hashable, value: V) -> None:
        self._evict_expired()
        self._entries[key] = (value, self._clock())

    def clear(self) -> None:
        self._entries.clear()

    def __len__(self) -> int:
        self._evict_expired()
        return len(self._entries)

    def _evict_expired(self) -> None:
        now = self._clock()
        stale = [k for k, (_, ts) in self._entries.items() if now - ts >= self.ttl_s]
        for k in stale:
            del self._entries[k]


class StateCache:
    """
    Memoises the latest AuraState; `fresh()` is False once it ages past the
    window. `invalidate()` forces the next read to recompute but keeps the
    state itself, so history and adaptation count carry over.
    """

    def __init__(self, freshness_s: float, clock: Clock = time.time):
        self.freshness_s = freshness_s
        self._clock = clock
        self._state: Optional[AuraState] = None
        self._stale = False

    @property
    def state(self) -> Optional[AuraState]:
        return self._state

    def fresh(self) -> bool:
        if self._state is None or self._stale:
            return False
        return self._clock() - self._state.timestamp < self.freshness_s

    def replace(self, state: AuraState) -> None:
        self._state = state
        self._stale = False

    def invalidate(self) -> None:
        self._stale = True


class RefreshThrottle:
    """
    Gate for notification-driven recomputation.

    `try_acquire()` returns True and starts a new interval when the previous
    trigger is at least `interval_s` old; otherwise returns False.
    """

    def __init__(self, interval_s: float, clock: Clock = time.time):
        self.interval_s = interval_s
        self._clock = clock
        self._last: Optional[float] = None

    def try_acquire(self) -> bool:
        now = self._clock()
        if self._last is not None and now - self._last < self.interval_s:
            return False
        self._last = now
        return True

    def reset(self) -> None:
        self._last = None
