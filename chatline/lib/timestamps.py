from __future__ import annotations

import threading
import time
from collections.abc import Callable, Iterable
from typing import Any, TypeVar

T = TypeVar("T")

DAY_MS = 24 * 60 * 60 * 1000

# Sub-millisecond step used when the wall clock has not advanced
_STEP = 0.001


def now_ms() -> float:
    return time.time() * 1000


class MonotonicClock:
    """Strictly increasing epoch-millisecond timestamps.

    Repeated calls within the same millisecond (or after the wall clock steps
    backwards) return the previous value plus a fractional step, so every
    timestamp handed out is unique for the lifetime of the clock.
    """

    def __init__(self, source: Callable[[], float] = now_ms):
        self._source = source
        self._lock = threading.Lock()
        self._last = 0.0

    def __call__(self) -> float:
        with self._lock:
            ts = float(self._source())
            if ts <= self._last:
                ts = self._last + _STEP
            self._last = ts
            return ts


def stable_sort(items: Iterable[T], key: Callable[[T], Any]) -> list[T]:
    """Sort ascending by key, keeping the input order of equal keys."""
    return sorted(items, key=key)


def day_key(timestamp: float) -> float:
    """Truncate an epoch-ms timestamp to the start of its UTC day."""
    return timestamp - (timestamp % DAY_MS)


__all__ = ["DAY_MS", "MonotonicClock", "day_key", "now_ms", "stable_sort"]
