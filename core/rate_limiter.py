"""Fixed-window call counters keyed by operation name.

Updates:
  v0.1.0 - 2026-10-12 - Introduce per-store RateLimiter with lazy pruning.
"""

from __future__ import annotations

import logging
import math
import time
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .exceptions import RateLimitExceededError

if TYPE_CHECKING:
    from collections.abc import Callable

DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_MAX_CALLS = 100

logger = logging.getLogger("snippet_store.rate_limiter")


@dataclass(slots=True)
class RateLimitEntry:
    """Calls observed for one operation within one window."""

    operation: str
    count: int
    window_start: float
    reset_time: float


class RateLimiter:
    """Count calls per operation in non-overlapping windows.

    The window key is the operation name joined with ``floor(now / window)``,
    so counts reset fully at every boundary. Entries whose window has passed
    are pruned on the next call rather than by a timer.
    """

    def __init__(
        self,
        *,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        max_calls: int = DEFAULT_MAX_CALLS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if window_seconds <= 0:
            raise ValueError("window_seconds must be greater than zero")
        if max_calls <= 0:
            raise ValueError("max_calls must be greater than zero")
        self._window_seconds = float(window_seconds)
        self._max_calls = int(max_calls)
        self._clock = clock
        self._entries: dict[str, RateLimitEntry] = {}

    @property
    def window_seconds(self) -> float:
        """Length of one counting window."""
        return self._window_seconds

    @property
    def max_calls(self) -> int:
        """Calls allowed per operation per window."""
        return self._max_calls

    def _window_key(self, operation: str, now: float) -> tuple[str, float]:
        index = math.floor(now / self._window_seconds)
        return f"{operation}_{index}", index * self._window_seconds

    def prune(self, now: float | None = None) -> None:
        """Drop entries whose window has ended."""
        current = self._clock() if now is None else now
        expired = [key for key, entry in self._entries.items() if current >= entry.reset_time]
        for key in expired:
            del self._entries[key]

    def try_acquire(self, operation: str) -> bool:
        """Record a call to *operation* and return False when the window is exhausted."""
        now = self._clock()
        self.prune(now)
        key, window_start = self._window_key(operation, now)
        entry = self._entries.get(key)
        if entry is None:
            self._entries[key] = RateLimitEntry(
                operation=operation,
                count=1,
                window_start=window_start,
                reset_time=window_start + self._window_seconds,
            )
            return True
        if entry.count >= self._max_calls:
            logger.warning("Rate limit exceeded for operation: %s", operation)
            return False
        entry.count += 1
        return True

    def check(self, operation: str) -> None:
        """Record a call, raising :class:`RateLimitExceededError` when denied."""
        if not self.try_acquire(operation):
            raise RateLimitExceededError(operation)

    def entries(self) -> list[RateLimitEntry]:
        """Return a snapshot of live entries."""
        return list(self._entries.values())

    def reset(self) -> None:
        """Forget every counter."""
        self._entries.clear()


__all__ = ["DEFAULT_MAX_CALLS", "DEFAULT_WINDOW_SECONDS", "RateLimitEntry", "RateLimiter"]
