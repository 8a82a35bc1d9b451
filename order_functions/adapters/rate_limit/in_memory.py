"""In-memory fixed-window rate limiter.

Notes:
- Per-process only: running multiple workers or instances multiplies the
  effective limit, and counters are lost on restart.
- Thread-safe: a lock guards the entry table.
- Expired entries are swept at most once per window, so the table holds
  roughly the identifiers seen during the last window or two.
"""

from __future__ import annotations

import math
import threading
import time
from dataclasses import dataclass
from typing import Callable

from order_functions.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult

DEFAULT_WINDOW_SECONDS = 60.0
DEFAULT_MAX_REQUESTS = 100


@dataclass
class RateLimitEntry:
    count: int
    window_reset_at: float


class InMemoryFixedWindowRateLimiter(AbstractRateLimiter):
    """Rate limiter counting requests per identifier in a fixed window.

    A window opens lazily on the first request from an identifier and lasts
    ``window_seconds``. It is replaced only once the clock has moved strictly
    past ``window_reset_at``; a request landing exactly on the boundary still
    counts against the old window.

    Rejected requests are counted too, so the request that pushes the count
    past ``limit`` is the first one refused.
    """

    def __init__(
        self,
        *,
        limit: int = DEFAULT_MAX_REQUESTS,
        window_seconds: float = DEFAULT_WINDOW_SECONDS,
        clock: Callable[[], float] = time.time,
    ) -> None:
        """Initialize the in-memory rate limiter.

        Args:
            limit: Maximum number of allowed requests per window.
            window_seconds: Window length in seconds.
            clock: Time source function returning UNIX time in seconds.

        Raises:
            ValueError: If limit or window_seconds are invalid.
        """
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")

        self._limit = limit
        self._window_seconds = window_seconds
        self._clock = clock
        self._lock = threading.Lock()
        self._entries: dict[str, RateLimitEntry] = {}
        self._next_sweep_at = 0.0

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def window_seconds(self) -> float:
        return self._window_seconds

    @property
    def retry_after_seconds(self) -> int:
        """Fixed retry hint: the full window length, rounded up."""
        return max(1, math.ceil(self._window_seconds))

    def check(self, identifier: str) -> RateLimitResult:
        """Count a request for ``identifier`` and decide whether to admit it.

        Raises:
            ValueError: If identifier is empty.
        """
        if not identifier:
            raise ValueError("identifier must be a non-empty string")

        now = self._clock()

        with self._lock:
            if now > self._next_sweep_at:
                self._sweep(now)

            entry = self._entries.get(identifier)

            if entry is None or now > entry.window_reset_at:
                entry = RateLimitEntry(count=1, window_reset_at=now + self._window_seconds)
                self._entries[identifier] = entry
                return self._allowed(remaining=self._limit - 1, reset_at=entry.window_reset_at)

            entry.count += 1
            if entry.count > self._limit:
                return RateLimitResult(
                    allowed=False,
                    limit=self._limit,
                    remaining=0,
                    reset_at=entry.window_reset_at,
                    retry_after_seconds=self.retry_after_seconds,
                )

            return self._allowed(remaining=self._limit - entry.count, reset_at=entry.window_reset_at)

    def reset(self) -> None:
        with self._lock:
            self._entries.clear()

    def __len__(self) -> int:
        with self._lock:
            return len(self._entries)

    def _allowed(self, *, remaining: int, reset_at: float) -> RateLimitResult:
        return RateLimitResult(
            allowed=True,
            limit=self._limit,
            remaining=remaining,
            reset_at=reset_at,
            retry_after_seconds=None,
        )

    def _sweep(self, now: float) -> None:
        """Drop entries whose window has expired. Caller holds the lock."""
        expired = [key for key, entry in self._entries.items() if now > entry.window_reset_at]
        for key in expired:
            del self._entries[key]
        self._next_sweep_at = now + self._window_seconds
