"""Rate limiter interfaces.

Handlers depend on this abstraction (not the concrete implementation) so the
process-local table can later be replaced by a shared store (e.g. Redis with
atomic increment-and-expire) without touching the HTTP layer.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class RateLimitResult:
    """Result of a rate limit check.

    Attributes:
        allowed: Whether the request is allowed to proceed.
        limit: Max requests per window.
        remaining: Remaining requests in the current window (0 when blocked).
        reset_at: UNIX epoch seconds when the identifier's window expires.
        retry_after_seconds: Suggested wait time in seconds when blocked.
    """

    allowed: bool
    limit: int
    remaining: int
    reset_at: float
    retry_after_seconds: int | None


class AbstractRateLimiter(ABC):
    """Interface for rate limiters."""

    @abstractmethod
    def check(self, identifier: str) -> RateLimitResult:
        """Count one request for ``identifier`` and decide admission.

        Args:
            identifier: Caller identity (e.g. client IP plus endpoint tag).

        Returns:
            RateLimitResult describing whether it was allowed.
        """
        raise NotImplementedError

    @abstractmethod
    def reset(self) -> None:
        """Forget all tracked identifiers."""
        raise NotImplementedError
