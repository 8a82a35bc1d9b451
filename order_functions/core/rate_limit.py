"""Rate limiting dependency for FastAPI routes.

This module wires the rate limiting adapter into the HTTP layer.

Rate limiting strategy:
- Fixed window per client and endpoint.
- Client identity is the first address in X-Forwarded-For (set by the edge
  proxy), or "unknown" when the header is absent.
- Rejections short-circuit the request before any store or provider call.
"""

from __future__ import annotations

import hashlib
import logging
from typing import Awaitable, Callable

from fastapi import Request

from order_functions.adapters.rate_limit.base import AbstractRateLimiter, RateLimitResult
from order_functions.adapters.rate_limit.in_memory import InMemoryFixedWindowRateLimiter
from order_functions.core.config import settings
from order_functions.core.errors import RateLimitAppError

logger = logging.getLogger(__name__)

FORWARDED_FOR_HEADER = "X-Forwarded-For"
UNKNOWN_CLIENT = "unknown"

_limiter: AbstractRateLimiter | None = None
_limiter_config: tuple[int, int] | None = None


def get_rate_limiter() -> AbstractRateLimiter:
    """Return the process-wide rate limiter instance.

    The instance is cached in-module to preserve state across requests.
    If configuration changes (primarily in tests), the limiter is rebuilt.
    """

    global _limiter, _limiter_config

    config = (
        settings.app.rate_limit_requests,
        settings.app.rate_limit_window_seconds,
    )

    if _limiter is None or _limiter_config != config:
        _limiter = InMemoryFixedWindowRateLimiter(
            limit=settings.app.rate_limit_requests,
            window_seconds=settings.app.rate_limit_window_seconds,
        )
        _limiter_config = config

    return _limiter


def check_rate_limit(identifier: str) -> RateLimitResult:
    """Count one request for ``identifier`` against the process-wide limiter."""

    return get_rate_limiter().check(identifier)


def build_rate_limit_key(request: Request, endpoint: str) -> str:
    """Build the limiter key for the current request.

    Args:
        request: Incoming request.
        endpoint: Tag separating budgets per endpoint.

    Returns:
        ``<client-ip>:<endpoint>``.
    """

    forwarded = request.headers.get(FORWARDED_FOR_HEADER, "")
    client_ip = forwarded.split(",")[0].strip() or UNKNOWN_CLIENT
    return f"{client_ip}:{endpoint}"


def _hash_limiter_key(key: str) -> str:
    """Hash the rate limit key for logging without exposing client addresses."""
    return hashlib.sha256(key.encode()).hexdigest()[:16]


def rate_limit(endpoint: str) -> Callable[[Request], Awaitable[None]]:
    """Create a dependency enforcing the rate limit for ``endpoint``.

    Usage:
        @router.get("/export-order-csv", dependencies=[Depends(rate_limit("export-order-csv"))])
    """

    async def enforce_rate_limit(request: Request) -> None:
        """Consume one unit of the caller's budget or raise RateLimitAppError."""

        if not settings.app.rate_limit_enabled:
            return

        key = build_rate_limit_key(request, endpoint)
        key_hash = _hash_limiter_key(key)
        result = check_rate_limit(key)

        if result.allowed:
            logger.debug(
                "rate_limit.allowed",
                extra={
                    "endpoint": endpoint,
                    "key_hash": key_hash,
                    "limit": result.limit,
                    "remaining": result.remaining,
                },
            )
            return

        retry_after = result.retry_after_seconds or settings.app.rate_limit_window_seconds
        logger.warning(
            "rate_limit.exceeded",
            extra={
                "endpoint": endpoint,
                "key_hash": key_hash,
                "limit": result.limit,
                "window_s": settings.app.rate_limit_window_seconds,
                "retry_after_s": retry_after,
            },
        )

        raise RateLimitAppError(
            code="rate_limit_exceeded",
            message="Rate limit exceeded",
            details={
                "hint": (
                    f"Maximum {result.limit} requests per "
                    f"{settings.app.rate_limit_window_seconds} seconds"
                ),
                "retry_after": retry_after,
            },
        )

    return enforce_rate_limit
