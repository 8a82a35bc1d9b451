"""HTTP middleware for request correlation and CORS.

The request ID middleware:
- Accepts incoming X-Request-ID header or generates a UUID
- Stores request_id in contextvars for access throughout the request lifecycle
- Injects request_id into response headers for client-side tracking
- Measures total request duration and includes it in response headers
- Turns unexpected exceptions into the generic 500 while the request_id is still set
- Clears context after request completion to prevent context leaks

The CORS middleware answers every OPTIONS request with a permissive preflight
response and stamps the same headers on all other responses.

Usage:
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(cors_middleware)
"""

from __future__ import annotations

import time
import uuid

from fastapi import Request, Response
from fastapi.responses import PlainTextResponse

from order_functions.core.config import settings
from order_functions.core.exception_handlers import general_exception_handler
from order_functions.core.logging import clear_request_id, set_request_id

CORS_ALLOW_HEADERS = "authorization, x-client-info, apikey, content-type"


def cors_headers() -> dict[str, str]:
    return {
        "Access-Control-Allow-Origin": settings.app.cors_allow_origin,
        "Access-Control-Allow-Headers": CORS_ALLOW_HEADERS,
    }


async def request_id_middleware(request: Request, call_next) -> Response:
    """HTTP middleware for request ID generation and propagation.

    If the client provides an X-Request-ID header (configurable via
    LOG_REQUEST_ID_HEADER), that value is used. Otherwise, a new UUID is
    generated. The ID is propagated back in the response headers and stored
    in contextvars for log correlation.

    Args:
        request: The incoming HTTP request object.
        call_next: The next middleware/route handler in the stack.

    Returns:
        Response: The response from the next handler with request_id and
            duration headers added.
    """

    header_name = settings.log.request_id_header
    request_id = request.headers.get(header_name) or str(uuid.uuid4())
    set_request_id(request_id)
    start = time.perf_counter()
    try:
        response: Response = await call_next(request)
    except Exception as exc:
        # Unhandled errors become the generic 500 inside the CORS middleware
        response = await general_exception_handler(request, exc)
    finally:
        clear_request_id()

    duration_ms = (time.perf_counter() - start) * 1000
    response.headers[header_name] = request_id
    response.headers.setdefault("X-Request-Duration-ms", f"{duration_ms:.2f}")
    return response


async def cors_middleware(request: Request, call_next) -> Response:
    """Short-circuit CORS preflight and add CORS headers to every response."""

    if request.method == "OPTIONS":
        return PlainTextResponse("ok", headers=cors_headers())

    response: Response = await call_next(request)
    for name, value in cors_headers().items():
        response.headers.setdefault(name, value)
    return response
