from __future__ import annotations

"""Application factory for FastAPI app.

Centralizes app construction (metadata, middleware, handlers, routers) so
tests can build isolated instances.
"""

from fastapi import FastAPI

from order_functions.api.routes import health_router, orders_router
from order_functions.core.config import settings
from order_functions.core.exception_handlers import setup_exception_handlers
from order_functions.core.logging import configure_logging
from order_functions.core.middleware import cors_middleware, request_id_middleware
from order_functions.core.openapi import apply_openapi_customizations


def create_app() -> FastAPI:
    """Create and configure the FastAPI application instance.

    Returns:
        Configured FastAPI app with middleware, handlers, routers and docs.
    """
    # Logging first so subsequent init logs are formatted as desired
    configure_logging(settings.log)

    app = FastAPI(
        title="Order Functions",
        description=(
            "Order edge functions for the e-commerce backend: CSV export of an "
            "order and its items (simple or detailed) and order notification "
            "emails (confirmation, status update, shipped, delivered). Both "
            "endpoints are rate limited per client IP."
        ),
        version="0.1.0",
        license_info={
            "name": "MIT License",
            "url": "https://opensource.org/licenses/MIT",
        },
    )

    # Middleware: the last registered runs first, so CORS wraps request ids
    app.middleware("http")(request_id_middleware)
    app.middleware("http")(cors_middleware)

    setup_exception_handlers(app)

    app.include_router(orders_router)
    app.include_router(health_router)

    apply_openapi_customizations(app)

    return app
