from __future__ import annotations

from order_functions.api.routes.health import router as health_router
from order_functions.api.routes.orders import router as orders_router

__all__ = ["health_router", "orders_router"]
