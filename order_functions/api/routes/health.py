from __future__ import annotations

import logging

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from order_functions.api.dependencies import get_order_store
from order_functions.core.errors import UpstreamAppError

logger = logging.getLogger(__name__)

router = APIRouter(tags=["Health"])

REQUIRED_TABLES = ("profiles", "products", "orders", "order_items", "order_events")
# Read when rendering notification emails
REQUIRED_VIEWS = ("vw_customer_orders", "vw_order_details")


@router.get("/health")
def health_check() -> dict:
    """Health check endpoint.

    Returns a simple status response to verify the API is operational.

    Returns:
        dict: A dictionary with a single "status" key set to "ok".
    """

    return {"status": "ok"}


@router.get("/health/ready")
async def readiness_check() -> JSONResponse:
    """Readiness check: every required table and view must be queryable.

    Each relation reports ``ok``, ``missing`` (migrations not applied) or
    ``error`` (store unreachable, unconfigured or rejecting the request).

    Returns:
        JSONResponse: 200 when all relations are ``ok``, otherwise 503.
    """

    relations = REQUIRED_TABLES + REQUIRED_VIEWS
    states: dict[str, str] = {}
    reason: str | None = None

    try:
        store = get_order_store()
    except UpstreamAppError as exc:
        logger.warning("health.store_unavailable", extra={"error_code": exc.code})
        store = None
        reason = exc.code

    for relation in relations:
        if store is None:
            states[relation] = "error"
            continue
        try:
            states[relation] = "ok" if await store.check_table(relation) else "missing"
        except UpstreamAppError as exc:
            logger.warning("health.table_check_failed", extra={"table": relation, "error_code": exc.code})
            states[relation] = "error"

    ready = all(state == "ok" for state in states.values())
    content: dict = {
        "status": "ready" if ready else "not_ready",
        "tables": {name: states[name] for name in REQUIRED_TABLES},
        "views": {name: states[name] for name in REQUIRED_VIEWS},
    }
    if reason:
        content["reason"] = reason

    return JSONResponse(status_code=200 if ready else 503, content=content)
