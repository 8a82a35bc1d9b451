"""Factory for the order store adapter."""

from order_functions.adapters.store.base import AbstractOrderStore
from order_functions.adapters.store.postgrest import PostgrestOrderStore
from order_functions.core.config import settings
from order_functions.core.errors import UpstreamAppError


def create_order_store() -> AbstractOrderStore:
    """Build the order store from ``settings.store``.

    Raises:
        UpstreamAppError: If the store URL or service role key is blank.
    """
    if not settings.store.url or not settings.store.service_role_key:
        raise UpstreamAppError(
            code="store_not_configured",
            message="SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set",
        )

    return PostgrestOrderStore(
        base_url=settings.store.url,
        service_role_key=settings.store.service_role_key,
        timeout_seconds=settings.store.timeout_seconds,
    )
