"""Process-wide adapters and services, exposed as FastAPI dependencies.

Adapters are created lazily on first use and cached in-module, so importing
the app does not require store credentials. Services are built per request
from the injected adapters; tests swap adapters through
``app.dependency_overrides``.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends

from order_functions.adapters.email.base import AbstractEmailSender
from order_functions.adapters.email.factory import create_email_sender
from order_functions.adapters.store.base import AbstractOrderStore
from order_functions.adapters.store.factory import create_order_store
from order_functions.core.config import settings
from order_functions.services.export_service import OrderExportService
from order_functions.services.notification_service import OrderNotificationService

_store: AbstractOrderStore | None = None
_email_sender: AbstractEmailSender | None = None


def get_order_store() -> AbstractOrderStore:
    global _store
    if _store is None:
        _store = create_order_store()
    return _store


def get_email_sender() -> AbstractEmailSender:
    global _email_sender
    if _email_sender is None:
        _email_sender = create_email_sender()
    return _email_sender


def get_export_service(
    store: Annotated[AbstractOrderStore, Depends(get_order_store)],
) -> OrderExportService:
    return OrderExportService(store, tz=settings.app.display_timezone)


def get_notification_service(
    store: Annotated[AbstractOrderStore, Depends(get_order_store)],
    sender: Annotated[AbstractEmailSender, Depends(get_email_sender)],
) -> OrderNotificationService:
    return OrderNotificationService(store, sender, site_url=settings.app.site_url)
