"""Pytest configuration and fixtures shared across all test modules.

This file is automatically loaded by pytest before running any tests.
It sets the environment the settings module reads at import time, so no
test depends on a local .env file or on real store/email credentials.
"""

import os

# CRITICAL: Set this before any imports that might load settings
os.environ["APP_ENV"] = "testing"

# Set default env vars that all tests might need
os.environ.setdefault("SUPABASE_URL", "https://store.test")
os.environ.setdefault("SUPABASE_SERVICE_ROLE_KEY", "service-role-test-key")
os.environ.setdefault("APP_RATE_LIMIT_REQUESTS", "100")
os.environ.setdefault("APP_RATE_LIMIT_WINDOW_SECONDS", "60")
os.environ["LOG_LEVEL"] = "WARNING"

# No email provider: notification tests run in simulation mode
for _name in ("SENDGRID_API_KEY", "EMAIL_SENDGRID_API_KEY"):
    os.environ.pop(_name, None)

from typing import Any

import pytest

from order_functions.adapters.store.base import AbstractOrderStore
from order_functions.core.errors import UpstreamAppError
from order_functions.core.rate_limit import get_rate_limiter
from order_functions.schemas.orders import OrderEmailView, OrderExport, OrderItem

ORDER_ID = "3f2b8c1a-9d4e-4f6a-8b2c-1d0e5f7a9b3c"


class FakeOrderStore(AbstractOrderStore):
    """In-memory order store recording every call it receives."""

    def __init__(
        self,
        orders: dict[str, dict[str, Any]] | None = None,
        items: dict[str, list[dict[str, Any]]] | None = None,
        summaries: dict[str, dict[str, Any]] | None = None,
        *,
        fail_events: bool = False,
        tables: dict[str, bool] | None = None,
    ) -> None:
        self.orders = orders or {}
        self.items = items or {}
        self.summaries = summaries or {}
        self.fail_events = fail_events
        self.tables = tables
        self.events: list[dict[str, Any]] = []
        self.calls: list[str] = []

    async def fetch_order(self, order_id: str) -> OrderExport | None:
        self.calls.append("fetch_order")
        row = self.orders.get(order_id)
        return OrderExport.model_validate(row) if row is not None else None

    async def fetch_order_items(self, order_id: str) -> list[OrderItem]:
        self.calls.append("fetch_order_items")
        return [OrderItem.model_validate(row) for row in self.items.get(order_id, [])]

    async def fetch_order_summary(self, order_id: str) -> OrderEmailView | None:
        self.calls.append("fetch_order_summary")
        row = self.summaries.get(order_id)
        return OrderEmailView.model_validate(row) if row is not None else None

    async def record_event(self, order_id, event_type, description, metadata=None) -> None:
        self.calls.append("record_event")
        if self.fail_events:
            raise UpstreamAppError(code="store_error", message="Order store returned an error")
        self.events.append(
            {
                "order_id": order_id,
                "event_type": event_type,
                "description": description,
                "metadata": metadata or {},
            }
        )

    async def check_table(self, table: str) -> bool:
        self.calls.append("check_table")
        if self.tables is None:
            return True
        return self.tables.get(table, False)


@pytest.fixture
def order_row() -> dict[str, Any]:
    return {
        "id": ORDER_ID,
        "status": "paid",
        "created_at": "2024-03-10T15:30:00+00:00",
        "updated_at": "2024-03-11T09:05:00+00:00",
        "subtotal": 100.0,
        "shipping_cost": 10.0,
        "discount": 5.0,
        "total": 105.0,
        "payment_method": "credit_card",
        "payment_info": {"brand": "visa", "last4": "4242", "card_number": "4111111111111111", "cvv": "123"},
        "notes": None,
        "customer": {
            "id": "c1",
            "full_name": "Maria Silva",
            "email": "maria@example.com",
            "cpf": "123.456.789-00",
            "phone": "+55 11 99999-0000",
        },
        "shipping_address": {
            "street": "Rua das Flores",
            "number": "42",
            "complement": None,
            "neighborhood": "Centro",
            "city": "Sao Paulo",
            "state": "SP",
            "zipcode": "01000-000",
        },
    }


@pytest.fixture
def item_rows() -> list[dict[str, Any]]:
    return [
        {
            "product_snapshot": {"sku": "NB-001", "name": "Notebook", "category": "Stationery"},
            "quantity": 2,
            "unit_price": 50.0,
            "line_total": 100.0,
        }
    ]


@pytest.fixture
def summary_row() -> dict[str, Any]:
    return {
        "order_id": ORDER_ID,
        "full_name": "Maria Silva",
        "email": "maria@example.com",
        "status": "paid",
        "total": 105.0,
        "items": [
            {
                "product_name": "Notebook",
                "product_sku": "NB-001",
                "quantity": 2,
                "unit_price": 50.0,
                "line_total": 100.0,
            }
        ],
    }


@pytest.fixture
def fake_store(order_row, item_rows, summary_row) -> FakeOrderStore:
    return FakeOrderStore(
        orders={ORDER_ID: order_row},
        items={ORDER_ID: item_rows},
        summaries={ORDER_ID: summary_row},
    )


@pytest.fixture(autouse=True)
def _reset_rate_limiter():
    """Each test starts with empty rate limit counters."""
    get_rate_limiter().reset()
    yield
    get_rate_limiter().reset()
