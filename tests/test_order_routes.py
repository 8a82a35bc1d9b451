"""Tests for the order API routes.

Store and email sender are replaced through ``app.dependency_overrides`` with
in-memory fakes, so no request leaves the process.
"""

from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from conftest import ORDER_ID, FakeOrderStore
from order_functions.adapters.email.simulated import SimulatedEmailSender
from order_functions.api import dependencies
from order_functions.api.dependencies import get_email_sender, get_order_store
from order_functions.core.config import settings
from order_functions.core.errors import UpstreamAppError
from order_functions.main import app


@pytest.fixture
def sender() -> SimulatedEmailSender:
    return SimulatedEmailSender()


@pytest.fixture
def client(fake_store: FakeOrderStore, sender: SimulatedEmailSender):
    """Create FastAPI test client backed by the fake store."""
    app.dependency_overrides[get_order_store] = lambda: fake_store
    app.dependency_overrides[get_email_sender] = lambda: sender
    yield TestClient(app)
    app.dependency_overrides.clear()


class TestExportOrderCsv:
    def test_returns_csv_attachment(self, client: TestClient) -> None:
        response = client.get("/export-order-csv", params={"order_id": ORDER_ID, "format": "simple"})

        assert response.status_code == 200
        assert response.headers["content-type"] == "text/csv; charset=utf-8"
        disposition = response.headers["content-disposition"]
        assert disposition.startswith('attachment; filename="order_3f2b8c1a_')
        assert disposition.endswith('.csv"')
        assert response.text.splitlines()[:2] == [
            "SKU,Product,Quantity,Price,Total",
            "NB-001,Notebook,2,50.00,100.00",
        ]
        assert response.headers["access-control-allow-origin"] == "*"

    def test_detailed_is_default(self, client: TestClient) -> None:
        response = client.get("/export-order-csv", params={"order_id": ORDER_ID})

        assert response.status_code == 200
        assert response.text.startswith("===== ORDER INFORMATION =====\n")

    def test_records_audit_event(self, client: TestClient, fake_store: FakeOrderStore) -> None:
        client.get("/export-order-csv", params={"order_id": ORDER_ID, "format": "simple"})

        assert [event["event_type"] for event in fake_store.events] == ["export_csv"]

    def test_missing_order_id_returns_400(self, client: TestClient, fake_store: FakeOrderStore) -> None:
        response = client.get("/export-order-csv")

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "missing_order_id"
        assert response.json()["error"]["message"] == "order_id is required"
        assert fake_store.calls == []

    def test_unknown_order_returns_404(self, client: TestClient) -> None:
        response = client.get("/export-order-csv", params={"order_id": "00000000-0000-0000-0000-000000000000"})

        assert response.status_code == 404
        assert response.json()["error"]["code"] == "order_not_found"

    def test_store_failure_returns_500_without_upstream_detail(
        self, client: TestClient, fake_store: FakeOrderStore
    ) -> None:
        async def broken_fetch(order_id):
            raise UpstreamAppError(
                code="store_error",
                message="Order store returned an error",
                details={"upstream": "store", "upstream_status": 503, "upstream_error": "db password wrong"},
            )

        fake_store.fetch_order = broken_fetch

        response = client.get("/export-order-csv", params={"order_id": ORDER_ID})

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "store_error"
        assert "db password wrong" not in response.text


class TestSendOrderEmail:
    def test_simulated_send_returns_preview(self, client: TestClient, sender: SimulatedEmailSender) -> None:
        response = client.post("/send-order-email", json={"order_id": ORDER_ID, "email_type": "delivered"})

        assert response.status_code == 200
        data = response.json()
        assert data["success"] is True
        assert data["order_id"] == ORDER_ID
        assert data["message"] == "Email simulated (no email provider configured)"
        assert data["preview"]["subject"] == "Order #3f2b8c1a delivered! \N{WHITE HEAVY CHECK MARK}"
        assert len(sender.outbox) == 1

    def test_email_type_defaults_to_confirmation(self, client: TestClient) -> None:
        response = client.post("/send-order-email", json={"order_id": ORDER_ID})

        assert response.json()["preview"]["subject"].startswith("Order #3f2b8c1a confirmed!")

    def test_missing_order_id_returns_400(self, client: TestClient) -> None:
        response = client.post("/send-order-email", json={"email_type": "shipped"})

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "missing_order_id"

    def test_missing_body_returns_400(self, client: TestClient) -> None:
        response = client.post("/send-order-email")

        assert response.status_code == 400

    def test_malformed_json_returns_400(self, client: TestClient) -> None:
        response = client.post(
            "/send-order-email",
            content="{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json()["error"]["code"] == "invalid_request"

    def test_unknown_order_returns_404(self, client: TestClient, sender: SimulatedEmailSender) -> None:
        response = client.post("/send-order-email", json={"order_id": "00000000-0000-0000-0000-000000000000"})

        assert response.status_code == 404
        assert sender.outbox == []


class TestRateLimiting:
    def test_exceeding_limit_returns_429_with_retry_after(
        self, client: TestClient, fake_store: FakeOrderStore
    ) -> None:
        headers = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
        params = {"order_id": ORDER_ID, "format": "simple"}

        with patch.object(settings.app, "rate_limit_requests", 2):
            assert client.get("/export-order-csv", params=params, headers=headers).status_code == 200
            assert client.get("/export-order-csv", params=params, headers=headers).status_code == 200
            calls_before = list(fake_store.calls)

            blocked = client.get("/export-order-csv", params=params, headers=headers)

        assert blocked.status_code == 429
        assert blocked.headers["Retry-After"] == "60"
        assert blocked.json()["error"]["code"] == "rate_limit_exceeded"
        assert blocked.json()["error"]["message"] == "Rate limit exceeded"
        # rejected before any store access
        assert fake_store.calls == calls_before

    def test_budgets_are_per_client_and_endpoint(self, client: TestClient) -> None:
        params = {"order_id": ORDER_ID, "format": "simple"}

        with patch.object(settings.app, "rate_limit_requests", 1):
            first = client.get("/export-order-csv", params=params, headers={"X-Forwarded-For": "198.51.100.1"})
            other_client = client.get(
                "/export-order-csv", params=params, headers={"X-Forwarded-For": "198.51.100.2"}
            )
            other_endpoint = client.post(
                "/send-order-email",
                json={"order_id": ORDER_ID},
                headers={"X-Forwarded-For": "198.51.100.1"},
            )
            repeat = client.get("/export-order-csv", params=params, headers={"X-Forwarded-For": "198.51.100.1"})

        assert first.status_code == 200
        assert other_client.status_code == 200
        assert other_endpoint.status_code == 200
        assert repeat.status_code == 429

    def test_disabled_rate_limit_admits_everything(self, client: TestClient) -> None:
        params = {"order_id": ORDER_ID, "format": "simple"}

        with patch.object(settings.app, "rate_limit_requests", 1), patch.object(
            settings.app, "rate_limit_enabled", False
        ):
            statuses = {client.get("/export-order-csv", params=params).status_code for _ in range(3)}

        assert statuses == {200}


class TestCors:
    @pytest.mark.parametrize("path", ["/export-order-csv", "/send-order-email"])
    def test_preflight_returns_ok_with_cors_headers(self, client: TestClient, path: str) -> None:
        response = client.options(path)

        assert response.status_code == 200
        assert response.text == "ok"
        assert response.headers["access-control-allow-origin"] == "*"
        assert response.headers["access-control-allow-headers"] == (
            "authorization, x-client-info, apikey, content-type"
        )

    def test_error_responses_carry_cors_headers(self, client: TestClient) -> None:
        response = client.get("/export-order-csv")

        assert response.status_code == 400
        assert response.headers["access-control-allow-origin"] == "*"


class TestHealth:
    def test_liveness(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {"status": "ok"}

    def test_ready_when_all_relations_present(self, client: TestClient, fake_store: FakeOrderStore) -> None:
        with patch("order_functions.api.routes.health.get_order_store", return_value=fake_store):
            response = client.get("/health/ready")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "ready"
        assert set(data["tables"]) == {"profiles", "products", "orders", "order_items", "order_events"}
        assert data["views"] == {"vw_customer_orders": "ok", "vw_order_details": "ok"}

    def test_not_ready_when_table_missing(self, client: TestClient) -> None:
        store = FakeOrderStore(
            tables={
                "profiles": True,
                "products": True,
                "orders": True,
                "order_items": True,
                "order_events": False,
                "vw_customer_orders": True,
                "vw_order_details": True,
            }
        )
        with patch("order_functions.api.routes.health.get_order_store", return_value=store):
            response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"
        assert response.json()["tables"]["order_events"] == "missing"

    def test_not_ready_when_email_views_missing(self, client: TestClient) -> None:
        store = FakeOrderStore(
            tables={
                "profiles": True,
                "products": True,
                "orders": True,
                "order_items": True,
                "order_events": True,
            }
        )
        with patch("order_functions.api.routes.health.get_order_store", return_value=store):
            response = client.get("/health/ready")

        assert response.status_code == 503
        assert response.json()["views"] == {"vw_customer_orders": "missing", "vw_order_details": "missing"}

    def test_not_ready_when_store_unconfigured(self, client: TestClient) -> None:
        with patch.object(dependencies, "_store", None), patch.object(settings.store, "url", ""):
            response = client.get("/health/ready")

        assert response.status_code == 503
        data = response.json()
        assert data["status"] == "not_ready"
        assert data["reason"] == "store_not_configured"
        assert set(data["tables"].values()) == {"error"}
        assert set(data["views"].values()) == {"error"}


class TestUnexpectedErrors:
    def test_unexpected_exception_returns_generic_500(self, fake_store: FakeOrderStore) -> None:
        async def exploding_fetch(order_id):
            raise RuntimeError("connection pool exhausted")

        fake_store.fetch_order = exploding_fetch
        app.dependency_overrides[get_order_store] = lambda: fake_store
        try:
            response = TestClient(app, raise_server_exceptions=False).get(
                "/export-order-csv",
                params={"order_id": ORDER_ID},
                headers={"X-Request-ID": "req-500"},
            )
        finally:
            app.dependency_overrides.clear()

        assert response.status_code == 500
        assert response.json()["error"]["code"] == "internal_server_error"
        assert response.json()["error"]["request_id"] == "req-500"
        assert response.headers["X-Request-ID"] == "req-500"
        assert response.headers["access-control-allow-origin"] == "*"
        assert "connection pool" not in response.text
