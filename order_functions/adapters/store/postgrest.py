"""Order store backed by a hosted PostgREST row API."""

from __future__ import annotations

import logging
from typing import Any

import httpx

from order_functions.adapters.store.base import AbstractOrderStore
from order_functions.core.errors import UpstreamAppError
from order_functions.schemas.orders import OrderEmailView, OrderExport, OrderItem

logger = logging.getLogger(__name__)

ORDER_SELECT = "*,customer:profiles(id,full_name,email,cpf,phone)"
SUMMARY_ITEM_SELECT = "product_name,product_sku,quantity,unit_price,line_total"

# Postgres "invalid_text_representation": a malformed uuid can't match any row.
_INVALID_TEXT_REPRESENTATION = "22P02"
# PostgREST "relation does not exist" codes.
_MISSING_RELATION_CODES = {"42P01", "PGRST205"}


class PostgrestOrderStore(AbstractOrderStore):
    """Client for the ``/rest/v1`` row API using the service role key.

    A fresh ``httpx.AsyncClient`` is opened per call so the store can be shared
    across event loops (e.g. the test client's portal).
    """

    def __init__(
        self,
        *,
        base_url: str,
        service_role_key: str,
        timeout_seconds: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the store client.

        Args:
            base_url: Project URL; ``/rest/v1`` is appended.
            service_role_key: Key sent as ``apikey`` and bearer token.
            timeout_seconds: Per-request timeout.
            transport: Optional httpx transport (tests inject a MockTransport).
        """
        self.rest_url = f"{base_url.rstrip('/')}/rest/v1"
        self._service_role_key = service_role_key
        self._timeout = timeout_seconds
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            base_url=self.rest_url,
            headers={
                "apikey": self._service_role_key,
                "Authorization": f"Bearer {self._service_role_key}",
                "Accept": "application/json",
            },
            timeout=self._timeout,
            transport=self._transport,
        )

    async def _request(
        self,
        method: str,
        table: str,
        *,
        params: dict[str, str] | None = None,
        json: Any = None,
        headers: dict[str, str] | None = None,
    ) -> httpx.Response:
        try:
            async with self._client() as client:
                return await client.request(method, f"/{table}", params=params, json=json, headers=headers)
        except httpx.HTTPError as exc:
            logger.error(
                "store.request_failed",
                extra={"table": table, "method": method, "error_type": type(exc).__name__},
            )
            raise UpstreamAppError(
                code="store_unavailable",
                message="Order store request failed",
                details={"upstream": "store", "upstream_error": str(exc)},
            ) from exc

    def _raise_for_status(self, response: httpx.Response, table: str) -> None:
        if response.is_success:
            return
        logger.error(
            "store.request_failed",
            extra={"table": table, "status_code": response.status_code},
        )
        raise UpstreamAppError(
            code="store_error",
            message="Order store returned an error",
            details={
                "upstream": "store",
                "upstream_status": response.status_code,
                "upstream_error": response.text[:500],
            },
        )

    @staticmethod
    def _error_code(response: httpx.Response) -> str | None:
        try:
            body = response.json()
        except ValueError:
            return None
        return body.get("code") if isinstance(body, dict) else None

    async def _select(self, table: str, params: dict[str, str]) -> list[dict[str, Any]] | None:
        """Run a select; ``None`` means the filter value can't match (bad uuid)."""
        response = await self._request("GET", table, params=params)
        if response.status_code == 400 and self._error_code(response) == _INVALID_TEXT_REPRESENTATION:
            return None
        self._raise_for_status(response, table)
        rows = response.json()
        return rows if isinstance(rows, list) else [rows]

    async def fetch_order(self, order_id: str) -> OrderExport | None:
        rows = await self._select(
            "orders",
            {"select": ORDER_SELECT, "id": f"eq.{order_id}", "limit": "1"},
        )
        if not rows:
            return None
        return OrderExport.model_validate(rows[0])

    async def fetch_order_items(self, order_id: str) -> list[OrderItem]:
        rows = await self._select("order_items", {"select": "*", "order_id": f"eq.{order_id}"})
        return [OrderItem.model_validate(row) for row in rows or []]

    async def fetch_order_summary(self, order_id: str) -> OrderEmailView | None:
        rows = await self._select(
            "vw_customer_orders",
            {"select": "*", "order_id": f"eq.{order_id}", "limit": "1"},
        )
        if not rows:
            return None

        items = await self._select(
            "vw_order_details",
            {"select": SUMMARY_ITEM_SELECT, "order_id": f"eq.{order_id}"},
        )
        return OrderEmailView.model_validate({**rows[0], "items": items or []})

    async def record_event(
        self,
        order_id: str,
        event_type: str,
        description: str,
        metadata: dict[str, Any] | None = None,
    ) -> None:
        response = await self._request(
            "POST",
            "order_events",
            json={
                "order_id": order_id,
                "event_type": event_type,
                "description": description,
                "metadata": metadata or {},
            },
            headers={"Prefer": "return=minimal"},
        )
        self._raise_for_status(response, "order_events")

    async def check_table(self, table: str) -> bool:
        response = await self._request("GET", table, params={"select": "*", "limit": "1"})
        if response.status_code in (400, 404) and self._error_code(response) in _MISSING_RELATION_CODES:
            return False
        self._raise_for_status(response, table)
        return True
