from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any

from order_functions.schemas.orders import OrderEmailView, OrderExport, OrderItem


class AbstractOrderStore(ABC):
	"""Read access to orders plus the audit event log.

	Implementations raise ``UpstreamAppError`` when the backing store cannot
	be reached or rejects a request. A missing order is not an error: lookups
	return ``None``.
	"""

	@abstractmethod
	async def fetch_order(self, order_id: str) -> OrderExport | None:
		"""Load an order header with its customer snapshot."""
		...

	@abstractmethod
	async def fetch_order_items(self, order_id: str) -> list[OrderItem]:
		"""Load the order's line items in storage order."""
		...

	@abstractmethod
	async def fetch_order_summary(self, order_id: str) -> OrderEmailView | None:
		"""Load the customer-facing order summary, items included."""
		...

	@abstractmethod
	async def record_event(
		self,
		order_id: str,
		event_type: str,
		description: str,
		metadata: dict[str, Any] | None = None,
	) -> None:
		"""Append an entry to the order's audit trail."""
		...

	@abstractmethod
	async def check_table(self, table: str) -> bool:
		"""Return True when ``table`` (or view) is queryable."""
		...
