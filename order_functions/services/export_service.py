"""Order CSV export service.

Loads an order and its items from the store, renders the requested CSV
variant and records an ``export_csv`` audit event.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from order_functions.adapters.store.base import AbstractOrderStore
from order_functions.core.errors import NotFoundAppError, UpstreamAppError
from order_functions.services.csv_formatter import DEFAULT_TIMEZONE, CsvFormat, render_csv

logger = logging.getLogger(__name__)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class CsvExport:
    order_id: str
    format: CsvFormat
    filename: str
    content: str
    items_count: int


def build_export_filename(order_id: str, exported_at: datetime) -> str:
    """``order_<first 8 chars of id>_<UTC date>.csv``."""
    day = exported_at.astimezone(timezone.utc).date().isoformat()
    return f"order_{order_id[:8]}_{day}.csv"


class OrderExportService:
    """Produces CSV exports for orders.

    Attributes:
        store: Order store adapter.
        tz: Timezone used for timestamps inside the report.
    """

    def __init__(
        self,
        store: AbstractOrderStore,
        *,
        tz: str = DEFAULT_TIMEZONE,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self.store = store
        self.tz = tz
        self._clock = clock

    async def _record_export(self, order_id: str, fmt: CsvFormat, items_count: int) -> None:
        """Write the audit event; a failure here does not fail the export."""
        try:
            await self.store.record_event(
                order_id,
                "export_csv",
                f"CSV exported in {fmt.value} format",
                {"format": fmt.value, "items_count": items_count},
            )
        except UpstreamAppError as exc:
            logger.warning(
                "export.audit_failed",
                extra={"order_id": order_id, "error_code": exc.code},
            )

    async def export(self, order_id: str, fmt: CsvFormat | str | None = None) -> CsvExport:
        """Render the CSV export for ``order_id``.

        Args:
            order_id: Order UUID.
            fmt: ``simple`` or ``detailed`` (default; also used for unknown values).

        Returns:
            CsvExport with the document and its download filename.

        Raises:
            NotFoundAppError: If the order does not exist.
            UpstreamAppError: If the store fails.
        """
        variant = fmt if isinstance(fmt, CsvFormat) else CsvFormat.parse(fmt)

        order = await self.store.fetch_order(order_id)
        if order is None:
            raise NotFoundAppError(
                code="order_not_found",
                message="Order not found",
                details={"order_id": order_id},
            )

        items = await self.store.fetch_order_items(order_id)
        exported_at = self._clock()
        content = render_csv(order, items, variant, generated_at=exported_at, tz=self.tz)

        await self._record_export(order_id, variant, len(items))

        logger.info(
            "export.generated",
            extra={
                "order_id": order_id,
                "format": variant.value,
                "items_count": len(items),
                "bytes": len(content.encode("utf-8")),
            },
        )

        return CsvExport(
            order_id=order_id,
            format=variant,
            filename=build_export_filename(order_id, exported_at),
            content=content,
            items_count=len(items),
        )
