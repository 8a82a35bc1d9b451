"""CSV rendering for order exports.

Two report variants are supported:

- ``simple``: one row per item plus subtotal/shipping/total rows, suitable for
  spreadsheets.
- ``detailed``: a sectioned report (order, customer, address, items, financial
  summary, payment, notes) meant to be read by people.

Text cells are quoted only when they contain a comma, a double quote, a CR or
an LF, with embedded quotes doubled (see ``escape_csv_value``). Money and
quantities are pre-formatted strings that never need quoting. Items are
rendered in the order given.
"""

from __future__ import annotations

import io
from collections.abc import Iterable, Mapping, Sequence
from datetime import datetime, timezone
from enum import Enum
from typing import Any
from zoneinfo import ZoneInfo

from order_functions.schemas.orders import OrderExport, OrderItem

CURRENCY_SYMBOL = "R$"
DEFAULT_TIMEZONE = "America/Sao_Paulo"
NOT_AVAILABLE = "N/A"
DEFAULT_PRODUCT_NAME = "Product"

SIMPLE_HEADER = ("SKU", "Product", "Quantity", "Price", "Total")
DETAILED_ITEMS_HEADER = ("Item", "SKU", "Product", "Category", "Quantity", "Unit Price", "Subtotal")

# Never exported, whatever the payment provider stored.
SENSITIVE_PAYMENT_KEYS = frozenset({"card_number", "cvv"})


class CsvFormat(str, Enum):
    SIMPLE = "simple"
    DETAILED = "detailed"

    @classmethod
    def parse(cls, value: str | None) -> "CsvFormat":
        """Map a ``format`` query value to a variant; anything unknown is detailed."""
        if value:
            try:
                return cls(value.strip().lower())
            except ValueError:
                pass
        return cls.DETAILED


def _amount(value: float) -> str:
    return f"{value:.2f}"


def format_currency(value: float) -> str:
    return f"{CURRENCY_SYMBOL} {value:.2f}"


def format_datetime(value: datetime | str | None, tz: str = DEFAULT_TIMEZONE) -> str:
    """Render a timestamp as ``dd/mm/YYYY HH:MM`` in ``tz``.

    Missing values render as ``N/A``; strings that are not ISO-8601 are
    returned unchanged. Naive datetimes are taken as UTC.
    """
    if value is None or value == "":
        return NOT_AVAILABLE

    if isinstance(value, str):
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
        except ValueError:
            return value
    else:
        parsed = value

    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(ZoneInfo(tz)).strftime("%d/%m/%Y %H:%M")


def _text(value: Any, default: str = NOT_AVAILABLE) -> str:
    """Stringify an optional text field, substituting ``default`` for blanks."""
    if value is None or value == "":
        return default
    return str(value)


def _coerce_order(order: OrderExport | Mapping[str, Any]) -> OrderExport:
    if isinstance(order, OrderExport):
        return order
    return OrderExport.model_validate(order)


def _coerce_items(items: Iterable[OrderItem | Mapping[str, Any]] | None) -> list[OrderItem]:
    return [
        item if isinstance(item, OrderItem) else OrderItem.model_validate(item)
        for item in items or ()
    ]


_CSV_SPECIAL_CHARS = frozenset(',"\r\n')


def escape_csv_value(value: str) -> str:
    """Quote ``value`` when it holds a comma, double quote, CR or LF.

    Embedded double quotes are doubled. Anything else is returned unchanged.
    """
    if not _CSV_SPECIAL_CHARS.intersection(value):
        return value
    return '"' + value.replace('"', '""') + '"'


class _Sheet:
    """Accumulates rows and serializes them with ``\\n`` line endings.

    Text cells go through ``escape_csv_value``; numbers are written as-is.
    """

    def __init__(self) -> None:
        self._buffer = io.StringIO()

    def row(self, *cells: str | int) -> None:
        line = ",".join(str(cell) if isinstance(cell, int) else escape_csv_value(cell) for cell in cells)
        self._buffer.write(f"{line}\n")

    def blank(self) -> None:
        self._buffer.write("\n")

    def section(self, title: str) -> None:
        self.row(f"===== {title} =====")

    def getvalue(self) -> str:
        return self._buffer.getvalue()


def render_simple_csv(
    order: OrderExport | Mapping[str, Any],
    items: Sequence[OrderItem | Mapping[str, Any]] | None,
) -> str:
    """Render the spreadsheet-style export.

    Args:
        order: Order header (only the money totals are used).
        items: Order lines in store order.

    Returns:
        CSV text ending with a newline.
    """
    order = _coerce_order(order)
    sheet = _Sheet()

    sheet.row(*SIMPLE_HEADER)
    for item in _coerce_items(items):
        snapshot = item.product_snapshot
        sheet.row(
            _text(snapshot.sku),
            _text(snapshot.name, DEFAULT_PRODUCT_NAME),
            item.quantity,
            _amount(item.unit_price),
            _amount(item.line_total),
        )

    sheet.row("Subtotal", "", "", "", _amount(order.subtotal))
    sheet.row("Shipping", "", "", "", _amount(order.shipping_cost))
    sheet.row("Total", "", "", "", _amount(order.total))
    return sheet.getvalue()


def render_detailed_csv(
    order: OrderExport | Mapping[str, Any],
    items: Sequence[OrderItem | Mapping[str, Any]] | None,
    *,
    generated_at: datetime | None = None,
    tz: str = DEFAULT_TIMEZONE,
) -> str:
    """Render the sectioned, human-oriented export.

    Args:
        order: Order header with customer and shipping address snapshots.
        items: Order lines in store order.
        generated_at: Timestamp for the "Exported at" footer; defaults to now.
        tz: Timezone used to display timestamps.

    Returns:
        CSV text ending with a newline.
    """
    order = _coerce_order(order)
    customer = order.customer
    address = order.shipping_address
    sheet = _Sheet()

    sheet.section("ORDER INFORMATION")
    sheet.row("Order ID", order.id)
    sheet.row("Status", _text(order.status))
    sheet.row("Created At", format_datetime(order.created_at, tz))
    sheet.row("Updated At", format_datetime(order.updated_at, tz))
    sheet.blank()

    sheet.section("CUSTOMER")
    sheet.row("Name", _text(customer and customer.full_name))
    sheet.row("Email", _text(customer and customer.email))
    sheet.row("CPF", _text(customer and customer.cpf))
    sheet.row("Phone", _text(customer and customer.phone))
    sheet.blank()

    sheet.section("SHIPPING ADDRESS")
    sheet.row("Street", _text(address and address.street))
    sheet.row("Number", _text(address and address.number))
    sheet.row("Complement", _text(address and address.complement, ""))
    sheet.row("Neighborhood", _text(address and address.neighborhood))
    sheet.row("City", _text(address and address.city))
    sheet.row("State", _text(address and address.state))
    sheet.row("Zip Code", _text(address and address.zipcode))
    sheet.blank()

    sheet.section("ORDER ITEMS")
    sheet.row(*DETAILED_ITEMS_HEADER)
    for index, item in enumerate(_coerce_items(items), start=1):
        snapshot = item.product_snapshot
        sheet.row(
            index,
            _text(snapshot.sku),
            _text(snapshot.name, DEFAULT_PRODUCT_NAME),
            _text(snapshot.category),
            item.quantity,
            format_currency(item.unit_price),
            format_currency(item.line_total),
        )
    sheet.blank()

    sheet.section("FINANCIAL SUMMARY")
    sheet.row("Subtotal (items)", format_currency(order.subtotal))
    sheet.row("Shipping", format_currency(order.shipping_cost))
    sheet.row("Discount", format_currency(order.discount))
    sheet.row("Total", format_currency(order.total))
    sheet.blank()

    sheet.section("PAYMENT")
    sheet.row("Payment Method", _text(order.payment_method))
    for key, value in (order.payment_info or {}).items():
        if key in SENSITIVE_PAYMENT_KEYS:
            continue
        sheet.row(key, _text(value, ""))
    sheet.blank()

    if order.notes:
        sheet.section("NOTES")
        sheet.row(order.notes)
        sheet.blank()

    sheet.section("END OF REPORT")
    exported_at = generated_at or datetime.now(timezone.utc)
    sheet.row(f"Exported at: {format_datetime(exported_at, tz)}")
    return sheet.getvalue()


def render_csv(
    order: OrderExport | Mapping[str, Any],
    items: Sequence[OrderItem | Mapping[str, Any]] | None,
    fmt: CsvFormat | str | None = CsvFormat.DETAILED,
    *,
    generated_at: datetime | None = None,
    tz: str = DEFAULT_TIMEZONE,
) -> str:
    """Render ``order`` in the requested variant."""
    variant = fmt if isinstance(fmt, CsvFormat) else CsvFormat.parse(fmt)
    if variant is CsvFormat.SIMPLE:
        return render_simple_csv(order, items)
    return render_detailed_csv(order, items, generated_at=generated_at, tz=tz)
