"""Email rendering for order notifications.

Each ``EmailKind`` maps to a subject line and a pair of Jinja2 templates
(``<kind>.txt`` and ``<kind>.html``) under ``templates/email``. HTML templates
are autoescaped, so customer and product names can't inject markup; text
templates are rendered as-is.

Rendering is pure: the same order, kind and site URL always produce the same
content.
"""

from __future__ import annotations

from collections.abc import Mapping
from enum import Enum
from pathlib import Path
from typing import Any

from jinja2 import Environment, FileSystemLoader, StrictUndefined, select_autoescape

from order_functions.schemas.email import EmailContent
from order_functions.schemas.orders import OrderEmailView
from order_functions.services.csv_formatter import NOT_AVAILABLE, format_currency

TEMPLATE_DIR = Path(__file__).resolve().parent.parent / "templates" / "email"
DEFAULT_SITE_URL = "https://example.com"
DEFAULT_CUSTOMER_NAME = "Customer"
DEFAULT_PRODUCT_NAME = "Product"


class EmailKind(str, Enum):
    CONFIRMATION = "confirmation"
    STATUS_UPDATE = "status_update"
    SHIPPED = "shipped"
    DELIVERED = "delivered"

    @classmethod
    def parse(cls, value: "EmailKind | str | None") -> "EmailKind":
        """Resolve a requested kind.

        A missing kind means confirmation; an unrecognized one falls back to the
        generic status update.
        """
        if isinstance(value, cls):
            return value
        if not value:
            return cls.CONFIRMATION
        try:
            return cls(value.strip().lower())
        except ValueError:
            return cls.STATUS_UPDATE


_SUBJECTS: dict[EmailKind, str] = {
    EmailKind.CONFIRMATION: "Order #{short_id} confirmed! \N{PARTY POPPER}",
    EmailKind.SHIPPED: "Your order #{short_id} has been shipped! \N{PACKAGE}",
    EmailKind.DELIVERED: "Order #{short_id} delivered! \N{WHITE HEAVY CHECK MARK}",
    EmailKind.STATUS_UPDATE: "Update on order #{short_id}",
}

_environment = Environment(
    loader=FileSystemLoader(str(TEMPLATE_DIR)),
    autoescape=select_autoescape(enabled_extensions=("html",), default_for_string=False),
    trim_blocks=True,
    lstrip_blocks=True,
    undefined=StrictUndefined,
)
_environment.filters["money"] = format_currency


def _coerce_order(order: OrderEmailView | Mapping[str, Any]) -> OrderEmailView:
    if isinstance(order, OrderEmailView):
        return order
    return OrderEmailView.model_validate(order)


def _build_context(order: OrderEmailView, site_url: str) -> dict[str, Any]:
    return {
        "customer_name": order.customer_name or DEFAULT_CUSTOMER_NAME,
        "short_id": order.short_id,
        "status": order.status or NOT_AVAILABLE,
        "order_url": f"{site_url.rstrip('/')}/orders/{order.order_id}",
        "items": [
            {
                "product_name": item.product_name or DEFAULT_PRODUCT_NAME,
                "product_sku": item.product_sku or NOT_AVAILABLE,
                "quantity": item.quantity,
                "unit_price": item.unit_price,
                "line_total": item.line_total,
            }
            for item in order.items
        ],
        "total": order.grand_total,
    }


def render_email(
    order: OrderEmailView | Mapping[str, Any],
    kind: EmailKind | str | None = EmailKind.CONFIRMATION,
    *,
    site_url: str = DEFAULT_SITE_URL,
) -> EmailContent:
    """Render subject, text and HTML for a notification.

    Args:
        order: Order summary with items (items only appear in confirmations).
        kind: Notification kind; see ``EmailKind.parse`` for fallbacks.
        site_url: Storefront base URL for order links.

    Returns:
        EmailContent with the three rendered parts.
    """
    order = _coerce_order(order)
    resolved = EmailKind.parse(kind)
    context = _build_context(order, site_url)

    return EmailContent(
        subject=_SUBJECTS[resolved].format(short_id=order.short_id),
        text=_environment.get_template(f"{resolved.value}.txt").render(context),
        html=_environment.get_template(f"{resolved.value}.html").render(context),
    )
