"""Pydantic schemas for order snapshots read from the store.

These are read-only projections: the store produces them, the formatters
consume them, nothing here writes back.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator, model_validator

_SNAPSHOT_KEYS = {"sku": "sku", "name": "name", "category": "category"}
_FLAT_SNAPSHOT_KEYS = {"product_sku": "sku", "product_name": "name", "product_category": "category"}


class _Snapshot(BaseModel):
    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, frozen=True)


class ProductSnapshot(_Snapshot):
    """Product fields frozen on the order item at purchase time."""

    sku: str | None = None
    name: str | None = None
    category: str | None = None


class CustomerSnapshot(_Snapshot):
    """Customer profile embedded on the order."""

    id: str | None = None
    full_name: str | None = None
    email: str | None = None
    cpf: str | None = None
    phone: str | None = None


class ShippingAddress(_Snapshot):
    """Delivery address stored with the order."""

    street: str | None = None
    number: str | None = None
    complement: str | None = None
    neighborhood: str | None = None
    city: str | None = None
    state: str | None = None
    zipcode: str | None = None


def _fold_product_fields(data: Any) -> Any:
    """Accept flat sku/name/category keys in place of a product_snapshot."""

    if not isinstance(data, dict):
        return data

    data = dict(data)
    snapshot = data.get("product_snapshot") or {}
    if isinstance(snapshot, BaseModel):
        snapshot = snapshot.model_dump()
    snapshot = dict(snapshot)

    for source, target in {**_SNAPSHOT_KEYS, **_FLAT_SNAPSHOT_KEYS}.items():
        if source in data and snapshot.get(target) is None:
            snapshot[target] = data[source]

    data["product_snapshot"] = snapshot
    return data


def _zero_if_none(value: Any) -> Any:
    return 0 if value is None else value


class OrderItem(BaseModel):
    """A single order line as stored in ``order_items``."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    product_snapshot: ProductSnapshot = Field(default_factory=ProductSnapshot)
    quantity: int = 0
    unit_price: float = 0.0
    line_total: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _fold_snapshot(cls, data: Any) -> Any:
        return _fold_product_fields(data)

    @field_validator("quantity", "unit_price", "line_total", mode="before")
    @classmethod
    def _default_numbers(cls, value: Any) -> Any:
        return _zero_if_none(value)


class OrderExport(BaseModel):
    """Order header plus customer and address snapshots.

    Line items travel separately (see ``OrderItem``) because the store
    returns them from a different table.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, frozen=True)

    id: str = Field(default="", validation_alias=AliasChoices("id", "order_id"))
    status: str | None = None
    created_at: datetime | str | None = None
    updated_at: datetime | str | None = None
    subtotal: float = 0.0
    shipping_cost: float = 0.0
    discount: float = 0.0
    total: float = 0.0
    payment_method: str | None = None
    payment_info: dict[str, Any] | None = None
    notes: str | None = None
    customer: CustomerSnapshot | None = None
    shipping_address: ShippingAddress | None = None

    @field_validator("subtotal", "shipping_cost", "discount", "total", mode="before")
    @classmethod
    def _default_money(cls, value: Any) -> Any:
        return _zero_if_none(value)


class EmailOrderItem(BaseModel):
    """Order line as exposed by the ``vw_order_details`` view."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, frozen=True)

    product_name: str | None = None
    product_sku: str | None = None
    quantity: int = 0
    unit_price: float = 0.0
    line_total: float = 0.0

    @model_validator(mode="before")
    @classmethod
    def _unfold_snapshot(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        folded = _fold_product_fields(data)["product_snapshot"]
        data = dict(data)
        data.setdefault("product_name", folded.get("name"))
        data.setdefault("product_sku", folded.get("sku"))
        return data

    @field_validator("quantity", "unit_price", "line_total", mode="before")
    @classmethod
    def _default_numbers(cls, value: Any) -> Any:
        return _zero_if_none(value)


class OrderEmailView(BaseModel):
    """Order summary used to render notification emails.

    Built from a ``vw_customer_orders`` row, whose customer columns are
    ``full_name`` and ``email``; both names are accepted.
    """

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True, frozen=True)

    order_id: str = Field(default="", validation_alias=AliasChoices("order_id", "id"))
    customer_name: str | None = Field(
        default=None,
        validation_alias=AliasChoices("customer_name", "full_name"),
    )
    customer_email: str | None = Field(
        default=None,
        validation_alias=AliasChoices("customer_email", "email"),
    )
    status: str | None = None
    total: float | None = None
    created_at: datetime | str | None = None
    items: list[EmailOrderItem] = Field(default_factory=list)

    @field_validator("items", mode="before")
    @classmethod
    def _items_default(cls, value: Any) -> Any:
        return [] if value is None else value

    @property
    def short_id(self) -> str:
        return self.order_id[:8]

    @property
    def grand_total(self) -> float:
        """Order total, or the sum of line totals when the row carries none."""
        if self.total is not None:
            return self.total
        return sum(item.line_total for item in self.items)
