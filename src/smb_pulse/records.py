# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Record types consumed by the SMB Pulse aggregation core.

Records are immutable snapshots of rows returned by the data store. Each
record type has a ``from_row()`` constructor that accepts the store's row
shape:

- snake_case keys (``total_amount``, ``created_at``, ...),
- joined relations as nested mappings (``category``, ``product``, ``sale``)
  or ``None`` when the relation is absent,
- amounts as numbers or numeric-looking strings.

Dates are normalised to ISO ``YYYY-MM-DD`` strings. The rest of the package
compares them lexicographically, which is valid because the format is
fixed-width and zero-padded. Timestamps (``created_at``) are kept as ISO
strings and parsed only where ordering needs them (see ``activity.py``).

Constructors never mutate the mappings they are given.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from datetime import date, datetime
from enum import Enum
from typing import Any, Callable, Optional, TypeVar

from .measures import to_amount

DEFAULT_CATEGORY_COLOR = "#888888"

T = TypeVar("T")


class CategoryType(str, Enum):
    """What a category can be attached to."""

    EXPENSE = "expense"
    PRODUCT = "product"
    BOTH = "both"


class PaymentMethod(str, Enum):
    """Payment methods recorded on sales and expenses."""

    CASH = "cash"
    DEBIT = "debit"
    CREDIT = "credit"
    TRANSFER = "transfer"


# ---------------------------------------------------------------------------
# Field helpers
# ---------------------------------------------------------------------------


def to_iso_date(value: Any) -> str:
    """Convert a date-like value to an ISO 'YYYY-MM-DD' string.

    Strings are trusted as already formatted by the store; only their first
    ten characters are kept so that timestamps collapse to their date part.
    ``None`` becomes an empty string, which sorts before every real date and
    therefore never falls inside a window.
    """
    if value is None:
        return ""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return str(value).strip()[:10]


def to_timestamp_text(value: Any) -> str:
    """Convert a timestamp-like value to an ISO string ('' when missing)."""
    if value is None:
        return ""
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    return str(value).strip()


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "y"}
    return bool(value)


def _payment_method(value: Any) -> Optional[PaymentMethod]:
    text = _optional_str(value)
    if text is None:
        return None
    try:
        return PaymentMethod(text.lower())
    except ValueError:
        return None


def parse_category_type(value: Any) -> CategoryType:
    """
    Parse a category type, case-insensitively. Empty means ``expense``.

    Raises
    ------
    ValueError
        If the value is not one of expense, product or both.
    """
    raw_type = _optional_str(value) or CategoryType.EXPENSE.value
    try:
        return CategoryType(raw_type.lower())
    except ValueError as exc:
        raise ValueError(
            f"Invalid category type {raw_type!r}; expected expense, product "
            "or both."
        ) from exc


def _nested(row: Mapping[str, Any], key: str) -> Optional[Mapping[str, Any]]:
    value = row.get(key)
    if isinstance(value, Mapping):
        return value
    return None


def records_from_rows(
    rows: Optional[Iterable[Mapping[str, Any]]],
    factory: Callable[[Mapping[str, Any]], T],
) -> list[T]:
    """Build records from store rows; ``None`` yields an empty list."""
    if not rows:
        return []
    return [factory(row) for row in rows]


# ---------------------------------------------------------------------------
# Joined references
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class CategoryRef:
    """Category fields joined onto an expense (name and display colour)."""

    name: str
    color: Optional[str] = None

    @classmethod
    def from_row(cls, row: Optional[Mapping[str, Any]]) -> Optional[CategoryRef]:
        if not row:
            return None
        name = _optional_str(row.get("name"))
        if name is None:
            return None
        return cls(name=name, color=_optional_str(row.get("color")))


@dataclass(frozen=True)
class ProductRef:
    """Product fields joined onto a sale line-item."""

    id: str
    name: str
    cost_price: float = 0.0
    sale_price: float = 0.0

    @classmethod
    def from_row(cls, row: Optional[Mapping[str, Any]]) -> Optional[ProductRef]:
        if not row or row.get("id") is None:
            return None
        return cls(
            id=str(row["id"]),
            name=str(row.get("name") or ""),
            cost_price=to_amount(row.get("cost_price")),
            sale_price=to_amount(row.get("sale_price")),
        )


@dataclass(frozen=True)
class SaleRef:
    """Sale fields joined onto a sale line-item."""

    date: str

    @classmethod
    def from_row(cls, row: Optional[Mapping[str, Any]]) -> Optional[SaleRef]:
        if not row:
            return None
        return cls(date=to_iso_date(row.get("date")))


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Category:
    """Expense / product category. System categories cannot be deleted."""

    id: str
    name: str
    color: str = DEFAULT_CATEGORY_COLOR
    type: CategoryType = CategoryType.EXPENSE
    is_system: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Category:
        return cls(
            id=str(row.get("id") or ""),
            name=str(row.get("name") or ""),
            color=_optional_str(row.get("color")) or DEFAULT_CATEGORY_COLOR,
            type=parse_category_type(row.get("type")),
            is_system=_as_bool(row.get("is_system")),
        )


@dataclass(frozen=True)
class Product:
    """Catalogue product with its reference cost and sale prices."""

    id: str
    name: str
    cost_price: float
    sale_price: float
    sku: Optional[str] = None
    category_id: Optional[str] = None
    is_active: bool = True

    @property
    def margin(self) -> float:
        """Unit margin as a fraction of the sale price (0 when unpriced)."""
        if self.sale_price > 0:
            return (self.sale_price - self.cost_price) / self.sale_price
        return 0.0

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> Product:
        is_active = row.get("is_active")
        return cls(
            id=str(row.get("id") or ""),
            name=str(row.get("name") or ""),
            cost_price=to_amount(row.get("cost_price")),
            sale_price=to_amount(row.get("sale_price")),
            sku=_optional_str(row.get("sku")),
            category_id=_optional_str(row.get("category_id")),
            is_active=True if is_active is None else _as_bool(is_active),
        )


@dataclass(frozen=True)
class SaleRecord:
    """A recorded sale. ``profit`` may be negative."""

    date: str
    total_amount: float
    total_cost: float
    profit: float
    created_at: str
    id: Optional[str] = None
    customer_name: Optional[str] = None
    channel: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    notes: Optional[str] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> SaleRecord:
        total_amount = to_amount(row.get("total_amount"))
        total_cost = to_amount(row.get("total_cost"))
        if row.get("profit") is None:
            profit = total_amount - total_cost
        else:
            profit = to_amount(row.get("profit"))
        return cls(
            date=to_iso_date(row.get("date")),
            total_amount=total_amount,
            total_cost=total_cost,
            profit=profit,
            created_at=to_timestamp_text(row.get("created_at")),
            id=_optional_str(row.get("id")),
            customer_name=_optional_str(row.get("customer_name")),
            channel=_optional_str(row.get("channel")),
            payment_method=_payment_method(row.get("payment_method")),
            notes=_optional_str(row.get("notes")),
        )


@dataclass(frozen=True)
class SaleLineItem:
    """One product line of a sale."""

    product_id: Optional[str]
    quantity: float
    unit_price: float
    unit_cost: float
    subtotal: float
    discount: float = 0.0
    id: Optional[str] = None
    sale_id: Optional[str] = None
    product: Optional[ProductRef] = None
    sale: Optional[SaleRef] = None

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> SaleLineItem:
        product = ProductRef.from_row(_nested(row, "product"))
        quantity = to_amount(row.get("quantity"))
        unit_price = to_amount(row.get("unit_price"))
        discount = to_amount(row.get("discount"))
        if row.get("subtotal") is None:
            subtotal = quantity * unit_price - discount
        else:
            subtotal = to_amount(row.get("subtotal"))

        product_id = _optional_str(row.get("product_id"))
        if product_id is None and product is not None:
            product_id = product.id

        return cls(
            product_id=product_id,
            quantity=quantity,
            unit_price=unit_price,
            unit_cost=to_amount(row.get("unit_cost")),
            subtotal=subtotal,
            discount=discount,
            id=_optional_str(row.get("id")),
            sale_id=_optional_str(row.get("sale_id")),
            product=product,
            sale=SaleRef.from_row(_nested(row, "sale")),
        )


@dataclass(frozen=True)
class ExpenseRecord:
    """A recorded expense, optionally joined to its category."""

    date: str
    amount: float
    created_at: str
    id: Optional[str] = None
    category_id: Optional[str] = None
    category: Optional[CategoryRef] = None
    supplier: Optional[str] = None
    description: Optional[str] = None
    payment_method: Optional[PaymentMethod] = None
    tax_amount: Optional[float] = None
    is_recurring: bool = False

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> ExpenseRecord:
        tax = row.get("tax_amount")
        return cls(
            date=to_iso_date(row.get("date")),
            amount=to_amount(row.get("amount")),
            created_at=to_timestamp_text(row.get("created_at")),
            id=_optional_str(row.get("id")),
            category_id=_optional_str(row.get("category_id")),
            category=CategoryRef.from_row(_nested(row, "category")),
            supplier=_optional_str(row.get("supplier")),
            description=_optional_str(row.get("description")),
            payment_method=_payment_method(row.get("payment_method")),
            tax_amount=None if tax is None else to_amount(tax),
            is_recurring=_as_bool(row.get("is_recurring")),
        )
