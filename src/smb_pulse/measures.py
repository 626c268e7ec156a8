# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Metric reducers for SMB Pulse.

Reducers turn a list of records (sales, expenses, sale line-items) into a
single monetary total for one named field. Every value goes through
``to_amount()`` first:

- ``None`` / missing fields count as 0,
- numeric-looking strings ("12.50", " 3 ") are parsed,
- anything else (garbage strings, NaN, infinities, unsupported types) is
  coerced to 0.

Totals are computed with ``math.fsum``, so the result does not depend on the
order in which records are supplied.

Records can be dataclass instances (see ``records.py``) or raw mappings as
returned by a store; mappings are read by key, anything else by attribute.
"""

import logging
import math
from collections.abc import Iterable, Mapping
from decimal import Decimal
from typing import Any, Optional

logger = logging.getLogger(__name__)


def to_amount(value: Any) -> float:
    """Coerce a store value to a finite float, returning 0.0 when impossible."""
    if value is None:
        return 0.0

    if isinstance(value, (int, float, Decimal)):
        number = float(value)
    elif isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        try:
            number = float(text)
        except ValueError:
            logger.debug("Coercing non-numeric amount %r to 0", value)
            return 0.0
    else:
        logger.debug("Coercing unsupported amount type %s to 0", type(value).__name__)
        return 0.0

    if not math.isfinite(number):
        return 0.0
    return number


def field_value(record: Any, field: str) -> Any:
    """Return ``record.field`` or ``record[field]``, or None if absent."""
    if isinstance(record, Mapping):
        return record.get(field)
    return getattr(record, field, None)


def sum_amounts(values: Iterable[Any]) -> float:
    """Sum an iterable of raw values after coercion."""
    return math.fsum(to_amount(v) for v in values)


def sum_field(records: Optional[Iterable[Any]], field: str) -> float:
    """
    Sum the named numeric field over ``records``.

    Parameters
    ----------
    records :
        Records to reduce. ``None`` is treated as an empty list.
    field :
        Attribute or key to read on each record (e.g. ``"total_amount"``).

    Returns
    -------
    float
        The coerced total, 0.0 for no records.
    """
    if not records:
        return 0.0
    return sum_amounts(field_value(r, field) for r in records)


def revenue(sales: Optional[Iterable[Any]]) -> float:
    """Total sales amount."""
    return sum_field(sales, "total_amount")


def cost_of_goods(sales: Optional[Iterable[Any]]) -> float:
    """Total cost of goods sold recorded on sales."""
    return sum_field(sales, "total_cost")


def expenses_total(expenses: Optional[Iterable[Any]]) -> float:
    """Total expense amount."""
    return sum_field(expenses, "amount")


def line_item_cost(item: Any) -> float:
    """Cost of one sale line-item: unit cost times quantity."""
    return to_amount(field_value(item, "unit_cost")) * to_amount(
        field_value(item, "quantity")
    )

