# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Recent-activity feed.

Sales and expenses have different shapes, so the feed models them as a
tagged union: ``SaleActivity`` and ``ExpenseActivity`` both carry a ``kind``
discriminant ("sale" / "expense") plus the display fields derived from their
record:

- sale:    amount = total_amount,
           description = customer name, else the "Sale" label;
- expense: amount = amount,
           description = supplier, else category name, else the "Expense"
           label.

``merge_recent()`` concatenates both streams, sorts them by ``created_at``
descending (a full sort, inputs are not assumed presorted) and keeps the
first ``limit`` entries.
"""

from collections.abc import Iterable
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Literal, Optional, Union

from .records import ExpenseRecord, SaleRecord

ActivityKind = Literal["sale", "expense"]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def parse_timestamp(value: str) -> datetime:
    """
    Parse an ISO timestamp into an aware datetime for ordering.

    Naive timestamps are taken as UTC; a bare ``Z`` suffix is accepted.
    Empty or unparseable values sort last (oldest).
    """
    if not value:
        return _EPOCH
    try:
        parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
    except ValueError:
        return _EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass(frozen=True)
class SaleActivity:
    """A sale entry of the recent-activity feed."""

    record: SaleRecord
    description: str
    kind: Literal["sale"] = "sale"

    @property
    def amount(self) -> float:
        return self.record.total_amount

    @property
    def created_at(self) -> str:
        return self.record.created_at

    @property
    def date(self) -> str:
        return self.record.date


@dataclass(frozen=True)
class ExpenseActivity:
    """An expense entry of the recent-activity feed."""

    record: ExpenseRecord
    description: str
    kind: Literal["expense"] = "expense"

    @property
    def amount(self) -> float:
        return self.record.amount

    @property
    def created_at(self) -> str:
        return self.record.created_at

    @property
    def date(self) -> str:
        return self.record.date


Activity = Union[SaleActivity, ExpenseActivity]


def sale_activity(record: SaleRecord, *, fallback: str = "Sale") -> SaleActivity:
    """Tag a sale and derive its display description."""
    return SaleActivity(record=record, description=record.customer_name or fallback)


def expense_activity(
    record: ExpenseRecord, *, fallback: str = "Expense"
) -> ExpenseActivity:
    """Tag an expense and derive its display description."""
    category_name = record.category.name if record.category is not None else None
    description = record.supplier or category_name or fallback
    return ExpenseActivity(record=record, description=description)


def merge_recent(
    sales: Optional[Iterable[SaleRecord]],
    expenses: Optional[Iterable[ExpenseRecord]],
    *,
    limit: int = 5,
    sale_label: str = "Sale",
    expense_label: str = "Expense",
) -> list[Activity]:
    """
    Merge recent sales and expenses into one feed, newest first.

    Parameters
    ----------
    sales, expenses :
        Recent records of each kind. ``None`` counts as an empty list.
    limit :
        Maximum number of entries to return.
    sale_label, expense_label :
        Fallback descriptions when a record has nothing better to show.

    Returns
    -------
    list[Activity]
        At most ``limit`` entries sorted by ``created_at`` descending. Equal
        timestamps keep sales before expenses, each in input order.
    """
    if limit < 0:
        raise ValueError(f"limit must be positive (got {limit}).")

    feed: list[Activity] = [sale_activity(s, fallback=sale_label) for s in sales or []]
    feed.extend(expense_activity(e, fallback=expense_label) for e in expenses or [])
    feed.sort(key=lambda a: parse_timestamp(a.created_at), reverse=True)
    return feed[:limit]
