# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Period helpers for SMB Pulse.

This module defines a Period value object and helpers to derive calendar
month periods relative to a reference date ("now"):

- the current month and the previous month,
- the first day of an N-month rolling window,
- the list of N monthly periods covering that window, oldest first.

Month arithmetic is calendar based: a period always starts on day 1 and ends
on the last day of its month, whatever the day-of-month of the reference
date. January rolls back to December of the previous year.

Period bounds are ISO ``YYYY-MM-DD`` strings, so record filtering is a plain
inclusive string comparison.
"""

import calendar
from collections.abc import Iterable
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Optional, TypeVar, Union

from .measures import field_value

# Fixed English abbreviations so labels do not depend on the process locale.
MONTH_ABBR: tuple[str, ...] = (
    "Jan",
    "Feb",
    "Mar",
    "Apr",
    "May",
    "Jun",
    "Jul",
    "Aug",
    "Sep",
    "Oct",
    "Nov",
    "Dec",
)

DateLike = Union[date, datetime]
R = TypeVar("R")


@dataclass(frozen=True)
class Period:
    """A calendar month with inclusive ISO bounds and display labels."""

    start: str
    end: str
    label: str
    short_label: str


def _today() -> date:
    """Return today's date as a date object (isolated for easier testing)."""
    return datetime.today().date()


def _as_date(now: DateLike) -> date:
    if isinstance(now, datetime):
        return now.date()
    return now


def iso_day(now: DateLike) -> str:
    """Return the reference date as an ISO "YYYY-MM-DD" string."""
    return _as_date(now).isoformat()


def _shift_month(year: int, month: int, months_back: int) -> tuple[int, int]:
    """Return (year, month) for ``months_back`` months before year/month."""
    index = year * 12 + (month - 1) - months_back
    shifted_year, month_index = divmod(index, 12)
    return shifted_year, month_index + 1


def month_period(now: DateLike, months_back: int = 0) -> Period:
    """
    Calendar month ``months_back`` months before the month of ``now``.

    ``months_back=0`` is the current month, 1 the previous month, and so on.
    The day-of-month of ``now`` is never carried over: the period starts on
    day 1 and ends on the last day of the shifted month.
    """
    today = _as_date(now)
    year, month = _shift_month(today.year, today.month, months_back)
    last_day = calendar.monthrange(year, month)[1]
    short = MONTH_ABBR[month - 1]
    return Period(
        start=date(year, month, 1).isoformat(),
        end=date(year, month, last_day).isoformat(),
        label=f"{short} {year}",
        short_label=short,
    )


def current_month(now: DateLike) -> Period:
    """Full current calendar month."""
    return month_period(now, 0)


def previous_month(now: DateLike) -> Period:
    """Full previous calendar month."""
    return month_period(now, 1)


def window_start(now: DateLike, months: int) -> str:
    """First day of the month ``months - 1`` months before the current month."""
    if months < 1:
        raise ValueError(f"A rolling window needs at least one month (got {months}).")
    return month_period(now, months - 1).start


def month_window(now: DateLike, months: int) -> list[Period]:
    """Monthly periods covering an N-month window, oldest first."""
    if months < 1:
        raise ValueError(f"A rolling window needs at least one month (got {months}).")
    return [month_period(now, i) for i in range(months - 1, -1, -1)]


def parse_reference_date(value: Optional[str]) -> date:
    """
    Parse an ``--as-of`` style ``YYYY-MM-DD`` value, defaulting to today.

    Raises
    ------
    ValueError
        If the value is not a valid ISO date.
    """
    if not value:
        return _today()
    try:
        return date.fromisoformat(value.strip())
    except ValueError as exc:
        raise ValueError(f"Invalid date {value!r}, expected YYYY-MM-DD.") from exc


def filter_between(
    records: Optional[Iterable[R]],
    start: str,
    end: Optional[str] = None,
) -> list[R]:
    """
    Keep records whose ``date`` lies within [start, end] (inclusive).

    With ``end=None`` the range is open-ended. ``None`` input yields an
    empty list.
    """
    if not records:
        return []
    kept: list[R] = []
    for record in records:
        value: Any = field_value(record, "date")
        iso = value if isinstance(value, str) else ("" if value is None else str(value))
        if iso < start:
            continue
        if end is not None and iso > end:
            continue
        kept.append(record)
    return kept


def filter_by_period(records: Optional[Iterable[R]], period: Period) -> list[R]:
    """Keep records whose ``date`` falls within the period boundaries."""
    return filter_between(records, period.start, period.end)
