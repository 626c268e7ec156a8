# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Month bucketing of time-stamped records.

``bucketize()`` slices one or more flat record lists into N consecutive
calendar-month buckets ending with the month of the reference date. Each
bucket keeps its period bounds, display labels and, for every named input
stream, the subset of records whose ``date`` falls within the bucket
(inclusive on both ends).

Buckets exactly tile the window, so for records inside the window the sum
of a field over all buckets equals the sum over the unbucketed list.
Records outside the window are simply not assigned to any bucket.
"""

from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from .periods import DateLike, Period, filter_by_period, month_window


@dataclass(frozen=True)
class MonthBucket:
    """One calendar-month slice of a reporting window."""

    period: Period
    groups: Mapping[str, list[Any]] = field(default_factory=dict)

    @property
    def month(self) -> str:
        """Short month name, e.g. 'Jan'."""
        return self.period.short_label

    @property
    def label(self) -> str:
        """Month and year, e.g. 'Jan 2026'."""
        return self.period.label

    @property
    def start(self) -> str:
        return self.period.start

    @property
    def end(self) -> str:
        return self.period.end

    def records(self, name: str) -> list[Any]:
        """Records of the named stream in this bucket (empty if unknown)."""
        return self.groups.get(name, [])


def bucketize(
    months: int,
    now: DateLike,
    **streams: Optional[Iterable[Any]],
) -> list[MonthBucket]:
    """
    Group record streams into ``months`` calendar-month buckets, oldest first.

    Parameters
    ----------
    months :
        Window length in months (>= 1).
    now :
        Reference date; its month is the last bucket.
    **streams :
        Named record lists (``sales=...``, ``expenses=...``). ``None`` is
        treated as an empty list.

    Returns
    -------
    list[MonthBucket]
        Exactly ``months`` buckets. Each bucket's ``groups`` maps every
        stream name to its records in that month.
    """
    materialised = {name: list(records or []) for name, records in streams.items()}

    buckets: list[MonthBucket] = []
    for period in month_window(now, months):
        groups = {
            name: filter_by_period(records, period)
            for name, records in materialised.items()
        }
        buckets.append(MonthBucket(period=period, groups=groups))
    return buckets
