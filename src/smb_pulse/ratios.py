# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Derived metrics for SMB Pulse.

This module computes the ratios and deltas shown next to the raw totals:

1. Profit
   -------
   ``profit = revenue - expenses`` (per bucket or per period). It may be
   negative.

2. Margins and shares
   ------------------
   ``profit_margin(profit, revenue) = profit / revenue * 100`` when revenue is
   positive, else 0. ``share_pct(part, total)`` applies the same rule and is
   used for "% of revenue" columns and pie-chart slices.

3. Period-over-period changes
   --------------------------
   Revenue and expenses:
       ``(current - previous) / previous * 100`` when previous > 0, else 0.
   Profit:
       ``(current - previous) / |previous| * 100`` when previous != 0,
       else 0. The absolute denominator keeps the sign meaningful when both
       periods are losses: going from -100 to -50 is +50%.

The zero-denominator rules are product behaviour: the dashboard shows 0% (or
a dash) rather than NaN or infinity. Every function here returns a finite
float for finite inputs.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass


def _finite(value: float) -> float:
    return value if math.isfinite(value) else 0.0


def profit(revenue: float, expenses: float) -> float:
    """Revenue minus expenses."""
    return revenue - expenses


def profit_margin(profit_value: float, revenue: float) -> float:
    """Profit as a percentage of revenue, 0 when revenue is not positive."""
    if revenue > 0:
        return _finite(profit_value / revenue * 100)
    return 0.0


def share_pct(part: float, total: float) -> float:
    """``part`` as a percentage of ``total``, 0 when total is not positive."""
    if total > 0:
        return _finite(part / total * 100)
    return 0.0


def percent_change(current: float, previous: float) -> float:
    """Revenue / expenses change in %, 0 when previous is not positive."""
    if previous > 0:
        return _finite((current - previous) / previous * 100)
    return 0.0


def profit_change(current: float, previous: float) -> float:
    """Profit change in %, relative to ``|previous|``; 0 when previous is 0."""
    if previous != 0:
        return _finite((current - previous) / abs(previous) * 100)
    return 0.0


def average(values: Iterable[float]) -> float:
    """Arithmetic mean, 0 for an empty iterable."""
    items = list(values)
    if not items:
        return 0.0
    return _finite(math.fsum(items) / len(items))


@dataclass(frozen=True)
class PeriodComparison:
    """
    Current vs previous period totals with their derived metrics.

    Attributes:
        revenue, expenses, profit: current-period totals.
        previous_revenue, previous_expenses, previous_profit: prior period.
        profit_margin: current profit as % of current revenue.
        revenue_change, expenses_change, profit_change: % deltas.
    """

    revenue: float
    expenses: float
    profit: float
    profit_margin: float
    previous_revenue: float
    previous_expenses: float
    previous_profit: float
    revenue_change: float
    expenses_change: float
    profit_change: float


def compare_periods(
    revenue: float,
    expenses: float,
    previous_revenue: float,
    previous_expenses: float,
) -> PeriodComparison:
    """Derive profit, margin and the three period-over-period deltas."""
    current_profit = profit(revenue, expenses)
    prior_profit = profit(previous_revenue, previous_expenses)
    return PeriodComparison(
        revenue=revenue,
        expenses=expenses,
        profit=current_profit,
        profit_margin=profit_margin(current_profit, revenue),
        previous_revenue=previous_revenue,
        previous_expenses=previous_expenses,
        previous_profit=prior_profit,
        revenue_change=percent_change(revenue, previous_revenue),
        expenses_change=percent_change(expenses, previous_expenses),
        profit_change=profit_change(current_profit, prior_profit),
    )
