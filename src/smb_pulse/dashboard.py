# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Dashboard orchestration.

The dashboard view-model is built in two steps:

1. ``load_dashboard()`` issues the read queries for one render concurrently
   (see ``fetching.py``):

   - sales since the start of the trend window,
   - expenses (joined to category) since the same date,
   - sale line-items (joined to product) of the current month,
   - the latest sales and the latest expenses by creation time.

   The window start is the earlier of "first day of the N-month window" and
   "first day of the previous month", so the month-over-month deltas are
   available even with a one-month trend.

2. ``build_dashboard_view()`` is a pure function of those rows and the
   reference date. It joins rows into records, then derives:

   - current-month stats (revenue, expenses, profit, margin and the three
     period-over-period deltas),
   - the N-month revenue / expenses / profit series, oldest first,
   - the current-month expense breakdown by category in first-encountered
     order, with each slice's share of the total,
   - the top products of the current month by revenue,
   - the merged feed of the most recent sales and expenses.

Missing rows (``None`` or failed queries) are treated as empty lists, so the
view-model always has finite numbers, possibly zeros.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any, Optional

from .activity import Activity, merge_recent
from .breakdowns import (
    CategorySlice,
    ProductTotal,
    category_slices,
    expenses_by_category,
    product_performance,
)
from .buckets import bucketize
from .config import AppConfig, DashboardOptions, FetchOptions, Labels
from .fetching import fetch_all
from .measures import expenses_total, revenue
from .periods import (
    DateLike,
    current_month,
    filter_by_period,
    iso_day,
    previous_month,
    window_start,
)
from .ratios import compare_periods, profit
from .records import (
    ExpenseRecord,
    SaleLineItem,
    SaleRecord,
    records_from_rows,
)
from .store import DataStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DashboardStats:
    """Current-month headline numbers and their month-over-month deltas."""

    total_revenue: float
    total_expenses: float
    profit: float
    profit_margin: float
    revenue_change: float
    expenses_change: float
    profit_change: float


@dataclass(frozen=True)
class MonthlyPoint:
    """One month of the revenue / expenses / profit trend."""

    month: str
    label: str
    start: str
    end: str
    revenue: float
    expenses: float
    profit: float


@dataclass(frozen=True)
class DashboardData:
    """Raw row sets feeding one dashboard render."""

    sales: Optional[list[Mapping[str, Any]]] = None
    expenses: Optional[list[Mapping[str, Any]]] = None
    sale_items: Optional[list[Mapping[str, Any]]] = None
    recent_sales: Optional[list[Mapping[str, Any]]] = None
    recent_expenses: Optional[list[Mapping[str, Any]]] = None


@dataclass(frozen=True)
class DashboardView:
    """Everything the dashboard screen displays."""

    as_of: str
    stats: DashboardStats
    monthly: list[MonthlyPoint]
    expenses_by_category: list[CategorySlice]
    top_products: list[ProductTotal]
    recent_transactions: list[Activity] = field(default_factory=list)


def history_start(now: DateLike, months: int) -> str:
    """Earliest date the dashboard needs: window start or previous month."""
    return min(window_start(now, months), previous_month(now).start)


def build_dashboard_view(
    data: DashboardData,
    now: DateLike,
    *,
    options: DashboardOptions = DashboardOptions(),
    labels: Labels = Labels(),
) -> DashboardView:
    """
    Build the dashboard view-model from fetched rows.

    Parameters
    ----------
    data :
        Row sets as returned by the store. Any of them may be ``None``.
    now :
        Reference date; its month is "the current month".
    options :
        Trend window and truncation sizes.
    labels :
        Sentinel display labels.
    """
    # Join step: store rows -> typed records.
    sales = records_from_rows(data.sales, SaleRecord.from_row)
    expenses = records_from_rows(data.expenses, ExpenseRecord.from_row)
    items = records_from_rows(data.sale_items, SaleLineItem.from_row)
    latest_sales = records_from_rows(data.recent_sales, SaleRecord.from_row)
    latest_expenses = records_from_rows(data.recent_expenses, ExpenseRecord.from_row)

    this_month = current_month(now)
    last_month = previous_month(now)

    current_sales = filter_by_period(sales, this_month)
    current_expenses = filter_by_period(expenses, this_month)

    comparison = compare_periods(
        revenue=revenue(current_sales),
        expenses=expenses_total(current_expenses),
        previous_revenue=revenue(filter_by_period(sales, last_month)),
        previous_expenses=expenses_total(filter_by_period(expenses, last_month)),
    )
    stats = DashboardStats(
        total_revenue=comparison.revenue,
        total_expenses=comparison.expenses,
        profit=comparison.profit,
        profit_margin=comparison.profit_margin,
        revenue_change=comparison.revenue_change,
        expenses_change=comparison.expenses_change,
        profit_change=comparison.profit_change,
    )

    monthly: list[MonthlyPoint] = []
    for bucket in bucketize(options.months, now, sales=sales, expenses=expenses):
        month_revenue = revenue(bucket.records("sales"))
        month_expenses = expenses_total(bucket.records("expenses"))
        monthly.append(
            MonthlyPoint(
                month=bucket.month,
                label=bucket.label,
                start=bucket.start,
                end=bucket.end,
                revenue=month_revenue,
                expenses=month_expenses,
                profit=profit(month_revenue, month_expenses),
            )
        )

    breakdown = expenses_by_category(
        current_expenses,
        order="insertion",
        uncategorized_label=labels.uncategorized,
        fallback_color=labels.fallback_color,
    )

    recent = merge_recent(
        latest_sales,
        latest_expenses,
        limit=options.recent_transactions,
        sale_label=labels.sale,
        expense_label=labels.expense,
    )

    return DashboardView(
        as_of=iso_day(now),
        stats=stats,
        monthly=monthly,
        expenses_by_category=category_slices(breakdown),
        top_products=product_performance(items, top=options.top_products),
        recent_transactions=recent,
    )


def load_dashboard(
    store: DataStore,
    now: DateLike,
    config: Optional[AppConfig] = None,
) -> DashboardView:
    """
    Fetch the dashboard rows from ``store`` and build the view-model.

    Store failures never abort the render: a failing query contributes no
    rows (see ``fetch_all``).
    """
    options = config.dashboard if config is not None else DashboardOptions()
    labels = config.labels if config is not None else Labels()
    fetch = config.fetch if config is not None else FetchOptions()

    since = history_start(now, options.months)
    this_month = current_month(now)
    limit = options.recent_transactions

    logger.info(
        "Building dashboard as of %s (history since %s)", iso_day(now), since
    )
    rows = fetch_all(
        {
            "sales": lambda: store.sales_between(since),
            "expenses": lambda: store.expenses_between(since),
            "sale_items": lambda: store.sale_items_between(
                this_month.start, this_month.end
            ),
            "recent_sales": lambda: store.recent_sales(limit),
            "recent_expenses": lambda: store.recent_expenses(limit),
        },
        max_workers=fetch.max_workers,
        timeout=fetch.timeout_seconds,
    )
    return build_dashboard_view(
        DashboardData(**rows),
        now,
        options=options,
        labels=labels,
    )
