# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Report orchestration: profit & loss, cash flow and product performance.

Overview
--------
``load_report()`` fetches, concurrently:

- sales and expenses (joined to category) since the first day of the
  N-month report window (12 months by default),
- every sale line-item ever recorded, joined to its product.

``build_report_view()`` then derives, without touching the store:

1. Monthly series (oldest first), one row per calendar month:

       revenue             = sum of sale amounts
       cost_of_goods       = sum of sale costs
       gross_profit        = revenue - cost_of_goods
       operating_expenses  = sum of expense amounts
       net_profit          = gross_profit - operating_expenses
       cash_in             = revenue
       cash_out            = operating_expenses + cost_of_goods
       net_cash_flow       = cash_in - cash_out
       balance             = running sum of net_cash_flow

2. Profit & loss totals over the window, with gross / net margin and the
   share of revenue taken by cost of goods and operating expenses. All
   percentages are 0 when there is no revenue.

3. Cash-flow totals (cash in, cash out, net cash flow).

4. All-time product performance ranked by revenue (with cost, profit and
   margin), the chart panel subset (top 10 by default) and a summary
   (total revenue, total profit, average margin).

5. The current-month expense breakdown by category, ranked by descending
   amount.

As for the dashboard, missing rows count as empty lists and every number in
the view-model is finite.
"""

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import Any, Optional

from .breakdowns import (
    CategoryTotal,
    ProductSummary,
    ProductTotal,
    expenses_by_category,
    product_performance,
    summarize_products,
)
from .buckets import bucketize
from .config import AppConfig, FetchOptions, Labels, ReportOptions
from .fetching import fetch_all
from .measures import cost_of_goods, expenses_total, revenue, sum_amounts
from .periods import DateLike, current_month, filter_by_period, iso_day, window_start
from .ratios import share_pct
from .records import ExpenseRecord, SaleLineItem, SaleRecord, records_from_rows
from .store import DataStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class ReportMonth:
    """One month of the profit & loss and cash-flow series."""

    month: str
    month_short: str
    start: str
    end: str
    revenue: float
    cost_of_goods: float
    gross_profit: float
    operating_expenses: float
    net_profit: float
    cash_in: float
    cash_out: float
    net_cash_flow: float
    balance: float


@dataclass(frozen=True)
class ProfitLossTotals:
    """Profit & loss totals over the whole report window."""

    revenue: float
    cost_of_goods: float
    gross_profit: float
    operating_expenses: float
    net_profit: float
    gross_margin: float
    net_margin: float
    cost_of_goods_share: float
    operating_expenses_share: float


@dataclass(frozen=True)
class CashFlowTotals:
    """Cash-flow totals over the whole report window."""

    cash_in: float
    cash_out: float
    net_cash_flow: float


@dataclass(frozen=True)
class ReportData:
    """Raw row sets feeding one report render."""

    sales: Optional[list[Mapping[str, Any]]] = None
    expenses: Optional[list[Mapping[str, Any]]] = None
    sale_items: Optional[list[Mapping[str, Any]]] = None


@dataclass(frozen=True)
class ReportView:
    """Everything the report screens display."""

    as_of: str
    months: list[ReportMonth]
    profit_and_loss: ProfitLossTotals
    cash_flow: CashFlowTotals
    products: list[ProductTotal]
    product_chart: list[ProductTotal]
    product_summary: ProductSummary
    expense_breakdown: list[CategoryTotal]


def build_monthly_series(
    sales: list[SaleRecord],
    expenses: list[ExpenseRecord],
    now: DateLike,
    months: int,
) -> list[ReportMonth]:
    """Bucket sales and expenses into report months with a running balance."""
    series: list[ReportMonth] = []
    balance = 0.0
    for bucket in bucketize(months, now, sales=sales, expenses=expenses):
        month_sales = bucket.records("sales")
        month_revenue = revenue(month_sales)
        month_cogs = cost_of_goods(month_sales)
        gross = month_revenue - month_cogs
        operating = expenses_total(bucket.records("expenses"))
        cash_out = operating + month_cogs
        net_cash_flow = month_revenue - cash_out
        balance += net_cash_flow
        series.append(
            ReportMonth(
                month=bucket.label,
                month_short=bucket.month,
                start=bucket.start,
                end=bucket.end,
                revenue=month_revenue,
                cost_of_goods=month_cogs,
                gross_profit=gross,
                operating_expenses=operating,
                net_profit=gross - operating,
                cash_in=month_revenue,
                cash_out=cash_out,
                net_cash_flow=net_cash_flow,
                balance=balance,
            )
        )
    return series


def profit_and_loss_totals(series: list[ReportMonth]) -> ProfitLossTotals:
    """Sum the monthly series and derive margins and revenue shares."""
    total_revenue = sum_amounts(m.revenue for m in series)
    total_cogs = sum_amounts(m.cost_of_goods for m in series)
    total_gross = sum_amounts(m.gross_profit for m in series)
    total_operating = sum_amounts(m.operating_expenses for m in series)
    total_net = sum_amounts(m.net_profit for m in series)
    return ProfitLossTotals(
        revenue=total_revenue,
        cost_of_goods=total_cogs,
        gross_profit=total_gross,
        operating_expenses=total_operating,
        net_profit=total_net,
        gross_margin=share_pct(total_gross, total_revenue),
        net_margin=share_pct(total_net, total_revenue),
        cost_of_goods_share=share_pct(total_cogs, total_revenue),
        operating_expenses_share=share_pct(total_operating, total_revenue),
    )


def cash_flow_totals(series: list[ReportMonth]) -> CashFlowTotals:
    """Sum cash in / cash out / net cash flow over the monthly series."""
    return CashFlowTotals(
        cash_in=sum_amounts(m.cash_in for m in series),
        cash_out=sum_amounts(m.cash_out for m in series),
        net_cash_flow=sum_amounts(m.net_cash_flow for m in series),
    )


def build_report_view(
    data: ReportData,
    now: DateLike,
    *,
    options: ReportOptions = ReportOptions(),
    labels: Labels = Labels(),
) -> ReportView:
    """
    Build the report view-model from fetched rows.

    Parameters
    ----------
    data :
        Row sets as returned by the store. Any of them may be ``None``.
        ``sale_items`` is expected to cover all time.
    now :
        Reference date; its month closes the report window.
    options :
        Report window length and chart panel size.
    labels :
        Sentinel display labels.
    """
    # Join step: store rows -> typed records.
    sales = records_from_rows(data.sales, SaleRecord.from_row)
    expenses = records_from_rows(data.expenses, ExpenseRecord.from_row)
    items = records_from_rows(data.sale_items, SaleLineItem.from_row)

    series = build_monthly_series(sales, expenses, now, options.months)

    products = product_performance(items)

    breakdown = expenses_by_category(
        filter_by_period(expenses, current_month(now)),
        order="amount",
        uncategorized_label=labels.uncategorized,
        fallback_color=labels.fallback_color,
    )

    return ReportView(
        as_of=iso_day(now),
        months=series,
        profit_and_loss=profit_and_loss_totals(series),
        cash_flow=cash_flow_totals(series),
        products=products,
        product_chart=products[: options.chart_top_products],
        product_summary=summarize_products(products),
        expense_breakdown=breakdown,
    )


def load_report(
    store: DataStore,
    now: DateLike,
    config: Optional[AppConfig] = None,
) -> ReportView:
    """
    Fetch the report rows from ``store`` and build the view-model.

    A failing query contributes no rows; the report is still produced.
    """
    options = config.report if config is not None else ReportOptions()
    labels = config.labels if config is not None else Labels()
    fetch = config.fetch if config is not None else FetchOptions()

    since = window_start(now, options.months)
    logger.info("Building report as of %s (window since %s)", iso_day(now), since)

    rows = fetch_all(
        {
            "sales": lambda: store.sales_between(since),
            "expenses": lambda: store.expenses_between(since),
            "sale_items": lambda: store.sale_items_between(),
        },
        max_workers=fetch.max_workers,
        timeout=fetch.timeout_seconds,
    )
    return build_report_view(
        ReportData(**rows),
        now,
        options=options,
        labels=labels,
    )
