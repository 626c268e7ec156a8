# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
View utilities for SMB Pulse.

This module turns the dashboard and report view-models into pandas
DataFrames ready for console display (``to_string``) or CSV export
(``to_csv``). It holds no business logic: every number is computed by the
orchestrators, and rounding only happens here, at display time.

Each helper returns a DataFrame with a fixed column order, including when
the input is empty, so that exported CSV files always share the same header.
"""

import math
from collections.abc import Iterable
from typing import Union

import pandas as pd

from .activity import Activity
from .breakdowns import CategorySlice, CategoryTotal, ProductSummary, ProductTotal
from .dashboard import DashboardStats, MonthlyPoint
from .reports import CashFlowTotals, ProfitLossTotals, ReportMonth

STATS_COLUMNS = ["key", "label", "value", "unit"]
MONTHLY_COLUMNS = ["month", "label", "start", "end", "revenue", "expenses", "profit"]
CATEGORY_COLUMNS = ["category", "amount", "share_pct", "color"]
PRODUCT_COLUMNS = [
    "rank",
    "product_id",
    "name",
    "total_sold",
    "revenue",
    "cost",
    "profit",
    "margin_pct",
]
ACTIVITY_COLUMNS = ["kind", "date", "created_at", "description", "amount"]
REPORT_MONTH_COLUMNS = [
    "month",
    "start",
    "end",
    "revenue",
    "cost_of_goods",
    "gross_profit",
    "operating_expenses",
    "net_profit",
    "cash_in",
    "cash_out",
    "net_cash_flow",
    "balance",
]


def format_amount(value: float, currency: str = "", decimals: int = 2) -> str:
    """Format an amount with thousands separators, e.g. ``1,234.50 EUR``."""
    if not math.isfinite(value):
        value = 0.0
    text = f"{value:,.{decimals}f}"
    return f"{text} {currency}" if currency else text


def format_percent_change(value: float, decimals: int = 1) -> str:
    """Format a percentage with an explicit sign: ``+12.5%`` / ``-3.0%``."""
    if not math.isfinite(value):
        value = 0.0
    rounded = round(value, decimals)
    if rounded == 0:
        rounded = 0.0  # no "-0.0%"
    sign = "+" if rounded >= 0 else ""
    return f"{sign}{rounded:.{decimals}f}%"


def _round(value: float, decimals: int) -> float:
    return round(value, decimals) if math.isfinite(value) else 0.0


def stats_to_dataframe(stats: DashboardStats, decimals: int = 1) -> pd.DataFrame:
    """
    Convert the dashboard headline numbers into a key/label/value table.

    Amounts are rounded to 2 decimals, percentages to ``decimals``.
    """
    rows = [
        ("total_revenue", "Revenue", _round(stats.total_revenue, 2), "amount"),
        ("total_expenses", "Expenses", _round(stats.total_expenses, 2), "amount"),
        ("profit", "Profit", _round(stats.profit, 2), "amount"),
        (
            "profit_margin",
            "Profit margin",
            _round(stats.profit_margin, decimals),
            "percent",
        ),
        (
            "revenue_change",
            "Revenue vs last month",
            _round(stats.revenue_change, decimals),
            "percent",
        ),
        (
            "expenses_change",
            "Expenses vs last month",
            _round(stats.expenses_change, decimals),
            "percent",
        ),
        (
            "profit_change",
            "Profit vs last month",
            _round(stats.profit_change, decimals),
            "percent",
        ),
    ]
    return pd.DataFrame(rows, columns=STATS_COLUMNS)


def monthly_to_dataframe(points: Iterable[MonthlyPoint]) -> pd.DataFrame:
    """Convert the dashboard trend series into a DataFrame, oldest month first."""
    rows = [
        {
            "month": p.month,
            "label": p.label,
            "start": p.start,
            "end": p.end,
            "revenue": _round(p.revenue, 2),
            "expenses": _round(p.expenses, 2),
            "profit": _round(p.profit, 2),
        }
        for p in points
    ]
    return pd.DataFrame(rows, columns=MONTHLY_COLUMNS)


def categories_to_dataframe(
    totals: Iterable[Union[CategoryTotal, CategorySlice]], decimals: int = 1
) -> pd.DataFrame:
    """
    Convert a category breakdown into a DataFrame, keeping its order.

    ``share_pct`` is filled for ``CategorySlice`` inputs (dashboard pie
    chart) and left empty for plain ``CategoryTotal`` rows.
    """
    rows = []
    for t in totals:
        share = (
            _round(t.share, decimals) if isinstance(t, CategorySlice) else float("nan")
        )
        rows.append(
            {
                "category": t.category,
                "amount": _round(t.amount, 2),
                "share_pct": share,
                "color": t.color,
            }
        )
    return pd.DataFrame(rows, columns=CATEGORY_COLUMNS)


def products_to_dataframe(
    products: Iterable[ProductTotal], decimals: int = 1
) -> pd.DataFrame:
    """Convert a product ranking into a DataFrame with 1-based ranks."""
    rows = [
        {
            "rank": rank,
            "product_id": p.id,
            "name": p.name,
            "total_sold": p.total_sold,
            "revenue": _round(p.revenue, 2),
            "cost": _round(p.cost, 2),
            "profit": _round(p.profit, 2),
            "margin_pct": _round(p.margin, decimals),
        }
        for rank, p in enumerate(products, start=1)
    ]
    return pd.DataFrame(rows, columns=PRODUCT_COLUMNS)


def activity_to_dataframe(items: Iterable[Activity]) -> pd.DataFrame:
    """Convert the recent-activity feed into a DataFrame, newest first."""
    rows = [
        {
            "kind": a.kind,
            "date": a.date,
            "created_at": a.created_at,
            "description": a.description,
            "amount": _round(a.amount, 2),
        }
        for a in items
    ]
    return pd.DataFrame(rows, columns=ACTIVITY_COLUMNS)


def report_months_to_dataframe(months: Iterable[ReportMonth]) -> pd.DataFrame:
    """Convert the report monthly series (P&L and cash flow) into a DataFrame."""
    rows = []
    for m in months:
        row: dict[str, object] = {"month": m.month, "start": m.start, "end": m.end}
        for col in REPORT_MONTH_COLUMNS[3:]:
            row[col] = _round(getattr(m, col), 2)
        rows.append(row)
    return pd.DataFrame(rows, columns=REPORT_MONTH_COLUMNS)


def profit_and_loss_to_dataframe(
    totals: ProfitLossTotals, decimals: int = 1
) -> pd.DataFrame:
    """Convert the P&L totals into a key/label/value table."""
    rows = [
        ("revenue", "Revenue", _round(totals.revenue, 2), "amount"),
        ("cost_of_goods", "Cost of goods sold", _round(totals.cost_of_goods, 2), "amount"),
        ("gross_profit", "Gross profit", _round(totals.gross_profit, 2), "amount"),
        (
            "operating_expenses",
            "Operating expenses",
            _round(totals.operating_expenses, 2),
            "amount",
        ),
        ("net_profit", "Net profit", _round(totals.net_profit, 2), "amount"),
        ("gross_margin", "Gross margin", _round(totals.gross_margin, decimals), "percent"),
        ("net_margin", "Net margin", _round(totals.net_margin, decimals), "percent"),
        (
            "cost_of_goods_share",
            "Cost of goods (% of revenue)",
            _round(totals.cost_of_goods_share, decimals),
            "percent",
        ),
        (
            "operating_expenses_share",
            "Operating expenses (% of revenue)",
            _round(totals.operating_expenses_share, decimals),
            "percent",
        ),
    ]
    return pd.DataFrame(rows, columns=STATS_COLUMNS)


def cash_flow_to_dataframe(totals: CashFlowTotals) -> pd.DataFrame:
    """Convert the cash-flow totals into a key/label/value table."""
    rows = [
        ("cash_in", "Cash in", _round(totals.cash_in, 2), "amount"),
        ("cash_out", "Cash out", _round(totals.cash_out, 2), "amount"),
        ("net_cash_flow", "Net cash flow", _round(totals.net_cash_flow, 2), "amount"),
    ]
    return pd.DataFrame(rows, columns=STATS_COLUMNS)


def product_summary_to_dataframe(
    summary: ProductSummary, decimals: int = 1
) -> pd.DataFrame:
    """Convert the product summary into a key/label/value table."""
    rows = [
        ("total_revenue", "Total revenue", _round(summary.total_revenue, 2), "amount"),
        ("total_profit", "Total profit", _round(summary.total_profit, 2), "amount"),
        (
            "average_margin",
            "Average margin",
            _round(summary.average_margin, decimals),
            "percent",
        ),
    ]
    return pd.DataFrame(rows, columns=STATS_COLUMNS)
