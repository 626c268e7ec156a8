# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
Category and product aggregation.

1. Expenses by category
   --------------------
   Expenses are grouped by the *display name* of their joined category.
   Expenses without a category are grouped under the "Uncategorized"
   sentinel with the fallback colour. The colour of a group is the one of
   the first expense seen for that name.

   Two orders are supported because two screens use them:

   - ``"insertion"``: groups in first-encountered order (dashboard pie),
   - ``"amount"``: groups by descending amount (report breakdown).

   The sum of the group amounts always equals the sum of the input amounts.

2. Products from sale line-items
   -----------------------------
   Line-items are grouped by product id. Items whose product join is
   missing are skipped (there is nothing to label them with). For each
   product: quantity sold, revenue (sum of subtotals), cost (unit cost x
   quantity), profit (revenue - cost) and margin (profit / revenue x 100).

   Products are ranked by descending revenue. Ties keep the order in which
   products were first encountered (Python's sort is stable, including with
   ``reverse=True``), and top-K truncation is a plain prefix of that ranking.
"""

import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import Literal, Optional

from .measures import line_item_cost, to_amount
from .ratios import average, profit_margin, share_pct
from .records import DEFAULT_CATEGORY_COLOR, ExpenseRecord, SaleLineItem

UNCATEGORIZED = "Uncategorized"

CategoryOrder = Literal["insertion", "amount"]


@dataclass(frozen=True)
class CategoryTotal:
    """Total expense amount for one category display name."""

    category: str
    amount: float
    color: str


@dataclass(frozen=True)
class CategorySlice:
    """A category total with its share of the overall amount (pie chart)."""

    category: str
    amount: float
    color: str
    share: float


@dataclass(frozen=True)
class ProductTotal:
    """Sales performance of one product over a set of line-items."""

    id: str
    name: str
    total_sold: float
    revenue: float
    cost: float
    profit: float

    @property
    def margin(self) -> float:
        """Profit as a percentage of revenue (0 without revenue)."""
        return profit_margin(self.profit, self.revenue)


@dataclass(frozen=True)
class ProductSummary:
    """Totals over a product ranking (report products tab)."""

    total_revenue: float
    total_profit: float
    average_margin: float


def expenses_by_category(
    expenses: Optional[Iterable[ExpenseRecord]],
    *,
    order: CategoryOrder = "insertion",
    uncategorized_label: str = UNCATEGORIZED,
    fallback_color: str = DEFAULT_CATEGORY_COLOR,
) -> list[CategoryTotal]:
    """
    Sum expense amounts per resolved category name.

    Parameters
    ----------
    expenses :
        Expense records, optionally joined to a category. ``None`` counts as
        an empty list.
    order :
        ``"insertion"`` keeps first-encountered order, ``"amount"`` sorts by
        descending amount (stable for equal amounts).
    uncategorized_label, fallback_color :
        Sentinels used when an expense has no category, or a category has no
        colour.
    """
    if order not in ("insertion", "amount"):
        raise ValueError(f"Unknown category order: {order!r}")

    amounts: dict[str, list[float]] = {}
    colors: dict[str, str] = {}
    for expense in expenses or []:
        category = expense.category
        if category is not None and category.name:
            name = category.name
        else:
            name = uncategorized_label
        if name not in amounts:
            amounts[name] = []
            color = category.color if category is not None else None
            colors[name] = color or fallback_color
        amounts[name].append(to_amount(expense.amount))

    totals = [
        CategoryTotal(category=name, amount=sum_exact(values), color=colors[name])
        for name, values in amounts.items()
    ]
    if order == "amount":
        totals = sorted(totals, key=lambda t: t.amount, reverse=True)
    return totals


def sum_exact(values: list[float]) -> float:
    """Order-independent float sum."""
    return math.fsum(values)


def category_slices(totals: Iterable[CategoryTotal]) -> list[CategorySlice]:
    """Attach each category's share of the overall amount, keeping order."""
    items = list(totals)
    overall = sum_exact([t.amount for t in items])
    return [
        CategorySlice(
            category=t.category,
            amount=t.amount,
            color=t.color,
            share=share_pct(t.amount, overall),
        )
        for t in items
    ]


def product_performance(
    items: Optional[Iterable[SaleLineItem]],
    *,
    top: Optional[int] = None,
) -> list[ProductTotal]:
    """
    Aggregate line-items per product and rank by descending revenue.

    Parameters
    ----------
    items :
        Sale line-items joined to their product. Items without a product
        join are ignored. ``None`` counts as an empty list.
    top :
        Keep only the first ``top`` products of the ranking. ``None`` keeps
        all of them.
    """
    if top is not None and top < 0:
        raise ValueError(f"top must be positive or None (got {top}).")

    names: dict[str, str] = {}
    sold: dict[str, list[float]] = {}
    revenue: dict[str, list[float]] = {}
    cost: dict[str, list[float]] = {}

    for item in items or []:
        product = item.product
        if product is None:
            continue
        key = product.id
        if key not in names:
            names[key] = product.name
            sold[key] = []
            revenue[key] = []
            cost[key] = []
        sold[key].append(to_amount(item.quantity))
        revenue[key].append(to_amount(item.subtotal))
        cost[key].append(line_item_cost(item))

    totals = []
    for key, name in names.items():
        product_revenue = sum_exact(revenue[key])
        product_cost = sum_exact(cost[key])
        totals.append(
            ProductTotal(
                id=key,
                name=name,
                total_sold=sum_exact(sold[key]),
                revenue=product_revenue,
                cost=product_cost,
                profit=product_revenue - product_cost,
            )
        )

    ranked = sorted(totals, key=lambda p: p.revenue, reverse=True)
    if top is not None:
        ranked = ranked[:top]
    return ranked


def summarize_products(products: Iterable[ProductTotal]) -> ProductSummary:
    """Total revenue, total profit and mean margin over a ranking."""
    items = list(products)
    return ProductSummary(
        total_revenue=sum_exact([p.revenue for p in items]),
        total_profit=sum_exact([p.profit for p in items]),
        average_margin=average(p.margin for p in items),
    )
