from datetime import date

import pytest

from smb_pulse.config import DashboardOptions, Labels
from smb_pulse.dashboard import (
    DashboardData,
    build_dashboard_view,
    history_start,
    load_dashboard,
)

NOW = date(2026, 1, 20)


def test_single_month_example() -> None:
    """One sale and one expense in January 2026, one-month window."""
    data = DashboardData(
        sales=[
            {
                "date": "2026-01-05",
                "total_amount": 100,
                "total_cost": 40,
                "created_at": "2026-01-05T09:00:00Z",
            }
        ],
        expenses=[
            {
                "date": "2026-01-10",
                "amount": 20,
                "category": {"name": "Rent"},
                "created_at": "2026-01-10T09:00:00Z",
            }
        ],
    )

    view = build_dashboard_view(data, NOW, options=DashboardOptions(months=1))

    assert len(view.monthly) == 1
    point = view.monthly[0]
    assert (point.month, point.revenue, point.expenses, point.profit) == (
        "Jan",
        100.0,
        20.0,
        80.0,
    )
    assert view.stats.total_revenue == 100.0
    assert view.stats.total_expenses == 20.0
    assert view.stats.profit == 80.0
    assert view.stats.profit_margin == pytest.approx(80.0)
    assert view.as_of == "2026-01-20"


def test_no_previous_revenue_gives_zero_change() -> None:
    data = DashboardData(sales=[{"date": "2026-01-02", "total_amount": 500}])

    view = build_dashboard_view(data, NOW)

    assert view.stats.revenue_change == 0.0
    assert view.stats.expenses_change == 0.0
    assert view.stats.profit_change == 0.0


def test_month_over_month_deltas_span_the_year_boundary() -> None:
    data = DashboardData(
        sales=[
            {"date": "2025-12-10", "total_amount": 200},
            {"date": "2026-01-10", "total_amount": 300},
        ],
        expenses=[
            {"date": "2025-12-11", "amount": 100},
            {"date": "2026-01-11", "amount": 50},
        ],
    )

    stats = build_dashboard_view(data, NOW).stats

    assert stats.revenue_change == pytest.approx(50.0)
    assert stats.expenses_change == pytest.approx(-50.0)
    assert stats.profit_change == pytest.approx(150.0)  # 100 -> 250


def test_all_inputs_missing_yield_zero_view() -> None:
    view = build_dashboard_view(DashboardData(), NOW)

    assert view.stats.total_revenue == 0.0
    assert view.stats.profit_margin == 0.0
    assert len(view.monthly) == 6
    assert all(p.revenue == p.expenses == p.profit == 0.0 for p in view.monthly)
    assert view.expenses_by_category == []
    assert view.top_products == []
    assert view.recent_transactions == []


def test_trend_window_is_six_months_oldest_first() -> None:
    view = build_dashboard_view(DashboardData(), NOW)
    assert [p.label for p in view.monthly] == [
        "Aug 2025",
        "Sep 2025",
        "Oct 2025",
        "Nov 2025",
        "Dec 2025",
        "Jan 2026",
    ]


def test_category_breakdown_is_current_month_in_insertion_order() -> None:
    data = DashboardData(
        expenses=[
            {"date": "2025-12-31", "amount": 999, "category": {"name": "Old"}},
            {"date": "2026-01-02", "amount": 10, "category": {"name": "Supplies"}},
            {"date": "2026-01-03", "amount": 30, "category": {"name": "Rent"}},
            {"date": "2026-01-04", "amount": 10},
        ]
    )

    slices = build_dashboard_view(
        data, NOW, labels=Labels(uncategorized="Misc")
    ).expenses_by_category

    assert [s.category for s in slices] == ["Supplies", "Rent", "Misc"]
    assert [s.share for s in slices] == [
        pytest.approx(20.0),
        pytest.approx(60.0),
        pytest.approx(20.0),
    ]


def test_top_products_and_recent_feed_are_truncated() -> None:
    items = [
        {
            "product_id": f"p{i}",
            "quantity": 1,
            "unit_price": float(i),
            "product": {"id": f"p{i}", "name": f"Product {i}"},
        }
        for i in range(1, 9)
    ]
    recent_sales = [
        {"date": "2026-01-10", "total_amount": 1, "created_at": f"2026-01-10T0{h}:00:00Z"}
        for h in range(4)
    ]
    recent_expenses = [
        {"date": "2026-01-10", "amount": 1, "created_at": f"2026-01-10T1{h}:00:00Z"}
        for h in range(4)
    ]

    view = build_dashboard_view(
        DashboardData(
            sale_items=items,
            recent_sales=recent_sales,
            recent_expenses=recent_expenses,
        ),
        NOW,
        options=DashboardOptions(top_products=3, recent_transactions=5),
    )

    assert [p.id for p in view.top_products] == ["p8", "p7", "p6"]
    assert len(view.recent_transactions) == 5
    assert [a.kind for a in view.recent_transactions] == ["expense"] * 4 + ["sale"]


def test_history_start_covers_previous_month() -> None:
    assert history_start(NOW, 6) == "2025-08-01"
    assert history_start(NOW, 1) == "2025-12-01"


class FakeStore:
    """In-memory DataStore recording the bounds it was queried with."""

    def __init__(self, fail=()):
        self.calls = {}
        self.fail = set(fail)

    def _answer(self, name, rows, *args):
        self.calls[name] = args
        if name in self.fail:
            raise RuntimeError(f"{name} unavailable")
        return rows

    def sales_between(self, start, end=None):
        return self._answer(
            "sales", [{"date": "2026-01-05", "total_amount": 100}], start, end
        )

    def expenses_between(self, start, end=None):
        return self._answer("expenses", [{"date": "2026-01-06", "amount": 30}], start, end)

    def sale_items_between(self, start=None, end=None):
        return self._answer("sale_items", [], start, end)

    def recent_sales(self, limit):
        return self._answer("recent_sales", [], limit)

    def recent_expenses(self, limit):
        return self._answer("recent_expenses", None, limit)


def test_load_dashboard_queries_the_store() -> None:
    store = FakeStore()

    view = load_dashboard(store, NOW)

    assert store.calls["sales"] == ("2025-08-01", None)
    assert store.calls["expenses"] == ("2025-08-01", None)
    assert store.calls["sale_items"] == ("2026-01-01", "2026-01-31")
    assert store.calls["recent_sales"] == (5,)
    assert view.stats.total_revenue == 100.0
    assert view.stats.profit == 70.0


def test_load_dashboard_survives_a_failing_query() -> None:
    store = FakeStore(fail={"expenses"})

    view = load_dashboard(store, NOW)

    assert view.stats.total_revenue == 100.0
    assert view.stats.total_expenses == 0.0
    assert view.expenses_by_category == []
