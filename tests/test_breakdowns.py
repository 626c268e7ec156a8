import pytest

from smb_pulse.breakdowns import (
    ProductTotal,
    category_slices,
    expenses_by_category,
    product_performance,
    summarize_products,
)
from smb_pulse.records import ExpenseRecord, SaleLineItem


def _expense(amount, category=None, color=None) -> ExpenseRecord:
    row = {"date": "2026-01-10", "amount": amount, "created_at": ""}
    if category is not None:
        row["category"] = {"name": category, "color": color}
    return ExpenseRecord.from_row(row)


def _item(product_id, name, quantity, unit_price, unit_cost=0.0) -> SaleLineItem:
    return SaleLineItem.from_row(
        {
            "product_id": product_id,
            "quantity": quantity,
            "unit_price": unit_price,
            "unit_cost": unit_cost,
            "product": {"id": product_id, "name": name} if product_id else None,
        }
    )


def test_expenses_by_category_preserves_total() -> None:
    expenses = [
        _expense(10.0, "Rent", "#ff0000"),
        _expense(2.5, "Supplies"),
        _expense(7.5, "Rent"),
        _expense(4.0),
    ]

    totals = expenses_by_category(expenses)

    assert sum(t.amount for t in totals) == pytest.approx(24.0)
    assert [(t.category, t.amount) for t in totals] == [
        ("Rent", 17.5),
        ("Supplies", 2.5),
        ("Uncategorized", 4.0),
    ]


def test_uncategorized_and_fallback_color() -> None:
    totals = expenses_by_category(
        [_expense(5.0), _expense(1.0, "Fuel")],
        uncategorized_label="Other",
        fallback_color="#000000",
    )

    assert totals[0].category == "Other"
    assert totals[0].color == "#000000"
    assert totals[1].color == "#000000"


def test_category_color_comes_from_first_record() -> None:
    totals = expenses_by_category([_expense(1.0, "Rent", "#123456")])
    assert totals[0].color == "#123456"


def test_amount_order_is_descending_and_stable() -> None:
    expenses = [
        _expense(5.0, "A"),
        _expense(9.0, "B"),
        _expense(5.0, "C"),
        _expense(1.0, "D"),
    ]

    ranked = expenses_by_category(expenses, order="amount")

    # A and C tie: first-encountered order is kept.
    assert [t.category for t in ranked] == ["B", "A", "C", "D"]


def test_unknown_order_is_rejected() -> None:
    with pytest.raises(ValueError):
        expenses_by_category([], order="alphabetical")


def test_empty_expenses_give_empty_breakdown() -> None:
    assert expenses_by_category(None) == []
    assert category_slices([]) == []


def test_category_slices_shares_sum_to_100() -> None:
    slices = category_slices(
        expenses_by_category([_expense(30.0, "A"), _expense(10.0, "B")])
    )

    assert [s.share for s in slices] == [pytest.approx(75.0), pytest.approx(25.0)]
    assert sum(s.share for s in slices) == pytest.approx(100.0)


def test_product_performance_ranks_by_revenue() -> None:
    items = [
        _item("p1", "Mug", 2, 5.0, unit_cost=2.0),  # revenue 10
        _item("p2", "Tee", 1, 25.0, unit_cost=10.0),  # revenue 25
        _item("p1", "Mug", 1, 5.0, unit_cost=2.0),  # revenue 5 -> 15 total
        _item(None, "ignored", 10, 100.0),  # no product join
    ]

    ranked = product_performance(items)

    assert [p.id for p in ranked] == ["p2", "p1"]
    mug = ranked[1]
    assert mug.name == "Mug"
    assert mug.total_sold == 3
    assert mug.revenue == pytest.approx(15.0)
    assert mug.cost == pytest.approx(6.0)
    assert mug.profit == pytest.approx(9.0)
    assert mug.margin == pytest.approx(60.0)


def test_product_performance_ties_keep_first_seen_order() -> None:
    items = [_item("a", "A", 1, 10.0), _item("b", "B", 1, 10.0), _item("c", "C", 1, 10.0)]
    assert [p.id for p in product_performance(items)] == ["a", "b", "c"]


def test_top_k_is_a_prefix_of_the_full_ranking() -> None:
    items = [_item(f"p{i}", f"P{i}", 1, float(i)) for i in range(1, 8)]

    full = product_performance(items)
    top3 = product_performance(items, top=3)

    assert top3 == full[:3]
    assert [p.id for p in top3] == ["p7", "p6", "p5"]
    assert product_performance(items, top=0) == []


def test_summarize_products() -> None:
    products = [
        ProductTotal(id="a", name="A", total_sold=1, revenue=100.0, cost=60.0, profit=40.0),
        ProductTotal(id="b", name="B", total_sold=1, revenue=50.0, cost=40.0, profit=10.0),
    ]

    summary = summarize_products(products)

    assert summary.total_revenue == pytest.approx(150.0)
    assert summary.total_profit == pytest.approx(50.0)
    assert summary.average_margin == pytest.approx(30.0)  # (40% + 20%) / 2


def test_summarize_no_products() -> None:
    summary = summarize_products([])
    assert (summary.total_revenue, summary.total_profit, summary.average_margin) == (
        0.0,
        0.0,
        0.0,
    )
