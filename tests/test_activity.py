import pytest

from smb_pulse.activity import ExpenseActivity, SaleActivity, merge_recent
from smb_pulse.records import ExpenseRecord, SaleRecord


def _sale(created_at, customer=None, amount=10.0) -> SaleRecord:
    return SaleRecord.from_row(
        {
            "date": created_at[:10],
            "total_amount": amount,
            "created_at": created_at,
            "customer_name": customer,
        }
    )


def _expense(created_at, supplier=None, category=None, amount=5.0) -> ExpenseRecord:
    return ExpenseRecord.from_row(
        {
            "date": created_at[:10],
            "amount": amount,
            "created_at": created_at,
            "supplier": supplier,
            "category": {"name": category} if category else None,
        }
    )


def test_merge_keeps_most_recent_across_both_kinds() -> None:
    """5 sales + 5 expenses: the feed holds the 5 newest overall."""
    sales = [_sale(f"2026-01-{d:02d}T10:00:00Z") for d in (20, 18, 16, 14, 12)]
    expenses = [_expense(f"2026-01-{d:02d}T10:00:00Z") for d in (19, 17, 15, 13, 11)]

    feed = merge_recent(sales, expenses, limit=5)

    assert [a.created_at[:10] for a in feed] == [
        "2026-01-20",
        "2026-01-19",
        "2026-01-18",
        "2026-01-17",
        "2026-01-16",
    ]
    assert [a.kind for a in feed] == ["sale", "expense", "sale", "expense", "sale"]


def test_merge_sorts_unordered_input() -> None:
    sales = [_sale("2026-01-01T08:00:00"), _sale("2026-01-03T08:00:00")]
    expenses = [_expense("2026-01-02T08:00:00")]

    feed = merge_recent(sales, expenses, limit=10)

    assert [a.date for a in feed] == ["2026-01-03", "2026-01-02", "2026-01-01"]


def test_mixed_timezone_formats_compare_as_instants() -> None:
    sale = _sale("2026-01-01T10:00:00+02:00")  # 08:00 UTC
    expense = _expense("2026-01-01T09:00:00Z")

    feed = merge_recent([sale], [expense])

    assert isinstance(feed[0], ExpenseActivity)
    assert isinstance(feed[1], SaleActivity)


def test_descriptions_and_fallback_labels() -> None:
    feed = merge_recent(
        [_sale("2026-01-05T00:00:00", customer="Alice"), _sale("2026-01-04T00:00:00")],
        [
            _expense("2026-01-03T00:00:00", supplier="ACME", category="Rent"),
            _expense("2026-01-02T00:00:00", category="Rent"),
            _expense("2026-01-01T00:00:00"),
        ],
        limit=10,
        sale_label="Sale",
        expense_label="Expense",
    )

    assert [a.description for a in feed] == ["Alice", "Sale", "ACME", "Rent", "Expense"]


def test_amount_follows_the_record_kind() -> None:
    feed = merge_recent(
        [_sale("2026-01-02T00:00:00", amount=99.0)],
        [_expense("2026-01-01T00:00:00", amount=12.0)],
    )
    assert [a.amount for a in feed] == [99.0, 12.0]


def test_empty_inputs_and_limits() -> None:
    assert merge_recent(None, None) == []
    assert merge_recent([_sale("2026-01-01T00:00:00")], [], limit=0) == []
    with pytest.raises(ValueError):
        merge_recent([], [], limit=-1)
