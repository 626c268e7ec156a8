from datetime import date, datetime

import pytest

from smb_pulse.records import (
    Category,
    CategoryType,
    ExpenseRecord,
    PaymentMethod,
    Product,
    SaleLineItem,
    SaleRecord,
    records_from_rows,
    to_iso_date,
)


def test_to_iso_date() -> None:
    assert to_iso_date(None) == ""
    assert to_iso_date(date(2026, 1, 5)) == "2026-01-05"
    assert to_iso_date(datetime(2026, 1, 5, 23, 0)) == "2026-01-05"
    assert to_iso_date("2026-01-05T10:00:00Z") == "2026-01-05"


def test_sale_profit_defaults_to_amount_minus_cost() -> None:
    sale = SaleRecord.from_row({"date": "2026-01-01", "total_amount": "50", "total_cost": 20})
    assert sale.profit == 30.0

    loss = SaleRecord.from_row({"date": "2026-01-01", "total_amount": 10, "profit": -5})
    assert loss.profit == -5.0


def test_payment_method_is_parsed_leniently() -> None:
    cash = SaleRecord.from_row({"payment_method": "Cash"})
    unknown = SaleRecord.from_row({"payment_method": "barter"})

    assert cash.payment_method is PaymentMethod.CASH
    assert unknown.payment_method is None


def test_line_item_subtotal_defaults_to_price_times_quantity() -> None:
    item = SaleLineItem.from_row(
        {"quantity": 3, "unit_price": 4, "discount": 2, "product": {"id": "p1", "name": "Mug"}}
    )

    assert item.subtotal == 10.0
    assert item.product_id == "p1"
    assert item.product.name == "Mug"


def test_expense_category_join() -> None:
    joined = ExpenseRecord.from_row({"amount": 5, "category": {"name": "Rent"}})
    nameless = ExpenseRecord.from_row({"amount": 5, "category": {"name": " "}})
    missing = ExpenseRecord.from_row({"amount": 5, "category": None})

    assert joined.category.name == "Rent"
    assert nameless.category is None
    assert missing.category is None


def test_category_type_validation() -> None:
    assert Category.from_row({"name": "Food", "type": "Product"}).type is CategoryType.PRODUCT
    with pytest.raises(ValueError):
        Category.from_row({"name": "X", "type": "asset"})


def test_product_unit_margin() -> None:
    assert Product.from_row({"cost_price": 2, "sale_price": 5}).margin == pytest.approx(0.6)
    assert Product.from_row({"cost_price": 2}).margin == 0.0


def test_records_from_rows_handles_none() -> None:
    assert records_from_rows(None, SaleRecord.from_row) == []
