# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.

"""
I/O module for SMB Pulse.

This module reads business records from CSV files and feeds them into the
store. One CSV file holds one kind of record.

Expected input formats
----------------------

Column names are case-insensitive and surrounding whitespace is ignored.
Required columns per kind:

    categories:  name
    products:    name, cost_price, sale_price
    sales:       date, total_amount
    sale_items:  sale_id, product_id, quantity, unit_price
    expenses:    date, amount

Optional columns are passed through when present:

    categories:  id, type, color, is_system
    products:    id, sku, category_id, is_active
    sales:       id, total_cost, profit, channel, payment_method,
                 customer_name, notes, created_at
    sale_items:  id, unit_cost, discount, subtotal
    expenses:    id, category_id, supplier, description, payment_method,
                 tax_amount, is_recurring, created_at

Any other column is ignored. Empty cells become ``None``.

Dates (``date`` columns) must parse as dates; amounts must be numeric. A
file that breaks either rule, or misses a required column, raises a clear
ValueError before anything is written to the store. Category types must be
expense, product or both.

An import runs in one store transaction, so a file is either imported in
full or not at all.
"""

import logging
import os
from collections.abc import Iterable, Mapping
from typing import Any, Union

import pandas as pd

from .store import SQLiteStore

logger = logging.getLogger(__name__)

REQUIRED_COLUMNS: dict[str, tuple[str, ...]] = {
    "categories": ("name",),
    "products": ("name", "cost_price", "sale_price"),
    "sales": ("date", "total_amount"),
    "sale_items": ("sale_id", "product_id", "quantity", "unit_price"),
    "expenses": ("date", "amount"),
}

OPTIONAL_COLUMNS: dict[str, tuple[str, ...]] = {
    "categories": ("id", "type", "color", "is_system"),
    "products": ("id", "sku", "category_id", "is_active"),
    "sales": (
        "id",
        "total_cost",
        "profit",
        "channel",
        "payment_method",
        "customer_name",
        "notes",
        "created_at",
    ),
    "sale_items": ("id", "unit_cost", "discount", "subtotal"),
    "expenses": (
        "id",
        "category_id",
        "supplier",
        "description",
        "payment_method",
        "tax_amount",
        "is_recurring",
        "created_at",
    ),
}

NUMERIC_COLUMNS = {
    "cost_price",
    "sale_price",
    "total_amount",
    "total_cost",
    "profit",
    "quantity",
    "unit_price",
    "unit_cost",
    "discount",
    "subtotal",
    "amount",
    "tax_amount",
}

RECORD_KINDS = tuple(REQUIRED_COLUMNS)


def _cell(value: Any) -> Any:
    """Turn pandas missing values into None."""
    if value is None or isinstance(value, str):
        return value
    if pd.isna(value):
        return None
    return value


def read_records_csv(
    path: Union[str, "os.PathLike[str]"], kind: str
) -> list[dict[str, Any]]:
    """
    Read records of one kind from a CSV file.

    Parameters
    ----------
    path:
        Path to the CSV file.
    kind:
        One of ``categories``, ``products``, ``sales``, ``sale_items``,
        ``expenses``.

    Returns
    -------
    list[dict]
        One dict per CSV row, restricted to the known columns of ``kind``.
        Dates are normalised to ``YYYY-MM-DD`` strings and numeric columns
        to floats.

    Raises
    ------
    ValueError
        If ``kind`` is unknown, a required column is missing, or a date /
        numeric column holds an invalid value.
    """
    if kind not in REQUIRED_COLUMNS:
        raise ValueError(
            f"Unknown record kind {kind!r}. Expected one of: "
            + ", ".join(RECORD_KINDS)
        )

    df = pd.read_csv(path, dtype=str, keep_default_na=True)
    df.columns = [str(c).lower().strip() for c in df.columns]

    required = REQUIRED_COLUMNS[kind]
    missing = [c for c in required if c not in df.columns]
    if missing:
        raise ValueError(
            f"Invalid {kind} CSV structure: missing column(s) "
            + ", ".join(missing)
            + ". Required: "
            + ", ".join(required)
            + " (column names are case-insensitive)."
        )

    keep = [c for c in required + OPTIONAL_COLUMNS[kind] if c in df.columns]
    d = df[keep].copy()

    for col in keep:
        d[col] = d[col].map(lambda v: v.strip() if isinstance(v, str) else v)

    if "date" in d.columns:
        try:
            d["date"] = pd.to_datetime(d["date"], errors="raise").dt.strftime(
                "%Y-%m-%d"
            )
        except Exception as exc:  # noqa: BLE001
            raise ValueError("Invalid values in 'date' column.") from exc
        if d["date"].isna().any():
            raise ValueError("Missing values in required 'date' column.")

    for col in keep:
        if col not in NUMERIC_COLUMNS:
            continue
        raw = d[col]
        parsed = pd.to_numeric(raw, errors="coerce")
        # Empty cells are allowed for optional numbers; garbage is not.
        if (parsed.isna() & raw.notna()).any():
            raise ValueError(f"Invalid numeric values in '{col}' column.")
        if col in required and parsed.isna().any():
            raise ValueError(f"Missing values in required '{col}' column.")
        d[col] = parsed

    rows = [
        {key: _cell(value) for key, value in record.items()}
        for record in d.astype(object).to_dict(orient="records")
    ]
    logger.debug("Read %d %s row(s) from %s", len(rows), kind, path)
    return rows


def _truthy(value: Any) -> bool:
    if value is None:
        return False
    return str(value).strip().lower() in {"1", "true", "yes", "y"}


def _import_row(store: SQLiteStore, kind: str, row: Mapping[str, Any]) -> str:
    if kind == "categories":
        return store.add_category(
            str(row["name"]),
            category_type=row.get("type") or "expense",
            color=row.get("color"),
            is_system=_truthy(row.get("is_system")),
            id=row.get("id"),
        )
    if kind == "products":
        is_active = row.get("is_active")
        return store.add_product(
            str(row["name"]),
            cost_price=row.get("cost_price"),
            sale_price=row.get("sale_price"),
            sku=row.get("sku"),
            category_id=row.get("category_id"),
            is_active=True if is_active is None else _truthy(is_active),
            id=row.get("id"),
        )
    if kind == "sales":
        return store.add_sale(
            row["date"],
            total_amount=row.get("total_amount"),
            total_cost=row.get("total_cost"),
            profit=row.get("profit"),
            channel=row.get("channel"),
            payment_method=row.get("payment_method"),
            customer_name=row.get("customer_name"),
            notes=row.get("notes"),
            created_at=row.get("created_at"),
            id=row.get("id"),
        )
    if kind == "sale_items":
        return store.add_sale_item(str(row["sale_id"]), row)
    if kind == "expenses":
        return store.add_expense(
            row["date"],
            row.get("amount"),
            category_id=row.get("category_id"),
            supplier=row.get("supplier"),
            description=row.get("description"),
            payment_method=row.get("payment_method"),
            tax_amount=row.get("tax_amount"),
            is_recurring=_truthy(row.get("is_recurring")),
            created_at=row.get("created_at"),
            id=row.get("id"),
        )
    raise ValueError(f"Unknown record kind {kind!r}.")


def import_records(
    store: SQLiteStore, kind: str, rows: Iterable[Mapping[str, Any]]
) -> int:
    """
    Insert ``rows`` of the given kind into ``store``.

    Rows are inserted in file order, all in one transaction: if any row is
    rejected, none of them is kept. Returns the number of rows inserted.

    Raises
    ------
    ValueError
        If ``kind`` is unknown or a row holds an invalid value.
    StoreError
        If the database rejects the batch (e.g. unknown ``sale_id``).
    """
    if kind not in REQUIRED_COLUMNS:
        raise ValueError(
            f"Unknown record kind {kind!r}. Expected one of: "
            + ", ".join(RECORD_KINDS)
        )
    count = 0
    with store.batch():
        for row in rows:
            _import_row(store, kind, row)
            count += 1
    logger.info("Imported %d %s row(s)", count, kind)
    return count
