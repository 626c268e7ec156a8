# SMB Pulse - Sales & Expenses Dashboard for small businesses
# Copyright (c) 2026 The SMB Pulse contributors
# Licensed under the MIT License. See LICENSE file for details.


"""
Data store for SMB Pulse.

The aggregation core never talks to a database directly: it receives row
sets from a *data store*. This module defines:

- ``DataStore``: the read interface the report orchestrator relies on,
- ``SQLiteStore``: the bundled implementation on top of SQLite,
- ``StoreError``: raised when a store operation fails.

------------------------------------------------------------------------------
Row shapes
------------------------------------------------------------------------------

Every read query returns a list of plain dictionaries with snake_case keys.
Joined relations are nested dictionaries, or ``None`` when the foreign key
is empty:

- sales:       id, date, total_amount, total_cost, profit, channel,
               payment_method, customer_name, notes, created_at
- expenses:    id, date, amount, category_id, supplier, description,
               payment_method, tax_amount, is_recurring, created_at,
               category -> {name, color} | None
- sale items:  id, sale_id, product_id, quantity, unit_price, unit_cost,
               discount, subtotal,
               product -> {id, name, cost_price, sale_price} | None,
               sale -> {date}

Dates are ISO ``YYYY-MM-DD`` strings and timestamps ISO-8601 strings (UTC).

------------------------------------------------------------------------------
Schema Overview
------------------------------------------------------------------------------

1) categories   id, name, type ('expense' | 'product' | 'both'), color,
                is_system, created_at
2) products     id, name, sku, cost_price_cents, sale_price_cents,
                category_id, is_active, created_at, updated_at
3) sales        id, date, total_amount_cents, total_cost_cents, profit_cents,
                channel, payment_method, customer_name, notes, created_at,
                updated_at
4) sale_items   id, sale_id, product_id, quantity, unit_price_cents,
                unit_cost_cents, discount_cents, subtotal_cents
5) expenses     id, date, amount_cents, category_id, supplier, description,
                payment_method, tax_amount_cents, is_recurring, created_at,
                updated_at

Monetary amounts are stored as signed integer cents and exposed as floats.
Identifiers are text (UUID4 hex by default, or caller-supplied).

------------------------------------------------------------------------------
SQLite Notes
------------------------------------------------------------------------------

- Each operation opens its own connection, so queries can run from several
  threads at once (see ``fetching.py``).
- Foreign key enforcement is explicitly enabled.
- Schema creation is idempotent.
"""

from __future__ import annotations

import logging
import sqlite3
import uuid
from collections.abc import Iterable, Iterator, Mapping, Sequence
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime, timezone
from pathlib import Path
from typing import Any, Optional, Protocol

from .measures import to_amount
from .records import parse_category_type

logger = logging.getLogger(__name__)

Row = dict[str, Any]

# ---------------------------------------------------------------------------
# Dataclasses and interfaces
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class DatabaseConfig:
    """
    Database configuration for SMB Pulse.

    Attributes
    ----------
    engine:
        Database engine identifier. Only "sqlite" is supported.
    path:
        Path to the SQLite database file.
    """

    engine: str
    path: Path


class StoreError(RuntimeError):
    """Raised when the data store cannot complete an operation."""


class DataStore(Protocol):
    """Read queries needed to build the dashboard and report view-models."""

    def sales_between(self, start: str, end: Optional[str] = None) -> list[Row]:
        """Sales with start <= date (<= end when given), ordered by date."""
        ...

    def expenses_between(self, start: str, end: Optional[str] = None) -> list[Row]:
        """Expenses joined to their category, ordered by date."""
        ...

    def sale_items_between(
        self, start: Optional[str] = None, end: Optional[str] = None
    ) -> list[Row]:
        """Line-items joined to product and sale date; no bounds = all time."""
        ...

    def recent_sales(self, limit: int) -> list[Row]:
        """Latest sales by created_at, newest first."""
        ...

    def recent_expenses(self, limit: int) -> list[Row]:
        """Latest expenses by created_at, newest first, joined to category."""
        ...


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _to_cents(value: Any) -> int:
    """Convert an amount (number or numeric string) to integer cents."""
    return int(round(to_amount(value) * 100))


def _from_cents(value: Optional[int]) -> float:
    if value is None:
        return 0.0
    return value / 100.0


def _to_iso_date(value: Any) -> str:
    """Convert a date-like value to ISO 'YYYY-MM-DD' string."""
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    return date.fromisoformat(str(value).strip()).isoformat()


def _now_utc_iso() -> str:
    """Return the current UTC datetime as ISO string."""
    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def _timestamp(value: Any) -> str:
    if value is None or value == "":
        return _now_utc_iso()
    if isinstance(value, datetime):
        return value.isoformat()
    return str(value)


def _new_id(value: Any = None) -> str:
    if value is None or str(value).strip() == "":
        return uuid.uuid4().hex
    return str(value).strip()


def _optional_text(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _flag(value: Any) -> int:
    if isinstance(value, str):
        return 1 if value.strip().lower() in {"1", "true", "yes", "y"} else 0
    return 1 if value else 0


_SCHEMA = (
    """
    CREATE TABLE IF NOT EXISTS categories (
        id          TEXT    PRIMARY KEY,
        name        TEXT    NOT NULL,
        type        TEXT    NOT NULL DEFAULT 'expense',
        color       TEXT,
        is_system   INTEGER NOT NULL DEFAULT 0,
        created_at  TEXT    NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS products (
        id                TEXT    PRIMARY KEY,
        name              TEXT    NOT NULL,
        sku               TEXT,
        cost_price_cents  INTEGER NOT NULL DEFAULT 0,
        sale_price_cents  INTEGER NOT NULL DEFAULT 0,
        category_id       TEXT,
        is_active         INTEGER NOT NULL DEFAULT 1,
        created_at        TEXT    NOT NULL,
        updated_at        TEXT    NOT NULL,

        FOREIGN KEY (category_id) REFERENCES categories(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS sales (
        id                  TEXT    PRIMARY KEY,
        date                TEXT    NOT NULL,  -- ISO date 'YYYY-MM-DD'
        total_amount_cents  INTEGER NOT NULL DEFAULT 0,
        total_cost_cents    INTEGER NOT NULL DEFAULT 0,
        profit_cents        INTEGER NOT NULL DEFAULT 0,
        channel             TEXT,
        payment_method      TEXT,
        customer_name       TEXT,
        notes               TEXT,
        created_at          TEXT    NOT NULL,
        updated_at          TEXT    NOT NULL
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS sale_items (
        id                TEXT    PRIMARY KEY,
        sale_id           TEXT    NOT NULL,
        product_id        TEXT,
        quantity          REAL    NOT NULL DEFAULT 1,
        unit_price_cents  INTEGER NOT NULL DEFAULT 0,
        unit_cost_cents   INTEGER NOT NULL DEFAULT 0,
        discount_cents    INTEGER NOT NULL DEFAULT 0,
        subtotal_cents    INTEGER NOT NULL DEFAULT 0,

        FOREIGN KEY (sale_id) REFERENCES sales(id) ON DELETE CASCADE,
        FOREIGN KEY (product_id) REFERENCES products(id)
    );
    """,
    """
    CREATE TABLE IF NOT EXISTS expenses (
        id                TEXT    PRIMARY KEY,
        date              TEXT    NOT NULL,  -- ISO date 'YYYY-MM-DD'
        amount_cents      INTEGER NOT NULL DEFAULT 0,
        category_id       TEXT,
        supplier          TEXT,
        description       TEXT,
        payment_method    TEXT,
        tax_amount_cents  INTEGER,
        is_recurring      INTEGER NOT NULL DEFAULT 0,
        created_at        TEXT    NOT NULL,
        updated_at        TEXT    NOT NULL,

        FOREIGN KEY (category_id) REFERENCES categories(id)
    );
    """,
    "CREATE INDEX IF NOT EXISTS idx_sales_date ON sales(date);",
    "CREATE INDEX IF NOT EXISTS idx_sales_created_at ON sales(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_expenses_date ON expenses(date);",
    "CREATE INDEX IF NOT EXISTS idx_expenses_created_at ON expenses(created_at);",
    "CREATE INDEX IF NOT EXISTS idx_sale_items_sale ON sale_items(sale_id);",
)

_SALE_COLUMNS = """
    s.id, s.date, s.total_amount_cents, s.total_cost_cents, s.profit_cents,
    s.channel, s.payment_method, s.customer_name, s.notes, s.created_at
"""

_EXPENSE_COLUMNS = """
    e.id, e.date, e.amount_cents, e.category_id, e.supplier, e.description,
    e.payment_method, e.tax_amount_cents, e.is_recurring, e.created_at,
    c.name, c.color
"""

_SALE_ITEM_COLUMNS = """
    i.id, i.sale_id, i.product_id, i.quantity, i.unit_price_cents,
    i.unit_cost_cents, i.discount_cents, i.subtotal_cents,
    p.id, p.name, p.cost_price_cents, p.sale_price_cents,
    s.date
"""


def _sale_row(row: Sequence[Any]) -> Row:
    return {
        "id": row[0],
        "date": row[1],
        "total_amount": _from_cents(row[2]),
        "total_cost": _from_cents(row[3]),
        "profit": _from_cents(row[4]),
        "channel": row[5],
        "payment_method": row[6],
        "customer_name": row[7],
        "notes": row[8],
        "created_at": row[9],
    }


def _expense_row(row: Sequence[Any]) -> Row:
    category = None
    if row[10] is not None:
        category = {"name": row[10], "color": row[11]}
    return {
        "id": row[0],
        "date": row[1],
        "amount": _from_cents(row[2]),
        "category_id": row[3],
        "supplier": row[4],
        "description": row[5],
        "payment_method": row[6],
        "tax_amount": None if row[7] is None else _from_cents(row[7]),
        "is_recurring": bool(row[8]),
        "created_at": row[9],
        "category": category,
    }


def _sale_item_row(row: Sequence[Any]) -> Row:
    product = None
    if row[8] is not None:
        product = {
            "id": row[8],
            "name": row[9],
            "cost_price": _from_cents(row[10]),
            "sale_price": _from_cents(row[11]),
        }
    return {
        "id": row[0],
        "sale_id": row[1],
        "product_id": row[2],
        "quantity": float(row[3]),
        "unit_price": _from_cents(row[4]),
        "unit_cost": _from_cents(row[5]),
        "discount": _from_cents(row[6]),
        "subtotal": _from_cents(row[7]),
        "product": product,
        "sale": {"date": row[12]},
    }


def _date_clause(
    column: str, start: Optional[str], end: Optional[str]
) -> tuple[str, list[str]]:
    """Build a WHERE fragment for inclusive ISO date bounds."""
    clauses: list[str] = []
    params: list[str] = []
    if start is not None:
        clauses.append(f"{column} >= ?")
        params.append(start)
    if end is not None:
        clauses.append(f"{column} <= ?")
        params.append(end)
    if not clauses:
        return "", params
    return "WHERE " + " AND ".join(clauses), params


# ---------------------------------------------------------------------------
# SQLite implementation
# ---------------------------------------------------------------------------


class SQLiteStore:
    """
    ``DataStore`` implementation backed by a SQLite file.

    Parameters
    ----------
    cfg:
        Database configuration. The engine must be "sqlite".

    Raises
    ------
    ValueError
        If ``cfg.engine`` is not supported.
    """

    def __init__(self, cfg: DatabaseConfig) -> None:
        if cfg.engine.lower() != "sqlite":
            msg = (
                f"Unsupported database engine: {cfg.engine!r}. "
                "Only 'sqlite' is supported for now."
            )
            raise ValueError(msg)
        self.cfg = cfg
        self._pending: Optional[list[tuple[str, Sequence[Any]]]] = None

    # -- connection handling ------------------------------------------------

    def _connect(self) -> sqlite3.Connection:
        """
        Open a SQLite connection with foreign keys enabled.

        The caller is responsible for closing the connection.
        """
        conn = sqlite3.connect(self.cfg.path)
        conn.execute("PRAGMA foreign_keys = ON;")
        return conn

    def _query(self, sql: str, params: Sequence[Any] = ()) -> list[tuple]:
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open database {self.cfg.path}: {exc}") from exc
        try:
            return conn.execute(sql, params).fetchall()
        except sqlite3.Error as exc:
            raise StoreError(f"Query failed: {exc}") from exc
        finally:
            conn.close()

    def _execute_many(self, statements: Iterable[tuple[str, Sequence[Any]]]) -> None:
        """
        Run several write statements in one transaction.

        Inside ``batch()`` the statements are queued instead, and run when
        the batch closes.
        """
        if self._pending is not None:
            self._pending.extend(statements)
            return
        try:
            conn = self._connect()
        except sqlite3.Error as exc:
            raise StoreError(f"Cannot open database {self.cfg.path}: {exc}") from exc
        try:
            with conn:
                for sql, params in statements:
                    conn.execute(sql, params)
        except sqlite3.Error as exc:
            raise StoreError(f"Write failed: {exc}") from exc
        finally:
            conn.close()

    @contextmanager
    def batch(self) -> Iterator[None]:
        """
        Group every write made inside the block into a single transaction.

        The writes are committed together when the block exits normally.
        If the block raises, or if one statement fails at commit time,
        nothing is written.

        Raises
        ------
        StoreError
            If a batch is already open on this store, or if the commit fails.
        """
        if self._pending is not None:
            raise StoreError("A write batch is already open on this store.")
        self._pending = []
        try:
            yield
            statements = self._pending
        finally:
            self._pending = None
        self._execute_many(statements)

    # -- schema -------------------------------------------------------------

    def init_database(self) -> None:
        """
        Create the SQLite file, tables and indexes if needed.

        This method is idempotent: calling it multiple times is safe.
        """
        self.cfg.path.parent.mkdir(parents=True, exist_ok=True)
        self._execute_many((statement, ()) for statement in _SCHEMA)
        logger.debug("Database schema ready at %s", self.cfg.path)

    def has_data(self) -> bool:
        """Return True if the database holds at least one sale or expense."""
        rows = self._query(
            "SELECT EXISTS(SELECT 1 FROM sales) OR EXISTS(SELECT 1 FROM expenses);"
        )
        return bool(rows and rows[0][0])

    # -- reads --------------------------------------------------------------

    def sales_between(self, start: str, end: Optional[str] = None) -> list[Row]:
        where, params = _date_clause("s.date", start, end)
        rows = self._query(
            f"SELECT {_SALE_COLUMNS} FROM sales s {where} ORDER BY s.date, s.id;",
            params,
        )
        return [_sale_row(r) for r in rows]

    def expenses_between(self, start: str, end: Optional[str] = None) -> list[Row]:
        where, params = _date_clause("e.date", start, end)
        rows = self._query(
            f"""
            SELECT {_EXPENSE_COLUMNS}
              FROM expenses e
              LEFT JOIN categories c ON c.id = e.category_id
             {where}
             ORDER BY e.date, e.id;
            """,
            params,
        )
        return [_expense_row(r) for r in rows]

    def sale_items_between(
        self, start: Optional[str] = None, end: Optional[str] = None
    ) -> list[Row]:
        where, params = _date_clause("s.date", start, end)
        rows = self._query(
            f"""
            SELECT {_SALE_ITEM_COLUMNS}
              FROM sale_items i
              JOIN sales s ON s.id = i.sale_id
              LEFT JOIN products p ON p.id = i.product_id
             {where}
             ORDER BY s.date, i.rowid;
            """,
            params,
        )
        return [_sale_item_row(r) for r in rows]

    def recent_sales(self, limit: int) -> list[Row]:
        rows = self._query(
            f"""
            SELECT {_SALE_COLUMNS}
              FROM sales s
             ORDER BY s.created_at DESC
             LIMIT ?;
            """,
            (int(limit),),
        )
        return [_sale_row(r) for r in rows]

    def recent_expenses(self, limit: int) -> list[Row]:
        rows = self._query(
            f"""
            SELECT {_EXPENSE_COLUMNS}
              FROM expenses e
              LEFT JOIN categories c ON c.id = e.category_id
             ORDER BY e.created_at DESC
             LIMIT ?;
            """,
            (int(limit),),
        )
        return [_expense_row(r) for r in rows]

    def list_categories(self) -> list[Row]:
        rows = self._query(
            "SELECT id, name, type, color, is_system FROM categories ORDER BY name;"
        )
        return [
            {
                "id": r[0],
                "name": r[1],
                "type": r[2],
                "color": r[3],
                "is_system": bool(r[4]),
            }
            for r in rows
        ]

    def list_products(self) -> list[Row]:
        rows = self._query(
            """
            SELECT id, name, sku, cost_price_cents, sale_price_cents,
                   category_id, is_active
              FROM products
             ORDER BY name;
            """
        )
        return [
            {
                "id": r[0],
                "name": r[1],
                "sku": r[2],
                "cost_price": _from_cents(r[3]),
                "sale_price": _from_cents(r[4]),
                "category_id": r[5],
                "is_active": bool(r[6]),
            }
            for r in rows
        ]

    # -- writes -------------------------------------------------------------

    def add_category(
        self,
        name: str,
        *,
        category_type: str = "expense",
        color: Optional[str] = None,
        is_system: bool = False,
        id: Optional[str] = None,
    ) -> str:
        """
        Insert a category and return its id.

        Raises
        ------
        ValueError
            If ``category_type`` is not expense, product or both.
        """
        kind = parse_category_type(category_type)
        category_id = _new_id(id)
        self._execute_many(
            [
                (
                    """
                    INSERT INTO categories (id, name, type, color, is_system, created_at)
                    VALUES (?, ?, ?, ?, ?, ?);
                    """,
                    (
                        category_id,
                        name,
                        kind.value,
                        _optional_text(color),
                        _flag(is_system),
                        _now_utc_iso(),
                    ),
                )
            ]
        )
        return category_id

    def add_product(
        self,
        name: str,
        *,
        cost_price: Any = 0,
        sale_price: Any = 0,
        sku: Optional[str] = None,
        category_id: Optional[str] = None,
        is_active: bool = True,
        id: Optional[str] = None,
    ) -> str:
        """Insert a product and return its id."""
        product_id = _new_id(id)
        now = _now_utc_iso()
        self._execute_many(
            [
                (
                    """
                    INSERT INTO products (
                        id, name, sku, cost_price_cents, sale_price_cents,
                        category_id, is_active, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (
                        product_id,
                        name,
                        _optional_text(sku),
                        _to_cents(cost_price),
                        _to_cents(sale_price),
                        _optional_text(category_id),
                        _flag(is_active),
                        now,
                        now,
                    ),
                )
            ]
        )
        return product_id

    def add_sale(
        self,
        sale_date: Any,
        *,
        total_amount: Any = 0,
        total_cost: Any = 0,
        profit: Any = None,
        items: Iterable[Mapping[str, Any]] = (),
        channel: Optional[str] = None,
        payment_method: Optional[str] = None,
        customer_name: Optional[str] = None,
        notes: Optional[str] = None,
        created_at: Any = None,
        id: Optional[str] = None,
    ) -> str:
        """
        Insert a sale, and its line-items when given, and return the sale id.

        When ``items`` is non-empty the sale totals are derived from them
        (amount = sum of subtotals, cost = sum of unit cost x quantity) and
        the explicit ``total_amount`` / ``total_cost`` are ignored. ``profit``
        defaults to amount minus cost.
        """
        sale_id = _new_id(id)
        item_rows = [self._item_values(sale_id, item) for item in items]

        if item_rows:
            amount_cents = sum(r[7] for r in item_rows)
            cost_cents = sum(int(round(r[5] * r[3])) for r in item_rows)
        else:
            amount_cents = _to_cents(total_amount)
            cost_cents = _to_cents(total_cost)
        profit_cents = (
            amount_cents - cost_cents if profit is None else _to_cents(profit)
        )

        created = _timestamp(created_at)
        statements: list[tuple[str, Sequence[Any]]] = [
            (
                """
                INSERT INTO sales (
                    id, date, total_amount_cents, total_cost_cents, profit_cents,
                    channel, payment_method, customer_name, notes,
                    created_at, updated_at
                )
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                """,
                (
                    sale_id,
                    _to_iso_date(sale_date),
                    amount_cents,
                    cost_cents,
                    profit_cents,
                    _optional_text(channel),
                    _optional_text(payment_method),
                    _optional_text(customer_name),
                    _optional_text(notes),
                    created,
                    created,
                ),
            )
        ]
        statements.extend((self._ITEM_INSERT, values) for values in item_rows)
        self._execute_many(statements)
        return sale_id

    _ITEM_INSERT = """
        INSERT INTO sale_items (
            id, sale_id, product_id, quantity, unit_price_cents,
            unit_cost_cents, discount_cents, subtotal_cents
        )
        VALUES (?, ?, ?, ?, ?, ?, ?, ?);
    """

    @staticmethod
    def _item_values(sale_id: str, item: Mapping[str, Any]) -> tuple:
        """Normalise one line-item mapping into insert parameters."""
        quantity = to_amount(item.get("quantity", 1))
        unit_price = _to_cents(item.get("unit_price"))
        unit_cost = _to_cents(item.get("unit_cost"))
        discount = _to_cents(item.get("discount"))
        if item.get("subtotal") is None:
            subtotal = int(round(quantity * unit_price)) - discount
        else:
            subtotal = _to_cents(item.get("subtotal"))
        return (
            _new_id(item.get("id")),
            sale_id,
            _optional_text(item.get("product_id")),
            quantity,
            unit_price,
            unit_cost,
            discount,
            subtotal,
        )

    def add_sale_item(self, sale_id: str, item: Mapping[str, Any]) -> str:
        """Insert one line-item for an existing sale and return its id."""
        values = self._item_values(sale_id, item)
        self._execute_many([(self._ITEM_INSERT, values)])
        return values[0]

    def add_expense(
        self,
        expense_date: Any,
        amount: Any,
        *,
        category_id: Optional[str] = None,
        supplier: Optional[str] = None,
        description: Optional[str] = None,
        payment_method: Optional[str] = None,
        tax_amount: Any = None,
        is_recurring: bool = False,
        created_at: Any = None,
        id: Optional[str] = None,
    ) -> str:
        """Insert an expense and return its id."""
        expense_id = _new_id(id)
        created = _timestamp(created_at)
        self._execute_many(
            [
                (
                    """
                    INSERT INTO expenses (
                        id, date, amount_cents, category_id, supplier,
                        description, payment_method, tax_amount_cents,
                        is_recurring, created_at, updated_at
                    )
                    VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?);
                    """,
                    (
                        expense_id,
                        _to_iso_date(expense_date),
                        _to_cents(amount),
                        _optional_text(category_id),
                        _optional_text(supplier),
                        _optional_text(description),
                        _optional_text(payment_method),
                        None if tax_amount in (None, "") else _to_cents(tax_amount),
                        _flag(is_recurring),
                        created,
                        created,
                    ),
                )
            ]
        )
        return expense_id
