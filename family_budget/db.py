"""SQLite ledger backing the budget engine.

Stores categories, transactions and monthly budgets per family and
exposes the batched reads the forecasting and tracking requests need.
Read failures surface as :class:`LedgerError`.
"""

from __future__ import annotations

import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from pathlib import Path
from typing import Any, Iterator, List, Optional, Sequence, Tuple, Union

import pandas as pd
from pandas.errors import DatabaseError

from .config import DB_PATH, ensure_data_directories
from .formatting import CURRENCY_SYMBOLS, DOT_GROUPED, default_currency

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

EXPENSE = 'EXPENSE'
INCOME = 'INCOME'
TRANSACTION_TYPES = {EXPENSE, INCOME}

SCHEMA_SQL = """
PRAGMA journal_mode=WAL;
PRAGMA synchronous=NORMAL;

CREATE TABLE IF NOT EXISTS categories (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    family_id TEXT NOT NULL,
    name TEXT NOT NULL,
    type TEXT NOT NULL DEFAULT 'EXPENSE'
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_category_family_name
ON categories (family_id, name, type);

CREATE TABLE IF NOT EXISTS transactions (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    family_id TEXT NOT NULL,
    category_id INTEGER REFERENCES categories (id),
    type TEXT NOT NULL,
    amount REAL NOT NULL,
    transaction_date TEXT NOT NULL,
    description TEXT,
    imported_at TEXT
);

CREATE INDEX IF NOT EXISTS ix_txn_family_date ON transactions (family_id, transaction_date);
CREATE INDEX IF NOT EXISTS ix_txn_category ON transactions (category_id);

CREATE TABLE IF NOT EXISTS budgets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    family_id TEXT NOT NULL,
    category_id INTEGER NOT NULL REFERENCES categories (id),
    year INTEGER NOT NULL,
    month INTEGER NOT NULL,
    amount REAL NOT NULL,
    updated_at TEXT
);

CREATE UNIQUE INDEX IF NOT EXISTS ux_budget_period
ON budgets (family_id, category_id, year, month);
"""


class LedgerError(RuntimeError):
    """Raised when a ledger read or write fails."""


def _resolve(db_path: Optional[PathLike]) -> Path:
    if db_path is None:
        ensure_data_directories()
        return DB_PATH
    return Path(db_path)


@contextmanager
def connect(db_path: Optional[PathLike] = None) -> Iterator[sqlite3.Connection]:
    target = _resolve(db_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    conn = sqlite3.connect(str(target))
    try:
        yield conn
    finally:
        conn.close()


def init_db(db_path: Optional[PathLike] = None) -> None:
    with connect(db_path) as conn:
        conn.executescript(SCHEMA_SQL)
        conn.commit()


def _to_iso_date(value: Any) -> Optional[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    if not isinstance(value, (str, date)) and pd.isna(value):
        return None
    if value is pd.NaT:
        return None
    if hasattr(value, 'to_pydatetime'):
        value = value.to_pydatetime()
    if isinstance(value, datetime):
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    ts = pd.to_datetime(value, errors='coerce')
    if pd.isna(ts):
        return None
    return ts.date().isoformat()


def _parse_amount(value: Any, currency: Optional[str] = None) -> Optional[float]:
    """Convert textual or numeric amounts into floats, ``None`` when unparseable.

    Text is read with the grouping of ``currency`` (the configured code by
    default), so ``'Rp 1.500.000'`` and ``'$1,500.00'`` both parse.
    """
    if value is None or (isinstance(value, str) and value.strip() == ""):
        return None
    if isinstance(value, str):
        cleaned = value.strip()
        if cleaned.startswith("(") and cleaned.endswith(")"):
            cleaned = f"-{cleaned[1:-1]}"
        for symbol in CURRENCY_SYMBOLS.values():
            cleaned = cleaned.replace(symbol, "")
        cleaned = cleaned.replace(" ", "")
        if (currency or default_currency()).upper() in DOT_GROUPED:
            cleaned = cleaned.replace(".", "").replace(",", ".")
        else:
            cleaned = cleaned.replace(",", "")
        value = cleaned
    parsed = pd.to_numeric([value], errors='coerce')
    number = parsed[0]
    if pd.isna(number):
        return None
    return float(number)


def _read_frame(sql: str, params: Sequence[Any], db_path: Optional[PathLike]) -> pd.DataFrame:
    try:
        with connect(db_path) as conn:
            return pd.read_sql_query(sql, conn, params=list(params))
    except (sqlite3.Error, DatabaseError) as e:
        logger.error("Ledger read failed: %s", e)
        raise LedgerError(f"Ledger read failed: {e}") from e


def add_category(
    family_id: str,
    name: str,
    category_type: str = EXPENSE,
    db_path: Optional[PathLike] = None,
) -> int:
    """Create a category if missing and return its id."""
    if not name or not name.strip():
        raise ValueError("Category name cannot be empty")
    category_type = category_type.upper()
    if category_type not in TRANSACTION_TYPES:
        raise ValueError(f"Unknown category type '{category_type}'")

    with connect(db_path) as conn:
        conn.execute(
            "INSERT OR IGNORE INTO categories (family_id, name, type) VALUES (?, ?, ?)",
            (family_id, name.strip(), category_type),
        )
        conn.commit()
        row = conn.execute(
            "SELECT id FROM categories WHERE family_id = ? AND name = ? AND type = ?",
            (family_id, name.strip(), category_type),
        ).fetchone()
    return int(row[0])


def fetch_categories(
    family_id: str,
    category_type: Optional[str] = None,
    db_path: Optional[PathLike] = None,
) -> pd.DataFrame:
    sql = "SELECT id, name, type FROM categories WHERE family_id = ?"
    params: List[Any] = [family_id]
    if category_type:
        sql += " AND type = ?"
        params.append(category_type.upper())
    sql += " ORDER BY name ASC, id ASC"
    return _read_frame(sql, params, db_path)


def expense_categories(family_id: str, db_path: Optional[PathLike] = None) -> pd.DataFrame:
    return fetch_categories(family_id, EXPENSE, db_path)


def add_transactions(
    df: pd.DataFrame,
    family_id: str,
    db_path: Optional[PathLike] = None,
    currency: Optional[str] = None,
) -> Tuple[int, int]:
    """Insert transactions for a family.

    Accepts ``Transaction Date``, ``Amount`` and either ``category_id`` or a
    ``Category`` name.  Without a ``Type`` column negative amounts are
    expenses and positive amounts income; stored amounts are always positive.
    Text amounts are read with the grouping of ``currency``.

    Returns (inserted_count, skipped_count).
    """
    if df.empty:
        return (0, 0)

    imported_at = datetime.now().isoformat()
    currency = currency or default_currency()
    records: List[Tuple] = []
    skipped = 0

    for _, row in df.iterrows():
        txn_date = _to_iso_date(row.get('Transaction Date'))
        amount = _parse_amount(row.get('Amount'), currency)
        # Rows need a date and a non-zero amount.
        if txn_date is None or amount is None or amount == 0:
            skipped += 1
            continue

        txn_type = row.get('Type')
        if isinstance(txn_type, str) and txn_type.strip().upper() in TRANSACTION_TYPES:
            txn_type = txn_type.strip().upper()
        else:
            txn_type = EXPENSE if amount < 0 else INCOME

        category_id = row.get('category_id')
        if category_id is None or pd.isna(category_id):
            category_name = row.get('Category')
            if isinstance(category_name, str) and category_name.strip():
                category_id = add_category(family_id, category_name, txn_type, db_path)
            else:
                category_id = None

        description = row.get('Description')
        if description is not None and pd.isna(description):
            description = None

        records.append((
            family_id,
            int(category_id) if category_id is not None else None,
            txn_type,
            abs(amount),
            txn_date,
            description,
            imported_at,
        ))

    if not records:
        return (0, skipped)

    with connect(db_path) as conn:
        conn.executemany(
            "INSERT INTO transactions (family_id, category_id, type, amount, transaction_date, "
            "description, imported_at) VALUES (?, ?, ?, ?, ?, ?, ?)",
            records,
        )
        conn.commit()
    return len(records), skipped


def set_budget(
    family_id: str,
    category_id: int,
    year: int,
    month: int,
    amount: float,
    db_path: Optional[PathLike] = None,
) -> int:
    """Create or update the budget of a category for one month; returns its id."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    if amount < 0:
        raise ValueError("Budget amount cannot be negative")

    with connect(db_path) as conn:
        conn.execute(
            "INSERT INTO budgets (family_id, category_id, year, month, amount, updated_at) "
            "VALUES (?, ?, ?, ?, ?, ?) "
            "ON CONFLICT (family_id, category_id, year, month) "
            "DO UPDATE SET amount = excluded.amount, updated_at = excluded.updated_at",
            (family_id, category_id, year, month, float(amount), datetime.now().isoformat()),
        )
        conn.commit()
        row = conn.execute(
            "SELECT id FROM budgets WHERE family_id = ? AND category_id = ? AND year = ? AND month = ?",
            (family_id, category_id, year, month),
        ).fetchone()
    return int(row[0])


def monthly_expense_totals(
    family_id: str,
    start: date,
    end: date,
    db_path: Optional[PathLike] = None,
) -> pd.DataFrame:
    """Expense totals grouped by category and calendar month (``YYYY-MM``)."""
    sql = """
    SELECT category_id,
           substr(transaction_date, 1, 7) AS Month,
           SUM(amount) AS Amount,
           COUNT(*) AS "Transaction Count"
    FROM transactions
    WHERE family_id = ? AND type = ? AND transaction_date BETWEEN ? AND ?
    GROUP BY category_id, substr(transaction_date, 1, 7)
    ORDER BY Month, category_id
    """
    return _read_frame(sql, [family_id, EXPENSE, _to_iso_date(start), _to_iso_date(end)], db_path)


def expense_totals_for_month(
    family_id: str,
    year: int,
    month: int,
    db_path: Optional[PathLike] = None,
) -> pd.DataFrame:
    """Spending to date per category for one calendar month."""
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    sql = """
    SELECT category_id, SUM(amount) AS Amount, COUNT(*) AS "Transaction Count"
    FROM transactions
    WHERE family_id = ? AND type = ? AND substr(transaction_date, 1, 7) = ?
    GROUP BY category_id
    """
    return _read_frame(sql, [family_id, EXPENSE, f"{year:04d}-{month:02d}"], db_path)


def expense_transactions(
    family_id: str,
    start: date,
    end: date,
    db_path: Optional[PathLike] = None,
) -> pd.DataFrame:
    sql = """
    SELECT id, category_id, amount AS Amount, transaction_date AS "Transaction Date"
    FROM transactions
    WHERE family_id = ? AND type = ? AND transaction_date BETWEEN ? AND ?
    ORDER BY transaction_date ASC, id ASC
    """
    df = _read_frame(sql, [family_id, EXPENSE, _to_iso_date(start), _to_iso_date(end)], db_path)
    if not df.empty:
        df['Transaction Date'] = pd.to_datetime(df['Transaction Date'])
    return df


def budgets_for(
    family_id: str,
    year: int,
    month: Optional[int] = None,
    db_path: Optional[PathLike] = None,
) -> pd.DataFrame:
    """Configured budgets with their category names, ordered by month."""
    sql = """
    SELECT b.id, b.category_id, COALESCE(c.name, 'Uncategorized') AS category_name,
           b.year, b.month, b.amount
    FROM budgets b
    LEFT JOIN categories c ON c.id = b.category_id
    WHERE b.family_id = ? AND b.year = ?
    """
    params: List[Any] = [family_id, year]
    if month is not None:
        sql += " AND b.month = ?"
        params.append(month)
    sql += " ORDER BY b.month ASC, b.id ASC"
    return _read_frame(sql, params, db_path)


def income_total(
    family_id: str,
    start: date,
    end: date,
    db_path: Optional[PathLike] = None,
) -> float:
    sql = """
    SELECT COALESCE(SUM(amount), 0) AS total
    FROM transactions
    WHERE family_id = ? AND type = ? AND transaction_date BETWEEN ? AND ?
    """
    df = _read_frame(sql, [family_id, INCOME, _to_iso_date(start), _to_iso_date(end)], db_path)
    return float(df['total'].iloc[0]) if not df.empty else 0.0


def clear_family(family_id: str, db_path: Optional[PathLike] = None) -> None:
    """Remove every row owned by a family."""
    with connect(db_path) as conn:
        for table in ('transactions', 'budgets', 'categories'):
            conn.execute(f"DELETE FROM {table} WHERE family_id = ?", (family_id,))
        conn.commit()
