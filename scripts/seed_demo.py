#!/usr/bin/env python3
"""Fill the ledger with a year of synthetic spending for a demo family."""

from __future__ import annotations

import argparse
import sys
from datetime import date
from pathlib import Path
from typing import Dict, Optional

import numpy as np
import pandas as pd

PROJECT_ROOT = Path(__file__).resolve().parents[1]
if str(PROJECT_ROOT) not in sys.path:
    sys.path.insert(0, str(PROJECT_ROOT))

from family_budget import configure_logging, db
from family_budget.analytics.history import window_periods

# Monthly base amount, relative noise and monthly growth per category.
DEMO_CATEGORIES: Dict[str, tuple] = {
    'Groceries': (3_000_000, 0.05, 0.00),
    'Transport': (1_200_000, 0.15, 0.01),
    'Utilities': (800_000, 0.10, 0.00),
    'Dining Out': (900_000, 0.45, 0.00),
    'Education': (1_500_000, 0.02, 0.03),
}
MONTHLY_INCOME = 15_000_000


def build_transactions(as_of: date, seed: int = 7) -> pd.DataFrame:
    rng = np.random.default_rng(seed)
    rows = []
    for offset, period in enumerate(window_periods(as_of)):
        last_day = period.days_in_month if period != pd.Period(as_of, freq='M') else as_of.day
        rows.append({
            'Transaction Date': date(period.year, period.month, 1),
            'Description': 'Salary',
            'Category': 'Salary',
            'Type': db.INCOME,
            'Amount': MONTHLY_INCOME,
        })
        for name, (base, noise, growth) in DEMO_CATEGORIES.items():
            amount = base * (1 + growth) ** offset * (1 + rng.normal(0, noise))
            # Split each month's spending over a few purchases.
            parts = rng.dirichlet(np.ones(4)) * max(amount, 0)
            for part in parts:
                rows.append({
                    'Transaction Date': date(period.year, period.month, int(rng.integers(1, last_day + 1))),
                    'Description': name,
                    'Category': name,
                    'Type': db.EXPENSE,
                    'Amount': round(float(part), -2),
                })
    return pd.DataFrame(rows)


def main(family_id: str = 'demo', as_of: Optional[date] = None, db_path: Optional[str] = None,
         reset: bool = False) -> None:
    as_of = as_of or date.today()
    db.init_db(db_path)
    if reset:
        db.clear_family(family_id, db_path)

    inserted, skipped = db.add_transactions(build_transactions(as_of), family_id, db_path)
    print(f"Inserted {inserted} transactions for '{family_id}' ({skipped} skipped)")

    categories = db.expense_categories(family_id, db_path)
    for row in categories.itertuples(index=False):
        base = DEMO_CATEGORIES.get(row.name, (1_000_000,))[0]
        db.set_budget(family_id, int(row.id), as_of.year, as_of.month, base, db_path)
    print(f"Set {len(categories)} budgets for {as_of.year:04d}-{as_of.month:02d}")


if __name__ == '__main__':
    parser = argparse.ArgumentParser(description='Seed the ledger with demo data.')
    parser.add_argument('--family', default='demo', help='Family identifier')
    parser.add_argument('--as-of', type=date.fromisoformat, default=None, help='Last day of history (YYYY-MM-DD)')
    parser.add_argument('--db', default=None, help='Database path (defaults to FAMILY_BUDGET_DB_PATH)')
    parser.add_argument('--reset', action='store_true', help='Delete existing rows for the family first')
    args = parser.parse_args()
    configure_logging()
    main(family_id=args.family, as_of=args.as_of, db_path=args.db, reset=args.reset)
