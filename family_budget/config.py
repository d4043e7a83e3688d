"""Configuration management for the family budget engine.

This module centralizes filesystem locations including the ledger
database, with environment variable overrides.  Tunable engine values
live in ``settings/engine.json`` (see :mod:`family_budget.settings`).
"""

from __future__ import annotations

import os
from pathlib import Path

# Base project root - assumes this file is in family_budget/
_PROJECT_ROOT = Path(__file__).parent.parent.resolve()

DATA_DIR = Path(os.getenv("FAMILY_BUDGET_DATA_DIR", _PROJECT_ROOT / "data"))

DB_PATH = Path(
    os.getenv("FAMILY_BUDGET_DB_PATH", DATA_DIR / "family_budget.db")
).resolve()


def ensure_data_directories() -> None:
    """Create the data directory holding the default ledger."""
    DATA_DIR.mkdir(parents=True, exist_ok=True)
