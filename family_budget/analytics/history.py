"""Trailing monthly history sampling.

Turns the ledger's long-format monthly totals (one row per category and
calendar month) into the fixed 12-sample series the forecasters consume.
Months without activity are zero-filled.
"""

from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, Optional, Tuple

import pandas as pd

from .models import WINDOW_MONTHS, MonthIndex, MonthlySample, MonthlySeries

CATEGORY_COLUMN = 'category_id'
MONTH_COLUMN = 'Month'
AMOUNT_COLUMN = 'Amount'
COUNT_COLUMN = 'Transaction Count'


def window_periods(as_of: date, months: int = WINDOW_MONTHS) -> pd.PeriodIndex:
    """Calendar months of the trailing window ending with the as-of month."""
    end = pd.Period(as_of, freq='M')
    return pd.period_range(end=end, periods=months, freq='M')


def window_bounds(as_of: date, months: int = WINDOW_MONTHS) -> Tuple[date, date]:
    """First and last day of the trailing window, the as-of month included in full."""
    periods = window_periods(as_of, months)
    return periods[0].start_time.date(), periods[-1].end_time.date()


def _to_periods(values: pd.Series) -> pd.Series:
    return pd.to_datetime(values.astype(str)).dt.to_period('M')


def monthly_totals_from_transactions(
    transactions: pd.DataFrame,
    category_column: str = 'Category',
) -> pd.DataFrame:
    """Aggregate raw expense rows into the long monthly-totals shape.

    Amounts are taken as absolute values so both signed bank exports and
    positive expense ledgers work.
    """
    columns = [CATEGORY_COLUMN, MONTH_COLUMN, AMOUNT_COLUMN, COUNT_COLUMN]
    if transactions is None or transactions.empty:
        return pd.DataFrame(columns=columns)

    working = transactions.copy()
    working['Transaction Date'] = pd.to_datetime(working['Transaction Date'])
    working[MONTH_COLUMN] = working['Transaction Date'].dt.to_period('M')
    working[AMOUNT_COLUMN] = pd.to_numeric(working['Amount'], errors='coerce').fillna(0.0).abs()
    totals = (
        working.groupby([category_column, MONTH_COLUMN])[AMOUNT_COLUMN]
        .agg(['sum', 'count'])
        .reset_index()
    )
    totals.columns = [CATEGORY_COLUMN, MONTH_COLUMN, AMOUNT_COLUMN, COUNT_COLUMN]
    return totals


def sample_history(
    monthly_totals: Optional[pd.DataFrame],
    category_id: int,
    as_of: date,
) -> MonthlySeries:
    """Twelve-month series for one category, oldest month first.

    Sample ``i`` covers the calendar month ``as_of`` minus ``11 - i`` months.
    A category with no rows yields an all-zero series (``is_empty``).
    """
    periods = window_periods(as_of)
    amounts = pd.Series(0.0, index=periods)
    counts = pd.Series(0, index=periods)

    if monthly_totals is not None and not monthly_totals.empty:
        rows = monthly_totals[monthly_totals[CATEGORY_COLUMN] == category_id]
        if not rows.empty:
            working = rows.copy()
            working['Period'] = _to_periods(working[MONTH_COLUMN])
            if COUNT_COLUMN not in working.columns:
                working[COUNT_COLUMN] = 0
            grouped = working.groupby('Period')[[AMOUNT_COLUMN, COUNT_COLUMN]].sum()
            grouped = grouped.reindex(periods, fill_value=0)
            amounts = grouped[AMOUNT_COLUMN].astype(float)
            counts = grouped[COUNT_COLUMN].astype(int)

    samples = tuple(
        MonthlySample(
            month_index=MonthIndex(i),
            period=period,
            amount=float(amounts.iloc[i]),
            transaction_count=int(counts.iloc[i]),
        )
        for i, period in enumerate(periods)
    )
    return MonthlySeries(category_id=category_id, samples=samples)


def sample_all_categories(
    monthly_totals: Optional[pd.DataFrame],
    category_ids: Iterable[int],
    as_of: date,
) -> Dict[int, MonthlySeries]:
    return {
        category_id: sample_history(monthly_totals, category_id, as_of)
        for category_id in category_ids
    }
