"""Realization of monthly budgets.

Looks back over one budget month transaction by transaction: day-by-day
and cumulative progress, a letter grade, spending efficiency against the
even daily pace and simple transaction metrics.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Dict, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

from .models import (
    BudgetRealization,
    DailyProgress,
    RealizationGrade,
    RealizationPerformance,
    RealizationStatus,
    RealizationSummary,
    SpendingTrend,
    TransactionMetrics,
)
from .tracking import percent_of, period_days

# Upper bounds on the realization rate, checked in order.
GRADE_LIMITS = (
    (70.0, RealizationGrade.A),
    (85.0, RealizationGrade.B),
    (100.0, RealizationGrade.C),
    (120.0, RealizationGrade.D),
)
STATUS_LIMITS = (
    (90.0, RealizationStatus.EXCELLENT),
    (100.0, RealizationStatus.GOOD),
    (110.0, RealizationStatus.WARNING),
)

TREND_DAYS = 7
PERFORMERS = 3


def grade_for(realization_rate: float) -> RealizationGrade:
    for limit, grade in GRADE_LIMITS:
        if realization_rate <= limit:
            return grade
    return RealizationGrade.F


def status_for(realization_rate: float) -> RealizationStatus:
    for limit, status in STATUS_LIMITS:
        if realization_rate <= limit:
            return status
    return RealizationStatus.OVER


def _month_rows(transactions: pd.DataFrame, year: int, month: int) -> Tuple[pd.Series, pd.Series]:
    """Amounts and day-of-month of the rows falling in the budget month."""
    if transactions.empty:
        return pd.Series(dtype=float), pd.Series(dtype=int)
    dates = pd.to_datetime(transactions['Transaction Date'])
    in_month = (dates.dt.year == year) & (dates.dt.month == month)
    amounts = transactions.loc[in_month, 'Amount'].astype(float)
    return amounts, dates[in_month].dt.day


def daily_progress(
    transactions: pd.DataFrame,
    year: int,
    month: int,
    budget_amount: float,
) -> Tuple[DailyProgress, ...]:
    """One entry per day of the month with daily and cumulative spending."""
    days_in_month = calendar.monthrange(year, month)[1]
    amounts, days = _month_rows(transactions, year, month)
    index = pd.RangeIndex(1, days_in_month + 1)

    daily = amounts.groupby(days.values).agg(['sum', 'count']).reindex(index, fill_value=0)
    spent = daily['sum'].astype(float)
    cumulative = spent.cumsum()

    return tuple(
        DailyProgress(
            day=int(day),
            date=date(year, month, int(day)),
            daily_spent=float(spent[day]),
            cumulative_spent=float(cumulative[day]),
            cumulative_percentage=percent_of(float(cumulative[day]), budget_amount),
            transaction_count=int(daily['count'][day]),
        )
        for day in index
    )


def transaction_metrics(amounts: Sequence[float]) -> TransactionMetrics:
    values = np.asarray(list(amounts), dtype=float)
    if values.size == 0:
        return TransactionMetrics(0, 0.0, 0.0, 0.0)
    return TransactionMetrics(
        transaction_count=int(values.size),
        average_transaction=float(values.sum() / values.size),
        largest_transaction=float(max(values.max(), 0.0)),
        smallest_transaction=float(values.min()),
    )


def realization(
    budget_amount: float,
    transactions: pd.DataFrame,
    year: int,
    month: int,
    as_of: Optional[date] = None,
    *,
    budget_id: int = 0,
    category_id: int = 0,
    category_name: str = '',
) -> BudgetRealization:
    """Realization of one monthly budget.

    Args:
        budget_amount: Planned amount for the month.
        transactions: Expense rows with ``Transaction Date`` and ``Amount``;
            rows outside the budget month are ignored.
        year: Budget year.
        month: Budget month (1-12).
        as_of: Date the month is seen from; sets the days used for the
            actual daily spend.

    Returns:
        BudgetRealization. Rates are ``0`` for a zero budget and efficiency
        is ``0`` while nothing has been spent.
    """
    days_elapsed, days_in_month = period_days(year, month, as_of)
    amounts, _ = _month_rows(transactions, year, month)
    progress = daily_progress(transactions, year, month, budget_amount)

    actual = float(amounts.sum())
    rate = percent_of(actual, budget_amount)
    variance = actual - budget_amount

    target_daily = budget_amount / days_in_month
    actual_daily = actual / days_elapsed if days_elapsed > 0 else 0.0
    last_days = sum(p.daily_spent for p in progress[-TREND_DAYS:]) / TREND_DAYS

    performance = RealizationPerformance(
        grade=grade_for(rate),
        efficiency=target_daily / actual_daily * 100 if actual_daily > 0 else 0.0,
        target_daily_spend=target_daily,
        actual_daily_spend=actual_daily,
        trend=SpendingTrend.INCREASING if last_days > target_daily else SpendingTrend.DECREASING,
        average_last_7_days=last_days,
    )

    return BudgetRealization(
        budget_id=budget_id,
        category_id=category_id,
        category_name=category_name or 'Uncategorized',
        year=year,
        month=month,
        planned=budget_amount,
        actual=actual,
        remaining=budget_amount - actual,
        realization_rate=rate,
        variance=variance,
        variance_percentage=percent_of(variance, budget_amount),
        performance=performance,
        metrics=transaction_metrics(amounts),
        status=status_for(rate),
        daily_progress=progress,
    )


def summarize_realization(items: Sequence[BudgetRealization]) -> RealizationSummary:
    """Family totals, grade and status counts, and the best and worst budgets."""
    total_planned = sum(r.planned for r in items)
    total_actual = sum(r.actual for r in items)

    grades: Dict[RealizationGrade, int] = {grade: 0 for grade in RealizationGrade}
    statuses: Dict[RealizationStatus, int] = {status: 0 for status in RealizationStatus}
    for item in items:
        grades[item.performance.grade] += 1
        statuses[item.status] += 1

    ranked = sorted(items, key=lambda r: r.realization_rate)
    efficiency = sum(r.performance.efficiency for r in items) / len(items) if items else 0.0

    return RealizationSummary(
        total_budgets=len(items),
        total_planned=total_planned,
        total_actual=total_actual,
        total_remaining=sum(r.remaining for r in items),
        overall_realization_rate=percent_of(total_actual, total_planned),
        grade_distribution=grades,
        status_distribution=statuses,
        average_efficiency=efficiency,
        best_performers=tuple(ranked[:PERFORMERS]),
        worst_performers=tuple(reversed(ranked[-PERFORMERS:])),
    )
