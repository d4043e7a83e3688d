"""Live tracking of a budget period.

A stateless classifier: every read recomputes burn rate, projection,
utilization, alert level and on-track flag from the budget amount and the
spending to date.
"""

from __future__ import annotations

import calendar
from datetime import date
from typing import Optional, Tuple

from .models import (
    AlertLevel,
    BudgetStatus,
    CategoryBudgetStatus,
    ForecastStatus,
    TrackingSnapshot,
)

ON_TRACK_TOLERANCE = 1.1

# Checked top-down, first match wins.
ALERT_THRESHOLDS = (
    (150.0, AlertLevel.CRITICAL),
    (100.0, AlertLevel.DANGER),
    (90.0, AlertLevel.WARNING),
    (75.0, AlertLevel.INFO),
)

STATUS_OVER = 100.0
STATUS_WARNING = 80.0


def percent_of(amount: float, budget: float) -> float:
    return amount / budget * 100 if budget else 0.0


def alert_level_for(utilization: float) -> AlertLevel:
    for threshold, level in ALERT_THRESHOLDS:
        if utilization >= threshold:
            return level
    return AlertLevel.NONE


def alert_message(level: AlertLevel, utilization: float) -> str:
    if level in (AlertLevel.CRITICAL, AlertLevel.DANGER):
        suffix = '!' if level == AlertLevel.CRITICAL else ''
        return f"{level.value.upper()}: Budget exceeded by {utilization - 100:.0f}%{suffix}"
    if level == AlertLevel.WARNING:
        return f"WARNING: {100 - utilization:.0f}% budget remaining"
    if level == AlertLevel.INFO:
        return f"INFO: {utilization:.0f}% budget used"
    return ''


def forecast_status_for(projected_utilization: float) -> ForecastStatus:
    if projected_utilization > 100:
        return ForecastStatus.OVER
    if projected_utilization > 90:
        return ForecastStatus.WARNING
    return ForecastStatus.GOOD


def is_on_track(utilization: float, expected_utilization: float) -> bool:
    return utilization <= expected_utilization * ON_TRACK_TOLERANCE


def period_days(year: int, month: int, as_of: Optional[date] = None) -> Tuple[int, int]:
    """Days elapsed and days in the month for a budget period as seen on ``as_of``.

    Past periods count as fully elapsed, future periods as not started.
    """
    if not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    days_in_month = calendar.monthrange(year, month)[1]
    as_of = as_of or date.today()
    if (as_of.year, as_of.month) > (year, month):
        return days_in_month, days_in_month
    if (as_of.year, as_of.month) < (year, month):
        return 0, days_in_month
    return min(as_of.day, days_in_month), days_in_month


def track_budget(
    budget_amount: float,
    spent: float,
    days_elapsed: int,
    days_in_month: int,
    *,
    budget_id: int = 0,
    category_id: int = 0,
    category_name: str = '',
    year: int = 0,
    month: int = 0,
    transaction_count: int = 0,
) -> TrackingSnapshot:
    """Classify one budget period.

    Args:
        budget_amount: Configured budget for the period.
        spent: Actual spending to date.
        days_elapsed: Days of the period already passed.
        days_in_month: Length of the period in days.

    Returns:
        TrackingSnapshot; ``remaining`` is negative when over budget.
    """
    utilization = percent_of(spent, budget_amount)
    burn_rate = spent / days_elapsed if days_elapsed > 0 else 0.0
    projected = burn_rate * days_in_month
    projected_utilization = percent_of(projected, budget_amount)
    expected = days_elapsed / days_in_month * 100 if days_in_month > 0 else 0.0
    level = alert_level_for(utilization)

    return TrackingSnapshot(
        budget_id=budget_id,
        category_id=category_id,
        category_name=category_name or 'Uncategorized',
        year=year,
        month=month,
        budget_amount=budget_amount,
        spent=spent,
        remaining=budget_amount - spent,
        utilization_rate=utilization,
        daily_burn_rate=burn_rate,
        days_elapsed=days_elapsed,
        days_remaining=days_in_month - days_elapsed,
        projected_spending=projected,
        projected_utilization=projected_utilization,
        expected_utilization=expected,
        variance=utilization - expected,
        alert_level=level,
        alert_message=alert_message(level, utilization),
        is_on_track=is_on_track(utilization, expected),
        forecast_status=forecast_status_for(projected_utilization),
        transaction_count=transaction_count,
    )


def budget_status(
    category_id: int,
    category_name: str,
    budget: Optional[float],
    realization: float,
    budget_id: Optional[int] = None,
) -> CategoryBudgetStatus:
    """Realization of one category against its monthly budget, if any."""
    percentage = 0.0
    status = BudgetStatus.NO_BUDGET
    if budget is not None and budget > 0:
        percentage = realization / budget * 100
        if percentage >= STATUS_OVER:
            status = BudgetStatus.OVER
        elif percentage >= STATUS_WARNING:
            status = BudgetStatus.WARNING
        else:
            status = BudgetStatus.SAFE
    return CategoryBudgetStatus(
        category_id=category_id,
        category_name=category_name,
        budget=budget,
        budget_id=budget_id,
        realization=realization,
        percentage=min(percentage, 100.0),
        actual_percentage=percentage,
        status=status,
    )
