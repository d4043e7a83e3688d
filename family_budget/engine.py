"""Request-level entry points of the budget engine.

Each function does one batched ledger read, hands the rows to the pure
analytics package and returns frozen result objects ready for the
dashboard, the CLI scripts or JSON serialization.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import pandas as pd

from . import db
from .alerts import DEFAULT_ALERT_THRESHOLD, dispatch_alerts, events_from_snapshots
from .analytics.ensemble import EnsembleForecaster
from .analytics.history import sample_history, window_bounds, window_periods
from .analytics.models import (
    WINDOW_MONTHS,
    BudgetRealization,
    BudgetRecommendation,
    CategoryBudgetStatus,
    CategoryForecast,
    MonthlySeries,
    PortfolioSummary,
    RealizationSummary,
    Recommendation,
    TrackingSnapshot,
    TrackingSummary,
    _Serializable,
)
from .analytics.portfolio import summarize_portfolio, summarize_tracking
from .analytics.realization import realization, summarize_realization
from .analytics.recommendations import DEFAULT_MONTHS_TO_ANALYZE, overall_recommendations, recommend_budget
from .analytics.strategies import DEFAULT_ROUNDING_UNIT, recommend_strategy, strategies_for
from .analytics.tracking import budget_status, percent_of, period_days, track_budget
from .settings import get_config_value

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]

ALGORITHM = 'ensemble (linear regression, exponential moving average, weighted average)'


@dataclass(frozen=True)
class FamilyForecast(_Serializable):
    family_id: str
    target_year: int
    target_month: int
    as_of: date
    categories: Tuple[CategoryForecast, ...]
    portfolio: PortfolioSummary
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class FamilyTracking(_Serializable):
    family_id: str
    year: int
    month: Optional[int]
    as_of: date
    snapshots: Tuple[TrackingSnapshot, ...]
    summary: TrackingSummary
    alerts_dispatched: int = 0


@dataclass(frozen=True)
class FamilyBudgetStatus(_Serializable):
    family_id: str
    year: int
    month: int
    categories: Tuple[CategoryBudgetStatus, ...]
    total_budget: float
    total_realization: float
    overall_percentage: float


@dataclass(frozen=True)
class FamilyBudgetRecommendations(_Serializable):
    family_id: str
    target_year: int
    target_month: int
    months_analyzed: int
    categories: Tuple[BudgetRecommendation, ...]
    total_suggested: float
    average_monthly_income: float
    recommendations: Tuple[Recommendation, ...] = ()


@dataclass(frozen=True)
class FamilyRealization(_Serializable):
    family_id: str
    year: int
    month: Optional[int]
    as_of: date
    budgets: Tuple[BudgetRealization, ...]
    summary: RealizationSummary


def _rounding_unit() -> int:
    return int(get_config_value('engine', 'currency', 'rounding_unit', default=DEFAULT_ROUNDING_UNIT))


def _period_bounds(year: int, month: Optional[int]) -> Tuple[date, date]:
    """First and last day of one month, or of the whole year."""
    first_month, last_month = (month, month) if month is not None else (1, 12)
    start = date(year, first_month, 1)
    return start, pd.Period(year=year, month=last_month, freq='M').end_time.date()


def _track_snapshots(
    family_id: str,
    year: int,
    month: Optional[int],
    as_of: date,
    db_path: Optional[PathLike],
) -> List[TrackingSnapshot]:
    budgets = db.budgets_for(family_id, year, month, db_path=db_path)
    start, end = _period_bounds(year, month)
    totals = db.monthly_expense_totals(family_id, start, end, db_path=db_path)

    spent_by_key: Dict[Tuple[Any, str], Tuple[float, int]] = {}
    for row in totals.itertuples(index=False):
        spent_by_key[(row.category_id, row.Month)] = (float(row.Amount), int(row[3]))

    snapshots: List[TrackingSnapshot] = []
    for row in budgets.itertuples(index=False):
        key = (row.category_id, f"{int(row.year):04d}-{int(row.month):02d}")
        spent, count = spent_by_key.get(key, (0.0, 0))
        days_elapsed, days_in_month = period_days(int(row.year), int(row.month), as_of)
        snapshots.append(track_budget(
            float(row.amount),
            spent,
            days_elapsed,
            days_in_month,
            budget_id=int(row.id),
            category_id=int(row.category_id),
            category_name=row.category_name,
            year=int(row.year),
            month=int(row.month),
            transaction_count=count,
        ))
    return snapshots


def _forecast_category(
    series: MonthlySeries,
    category_name: str,
    target_month: int,
    unit: int,
) -> Optional[CategoryForecast]:
    result = EnsembleForecaster(series, category_name).forecast(target_month)
    if result is None:
        return None
    return CategoryForecast(
        forecast=result,
        strategies=strategies_for(result, unit),
        recommended_strategy=recommend_strategy(result.confidence, result.coefficient_of_variation),
    )


def forecast_family(
    family_id: str,
    target_year: int,
    target_month: int,
    as_of: Optional[date] = None,
    db_path: Optional[PathLike] = None,
    max_workers: Optional[int] = None,
    snapshots: Optional[Sequence[TrackingSnapshot]] = None,
) -> FamilyForecast:
    """Forecast every expense category of a family for the target month.

    Categories without any spending in the trailing window are skipped.
    Output keeps the ledger's category order.  The portfolio's tracking
    counts come from ``snapshots``, or from the budgets of the ``as_of``
    month when none are given.
    """
    if not 1 <= target_month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {target_month}")
    as_of = as_of or date.today()
    if max_workers is None:
        max_workers = int(get_config_value('engine', 'forecast', 'max_workers', default=1))
    unit = _rounding_unit()

    periods = window_periods(as_of)
    start, end = window_bounds(as_of)
    categories = db.expense_categories(family_id, db_path=db_path)
    totals = db.monthly_expense_totals(family_id, start, end, db_path=db_path)
    income = db.income_total(family_id, start, end, db_path=db_path)
    average_income = income / WINDOW_MONTHS

    jobs = [
        (sample_history(totals, int(row.id), as_of), row.name)
        for row in categories.itertuples(index=False)
    ]

    if max_workers > 1 and len(jobs) > 1:
        with ThreadPoolExecutor(max_workers=max_workers) as executor:
            results = list(executor.map(
                lambda job: _forecast_category(job[0], job[1], target_month, unit), jobs
            ))
    else:
        results = [_forecast_category(series, name, target_month, unit) for series, name in jobs]

    forecasts: List[CategoryForecast] = []
    for (series, name), item in zip(jobs, results):
        if item is None:
            logger.debug("Skipping category %s (%s): no spending in window", series.category_id, name)
            continue
        forecasts.append(item)

    if snapshots is None:
        snapshots = _track_snapshots(family_id, as_of.year, as_of.month, as_of, db_path)
    portfolio = summarize_portfolio(forecasts, average_income, snapshots)
    logger.info(
        "Forecast for family %s %04d-%02d: %d of %d categories, total %.0f",
        family_id, target_year, target_month, len(forecasts), len(jobs),
        portfolio.total_predicted_spending,
    )
    return FamilyForecast(
        family_id=family_id,
        target_year=target_year,
        target_month=target_month,
        as_of=as_of,
        categories=tuple(forecasts),
        portfolio=portfolio,
        metadata={
            'algorithm': ALGORITHM,
            'data_points': WINDOW_MONTHS,
            'window_start': str(periods[0]),
            'window_end': str(periods[-1]),
            'confidence_counts': portfolio.confidence_counts,
        },
    )


def track_family(
    family_id: str,
    year: int,
    month: Optional[int] = None,
    as_of: Optional[date] = None,
    db_path: Optional[PathLike] = None,
    on_alert=None,
    alert_threshold: Optional[float] = None,
) -> FamilyTracking:
    """Classify every configured budget of a year, or of one month.

    ``on_alert`` receives a :class:`~family_budget.alerts.BudgetAlertEvent`
    per budget at or above the alert threshold, after all snapshots exist.
    """
    if month is not None and not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    as_of = as_of or date.today()
    if alert_threshold is None:
        alert_threshold = float(
            get_config_value('engine', 'alerts', 'email_threshold', default=DEFAULT_ALERT_THRESHOLD)
        )

    snapshots = _track_snapshots(family_id, year, month, as_of, db_path)
    summary = summarize_tracking(snapshots)
    logger.info(
        "Tracked %d budgets for family %s in %s: %d on track, %d critical alerts",
        summary.total_budgets, family_id,
        f"{year:04d}-{month:02d}" if month else f"{year:04d}",
        summary.on_track_count, len(summary.critical_alerts),
    )

    dispatched = 0
    if on_alert is not None:
        events = events_from_snapshots(family_id, snapshots, alert_threshold)
        dispatched = dispatch_alerts(events, on_alert)

    return FamilyTracking(
        family_id=family_id,
        year=year,
        month=month,
        as_of=as_of,
        snapshots=tuple(snapshots),
        summary=summary,
        alerts_dispatched=dispatched,
    )


def budget_status_report(
    family_id: str,
    year: int,
    month: int,
    db_path: Optional[PathLike] = None,
) -> FamilyBudgetStatus:
    """Realization of every expense category against its budget for one month."""
    categories = db.expense_categories(family_id, db_path=db_path)
    budgets = db.budgets_for(family_id, year, month, db_path=db_path)
    spending = db.expense_totals_for_month(family_id, year, month, db_path=db_path)

    budget_by_category = {
        int(row.category_id): (float(row.amount), int(row.id))
        for row in budgets.itertuples(index=False)
    }
    spent_by_category = {
        int(row.category_id): float(row.Amount)
        for row in spending.itertuples(index=False)
        if pd.notna(row.category_id)
    }

    statuses = []
    for row in categories.itertuples(index=False):
        category_id = int(row.id)
        budget, budget_id = budget_by_category.get(category_id, (None, None))
        statuses.append(budget_status(
            category_id,
            row.name,
            budget,
            spent_by_category.get(category_id, 0.0),
            budget_id,
        ))

    total_budget = sum(s.budget for s in statuses if s.budget)
    total_realization = sum(s.realization for s in statuses)
    return FamilyBudgetStatus(
        family_id=family_id,
        year=year,
        month=month,
        categories=tuple(statuses),
        total_budget=total_budget,
        total_realization=total_realization,
        overall_percentage=percent_of(total_realization, total_budget),
    )


def recommend_budgets(
    family_id: str,
    target_year: int,
    target_month: int,
    months_to_analyze: int = DEFAULT_MONTHS_TO_ANALYZE,
    as_of: Optional[date] = None,
    db_path: Optional[PathLike] = None,
) -> FamilyBudgetRecommendations:
    """Suggest budgets for the target month from the last ``months_to_analyze`` months.

    Categories come out by average monthly spending, highest first.
    """
    if not 1 <= target_month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {target_month}")
    as_of = as_of or date.today()
    unit = _rounding_unit()

    start, end = window_bounds(as_of, months_to_analyze)
    categories = db.expense_categories(family_id, db_path=db_path)
    transactions = db.expense_transactions(family_id, start, end, db_path=db_path)
    budgets = db.budgets_for(family_id, target_year, target_month, db_path=db_path)
    income = db.income_total(family_id, start, end, db_path=db_path)
    average_income = income / months_to_analyze

    current = {int(row.category_id): float(row.amount) for row in budgets.itertuples(index=False)}

    results: List[BudgetRecommendation] = []
    for row in categories.itertuples(index=False):
        category_id = int(row.id)
        amounts = []
        if not transactions.empty:
            amounts = transactions.loc[transactions['category_id'] == category_id, 'Amount'].tolist()
        rec = recommend_budget(
            category_id,
            row.name,
            amounts,
            months_to_analyze=months_to_analyze,
            current_budget=current.get(category_id),
            unit=unit,
        )
        if rec is None:
            logger.debug("No transactions for category %s in the last %d months", row.name, months_to_analyze)
            continue
        results.append(rec)

    results.sort(key=lambda r: r.average_monthly_spending, reverse=True)

    logger.info(
        "Budget recommendations for family %s %04d-%02d: %d categories",
        family_id, target_year, target_month, len(results),
    )
    return FamilyBudgetRecommendations(
        family_id=family_id,
        target_year=target_year,
        target_month=target_month,
        months_analyzed=months_to_analyze,
        categories=tuple(results),
        total_suggested=sum(r.suggested_budget for r in results),
        average_monthly_income=average_income,
        recommendations=tuple(overall_recommendations(results, average_income)),
    )


def realization_report(
    family_id: str,
    year: int,
    month: Optional[int] = None,
    category_id: Optional[int] = None,
    as_of: Optional[date] = None,
    db_path: Optional[PathLike] = None,
) -> FamilyRealization:
    """Day-by-day realization of the configured budgets of a year, or of one month."""
    if month is not None and not 1 <= month <= 12:
        raise ValueError(f"Month must be between 1 and 12, got {month}")
    as_of = as_of or date.today()

    budgets = db.budgets_for(family_id, year, month, db_path=db_path)
    if category_id is not None:
        budgets = budgets[budgets['category_id'] == category_id]
    start, end = _period_bounds(year, month)
    transactions = db.expense_transactions(family_id, start, end, db_path=db_path)

    items: List[BudgetRealization] = []
    for row in budgets.itertuples(index=False):
        rows = transactions
        if not transactions.empty:
            rows = transactions[transactions['category_id'] == row.category_id]
        items.append(realization(
            float(row.amount),
            rows,
            int(row.year),
            int(row.month),
            as_of,
            budget_id=int(row.id),
            category_id=int(row.category_id),
            category_name=row.category_name,
        ))

    summary = summarize_realization(items)
    logger.info(
        "Realization for family %s in %s: %d budgets at %.1f%%",
        family_id,
        f"{year:04d}-{month:02d}" if month else f"{year:04d}",
        summary.total_budgets, summary.overall_realization_rate,
    )
    return FamilyRealization(
        family_id=family_id,
        year=year,
        month=month,
        as_of=as_of,
        budgets=tuple(items),
        summary=summary,
    )
