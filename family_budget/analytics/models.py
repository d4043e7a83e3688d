"""Value objects shared by the forecasting and tracking analytics.

Every object here is a frozen dataclass created fresh for a request and
never persisted.  ``to_dict`` renders plain dictionaries (enums as their
string values, periods as ``YYYY-MM``) for the dashboard and the CLI.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, field
from datetime import date
from enum import Enum, IntEnum
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import numpy as np
import pandas as pd

WINDOW_MONTHS = 12


class InvalidSeriesError(ValueError):
    """Raised when a monthly series does not have the trailing-window shape."""


class MonthIndex(IntEnum):
    """Position of a sample in the trailing window, 0 being the oldest month."""

    M00 = 0
    M01 = 1
    M02 = 2
    M03 = 3
    M04 = 4
    M05 = 5
    M06 = 6
    M07 = 7
    M08 = 8
    M09 = 9
    M10 = 10
    M11 = 11
    OLDEST = 0
    NEWEST = 11

    @classmethod
    def for_calendar_month(cls, calendar_month: int, first_month: int) -> 'MonthIndex':
        """Window position holding ``calendar_month`` when the window starts at ``first_month``."""
        if not 1 <= calendar_month <= 12:
            raise ValueError(f"Month must be between 1 and 12, got {calendar_month}")
        return cls((calendar_month - first_month) % WINDOW_MONTHS)


class Confidence(str, Enum):
    VERY_HIGH = 'very_high'
    HIGH = 'high'
    MEDIUM = 'medium'
    LOW = 'low'


class TrendDirection(str, Enum):
    UP = 'up'
    DOWN = 'down'
    STABLE = 'stable'


class Strategy(str, Enum):
    CONSERVATIVE = 'conservative'
    MODERATE = 'moderate'
    AGGRESSIVE = 'aggressive'
    AI_OPTIMIZED = 'ai_optimized'


class AlertLevel(str, Enum):
    NONE = 'none'
    INFO = 'info'
    WARNING = 'warning'
    DANGER = 'danger'
    CRITICAL = 'critical'


class ForecastStatus(str, Enum):
    GOOD = 'good'
    WARNING = 'warning'
    OVER = 'over'


class BudgetStatus(str, Enum):
    OVER = 'over'
    WARNING = 'warning'
    SAFE = 'safe'
    NO_BUDGET = 'no_budget'


class RealizationGrade(str, Enum):
    A = 'A'
    B = 'B'
    C = 'C'
    D = 'D'
    F = 'F'


class RealizationStatus(str, Enum):
    EXCELLENT = 'excellent'
    GOOD = 'good'
    WARNING = 'warning'
    OVER = 'over'


class SpendingTrend(str, Enum):
    INCREASING = 'increasing'
    DECREASING = 'decreasing'


def _plain(value: Any) -> Any:
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, pd.Period):
        return str(value)
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, dict):
        return {_plain(k): _plain(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [_plain(v) for v in value]
    if isinstance(value, np.generic):
        return value.item()
    return value


class _Serializable:
    def to_dict(self) -> Dict[str, Any]:
        return _plain(asdict(self))


def ensure_window(amounts: Iterable[float]) -> np.ndarray:
    """Return ``amounts`` as a float array, validating the 12-month shape."""
    values = np.asarray(list(amounts), dtype=float)
    if values.ndim != 1 or len(values) != WINDOW_MONTHS:
        raise InvalidSeriesError(
            f"Expected {WINDOW_MONTHS} monthly amounts, got {values.size}"
        )
    if not np.all(np.isfinite(values)):
        raise InvalidSeriesError("Monthly amounts must be finite numbers")
    if np.any(values < 0):
        raise InvalidSeriesError("Monthly amounts must be non-negative")
    return values


@dataclass(frozen=True)
class MonthlySample(_Serializable):
    month_index: MonthIndex
    period: pd.Period
    amount: float
    transaction_count: int = 0


@dataclass(frozen=True)
class MonthlySeries(_Serializable):
    """Twelve contiguous monthly samples for one category, oldest first."""

    category_id: int
    samples: Tuple[MonthlySample, ...]

    def __post_init__(self) -> None:
        if len(self.samples) != WINDOW_MONTHS:
            raise InvalidSeriesError(
                f"Expected {WINDOW_MONTHS} monthly samples, got {len(self.samples)}"
            )
        first = self.samples[0].period
        for position, sample in enumerate(self.samples):
            if int(sample.month_index) != position:
                raise InvalidSeriesError(
                    f"Sample {position} carries month index {int(sample.month_index)}"
                )
            if sample.period != first + position:
                raise InvalidSeriesError(
                    f"Samples are not contiguous: expected {first + position}, got {sample.period}"
                )
            if sample.amount < 0 or sample.transaction_count < 0:
                raise InvalidSeriesError(f"Negative values in sample for {sample.period}")

    @classmethod
    def from_amounts(
        cls,
        amounts: Sequence[float],
        end_period: pd.Period,
        category_id: int = 0,
        counts: Optional[Sequence[int]] = None,
    ) -> 'MonthlySeries':
        """Build a series whose newest sample falls on ``end_period``."""
        values = ensure_window(amounts)
        if counts is None:
            counts = [0] * WINDOW_MONTHS
        if len(counts) != WINDOW_MONTHS:
            raise InvalidSeriesError(
                f"Expected {WINDOW_MONTHS} transaction counts, got {len(counts)}"
            )
        end = pd.Period(end_period, freq='M')
        start = end - (WINDOW_MONTHS - 1)
        samples = tuple(
            MonthlySample(
                month_index=MonthIndex(i),
                period=start + i,
                amount=float(values[i]),
                transaction_count=int(counts[i]),
            )
            for i in range(WINDOW_MONTHS)
        )
        return cls(category_id=category_id, samples=samples)

    @property
    def amounts(self) -> np.ndarray:
        return np.array([s.amount for s in self.samples], dtype=float)

    @property
    def transaction_counts(self) -> List[int]:
        return [s.transaction_count for s in self.samples]

    @property
    def first_period(self) -> pd.Period:
        return self.samples[0].period

    @property
    def last_period(self) -> pd.Period:
        return self.samples[-1].period

    @property
    def is_empty(self) -> bool:
        """True when the category had no spending in the whole window."""
        return all(s.amount == 0 for s in self.samples)


@dataclass(frozen=True)
class MethodBreakdown(_Serializable):
    linear: float
    ema: float
    weighted: float
    ensemble: float


@dataclass(frozen=True)
class Trend(_Serializable):
    direction: TrendDirection
    strength_percent: float
    slope: float


@dataclass(frozen=True)
class Pattern(_Serializable):
    type: str
    description: str
    impact: str


@dataclass(frozen=True)
class Insight(_Serializable):
    type: str
    message: str
    action: str


@dataclass(frozen=True)
class ForecastResult(_Serializable):
    category_id: int
    category_name: str
    predicted_amount: float
    confidence: Confidence
    method_breakdown: MethodBreakdown
    seasonality_factor: float
    trend: Trend
    average_monthly: float
    standard_deviation: float
    coefficient_of_variation: float
    patterns: Tuple[Pattern, ...] = ()
    insights: Tuple[Insight, ...] = ()


@dataclass(frozen=True)
class BudgetStrategySet(_Serializable):
    conservative: float
    moderate: float
    aggressive: float
    ai_optimized: float

    def get(self, strategy: Strategy) -> float:
        return getattr(self, Strategy(strategy).value)

    def as_mapping(self) -> Dict[Strategy, float]:
        return {strategy: self.get(strategy) for strategy in Strategy}


@dataclass(frozen=True)
class CategoryForecast(_Serializable):
    forecast: ForecastResult
    strategies: BudgetStrategySet
    recommended_strategy: Strategy


@dataclass(frozen=True)
class Recommendation(_Serializable):
    type: str
    priority: str
    title: str
    description: str
    potential_savings: Optional[float] = None


@dataclass(frozen=True)
class TrackingSnapshot(_Serializable):
    budget_id: int
    category_id: int
    category_name: str
    year: int
    month: int
    budget_amount: float
    spent: float
    remaining: float
    utilization_rate: float
    daily_burn_rate: float
    days_elapsed: int
    days_remaining: int
    projected_spending: float
    projected_utilization: float
    expected_utilization: float
    variance: float
    alert_level: AlertLevel
    alert_message: str
    is_on_track: bool
    forecast_status: ForecastStatus
    transaction_count: int = 0


@dataclass(frozen=True)
class CriticalAlert(_Serializable):
    category_name: str
    message: str
    utilization_rate: float
    spent: float
    budget: float


@dataclass(frozen=True)
class TrackingSummary(_Serializable):
    total_budgets: int
    total_budget_amount: float
    total_spent: float
    total_remaining: float
    average_utilization: float
    alert_counts: Dict[AlertLevel, int]
    on_track_count: int
    off_track_count: int
    critical_alerts: Tuple[CriticalAlert, ...] = ()


@dataclass(frozen=True)
class PortfolioSummary(_Serializable):
    total_predicted_spending: float
    average_monthly_income: float
    strategy_totals: BudgetStrategySet
    savings_rate_per_strategy: Dict[Strategy, float]
    recommended_strategy: Strategy
    strategy_votes: Dict[Strategy, int]
    confidence_counts: Dict[Confidence, int]
    recommendations: Tuple[Recommendation, ...] = ()
    alert_counts: Dict[AlertLevel, int] = field(default_factory=dict)
    on_track_count: int = 0
    off_track_count: int = 0


@dataclass(frozen=True)
class CategoryBudgetStatus(_Serializable):
    category_id: int
    category_name: str
    budget: Optional[float]
    budget_id: Optional[int]
    realization: float
    percentage: float
    actual_percentage: float
    status: BudgetStatus


@dataclass(frozen=True)
class BudgetRecommendation(_Serializable):
    """Historical-average budget suggestion for one category."""

    category_id: int
    category_name: str
    months_analyzed: int
    transaction_count: int
    average_monthly_spending: float
    median_transaction: float
    standard_deviation: float
    trend: str
    trend_percentage: float
    volatility: float
    suggested_budget: float
    confidence: str
    reasoning: str
    min_budget: float
    max_budget: float
    current_budget: Optional[float] = None
    difference: Optional[float] = None
    difference_percentage: Optional[float] = None


@dataclass(frozen=True)
class RiskProfile(_Serializable):
    volatility: float
    sharpe_ratio: float
    risk_level: str


@dataclass(frozen=True)
class DailyProgress(_Serializable):
    day: int
    date: date
    daily_spent: float
    cumulative_spent: float
    cumulative_percentage: float
    transaction_count: int


@dataclass(frozen=True)
class RealizationPerformance(_Serializable):
    grade: RealizationGrade
    efficiency: float
    target_daily_spend: float
    actual_daily_spend: float
    trend: SpendingTrend
    average_last_7_days: float


@dataclass(frozen=True)
class TransactionMetrics(_Serializable):
    transaction_count: int
    average_transaction: float
    largest_transaction: float
    smallest_transaction: float


@dataclass(frozen=True)
class BudgetRealization(_Serializable):
    """Day-by-day realization of one monthly budget."""

    budget_id: int
    category_id: int
    category_name: str
    year: int
    month: int
    planned: float
    actual: float
    remaining: float
    realization_rate: float
    variance: float
    variance_percentage: float
    performance: RealizationPerformance
    metrics: TransactionMetrics
    status: RealizationStatus
    daily_progress: Tuple[DailyProgress, ...] = ()


@dataclass(frozen=True)
class RealizationSummary(_Serializable):
    total_budgets: int
    total_planned: float
    total_actual: float
    total_remaining: float
    overall_realization_rate: float
    grade_distribution: Dict[RealizationGrade, int]
    status_distribution: Dict[RealizationStatus, int]
    average_efficiency: float
    best_performers: Tuple[BudgetRealization, ...] = ()
    worst_performers: Tuple[BudgetRealization, ...] = ()
