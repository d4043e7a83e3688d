"""Ensemble forecast for one spending category.

Blends the linear, EMA and weighted projections with fixed weights, scales
the blend by the target month's seasonality factor, and describes the
window's trend, spending patterns and insights.
"""

from __future__ import annotations

from typing import List, Optional, Tuple

import numpy as np

from .confidence import coefficient_of_variation, confidence_from_cv, standard_deviation
from .methods import exponential_moving_average, linear_regression, regression_slope, weighted_average
from .models import (
    Confidence,
    ForecastResult,
    Insight,
    MethodBreakdown,
    MonthIndex,
    MonthlySeries,
    Pattern,
    Trend,
    TrendDirection,
)

LINEAR_WEIGHT = 0.3
EMA_WEIGHT = 0.3
WEIGHTED_WEIGHT = 0.4

TREND_THRESHOLD = 0.05
VOLATILE_CV = 40.0
SEASONAL_SPREAD = 1.5


def blend(linear: float, ema: float, weighted: float) -> float:
    return LINEAR_WEIGHT * linear + EMA_WEIGHT * ema + WEIGHTED_WEIGHT * weighted


def method_breakdown(amounts) -> MethodBreakdown:
    linear = linear_regression(amounts)
    ema = exponential_moving_average(amounts)
    weighted = weighted_average(amounts)
    return MethodBreakdown(
        linear=linear,
        ema=ema,
        weighted=weighted,
        ensemble=blend(linear, ema, weighted),
    )


def seasonality_factors(amounts) -> np.ndarray:
    """Each month's amount relative to the window mean (all ``1`` for a zero mean)."""
    values = np.asarray(amounts, dtype=float)
    mean = values.mean()
    if mean <= 0:
        return np.ones_like(values)
    return values / mean


def classify_trend(amounts) -> Trend:
    slope, _ = regression_slope(amounts)
    mean = float(np.mean(amounts))
    if slope > TREND_THRESHOLD * mean:
        direction = TrendDirection.UP
    elif slope < -TREND_THRESHOLD * mean:
        direction = TrendDirection.DOWN
    else:
        direction = TrendDirection.STABLE
    strength = abs(slope / mean) * 100 if mean > 0 else 0.0
    return Trend(direction=direction, strength_percent=strength, slope=slope)


def detect_patterns(slope: float, mean: float, cv: float, factors: np.ndarray) -> Tuple[Pattern, ...]:
    patterns: List[Pattern] = []
    if mean > 0 and slope > 0 and slope / mean > TREND_THRESHOLD:
        patterns.append(Pattern('growth', 'Spending is consistently increasing', 'high'))
    if cv > VOLATILE_CV:
        patterns.append(Pattern('volatile', 'Spending is highly unstable', 'medium'))

    highest = float(factors.max())
    lowest = float(factors.min())
    if (lowest > 0 and highest / lowest > SEASONAL_SPREAD) or (lowest == 0 and highest > 0):
        patterns.append(Pattern('seasonal', 'Spending follows a seasonal pattern', 'medium'))
    return tuple(patterns)


def build_insights(
    category_name: str,
    confidence: Confidence,
    slope: float,
    mean: float,
    patterns: Tuple[Pattern, ...],
) -> Tuple[Insight, ...]:
    insights: List[Insight] = []
    if confidence in (Confidence.VERY_HIGH, Confidence.HIGH):
        insights.append(Insight(
            'recommendation',
            f"{category_name} is highly predictable. Use the AI-optimized strategy.",
            'use_ai_optimized',
        ))
    if slope > 0 and mean > 0:
        insights.append(Insight(
            'warning',
            f"{category_name} spending is rising {slope / mean * 100:.1f}% per month.",
            'review_spending',
        ))
    if any(p.type == 'volatile' for p in patterns):
        insights.append(Insight(
            'alert',
            f"{category_name} spending is unstable. Use the conservative strategy.",
            'use_conservative',
        ))
    return tuple(insights)


class EnsembleForecaster:
    """Forecast the next month of one category from its trailing window."""

    def __init__(self, series: MonthlySeries, category_name: str = ''):
        self.series = series
        self.category_name = category_name or f"Category {series.category_id}"
        self.amounts = series.amounts

    def target_index(self, target_month: int) -> MonthIndex:
        """Window position that shares the target's calendar month."""
        return MonthIndex.for_calendar_month(target_month, self.series.first_period.month)

    def seasonality_factor(self, target_month: int) -> float:
        """Factor of the window month sharing the target's calendar month.

        A month without spending gives ``1`` so the blend is left unscaled.
        """
        factor = float(seasonality_factors(self.amounts)[self.target_index(target_month)])
        return factor or 1.0

    def forecast(self, target_month: int) -> Optional[ForecastResult]:
        """Build the forecast, or ``None`` when the window has no spending at all."""
        if self.series.is_empty:
            return None

        breakdown = method_breakdown(self.amounts)
        factor = self.seasonality_factor(target_month)
        mean = float(self.amounts.mean())
        std = standard_deviation(self.amounts)
        cv = coefficient_of_variation(self.amounts)
        confidence = confidence_from_cv(cv)
        trend = classify_trend(self.amounts)
        patterns = detect_patterns(trend.slope, mean, cv, seasonality_factors(self.amounts))

        return ForecastResult(
            category_id=self.series.category_id,
            category_name=self.category_name,
            predicted_amount=breakdown.ensemble * factor,
            confidence=confidence,
            method_breakdown=breakdown,
            seasonality_factor=factor,
            trend=trend,
            average_monthly=mean,
            standard_deviation=std,
            coefficient_of_variation=cv,
            patterns=patterns,
            insights=build_insights(self.category_name, confidence, trend.slope, mean, patterns),
        )
