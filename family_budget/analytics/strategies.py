"""Budget strategy options derived from a forecast."""

from __future__ import annotations

import math

from .models import BudgetStrategySet, Confidence, ForecastResult, Strategy

DEFAULT_ROUNDING_UNIT = 1000

CONSERVATIVE_SIGMA = 1.5
MODERATE_SIGMA = 0.5
AGGRESSIVE_SIGMA = -0.3

HIGH_VOLATILITY_CV = 40.0


def round_up(amount: float, unit: int = DEFAULT_ROUNDING_UNIT) -> float:
    """Round ``amount`` up to the next multiple of ``unit``."""
    # Absorb binary noise such as 1000000.0000000001 before the ceiling.
    return float(math.ceil(round(amount / unit, 9)) * unit)


def generate_strategies(
    predicted: float,
    std_dev: float,
    unit: int = DEFAULT_ROUNDING_UNIT,
) -> BudgetStrategySet:
    """Four budget options around the prediction, spaced by the window's deviation.

    Ordering between options is not guaranteed: with a large deviation the
    aggressive option drops below the AI-optimized one, with zero deviation
    several options coincide.
    """
    return BudgetStrategySet(
        conservative=round_up(predicted + CONSERVATIVE_SIGMA * std_dev, unit),
        moderate=round_up(predicted + MODERATE_SIGMA * std_dev, unit),
        aggressive=round_up(predicted + AGGRESSIVE_SIGMA * std_dev, unit),
        ai_optimized=round_up(predicted, unit),
    )


def recommend_strategy(confidence: Confidence, cv: float) -> Strategy:
    """Strategy to suggest for a category with the given confidence and CV."""
    if confidence in (Confidence.VERY_HIGH, Confidence.HIGH):
        return Strategy.AI_OPTIMIZED
    if cv > HIGH_VOLATILITY_CV:
        return Strategy.CONSERVATIVE
    return Strategy.MODERATE


def strategies_for(forecast: ForecastResult, unit: int = DEFAULT_ROUNDING_UNIT) -> BudgetStrategySet:
    return generate_strategies(forecast.predicted_amount, forecast.standard_deviation, unit)
