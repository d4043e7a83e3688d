"""Historical-average budget recommendations.

A lighter companion to the ensemble forecast: looks at individual expense
transactions over the last few months, compares the first and second half
of the period to find a trend, and pads the monthly average accordingly.
"""

from __future__ import annotations

from typing import List, Optional, Sequence

import numpy as np

from .models import BudgetRecommendation, Recommendation
from .strategies import DEFAULT_ROUNDING_UNIT, round_up

DEFAULT_MONTHS_TO_ANALYZE = 6
TREND_CHANGE_PERCENT = 10.0
HIGH_VOLATILITY = 40.0

TREND_PADDING = {
    'increasing': 0.5,
    'decreasing': -0.3,
    'stable': 0.2,
}

REASONING = {
    'increasing': 'Added buffer due to increasing spending.',
    'decreasing': 'Reduced budget due to decreasing spending.',
    'stable': 'Stable spending pattern with small buffer.',
}


def _half_trend(amounts: np.ndarray) -> float:
    half = len(amounts) // 2
    if half == 0:
        return 0.0
    first = amounts[:half].mean()
    second = amounts[half:].mean()
    if first == 0:
        return 0.0
    return float((second - first) / first * 100)


def _trend_label(trend_percentage: float) -> str:
    if trend_percentage > TREND_CHANGE_PERCENT:
        return 'increasing'
    if trend_percentage < -TREND_CHANGE_PERCENT:
        return 'decreasing'
    return 'stable'


def _confidence_label(cv: float) -> str:
    if cv < 20:
        return 'high'
    if cv < 40:
        return 'medium'
    return 'low'


def recommend_budget(
    category_id: int,
    category_name: str,
    amounts: Sequence[float],
    months_to_analyze: int = DEFAULT_MONTHS_TO_ANALYZE,
    current_budget: Optional[float] = None,
    unit: int = DEFAULT_ROUNDING_UNIT,
) -> Optional[BudgetRecommendation]:
    """Suggest a monthly budget from chronologically ordered transaction amounts.

    Returns ``None`` when the category has no transactions in the period.
    """
    if months_to_analyze <= 0:
        raise ValueError("months_to_analyze must be positive")
    values = np.asarray(list(amounts), dtype=float)
    if values.size == 0:
        return None

    average = float(values.sum() / months_to_analyze)
    median = float(np.sort(values)[len(values) // 2])
    std_dev = float(np.sqrt(np.mean((values - average) ** 2)))

    trend_percentage = _half_trend(values)
    trend = _trend_label(trend_percentage)
    suggested = round_up(average + std_dev * TREND_PADDING[trend], unit)

    cv = std_dev / average * 100 if average > 0 else 100.0

    difference = None
    difference_percentage = None
    if current_budget is not None:
        difference = current_budget - suggested
        difference_percentage = difference / suggested * 100 if suggested else 0.0

    return BudgetRecommendation(
        category_id=category_id,
        category_name=category_name,
        months_analyzed=months_to_analyze,
        transaction_count=int(values.size),
        average_monthly_spending=average,
        median_transaction=median,
        standard_deviation=std_dev,
        trend=trend,
        trend_percentage=trend_percentage,
        volatility=cv,
        suggested_budget=suggested,
        confidence=_confidence_label(cv),
        reasoning=f"Based on {months_to_analyze} months of data with {trend} trend. {REASONING[trend]}",
        min_budget=round_up(average - std_dev, unit),
        max_budget=round_up(average + std_dev * 1.5, unit),
        current_budget=current_budget,
        difference=difference,
        difference_percentage=difference_percentage,
    )


def overall_recommendations(
    recommendations: Sequence[BudgetRecommendation],
    average_monthly_income: float,
) -> List[Recommendation]:
    """Family-wide notes on the suggested budgets."""
    notes: List[Recommendation] = []
    total = sum(r.suggested_budget for r in recommendations)

    if average_monthly_income > 0:
        ratio = total / average_monthly_income * 100
        if ratio > 80:
            notes.append(Recommendation(
                type='warning',
                priority='high',
                title='Budget too high',
                description=(
                    f"The recommended budget ({ratio:.0f}% of income) is too high. "
                    "Consider cutting non-essential categories."
                ),
            ))
        elif ratio < 50:
            notes.append(Recommendation(
                type='opportunity',
                priority='medium',
                title='Room to save more',
                description=(
                    f"The budget is only {ratio:.0f}% of income. "
                    f"You could save {100 - ratio:.0f}% of income."
                ),
                potential_savings=average_monthly_income - total,
            ))

    volatile = [r for r in recommendations if r.volatility > HIGH_VOLATILITY]
    if volatile:
        names = ', '.join(r.category_name for r in volatile[:3])
        notes.append(Recommendation(
            type='info',
            priority='low',
            title='Categories with unstable spending',
            description=f"{len(volatile)} categories have unstable spending. Monitor closely: {names}",
        ))

    increasing = [r for r in recommendations if r.trend == 'increasing']
    if increasing:
        names = ', '.join(r.category_name for r in increasing[:3])
        notes.append(Recommendation(
            type='warning',
            priority='high',
            title='Spending is increasing',
            description=f"{len(increasing)} categories show increasing spending. Review: {names}",
        ))
    return notes
