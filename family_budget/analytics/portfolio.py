"""Family-level roll-ups of category forecasts and tracking snapshots."""

from __future__ import annotations

from typing import Dict, List, Optional, Sequence

from .models import (
    AlertLevel,
    BudgetStrategySet,
    CategoryForecast,
    Confidence,
    CriticalAlert,
    PortfolioSummary,
    Recommendation,
    Strategy,
    TrackingSnapshot,
    TrackingSummary,
)

AI_OPTIMIZED_MAX_RATIO = 70.0
OPPORTUNITY_RATIO = 60.0
COUNTED_ALERT_LEVELS = (AlertLevel.CRITICAL, AlertLevel.DANGER, AlertLevel.WARNING, AlertLevel.INFO)
CRITICAL_LEVELS = (AlertLevel.CRITICAL, AlertLevel.DANGER)


def savings_rate(income: float, total: float) -> float:
    """Share of income left after spending ``total``; ``0`` without income."""
    if income <= 0:
        return 0.0
    return (income - total) / income * 100


def spending_ratio(income: float, total: float) -> Optional[float]:
    if income <= 0:
        return None
    return total / income * 100


def portfolio_strategy(ai_optimized_total: float, income: float) -> Strategy:
    ratio = spending_ratio(income, ai_optimized_total)
    if ratio is not None and ratio < AI_OPTIMIZED_MAX_RATIO:
        return Strategy.AI_OPTIMIZED
    return Strategy.MODERATE


def strategy_totals(category_forecasts: Sequence[CategoryForecast]) -> BudgetStrategySet:
    totals: Dict[Strategy, float] = {strategy: 0.0 for strategy in Strategy}
    for item in category_forecasts:
        for strategy in Strategy:
            totals[strategy] += item.strategies.get(strategy)
    return BudgetStrategySet(**{strategy.value: amount for strategy, amount in totals.items()})


def confidence_counts(category_forecasts: Sequence[CategoryForecast]) -> Dict[Confidence, int]:
    counts: Dict[Confidence, int] = {label: 0 for label in Confidence}
    for item in category_forecasts:
        counts[item.forecast.confidence] += 1
    return counts


def alert_counts(snapshots: Sequence[TrackingSnapshot]) -> Dict[AlertLevel, int]:
    counts: Dict[AlertLevel, int] = {level: 0 for level in COUNTED_ALERT_LEVELS}
    for snapshot in snapshots:
        if snapshot.alert_level in counts:
            counts[snapshot.alert_level] += 1
    return counts


def portfolio_recommendations(
    category_forecasts: Sequence[CategoryForecast],
    totals: BudgetStrategySet,
    income: float,
) -> List[Recommendation]:
    """Savings opportunity and confidence notes for the whole family.

    Entries come out in insertion order; callers should not rely on it.
    """
    recommendations: List[Recommendation] = []

    ratio = spending_ratio(income, totals.ai_optimized)
    if ratio is not None and ratio < OPPORTUNITY_RATIO:
        recommendations.append(Recommendation(
            type='opportunity',
            priority='high',
            title='High savings opportunity',
            description=(
                f"The AI forecast needs only {ratio:.0f}% of income for expenses. "
                "The rest can be saved or invested."
            ),
            potential_savings=income - totals.ai_optimized,
        ))

    high_confidence = sum(
        1 for item in category_forecasts
        if item.forecast.confidence in (Confidence.VERY_HIGH, Confidence.HIGH)
    )
    recommendations.append(Recommendation(
        type='info',
        priority='medium',
        title='AI confidence level',
        description=(
            f"{high_confidence} of {len(category_forecasts)} categories have "
            "high confidence for the AI forecast."
        ),
    ))
    return recommendations


def summarize_portfolio(
    category_forecasts: Sequence[CategoryForecast],
    average_monthly_income: float,
    snapshots: Sequence[TrackingSnapshot] = (),
) -> PortfolioSummary:
    """Fold every category forecast (and optional tracking snapshots) into one summary."""
    totals = strategy_totals(category_forecasts)
    votes: Dict[Strategy, int] = {strategy: 0 for strategy in Strategy}
    for item in category_forecasts:
        votes[item.recommended_strategy] += 1

    on_track = sum(1 for s in snapshots if s.is_on_track)
    return PortfolioSummary(
        total_predicted_spending=sum(item.forecast.predicted_amount for item in category_forecasts),
        average_monthly_income=average_monthly_income,
        strategy_totals=totals,
        savings_rate_per_strategy={
            strategy: savings_rate(average_monthly_income, totals.get(strategy))
            for strategy in Strategy
        },
        recommended_strategy=portfolio_strategy(totals.ai_optimized, average_monthly_income),
        strategy_votes=votes,
        confidence_counts=confidence_counts(category_forecasts),
        recommendations=tuple(portfolio_recommendations(category_forecasts, totals, average_monthly_income)),
        alert_counts=alert_counts(snapshots),
        on_track_count=on_track,
        off_track_count=len(snapshots) - on_track,
    )


def critical_alerts(snapshots: Sequence[TrackingSnapshot]) -> List[CriticalAlert]:
    return [
        CriticalAlert(
            category_name=s.category_name,
            message=s.alert_message,
            utilization_rate=s.utilization_rate,
            spent=s.spent,
            budget=s.budget_amount,
        )
        for s in snapshots
        if s.alert_level in CRITICAL_LEVELS
    ]


def summarize_tracking(snapshots: Sequence[TrackingSnapshot]) -> TrackingSummary:
    count = len(snapshots)
    on_track = sum(1 for s in snapshots if s.is_on_track)
    return TrackingSummary(
        total_budgets=count,
        total_budget_amount=sum(s.budget_amount for s in snapshots),
        total_spent=sum(s.spent for s in snapshots),
        total_remaining=sum(s.remaining for s in snapshots),
        average_utilization=(sum(s.utilization_rate for s in snapshots) / count) if count else 0.0,
        alert_counts=alert_counts(snapshots),
        on_track_count=on_track,
        off_track_count=count - on_track,
        critical_alerts=tuple(critical_alerts(snapshots)),
    )
