"""Budget analytics and forecasting.

This package provides the pure computations behind the budget pages:
- Trailing history sampling
- Linear, EMA and weighted projections and their ensemble
- Confidence and risk labels
- Budget strategies and recommendations
- Live budget tracking and family-level roll-ups
- Realization of past budget months
"""

from .confidence import (
    coefficient_of_variation,
    confidence_from_cv,
    risk_profile,
    score_confidence,
    standard_deviation,
)
from .ensemble import EnsembleForecaster, classify_trend, method_breakdown, seasonality_factors
from .history import monthly_totals_from_transactions, sample_all_categories, sample_history
from .methods import exponential_moving_average, linear_regression, regression_slope, weighted_average
from .models import (
    AlertLevel,
    BudgetStatus,
    BudgetStrategySet,
    CategoryForecast,
    Confidence,
    ForecastResult,
    ForecastStatus,
    InvalidSeriesError,
    MonthIndex,
    MonthlySample,
    MonthlySeries,
    PortfolioSummary,
    RealizationGrade,
    RealizationStatus,
    Strategy,
    TrackingSnapshot,
    TrackingSummary,
    TrendDirection,
)
from .portfolio import summarize_portfolio, summarize_tracking
from .realization import daily_progress, grade_for, realization, status_for, summarize_realization
from .recommendations import overall_recommendations, recommend_budget
from .strategies import generate_strategies, recommend_strategy
from .tracking import alert_level_for, budget_status, period_days, track_budget

__all__ = [
    # Sampling
    'sample_history',
    'sample_all_categories',
    'monthly_totals_from_transactions',
    # Methods
    'linear_regression',
    'regression_slope',
    'exponential_moving_average',
    'weighted_average',
    # Ensemble
    'EnsembleForecaster',
    'method_breakdown',
    'seasonality_factors',
    'classify_trend',
    # Confidence
    'coefficient_of_variation',
    'confidence_from_cv',
    'score_confidence',
    'standard_deviation',
    'risk_profile',
    # Strategies
    'generate_strategies',
    'recommend_strategy',
    'recommend_budget',
    'overall_recommendations',
    # Tracking
    'track_budget',
    'alert_level_for',
    'period_days',
    'budget_status',
    # Portfolio
    'summarize_portfolio',
    'summarize_tracking',
    # Realization
    'realization',
    'daily_progress',
    'grade_for',
    'status_for',
    'summarize_realization',
    # Models
    'AlertLevel',
    'BudgetStatus',
    'BudgetStrategySet',
    'CategoryForecast',
    'Confidence',
    'ForecastResult',
    'ForecastStatus',
    'InvalidSeriesError',
    'MonthIndex',
    'MonthlySample',
    'MonthlySeries',
    'PortfolioSummary',
    'RealizationGrade',
    'RealizationStatus',
    'Strategy',
    'TrackingSnapshot',
    'TrackingSummary',
    'TrendDirection',
]
