import pandas as pd
import pytest

from family_budget.analytics.ensemble import (
    EnsembleForecaster,
    classify_trend,
    method_breakdown,
    seasonality_factors,
)
from family_budget.analytics.models import (
    Confidence,
    InvalidSeriesError,
    MonthIndex,
    MonthlySample,
    MonthlySeries,
    TrendDirection,
)


def series(amounts, end='2024-12', category_id=1):
    return MonthlySeries.from_amounts(amounts, pd.Period(end, freq='M'), category_id=category_id)


def test_flat_series_forecasts_the_constant():
    result = EnsembleForecaster(series([500_000.0] * 12), 'Groceries').forecast(1)
    assert result.predicted_amount == pytest.approx(500_000.0)
    assert result.seasonality_factor == pytest.approx(1.0)
    assert result.confidence == Confidence.VERY_HIGH
    assert result.coefficient_of_variation == pytest.approx(0.0)
    assert result.trend.direction == TrendDirection.STABLE
    assert result.patterns == ()


def test_spike_series_beats_flat_series():
    flat = method_breakdown([100.0] * 12)
    spike = method_breakdown([100.0] * 11 + [200.0])
    assert spike.ensemble > flat.ensemble
    flat_forecast = EnsembleForecaster(series([100.0] * 12), 'Flat').forecast(1)
    spike_forecast = EnsembleForecaster(series([100.0] * 11 + [200.0]), 'Spike').forecast(1)
    assert spike_forecast.predicted_amount > flat_forecast.predicted_amount
    assert spike.ensemble == pytest.approx(0.3 * 400 / 3 + 0.3 * 130 + 0.4 * 2840 / 25.2)
    trend = classify_trend([100.0] * 11 + [200.0])
    assert trend.slope > 0


def test_steady_growth_is_an_up_trend():
    amounts = [100.0 + 20 * i for i in range(12)]
    trend = classify_trend(amounts)
    assert trend.direction == TrendDirection.UP
    assert trend.strength_percent == pytest.approx(20 / 210 * 100)

    result = EnsembleForecaster(series(amounts), 'Education').forecast(1)
    assert 'growth' in {p.type for p in result.patterns}
    assert any(i.action == 'review_spending' for i in result.insights)


def test_steady_decline_is_a_down_trend():
    amounts = [320.0 - 20 * i for i in range(12)]
    assert classify_trend(amounts).direction == TrendDirection.DOWN


def test_target_month_aligns_with_window_calendar():
    forecaster = EnsembleForecaster(series([100.0] * 12, end='2024-06'))
    # Window covers 2023-07 .. 2024-06.
    assert forecaster.target_index(7) == MonthIndex.OLDEST
    assert forecaster.target_index(6) == MonthIndex.NEWEST
    assert forecaster.target_index(1) == MonthIndex.M06


def test_seasonality_factor_uses_same_calendar_month():
    amounts = [240.0] + [100.0] * 11
    forecaster = EnsembleForecaster(series(amounts, end='2024-12'), 'Utilities')
    mean = sum(amounts) / 12
    assert forecaster.seasonality_factor(1) == pytest.approx(240.0 / mean)
    assert forecaster.seasonality_factor(2) == pytest.approx(100.0 / mean)

    result = forecaster.forecast(1)
    assert result.predicted_amount == pytest.approx(result.method_breakdown.ensemble * 240.0 / mean)


def test_seasonality_factors_of_zero_mean_are_one():
    assert list(seasonality_factors([0.0] * 12)) == [1.0] * 12


def test_empty_series_has_no_forecast():
    assert EnsembleForecaster(series([0.0] * 12)).forecast(3) is None


def test_volatile_series_flags_patterns_and_low_confidence():
    amounts = [0.0, 300.0] * 6
    result = EnsembleForecaster(series(amounts), 'Dining').forecast(5)
    types = {p.type for p in result.patterns}
    assert 'volatile' in types
    assert 'seasonal' in types
    assert result.confidence == Confidence.LOW
    assert any(i.action == 'use_conservative' for i in result.insights)


def test_zero_target_month_leaves_the_blend_unscaled():
    # Window 2024-01 .. 2024-12; May falls on a month without spending.
    result = EnsembleForecaster(series([0.0, 300.0] * 6), 'Dining').forecast(5)
    assert result.seasonality_factor == 1.0
    assert result.predicted_amount == pytest.approx(result.method_breakdown.ensemble)
    assert result.predicted_amount > 0

    spending_month = EnsembleForecaster(series([0.0, 300.0] * 6), 'Dining').forecast(6)
    assert spending_month.seasonality_factor == pytest.approx(2.0)


def test_predictable_category_suggests_ai_optimized():
    result = EnsembleForecaster(series([1000.0] * 12), 'Rent').forecast(4)
    assert any(i.action == 'use_ai_optimized' for i in result.insights)
    assert result.category_name == 'Rent'


def test_forecast_to_dict_uses_plain_values():
    result = EnsembleForecaster(series([1000.0] * 12), 'Rent').forecast(4)
    data = result.to_dict()
    assert data['confidence'] == 'very_high'
    assert data['trend']['direction'] == 'stable'
    assert set(data['method_breakdown']) == {'linear', 'ema', 'weighted', 'ensemble'}


def test_series_rejects_gaps_between_months():
    start = pd.Period('2024-01', freq='M')
    samples = [
        MonthlySample(MonthIndex(i), start + i + (1 if i > 5 else 0), 10.0)
        for i in range(12)
    ]
    with pytest.raises(InvalidSeriesError):
        MonthlySeries(category_id=1, samples=tuple(samples))


def test_calendar_month_outside_year_is_rejected():
    with pytest.raises(ValueError):
        MonthIndex.for_calendar_month(13, 1)
