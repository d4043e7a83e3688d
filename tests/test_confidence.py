import pytest

from family_budget.analytics.confidence import (
    coefficient_of_variation,
    confidence_from_cv,
    risk_profile,
    score_confidence,
    standard_deviation,
)
from family_budget.analytics.models import Confidence


def test_constant_series_is_very_high_confidence():
    assert standard_deviation([250.0] * 12) == 0
    assert coefficient_of_variation([250.0] * 12) == 0
    assert score_confidence([250.0] * 12) == Confidence.VERY_HIGH


def test_zero_mean_counts_as_full_variation():
    assert coefficient_of_variation([0.0] * 12) == 100.0
    assert score_confidence([0.0] * 12) == Confidence.LOW


def test_population_standard_deviation():
    amounts = [0.0, 300.0] * 6
    assert standard_deviation(amounts) == pytest.approx(150.0)
    assert coefficient_of_variation(amounts) == pytest.approx(100.0)


@pytest.mark.parametrize('cv, expected', [
    (0.0, Confidence.VERY_HIGH),
    (14.999, Confidence.VERY_HIGH),
    (15.0, Confidence.HIGH),
    (29.999, Confidence.HIGH),
    (30.0, Confidence.MEDIUM),
    (49.999, Confidence.MEDIUM),
    (50.0, Confidence.LOW),
    (250.0, Confidence.LOW),
])
def test_confidence_buckets(cv, expected):
    assert confidence_from_cv(cv) == expected


def test_risk_profile_of_flat_values_is_low():
    profile = risk_profile([1000.0, 1000.0, 1000.0])
    assert profile.volatility == 0
    assert profile.sharpe_ratio == 0
    assert profile.risk_level == 'low'


def test_risk_profile_of_swinging_values():
    profile = risk_profile([100.0, 110.0, 99.0, 108.9])
    assert profile.volatility == pytest.approx(9.428, abs=1e-3)
    assert profile.risk_level == 'medium'
    expected_sharpe = (0.1 / 3 - 0.03 / 12) / (profile.volatility / 100)
    assert profile.sharpe_ratio == pytest.approx(expected_sharpe)


def test_risk_profile_needs_two_points():
    assert risk_profile([500.0]).risk_level == 'low'
    assert risk_profile([]).volatility == 0


def test_risk_profile_skips_steps_from_zero():
    profile = risk_profile([0.0, 100.0, 100.0])
    assert profile.volatility == 0
