"""Dispersion-based confidence and risk labels.

The coefficient of variation of a spending window is used as an inverse
proxy for forecast confidence.  The same dispersion idea, applied to
period returns, gives a volatility/risk label for asset value series.
"""

from __future__ import annotations

from typing import Iterable, Sequence

import numpy as np

from .models import Confidence, RiskProfile, ensure_window

# Each label applies while the CV stays below its limit.
CONFIDENCE_BUCKETS = (
    (15.0, Confidence.VERY_HIGH),
    (30.0, Confidence.HIGH),
    (50.0, Confidence.MEDIUM),
)

RISK_FREE_RATE = 0.03
RISK_BUCKETS = (
    (5.0, 'low'),
    (15.0, 'medium'),
    (30.0, 'high'),
)


def standard_deviation(amounts: Iterable[float]) -> float:
    """Population standard deviation of the window."""
    values = ensure_window(amounts)
    return float(np.std(values))


def coefficient_of_variation(amounts: Iterable[float]) -> float:
    """Standard deviation as a percentage of the mean; ``100`` when the mean is zero."""
    values = ensure_window(amounts)
    mean = values.mean()
    if mean <= 0:
        return 100.0
    return float(np.std(values) / mean * 100)


def confidence_from_cv(cv: float) -> Confidence:
    for upper, label in CONFIDENCE_BUCKETS:
        if cv < upper:
            return label
    return Confidence.LOW


def score_confidence(amounts: Iterable[float]) -> Confidence:
    """Confidence label for a 12-month spending window."""
    return confidence_from_cv(coefficient_of_variation(amounts))


def risk_level_from_volatility(volatility: float) -> str:
    for upper, label in RISK_BUCKETS:
        if volatility < upper:
            return label
    return 'very_high'


def risk_profile(values: Sequence[float], risk_free_rate: float = RISK_FREE_RATE) -> RiskProfile:
    """Volatility, Sharpe-like ratio and risk label of a monthly value history.

    Works on any length of history (asset valuations are not bound to the
    12-month spending window).  Returns are month-over-month relative changes;
    a step from a zero value contributes no return.

    Args:
        values: Chronological valuations.
        risk_free_rate: Annual risk-free rate, spread evenly across months.

    Returns:
        RiskProfile with volatility in percent.
    """
    series = np.asarray(list(values), dtype=float)
    if series.size < 2:
        return RiskProfile(volatility=0.0, sharpe_ratio=0.0, risk_level=risk_level_from_volatility(0.0))

    previous = series[:-1]
    current = series[1:]
    valid = previous != 0
    returns = (current[valid] - previous[valid]) / previous[valid]
    if returns.size == 0:
        return RiskProfile(volatility=0.0, sharpe_ratio=0.0, risk_level=risk_level_from_volatility(0.0))

    avg_return = returns.mean()
    volatility = float(np.std(returns) * 100)
    excess_return = avg_return - risk_free_rate / 12
    sharpe = float(excess_return / (volatility / 100)) if volatility > 0 else 0.0
    return RiskProfile(
        volatility=volatility,
        sharpe_ratio=sharpe,
        risk_level=risk_level_from_volatility(volatility),
    )
