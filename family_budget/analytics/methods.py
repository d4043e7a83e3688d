"""Per-method projections over a 12-month spending window.

Each function consumes the trailing amounts (oldest first) and returns a
scalar projection for the next month.  Degenerate denominators yield ``0``
rather than ``NaN``.
"""

from __future__ import annotations

from typing import Iterable, Tuple

import numpy as np

from .models import WINDOW_MONTHS, MonthIndex, ensure_window

EMA_ALPHA = 0.3

# Ascending recency weights 1.0, 1.2, ... 3.2 keyed by window position.
RECENCY_WEIGHTS = {index: 1.0 + 0.2 * int(index) for index in MonthIndex}


def regression_slope(amounts: Iterable[float]) -> Tuple[float, float]:
    """Ordinary least squares of amount against month position 0..11.

    Returns:
        ``(slope, intercept)``; slope is ``0`` when the denominator vanishes.
    """
    y = ensure_window(amounts)
    n = len(y)
    x = np.arange(n, dtype=float)
    sum_x = x.sum()
    sum_y = y.sum()
    sum_xy = float(np.dot(x, y))
    sum_x2 = float(np.dot(x, x))

    denominator = n * sum_x2 - sum_x * sum_x
    slope = (n * sum_xy - sum_x * sum_y) / denominator if denominator else 0.0
    intercept = (sum_y - slope * sum_x) / n
    return float(slope), float(intercept)


def linear_regression(amounts: Iterable[float]) -> float:
    """Project the regression line one month past the window (x = 12)."""
    slope, intercept = regression_slope(amounts)
    return slope * WINDOW_MONTHS + intercept


def exponential_moving_average(amounts: Iterable[float], alpha: float = EMA_ALPHA) -> float:
    """Smoothed current level, seeded with the oldest month."""
    values = ensure_window(amounts)
    ema = values[0]
    for amount in values[1:]:
        ema = alpha * amount + (1 - alpha) * ema
    return float(ema)


def weighted_average(amounts: Iterable[float]) -> float:
    """Recency-weighted mean of the window."""
    values = ensure_window(amounts)
    weights = np.array([RECENCY_WEIGHTS[MonthIndex(i)] for i in range(WINDOW_MONTHS)])
    total_weight = weights.sum()
    if not total_weight:
        return 0.0
    return float(np.dot(weights, values) / total_weight)
