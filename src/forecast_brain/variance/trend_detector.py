"""Trend detection — least-squares line through the variance series.

The x axis is the position in the series (1..N), not calendar distance,
so gaps between periods are ignored.  A falling line means forecasts
are converging on actuals.
"""

from __future__ import annotations

from forecast_brain.variance.models import TrendAnalysis, VariancePoint, VarianceStatistics

MIN_POINTS = 3

# % points per period; slopes inside [-1, 1] are "stable"
SLOPE_THRESHOLD = 1.0


def detect_trend(points: list[VariancePoint], stats: VarianceStatistics) -> TrendAnalysis:
    """Fit ``variance = slope * index + intercept`` and classify the slope.

    Fewer than 3 points gives a neutral stable result without fitting.
    *stats* must be the statistics of *points*.
    """
    n = len(points)
    if n < MIN_POINTS:
        return TrendAnalysis(direction="stable", strength=0.0, confidence=0.0, change_rate=0.0)

    xs = list(range(1, n + 1))
    ys = [p.variance for p in points]

    slope, intercept = linear_fit(xs, ys)
    confidence = _clamp(r_squared(xs, ys, slope, intercept, stats.mean) * 100, 0.0, 100.0)

    if slope < -SLOPE_THRESHOLD:
        direction = "improving"
    elif slope > SLOPE_THRESHOLD:
        direction = "worsening"
    else:
        direction = "stable"

    return TrendAnalysis(
        direction=direction,
        strength=_clamp(abs(slope) / 10, 0.0, 1.0),
        confidence=confidence,
        change_rate=slope,
        projected_next_variance=slope * (n + 1) + intercept,
    )


def linear_fit(xs: list[float], ys: list[float]) -> tuple[float, float]:
    """Closed-form ordinary least squares. Returns ``(slope, intercept)``."""
    n = len(xs)
    sum_x = sum(xs)
    sum_y = sum(ys)
    sum_xy = sum(x * y for x, y in zip(xs, ys))
    sum_xx = sum(x * x for x in xs)

    denom = n * sum_xx - sum_x * sum_x
    if denom == 0:
        return 0.0, sum_y / n if n else 0.0

    slope = (n * sum_xy - sum_x * sum_y) / denom
    intercept = (sum_y - slope * sum_x) / n
    return slope, intercept


def r_squared(
    xs: list[float],
    ys: list[float],
    slope: float,
    intercept: float,
    mean_y: float,
) -> float:
    """Coefficient of determination; 0 when all ys are identical."""
    ss_tot = sum((y - mean_y) * (y - mean_y) for y in ys)
    if ss_tot == 0:
        return 0.0
    residuals = [y - (slope * x + intercept) for x, y in zip(xs, ys)]
    ss_res = sum(r * r for r in residuals)
    return 1 - ss_res / ss_tot


def _clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))
