"""Seasonality detection — repeating variance by calendar position.

Variances are grouped by a cycle key taken from the period label (the
month in ``"2024-03"``) and the spread of the group means around the
grand mean decides whether a yearly pattern exists.  Cycle length is
assumed, never inferred.
"""

from __future__ import annotations

import math
from dataclasses import dataclass

from forecast_brain.variance.models import SeasonalPattern, VariancePoint, VarianceStatistics

MIN_POINTS = 12
MIN_CYCLE_KEYS = 3
STRENGTH_THRESHOLD = 0.1
ASSUMED_CYCLE_LENGTH = 12

# Grand means this close to zero are treated as zero.
ZERO_MEAN_TOLERANCE = 1e-9


@dataclass
class SeasonalAdjustment:
    period: str
    adjusted_value: float
    adjustment_factor: float


def cycle_key(period: str) -> str:
    """Position-in-cycle label for *period*.

    Second dash-separated segment when present (``"2024-03" -> "03"``),
    otherwise the last two characters.
    """
    parts = period.split("-")
    if len(parts) > 1 and parts[1]:
        return parts[1]
    return period[-2:]


def detect_seasonal_pattern(
    points: list[VariancePoint],
    stats: VarianceStatistics,
) -> SeasonalPattern | None:
    """Return the seasonal pattern, or ``None`` when none is detected.

    Needs at least 12 points and 3 distinct cycle keys.  *stats* must be
    the statistics of *points*; its mean is the grand mean.
    """
    if len(points) < MIN_POINTS:
        return None

    groups: dict[str, list[float]] = {}
    for p in points:
        groups.setdefault(cycle_key(p.period), []).append(p.variance)

    grand_mean = stats.mean
    mean_is_zero = math.isclose(grand_mean, 0.0, abs_tol=ZERO_MEAN_TOLERANCE)
    group_means = {k: sum(v) / len(v) for k, v in groups.items()}

    deviations = [m - grand_mean for m in group_means.values()]
    spread = (sum(d * d for d in deviations) / len(deviations)) ** 0.5
    strength = spread / (1.0 if mean_is_zero else abs(grand_mean))

    if strength <= STRENGTH_THRESHOLD or len(group_means) < MIN_CYCLE_KEYS:
        return None

    # A zero grand mean has no meaningful ratio; treat every key as neutral.
    if mean_is_zero:
        factors = {k: 1.0 for k in group_means}
    else:
        factors = {k: m / grand_mean for k, m in group_means.items()}

    return SeasonalPattern(
        detected=True,
        period=ASSUMED_CYCLE_LENGTH,
        strength=min(1.0, strength),
        adjustment_factors=factors,
    )


def apply_seasonal_adjustments(
    projections: list[tuple[str, float]],
    pattern: SeasonalPattern,
) -> list[SeasonalAdjustment]:
    """Scale future ``(period, value)`` projections by their cycle factor.

    Keys missing from the pattern (or with a zero factor) are left as is.
    """
    result: list[SeasonalAdjustment] = []
    for period, value in projections:
        factor = pattern.adjustment_factors.get(cycle_key(period)) or 1.0
        result.append(SeasonalAdjustment(
            period=period,
            adjusted_value=value * factor,
            adjustment_factor=factor,
        ))
    return result
