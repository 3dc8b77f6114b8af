"""Anomaly detection over a variance series.

A point is flagged when either test fires:

- z-score: ``|variance - mean| / std_dev > 2``
- IQR fence: outside ``[Q1 - 1.5*IQR, Q3 + 1.5*IQR]``

Each anomaly gets a severity bucket and a short list of plausible
business causes chosen by sign and size of the variance.
"""

from __future__ import annotations

from forecast_brain.variance.models import AnomalyPoint, VariancePoint, VarianceStatistics

MIN_POINTS = 5

Z_THRESHOLD = 2.0
IQR_MULTIPLIER = 1.5

# (sign, bracket) -> causes; bracket is "major" (>50%), "notable" (>25%) or "minor"
_CAUSES: dict[tuple[str, str], list[str]] = {
    ("over", "major"): [
        "Significant market opportunity or forecasting error",
        "Seasonal effects not captured in projections",
    ],
    ("over", "notable"): [
        "Better than expected market conditions",
        "Operational efficiency improvements",
    ],
    ("over", "minor"): [
        "Minor forecasting adjustment needed",
    ],
    ("under", "major"): [
        "Major market downturn or competitive pressure",
        "Operational challenges or capacity constraints",
    ],
    ("under", "notable"): [
        "Market conditions worse than expected",
        "Execution or delivery issues",
    ],
    ("under", "minor"): [
        "Conservative forecasting or minor headwinds",
    ],
}

_UNUSUAL_EVENT = "Highly unusual event requiring investigation"


def detect_anomalies(
    points: list[VariancePoint],
    stats: VarianceStatistics,
) -> list[AnomalyPoint]:
    """Flag outlying points in source order.

    *stats* must be the statistics of *points*; they are not recomputed.
    Returns an empty list for fewer than 5 points.
    """
    if len(points) < MIN_POINTS:
        return []

    lower, upper = iqr_bounds([p.variance for p in points])

    anomalies: list[AnomalyPoint] = []
    for point in points:
        z = z_score(point.variance, stats)
        outside_fence = point.variance < lower or point.variance > upper
        if z <= Z_THRESHOLD and not outside_fence:
            continue

        anomalies.append(AnomalyPoint(
            period=point.period,
            variance=point.variance,
            severity=classify_severity(point.variance, z),
            deviation_from_norm=z,
            potential_causes=potential_causes(point.variance, z),
        ))

    return anomalies


def z_score(value: float, stats: VarianceStatistics) -> float:
    """Absolute z-score; 0 when the series has no spread."""
    if stats.std_dev == 0:
        return 0.0
    return abs(value - stats.mean) / stats.std_dev


def iqr_bounds(values: list[float]) -> tuple[float, float]:
    """Tukey fences using truncated-index quartiles (no interpolation)."""
    sorted_vals = sorted(values)
    n = len(sorted_vals)
    q1 = sorted_vals[int(n * 0.25)]
    q3 = sorted_vals[int(n * 0.75)]
    iqr = q3 - q1
    return q1 - IQR_MULTIPLIER * iqr, q3 + IQR_MULTIPLIER * iqr


def classify_severity(variance: float, z: float) -> str:
    """First match wins: severe, then moderate, else mild."""
    magnitude = abs(variance)
    if z > 3 or magnitude > 50:
        return "severe"
    if z > 2.5 or magnitude > 25:
        return "moderate"
    return "mild"


def potential_causes(variance: float, z: float) -> list[str]:
    """Ranked hints explaining an anomalous variance."""
    sign = "over" if variance > 0 else "under"
    magnitude = abs(variance)
    if magnitude > 50:
        bracket = "major"
    elif magnitude > 25:
        bracket = "notable"
    else:
        bracket = "minor"

    causes = list(_CAUSES[(sign, bracket)])
    if z > 3:
        causes.append(_UNUSUAL_EVENT)
    return causes
