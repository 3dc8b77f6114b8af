"""Descriptive statistics over a variance series."""

from __future__ import annotations

from forecast_brain.variance.models import VariancePoint, VarianceStatistics


def compute_statistics(values: list[float]) -> VarianceStatistics:
    """Mean, population standard deviation and median of *values*.

    An empty list yields all zeros rather than NaN.
    """
    n = len(values)
    if n == 0:
        return VarianceStatistics(mean=0.0, std_dev=0.0, median=0.0)

    mean = sum(values) / n
    var = sum((v - mean) * (v - mean) for v in values) / n

    sorted_vals = sorted(values)
    mid = n // 2
    if n % 2 == 0:
        median = (sorted_vals[mid - 1] + sorted_vals[mid]) / 2
    else:
        median = sorted_vals[mid]

    return VarianceStatistics(mean=mean, std_dev=var ** 0.5, median=median)


def series_statistics(points: list[VariancePoint]) -> VarianceStatistics:
    """Statistics of the ``variance`` field across *points*."""
    return compute_statistics([p.variance for p in points])
