"""Time-series builder — joins actuals with a model's projections.

Pure functions producing the period-ordered variance series that every
downstream detector consumes.
"""

from __future__ import annotations

import logging

from forecast_brain.variance.models import (
    METRICS,
    ActualsPeriodEntry,
    FinancialModel,
    ModelPeriod,
    VariancePoint,
)

logger = logging.getLogger(__name__)


def build_time_series(
    metric: str,
    actuals: list[ActualsPeriodEntry],
    model: FinancialModel,
) -> list[VariancePoint]:
    """Build the variance series for *metric*, sorted by period key.

    Actual entries without a matching projected period are skipped, as
    are periods projected at exactly zero (variance is undefined there).
    Missing numeric fields count as 0.
    """
    _check_metric(metric)

    points: list[VariancePoint] = []
    for entry in actuals:
        projected_period = model.projection_for(entry.period)
        if projected_period is None:
            logger.debug("No projection for period %s in model %s", entry.period, model.id)
            continue

        actual_value, projected_value = _metric_values(metric, entry, projected_period)
        if projected_value == 0:
            logger.debug("Skipping %s %s: projected value is zero", metric, entry.period)
            continue

        points.append(VariancePoint(
            period=entry.period,
            variance=(actual_value - projected_value) / projected_value * 100,
            actual=actual_value,
            projected=projected_value,
        ))

    points.sort(key=lambda p: p.period)
    return points


def has_metric_data(
    metric: str,
    actuals: list[ActualsPeriodEntry],
    model: FinancialModel,
) -> bool:
    """True if any actual entry can be compared on *metric*.

    Unlike the builder, this looks at whether the raw fields were
    recorded at all, so a metric nobody tracks is not analysed as zeros.
    """
    _check_metric(metric)

    for entry in actuals:
        projected = model.projection_for(entry.period)
        if projected is None:
            continue
        if metric == "revenue":
            if entry.revenue is not None and projected.revenue is not None:
                return True
        elif metric == "costs":
            if entry.costs is not None and projected.costs is not None:
                return True
        elif (
            entry.revenue is not None and entry.costs is not None
            and projected.revenue is not None and projected.costs is not None
        ):
            return True
    return False


def select_primary_model(models: list[FinancialModel]) -> FinancialModel | None:
    """Return the model flagged primary, falling back to the first one."""
    for m in models:
        if m.is_primary:
            return m
    return models[0] if models else None


def _metric_values(
    metric: str,
    entry: ActualsPeriodEntry,
    projected: ModelPeriod,
) -> tuple[float, float]:
    a_rev = entry.revenue or 0.0
    a_cost = entry.costs or 0.0
    p_rev = projected.revenue or 0.0
    p_cost = projected.costs or 0.0

    if metric == "revenue":
        return a_rev, p_rev
    if metric == "costs":
        return a_cost, p_cost
    return a_rev - a_cost, p_rev - p_cost


def _check_metric(metric: str) -> None:
    if metric not in METRICS:
        raise ValueError(f"Unknown metric {metric!r}; expected one of {', '.join(METRICS)}")
