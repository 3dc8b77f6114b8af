"""Variance trend pipeline — builder, statistics, detectors, enrichment.

``calculate_variance_trend`` analyses one (project, metric) pair;
``analyze_portfolio`` runs it for every project and metric with data
and ranks the resulting insights.
"""

from __future__ import annotations

import dataclasses
import logging
from dataclasses import dataclass

from forecast_brain.variance.anomaly_detector import detect_anomalies
from forecast_brain.variance.insight_synthesizer import (
    assess_risk_level,
    generate_variance_insights,
)
from forecast_brain.variance.models import (
    METRICS,
    ActualsPeriodEntry,
    FinancialModel,
    ProjectVarianceInput,
    VarianceInsight,
    VarianceTrend,
)
from forecast_brain.variance.seasonality_detector import detect_seasonal_pattern
from forecast_brain.variance.time_series import (
    build_time_series,
    has_metric_data,
    select_primary_model,
)
from forecast_brain.variance.trend_detector import MIN_POINTS, detect_trend
from forecast_brain.variance.variance_stats import series_statistics

logger = logging.getLogger(__name__)


@dataclass
class VarianceSummary:
    total_trends: int = 0
    worsening_trends: int = 0
    total_anomalies: int = 0
    avg_volatility: float = 0.0
    trends_with_seasonality: int = 0


@dataclass
class VarianceTrendReport:
    variance_trends: list[VarianceTrend]
    insights: list[VarianceInsight]
    summary: VarianceSummary


def calculate_variance_trend(
    project_id: str,
    metric: str,
    actuals: list[ActualsPeriodEntry],
    model: FinancialModel,
) -> VarianceTrend:
    """Full variance analysis of *metric* for one project.

    Under 3 comparable periods no inference is attempted.
    """
    series = build_time_series(metric, actuals, model)

    if len(series) < MIN_POINTS:
        return VarianceTrend(
            project_id=project_id,
            metric=metric,
            time_series_data=series,
            trend_direction="stable",
            volatility=0.0,
            anomalies=[],
            average_variance=0.0,
            variance_standard_deviation=0.0,
        )

    stats = series_statistics(series)
    trend = detect_trend(series, stats)
    anomalies = detect_anomalies(series, stats)
    seasonal = detect_seasonal_pattern(series, stats)

    anomalous_periods = {a.period for a in anomalies}
    enriched = [
        dataclasses.replace(
            p,
            is_anomaly=p.period in anomalous_periods,
            risk_level=assess_risk_level(p.variance, stats),
        )
        for p in series
    ]

    logger.debug(
        "%s/%s: %d periods, %s trend (slope %.2f), %d anomalies",
        project_id, metric, len(series), trend.direction, trend.change_rate, len(anomalies),
    )

    return VarianceTrend(
        project_id=project_id,
        metric=metric,
        time_series_data=enriched,
        trend_direction=trend.direction,
        volatility=stats.std_dev,
        anomalies=anomalies,
        average_variance=stats.mean,
        variance_standard_deviation=stats.std_dev,
        seasonal_pattern=seasonal,
    )


def analyze_project(
    project: ProjectVarianceInput,
    min_periods: int = MIN_POINTS,
) -> list[VarianceTrend]:
    """Trends for every metric of *project* that has enough data."""
    model = select_primary_model(project.models)
    if model is None or len(project.actuals) < min_periods:
        return []

    trends: list[VarianceTrend] = []
    for metric in METRICS:
        if not has_metric_data(metric, project.actuals, model):
            continue
        trend = calculate_variance_trend(project.project_id, metric, project.actuals, model)
        if len(trend.time_series_data) >= min_periods:
            trends.append(trend)
    return trends


def analyze_portfolio(
    projects: list[ProjectVarianceInput],
    min_periods: int = MIN_POINTS,
) -> VarianceTrendReport:
    """Analyse every project, then rank insights and summarise.

    A project that fails to analyse is logged and left out.
    """
    trends: list[VarianceTrend] = []
    for project in projects:
        try:
            trends.extend(analyze_project(project, min_periods=min_periods))
        except Exception:
            logger.exception("Variance analysis failed for project %s", project.project_id)

    return VarianceTrendReport(
        variance_trends=trends,
        insights=generate_variance_insights(trends),
        summary=summarize_trends(trends),
    )


def summarize_trends(trends: list[VarianceTrend]) -> VarianceSummary:
    if not trends:
        return VarianceSummary()

    return VarianceSummary(
        total_trends=len(trends),
        worsening_trends=sum(1 for t in trends if t.trend_direction == "worsening"),
        total_anomalies=sum(len(t.anomalies) for t in trends),
        avg_volatility=sum(t.volatility for t in trends) / len(trends),
        trends_with_seasonality=sum(
            1 for t in trends if t.seasonal_pattern is not None and t.seasonal_pattern.detected
        ),
    )
