"""Tests for variance_trend — the end-to-end pipeline and portfolio sweep."""

from __future__ import annotations

import logging
import math

import pytest

from forecast_brain.variance.anomaly_detector import detect_anomalies
from forecast_brain.variance.models import (
    ActualsPeriodEntry,
    FinancialModel,
    ModelPeriod,
    ProjectVarianceInput,
)
from forecast_brain.variance.seasonality_detector import detect_seasonal_pattern
from forecast_brain.variance.trend_detector import detect_trend
from forecast_brain.variance.variance_stats import series_statistics
from forecast_brain.variance.variance_trend import (
    analyze_portfolio,
    analyze_project,
    calculate_variance_trend,
    summarize_trends,
)


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _period(i: int) -> str:
    return f"{2023 + i // 12}-{i % 12 + 1:02d}"


def _inputs(
    variances: list[float],
    projected: float = 200.0,
    with_costs: bool = False,
) -> tuple[list[ActualsPeriodEntry], FinancialModel]:
    """Actuals whose revenue sits *variance* percent off a flat projection."""
    actuals = [
        ActualsPeriodEntry(
            _period(i),
            revenue=projected * (1 + v / 100),
            costs=50.0 if with_costs else None,
        )
        for i, v in enumerate(variances)
    ]
    model = FinancialModel(
        id="model-1",
        name="Base case",
        is_primary=True,
        periods=[
            ModelPeriod(_period(i), revenue=projected, costs=50.0 if with_costs else None)
            for i in range(len(variances))
        ],
    )
    return actuals, model


SPIKE = [1.0, 2.0, 1.0, 2.0, 1.0, 2.0, 50.0, 1.0, 2.0, 1.0]


# ---------------------------------------------------------------------------
# 1. Single project / metric
# ---------------------------------------------------------------------------


class TestCalculateVarianceTrend:

    def test_short_series_is_neutral(self):
        actuals, model = _inputs([40.0, -40.0])
        trend = calculate_variance_trend("p1", "revenue", actuals, model)
        assert trend.trend_direction == "stable"
        assert trend.volatility == 0.0
        assert trend.anomalies == []
        assert trend.seasonal_pattern is None
        assert trend.average_variance == 0.0
        assert trend.variance_standard_deviation == 0.0
        assert len(trend.time_series_data) == 2
        assert all(not p.is_anomaly and p.risk_level == "low" for p in trend.time_series_data)

    def test_spike_is_enriched(self):
        actuals, model = _inputs(SPIKE)
        trend = calculate_variance_trend("p1", "revenue", actuals, model)

        assert trend.project_id == "p1"
        assert trend.metric == "revenue"
        assert trend.average_variance == pytest.approx(6.3)
        assert trend.volatility == pytest.approx(math.sqrt(212.41))
        assert trend.volatility == trend.variance_standard_deviation

        assert [a.period for a in trend.anomalies] == ["2023-07"]
        flagged = [p.period for p in trend.time_series_data if p.is_anomaly]
        assert flagged == ["2023-07"]

        spike = trend.time_series_data[6]
        assert spike.risk_level == "high"
        assert trend.time_series_data[0].risk_level == "low"

    def test_worsening_direction(self):
        actuals, model = _inputs([0.0, 5.0, 10.0, 15.0, 20.0])
        trend = calculate_variance_trend("p1", "revenue", actuals, model)
        assert trend.trend_direction == "worsening"

    def test_output_sorted_even_when_input_is_not(self):
        actuals, model = _inputs([3.0, 9.0, -4.0, 12.0, 0.0, 7.0])
        trend = calculate_variance_trend("p1", "revenue", list(reversed(actuals)), model)
        periods = [p.period for p in trend.time_series_data]
        assert periods == sorted(periods)

    def test_seasonality_over_two_years(self):
        year = [10.0] * 4 + [20.0] * 4 + [30.0] * 4
        actuals, model = _inputs(year * 2)
        trend = calculate_variance_trend("p1", "revenue", actuals, model)
        assert trend.seasonal_pattern is not None
        assert trend.seasonal_pattern.detected

    def test_all_projections_zero(self):
        actuals, model = _inputs([5.0] * 6, projected=0.0)
        trend = calculate_variance_trend("p1", "revenue", actuals, model)
        assert trend.time_series_data == []
        assert trend.trend_direction == "stable"
        assert trend.anomalies == []

        empty_stats = series_statistics([])
        assert detect_trend([], empty_stats).direction == "stable"
        assert detect_anomalies([], empty_stats) == []
        assert detect_seasonal_pattern([], empty_stats) is None

    def test_huge_variances_do_not_raise(self):
        actuals = [ActualsPeriodEntry(_period(i), revenue=1e200 * (i + 1)) for i in range(12)]
        model = FinancialModel(
            id="model-1",
            is_primary=True,
            periods=[ModelPeriod(_period(i), revenue=1e-10) for i in range(12)],
        )
        trend = calculate_variance_trend("p1", "revenue", actuals, model)
        assert len(trend.time_series_data) == 12
        assert trend.trend_direction == "worsening"
        assert trend.volatility == math.inf
        assert trend.seasonal_pattern is not None

    def test_unknown_metric(self):
        actuals, model = _inputs([1.0, 2.0, 3.0])
        with pytest.raises(ValueError):
            calculate_variance_trend("p1", "attendance", actuals, model)

    def test_repeat_calls_identical(self):
        actuals, model = _inputs(SPIKE)
        first = calculate_variance_trend("p1", "revenue", actuals, model)
        second = calculate_variance_trend("p1", "revenue", actuals, model)
        assert first == second


# ---------------------------------------------------------------------------
# 2. Project and portfolio sweeps
# ---------------------------------------------------------------------------


class TestAnalyzeProject:

    def test_only_metrics_with_data(self):
        actuals, model = _inputs([1.0, 4.0, 2.0, 6.0])
        trends = analyze_project(ProjectVarianceInput("p1", "Friday Market", actuals, [model]))
        assert [t.metric for t in trends] == ["revenue"]

    def test_all_metrics_when_costs_recorded(self):
        actuals, model = _inputs([1.0, 4.0, 2.0, 6.0], with_costs=True)
        trends = analyze_project(ProjectVarianceInput("p1", "Friday Market", actuals, [model]))
        assert [t.metric for t in trends] == ["revenue", "costs", "profit"]

    def test_uses_primary_model(self):
        actuals, primary = _inputs([1.0, 4.0, 2.0, 6.0])
        draft = FinancialModel(id="draft", periods=[])
        trends = analyze_project(ProjectVarianceInput("p1", "Gala", actuals, [draft, primary]))
        assert len(trends) == 1

    def test_too_few_actuals(self):
        actuals, model = _inputs([1.0, 4.0])
        assert analyze_project(ProjectVarianceInput("p1", "Gala", actuals, [model])) == []

    def test_no_models(self):
        actuals, _ = _inputs([1.0, 4.0, 2.0])
        assert analyze_project(ProjectVarianceInput("p1", "Gala", actuals, [])) == []

    def test_custom_min_periods(self):
        actuals, model = _inputs([1.0, 4.0, 2.0, 6.0])
        assert analyze_project(ProjectVarianceInput("p1", "Gala", actuals, [model]), min_periods=5) == []


class TestAnalyzePortfolio:

    def test_report(self):
        steady, steady_model = _inputs([1.0, 2.0, 1.0, 2.0, 1.0])
        rising, rising_model = _inputs(SPIKE)
        report = analyze_portfolio([
            ProjectVarianceInput("p1", "Steady", steady, [steady_model]),
            ProjectVarianceInput("p2", "Spiky", rising, [rising_model]),
        ])
        assert [t.project_id for t in report.variance_trends] == ["p1", "p2"]
        assert report.summary.total_trends == 2
        assert report.summary.total_anomalies == 1
        assert report.summary.avg_volatility == pytest.approx(
            (report.variance_trends[0].volatility + report.variance_trends[1].volatility) / 2
        )

    def test_failing_project_skipped(self, caplog):
        good, good_model = _inputs([1.0, 2.0, 1.0, 2.0, 1.0])
        bad = [ActualsPeriodEntry(_period(i), revenue="n/a") for i in range(4)]
        with caplog.at_level(logging.ERROR):
            report = analyze_portfolio([
                ProjectVarianceInput("broken", "Broken", bad, [good_model]),
                ProjectVarianceInput("ok", "Fine", good, [good_model]),
            ])
        assert [t.project_id for t in report.variance_trends] == ["ok"]
        assert "broken" in caplog.text

    def test_empty_portfolio(self):
        report = analyze_portfolio([])
        assert report.variance_trends == []
        assert report.insights == []
        assert report.summary.total_trends == 0
        assert report.summary.avg_volatility == 0.0


def test_summarize_counts_worsening_and_seasonality():
    rising, rising_model = _inputs([0.0, 5.0, 10.0, 15.0, 20.0])
    seasonal, seasonal_model = _inputs(([10.0] * 4 + [20.0] * 4 + [30.0] * 4) * 2)
    trends = [
        calculate_variance_trend("p1", "revenue", rising, rising_model),
        calculate_variance_trend("p2", "revenue", seasonal, seasonal_model),
    ]
    summary = summarize_trends(trends)
    assert summary.worsening_trends == 1
    assert summary.trends_with_seasonality == 1
