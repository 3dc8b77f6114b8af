"""Insight and risk synthesis from finished variance trends.

Turns VarianceTrend results into ranked, human-readable insights and
scores projects on a bounded 0-100 risk scale.
"""

from __future__ import annotations

from dataclasses import dataclass

from forecast_brain.variance.models import (
    ProjectPerformance,
    VarianceInsight,
    VarianceStatistics,
    VarianceTrend,
)

_SEVERITY_RANK = {"critical": 3, "warning": 2, "info": 1}

# Fixed confidence per insight type
_CONFIDENCE = {"trend": 85, "anomaly": 90, "volatility": 75, "seasonal": 80}


@dataclass
class PortfolioRiskEntry:
    project_name: str
    risk_score: int
    revenue_variance: float
    cost_variance: float
    has_actuals: bool


@dataclass
class PortfolioRiskSummary:
    projects: list[PortfolioRiskEntry]
    distribution: dict[str, int]  # "Low Risk" / "Medium Risk" / "High Risk" -> count
    total_risk: float


# ---------------------------------------------------------------------------
# Insights
# ---------------------------------------------------------------------------


def generate_variance_insights(trends: list[VarianceTrend]) -> list[VarianceInsight]:
    """Build insights for every trend, most severe first.

    Ties keep the order in which they were generated.
    """
    insights: list[VarianceInsight] = []
    for trend in trends:
        insights.extend(_trend_insights(trend))

    return sorted(insights, key=lambda i: _SEVERITY_RANK[i.severity], reverse=True)


def _trend_insights(trend: VarianceTrend) -> list[VarianceInsight]:
    found: list[VarianceInsight] = []
    series = trend.time_series_data

    if trend.trend_direction == "worsening" and len(series) >= 3:
        found.append(VarianceInsight(
            type="trend",
            severity="critical" if trend.volatility > 20 else "warning",
            title=f"{trend.metric} variance is worsening",
            description=(
                f"Variance has been trending worse over the last {len(series)} periods "
                f"with {trend.volatility:.1f}% volatility"
            ),
            recommendation=(
                "Review forecasting methodology and identify root causes of increasing variance"
            ),
            affected_periods=[p.period for p in series[-3:]],
            confidence_score=_CONFIDENCE["trend"],
        ))

    severe = [a for a in trend.anomalies if a.severity == "severe"]
    if severe:
        worst = max(a.deviation_from_norm for a in severe)
        found.append(VarianceInsight(
            type="anomaly",
            severity="critical",
            title=f"Severe variance anomalies detected in {trend.metric}",
            description=(
                f"{len(severe)} severe anomalies found with deviations up to "
                f"{worst:.1f} standard deviations"
            ),
            recommendation=(
                "Investigate underlying causes and adjust future forecasting assumptions"
            ),
            affected_periods=[a.period for a in severe],
            confidence_score=_CONFIDENCE["anomaly"],
        ))

    if trend.volatility > 30:
        found.append(VarianceInsight(
            type="volatility",
            severity="warning",
            title=f"High volatility in {trend.metric} variance",
            description=(
                f"Variance volatility of {trend.volatility:.1f}% indicates unpredictable performance"
            ),
            recommendation=(
                "Consider implementing more frequent forecasting reviews and scenario planning"
            ),
            affected_periods=[p.period for p in series],
            confidence_score=_CONFIDENCE["volatility"],
        ))

    pattern = trend.seasonal_pattern
    if pattern is not None and pattern.detected and pattern.strength > 0.3:
        found.append(VarianceInsight(
            type="seasonal",
            severity="info",
            title=f"Seasonal pattern detected in {trend.metric} variance",
            description=(
                f"Strong seasonal pattern ({pattern.strength * 100:.0f}% strength) "
                f"suggests predictable variance cycles"
            ),
            recommendation=(
                "Incorporate seasonal adjustments into forecasting models to improve accuracy"
            ),
            affected_periods=list(pattern.adjustment_factors),
            confidence_score=_CONFIDENCE["seasonal"],
        ))

    return found


# ---------------------------------------------------------------------------
# Risk
# ---------------------------------------------------------------------------


def assess_risk_level(variance: float, stats: VarianceStatistics) -> str:
    """Classify one point as low / medium / high risk."""
    magnitude = abs(variance)
    z = abs(variance - stats.mean) / (stats.std_dev or 1)

    if magnitude > 30 or z > 2:
        return "high"
    if magnitude > 15 or z > 1:
        return "medium"
    return "low"


def is_revenue_decreasing(actual_revenue: list[float]) -> bool:
    """True when the last three revenue values strictly decrease."""
    if len(actual_revenue) < 3:
        return False
    recent = actual_revenue[-3:]
    return all(i == 0 or recent[i] < recent[i - 1] for i in range(len(recent)))


def calculate_risk_score(
    revenue_variance: float,
    cost_variance: float,
    actual_revenue: list[float] | None = None,
) -> int:
    """Composite 0-100 risk score.

    +30 / +15 for revenue under plan by more than 20% / 10%,
    +25 / +10 for costs over plan by more than 20% / 10%,
    +20 when revenue fell in each of the last three periods.
    """
    score = 0

    if revenue_variance < -20:
        score += 30
    elif revenue_variance < -10:
        score += 15

    if cost_variance > 20:
        score += 25
    elif cost_variance > 10:
        score += 10

    if is_revenue_decreasing(actual_revenue or []):
        score += 20

    return max(0, min(100, score))


def summarize_portfolio_risk(projects: list[ProjectPerformance]) -> PortfolioRiskSummary:
    """Score every project and bucket the portfolio by risk band."""
    entries = [
        PortfolioRiskEntry(
            project_name=p.project_name,
            risk_score=calculate_risk_score(p.revenue_variance, p.cost_variance, p.actual_revenue),
            revenue_variance=p.revenue_variance,
            cost_variance=p.cost_variance,
            has_actuals=p.has_actuals,
        )
        for p in projects
    ]

    distribution = {
        "Low Risk": sum(1 for e in entries if e.risk_score < 30),
        "Medium Risk": sum(1 for e in entries if 30 <= e.risk_score < 60),
        "High Risk": sum(1 for e in entries if e.risk_score >= 60),
    }
    total_risk = sum(e.risk_score for e in entries) / max(len(entries), 1)

    return PortfolioRiskSummary(projects=entries, distribution=distribution, total_risk=total_risk)
