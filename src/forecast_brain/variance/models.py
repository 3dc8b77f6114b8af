"""Data types shared by the variance analytics engine.

Input records describe what the caller's storage layer hands over
(actual period entries and a financial model's projected periods).
Result records are produced fresh on every analysis call.
"""

from __future__ import annotations

from dataclasses import dataclass, field


METRICS = ("revenue", "costs", "profit")


# ---------------------------------------------------------------------------
# Inputs
# ---------------------------------------------------------------------------


@dataclass
class ActualsPeriodEntry:
    """Recorded actuals for one period of a project."""

    period: str
    revenue: float | None = None
    costs: float | None = None
    attendance: int | None = None
    notes: str = ""


@dataclass
class ModelPeriod:
    """Projected figures for one period of a financial model."""

    period: str
    revenue: float | None = None
    costs: float | None = None


@dataclass
class FinancialModel:
    """A growth model with period-indexed projections."""

    id: str
    name: str = ""
    is_primary: bool = False
    periods: list[ModelPeriod] = field(default_factory=list)

    def projection_for(self, period: str) -> ModelPeriod | None:
        """First projected period whose key equals *period*, if any."""
        for p in self.periods:
            if p.period == period:
                return p
        return None


@dataclass
class ProjectVarianceInput:
    """Everything needed to analyse one project."""

    project_id: str
    project_name: str
    actuals: list[ActualsPeriodEntry]
    models: list[FinancialModel]


@dataclass
class ProjectPerformance:
    """Headline performance figures used for portfolio risk scoring."""

    project_name: str
    revenue_variance: float
    cost_variance: float
    actual_revenue: list[float] = field(default_factory=list)
    has_actuals: bool = True


# ---------------------------------------------------------------------------
# Results
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class VariancePoint:
    """One period's actual-vs-projected comparison."""

    period: str
    variance: float  # (actual - projected) / projected * 100
    actual: float
    projected: float
    is_anomaly: bool = False
    risk_level: str = "low"  # "low" | "medium" | "high"


@dataclass
class VarianceStatistics:
    mean: float
    std_dev: float  # population
    median: float


@dataclass
class TrendAnalysis:
    """Linear-regression view of a variance series."""

    direction: str  # "improving" | "stable" | "worsening"
    strength: float  # 0-1
    confidence: float  # 0-100, from R^2
    change_rate: float  # slope, % points per period
    projected_next_variance: float | None = None


@dataclass
class AnomalyPoint:
    period: str
    variance: float
    severity: str  # "mild" | "moderate" | "severe"
    deviation_from_norm: float  # |z-score|
    potential_causes: list[str] = field(default_factory=list)


@dataclass
class SeasonalPattern:
    detected: bool
    period: int  # assumed cycle length
    strength: float  # 0-1
    adjustment_factors: dict[str, float] = field(default_factory=dict)


@dataclass
class VarianceTrend:
    """Complete variance analysis for one (project, metric) pair."""

    project_id: str
    metric: str
    time_series_data: list[VariancePoint]
    trend_direction: str
    volatility: float
    anomalies: list[AnomalyPoint]
    average_variance: float
    variance_standard_deviation: float
    seasonal_pattern: SeasonalPattern | None = None


@dataclass
class VarianceInsight:
    type: str  # "trend" | "anomaly" | "seasonal" | "volatility"
    severity: str  # "info" | "warning" | "critical"
    title: str
    description: str
    recommendation: str
    affected_periods: list[str]
    confidence_score: int
