"""API router for variance trend analytics.

5 endpoints:
- POST /variance/trend — one project, one metric
- POST /variance/portfolio — all metrics across projects, ranked insights
- POST /variance/risk-score — composite 0-100 risk score
- POST /variance/risk-summary — portfolio risk distribution
- POST /variance/seasonal-adjustments — apply seasonal factors to projections

Every endpoint is stateless; callers supply actuals and models in the body.
"""

from __future__ import annotations

import dataclasses
import logging
from typing import Any, Literal, Optional

from fastapi import APIRouter, HTTPException
from pydantic import BaseModel, Field

from config.settings import settings
from forecast_brain.variance.insight_synthesizer import (
    calculate_risk_score,
    summarize_portfolio_risk,
)
from forecast_brain.variance.models import (
    ActualsPeriodEntry,
    FinancialModel,
    ModelPeriod,
    ProjectPerformance,
    ProjectVarianceInput,
    SeasonalPattern,
)
from forecast_brain.variance.seasonality_detector import apply_seasonal_adjustments
from forecast_brain.variance.variance_trend import analyze_portfolio, calculate_variance_trend

logger = logging.getLogger(__name__)

router = APIRouter(tags=["variance"])


# ---------------------------------------------------------------------------
# Request models
# ---------------------------------------------------------------------------


class ActualsBody(BaseModel):
    period: str
    revenue: Optional[float] = None
    costs: Optional[float] = None
    attendance: Optional[int] = None
    notes: str = ""


class ModelPeriodBody(BaseModel):
    period: str
    revenue: Optional[float] = None
    costs: Optional[float] = None


class FinancialModelBody(BaseModel):
    id: str
    name: str = ""
    is_primary: bool = False
    periods: list[ModelPeriodBody] = Field(default_factory=list)


class TrendRequest(BaseModel):
    project_id: str
    metric: Literal["revenue", "costs", "profit"]
    actuals: list[ActualsBody]
    model: FinancialModelBody


class ProjectBody(BaseModel):
    project_id: str
    project_name: str = ""
    actuals: list[ActualsBody] = Field(default_factory=list)
    models: list[FinancialModelBody] = Field(default_factory=list)


class PortfolioRequest(BaseModel):
    projects: list[ProjectBody]


class RiskScoreRequest(BaseModel):
    revenue_variance: float
    cost_variance: float
    actual_revenue: list[float] = Field(default_factory=list)


class ProjectPerformanceBody(BaseModel):
    project_name: str
    revenue_variance: float
    cost_variance: float
    actual_revenue: list[float] = Field(default_factory=list)
    has_actuals: bool = True


class RiskSummaryRequest(BaseModel):
    projects: list[ProjectPerformanceBody]


class ProjectionBody(BaseModel):
    period: str
    value: float


class SeasonalPatternBody(BaseModel):
    detected: bool = True
    period: int = 12
    strength: float = 0.0
    adjustment_factors: dict[str, float] = Field(default_factory=dict)


class SeasonalAdjustmentRequest(BaseModel):
    projections: list[ProjectionBody]
    seasonal_pattern: SeasonalPatternBody


# ---------------------------------------------------------------------------
# Conversion helpers
# ---------------------------------------------------------------------------


def _to_actuals(rows: list[ActualsBody]) -> list[ActualsPeriodEntry]:
    return [ActualsPeriodEntry(**r.model_dump()) for r in rows]


def _to_model(body: FinancialModelBody) -> FinancialModel:
    return FinancialModel(
        id=body.id,
        name=body.name,
        is_primary=body.is_primary,
        periods=[ModelPeriod(**p.model_dump()) for p in body.periods],
    )


# ---------------------------------------------------------------------------
# Endpoints
# ---------------------------------------------------------------------------


@router.post("/variance/trend")
async def variance_trend(body: TrendRequest) -> dict[str, Any]:
    """Variance trend, anomalies and seasonality for one project metric."""
    try:
        trend = calculate_variance_trend(
            body.project_id, body.metric, _to_actuals(body.actuals), _to_model(body.model),
        )
    except ValueError as exc:
        logger.warning("Rejected variance trend request for %s: %s", body.project_id, exc)
        raise HTTPException(status_code=422, detail=str(exc))
    return dataclasses.asdict(trend)


@router.post("/variance/portfolio")
async def variance_portfolio(body: PortfolioRequest) -> dict[str, Any]:
    """Trends for every project/metric with data, plus ranked insights."""
    projects = [
        ProjectVarianceInput(
            project_id=p.project_id,
            project_name=p.project_name,
            actuals=_to_actuals(p.actuals),
            models=[_to_model(m) for m in p.models],
        )
        for p in body.projects
    ]
    report = analyze_portfolio(projects, min_periods=settings.variance_min_periods)
    return dataclasses.asdict(report)


@router.post("/variance/risk-score")
async def risk_score(body: RiskScoreRequest) -> dict[str, int]:
    return {
        "risk_score": calculate_risk_score(
            body.revenue_variance, body.cost_variance, body.actual_revenue,
        ),
    }


@router.post("/variance/risk-summary")
async def risk_summary(body: RiskSummaryRequest) -> dict[str, Any]:
    """Risk score per project and Low/Medium/High distribution."""
    summary = summarize_portfolio_risk(
        [ProjectPerformance(**p.model_dump()) for p in body.projects]
    )
    return dataclasses.asdict(summary)


@router.post("/variance/seasonal-adjustments")
async def seasonal_adjustments(body: SeasonalAdjustmentRequest) -> dict[str, Any]:
    pattern = SeasonalPattern(**body.seasonal_pattern.model_dump())
    adjusted = apply_seasonal_adjustments(
        [(p.period, p.value) for p in body.projections], pattern,
    )
    return {"adjustments": [dataclasses.asdict(a) for a in adjusted]}
