"""Predictive insights — conversion forecast, trend and recommendations.

The forecast is a straight-line extrapolation of the historical daily
submission rate times the historical conversion fraction.  Confidence is a
sample-size heuristic (85 once there are more than 50 records), not a
statistical interval.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from config.settings import settings
from lead_insights.analytics.pipeline_health import open_pipeline
from lead_insights.analytics.records import (
    LeadRecord,
    date_range_in_days,
    ensure_now,
    ensure_records,
    growth_rate,
    round_half_up,
    safe_div,
)

FORECAST_HORIZONS = (7, 30, 90)
CONFIDENT_SAMPLE_SIZE = 50


@dataclass
class ForecastedConversions:
    next_7_days: int = 0
    next_30_days: int = 0
    next_90_days: int = 0


@dataclass
class TrendAnalysis:
    direction: str = "stable"  # up / down / stable
    strength: float = 0.0  # 0-100
    confidence: float = 0.0  # 0-100


@dataclass(frozen=True)
class Recommendation:
    priority: str  # high / medium / low
    category: str
    insight: str
    action: str
    expected_impact: str


@dataclass
class PredictiveInsights:
    forecasted_conversions: ForecastedConversions = field(default_factory=ForecastedConversions)
    trend_analysis: TrendAnalysis = field(default_factory=TrendAnalysis)
    recommendations: list[Recommendation] = field(default_factory=list)


# ---------------------------------------------------------------------------
# Recommendation rules
# ---------------------------------------------------------------------------

CONVERSION_OPTIMIZATION = Recommendation(
    priority="high",
    category="Conversion Optimization",
    insight="Conversion rate is below industry benchmark (15-25%)",
    action="Focus on qualifying leads better and improving package presentation",
    expected_impact="+3-5% conversion rate improvement",
)

LEAD_GENERATION = Recommendation(
    priority="high",
    category="Lead Generation",
    insight="Pipeline size is critically low",
    action="Increase prospecting activities and marketing campaigns",
    expected_impact="2x pipeline size within 30 days",
)

PERFORMANCE_RECOVERY = Recommendation(
    priority="medium",
    category="Performance Recovery",
    insight="Negative trend detected in recent performance",
    action="Analyze recent changes and implement corrective measures",
    expected_impact="Reverse negative trend within 2 weeks",
)


def classify_trend(growth: float, sample_size: int) -> TrendAnalysis:
    """Map a growth percentage and sample size onto a trend reading."""
    threshold = settings.trend_threshold_pct
    if growth > threshold:
        direction = "up"
    elif growth < -threshold:
        direction = "down"
    else:
        direction = "stable"
    confidence = 85 if sample_size > CONFIDENT_SAMPLE_SIZE else sample_size * 1.5
    return TrendAnalysis(
        direction=direction,
        strength=min(100.0, abs(growth) * 2),
        confidence=min(100.0, confidence),
    )


def generate_recommendations(
    conversion_rate_pct: float,
    pipeline_size: int,
    trend_direction: str,
) -> list[Recommendation]:
    """Evaluate each rule independently, in fixed order."""
    recommendations = []
    if conversion_rate_pct < settings.conversion_benchmark_pct:
        recommendations.append(CONVERSION_OPTIMIZATION)
    if pipeline_size < settings.low_pipeline_threshold:
        recommendations.append(LEAD_GENERATION)
    if trend_direction == "down":
        recommendations.append(PERFORMANCE_RECOVERY)
    return recommendations


def forecast_conversions(records: list[LeadRecord], conversion_fraction: float) -> ForecastedConversions:
    daily_rate = len(records) / date_range_in_days(records)
    n7, n30, n90 = (round_half_up(daily_rate * days * conversion_fraction) for days in FORECAST_HORIZONS)
    return ForecastedConversions(next_7_days=n7, next_30_days=n30, next_90_days=n90)


def generate_predictive_insights(
    records: list[LeadRecord],
    now: datetime,
    growth: float | None = None,
    conversion_rate: float | None = None,
    pipeline_size: int | None = None,
) -> PredictiveInsights:
    """Forecast conversions, classify the trend and emit recommendations.

    Args:
        records: Lead records.
        now: Reference instant.
        growth: Precomputed 30-day growth %; computed from records if None.
        conversion_rate: Precomputed conversion fraction (0-1); computed if None.
        pipeline_size: Precomputed open pipeline size; computed if None.
    """
    records = ensure_records(records)
    now = ensure_now(now)
    if not records:
        return PredictiveInsights()

    if growth is None:
        growth = growth_rate(records, now)
    if conversion_rate is None:
        conversion_rate = safe_div(sum(1 for r in records if r.signed_up), len(records))
    if pipeline_size is None:
        pipeline_size = len(open_pipeline(records))

    trend = classify_trend(growth, len(records))
    return PredictiveInsights(
        forecasted_conversions=forecast_conversions(records, conversion_rate),
        trend_analysis=trend,
        recommendations=generate_recommendations(conversion_rate * 100, pipeline_size, trend.direction),
    )
