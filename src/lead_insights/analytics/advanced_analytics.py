"""Advanced analytics facade.

Runs every analyzer over one record snapshot against one reference instant
and assembles a single result with an executive summary on top.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime

from config.settings import settings
from lead_insights.analytics.benchmarking import PerformanceBenchmarks, calculate_performance_benchmarks
from lead_insights.analytics.market_intelligence import (
    MarketIntelligence,
    calculate_market_intelligence,
    empty_market_intelligence,
)
from lead_insights.analytics.pipeline_health import PipelineHealthMetrics, calculate_pipeline_health
from lead_insights.analytics.predictive import PredictiveInsights, generate_predictive_insights
from lead_insights.analytics.records import (
    LeadRecord,
    avg_interest,
    conversion_rate,
    ensure_now,
    ensure_records,
    growth_rate,
)
from lead_insights.analytics.velocity import SalesVelocityMetrics, calculate_sales_velocity

logger = logging.getLogger(__name__)

# Fixed display trends for metrics that have no measured trend yet.
PIPELINE_SIZE_TREND = 5.0
AVG_INTEREST_TREND = 2.0
HOT_PROSPECTS_TREND = 8.0

NEXT_ACTIONS = (
    "Review pipeline health metrics",
    "Implement top recommendations",
    "Monitor key performance indicators",
    "Schedule team performance review",
)


@dataclass
class KeyMetric:
    label: str
    value: str
    trend: float
    trend_measured: bool = True


@dataclass
class Alert:
    type: str  # success / warning / danger
    message: str


@dataclass
class ExecutiveSummary:
    key_metrics: list[KeyMetric] = field(default_factory=list)
    alerts: list[Alert] = field(default_factory=list)
    next_actions: list[str] = field(default_factory=list)


@dataclass
class AdvancedAnalytics:
    """Everything the executive dashboard shows, from one snapshot."""
    sales_velocity: SalesVelocityMetrics = field(default_factory=SalesVelocityMetrics)
    pipeline_health: PipelineHealthMetrics = field(default_factory=PipelineHealthMetrics)
    benchmarks: PerformanceBenchmarks = field(default_factory=PerformanceBenchmarks)
    market_intel: MarketIntelligence = field(default_factory=empty_market_intelligence)
    predictions: PredictiveInsights = field(default_factory=PredictiveInsights)
    executive_summary: ExecutiveSummary = field(default_factory=ExecutiveSummary)


def build_executive_summary(
    conversion_pct: float,
    interest: float,
    velocity: SalesVelocityMetrics,
    pipeline: PipelineHealthMetrics,
    predictions: PredictiveInsights,
) -> ExecutiveSummary:
    key_metrics = [
        KeyMetric("Conversion Rate", f"{conversion_pct:.1f}%", velocity.velocity_trend),
        KeyMetric("Pipeline Size", str(pipeline.total_pipeline), PIPELINE_SIZE_TREND, trend_measured=False),
        KeyMetric("Avg. Interest", f"{interest:.1f}/5", AVG_INTEREST_TREND, trend_measured=False),
        KeyMetric("Hot Prospects", str(pipeline.hot_prospects), HOT_PROSPECTS_TREND, trend_measured=False),
    ]

    alerts = []
    if conversion_pct < settings.conversion_benchmark_pct:
        alerts.append(Alert("warning", "Conversion rate below benchmark"))
    if pipeline.total_pipeline < settings.low_pipeline_threshold:
        alerts.append(Alert("danger", "Pipeline critically low"))
    if predictions.trend_analysis.direction == "up":
        alerts.append(Alert("success", "Positive growth trend detected"))

    return ExecutiveSummary(key_metrics=key_metrics, alerts=alerts, next_actions=list(NEXT_ACTIONS))


def calculate_advanced_analytics(records: list[LeadRecord], now: datetime) -> AdvancedAnalytics:
    """Run all analyzers and build the executive summary.

    An empty record set returns the all-zero structure with empty lists.
    """
    records = ensure_records(records)
    now = ensure_now(now)
    logger.debug("Computing advanced analytics over %d records at %s", len(records), now.isoformat())
    if not records:
        return AdvancedAnalytics()

    velocity = calculate_sales_velocity(records, now)
    pipeline = calculate_pipeline_health(records, now)
    conversion_pct = conversion_rate(records)
    predictions = generate_predictive_insights(
        records,
        now,
        growth=growth_rate(records, now),
        conversion_rate=conversion_pct / 100,
        pipeline_size=pipeline.total_pipeline,
    )

    return AdvancedAnalytics(
        sales_velocity=velocity,
        pipeline_health=pipeline,
        benchmarks=calculate_performance_benchmarks(records),
        market_intel=calculate_market_intelligence(records, now),
        predictions=predictions,
        executive_summary=build_executive_summary(
            conversion_pct, avg_interest(records), velocity, pipeline, predictions,
        ),
    )
