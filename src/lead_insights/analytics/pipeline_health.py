"""Pipeline health — open lead qualification, bottleneck and near-term outlook.

The bottleneck label is a coarse two-way heuristic on package exposure,
not a learned model: when more than 30% of the open pipeline has not seen
the package, presentation is the constraint; otherwise the decision is.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timedelta

from lead_insights.analytics.records import (
    WINDOW_DAYS,
    LeadRecord,
    ensure_now,
    ensure_records,
    round_half_up,
    safe_div,
)

QUALIFIED_INTEREST = 3
HOT_INTEREST = 4
PACKAGE_GAP_THRESHOLD = 0.3

BOTTLENECK_PACKAGE = "Package Presentation"
BOTTLENECK_DECISION = "Final Decision"
BOTTLENECK_NONE = "N/A"


@dataclass
class PipelineHealthMetrics:
    """Health of the open (not yet converted) pipeline."""
    total_pipeline: int = 0
    qualified_leads: int = 0  # interest >= 3
    hot_prospects: int = 0  # interest >= 4
    bottleneck_stage: str = BOTTLENECK_NONE
    predicted_conversions: int = 0
    pipeline_velocity: float = 0.0  # submissions/day over the trailing 30 days


def open_pipeline(records: list[LeadRecord]) -> list[LeadRecord]:
    return [r for r in records if not r.signed_up]


def _bottleneck(pipeline: list[LeadRecord]) -> str:
    not_seen = sum(1 for r in pipeline if not r.package_seen)
    if not_seen > len(pipeline) * PACKAGE_GAP_THRESHOLD:
        return BOTTLENECK_PACKAGE
    return BOTTLENECK_DECISION


def calculate_pipeline_health(records: list[LeadRecord], now: datetime) -> PipelineHealthMetrics:
    """Classify the open pipeline and predict near-term conversions.

    ``predicted_conversions`` applies the whole record set's historical
    conversion rate to the qualified pipeline.
    """
    records = ensure_records(records)
    now = ensure_now(now)
    if not records:
        return PipelineHealthMetrics()

    pipeline = open_pipeline(records)
    qualified = sum(1 for r in pipeline if r.interest_level >= QUALIFIED_INTEREST)
    hot = sum(1 for r in pipeline if r.interest_level >= HOT_INTEREST)

    historical_rate = safe_div(sum(1 for r in records if r.signed_up), len(records))

    cutoff = now - timedelta(days=WINDOW_DAYS)
    recent = sum(1 for r in records if r.timestamp >= cutoff)

    return PipelineHealthMetrics(
        total_pipeline=len(pipeline),
        qualified_leads=qualified,
        hot_prospects=hot,
        bottleneck_stage=_bottleneck(pipeline),
        predicted_conversions=round_half_up(qualified * historical_rate),
        pipeline_velocity=recent / WINDOW_DAYS,
    )
