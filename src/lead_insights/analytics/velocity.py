"""Sales velocity: time-to-conversion distribution and 30-day trend.

There is no separate conversion timestamp on a lead record, so "days to
conversion" is measured from submission to ``now``.  That approximation is
kept deliberately until conversion dates are tracked; for old pipelines it
overstates the real time to close.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime

from lead_insights.analytics.records import (
    LeadRecord,
    days_since,
    ensure_now,
    ensure_records,
    growth_rate,
    safe_div,
)

TIMEFRAME_BUCKETS = ("0-7days", "8-30days", "31-90days", "90+days")


def _empty_timeframes() -> dict[str, int]:
    return {bucket: 0 for bucket in TIMEFRAME_BUCKETS}


@dataclass
class SalesVelocityMetrics:
    """Conversion speed and trend."""
    avg_time_to_conversion: float = 0.0  # days
    velocity_trend: float = 0.0  # % change, last 30d vs prior 30d
    conversions_by_timeframe: dict[str, int] = field(default_factory=_empty_timeframes)


def _timeframe(days: int) -> str:
    if days <= 7:
        return "0-7days"
    if days <= 30:
        return "8-30days"
    if days <= 90:
        return "31-90days"
    return "90+days"


def conversion_days(records: list[LeadRecord], now: datetime) -> list[int]:
    """Days from submission to *now* for every converted record."""
    return [days_since(r.timestamp, now) for r in records if r.signed_up]


def calculate_sales_velocity(records: list[LeadRecord], now: datetime) -> SalesVelocityMetrics:
    """Compute average days to conversion, trend and timeframe buckets.

    Args:
        records: Lead records to analyze.
        now: Reference instant for every window.

    Returns:
        SalesVelocityMetrics; all zero for an empty record set.
    """
    records = ensure_records(records)
    now = ensure_now(now)

    days = conversion_days(records, now)
    buckets = _empty_timeframes()
    for d in days:
        buckets[_timeframe(d)] += 1

    return SalesVelocityMetrics(
        avg_time_to_conversion=safe_div(sum(days), len(days)),
        velocity_trend=growth_rate(records, now, lambda r: r.signed_up),
        conversions_by_timeframe=buckets,
    )
