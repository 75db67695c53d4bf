"""Submission summary stats — headline totals and simple distributions."""

from __future__ import annotations

from dataclasses import dataclass, field

from lead_insights.analytics.records import LeadRecord, avg_interest, ensure_records, rate

MONTHS = ("Jan", "Feb", "Mar", "Apr", "May", "Jun", "Jul", "Aug", "Sep", "Oct", "Nov", "Dec")


@dataclass
class MonthCount:
    month: str
    count: int


def _empty_months() -> list[MonthCount]:
    return [MonthCount(month=m, count=0) for m in MONTHS]


@dataclass
class SubmissionStats:
    """Headline totals over a record set."""
    total: int = 0
    signed_up: int = 0
    avg_interest_level: float = 0.0
    package_seen_percentage: float = 0.0
    submissions_by_month: list[MonthCount] = field(default_factory=_empty_months)


def calculate_submission_stats(records: list[LeadRecord]) -> SubmissionStats:
    """Totals, averages and a Jan-Dec submission histogram.

    Months are calendar months in UTC regardless of year, so a multi-year
    record set folds into the same twelve buckets.
    """
    records = ensure_records(records)
    if not records:
        return SubmissionStats()

    months = _empty_months()
    for r in records:
        months[r.timestamp.month - 1].count += 1

    return SubmissionStats(
        total=len(records),
        signed_up=sum(1 for r in records if r.signed_up),
        avg_interest_level=avg_interest(records),
        package_seen_percentage=rate(sum(1 for r in records if r.package_seen), len(records)),
        submissions_by_month=months,
    )


def calculate_conversion_rate(records: list[LeadRecord]) -> float:
    records = ensure_records(records)
    return rate(sum(1 for r in records if r.signed_up), len(records))


def interest_distribution(records: list[LeadRecord]) -> list[int]:
    """Counts for interest levels 1-5; out-of-range levels are skipped."""
    records = ensure_records(records)
    distribution = [0, 0, 0, 0, 0]
    for r in records:
        if 1 <= r.interest_level <= 5:
            distribution[r.interest_level - 1] += 1
    return distribution
