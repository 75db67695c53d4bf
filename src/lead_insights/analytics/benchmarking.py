"""Rep benchmarking — top performer, team averages and performance tiers.

Pure functions comparing reps against each other and against the team.
The efficiency score (average interest times conversion fraction) is an
internal ranking heuristic only; it is never shown as a percentage.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field

from lead_insights.analytics.records import (
    LeadRecord,
    avg_interest,
    conversion_rate,
    date_range_in_days,
    ensure_records,
    safe_div,
)
from lead_insights.analytics.rep_stats import group_by_rep

NO_PERFORMER = "N/A"
HIGH_TIER_SHARE = 0.2
LOW_TIER_START = 0.8


@dataclass
class RepEfficiency:
    """Ranking inputs for a single rep."""
    username: str
    submissions: int
    conversion_rate: float  # 0-100
    avg_interest_level: float
    efficiency: float


@dataclass
class TopPerformer:
    username: str = NO_PERFORMER
    conversion_rate: float = 0.0
    efficiency: float = 0.0


@dataclass
class TeamAverage:
    conversion_rate: float = 0.0
    avg_interest_level: float = 0.0
    daily_submissions: float = 0.0


@dataclass
class PerformanceDistribution:
    high: int = 0  # top 20% of reps
    medium: int = 0  # middle 60%
    low: int = 0  # bottom 20%


@dataclass
class PerformanceBenchmarks:
    """Benchmark result across all reps."""
    top_performer: TopPerformer = field(default_factory=TopPerformer)
    team_average: TeamAverage = field(default_factory=TeamAverage)
    performance_distribution: PerformanceDistribution = field(default_factory=PerformanceDistribution)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def rep_efficiencies(records: list[LeadRecord]) -> list[RepEfficiency]:
    """Per-rep efficiency scores, ordered by username."""
    result = []
    for username, group in sorted(group_by_rep(records).items()):
        n = len(group)
        conversions = sum(1 for r in group if r.signed_up)
        interest = avg_interest(group)
        result.append(RepEfficiency(
            username=username,
            submissions=n,
            conversion_rate=conversion_rate(group),
            avg_interest_level=interest,
            efficiency=interest * safe_div(conversions, n),
        ))
    return result


def pick_top_performer(reps: list[RepEfficiency]) -> TopPerformer:
    """Highest efficiency wins; the first rep in username order wins ties."""
    if not reps:
        return TopPerformer()
    best = reps[0]
    for rep in reps[1:]:
        if rep.efficiency > best.efficiency:
            best = rep
    return TopPerformer(
        username=best.username,
        conversion_rate=best.conversion_rate,
        efficiency=best.efficiency,
    )


def performance_distribution(rates: list[float]) -> PerformanceDistribution:
    """Bucket reps into high/medium/low tiers by conversion rate.

    Uses ceiling-based slicing over the rates sorted descending; with few
    reps some tiers are legitimately empty.
    """
    ordered = sorted(rates, reverse=True)
    n = len(ordered)
    high_end = math.ceil(n * HIGH_TIER_SHARE)
    low_start = math.ceil(n * LOW_TIER_START)
    return PerformanceDistribution(
        high=len(ordered[:high_end]),
        medium=len(ordered[high_end:low_start]),
        low=len(ordered[low_start:]),
    )


def calculate_performance_benchmarks(records: list[LeadRecord]) -> PerformanceBenchmarks:
    """Compute top performer, team averages and tier distribution.

    Team averages are taken over the whole record set, not averaged per rep.
    """
    records = ensure_records(records)
    if not records:
        return PerformanceBenchmarks()

    reps = rep_efficiencies(records)
    team = TeamAverage(
        conversion_rate=conversion_rate(records),
        avg_interest_level=avg_interest(records),
        daily_submissions=len(records) / date_range_in_days(records),
    )
    return PerformanceBenchmarks(
        top_performer=pick_top_performer(reps),
        team_average=team,
        performance_distribution=performance_distribution([r.conversion_rate for r in reps]),
    )
