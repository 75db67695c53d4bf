"""Market intelligence — decision-maker segments, opportunity and position.

Segments come from a text heuristic over the free-text ``decision_makers``
field.  ``SEGMENT_RULES`` is evaluated top to bottom and the first match
wins, so precedence between overlapping phrases is explicit.  Text that is
present but matches no rule lands in no segment; that gap is accepted
rather than papered over with a catch-all.

Market size, average sales cycle and market share are business assumptions,
not aggregates.  They are returned as ``EstimatedMetric`` so callers can
tell them apart from measured values.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime

from config.settings import settings
from lead_insights.analytics.records import (
    EstimatedMetric,
    LeadRecord,
    avg_interest,
    conversion_rate,
    ensure_now,
    ensure_records,
    estimated,
    growth_rate,
    rate,
)

SEGMENT_OWNER_ONLY = "Owner Only"
SEGMENT_MULTIPLE = "Multiple Decision Makers"
SEGMENT_COMMITTEE = "Committee"
SEGMENT_UNKNOWN = "Unknown"


def _contains_any(*phrases: str) -> Callable[[str], bool]:
    def predicate(text: str) -> bool:
        return bool(text) and any(p in text for p in phrases)
    return predicate


SEGMENT_RULES: list[tuple[str, Callable[[str], bool]]] = [
    (SEGMENT_OWNER_ONLY, _contains_any("owner only", "just me")),
    (SEGMENT_MULTIPLE, _contains_any("partner", "and")),
    (SEGMENT_COMMITTEE, _contains_any("committee", "board")),
    (SEGMENT_UNKNOWN, lambda text: not text),
]

# Keyword buckets for the free-text "specific needs" field.
NEEDS_KEYWORDS: list[tuple[str, tuple[str, ...]]] = [
    ("Payment Processing", ("payment", "transaction", "processor", "process")),
    ("POS Integration", ("pos", "point of sale", "terminal", "cash register")),
    ("Staff Training", ("training", "learn", "education", "guide", "tutorial")),
    ("Software Integration", ("integration", "connect", "api", "sync", "software")),
    ("Instant Settlement", ("instant", "fast", "quick", "speed", "immediate")),
    ("Mobile App", ("mobile", "phone", "app", "smartphone")),
    ("Online Payments", ("online", "web", "website", "e-commerce")),
    ("Customer Support", ("support", "help", "service", "assistance")),
]

# Dashboard breakdown of decision-maker structure.  Broader phrase lists than
# SEGMENT_RULES and a different precedence (committee before multiple); text
# that is present but matches nothing counts as Unknown.
BREAKDOWN_RULES: list[tuple[str, Callable[[str], bool]]] = [
    (SEGMENT_OWNER_ONLY, _contains_any("owner only", "just me", "myself", "i am", "sole")),
    (SEGMENT_COMMITTEE, _contains_any("committee", "board", "team")),
    (SEGMENT_MULTIPLE, _contains_any("partner", "co-owner", "manager", "and", ",")),
]
_BREAKDOWN_ORDER = (SEGMENT_OWNER_ONLY, SEGMENT_MULTIPLE, SEGMENT_COMMITTEE, SEGMENT_UNKNOWN)


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class SegmentAnalysis:
    """Metrics for one decision-maker segment."""
    segment: str
    count: int
    conversion_rate: float
    avg_interest_level: float
    growth_rate: float


@dataclass
class OpportunitySize:
    total_addressable: EstimatedMetric
    current_penetration: float  # % of the addressable market, capped at 100
    projected_growth: float  # 30-day growth of all submissions


@dataclass
class CompetitivePosition:
    win_rate: float
    avg_sales_cycle: EstimatedMetric  # days
    market_share: EstimatedMetric  # %


@dataclass
class MarketIntelligence:
    segment_analysis: list[SegmentAnalysis]
    opportunity_size: OpportunitySize
    competitive_position: CompetitivePosition


@dataclass
class NeedCount:
    need: str
    count: int
    percentage: float  # of records that stated any need


@dataclass
class DecisionMakerBreakdown:
    type: str
    count: int
    conversions: int
    conversion_rate: float


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def classify_decision_makers(text: str | None) -> str | None:
    """Return the first segment whose rule matches, or None."""
    normalized = (text or "").lower()
    for segment, predicate in SEGMENT_RULES:
        if predicate(normalized):
            return segment
    return None


def analyze_segments(records: list[LeadRecord], now: datetime) -> list[SegmentAnalysis]:
    """Per-segment count, conversion, interest and growth; empty segments dropped."""
    buckets: dict[str, list[LeadRecord]] = {name: [] for name, _ in SEGMENT_RULES}
    for r in records:
        segment = classify_decision_makers(r.decision_makers)
        if segment is not None:
            buckets[segment].append(r)

    return [
        SegmentAnalysis(
            segment=name,
            count=len(members),
            conversion_rate=conversion_rate(members),
            avg_interest_level=avg_interest(members),
            growth_rate=growth_rate(members, now),
        )
        for name, members in buckets.items()
        if members
    ]


def empty_market_intelligence() -> MarketIntelligence:
    return MarketIntelligence(
        segment_analysis=[],
        opportunity_size=OpportunitySize(
            total_addressable=estimated(0, "No records to size against"),
            current_penetration=0.0,
            projected_growth=0.0,
        ),
        competitive_position=CompetitivePosition(
            win_rate=0.0,
            avg_sales_cycle=estimated(0, "No records"),
            market_share=estimated(0, "No records"),
        ),
    )


def calculate_market_intelligence(records: list[LeadRecord], now: datetime) -> MarketIntelligence:
    """Segment analysis, opportunity sizing and competitive position."""
    records = ensure_records(records)
    now = ensure_now(now)
    if not records:
        return empty_market_intelligence()

    tam = settings.total_addressable_market
    return MarketIntelligence(
        segment_analysis=analyze_segments(records, now),
        opportunity_size=OpportunitySize(
            total_addressable=estimated(tam, "Configured market estimate"),
            current_penetration=min(100.0, rate(len(records), tam)),
            projected_growth=growth_rate(records, now),
        ),
        competitive_position=CompetitivePosition(
            win_rate=conversion_rate(records),
            avg_sales_cycle=estimated(
                settings.estimated_avg_sales_cycle_days,
                "Fixed assumption until close dates are tracked",
            ),
            market_share=estimated(
                settings.estimated_market_share_pct,
                "Fixed assumption until competitor data is tracked",
            ),
        ),
    )


def analyze_common_needs(records: list[LeadRecord]) -> list[NeedCount]:
    """Count keyword buckets in ``specific_needs``.

    A record can hit several buckets.  Percentages are relative to the
    records that stated any need.  When fewer than five buckets are hit,
    records that matched nothing are reported as "Other".
    """
    records = ensure_records(records)
    with_needs = [r.specific_needs.lower() for r in records if r.specific_needs]
    if not with_needs:
        return []

    counts = {need: 0 for need, _ in NEEDS_KEYWORDS}
    unmatched = 0
    for text in with_needs:
        hit = False
        for need, keywords in NEEDS_KEYWORDS:
            if any(k in text for k in keywords):
                counts[need] += 1
                hit = True
        if not hit:
            unmatched += 1

    total = len(with_needs)
    result = [
        NeedCount(need=need, count=count, percentage=rate(count, total))
        for need, count in counts.items()
        if count > 0
    ]
    result.sort(key=lambda n: n.count, reverse=True)

    # Records can hit several buckets, so "Other" is the no-hit count rather
    # than total minus the bucket sums.
    if len(result) < 5 and unmatched > 0:
        result.append(NeedCount(need="Other", count=unmatched, percentage=rate(unmatched, total)))
    return result


def analyze_decision_maker_breakdown(records: list[LeadRecord]) -> list[DecisionMakerBreakdown]:
    """Count and conversion per decision-maker structure, largest first.

    Only records that carry a ``decision_makers`` value are considered.
    Empty types are dropped; ties keep Owner Only, Multiple, Committee,
    Unknown order.
    """
    records = ensure_records(records)
    counts = {name: [0, 0] for name in _BREAKDOWN_ORDER}
    for r in records:
        if r.decision_makers is None:
            continue
        text = r.decision_makers.lower()
        kind = next(
            (name for name, predicate in BREAKDOWN_RULES if predicate(text)),
            SEGMENT_UNKNOWN,
        )
        counts[kind][0] += 1
        if r.signed_up:
            counts[kind][1] += 1

    result = [
        DecisionMakerBreakdown(type=name, count=n, conversions=c, conversion_rate=rate(c, n))
        for name, (n, c) in counts.items()
        if n > 0
    ]
    result.sort(key=lambda b: b.count, reverse=True)
    return result
