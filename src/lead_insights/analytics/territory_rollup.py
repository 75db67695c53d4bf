"""Territory and country rollups.

Runs the record-level primitives (conversion rate, interest, days to
conversion, trailing velocity) over the records of one territory, or over
the union of a country's active territories.  A record is attributed to a
territory only through its own ``territory`` id; records without one never
appear in any rollup.

Identity fields come from a caller-supplied ``TerritoryCatalog``.  Unknown
territory, country or rep ids yield ``None`` (or an empty list) and are
logged at debug level.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date, datetime, timedelta

from lead_insights.analytics.pipeline_health import QUALIFIED_INTEREST
from lead_insights.analytics.records import (
    WINDOW_DAYS,
    EstimatedMetric,
    LeadRecord,
    avg_interest,
    conversion_rate,
    date_range_in_days,
    ensure_now,
    ensure_records,
    rate,
    safe_div,
    unmeasured,
)
from lead_insights.analytics.territory_catalog import Territory, TerritoryCatalog
from lead_insights.analytics.velocity import conversion_days

logger = logging.getLogger(__name__)

DEFAULT_TREND_DAYS = 30
RANKED_TERRITORIES = 3

_DEAL_SIZE_NOTE = "Deal values are not tracked on lead records"

# metric name -> (attribute getter, sort descending)
COMPARISON_METRICS = {
    "leads": (lambda m: m.total_leads, True),
    "conversions": (lambda m: m.converted_leads, True),
    "conversionRate": (lambda m: m.conversion_rate, True),
    "avgDealSize": (lambda m: m.avg_deal_size.value, True),
    "timeToClose": (lambda m: m.avg_time_to_close, False),  # lower is better
}

_HEAT_BANDS = [
    (0.2, "#ef4444"),
    (0.4, "#f97316"),
    (0.6, "#eab308"),
    (0.8, "#22c55e"),
]
_HEAT_TOP = "#16a34a"


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------


@dataclass
class TerritoryMetrics:
    """Rollup for a single territory."""
    territory_id: str
    territory_name: str
    territory_type: str
    country_code: str
    country_name: str
    parent_territory_id: str | None
    parent_territory_name: str | None
    total_leads: int
    active_leads: int  # open and interest >= 3
    converted_leads: int
    conversion_rate: float
    avg_interest_level: float
    avg_time_to_close: float  # days, submission to now for converted leads
    daily_submissions: float
    pipeline_velocity: float  # submissions/day, trailing 30 days
    assigned_reps: int
    last_activity_date: datetime | None
    avg_deal_size: EstimatedMetric = field(default_factory=lambda: unmeasured(_DEAL_SIZE_NOTE))


@dataclass
class RecentActivity:
    new_leads_today: int = 0
    conversions_today: int = 0
    activities_logged: EstimatedMetric = field(
        default_factory=lambda: unmeasured("Activity logging is not tracked on lead records")
    )


@dataclass
class CountryMetrics:
    """Rollup over all active territories of a country."""
    country_code: str
    country_name: str
    flag_emoji: str
    currency_code: str
    total_territories: int
    total_leads: int
    active_leads: int
    converted_leads: int
    avg_conversion_rate: float
    avg_time_to_close: float
    total_reps: int
    top_performing_territories: list[TerritoryMetrics]
    underperforming_territories: list[TerritoryMetrics]
    recent_activity: RecentActivity
    total_revenue: EstimatedMetric = field(
        default_factory=lambda: unmeasured("Revenue is not tracked on lead records")
    )


@dataclass
class TerritoryTrendPoint:
    territory_id: str
    date: str  # YYYY-MM-DD (UTC)
    leads: int
    conversions: int


@dataclass
class RepTerritoryEntry:
    territory_id: str
    territory_name: str
    country_code: str
    leads: int
    conversions: int
    conversion_rate: float


@dataclass
class RepTerritoryPerformance:
    rep_id: str
    rep_name: str
    territories: list[RepTerritoryEntry]
    total_leads: int
    total_conversions: int
    overall_conversion_rate: float


@dataclass
class TerritoryComparison:
    territory_a: TerritoryMetrics
    territory_b: TerritoryMetrics
    conversion_rate_diff: float
    avg_deal_size_diff: float
    time_to_close_diff: float
    lead_volume_diff: int


@dataclass
class TerritoryHeatMapCell:
    territory_id: str
    name: str
    value: float  # normalised 0-100
    actual_value: float
    color: str
    leads: int
    conversions: int


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def _in_range(records: list[LeadRecord], date_range: tuple[datetime, datetime] | None) -> list[LeadRecord]:
    if date_range is None:
        return records
    start, end = ensure_now(date_range[0]), ensure_now(date_range[1])
    return [r for r in records if start <= r.timestamp <= end]


def _for_territories(records: list[LeadRecord], territory_ids: set[str]) -> list[LeadRecord]:
    return [r for r in records if r.territory is not None and r.territory in territory_ids]


def _active_leads(records: list[LeadRecord]) -> int:
    return sum(1 for r in records if not r.signed_up and r.interest_level >= QUALIFIED_INTEREST)


def _avg_time_to_close(records: list[LeadRecord], now: datetime) -> float:
    days = conversion_days(records, now)
    return safe_div(sum(days), len(days))


def _on_day(records: list[LeadRecord], day: date) -> list[LeadRecord]:
    return [r for r in records if r.timestamp.date() == day]


# ---------------------------------------------------------------------------
# Service
# ---------------------------------------------------------------------------


class TerritoryRollupService:
    """Territory, country and rep-by-territory rollups over a record snapshot."""

    def __init__(self, catalog: TerritoryCatalog):
        self.catalog = catalog

    def _metrics_for(self, territory: Territory, records: list[LeadRecord], now: datetime) -> TerritoryMetrics:
        scoped = _for_territories(records, {territory.id})
        country = self.catalog.get_country(territory.country_code)
        parent = self.catalog.get_territory(territory.parent_id) if territory.parent_id else None
        recent_cutoff = now - timedelta(days=WINDOW_DAYS)

        return TerritoryMetrics(
            territory_id=territory.id,
            territory_name=territory.name,
            territory_type=territory.type,
            country_code=territory.country_code,
            country_name=country.name if country else territory.country_code,
            parent_territory_id=parent.id if parent else None,
            parent_territory_name=parent.name if parent else None,
            total_leads=len(scoped),
            active_leads=_active_leads(scoped),
            converted_leads=sum(1 for r in scoped if r.signed_up),
            conversion_rate=conversion_rate(scoped),
            avg_interest_level=avg_interest(scoped),
            avg_time_to_close=_avg_time_to_close(scoped, now),
            daily_submissions=len(scoped) / date_range_in_days(scoped),
            pipeline_velocity=sum(1 for r in scoped if r.timestamp >= recent_cutoff) / WINDOW_DAYS,
            assigned_reps=len(self.catalog.reps_for_territories({territory.id})),
            last_activity_date=max((r.timestamp for r in scoped), default=None),
        )

    def territory_metrics(
        self,
        records: list[LeadRecord],
        territory_id: str,
        now: datetime,
        date_range: tuple[datetime, datetime] | None = None,
    ) -> TerritoryMetrics | None:
        """Metrics for one territory, or None if the catalog does not know it."""
        records = _in_range(ensure_records(records), date_range)
        now = ensure_now(now)
        territory = self.catalog.get_territory(territory_id)
        if territory is None:
            logger.debug("Unknown territory id %s", territory_id)
            return None
        return self._metrics_for(territory, records, now)

    def country_metrics(
        self,
        records: list[LeadRecord],
        country_code: str,
        now: datetime,
        date_range: tuple[datetime, datetime] | None = None,
    ) -> CountryMetrics | None:
        """Metrics over the union of a country's active territories."""
        all_records = ensure_records(records)
        records = _in_range(all_records, date_range)
        now = ensure_now(now)
        country = self.catalog.get_country(country_code)
        if country is None:
            logger.debug("Unknown country code %s", country_code)
            return None

        territories = self.catalog.territories_for_country(country_code)
        territory_ids = {t.id for t in territories}
        scoped = _for_territories(records, territory_ids)

        per_territory = [self._metrics_for(t, records, now) for t in territories]
        ranked = sorted(per_territory, key=lambda m: (-m.conversion_rate, m.territory_name, m.territory_id))

        today = _on_day(_for_territories(all_records, territory_ids), now.date())
        converted = sum(1 for r in scoped if r.signed_up)

        return CountryMetrics(
            country_code=country.code,
            country_name=country.name,
            flag_emoji=country.flag_emoji,
            currency_code=country.currency_code,
            total_territories=len(territories),
            total_leads=len(scoped),
            active_leads=_active_leads(scoped),
            converted_leads=converted,
            avg_conversion_rate=rate(converted, len(scoped)),
            avg_time_to_close=safe_div(sum(m.avg_time_to_close for m in per_territory), len(per_territory)),
            total_reps=len(self.catalog.reps_for_territories(territory_ids)),
            top_performing_territories=ranked[:RANKED_TERRITORIES],
            underperforming_territories=list(reversed(ranked[-RANKED_TERRITORIES:])),
            recent_activity=RecentActivity(
                new_leads_today=len(today),
                conversions_today=sum(1 for r in today if r.signed_up),
            ),
        )

    def territory_trends(
        self,
        records: list[LeadRecord],
        territory_id: str,
        now: datetime,
        days: int = DEFAULT_TREND_DAYS,
    ) -> list[TerritoryTrendPoint]:
        """Daily leads and conversions for the trailing *days* calendar days, oldest first."""
        records = ensure_records(records)
        now = ensure_now(now)
        if self.catalog.get_territory(territory_id) is None:
            logger.debug("Unknown territory id %s", territory_id)
            return []

        by_day: dict[date, list[int]] = {}
        for r in _for_territories(records, {territory_id}):
            counts = by_day.setdefault(r.timestamp.date(), [0, 0])
            counts[0] += 1
            if r.signed_up:
                counts[1] += 1

        today = now.date()
        points = []
        for offset in range(days - 1, -1, -1):
            day = today - timedelta(days=offset)
            leads, conversions = by_day.get(day, (0, 0))
            points.append(TerritoryTrendPoint(
                territory_id=territory_id,
                date=day.isoformat(),
                leads=leads,
                conversions=conversions,
            ))
        return points

    def rep_territory_performance(
        self,
        records: list[LeadRecord],
        rep_id: str,
        date_range: tuple[datetime, datetime] | None = None,
    ) -> RepTerritoryPerformance | None:
        """A rep's own leads and conversions in each active assigned territory."""
        records = _in_range(ensure_records(records), date_range)
        rep = self.catalog.get_rep(rep_id)
        if rep is None:
            logger.debug("Unknown rep id %s", rep_id)
            return None

        own = [r for r in records if r.username == rep.username]
        entries: list[RepTerritoryEntry] = []
        seen: set[str] = set()
        for assignment in self.catalog.assignments_for_rep(rep_id):
            if assignment.territory_id in seen:
                continue
            seen.add(assignment.territory_id)
            territory = self.catalog.get_territory(assignment.territory_id)
            if territory is None:
                logger.debug("Rep %s assigned to unknown territory %s", rep_id, assignment.territory_id)
                continue
            scoped = _for_territories(own, {territory.id})
            conversions = sum(1 for r in scoped if r.signed_up)
            entries.append(RepTerritoryEntry(
                territory_id=territory.id,
                territory_name=territory.name,
                country_code=territory.country_code,
                leads=len(scoped),
                conversions=conversions,
                conversion_rate=rate(conversions, len(scoped)),
            ))

        total_leads = sum(e.leads for e in entries)
        total_conversions = sum(e.conversions for e in entries)
        return RepTerritoryPerformance(
            rep_id=rep.id,
            rep_name=rep.username,
            territories=entries,
            total_leads=total_leads,
            total_conversions=total_conversions,
            overall_conversion_rate=rate(total_conversions, total_leads),
        )

    def compare_territories(
        self,
        records: list[LeadRecord],
        territory_ids: list[str],
        now: datetime,
        metric: str = "conversionRate",
        date_range: tuple[datetime, datetime] | None = None,
    ) -> list[TerritoryMetrics]:
        """Metrics for the known territories, best first by *metric*.

        Unknown ids are dropped.  ``timeToClose`` sorts ascending, every
        other metric descending.
        """
        if metric not in COMPARISON_METRICS:
            raise ValueError(f"Unknown comparison metric {metric!r}; expected one of {sorted(COMPARISON_METRICS)}")
        getter, descending = COMPARISON_METRICS[metric]

        metrics = [
            m for m in (self.territory_metrics(records, tid, now, date_range) for tid in territory_ids)
            if m is not None
        ]
        return sorted(metrics, key=getter, reverse=descending)

    def compare_pair(
        self,
        records: list[LeadRecord],
        territory_a: str,
        territory_b: str,
        now: datetime,
        date_range: tuple[datetime, datetime] | None = None,
    ) -> TerritoryComparison | None:
        """Side-by-side differences (a minus b); None if either id is unknown."""
        a = self.territory_metrics(records, territory_a, now, date_range)
        b = self.territory_metrics(records, territory_b, now, date_range)
        if a is None or b is None:
            return None
        return TerritoryComparison(
            territory_a=a,
            territory_b=b,
            conversion_rate_diff=a.conversion_rate - b.conversion_rate,
            avg_deal_size_diff=a.avg_deal_size.value - b.avg_deal_size.value,
            time_to_close_diff=a.avg_time_to_close - b.avg_time_to_close,
            lead_volume_diff=a.total_leads - b.total_leads,
        )

    def heat_map(
        self,
        records: list[LeadRecord],
        territory_ids: list[str],
        now: datetime,
        metric: str = "conversionRate",
        date_range: tuple[datetime, datetime] | None = None,
    ) -> list[TerritoryHeatMapCell]:
        """Min-max normalised scores per territory with a colour band.

        Normalisation is raw (higher value, higher score) for every metric.
        When all values are equal every cell scores 0.
        """
        if metric not in COMPARISON_METRICS:
            raise ValueError(f"Unknown heat map metric {metric!r}; expected one of {sorted(COMPARISON_METRICS)}")
        getter, _ = COMPARISON_METRICS[metric]

        metrics = [
            m for m in (self.territory_metrics(records, tid, now, date_range) for tid in territory_ids)
            if m is not None
        ]
        if not metrics:
            return []

        values = [float(getter(m)) for m in metrics]
        low, high = min(values), max(values)
        span = (high - low) or 1.0

        cells = []
        for m, v in zip(metrics, values):
            normalized = (v - low) / span
            color = next((c for limit, c in _HEAT_BANDS if normalized < limit), _HEAT_TOP)
            cells.append(TerritoryHeatMapCell(
                territory_id=m.territory_id,
                name=m.territory_name,
                value=normalized * 100,
                actual_value=v,
                color=color,
                leads=m.total_leads,
                conversions=m.converted_leads,
            ))
        return cells
