"""Per-rep performance stats and leaderboards.

Pure functions that group lead records by owning sales rep and compute
submission, sign-up and package-presentation totals and rates.
"""

from __future__ import annotations

from dataclasses import dataclass

from lead_insights.analytics.records import LeadRecord, ensure_records, rate, safe_div

MIN_QUALIFYING_SUBMISSIONS = 3


@dataclass
class RepStats:
    """Totals and rates for a single sales rep."""
    username: str
    total_submissions: int
    signed_up: int
    conversion_rate: float  # 0-100
    avg_interest_level: float
    package_seen: int
    package_seen_rate: float  # 0-100


@dataclass
class _RepTotals:
    total: int = 0
    signed_up: int = 0
    interest_sum: int = 0
    package_seen: int = 0

    def to_stats(self, username: str) -> RepStats:
        return RepStats(
            username=username,
            total_submissions=self.total,
            signed_up=self.signed_up,
            conversion_rate=rate(self.signed_up, self.total),
            avg_interest_level=safe_div(self.interest_sum, self.total),
            package_seen=self.package_seen,
            package_seen_rate=rate(self.package_seen, self.total),
        )


def _sort_by_volume(stats: list[RepStats]) -> list[RepStats]:
    return sorted(stats, key=lambda s: (-s.total_submissions, -s.signed_up, s.username))


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def group_by_rep(records: list[LeadRecord]) -> dict[str, list[LeadRecord]]:
    """Partition records by rep key, preserving input order within each group."""
    groups: dict[str, list[LeadRecord]] = {}
    for r in records:
        groups.setdefault(r.rep, []).append(r)
    return groups


def calculate_rep_stats(records: list[LeadRecord]) -> list[RepStats]:
    """Compute one ``RepStats`` entry per distinct rep.

    Reps are ordered by total submissions, then sign-ups (both descending),
    then username.  An empty record set yields an empty list.
    """
    records = ensure_records(records)

    totals: dict[str, _RepTotals] = {}
    for r in records:
        t = totals.setdefault(r.rep, _RepTotals())
        t.total += 1
        t.interest_sum += r.interest_level
        if r.signed_up:
            t.signed_up += 1
        if r.package_seen:
            t.package_seen += 1

    return _sort_by_volume([t.to_stats(name) for name, t in totals.items()])


def signup_leaderboard(stats: list[RepStats]) -> list[RepStats]:
    """Re-order computed stats by sign-ups, then conversion rate (descending)."""
    return sorted(stats, key=lambda s: (-s.signed_up, -s.conversion_rate, s.username))


def merge_rep_stats(*groups: list[RepStats]) -> list[RepStats]:
    """Merge stats computed over disjoint record sets.

    Counts are summed per username and rates recomputed from the sums;
    the average interest is re-derived from its implied interest total.
    """
    totals: dict[str, _RepTotals] = {}
    interest: dict[str, float] = {}
    for group in groups:
        for s in group:
            t = totals.setdefault(s.username, _RepTotals())
            t.total += s.total_submissions
            t.signed_up += s.signed_up
            t.package_seen += s.package_seen
            interest[s.username] = interest.get(s.username, 0.0) + s.avg_interest_level * s.total_submissions

    merged = []
    for name, t in totals.items():
        stats = t.to_stats(name)
        stats.avg_interest_level = safe_div(interest[name], t.total)
        merged.append(stats)
    return _sort_by_volume(merged)


def qualified_rep_performance(
    records: list[LeadRecord],
    min_submissions: int = MIN_QUALIFYING_SUBMISSIONS,
) -> list[RepStats]:
    """Reps with at least *min_submissions* records, best conversion rate first.

    Small samples are left out so a single lucky sign-up does not top the
    ranking.  Ties keep the volume order of ``calculate_rep_stats``.
    """
    stats = [s for s in calculate_rep_stats(records) if s.total_submissions >= min_submissions]
    return sorted(stats, key=lambda s: -s.conversion_rate)
