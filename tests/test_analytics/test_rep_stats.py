"""Tests for per-rep stats, leaderboard and merging."""

from __future__ import annotations

from datetime import datetime, timezone

from lead_insights.analytics.records import LeadRecord
from lead_insights.analytics.rep_stats import (
    calculate_rep_stats,
    group_by_rep,
    merge_rep_stats,
    qualified_rep_performance,
    signup_leaderboard,
)


def _make_record(rid, username, interest, signed_up, package_seen, day) -> LeadRecord:
    return LeadRecord(
        id=rid,
        owner_name=f"Owner {rid}",
        interest_level=interest,
        signed_up=signed_up,
        package_seen=package_seen,
        timestamp=datetime(2023, 1, day, 12, 0, tzinfo=timezone.utc),
        username=username,
    )


def _fixture() -> list[LeadRecord]:
    return [
        _make_record(1, "rep1", 4, True, True, 1),
        _make_record(2, "rep1", 2, False, False, 2),
        _make_record(3, "rep2", 5, True, True, 3),
        _make_record(4, "rep2", 3, False, True, 4),
        _make_record(5, "rep3", 4, True, True, 5),
    ]


def _by_name(stats):
    return {s.username: s for s in stats}


class TestCalculateRepStats:
    def test_rep1_example(self):
        rep1 = _by_name(calculate_rep_stats(_fixture()))["rep1"]
        assert rep1.total_submissions == 2
        assert rep1.signed_up == 1
        assert rep1.conversion_rate == 50.0
        assert rep1.avg_interest_level == 3.0
        assert rep1.package_seen == 1
        assert rep1.package_seen_rate == 50.0

    def test_totals_sum_to_record_count(self):
        records = _fixture()
        stats = calculate_rep_stats(records)
        assert sum(s.total_submissions for s in stats) == len(records)

    def test_rates_in_range(self):
        for s in calculate_rep_stats(_fixture()):
            assert 0 <= s.conversion_rate <= 100
            assert 0 <= s.package_seen_rate <= 100

    def test_order_by_volume_then_signups(self):
        names = [s.username for s in calculate_rep_stats(_fixture())]
        assert names == ["rep1", "rep2", "rep3"]

    def test_empty(self):
        assert calculate_rep_stats([]) == []

    def test_missing_username_grouped_as_unknown(self):
        records = _fixture() + [_make_record(6, None, 3, False, False, 6)]
        assert "Unknown" in _by_name(calculate_rep_stats(records))

    def test_idempotent(self):
        records = _fixture()
        assert calculate_rep_stats(records) == calculate_rep_stats(records)

    def test_input_not_reordered(self):
        records = list(reversed(_fixture()))
        snapshot = list(records)
        calculate_rep_stats(records)
        assert records == snapshot


class TestGroupByRep:
    def test_preserves_order_within_group(self):
        groups = group_by_rep(_fixture())
        assert [r.id for r in groups["rep2"]] == [3, 4]


class TestLeaderboard:
    def test_signups_then_conversion_rate(self):
        board = signup_leaderboard(calculate_rep_stats(_fixture()))
        # all three reps have one sign-up; rep3 converts 100%
        assert [s.username for s in board] == ["rep3", "rep1", "rep2"]


class TestMergeRepStats:
    def test_partition_law(self):
        records = _fixture()
        left, right = records[:3], records[3:]
        merged = merge_rep_stats(calculate_rep_stats(left), calculate_rep_stats(right))
        assert merged == calculate_rep_stats(records)

    def test_merge_of_nothing(self):
        assert merge_rep_stats() == []


class TestQualifiedRepPerformance:
    def test_small_samples_excluded(self):
        assert qualified_rep_performance(_fixture()) == []

    def test_ranked_by_conversion_rate(self):
        records = [
            _make_record(1, "amy", 3, False, False, 1),
            _make_record(2, "amy", 3, False, False, 2),
            _make_record(3, "amy", 3, True, True, 3),
            _make_record(4, "ben", 4, True, True, 4),
            _make_record(5, "ben", 4, True, True, 5),
            _make_record(6, "ben", 2, False, False, 6),
            _make_record(7, "cal", 5, True, True, 7),
        ]
        ranked = qualified_rep_performance(records)
        assert [s.username for s in ranked] == ["ben", "amy"]
        assert ranked[0].signed_up == 2
        assert ranked[0].avg_interest_level == 10 / 3

    def test_custom_threshold(self):
        names = [s.username for s in qualified_rep_performance(_fixture(), min_submissions=2)]
        assert names == ["rep1", "rep2"]
