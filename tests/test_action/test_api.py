"""HTTP tests for the analytics and territory routers."""

from __future__ import annotations

import logging

import pytest
from fastapi.testclient import TestClient

from config.settings import settings
from lead_insights.action.api import app, configure_logging

NOW = "2024-06-01T12:00:00Z"


def _row(territory="kgn", signed_up=False, interest=3, timestamp="2024-05-30T10:00:00Z", username="amy") -> dict:
    return {
        "ownerName": "Owner",
        "interestLevel": interest,
        "signedUp": signed_up,
        "packageSeen": signed_up,
        "timestamp": timestamp,
        "username": username,
        "territoryId": territory,
        "decisionMakers": "owner only",
    }


def _catalog() -> dict:
    return {
        "countries": [{"code": "JM", "name": "Jamaica", "flagEmoji": "🇯🇲", "currencyCode": "JMD"}],
        "territories": [
            {"id": "kgn", "name": "Kingston", "countryCode": "JM"},
            {"id": "sta", "name": "St. Andrew", "countryCode": "JM"},
        ],
        "reps": [{"id": "u1", "username": "amy"}],
        "assignments": [{"userId": "u1", "territoryId": "kgn"}],
    }


def _records() -> list[dict]:
    return [
        _row(signed_up=True, interest=5),
        _row(interest=4),
        _row(territory="sta", interest=2, username="ben"),
    ]


@pytest.fixture
def client():
    with TestClient(app) as c:
        yield c


class TestHealth:
    def test_health(self, client):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "ok"


class TestAnalyticsRoutes:
    def test_advanced(self, client):
        resp = client.post("/analytics/advanced", json={"records": _records(), "now": NOW})
        assert resp.status_code == 200
        body = resp.json()
        assert body["pipeline_health"]["total_pipeline"] == 2
        assert body["executive_summary"]["key_metrics"][0]["label"] == "Conversion Rate"
        assert body["market_intel"]["opportunity_size"]["total_addressable"]["kind"] == "estimated"

    def test_advanced_empty(self, client):
        resp = client.post("/analytics/advanced", json={"records": []})
        assert resp.status_code == 200
        assert resp.json()["benchmarks"]["top_performer"]["username"] == "N/A"

    def test_rep_stats(self, client):
        resp = client.post("/analytics/rep-stats", json={"records": _records()})
        assert resp.status_code == 200
        stats = {s["username"]: s for s in resp.json()}
        assert stats["amy"]["total_submissions"] == 2
        assert stats["amy"]["conversion_rate"] == 50.0

    def test_leaderboard(self, client):
        resp = client.post("/analytics/leaderboard", json={"records": _records()})
        assert [s["username"] for s in resp.json()] == ["amy", "ben"]

    def test_summary(self, client):
        resp = client.post("/analytics/summary", json={"records": _records()})
        body = resp.json()
        assert body["stats"]["total"] == 3
        assert body["interest_distribution"] == [0, 1, 0, 1, 1]
        assert body["common_needs"] == []

    def test_malformed_record_is_422(self, client):
        bad = _row()
        del bad["timestamp"]
        resp = client.post("/analytics/rep-stats", json={"records": [bad]})
        assert resp.status_code == 422

    def test_wrong_body_shape_is_422(self, client):
        resp = client.post("/analytics/rep-stats", json={"records": "nope"})
        assert resp.status_code == 422


class TestTerritoryRoutes:
    def _body(self, **extra) -> dict:
        body = {"records": _records(), "catalog": _catalog(), "now": NOW}
        body.update(extra)
        return body

    def test_territory_metrics(self, client):
        resp = client.post("/territories/kgn/metrics", json=self._body())
        assert resp.status_code == 200
        body = resp.json()
        assert body["total_leads"] == 2
        assert body["conversion_rate"] == 50.0
        assert body["avg_deal_size"]["kind"] == "unmeasured"

    def test_unknown_territory_is_404(self, client):
        resp = client.post("/territories/nope/metrics", json=self._body())
        assert resp.status_code == 404

    def test_trends(self, client):
        resp = client.post("/territories/kgn/trends?days=3", json=self._body())
        points = resp.json()
        assert [p["date"] for p in points] == ["2024-05-30", "2024-05-31", "2024-06-01"]
        assert points[0]["leads"] == 2

    def test_trends_unknown_is_404(self, client):
        resp = client.post("/territories/nope/trends", json=self._body())
        assert resp.status_code == 404

    def test_country_metrics(self, client):
        resp = client.post("/countries/JM/metrics", json=self._body())
        body = resp.json()
        assert body["total_leads"] == 3
        assert body["top_performing_territories"][0]["territory_id"] == "kgn"

    def test_unknown_country_is_404(self, client):
        resp = client.post("/countries/XX/metrics", json=self._body())
        assert resp.status_code == 404

    def test_rep_performance(self, client):
        resp = client.post("/reps/u1/territory-performance", json=self._body())
        body = resp.json()
        assert body["total_leads"] == 2
        assert body["territories"][0]["territory_id"] == "kgn"

    def test_unknown_rep_is_404(self, client):
        resp = client.post("/reps/nope/territory-performance", json=self._body())
        assert resp.status_code == 404

    def test_compare(self, client):
        resp = client.post("/territories/compare", json=self._body(territory_ids=["sta", "kgn"], metric="leads"))
        assert [m["territory_id"] for m in resp.json()] == ["kgn", "sta"]

    def test_compare_unknown_metric_is_422(self, client):
        resp = client.post("/territories/compare", json=self._body(territory_ids=["kgn"], metric="revenue"))
        assert resp.status_code == 422

    def test_heat_map(self, client):
        resp = client.post("/territories/heat-map", json=self._body(territory_ids=["sta", "kgn"]))
        cells = {c["territory_id"]: c for c in resp.json()}
        assert cells["kgn"]["value"] == 100.0
        assert cells["sta"]["value"] == 0.0

    def test_half_open_date_range_is_422(self, client):
        resp = client.post("/territories/kgn/metrics", json=self._body(start="2024-05-01T00:00:00Z"))
        assert resp.status_code == 422

    def test_bad_catalog_is_422(self, client):
        body = self._body(catalog={"territories": [{"id": "kgn"}]})
        resp = client.post("/territories/kgn/metrics", json=body)
        assert resp.status_code == 422


class TestSummaryBreakdowns:
    def test_decision_makers_and_rep_performance(self, client):
        records = _records() + [_row(interest=2), _row(territory="sta", signed_up=True, username="ben")]
        body = client.post("/analytics/summary", json={"records": records}).json()
        assert body["decision_makers"] == [
            {"type": "Owner Only", "count": 5, "conversions": 2, "conversion_rate": 40.0},
        ]
        assert [r["username"] for r in body["rep_performance"]] == ["amy"]

    def test_trimmed_fraction_timestamp_accepted(self, client):
        row = _row(timestamp="2024-05-30T10:00:00.12345+00:00")
        resp = client.post("/analytics/rep-stats", json={"records": [row]})
        assert resp.status_code == 200

    def test_whole_float_interest_accepted(self, client):
        resp = client.post("/analytics/rep-stats", json={"records": [_row(interest=4.0)]})
        assert resp.status_code == 200
        assert resp.json()[0]["avg_interest_level"] == 4.0


class TestLoggingSetup:
    def test_configure_logging_sets_package_level(self, monkeypatch):
        monkeypatch.setattr(settings, "log_level", "ERROR")
        package_logger = logging.getLogger("lead_insights")
        previous = package_logger.level
        try:
            configure_logging()
            assert package_logger.level == logging.ERROR
        finally:
            package_logger.setLevel(previous)

    def test_startup_applies_configured_level(self, monkeypatch):
        monkeypatch.setattr(settings, "log_level", "WARNING")
        package_logger = logging.getLogger("lead_insights")
        previous = package_logger.level
        try:
            with TestClient(app):
                assert package_logger.level == logging.WARNING
        finally:
            package_logger.setLevel(previous)
