"""Tests for the territory catalog snapshot."""

from __future__ import annotations

import pytest

from lead_insights.analytics.territory_catalog import (
    Country,
    SalesRep,
    Territory,
    TerritoryAssignment,
    TerritoryCatalog,
)


def _catalog() -> TerritoryCatalog:
    return TerritoryCatalog.build(
        countries=[Country("JM", "Jamaica", "🇯🇲", "JMD")],
        territories=[
            Territory("kgn", "Kingston", "JM", type="parish"),
            Territory("sta", "St. Andrew", "JM", type="parish"),
            Territory("old", "Retired", "JM", is_active=False),
        ],
        reps=[SalesRep("u1", "amy"), SalesRep("u2", "ben")],
        assignments=[
            TerritoryAssignment("u1", "kgn", is_primary=True),
            TerritoryAssignment("u2", "kgn"),
            TerritoryAssignment("u2", "sta", is_active=False),
        ],
    )


class TestLookups:
    def test_unknown_ids(self):
        catalog = _catalog()
        assert catalog.get_territory("nope") is None
        assert catalog.get_country("XX") is None
        assert catalog.get_rep("nope") is None
        assert catalog.territories_for_country("XX") == []
        assert catalog.assignments_for_rep("nope") == []

    def test_territories_for_country_active_only(self):
        ids = {t.id for t in _catalog().territories_for_country("JM")}
        assert ids == {"kgn", "sta"}

    def test_territories_for_country_including_inactive(self):
        ids = {t.id for t in _catalog().territories_for_country("JM", active_only=False)}
        assert "old" in ids

    def test_inactive_assignments_excluded(self):
        assert _catalog().assignments_for_rep("u2") == [TerritoryAssignment("u2", "kgn")]

    def test_reps_for_territories(self):
        catalog = _catalog()
        assert catalog.reps_for_territories({"kgn"}) == {"u1", "u2"}
        assert catalog.reps_for_territories({"sta"}) == set()


class TestFromDict:
    def test_camel_case_payload(self):
        catalog = TerritoryCatalog.from_dict({
            "countries": [{"code": "TT", "name": "Trinidad and Tobago", "currencyCode": "TTD"}],
            "territories": [{"id": "pos", "name": "Port of Spain", "countryCode": "TT", "parentId": None}],
            "reps": [{"id": "u9", "username": "cal"}],
            "assignments": [{"userId": "u9", "territoryId": "pos", "isPrimary": True}],
        })
        assert catalog.get_country("TT").currency_code == "TTD"
        assert catalog.get_territory("pos").country_code == "TT"
        assert catalog.assignments_for_rep("u9")[0].is_primary is True

    def test_snake_case_payload(self):
        catalog = TerritoryCatalog.from_dict({
            "territories": [{"id": "a", "name": "A", "country_code": "JM", "is_active": False}],
        })
        assert catalog.get_territory("a").is_active is False

    def test_missing_field_is_value_error(self):
        with pytest.raises(ValueError, match="countryCode"):
            TerritoryCatalog.from_dict({"territories": [{"id": "a"}]})

    def test_empty_payload(self):
        catalog = TerritoryCatalog.from_dict({})
        assert catalog.territories == {}


class TestBooleanFields:
    def test_string_false_marks_territory_inactive(self):
        catalog = TerritoryCatalog.from_dict({
            "territories": [
                {"id": "t", "name": "T", "countryCode": "JM", "isActive": "false"},
                {"id": "u", "name": "U", "countryCode": "JM", "isActive": "true"},
            ],
        })
        assert catalog.get_territory("t").is_active is False
        assert [t.id for t in catalog.territories_for_country("JM")] == ["u"]

    def test_string_flags_on_assignments(self):
        catalog = TerritoryCatalog.from_dict({
            "assignments": [{"userId": "u1", "territoryId": "t", "isActive": "false", "isPrimary": "true"}],
        })
        assert catalog.assignments_for_rep("u1") == []
        assert catalog.assignments[0].is_primary is True

    def test_unrecognised_flag_is_value_error(self):
        with pytest.raises(ValueError, match="is_active"):
            TerritoryCatalog.from_dict({
                "territories": [{"id": "t", "countryCode": "JM", "isActive": "nope"}],
            })
