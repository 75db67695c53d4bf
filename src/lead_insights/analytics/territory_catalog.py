"""Territory catalog snapshot — countries, territories, reps and assignments.

The catalog itself lives outside this engine.  Callers fetch it and hand a
``TerritoryCatalog`` to the rollup service.  Every lookup tolerates unknown
ids by returning ``None`` or an empty list.
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field

from lead_insights.analytics.records import coerce_bool


@dataclass(frozen=True)
class Country:
    code: str  # ISO 3166-1 alpha-2
    name: str
    flag_emoji: str = ""
    currency_code: str = ""


@dataclass(frozen=True)
class Territory:
    id: str
    name: str
    country_code: str
    type: str = "district"  # parish / district / area / region / island
    parent_id: str | None = None
    is_active: bool = True


@dataclass(frozen=True)
class SalesRep:
    id: str
    username: str


@dataclass(frozen=True)
class TerritoryAssignment:
    user_id: str
    territory_id: str
    is_active: bool = True
    is_primary: bool = False


@dataclass
class TerritoryCatalog:
    """Indexed, read-only view over the external territory catalog."""
    countries: dict[str, Country] = field(default_factory=dict)
    territories: dict[str, Territory] = field(default_factory=dict)
    reps: dict[str, SalesRep] = field(default_factory=dict)
    assignments: list[TerritoryAssignment] = field(default_factory=list)

    @classmethod
    def build(
        cls,
        countries: list[Country] | None = None,
        territories: list[Territory] | None = None,
        reps: list[SalesRep] | None = None,
        assignments: list[TerritoryAssignment] | None = None,
    ) -> TerritoryCatalog:
        return cls(
            countries={c.code: c for c in countries or []},
            territories={t.id: t for t in territories or []},
            reps={r.id: r for r in reps or []},
            assignments=list(assignments or []),
        )

    @classmethod
    def from_dict(cls, data: Mapping) -> TerritoryCatalog:
        """Load a catalog from a plain payload.

        Expected keys: ``countries``, ``territories``, ``reps``,
        ``assignments``; each a list of dicts using snake_case or camelCase
        field names.  A row missing a required field raises ``ValueError``.
        """
        try:
            return cls._parse(data)
        except KeyError as exc:
            raise ValueError(f"catalog entry is missing required field {exc}") from None

    @classmethod
    def _parse(cls, data: Mapping) -> TerritoryCatalog:
        def get(row: Mapping, snake: str, camel: str, default=None):
            if snake in row:
                return row[snake]
            return row.get(camel, default)

        countries = [
            Country(
                code=str(row["code"]),
                name=str(row.get("name", row["code"])),
                flag_emoji=str(get(row, "flag_emoji", "flagEmoji", "") or ""),
                currency_code=str(get(row, "currency_code", "currencyCode", "") or ""),
            )
            for row in data.get("countries", [])
        ]
        territories = [
            Territory(
                id=str(row["id"]),
                name=str(row.get("name", row["id"])),
                country_code=str(row["country_code"] if "country_code" in row else row["countryCode"]),
                type=str(row.get("type", "district")),
                parent_id=get(row, "parent_id", "parentId"),
                is_active=coerce_bool(get(row, "is_active", "isActive", True), "is_active"),
            )
            for row in data.get("territories", [])
        ]
        reps = [
            SalesRep(id=str(row["id"]), username=str(row["username"]))
            for row in data.get("reps", [])
        ]
        assignments = [
            TerritoryAssignment(
                user_id=str(row["user_id"] if "user_id" in row else row["userId"]),
                territory_id=str(row["territory_id"] if "territory_id" in row else row["territoryId"]),
                is_active=coerce_bool(get(row, "is_active", "isActive", True), "is_active"),
                is_primary=coerce_bool(get(row, "is_primary", "isPrimary", False), "is_primary"),
            )
            for row in data.get("assignments", [])
        ]
        return cls.build(countries, territories, reps, assignments)

    # -- lookups -----------------------------------------------------------

    def get_territory(self, territory_id: str) -> Territory | None:
        return self.territories.get(territory_id)

    def get_country(self, country_code: str) -> Country | None:
        return self.countries.get(country_code)

    def get_rep(self, rep_id: str) -> SalesRep | None:
        return self.reps.get(rep_id)

    def territories_for_country(self, country_code: str, active_only: bool = True) -> list[Territory]:
        return [
            t for t in self.territories.values()
            if t.country_code == country_code and (t.is_active or not active_only)
        ]

    def assignments_for_rep(self, rep_id: str) -> list[TerritoryAssignment]:
        return [a for a in self.assignments if a.user_id == rep_id and a.is_active]

    def reps_for_territories(self, territory_ids: set[str]) -> set[str]:
        """Distinct user ids with an active assignment in any of the territories."""
        return {a.user_id for a in self.assignments if a.is_active and a.territory_id in territory_ids}
