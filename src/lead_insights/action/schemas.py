"""Request bodies shared by the routers, and their conversion to engine inputs."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel

from lead_insights.analytics.records import LeadRecord, load_records
from lead_insights.analytics.territory_catalog import TerritoryCatalog


class RecordsRequest(BaseModel):
    records: list[dict] = []
    now: Optional[datetime] = None

    def lead_records(self) -> list[LeadRecord]:
        return load_records(self.records)

    def reference_time(self) -> datetime:
        return self.now or datetime.now(timezone.utc)


class CatalogPayload(BaseModel):
    countries: list[dict] = []
    territories: list[dict] = []
    reps: list[dict] = []
    assignments: list[dict] = []

    def to_catalog(self) -> TerritoryCatalog:
        return TerritoryCatalog.from_dict(self.model_dump())


class TerritoryRequest(RecordsRequest):
    catalog: CatalogPayload = CatalogPayload()
    start: Optional[datetime] = None
    end: Optional[datetime] = None

    def date_range(self) -> Optional[tuple[datetime, datetime]]:
        if self.start is None and self.end is None:
            return None
        if self.start is None or self.end is None:
            raise ValueError("start and end must be given together")
        return (self.start, self.end)


class CompareRequest(TerritoryRequest):
    territory_ids: list[str] = []
    metric: str = "conversionRate"
