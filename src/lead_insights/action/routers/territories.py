"""Territory router: territory, country and rep-by-territory rollups.

Every request carries its own catalog snapshot alongside the records, so
handlers stay stateless.  Unknown ids come back as 404.
"""

from dataclasses import asdict

from fastapi import APIRouter, HTTPException

from lead_insights.action.schemas import CompareRequest, TerritoryRequest
from lead_insights.analytics.territory_rollup import DEFAULT_TREND_DAYS, TerritoryRollupService

router = APIRouter(tags=["territories"])


def _service(req: TerritoryRequest) -> TerritoryRollupService:
    return TerritoryRollupService(req.catalog.to_catalog())


@router.post("/territories/compare")
async def compare_territories(req: CompareRequest) -> list[dict]:
    """Known territories sorted best first by the requested metric."""
    ranked = _service(req).compare_territories(
        req.lead_records(), req.territory_ids, req.reference_time(), req.metric, req.date_range(),
    )
    return [asdict(m) for m in ranked]


@router.post("/territories/heat-map")
async def territory_heat_map(req: CompareRequest) -> list[dict]:
    cells = _service(req).heat_map(
        req.lead_records(), req.territory_ids, req.reference_time(), req.metric, req.date_range(),
    )
    return [asdict(c) for c in cells]


@router.post("/territories/{territory_id}/metrics")
async def territory_metrics(territory_id: str, req: TerritoryRequest) -> dict:
    metrics = _service(req).territory_metrics(
        req.lead_records(), territory_id, req.reference_time(), req.date_range(),
    )
    if metrics is None:
        raise HTTPException(status_code=404, detail=f"Territory {territory_id} not found")
    return asdict(metrics)


@router.post("/territories/{territory_id}/trends")
async def territory_trends(territory_id: str, req: TerritoryRequest, days: int = DEFAULT_TREND_DAYS) -> list[dict]:
    service = _service(req)
    if service.catalog.get_territory(territory_id) is None:
        raise HTTPException(status_code=404, detail=f"Territory {territory_id} not found")
    points = service.territory_trends(req.lead_records(), territory_id, req.reference_time(), days)
    return [asdict(p) for p in points]


@router.post("/countries/{country_code}/metrics")
async def country_metrics(country_code: str, req: TerritoryRequest) -> dict:
    metrics = _service(req).country_metrics(
        req.lead_records(), country_code, req.reference_time(), req.date_range(),
    )
    if metrics is None:
        raise HTTPException(status_code=404, detail=f"Country {country_code} not found")
    return asdict(metrics)


@router.post("/reps/{rep_id}/territory-performance")
async def rep_territory_performance(rep_id: str, req: TerritoryRequest) -> dict:
    performance = _service(req).rep_territory_performance(req.lead_records(), rep_id, req.date_range())
    if performance is None:
        raise HTTPException(status_code=404, detail=f"Rep {rep_id} not found")
    return asdict(performance)
