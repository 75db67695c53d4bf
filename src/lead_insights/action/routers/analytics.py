"""Analytics router: dashboard rollups over a posted record snapshot."""

from dataclasses import asdict

from fastapi import APIRouter

from lead_insights.action.schemas import RecordsRequest
from lead_insights.analytics.advanced_analytics import calculate_advanced_analytics
from lead_insights.analytics.market_intelligence import analyze_common_needs, analyze_decision_maker_breakdown
from lead_insights.analytics.rep_stats import calculate_rep_stats, qualified_rep_performance, signup_leaderboard
from lead_insights.analytics.submission_stats import (
    calculate_conversion_rate,
    calculate_submission_stats,
    interest_distribution,
)

router = APIRouter(prefix="/analytics", tags=["analytics"])


@router.post("/advanced")
async def advanced_analytics(req: RecordsRequest) -> dict:
    """Velocity, pipeline, benchmarks, market intel, predictions and summary."""
    return asdict(calculate_advanced_analytics(req.lead_records(), req.reference_time()))


@router.post("/rep-stats")
async def rep_stats(req: RecordsRequest) -> list[dict]:
    return [asdict(s) for s in calculate_rep_stats(req.lead_records())]


@router.post("/leaderboard")
async def leaderboard(req: RecordsRequest) -> list[dict]:
    """Reps ranked by sign-ups, then conversion rate."""
    stats = calculate_rep_stats(req.lead_records())
    return [asdict(s) for s in signup_leaderboard(stats)]


@router.post("/summary")
async def summary(req: RecordsRequest) -> dict:
    records = req.lead_records()
    return {
        "stats": asdict(calculate_submission_stats(records)),
        "conversion_rate": calculate_conversion_rate(records),
        "interest_distribution": interest_distribution(records),
        "common_needs": [asdict(n) for n in analyze_common_needs(records)],
        "decision_makers": [asdict(b) for b in analyze_decision_maker_breakdown(records)],
        "rep_performance": [asdict(s) for s in qualified_rep_performance(records)],
    }
