"""
Insights Agent REST API routes.
"""
from fastapi import APIRouter, Request
from agents.insights.models.schemas import CheckResponse, HealthResponse, InsightResponse
from agents.insights.services.scheduler import ScheduledInsightsService

router = APIRouter(prefix="/api/v1/insights", tags=["insights"])


def _service(request: Request) -> ScheduledInsightsService:
    return request.app.state.insights


@router.get("/health", response_model=HealthResponse)
async def health(request: Request):
    state = _service(request).health
    return HealthResponse(
        status="ok" if state.is_healthy is not False else "degraded",
        rpc_status=state.status,
        is_healthy=state.is_healthy,
        last_health_check=state.last_health_check,
        last_block_number=state.last_block_number,
        last_gas_price=state.last_gas_price,
    )


@router.post("/check", response_model=CheckResponse)
async def run_check(request: Request):
    """Run one insight cycle now."""
    result = await _service(request).run_insight_check()
    return CheckResponse(
        success=result.success,
        text=result.text,
        posted=result.posted,
        duration_ms=result.duration_ms,
        failed_sources=result.failed_sources,
        insights=[
            InsightResponse(
                type=i.type, title=i.title, description=i.description,
                severity=i.severity, timestamp=i.timestamp,
            )
            for i in result.insights
        ],
    )


@router.get("/stats")
async def stats(request: Request):
    service = _service(request)
    last_check = None
    if service.last_result is not None:
        last = service.last_result
        last_check = {**last.model_dump(exclude={"insights"}), "insights_found": len(last.insights)}
    return {
        "cycle": service.metrics.get_stats(),
        "rpc": service.client.stats(),
        "busy": service.is_busy,
        "last_check": last_check,
    }
