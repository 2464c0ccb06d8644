"""
Chain Insights Agent — FastAPI application (port 8002)

Polls the BNB Smart Chain RPC endpoint, classifies notable activity (whale
transfers, contract deployments, token activity spikes) and publishes
persona-styled posts about it.
"""
from contextlib import asynccontextmanager
from fastapi import FastAPI
from agents.insights.routes.api import router
from agents.insights.services.factory import build_service
from shared.utils.logging import setup_logging
import structlog

logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI):
    setup_logging()
    logger.info("insights_agent_starting", interfaces=["api"])
    service = build_service()
    app.state.insights = service
    await service.initialize()

    yield

    await service.stop()
    logger.info("insights_agent_stopped")


app = FastAPI(
    title="Chain Insights Agent",
    description="Monitors BNB Smart Chain for whale transfers, new contracts, and token activity, and turns them into short social posts.",
    version="1.0.0",
    lifespan=lifespan,
)

app.include_router(router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("agents.insights.main:app", host="0.0.0.0", port=8002, reload=True)
