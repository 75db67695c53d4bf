"""FastAPI application exposing the analytics engine over HTTP."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from config.settings import settings

logger = logging.getLogger(__name__)


def configure_logging() -> None:
    """Apply the configured level; adds a root handler only if none exists."""
    logging.basicConfig(level=settings.log_level)
    logging.getLogger("lead_insights").setLevel(settings.log_level)


@asynccontextmanager
async def _lifespan(app: FastAPI):
    configure_logging()
    yield


app = FastAPI(title="Lead Insights API", version="1.0.0", lifespan=_lifespan)

# ---------------------------------------------------------------------------
# Include modular routers
# ---------------------------------------------------------------------------
from lead_insights.action.routers.analytics import router as analytics_router  # noqa: E402
from lead_insights.action.routers.territories import router as territories_router  # noqa: E402

app.include_router(analytics_router)
app.include_router(territories_router)


@app.exception_handler(ValueError)
async def _invalid_input_handler(request: Request, exc: ValueError):
    """Malformed records, catalogs or comparison metrics are client errors."""
    logger.info("Rejected %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(status_code=422, content={"detail": str(exc), "status": "failed"})


@app.exception_handler(Exception)
async def _global_error_handler(request: Request, exc: Exception):
    """Catch-all: ensure every unhandled error returns JSON, not raw HTML."""
    logger.exception("Unhandled error on %s %s: %s", request.method, request.url.path, exc)
    return JSONResponse(
        status_code=500,
        content={
            "detail": f"Server error: {exc}",
            "error": str(exc),
            "status": "failed",
        },
    )


@app.get("/health")
async def health() -> dict:
    return {"status": "ok", "version": "1.0.0"}
