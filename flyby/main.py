from __future__ import annotations

import contextlib
import logging
import time

from fastapi import FastAPI, Request

from flyby.api import api_router
from flyby.config import settings
from flyby.services.tracker import FlightTracker

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s - %(message)s",
)
logger = logging.getLogger("flyby")


@contextlib.asynccontextmanager
async def lifespan(app: FastAPI):
    """Build the tracker on startup and tear down its timers on shutdown."""

    tracker = FlightTracker()
    app.state.tracker = tracker
    await tracker.start()
    if settings.home_location is None:
        logger.info("No home location configured; waiting for viewer location")
    else:
        logger.info("Tracker started at home location %s", settings.home_location)

    try:
        yield
    finally:
        await tracker.close()


app = FastAPI(title="FlyBy", lifespan=lifespan)


@app.middleware("http")
async def log_requests(request: Request, call_next):
    """Log basic request information for observability."""

    start_time = time.time()
    response = await call_next(request)
    duration_ms = (time.time() - start_time) * 1000
    logger.info(
        "HTTP %s %s -> %s (%.2f ms)",
        request.method,
        request.url.path,
        response.status_code,
        duration_ms,
    )
    return response


app.include_router(api_router)


@app.get("/", summary="Root")
def read_root() -> dict[str, str]:
    """Basic root endpoint for quick verification."""

    return {"message": "FlyBy tracker is running"}
