"""Health check endpoint."""

from fastapi import APIRouter, Request

from flyby.config import settings

router = APIRouter()


@router.get("/healthz", summary="Health check")
def health_check(request: Request) -> dict[str, object]:
    """Report liveness and whether the live feed is being polled."""
    tracker = getattr(request.app.state, "tracker", None)
    return {
        "status": "ok",
        "env": settings.flyby_env,
        "polling": bool(tracker and tracker.poller.running),
    }
