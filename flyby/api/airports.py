"""Airport departure boards."""

from __future__ import annotations

from fastapi import APIRouter, Depends, Path

from flyby.api.flights import get_tracker
from flyby.models.flight import AirportDeparture
from flyby.services.tracker import FlightTracker

router = APIRouter(prefix="/api/v1", tags=["airports"])


@router.get(
    "/airports/{icao}/departures",
    response_model=list[AirportDeparture],
    summary="Next departures from an airport",
)
async def airport_departures(
    icao: str = Path(..., min_length=3, max_length=4, pattern="^[A-Za-z0-9]+$"),
    tracker: FlightTracker = Depends(get_tracker),
) -> list[AirportDeparture]:
    """An empty list when the lookup provider is not configured or has nothing."""
    return await tracker.lookup_client.airport_departures(icao)
