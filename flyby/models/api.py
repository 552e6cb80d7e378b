"""Request and response bodies for the map-facing HTTP API."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field

from .flight import FlightDetails, FlightState, TrackPoint


class LocationUpdate(BaseModel):
    """Viewer location reported by the map client."""

    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class LocationUpdateResponse(BaseModel):
    restarted: bool = Field(..., description="Whether polling restarted for a new area")
    poll_center: Optional[tuple[float, float]] = None


class RecenterRequest(BaseModel):
    """Move the polling area; omit both fields to follow the viewer again."""

    latitude: Optional[float] = Field(default=None, ge=-90, le=90)
    longitude: Optional[float] = Field(default=None, ge=-180, le=180)


class FlightListResponse(BaseModel):
    count: int
    flights: list[FlightState]


class ClosestFlightResponse(BaseModel):
    flight: FlightState
    distance_km: float


class SelectionRequest(BaseModel):
    flight_id: str = Field(..., min_length=1)


class SelectionResponse(BaseModel):
    flight: Optional[FlightState] = None
    details: Optional[FlightDetails] = None
    path: Optional[list[TrackPoint]] = Field(
        default=None, description="Historical track ending at the live position"
    )


class SearchRequest(BaseModel):
    query: str = Field(..., min_length=1, description="Flight number or callsign")


__all__ = [
    "ClosestFlightResponse",
    "FlightListResponse",
    "LocationUpdate",
    "LocationUpdateResponse",
    "RecenterRequest",
    "SearchRequest",
    "SelectionRequest",
    "SelectionResponse",
]
