"""Pydantic models for the FlyBy tracker."""

from .auth import BearerToken
from .flight import (
    AircraftRef,
    AirportDeparture,
    AirportRef,
    FlightDetails,
    FlightSnapshot,
    FlightState,
    FlightTrack,
    Position,
    TrackPoint,
)
from .notification import NotificationRecord, ProximityAlert

__all__ = [
    "AircraftRef",
    "AirportDeparture",
    "AirportRef",
    "BearerToken",
    "FlightDetails",
    "FlightSnapshot",
    "FlightState",
    "FlightTrack",
    "NotificationRecord",
    "Position",
    "ProximityAlert",
    "TrackPoint",
]
