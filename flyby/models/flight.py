"""Canonical flight-state models shared by every provider."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Iterator, Literal, Optional

from pydantic import BaseModel, ConfigDict, Field

FlightSource = Literal["airplaneslive", "opensky", "lookup"]
LookupStatus = Literal["live", "landed", "scheduled", "unknown"]


class Position(BaseModel):
    """A point on the earth's surface in decimal degrees."""

    lat: float = Field(..., description="Latitude in decimal degrees")
    lon: float = Field(..., description="Longitude in decimal degrees")

    model_config = ConfigDict(frozen=True)


class FlightState(BaseModel):
    """Normalized, SI-unit representation of one tracked aircraft."""

    id: str = Field(..., description="Transponder code (lower-case ICAO hex) or synthetic id")
    callsign: Optional[str] = Field(default=None, description="Trimmed callsign")
    registration: Optional[str] = Field(default=None, description="Tail number")
    aircraft_type_code: Optional[str] = Field(default=None, description="ICAO type designator")
    description: Optional[str] = Field(
        default=None, description="Human-readable aircraft description"
    )
    operator: Optional[str] = Field(default=None, description="Owner or operator")
    position: Optional[Position] = Field(default=None, description="Last known position")
    baro_altitude_m: Optional[float] = Field(
        default=None, description="Barometric altitude in meters"
    )
    geo_altitude_m: Optional[float] = Field(
        default=None, description="Geometric altitude in meters"
    )
    ground_speed_mps: Optional[float] = Field(
        default=None, description="Ground speed in meters per second"
    )
    true_track_deg: Optional[float] = Field(
        default=None, description="Track over ground in degrees"
    )
    vertical_rate_mps: Optional[float] = Field(
        default=None, description="Climb (+) or descent (-) rate in meters per second"
    )
    on_ground: bool = Field(default=False, description="Whether the aircraft is on the ground")
    squawk: Optional[str] = Field(default=None, description="Transponder squawk code")
    distance_km: Optional[float] = Field(
        default=None, description="Distance from the query point in kilometers"
    )
    bearing_deg: Optional[float] = Field(
        default=None, description="Direction from the query point in degrees"
    )
    last_contact: float = Field(..., description="Last contact time in epoch seconds")
    category: int = Field(default=0, description="Emitter category, 7 = rotorcraft")
    is_military: bool = Field(default=False)
    is_notable: bool = Field(default=False)
    source: FlightSource = Field(default="airplaneslive", description="Producing provider")
    is_pseudo: bool = Field(
        default=False, description="Synthesized from a one-shot lookup rather than polled"
    )

    model_config = ConfigDict(extra="ignore")

    @property
    def is_positioned(self) -> bool:
        return self.position is not None


class FlightSnapshot(BaseModel):
    """Result of one completed poll tick."""

    sequence: int = Field(..., description="Tick sequence number within the generation")
    generation: int = Field(..., description="Poller generation that produced the snapshot")
    location: tuple[float, float] = Field(..., description="Stabilized query location")
    fetched_at: datetime = Field(default_factory=lambda: datetime.now(tz=timezone.utc))
    flights: list[FlightState] = Field(default_factory=list)

    def renderable(self) -> Iterator[FlightState]:
        return (flight for flight in self.flights if flight.is_positioned)

    def by_id(self, flight_id: str) -> Optional[FlightState]:
        for flight in self.flights:
            if flight.id == flight_id:
                return flight
        return None


class TrackPoint(BaseModel):
    """One sample of a historical flight path."""

    time: Optional[float] = Field(default=None, description="Sample time in epoch seconds")
    lat: float
    lon: float
    baro_altitude_m: Optional[float] = None
    true_track_deg: Optional[float] = None
    on_ground: bool = False

    model_config = ConfigDict(frozen=True)


class FlightTrack(BaseModel):
    """Historical path for one aircraft, immutable once fetched."""

    icao24: str
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    callsign: Optional[str] = None
    path: tuple[TrackPoint, ...] = ()

    model_config = ConfigDict(frozen=True)


class AirportRef(BaseModel):
    iata: Optional[str] = None
    icao: Optional[str] = None


class AircraftRef(BaseModel):
    model: Optional[str] = None
    code: Optional[str] = None


class FlightDetails(BaseModel):
    """Secondary-provider lookup result, already converted to SI units."""

    origin: Optional[AirportRef] = None
    destination: Optional[AirportRef] = None
    aircraft: Optional[AircraftRef] = None
    registration: Optional[str] = None
    eta: Optional[str] = None
    vertical_rate_mps: Optional[float] = None
    altitude_m: Optional[float] = None
    ground_speed_mps: Optional[float] = None
    track_deg: Optional[float] = None
    squawk: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    hex: Optional[str] = None
    callsign: Optional[str] = None
    flight: Optional[str] = None
    timestamp: Optional[datetime] = None
    status: LookupStatus = "unknown"
    landed_at: Optional[str] = None
    departed_at: Optional[str] = None
    scheduled_departure: Optional[str] = None
    operating_as: Optional[str] = None

    model_config = ConfigDict(extra="ignore")

    @property
    def position(self) -> Optional[Position]:
        if self.lat is None or self.lon is None:
            return None
        return Position(lat=self.lat, lon=self.lon)


DepartureStatus = Literal["scheduled", "taxiing", "departed"]


class AirportDeparture(BaseModel):
    """One row of an airport's departure board."""

    flight: str = Field(..., description="Flight number, else callsign, else 'Unknown'")
    callsign: Optional[str] = None
    destination_icao: Optional[str] = None
    aircraft_type: str = Field(default="Unknown", description="ICAO type designator")
    status: DepartureStatus = "scheduled"
    scheduled_departure: Optional[str] = Field(
        default=None, description="Scheduled time of departure (UTC, ISO 8601)"
    )
    departed_at: Optional[str] = None


__all__ = [
    "AircraftRef",
    "AirportDeparture",
    "AirportRef",
    "DepartureStatus",
    "FlightDetails",
    "FlightSnapshot",
    "FlightSource",
    "FlightState",
    "FlightTrack",
    "LookupStatus",
    "Position",
    "TrackPoint",
]
