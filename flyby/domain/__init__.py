"""Domain helpers: geometry and airline designators."""

from .airlines import airline_name, iata_to_icao_callsign
from .geo import StabilizedLocation, bearing_deg, bounding_box, distance_km, stabilize

__all__ = [
    "StabilizedLocation",
    "airline_name",
    "bearing_deg",
    "bounding_box",
    "distance_km",
    "iata_to_icao_callsign",
    "stabilize",
]
