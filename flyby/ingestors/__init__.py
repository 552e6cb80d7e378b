"""Provider clients and the schema normalizer."""

from .airplaneslive import AirplanesLiveIngestor
from .flightradar import FlightLookupClient
from .opensky import OpenSkyIngestor

__all__ = [
    "AirplanesLiveIngestor",
    "FlightLookupClient",
    "OpenSkyIngestor",
]
