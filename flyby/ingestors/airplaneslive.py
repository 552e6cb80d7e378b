"""Live aircraft feed from Airplanes.live (keyed-object readsb schema)."""

from __future__ import annotations

import logging
import re
from typing import Any, Optional

import httpx

from flyby.config import settings
from flyby.ingestors.normalize import details_from_state, normalize_aircraft
from flyby.models.flight import FlightDetails, FlightState

logger = logging.getLogger("flyby.ingestors.airplaneslive")

_HEX_RE = re.compile(r"^[0-9a-fA-F]{6}$")


class AirplanesLiveIngestor:
    """Fetch nearby aircraft, or single aircraft by identifier, from Airplanes.live."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        default_radius_nm: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.airplaneslive_base_url).rstrip("/")
        self.timeout = timeout or settings.airplaneslive_timeout
        self.default_radius_nm = default_radius_nm or settings.search_radius_nm
        self.transport = transport

    async def _get_aircraft(self, path: str) -> list[Any] | None:
        """Return the raw ``ac`` array for ``path`` or ``None`` on any failure."""

        url = f"{self.base_url}{path}"
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(url)
        except httpx.TimeoutException as exc:
            logger.warning("Airplanes.live request timed out: %s", exc)
            return None
        except httpx.RequestError as exc:
            logger.warning("Airplanes.live request failed: %s", exc)
            return None

        if response.status_code == 429:
            logger.warning("Airplanes.live rate limit encountered: %s", response.text)
            return None
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Airplanes.live returned HTTP %s: %s", exc.response.status_code, exc
            )
            return None

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Failed to parse Airplanes.live JSON response: %s", exc)
            return None

        aircraft = payload.get("ac") if isinstance(payload, dict) else None
        if not isinstance(aircraft, list):
            return []
        return aircraft

    def _normalize_all(self, aircraft: list[Any]) -> list[FlightState]:
        flights: list[FlightState] = []
        seen_ids: set[str] = set()
        for entry in aircraft:
            flight = normalize_aircraft(entry)
            if flight is None or flight.id in seen_ids:
                continue
            seen_ids.add(flight.id)
            flights.append(flight)
        return flights

    async def get_flights(
        self, lat: float, lon: float, radius_nm: float | None = None
    ) -> list[FlightState]:
        radius = radius_nm or self.default_radius_nm
        aircraft = await self._get_aircraft(f"/point/{lat:.4f}/{lon:.4f}/{radius:g}")
        if not aircraft:
            return []

        flights = self._normalize_all(aircraft)
        logger.debug("Ingested %s aircraft around %.4f,%.4f", len(flights), lat, lon)
        return flights

    async def get_by_icao(self, icao24: str) -> Optional[FlightState]:
        aircraft = await self._get_aircraft(f"/icao/{icao24.lower()}")
        flights = self._normalize_all(aircraft or [])
        return flights[0] if flights else None

    async def get_by_callsign(self, callsign: str) -> list[FlightState]:
        aircraft = await self._get_aircraft(f"/callsign/{callsign.strip().upper()}")
        return self._normalize_all(aircraft or [])

    async def get_by_registration(self, registration: str) -> Optional[FlightState]:
        aircraft = await self._get_aircraft(f"/reg/{registration.strip().upper()}")
        flights = self._normalize_all(aircraft or [])
        return flights[0] if flights else None

    async def find(self, query: str) -> Optional[FlightDetails]:
        """Search the live feed by hex code, callsign or registration.

        Used when the secondary lookup provider has no match (or no API key).
        """

        query = query.strip()
        if not query:
            return None

        flight: Optional[FlightState] = None
        if _HEX_RE.match(query):
            flight = await self.get_by_icao(query)
        if flight is None:
            matches = await self.get_by_callsign(query)
            flight = matches[0] if matches else None
        if flight is None and "-" in query:
            flight = await self.get_by_registration(query)

        if flight is None:
            logger.info("No live aircraft found for %s", query)
            return None
        logger.info("Found live aircraft %s for %s", flight.id, query)
        return details_from_state(flight)


__all__ = ["AirplanesLiveIngestor"]
