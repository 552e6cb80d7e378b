"""OpenSky Network REST client: positional state vectors and historical tracks."""

from __future__ import annotations

import logging
import time
from typing import Any, Callable, Optional

import httpx

from flyby.config import settings
from flyby.domain.geo import bounding_box
from flyby.ingestors.normalize import normalize_state_vector
from flyby.models.flight import FlightState, FlightTrack, TrackPoint
from flyby.services.token_cache import TokenCache

logger = logging.getLogger("flyby.ingestors.opensky")

STALE_CONTACT_S = 120


def _track_point(row: Any) -> Optional[TrackPoint]:
    if not isinstance(row, (list, tuple)) or len(row) < 3:
        return None
    if row[1] is None or row[2] is None:
        return None
    try:
        return TrackPoint(
            time=float(row[0]) if row[0] is not None else None,
            lat=float(row[1]),
            lon=float(row[2]),
            baro_altitude_m=float(row[3]) if len(row) > 3 and row[3] is not None else None,
            true_track_deg=float(row[4]) if len(row) > 4 and row[4] is not None else None,
            on_ground=len(row) > 5 and row[5] is True,
        )
    except (TypeError, ValueError):
        logger.debug("Skipping malformed track sample: %s", row)
        return None


class OpenSkyIngestor:
    """Fetch live state vectors in a bounding box and per-aircraft track history."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        timeout: float | None = None,
        default_radius_nm: float | None = None,
        token_cache: TokenCache | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.base_url = (base_url or settings.opensky_base_url).rstrip("/")
        self.timeout = timeout or settings.opensky_timeout
        self.default_radius_nm = default_radius_nm or settings.search_radius_nm
        self.token_cache = token_cache or TokenCache(transport=transport)
        self.transport = transport
        self._clock = clock

    async def _get_json(self, path: str, params: dict[str, Any]) -> Any:
        headers: dict[str, str] = {}
        token = await self.token_cache.get_token()
        if token:
            headers["Authorization"] = f"Bearer {token}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(
                    f"{self.base_url}{path}", params=params, headers=headers
                )
        except httpx.TimeoutException as exc:
            logger.warning("OpenSky request timed out: %s", exc)
            return None
        except httpx.RequestError as exc:
            logger.warning("OpenSky request failed: %s", exc)
            return None

        if response.status_code == 401 and token:
            # Token revoked server-side; drop it so the next call refreshes
            self.token_cache.invalidate()
        if response.status_code == 429:
            logger.warning("OpenSky rate limit encountered: %s", response.text)
            return None
        try:
            response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.warning("OpenSky returned HTTP %s: %s", exc.response.status_code, exc)
            return None

        try:
            return response.json()
        except ValueError as exc:
            logger.warning("Failed to parse OpenSky JSON response: %s", exc)
            return None

    async def get_flights(
        self, lat: float, lon: float, radius_nm: float | None = None
    ) -> list[FlightState]:
        box = bounding_box(lat, lon, radius_nm or self.default_radius_nm)
        payload = await self._get_json(
            "/states/all",
            {
                "lamin": box.min_lat,
                "lomin": box.min_lon,
                "lamax": box.max_lat,
                "lomax": box.max_lon,
            },
        )
        raw_states = payload.get("states") if isinstance(payload, dict) else None
        if not raw_states:
            return []

        now = self._clock()
        flights: list[FlightState] = []
        seen_ids: set[str] = set()
        for entry in raw_states:
            flight = normalize_state_vector(entry, now=now)
            if flight is None or flight.id in seen_ids:
                continue
            if now - flight.last_contact >= STALE_CONTACT_S:
                continue
            seen_ids.add(flight.id)
            flights.append(flight)

        logger.debug("Ingested %s OpenSky state vectors", len(flights))
        return flights

    async def get_flight_track(self, icao24: str) -> Optional[FlightTrack]:
        payload = await self._get_json(
            "/tracks/all", {"icao24": icao24.lower(), "time": 0}
        )
        if not isinstance(payload, dict):
            return None

        points = tuple(
            point
            for point in (_track_point(row) for row in payload.get("path") or [])
            if point is not None
        )
        callsign = payload.get("callsign")
        if isinstance(callsign, str):
            callsign = callsign.strip() or None
        else:
            callsign = None
        return FlightTrack(
            icao24=str(payload.get("icao24") or icao24).lower(),
            start_time=payload.get("startTime"),
            end_time=payload.get("endTime"),
            callsign=callsign,
            path=points,
        )


__all__ = ["OpenSkyIngestor", "STALE_CONTACT_S"]
