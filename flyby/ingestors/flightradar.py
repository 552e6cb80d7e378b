"""Flightradar24 lookups: live flight positions with a flight-summary fallback."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone
import logging
from typing import Any, Callable, Literal, Optional

import httpx

from flyby.config import settings
from flyby.domain.airlines import iata_to_icao_callsign
from flyby.ingestors.normalize import normalize_flight_summary, normalize_live_lookup
from flyby.models.flight import AirportDeparture, DepartureStatus, FlightDetails

logger = logging.getLogger("flyby.ingestors.flightradar")

SUMMARY_LOOKBACK = timedelta(hours=24)
SUMMARY_LOOKAHEAD = timedelta(hours=12)
SUMMARY_LIMIT = 10

DEPARTURES_LOOKBACK = timedelta(minutes=15)
DEPARTURES_LOOKAHEAD = timedelta(hours=12)
DEPARTURES_LIMIT = 100
DEPARTURES_SHOWN = 5

QueryParam = Literal["flights", "callsigns"]


def _format_time(value: datetime) -> str:
    return value.astimezone(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S")


def select_summary(records: list[dict[str, Any]]) -> Optional[dict[str, Any]]:
    """Pick the most relevant summary: airborne, then scheduled, then latest landed."""

    if not records:
        return None
    for record in records:
        if record.get("datetime_takeoff") and not record.get("flight_ended"):
            return record
    for record in records:
        if not record.get("datetime_takeoff") and not record.get("flight_ended"):
            return record
    return records[0]


def order_departures(records: list[dict[str, Any]], icao: str) -> list[dict[str, Any]]:
    """Keep flights leaving ``icao`` that have not landed yet.

    Flights still on the ground come first, earliest scheduled departure
    first; flights already airborne follow, most recent takeoff first.
    """

    departures = [
        record
        for record in records
        if record.get("orig_icao") == icao
        and not record.get("flight_ended")
        and not record.get("datetime_landed")
    ]
    waiting = sorted(
        (r for r in departures if not r.get("datetime_takeoff")),
        key=lambda r: str(r.get("std") or ""),
    )
    airborne = sorted(
        (r for r in departures if r.get("datetime_takeoff")),
        key=lambda r: str(r["datetime_takeoff"]),
        reverse=True,
    )
    return waiting + airborne


def _departure_status(record: dict[str, Any]) -> DepartureStatus:
    if record.get("datetime_takeoff"):
        return "departed"
    if record.get("datetime_out"):
        return "taxiing"
    return "scheduled"


def _departure(record: dict[str, Any]) -> AirportDeparture:
    callsign = record.get("callsign") or None
    return AirportDeparture(
        flight=record.get("flight") or callsign or "Unknown",
        callsign=callsign,
        destination_icao=record.get("dest_icao") or None,
        aircraft_type=record.get("type") or "Unknown",
        status=_departure_status(record),
        scheduled_departure=record.get("std") or None,
        departed_at=record.get("datetime_takeoff") or None,
    )


class FlightLookupClient:
    """Resolve a user-entered flight number or callsign to flight details."""

    def __init__(
        self,
        *,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], datetime] = lambda: datetime.now(tz=timezone.utc),
    ) -> None:
        self.base_url = (base_url or settings.fr24_base_url).rstrip("/")
        self.api_key = api_key if api_key is not None else settings.fr24_api_key
        self.timeout = timeout or settings.fr24_timeout
        self.transport = transport
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return bool(self.api_key)

    async def _get_records(self, path: str, params: dict[str, Any]) -> list[dict[str, Any]]:
        headers = {
            "Accept": "application/json",
            "Accept-Version": "v1",
            "Authorization": f"Bearer {self.api_key}",
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.get(
                    f"{self.base_url}{path}", params=params, headers=headers
                )
                response.raise_for_status()
        except httpx.TimeoutException as exc:
            logger.warning("Flightradar24 request timed out: %s", exc)
            return []
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "Flightradar24 returned HTTP %s for %s", exc.response.status_code, params
            )
            return []
        except httpx.RequestError as exc:
            logger.warning("Flightradar24 request failed: %s", exc)
            return []

        try:
            payload = response.json()
        except ValueError as exc:
            logger.warning("Failed to parse Flightradar24 JSON response: %s", exc)
            return []

        data = payload.get("data") if isinstance(payload, dict) else None
        if not isinstance(data, list):
            return []
        return [record for record in data if isinstance(record, dict)]

    async def _live_position(self, value: str, param: QueryParam) -> Optional[dict[str, Any]]:
        records = await self._get_records(
            "/live/flight-positions/full", {param: value}
        )
        return records[0] if records else None

    async def _summary(self, flight_number: str) -> Optional[dict[str, Any]]:
        now = self._clock()
        records = await self._get_records(
            "/flight-summary/full",
            {
                "flights": flight_number,
                "flight_datetime_from": _format_time(now - SUMMARY_LOOKBACK),
                "flight_datetime_to": _format_time(now + SUMMARY_LOOKAHEAD),
                "sort": "desc",
                "limit": SUMMARY_LIMIT,
            },
        )
        return select_summary(records)

    async def lookup(self, query: str) -> Optional[FlightDetails]:
        """Run the fallback chain for ``query``; ``None`` means no match."""

        query = query.strip().upper()
        if not self.enabled or not query:
            if not self.enabled:
                logger.info("Flightradar24 API key not configured; lookup disabled")
            return None

        converted = iata_to_icao_callsign(query)

        # Flight number first: codeshares like AA4379 may fly as RPA4379
        record = await self._live_position(query, "flights")
        if record is None and converted:
            logger.debug("Trying converted ICAO callsign %s for %s", converted, query)
            record = await self._live_position(converted, "callsigns")
        if record is None and query != converted:
            record = await self._live_position(query, "callsigns")

        if record is not None:
            logger.info("Found live flight for %s", query)
            return normalize_live_lookup(record)

        logger.debug("No live position for %s; checking flight summaries", query)
        summary = await self._summary(query)
        if summary is None and converted:
            summary = await self._summary(converted)
        if summary is None:
            logger.info("No flight found for %s", query)
            return None

        details = normalize_flight_summary(summary)
        logger.info("Found %s flight summary for %s", details.status, query)
        return details

    async def airport_departures(self, icao: str) -> list[AirportDeparture]:
        """Upcoming and recent departures from the airport ``icao``, at most five.

        Flight summaries only cover flights the provider has already seen, so
        the window looks back a little to include flights taxiing out.
        """

        icao = icao.strip().upper()
        if not self.enabled or not icao:
            return []

        now = self._clock()
        records = await self._get_records(
            "/flight-summary/light",
            {
                "airports": icao,
                "flight_datetime_from": _format_time(now - DEPARTURES_LOOKBACK),
                "flight_datetime_to": _format_time(now + DEPARTURES_LOOKAHEAD),
                "limit": DEPARTURES_LIMIT,
            },
        )
        departures = order_departures(records, icao)
        logger.debug("Found %s departures from %s", len(departures), icao)
        return [_departure(record) for record in departures[:DEPARTURES_SHOWN]]


__all__ = ["FlightLookupClient", "order_departures", "select_summary"]
