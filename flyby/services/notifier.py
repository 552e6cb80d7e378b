"""Cooldown-gated proximity alerting across independent delivery channels."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Iterable, Optional, Sequence

from flyby.config import settings
from flyby.domain.airlines import airline_name
from flyby.domain.geo import distance_km, stabilize
from flyby.models.flight import FlightState
from flyby.models.notification import NotificationRecord, ProximityAlert
from flyby.notifiers import NotificationChannel

logger = logging.getLogger("flyby.notifier")


class ProximityNotifier:
    """Alert once per flight per cooldown window when it comes within range.

    Each flight id is either unnotified (no record) or notified (a record that
    has not yet expired). Expired records are purged at the start of every
    evaluation, which returns the flight to the unnotified state.
    """

    def __init__(
        self,
        channels: Sequence[NotificationChannel],
        *,
        radius_km: float | None = None,
        cooldown_s: float | None = None,
        clock: Callable[[], float] = time.monotonic,
        precision: int | None = None,
    ) -> None:
        self.channels = list(channels)
        self.precision = precision if precision is not None else settings.location_precision
        self.radius_km = radius_km if radius_km is not None else settings.notification_radius_km
        self.cooldown_s = (
            cooldown_s if cooldown_s is not None else settings.notification_cooldown_s
        )
        self._clock = clock
        self._records: dict[str, NotificationRecord] = {}

    @property
    def records(self) -> dict[str, NotificationRecord]:
        return dict(self._records)

    def is_notified(self, flight_id: str) -> bool:
        record = self._records.get(flight_id)
        return record is not None and not record.is_expired(self._clock())

    def clear(self, flight_id: str | None = None) -> None:
        if flight_id is None:
            self._records.clear()
        else:
            self._records.pop(flight_id, None)

    def close(self) -> None:
        self._records.clear()

    def _purge_expired(self, now: float) -> None:
        expired = [fid for fid, record in self._records.items() if record.is_expired(now)]
        for flight_id in expired:
            del self._records[flight_id]

    def measured_from_reference(
        self,
        reference: tuple[float, float],
        query_location: Optional[tuple[float, float]],
    ) -> bool:
        """Whether provider distances for a poll at ``query_location`` are relative to ``reference``."""

        if query_location is None:
            return True
        return tuple(stabilize(reference[0], reference[1], self.precision)) == tuple(
            query_location
        )

    def flight_distance_km(
        self,
        flight: FlightState,
        reference: tuple[float, float],
        use_provider_distance: bool = True,
    ) -> Optional[float]:
        if flight.position is None:
            return None
        if use_provider_distance and flight.distance_km is not None:
            return flight.distance_km
        return distance_km(reference[0], reference[1], flight.position.lat, flight.position.lon)

    def build_alert(self, flight: FlightState, distance: float) -> ProximityAlert:
        return ProximityAlert(
            flight_id=flight.id,
            callsign=flight.callsign,
            airline=flight.operator or airline_name(flight.callsign),
            distance_km=distance,
            altitude_m=flight.baro_altitude_m,
            ground_speed_mps=flight.ground_speed_mps,
            is_military=flight.is_military,
            is_notable=flight.is_notable,
            operator=flight.operator,
        )

    async def _deliver(self, channel: NotificationChannel, alert: ProximityAlert) -> bool:
        if not channel.enabled:
            return False
        try:
            return await channel.send(alert)
        except Exception as exc:  # pragma: no cover - channels log their own failures
            logger.warning("%s channel failed for %s: %s", channel.name, alert.flight_id, exc)
            return False

    async def evaluate(
        self,
        flights: Iterable[FlightState],
        reference: Optional[tuple[float, float]],
        query_location: Optional[tuple[float, float]] = None,
    ) -> list[ProximityAlert]:
        """Check one poll tick and fire alerts for newly in-range flights.

        ``query_location`` is the stabilized point the tick was polled around.
        Provider-reported distances are relative to it, so they are only used
        when it matches the reference point.
        """

        if reference is None:
            return []

        now = self._clock()
        self._purge_expired(now)
        use_provider_distance = self.measured_from_reference(reference, query_location)

        alerts: list[ProximityAlert] = []
        for flight in flights:
            if flight.id in self._records:
                continue
            distance = self.flight_distance_km(flight, reference, use_provider_distance)
            if distance is None or distance >= self.radius_km:
                continue

            self._records[flight.id] = NotificationRecord(
                flight_id=flight.id,
                notified_at=now,
                expires_at=now + self.cooldown_s,
            )
            alerts.append(self.build_alert(flight, distance))

        for alert in alerts:
            logger.info(
                "Flight %s within %.1f km (%.1f km away)",
                alert.display_callsign,
                self.radius_km,
                alert.distance_km,
            )
            await asyncio.gather(
                *(self._deliver(channel, alert) for channel in self.channels)
            )
        return alerts


__all__ = ["ProximityNotifier"]
