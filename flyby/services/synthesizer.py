"""Turn one-shot lookup results into displayable flight entities."""

from __future__ import annotations

import logging
import time
from typing import Iterable, Optional

from flyby.domain.geo import distance_km
from flyby.models.flight import FlightDetails, FlightState

logger = logging.getLogger("flyby.synthesizer")

MATCH_RADIUS_KM = 0.1


def _pseudo_id(details: FlightDetails, prefix: str, now: float) -> str:
    return details.hex or f"{prefix}_{int(now * 1000)}"


def _pseudo_callsign(details: FlightDetails, fallback: str) -> str:
    return details.flight or details.callsign or details.registration or fallback


def synthesize(details: FlightDetails, now: Optional[float] = None) -> FlightState:
    """Build a pseudo entity from ``details``.

    A lookup without coordinates (landed or scheduled) still yields an entity,
    but one with no position or telemetry so it is never drawn on the map.
    """

    now = time.time() if now is None else now
    last_contact = details.timestamp.timestamp() if details.timestamp else now
    aircraft = details.aircraft

    common = dict(
        registration=details.registration,
        aircraft_type_code=aircraft.code if aircraft else None,
        description=aircraft.model if aircraft else None,
        operator=None,
        last_contact=last_contact,
        category=0,
        is_military=False,
        is_notable=False,
        source="lookup",
        is_pseudo=True,
    )

    position = details.position
    if position is None:
        return FlightState(
            id=_pseudo_id(details, "landed", now),
            callsign=_pseudo_callsign(details, "LANDED"),
            position=None,
            on_ground=True,
            **common,
        )

    return FlightState(
        id=_pseudo_id(details, "searched", now),
        callsign=_pseudo_callsign(details, "SEARCHED"),
        position=position,
        baro_altitude_m=details.altitude_m,
        geo_altitude_m=details.altitude_m,
        ground_speed_mps=details.ground_speed_mps,
        true_track_deg=details.track_deg,
        vertical_rate_mps=details.vertical_rate_mps,
        on_ground=details.altitude_m == 0,
        squawk=details.squawk,
        **common,
    )


def is_already_tracked(flights: Iterable[FlightState], details: FlightDetails) -> bool:
    """True when the polled set already reports this flight, by id or by position."""

    position = details.position
    for flight in flights:
        if details.hex and flight.id == details.hex:
            return True
        if position is None or flight.position is None:
            continue
        if (
            distance_km(position.lat, position.lon, flight.position.lat, flight.position.lon)
            <= MATCH_RADIUS_KM
        ):
            return True
    return False


def merge_pseudo_entity(
    flights: list[FlightState],
    details: Optional[FlightDetails],
    pseudo: Optional[FlightState] = None,
) -> list[FlightState]:
    """Return the display set for one render pass.

    ``pseudo`` lets the caller reuse a previously synthesized entity so its id
    stays stable across passes.
    """

    if details is None or details.position is None:
        return list(flights)
    if is_already_tracked(flights, details):
        return list(flights)

    entity = pseudo if pseudo is not None and pseudo.is_positioned else synthesize(details)
    logger.debug("Adding pseudo entity %s to display set", entity.id)
    return [*flights, entity]


__all__ = ["MATCH_RADIUS_KM", "is_already_tracked", "merge_pseudo_entity", "synthesize"]
