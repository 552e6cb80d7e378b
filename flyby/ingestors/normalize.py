"""Map provider-specific aircraft records onto the canonical flight state.

Every provider reports a different schema in different units. The functions
here are the only place raw provider units are allowed to exist: anything
returned is metric/SI. Missing or malformed fields become ``None`` rather than
zero so that "unknown" is never confused with a real zero reading.
"""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import time
from typing import Any, Optional, Sequence

from flyby.models.flight import (
    AircraftRef,
    AirportRef,
    FlightDetails,
    FlightSource,
    FlightState,
    LookupStatus,
    Position,
)

logger = logging.getLogger("flyby.ingestors.normalize")

FEET_TO_METERS = 0.3048
KNOTS_TO_MPS = 0.514444
FPM_TO_MPS = 0.00508
NM_TO_KM = 1.852

GROUND_ALTITUDE_SENTINEL = "ground"

DB_FLAG_MILITARY = 0b01
DB_FLAG_NOTABLE = 0b10


def _as_float(value: Any) -> float | None:
    if value is None or isinstance(value, bool):
        return None
    try:
        return float(value)
    except (TypeError, ValueError):
        return None


def _scaled(value: Any, factor: float) -> float | None:
    number = _as_float(value)
    if number is None:
        return None
    return number * factor


def feet_to_meters(value: Any) -> float | None:
    return _scaled(value, FEET_TO_METERS)


def knots_to_mps(value: Any) -> float | None:
    return _scaled(value, KNOTS_TO_MPS)


def fpm_to_mps(value: Any) -> float | None:
    return _scaled(value, FPM_TO_MPS)


def nm_to_km(value: Any) -> float | None:
    return _scaled(value, NM_TO_KM)


def _clean_str(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    cleaned = value.strip()
    return cleaned or None


def _position(lat: Any, lon: Any) -> Position | None:
    lat_f = _as_float(lat)
    lon_f = _as_float(lon)
    if lat_f is None or lon_f is None:
        return None
    return Position(lat=lat_f, lon=lon_f)


def _parse_category(raw: Any) -> int:
    """Decode an emitter category such as ``"A7"`` into its numeric part."""

    if isinstance(raw, int) and not isinstance(raw, bool):
        return raw
    if isinstance(raw, str) and len(raw) > 1:
        try:
            return int(raw[1:])
        except ValueError:
            return 0
    return 0


def _parse_timestamp(raw_ts: Any) -> datetime | None:
    if raw_ts is None:
        return None
    try:
        if isinstance(raw_ts, (int, float)):
            return datetime.fromtimestamp(raw_ts, tz=timezone.utc)
        if isinstance(raw_ts, str):
            if raw_ts.endswith("Z"):
                raw_ts = raw_ts.replace("Z", "+00:00")
            parsed = datetime.fromisoformat(raw_ts)
            if parsed.tzinfo is None:
                parsed = parsed.replace(tzinfo=timezone.utc)
            return parsed
    except (ValueError, OverflowError, OSError):
        logger.debug("Failed to parse provider timestamp: %s", raw_ts)
        return None
    return None


def normalize_aircraft(
    record: Any, *, now: float | None = None, source: FlightSource = "airplaneslive"
) -> Optional[FlightState]:
    """Normalize a keyed-object record (readsb / Airplanes.live ``ac`` entry)."""

    if not isinstance(record, dict):
        return None
    hex_code = _clean_str(record.get("hex"))
    if not hex_code:
        return None
    now = time.time() if now is None else now

    raw_alt = record.get("alt_baro")
    on_ground = raw_alt == GROUND_ALTITUDE_SENTINEL or record.get("on_ground") is True
    baro_altitude = feet_to_meters(raw_alt) if not isinstance(raw_alt, str) else None

    vertical_rate = record.get("baro_rate")
    if vertical_rate is None:
        vertical_rate = record.get("geom_rate")

    db_flags = record.get("dbFlags")
    if not isinstance(db_flags, int) or isinstance(db_flags, bool):
        db_flags = 0

    seen = _as_float(record.get("seen"))

    return FlightState(
        id=hex_code.lower(),
        callsign=_clean_str(record.get("flight")),
        registration=_clean_str(record.get("r")),
        aircraft_type_code=_clean_str(record.get("t")),
        description=_clean_str(record.get("desc")),
        operator=_clean_str(record.get("ownOp")),
        position=_position(record.get("lat"), record.get("lon")),
        baro_altitude_m=baro_altitude,
        geo_altitude_m=feet_to_meters(record.get("alt_geom")),
        ground_speed_mps=knots_to_mps(record.get("gs")),
        true_track_deg=_as_float(record.get("track")),
        vertical_rate_mps=fpm_to_mps(vertical_rate),
        on_ground=on_ground,
        squawk=_clean_str(record.get("squawk")),
        distance_km=nm_to_km(record.get("dst")),
        bearing_deg=_as_float(record.get("dir")),
        last_contact=now - seen if seen is not None else now,
        category=_parse_category(record.get("category")),
        is_military=bool(db_flags & DB_FLAG_MILITARY),
        is_notable=bool(db_flags & DB_FLAG_NOTABLE),
        source=source,
    )


def _at(row: Sequence[Any], index: int) -> Any:
    return row[index] if len(row) > index else None


def normalize_state_vector(row: Any, *, now: float | None = None) -> Optional[FlightState]:
    """Normalize a positional OpenSky state vector (already metric)."""

    if not isinstance(row, (list, tuple)) or not row:
        return None
    icao24 = _clean_str(row[0])
    if not icao24:
        return None

    last_contact = _as_float(_at(row, 4))
    if last_contact is None:
        last_contact = _as_float(_at(row, 3))
    if last_contact is None:
        last_contact = time.time() if now is None else now

    return FlightState(
        id=icao24.lower(),
        callsign=_clean_str(_at(row, 1)),
        position=_position(_at(row, 6), _at(row, 5)),
        baro_altitude_m=_as_float(_at(row, 7)),
        geo_altitude_m=_as_float(_at(row, 13)),
        ground_speed_mps=_as_float(_at(row, 9)),
        true_track_deg=_as_float(_at(row, 10)),
        vertical_rate_mps=_as_float(_at(row, 11)),
        on_ground=_at(row, 8) is True,
        squawk=_clean_str(_at(row, 14)),
        last_contact=last_contact,
        category=_parse_category(_at(row, 17)),
        source="opensky",
    )


def details_from_state(flight: FlightState) -> FlightDetails:
    """Express a live-feed entity as lookup details so search can treat both alike."""

    aircraft = None
    if flight.description or flight.aircraft_type_code:
        aircraft = AircraftRef(model=flight.description, code=flight.aircraft_type_code)
    position = flight.position
    return FlightDetails(
        aircraft=aircraft,
        registration=flight.registration,
        vertical_rate_mps=flight.vertical_rate_mps,
        altitude_m=0.0 if flight.on_ground else flight.baro_altitude_m,
        ground_speed_mps=flight.ground_speed_mps,
        track_deg=flight.true_track_deg,
        squawk=flight.squawk,
        lat=position.lat if position else None,
        lon=position.lon if position else None,
        hex=flight.id,
        callsign=flight.callsign,
        timestamp=datetime.fromtimestamp(flight.last_contact, tz=timezone.utc),
        status="live",
    )


def _airport(iata: Any, icao: Any) -> AirportRef:
    return AirportRef(iata=_clean_str(iata), icao=_clean_str(icao))


def normalize_live_lookup(record: dict[str, Any]) -> FlightDetails:
    """Normalize a live flight-position record from the secondary provider."""

    model = _clean_str(record.get("aircraft_model"))
    code = _clean_str(record.get("type")) or _clean_str(record.get("ac_type"))
    return FlightDetails(
        origin=_airport(
            record.get("orig_iata") or record.get("org_iata"),
            record.get("orig_icao") or record.get("org_icao"),
        ),
        destination=_airport(record.get("dest_iata"), record.get("dest_icao")),
        aircraft=AircraftRef(model=model, code=code) if (model or code) else None,
        registration=_clean_str(record.get("reg")) or _clean_str(record.get("registration")),
        eta=_clean_str(record.get("eta")),
        vertical_rate_mps=fpm_to_mps(record.get("vspeed")),
        altitude_m=feet_to_meters(record.get("alt")),
        ground_speed_mps=knots_to_mps(record.get("gspeed")),
        track_deg=_as_float(record.get("track")),
        squawk=_clean_str(record.get("squawk")),
        lat=_as_float(record.get("lat")),
        lon=_as_float(record.get("lon")),
        hex=(_clean_str(record.get("hex")) or _clean_str(record.get("icao24")) or "").lower()
        or None,
        callsign=_clean_str(record.get("callsign")),
        flight=_clean_str(record.get("flight")),
        timestamp=_parse_timestamp(record.get("timestamp")),
        status="live",
        operating_as=_clean_str(record.get("operating_as")),
    )


def summary_status(record: dict[str, Any]) -> LookupStatus:
    if record.get("flight_ended"):
        return "landed"
    if record.get("datetime_takeoff"):
        return "live"
    return "scheduled"


def normalize_flight_summary(record: dict[str, Any]) -> FlightDetails:
    """Normalize a flight-summary record; summaries never carry live telemetry."""

    code = _clean_str(record.get("type"))
    return FlightDetails(
        origin=_airport(record.get("orig_iata"), record.get("orig_icao")),
        destination=_airport(
            record.get("dest_iata") or record.get("dest_iata_actual"),
            record.get("dest_icao") or record.get("dest_icao_actual"),
        ),
        aircraft=AircraftRef(code=code) if code else None,
        registration=_clean_str(record.get("reg")),
        hex=(_clean_str(record.get("hex")) or "").lower() or None,
        callsign=_clean_str(record.get("callsign")),
        flight=_clean_str(record.get("flight")),
        timestamp=_parse_timestamp(record.get("last_seen")),
        status=summary_status(record),
        landed_at=_clean_str(record.get("datetime_landed")),
        departed_at=_clean_str(record.get("datetime_takeoff")),
        scheduled_departure=_clean_str(record.get("std")),
        operating_as=_clean_str(record.get("operating_as")),
    )


__all__ = [
    "FEET_TO_METERS",
    "FPM_TO_MPS",
    "KNOTS_TO_MPS",
    "NM_TO_KM",
    "details_from_state",
    "feet_to_meters",
    "fpm_to_mps",
    "knots_to_mps",
    "nm_to_km",
    "normalize_aircraft",
    "normalize_flight_summary",
    "normalize_live_lookup",
    "normalize_state_vector",
    "summary_status",
]
