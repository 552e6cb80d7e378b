import pytest

from flyby.ingestors.normalize import (
    normalize_aircraft,
    normalize_flight_summary,
    normalize_live_lookup,
    normalize_state_vector,
)


def _aircraft(**overrides):
    record = {
        "hex": "ABC123",
        "flight": "BAW123  ",
        "r": "G-EUPT",
        "t": "A320",
        "desc": "AIRBUS A-320",
        "ownOp": "British Airways",
        "lat": 51.5,
        "lon": -0.12,
        "alt_baro": 35000,
        "alt_geom": 35500,
        "gs": 450,
        "track": 270.5,
        "baro_rate": -640,
        "squawk": "1234",
        "dst": 5.4,
        "dir": 90.2,
        "dbFlags": 3,
        "seen": 1.5,
        "category": "A3",
    }
    record.update(overrides)
    return record


def test_normalize_aircraft_converts_units():
    flight = normalize_aircraft(_aircraft(), now=1000.0)

    assert flight is not None
    assert flight.id == "abc123"
    assert flight.callsign == "BAW123"
    assert flight.registration == "G-EUPT"
    assert flight.aircraft_type_code == "A320"
    assert flight.operator == "British Airways"
    assert flight.position.lat == 51.5
    assert flight.position.lon == -0.12
    assert flight.baro_altitude_m == pytest.approx(10668.0)
    assert flight.geo_altitude_m == pytest.approx(35500 * 0.3048)
    assert flight.ground_speed_mps == pytest.approx(231.4998)
    assert flight.vertical_rate_mps == pytest.approx(-3.2512)
    assert flight.distance_km == pytest.approx(10.0008)
    assert flight.bearing_deg == pytest.approx(90.2)
    assert flight.last_contact == pytest.approx(998.5)
    assert flight.category == 3
    assert flight.is_military is True
    assert flight.is_notable is True
    assert flight.on_ground is False


@pytest.mark.parametrize("feet", [0, 1, 250, 1750.5, 35000, 45000])
def test_normalize_aircraft_feet_to_meters(feet):
    flight = normalize_aircraft(_aircraft(alt_baro=feet), now=0.0)

    assert flight.baro_altitude_m == pytest.approx(feet * 0.3048, abs=1e-6)


def test_ground_sentinel_marks_on_ground_without_altitude():
    flight = normalize_aircraft({"hex": "a1b2c3", "alt_baro": "ground", "gs": 0}, now=0.0)

    assert flight.on_ground is True
    assert flight.baro_altitude_m is None
    # Zero is a reading, not an unknown
    assert flight.ground_speed_mps == 0.0


def test_missing_fields_stay_absent():
    flight = normalize_aircraft({"hex": "a1b2c3"}, now=50.0)

    assert flight.callsign is None
    assert flight.position is None
    assert flight.baro_altitude_m is None
    assert flight.ground_speed_mps is None
    assert flight.vertical_rate_mps is None
    assert flight.distance_km is None
    assert flight.squawk is None
    assert flight.last_contact == 50.0
    assert flight.category == 0
    assert flight.is_military is False
    assert flight.is_notable is False


def test_flags_decoded_per_bit():
    military = normalize_aircraft(_aircraft(dbFlags=1), now=0.0)
    notable = normalize_aircraft(_aircraft(dbFlags=2), now=0.0)

    assert (military.is_military, military.is_notable) == (True, False)
    assert (notable.is_military, notable.is_notable) == (False, True)


def test_malformed_values_become_none():
    flight = normalize_aircraft(
        _aircraft(lat="north", gs="fast", flight="   ", category="?"), now=0.0
    )

    assert flight.position is None
    assert flight.ground_speed_mps is None
    assert flight.callsign is None
    assert flight.category == 0


def test_geometric_rate_used_when_baro_rate_missing():
    record = _aircraft(geom_rate=1000)
    record.pop("baro_rate")

    flight = normalize_aircraft(record, now=0.0)

    assert flight.vertical_rate_mps == pytest.approx(5.08)


@pytest.mark.parametrize("record", [None, [], {"flight": "NOHEX"}, {"hex": "  "}])
def test_records_without_identifier_are_rejected(record):
    assert normalize_aircraft(record) is None


def test_normalize_state_vector_positional_schema():
    row = [
        "abc123",  # icao24
        "TEST123 ",  # callsign with trailing space
        "USA",
        1714765198,  # time_position
        1714765200,  # last_contact
        20.0,  # longitude
        10.0,  # latitude
        3657.6,  # baro_altitude meters
        False,  # on_ground
        164.6,  # velocity m/s
        90.0,  # true_track
        2.0,  # vertical_rate m/s
        None,  # sensors
        3700.0,  # geo_altitude meters
        "7000",  # squawk
        False,  # spi
        0,  # position_source
        7,  # category
    ]

    flight = normalize_state_vector(row)

    assert flight.id == "abc123"
    assert flight.callsign == "TEST123"
    assert flight.position.lat == 10.0
    assert flight.position.lon == 20.0
    assert flight.baro_altitude_m == 3657.6
    assert flight.ground_speed_mps == 164.6
    assert flight.vertical_rate_mps == 2.0
    assert flight.squawk == "7000"
    assert flight.last_contact == 1714765200
    assert flight.category == 7
    assert flight.source == "opensky"
    assert flight.is_military is False
    assert flight.is_notable is False


def test_normalize_state_vector_tolerates_short_rows():
    flight = normalize_state_vector(["ABC123", None], now=42.0)

    assert flight.id == "abc123"
    assert flight.position is None
    assert flight.on_ground is False
    assert flight.last_contact == 42.0


def test_normalize_live_lookup_converts_units():
    details = normalize_live_lookup(
        {
            "flight": "AA4379",
            "callsign": "RPA4379",
            "hex": "A1B2C3",
            "lat": 40.1,
            "lon": -75.2,
            "alt": 10000,
            "gspeed": 300,
            "vspeed": -1500,
            "track": 180,
            "orig_iata": "PHL",
            "dest_icao": "KBOS",
            "type": "E75L",
            "reg": "N123RP",
            "timestamp": "2024-05-03T19:40:00Z",
            "operating_as": "Republic 4379",
        }
    )

    assert details.status == "live"
    assert details.hex == "a1b2c3"
    assert details.altitude_m == pytest.approx(3048.0)
    assert details.ground_speed_mps == pytest.approx(154.3332)
    assert details.vertical_rate_mps == pytest.approx(-7.62)
    assert details.origin.iata == "PHL"
    assert details.destination.icao == "KBOS"
    assert details.aircraft.code == "E75L"
    assert details.timestamp.year == 2024
    assert details.position.lat == 40.1


def test_normalize_flight_summary_has_no_telemetry():
    details = normalize_flight_summary(
        {
            "flight": "AA4379",
            "flight_ended": True,
            "datetime_takeoff": "2024-05-03T10:00:00",
            "datetime_landed": "2024-05-03T11:30:00",
            "dest_icao_actual": "KBOS",
            "type": "E75L",
        }
    )

    assert details.status == "landed"
    assert details.position is None
    assert details.altitude_m is None
    assert details.destination.icao == "KBOS"
    assert details.landed_at == "2024-05-03T11:30:00"
