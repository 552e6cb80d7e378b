import asyncio
from typing import Optional

import pytest

from flyby.models.flight import (
    FlightDetails,
    FlightSnapshot,
    FlightState,
    FlightTrack,
    Position,
    TrackPoint,
)
from flyby.models.notification import ProximityAlert
from flyby.services.notifier import ProximityNotifier
from flyby.services.token_cache import TokenCache
from flyby.services.tracker import FlightTracker

HOME = (51.5, -0.12)


class FakeLiveFeed:
    def __init__(self):
        self.flights: list[FlightState] = []
        self.calls: list[tuple[float, float]] = []

    async def get_flights(self, lat, lon, radius_nm=None):
        self.calls.append((lat, lon))
        return list(self.flights)


class FakeTrackFeed:
    def __init__(self):
        self.tracks: dict[str, FlightTrack] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.requested: list[str] = []

    async def get_flight_track(self, icao24):
        self.requested.append(icao24)
        gate = self.gates.get(icao24)
        if gate is not None:
            await gate.wait()
        return self.tracks.get(icao24)


class FakeLookup:
    def __init__(self):
        self.results: dict[str, FlightDetails] = {}
        self.gates: dict[str, asyncio.Event] = {}
        self.queries: list[str] = []

    async def lookup(self, query) -> Optional[FlightDetails]:
        self.queries.append(query)
        gate = self.gates.get(query)
        if gate is not None:
            await gate.wait()
        return self.results.get(query)


class RecordingChannel:
    name = "recording"
    enabled = True

    def __init__(self):
        self.sent: list[ProximityAlert] = []

    async def send(self, alert):
        self.sent.append(alert)
        return True


def _flight(flight_id, lat, lon, callsign=None, **kwargs):
    return FlightState(
        id=flight_id,
        callsign=callsign,
        position=Position(lat=lat, lon=lon),
        last_contact=1714765200.0,
        **kwargs,
    )


def _snapshot(*flights, sequence=1):
    return FlightSnapshot(sequence=sequence, generation=1, location=HOME, flights=list(flights))


@pytest.fixture
def channel():
    return RecordingChannel()


@pytest.fixture
def tracker(channel):
    return FlightTracker(
        live_feed=FakeLiveFeed(),
        track_feed=FakeTrackFeed(),
        lookup=FakeLookup(),
        notifier=ProximityNotifier([channel], radius_km=10.0, cooldown_s=1800.0),
        token_cache=TokenCache(client_id="", client_secret=""),
        home=HOME,
        poll_interval=60.0,
    )


@pytest.mark.anyio
async def test_snapshot_triggers_proximity_alerts(tracker, channel):
    try:
        await tracker.apply_snapshot(
            _snapshot(
                _flight("near", 51.545, -0.12, callsign="BAW123"),
                _flight("far", 53.0, -0.12),
                FlightState(id="nopos", last_contact=0.0),
            )
        )

        assert [alert.flight_id for alert in channel.sent] == ["near"]
        # unpositioned flights are kept for lookup but never drawn
        assert [f.id for f in tracker.display_flights()] == ["near", "far"]
        assert tracker.get_flight("nopos") is not None
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_start_polls_home_and_close_stops(tracker):
    await tracker.start()
    try:
        await asyncio.sleep(0.01)
        assert tracker.poller.running
        assert tracker.live_feed.calls == [(51.5, -0.12)]
    finally:
        await tracker.close()

    assert not tracker.poller.running


@pytest.mark.anyio
async def test_select_loads_track_and_details(tracker):
    tracker.track_feed.tracks["abc123"] = FlightTrack(
        icao24="abc123",
        path=(TrackPoint(time=1.0, lat=51.0, lon=-0.5), TrackPoint(time=2.0, lat=51.2, lon=-0.3)),
    )
    tracker.lookup_client.results["BAW123"] = FlightDetails(callsign="BAW123", registration="G-ABCD")
    try:
        await tracker.apply_snapshot(_snapshot(_flight("abc123", 51.3, -0.2, callsign="BAW123")))

        assert await tracker.select("abc123") is True

        assert tracker.details.registration == "G-ABCD"
        path = tracker.selected_path()
        assert [(p.lat, p.lon) for p in path] == [(51.0, -0.5), (51.2, -0.3), (51.3, -0.2)]

        # next live update moves the path end without refetching the track
        await tracker.apply_snapshot(
            _snapshot(_flight("abc123", 51.35, -0.15, callsign="BAW123"), sequence=2)
        )
        assert tracker.selected_path()[-1].lat == 51.35
        assert tracker.track_feed.requested == ["abc123"]
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_select_unknown_flight_returns_false(tracker):
    try:
        assert await tracker.select("missing") is False
        assert tracker.selected_id is None
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_late_selection_response_is_discarded(tracker):
    gate = asyncio.Event()
    tracker.track_feed.gates["slow"] = gate
    tracker.track_feed.tracks["slow"] = FlightTrack(
        icao24="slow", path=(TrackPoint(lat=1.0, lon=1.0),)
    )
    try:
        await tracker.apply_snapshot(
            _snapshot(_flight("slow", 10.0, 10.0), _flight("fast", 20.0, 20.0))
        )

        pending = asyncio.create_task(tracker.select("slow"))
        await asyncio.sleep(0)
        assert await tracker.select("fast") is True

        gate.set()
        assert await pending is False
        assert tracker.selected_id == "fast"
        assert tracker.track is None
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_clearing_selection_discards_inflight_fetch(tracker):
    gate = asyncio.Event()
    tracker.track_feed.gates["abc123"] = gate
    tracker.track_feed.tracks["abc123"] = FlightTrack(
        icao24="abc123", path=(TrackPoint(lat=1.0, lon=1.0),)
    )
    try:
        await tracker.apply_snapshot(_snapshot(_flight("abc123", 10.0, 10.0)))

        pending = asyncio.create_task(tracker.select("abc123"))
        await asyncio.sleep(0)
        tracker.clear_selection()
        gate.set()

        assert await pending is False
        assert tracker.selected_id is None
        assert tracker.track is None
        assert tracker.selected_path() is None
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_search_adds_pseudo_entity_until_live_feed_reports_it(tracker):
    tracker.lookup_client.results["AA4379"] = FlightDetails(
        flight="AA4379", hex="a1b2c3", lat=40.0, lon=-75.0, altitude_m=6000.0
    )
    try:
        flight = await tracker.search("AA4379")

        assert flight.is_pseudo is True
        assert flight.id == "a1b2c3"
        assert tracker.selected_id == "a1b2c3"
        assert tracker.poll_center == (40.0, -75.0)
        await asyncio.sleep(0.01)
        assert tracker.live_feed.calls[-1] == (40.0, -75.0)
        assert [f.id for f in tracker.display_flights()] == ["a1b2c3"]

        # pseudo entities carry no history, so selecting one fetches nothing
        assert await tracker.select("a1b2c3") is True
        assert tracker.track_feed.requested == []
        assert tracker.details.flight == "AA4379"

        await tracker.apply_snapshot(_snapshot(_flight("a1b2c3", 40.01, -75.01), sequence=5))
        assert tracker.pseudo is None
        displayed = tracker.display_flights()
        assert [f.id for f in displayed] == ["a1b2c3"]
        assert displayed[0].is_pseudo is False
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_landed_search_result_is_selectable_but_not_drawn(tracker):
    tracker.lookup_client.results["AA1"] = FlightDetails(flight="AA1", status="landed")
    try:
        flight = await tracker.search("AA1")

        assert flight.is_positioned is False
        assert flight.id.startswith("landed_")
        assert tracker.display_flights() == []
        assert tracker.selected_flight() is flight
        assert tracker.details.status == "landed"
        assert not tracker.poller.running
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_search_miss_and_superseded_search(tracker):
    gate = asyncio.Event()
    tracker.lookup_client.gates["OLD1"] = gate
    tracker.lookup_client.results["OLD1"] = FlightDetails(flight="OLD1", lat=1.0, lon=1.0)
    tracker.lookup_client.results["NEW1"] = FlightDetails(flight="NEW1")
    try:
        assert await tracker.search("NOPE") is None

        pending = asyncio.create_task(tracker.search("OLD1"))
        await asyncio.sleep(0)
        newer = await tracker.search("NEW1")
        gate.set()

        assert await pending is None
        assert newer.callsign == "NEW1"
        assert tracker.searched.flight == "NEW1"
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_closest_flight_uses_viewer_location(tracker):
    try:
        tracker.location = (51.5, -0.12)
        await tracker.apply_snapshot(
            _snapshot(_flight("a", 51.6, -0.12), _flight("b", 51.52, -0.12))
        )

        flight, distance = tracker.closest_flight()

        assert flight.id == "b"
        assert distance == pytest.approx(2.224, abs=0.01)
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_view_center_overrides_viewer_location(tracker):
    try:
        assert tracker.recenter(10.0, 10.0) is True
        assert tracker.update_location(20.0, 20.0) is False
        assert tracker.poll_center == (10.0, 10.0)

        assert tracker.recenter() is True
        assert tracker.poll_center == (20.0, 20.0)
        assert tracker.poller.stabilized == (20.0, 20.0)
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_alerts_measure_from_home_after_recentering(tracker, channel):
    tracker.home = (40.7, -74.0)
    london = _flight("400abc", 51.51, -0.12, distance_km=1.1)
    try:
        await tracker.apply_snapshot(
            FlightSnapshot(sequence=1, generation=1, location=(51.5, -0.12), flights=[london])
        )

        assert channel.sent == []
        assert not tracker.notifier.is_notified("400abc")
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_clearing_selection_discards_inflight_search(tracker):
    gate = asyncio.Event()
    tracker.lookup_client.gates["BA1"] = gate
    tracker.lookup_client.results["BA1"] = FlightDetails(flight="BA1", lat=51.5, lon=-0.12)
    try:
        pending = asyncio.create_task(tracker.search("BA1"))
        await asyncio.sleep(0)
        tracker.clear_selection()
        gate.set()

        assert await pending is None
        assert tracker.selected_id is None
        assert tracker.pseudo is None
        assert tracker.view_center is None
        assert not tracker.poller.running
    finally:
        await tracker.close()


@pytest.mark.anyio
async def test_selecting_another_flight_discards_inflight_search(tracker):
    gate = asyncio.Event()
    tracker.lookup_client.gates["BA1"] = gate
    tracker.lookup_client.results["BA1"] = FlightDetails(flight="BA1")
    try:
        await tracker.apply_snapshot(_snapshot(_flight("abc123", 10.0, 10.0)))

        pending = asyncio.create_task(tracker.search("BA1"))
        await asyncio.sleep(0)
        assert await tracker.select("abc123") is True
        gate.set()

        assert await pending is None
        assert tracker.selected_id == "abc123"
        assert tracker.searched is None
    finally:
        await tracker.close()


class FakeLiveLookup:
    def __init__(self, results):
        self.results = results
        self.queries: list[str] = []

    async def find(self, query):
        self.queries.append(query)
        return self.results.get(query)


@pytest.mark.anyio
async def test_search_falls_back_to_live_feed_lookup(channel):
    live_lookup = FakeLiveLookup(
        {"N123AB": FlightDetails(hex="a0b1c2", callsign="N123AB", status="live")}
    )
    tracker = FlightTracker(
        live_feed=FakeLiveFeed(),
        track_feed=FakeTrackFeed(),
        lookup=FakeLookup(),
        live_lookup=live_lookup,
        notifier=ProximityNotifier([channel], radius_km=10.0, cooldown_s=1800.0),
        token_cache=TokenCache(client_id="", client_secret=""),
        home=HOME,
        poll_interval=60.0,
    )
    try:
        flight = await tracker.search("N123AB")

        assert tracker.lookup_client.queries == ["N123AB"]
        assert live_lookup.queries == ["N123AB"]
        assert flight.id == "a0b1c2"
        assert flight.callsign == "N123AB"
        assert await tracker.search("NOPE") is None
    finally:
        await tracker.close()
