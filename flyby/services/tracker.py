"""Single-viewer flight tracking state: polling, search, selection and alerts."""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional, Protocol

from flyby.config import settings
from flyby.domain.geo import distance_km
from flyby.ingestors import AirplanesLiveIngestor, FlightLookupClient, OpenSkyIngestor
from flyby.models.flight import (
    AirportDeparture,
    FlightDetails,
    FlightSnapshot,
    FlightState,
    FlightTrack,
    TrackPoint,
)
from flyby.notifiers import DesktopNotifier, NtfyNotifier
from flyby.services.notifier import ProximityNotifier
from flyby.services.poller import Poller
from flyby.services.synthesizer import merge_pseudo_entity, synthesize
from flyby.services.token_cache import TokenCache
from flyby.services.track_stitcher import stitch

logger = logging.getLogger("flyby.tracker")


class LiveFeed(Protocol):
    async def get_flights(
        self, lat: float, lon: float, radius_nm: float | None = None
    ) -> list[FlightState]:
        ...


class TrackFeed(Protocol):
    async def get_flight_track(self, icao24: str) -> Optional[FlightTrack]:
        ...


class DetailLookup(Protocol):
    async def lookup(self, query: str) -> Optional[FlightDetails]:
        ...

    async def airport_departures(self, icao: str) -> list[AirportDeparture]:
        ...


class LiveLookup(Protocol):
    async def find(self, query: str) -> Optional[FlightDetails]:
        ...


class FlightTracker:
    """Owns the live state for one viewer.

    Responses for a selection or search that has since been replaced are
    dropped on arrival: each ``select``/``clear_selection``/``search`` bumps a
    generation counter and a result is applied only if its generation is still
    current.
    """

    def __init__(
        self,
        *,
        live_feed: LiveFeed | None = None,
        track_feed: TrackFeed | None = None,
        lookup: DetailLookup | None = None,
        live_lookup: LiveLookup | None = None,
        notifier: ProximityNotifier | None = None,
        desktop: DesktopNotifier | None = None,
        token_cache: TokenCache | None = None,
        home: tuple[float, float] | None = None,
        poll_interval: float | None = None,
    ) -> None:
        self.token_cache = token_cache or TokenCache()
        if track_feed is None:
            track_feed = OpenSkyIngestor(token_cache=self.token_cache)
        if live_feed is None:
            if settings.live_provider == "opensky" and isinstance(track_feed, OpenSkyIngestor):
                live_feed = track_feed
            else:
                live_feed = AirplanesLiveIngestor()
        self.live_feed = live_feed
        self.track_feed = track_feed
        self.lookup_client = lookup or FlightLookupClient()
        if live_lookup is None and isinstance(live_feed, AirplanesLiveIngestor):
            live_lookup = live_feed
        self.live_lookup = live_lookup
        self.desktop = desktop
        if notifier is None:
            self.desktop = desktop or DesktopNotifier()
            notifier = ProximityNotifier([self.desktop, NtfyNotifier()])
        self.notifier = notifier
        self.home = home if home is not None else settings.home_location
        self.poller = Poller(self._fetch, self.apply_snapshot, interval=poll_interval)

        self.location: Optional[tuple[float, float]] = None
        self.view_center: Optional[tuple[float, float]] = None
        self.snapshot: Optional[FlightSnapshot] = None

        self.selected_id: Optional[str] = None
        self.track: Optional[FlightTrack] = None
        self.details: Optional[FlightDetails] = None
        self.searched: Optional[FlightDetails] = None
        self.pseudo: Optional[FlightState] = None
        self._selection_generation = 0
        self._search_generation = 0

    async def _fetch(self, lat: float, lon: float) -> list[FlightState]:
        return await self.live_feed.get_flights(lat, lon)

    # -- lifecycle ---------------------------------------------------------

    async def start(self) -> None:
        if self.desktop is not None:
            self.desktop.request_permission()
        if self.location is None and self.home is not None:
            self.update_location(*self.home)

    async def close(self) -> None:
        await self.poller.stop()
        self.notifier.close()
        self.clear_selection()
        logger.info("Tracker closed")

    # -- location and polling ----------------------------------------------

    @property
    def reference(self) -> Optional[tuple[float, float]]:
        """Point proximity alerts are measured from: home first, then the viewer."""

        return self.home if self.home is not None else self.location

    @property
    def poll_center(self) -> Optional[tuple[float, float]]:
        return self.view_center or self.location

    def update_location(self, lat: float, lon: float) -> bool:
        self.location = (lat, lon)
        if self.view_center is not None:
            return False
        return self.poller.update_location(lat, lon)

    def recenter(self, lat: float | None = None, lon: float | None = None) -> bool:
        """Move the polling area; with no arguments return to the viewer location."""

        if lat is None or lon is None:
            self.view_center = None
            if self.location is None:
                return False
            return self.poller.update_location(*self.location)
        self.view_center = (lat, lon)
        return self.poller.update_location(lat, lon)

    async def apply_snapshot(self, snapshot: FlightSnapshot) -> None:
        self.snapshot = snapshot
        if self.pseudo is not None and snapshot.by_id(self.pseudo.id) is not None:
            logger.info("Pseudo entity %s now reported by live feed", self.pseudo.id)
            self.pseudo = None
        await self.notifier.evaluate(
            snapshot.renderable(), self.reference, snapshot.location
        )

    # -- read side ---------------------------------------------------------

    def polled_flights(self) -> list[FlightState]:
        if self.snapshot is None:
            return []
        return list(self.snapshot.renderable())

    def display_flights(self) -> list[FlightState]:
        searched = self.searched if self.pseudo is not None else None
        return merge_pseudo_entity(self.polled_flights(), searched, self.pseudo)

    def get_flight(self, flight_id: str) -> Optional[FlightState]:
        if self.snapshot is not None:
            flight = self.snapshot.by_id(flight_id)
            if flight is not None:
                return flight
        if self.pseudo is not None and self.pseudo.id == flight_id:
            return self.pseudo
        return None

    def selected_flight(self) -> Optional[FlightState]:
        if self.selected_id is None:
            return None
        return self.get_flight(self.selected_id)

    def selected_path(self) -> Optional[list[TrackPoint]]:
        if self.selected_id is None:
            return None
        return stitch(self.track, self.selected_flight())

    def closest_flight(self) -> Optional[tuple[FlightState, float]]:
        if self.location is None:
            return None
        lat, lon = self.location
        best: Optional[tuple[FlightState, float]] = None
        for flight in self.polled_flights():
            if flight.position is None:
                continue
            distance = distance_km(lat, lon, flight.position.lat, flight.position.lon)
            if best is None or distance < best[1]:
                best = (flight, distance)
        return best

    # -- selection and search ---------------------------------------------

    def clear_selection(self) -> None:
        self._selection_generation += 1
        self.selected_id = None
        self.track = None
        self.details = None

    async def select(self, flight_id: str) -> bool:
        """Select a flight and load its track and details.

        Returns ``False`` if the flight is unknown or the selection changed
        before the responses arrived.
        """

        flight = self.get_flight(flight_id)
        if flight is None:
            return False

        self._selection_generation += 1
        generation = self._selection_generation
        self.selected_id = flight.id
        self.track = None
        self.details = None

        if flight.is_pseudo:
            # Searched flights have no track history; their details are the search result
            self.details = self.searched
            return True

        pending: list[Any] = [self.track_feed.get_flight_track(flight.id)]
        if flight.callsign:
            pending.append(self.lookup_client.lookup(flight.callsign))
        results = await asyncio.gather(*pending, return_exceptions=True)

        if generation != self._selection_generation:
            logger.debug("Discarding late selection data for %s", flight.id)
            return False

        track, details = (list(results) + [None])[:2]
        if isinstance(track, BaseException):
            logger.warning("Track fetch failed for %s: %s", flight.id, track)
            track = None
        if isinstance(details, BaseException):
            logger.warning("Detail lookup failed for %s: %s", flight.id, details)
            details = None
        self.track = track
        self.details = details
        return True

    def _search_is_current(self, generation: int, selection: int) -> bool:
        return (
            generation == self._search_generation
            and selection == self._selection_generation
        )

    async def search(self, query: str) -> Optional[FlightState]:
        """Look a flight up by number or callsign and select it.

        The secondary provider is asked first; when it has no match the live
        feed is searched by hex, callsign or registration. ``None`` means no
        match, or that a newer search or a selection change superseded this one.
        """

        self._search_generation += 1
        generation = self._search_generation
        selection = self._selection_generation
        details = await self.lookup_client.lookup(query)
        if details is None and self.live_lookup is not None and self._search_is_current(
            generation, selection
        ):
            details = await self.live_lookup.find(query)
        if not self._search_is_current(generation, selection):
            logger.debug("Discarding superseded search for %s", query)
            return None
        if details is None:
            return None

        self.searched = details
        self.pseudo = synthesize(details)

        self._selection_generation += 1
        self.selected_id = self.pseudo.id
        self.track = None
        self.details = details

        position = details.position
        if position is not None:
            self.recenter(position.lat, position.lon)
        return self.get_flight(self.pseudo.id)


__all__ = ["DetailLookup", "FlightTracker", "LiveFeed", "LiveLookup", "TrackFeed"]
