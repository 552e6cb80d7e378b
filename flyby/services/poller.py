"""Fixed-cadence polling of the live feed around a stabilized location."""

from __future__ import annotations

import asyncio
import inspect
import logging
from typing import Awaitable, Callable, Optional, Union

from flyby.config import settings
from flyby.domain.geo import StabilizedLocation, stabilize
from flyby.models.flight import FlightSnapshot, FlightState

logger = logging.getLogger("flyby.poller")

FetchFlights = Callable[[float, float], Awaitable[list[FlightState]]]
SnapshotHandler = Callable[[FlightSnapshot], Union[Awaitable[None], None]]


class Poller:
    """Re-fetch the live feed every ``interval`` seconds for one stabilized location.

    Each ``update_location`` call rounds the location onto a coarse grid; only
    a change of grid cell restarts polling. A restart cancels the previous loop
    and its in-flight fetches before the new loop issues its first request.

    Every tick is numbered. A result is handed to ``on_snapshot`` only if it
    belongs to the current generation and is newer than the last one applied,
    so a slow response can never overwrite a fresher one.
    """

    def __init__(
        self,
        fetch: FetchFlights,
        on_snapshot: SnapshotHandler,
        *,
        interval: float | None = None,
        precision: int | None = None,
    ) -> None:
        self._fetch = fetch
        self._on_snapshot = on_snapshot
        self.interval = interval or settings.effective_poll_interval
        self.precision = precision if precision is not None else settings.location_precision
        self._task: Optional[asyncio.Task[None]] = None
        self._inflight: set[asyncio.Task[None]] = set()
        self._stabilized: Optional[StabilizedLocation] = None
        self._generation = 0
        self._last_applied = 0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def stabilized(self) -> Optional[StabilizedLocation]:
        return self._stabilized

    @property
    def generation(self) -> int:
        return self._generation

    def update_location(self, lat: float, lon: float) -> bool:
        """Track a new reference location; return ``True`` if polling (re)started."""

        stabilized = stabilize(lat, lon, self.precision)
        if stabilized == self._stabilized and self.running:
            return False

        self._cancel()
        self._stabilized = stabilized
        self._generation += 1
        self._last_applied = 0
        self._task = asyncio.get_running_loop().create_task(
            self._run(self._generation, stabilized)
        )
        logger.info(
            "Polling %s every %.1fs (generation %s)",
            stabilized.key,
            self.interval,
            self._generation,
        )
        return True

    def _cancel(self) -> list[asyncio.Task[None]]:
        cancelled: list[asyncio.Task[None]] = []
        if self._task is not None:
            self._task.cancel()
            cancelled.append(self._task)
            self._task = None
        for task in self._inflight:
            task.cancel()
            cancelled.append(task)
        self._inflight.clear()
        return cancelled

    async def stop(self) -> None:
        cancelled = self._cancel()
        self._stabilized = None
        # Bumping the generation turns any straggler into a no-op
        self._generation += 1
        if cancelled:
            await asyncio.gather(*cancelled, return_exceptions=True)
        logger.info("Polling stopped")

    async def _run(self, generation: int, location: StabilizedLocation) -> None:
        loop = asyncio.get_running_loop()
        started = loop.time()
        sequence = 0
        while True:
            sequence += 1
            task = loop.create_task(self._tick(generation, sequence, location))
            self._inflight.add(task)
            task.add_done_callback(self._inflight.discard)

            # Schedule against the start time so slow fetches never shift the cadence
            next_tick = started + sequence * self.interval
            await asyncio.sleep(max(0.0, next_tick - loop.time()))

    async def _tick(
        self, generation: int, sequence: int, location: StabilizedLocation
    ) -> None:
        try:
            flights = await self._fetch(location.lat, location.lon)
        except Exception as exc:
            logger.warning("Poll fetch failed for %s: %s", location.key, exc)
            flights = []

        if generation != self._generation or sequence <= self._last_applied:
            logger.debug(
                "Discarding stale poll result (generation %s, tick %s)", generation, sequence
            )
            return
        self._last_applied = sequence

        snapshot = FlightSnapshot(
            sequence=sequence,
            generation=generation,
            location=(location.lat, location.lon),
            flights=flights,
        )
        logger.debug("Tick %s: %s flights", sequence, len(flights))
        try:
            result = self._on_snapshot(snapshot)
            if inspect.isawaitable(result):
                await result
        except Exception:
            logger.exception("Snapshot handler failed for tick %s", sequence)


__all__ = ["FetchFlights", "Poller", "SnapshotHandler"]
