"""Join a historical track to the freshest live position."""

from __future__ import annotations

from typing import Optional

from flyby.models.flight import FlightState, FlightTrack, TrackPoint


def stitch(
    track: Optional[FlightTrack], live: Optional[FlightState]
) -> Optional[list[TrackPoint]]:
    """Return the track path ending at the live entity's current position.

    The track provider updates far less often than the live feed, so without
    the appended point the drawn path would stop short of the aircraft marker.
    No history means no path at all, not a single live point.
    """

    if track is None or not track.path:
        return None

    points = list(track.path)
    if live is None or live.position is None:
        return points

    points.append(
        TrackPoint(
            time=live.last_contact,
            lat=live.position.lat,
            lon=live.position.lon,
            baro_altitude_m=live.baro_altitude_m,
            true_track_deg=live.true_track_deg,
            on_ground=live.on_ground,
        )
    )
    return points


__all__ = ["stitch"]
