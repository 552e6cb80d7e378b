"""Service layer: polling, reconciliation and alerting.

``FlightTracker`` lives in :mod:`flyby.services.tracker`; it is not re-exported
here because it depends on the provider clients, which themselves use
:class:`TokenCache`.
"""

from .notifier import ProximityNotifier
from .poller import Poller
from .synthesizer import is_already_tracked, merge_pseudo_entity, synthesize
from .token_cache import TokenCache
from .track_stitcher import stitch

__all__ = [
    "Poller",
    "ProximityNotifier",
    "TokenCache",
    "is_already_tracked",
    "merge_pseudo_entity",
    "stitch",
    "synthesize",
]
