"""Alert delivery channels."""

from typing import Protocol

from flyby.models.notification import ProximityAlert

from .desktop import DesktopNotifier
from .ntfy import NtfyNotifier


class NotificationChannel(Protocol):
    """Interface every delivery channel implements."""

    name: str

    @property
    def enabled(self) -> bool:
        """Whether the channel can deliver at all."""

    async def send(self, alert: ProximityAlert) -> bool:
        """Deliver ``alert``; return ``False`` on any failure."""


__all__ = ["DesktopNotifier", "NotificationChannel", "NtfyNotifier"]
