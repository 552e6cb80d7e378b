"""Local desktop notifications via the platform's notification command."""

from __future__ import annotations

import asyncio
import logging
import shutil
import sys
from typing import Awaitable, Callable, Literal, Optional

from flyby.config import settings
from flyby.models.notification import ProximityAlert

logger = logging.getLogger("flyby.notifiers.desktop")

Permission = Literal["default", "granted", "denied"]
CommandRunner = Callable[[list[str]], Awaitable[int]]

APP_NAME = "FlyBy"


async def _run_command(argv: list[str]) -> int:
    process = await asyncio.create_subprocess_exec(
        *argv,
        stdout=asyncio.subprocess.DEVNULL,
        stderr=asyncio.subprocess.DEVNULL,
    )
    return await process.wait()


def _applescript_string(value: str) -> str:
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


class DesktopNotifier:
    """Show one replaceable desktop notification per flight.

    Capability is checked once, on the first ``request_permission`` call. A
    missing notification backend, or local notifications turned off in
    settings, counts as a denial and is never re-requested.
    """

    name = "desktop"

    def __init__(
        self,
        *,
        allowed: bool | None = None,
        platform: str | None = None,
        which: Callable[[str], Optional[str]] = shutil.which,
        runner: CommandRunner = _run_command,
    ) -> None:
        self.allowed = settings.desktop_notifications if allowed is None else allowed
        self.platform = platform or sys.platform
        self._which = which
        self._runner = runner
        self._command: Optional[str] = None
        self.permission: Permission = "default"

    @property
    def enabled(self) -> bool:
        return self.permission == "granted"

    def request_permission(self) -> Permission:
        if self.permission != "default":
            return self.permission

        if not self.allowed:
            logger.info("Desktop notifications disabled by configuration")
            self.permission = "denied"
            return self.permission

        backend = "osascript" if self.platform == "darwin" else "notify-send"
        self._command = self._which(backend)
        if self._command is None:
            logger.info("This system does not support desktop notifications (%s missing)", backend)
            self.permission = "denied"
        else:
            self.permission = "granted"
        return self.permission

    def _build_command(self, command: str, alert: ProximityAlert) -> list[str]:
        if self.platform == "darwin":
            script = (
                f"display notification {_applescript_string(alert.body)} "
                f"with title {_applescript_string(alert.title)}"
            )
            return [command, "-e", script]

        # Same tag replaces the previous bubble for this flight instead of stacking
        return [
            command,
            "--app-name",
            APP_NAME,
            "--icon",
            "airplane",
            "--hint",
            f"string:x-canonical-private-synchronous:{alert.flight_id}",
            "--hint",
            f"string:x-dunst-stack-tag:{alert.flight_id}",
            alert.title,
            alert.body,
        ]

    async def send(self, alert: ProximityAlert) -> bool:
        if not self.enabled or self._command is None:
            return False

        try:
            returncode = await self._runner(self._build_command(self._command, alert))
        except OSError as exc:
            logger.warning("Desktop notification failed to launch: %s", exc)
            return False

        if returncode != 0:
            logger.warning("Desktop notification exited with status %s", returncode)
            return False
        return True


__all__ = ["DesktopNotifier"]
