"""Push notifications through an ntfy server (https://ntfy.sh/)."""

from __future__ import annotations

import logging
from typing import Optional

import httpx

from flyby.config import settings
from flyby.models.notification import ProximityAlert

logger = logging.getLogger("flyby.notifiers.ntfy")

DEFAULT_TITLE = "Flight Alert"


def header_safe(value: str) -> str:
    """Drop characters HTTP header encodings cannot carry (emoji and other non-ASCII)."""

    return value.encode("ascii", "ignore").decode("ascii").strip()


class NtfyNotifier:
    """Publish alert messages to ``{base_url}/{topic}``.

    An unset server URL disables the channel; that is not an error.
    """

    name = "ntfy"

    def __init__(
        self,
        *,
        base_url: str | None = None,
        topic: str | None = None,
        priority: int | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        url = base_url if base_url is not None else settings.ntfy_url
        self.base_url = url.rstrip("/") if url else None
        self.topic = topic or settings.ntfy_topic
        self.priority = priority or settings.ntfy_priority
        self.timeout = timeout or settings.ntfy_timeout
        self.transport = transport

    @property
    def enabled(self) -> bool:
        return bool(self.base_url)

    async def publish(
        self,
        title: str,
        message: str,
        *,
        priority: int | None = None,
        tags: Optional[list[str]] = None,
        click: str | None = None,
        attach: str | None = None,
    ) -> bool:
        if not self.enabled:
            logger.debug("ntfy not configured, skipping notification")
            return False

        headers = {
            "Title": header_safe(title) or DEFAULT_TITLE,
            "Priority": str(priority or self.priority),
        }
        tag_list = [header_safe(tag) for tag in (tags or [])]
        tag_list = [tag for tag in tag_list if tag and tag != "airplane"]
        headers["Tags"] = ",".join(["airplane", *tag_list])
        if click:
            headers["Click"] = header_safe(click)
        if attach:
            headers["Attach"] = header_safe(attach)

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(
                    f"{self.base_url}/{self.topic}",
                    content=message.encode("utf-8"),
                    headers=headers,
                )
        except httpx.RequestError as exc:
            logger.error("Error sending ntfy notification: %s", exc)
            return False

        if response.status_code >= 400:
            logger.warning(
                "ntfy notification failed: status=%s body=%s",
                response.status_code,
                response.text,
            )
            return False

        logger.info("ntfy notification sent: %s", headers["Title"])
        return True

    async def send(self, alert: ProximityAlert) -> bool:
        return await self.publish(
            alert.title,
            alert.body,
            tags=alert.tags,
            click=alert.click_url,
        )


__all__ = ["DEFAULT_TITLE", "NtfyNotifier", "header_safe"]
