"""OAuth2 client-credentials token cache with single-flight refresh."""

from __future__ import annotations

import asyncio
import logging
import time
from typing import Callable, Optional

import httpx

from flyby.config import settings
from flyby.models.auth import BearerToken

logger = logging.getLogger("flyby.token_cache")

EARLY_EXPIRY_MS = 60_000


class TokenCache:
    """Lazily acquires a bearer token and shares it across concurrent callers.

    Only one refresh request is ever in flight; callers that arrive while it
    runs await the same result. A failed refresh yields ``None`` and leaves the
    cache empty so the next call tries again.
    """

    def __init__(
        self,
        *,
        client_id: str | None = None,
        client_secret: str | None = None,
        token_url: str | None = None,
        timeout: float | None = None,
        transport: httpx.AsyncBaseTransport | None = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.client_id = client_id if client_id is not None else settings.opensky_client_id
        self.client_secret = (
            client_secret if client_secret is not None else settings.opensky_client_secret
        )
        self.token_url = token_url or settings.opensky_auth_url
        self.timeout = timeout or settings.opensky_timeout
        self.transport = transport
        self._clock = clock
        self._token: Optional[BearerToken] = None
        self._refresh_task: Optional[asyncio.Task[Optional[BearerToken]]] = None

    @property
    def configured(self) -> bool:
        return bool(self.client_id and self.client_secret)

    def _now_ms(self) -> float:
        return self._clock() * 1000

    async def get_token(self) -> str | None:
        if not self.configured:
            return None

        token = self._token
        if token and token.is_valid(self._now_ms()):
            return token.value

        if self._refresh_task is None:
            self._refresh_task = asyncio.ensure_future(self._refresh())
        token = await asyncio.shield(self._refresh_task)
        return token.value if token else None

    def invalidate(self) -> None:
        self._token = None

    async def _refresh(self) -> Optional[BearerToken]:
        try:
            return await self._request_token()
        finally:
            self._refresh_task = None

    async def _request_token(self) -> Optional[BearerToken]:
        form = {
            "grant_type": "client_credentials",
            "client_id": self.client_id,
            "client_secret": self.client_secret,
        }
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout, transport=self.transport
            ) as client:
                response = await client.post(self.token_url, data=form)
                response.raise_for_status()
        except httpx.HTTPStatusError as exc:
            logger.error(
                "Token endpoint returned HTTP %s", exc.response.status_code
            )
            return None
        except httpx.RequestError as exc:
            logger.error("Error fetching access token: %s", exc)
            return None

        try:
            payload = response.json()
        except ValueError as exc:
            logger.error("Failed to parse token response: %s", exc)
            return None

        access_token = payload.get("access_token") if isinstance(payload, dict) else None
        if not access_token:
            logger.error("Token response did not include an access_token")
            return None

        try:
            expires_in = float(payload.get("expires_in") or 0)
        except (TypeError, ValueError):
            expires_in = 0.0

        self._token = BearerToken(
            value=access_token,
            expires_at_ms=self._now_ms() + expires_in * 1000 - EARLY_EXPIRY_MS,
        )
        logger.debug("Acquired access token valid for %ss", expires_in)
        return self._token


__all__ = ["EARLY_EXPIRY_MS", "TokenCache"]
