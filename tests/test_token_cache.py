import asyncio

import httpx
import pytest

from flyby.services.token_cache import TokenCache


class Clock:
    def __init__(self, now: float = 1_000_000.0):
        self.now = now

    def __call__(self) -> float:
        return self.now


def _cache(handler, clock=None, **kwargs):
    params = {"client_id": "client", "client_secret": "secret"}
    params.update(kwargs)
    return TokenCache(
        token_url="https://auth.test/token",
        transport=httpx.MockTransport(handler),
        clock=clock or Clock(),
        **params,
    )


@pytest.mark.anyio
async def test_returns_none_without_credentials():
    def handler(request: httpx.Request):  # pragma: no cover - must not be called
        raise AssertionError("unexpected token request")

    cache = _cache(handler, client_id="", client_secret="")

    assert cache.configured is False
    assert await cache.get_token() is None


@pytest.mark.anyio
async def test_concurrent_callers_share_one_refresh():
    calls = {"count": 0}

    async def handler(request: httpx.Request):
        calls["count"] += 1
        await asyncio.sleep(0.05)
        return httpx.Response(200, json={"access_token": "tok-1", "expires_in": 1800})

    cache = _cache(handler)

    first, second = await asyncio.gather(cache.get_token(), cache.get_token())

    assert (first, second) == ("tok-1", "tok-1")
    assert calls["count"] == 1


@pytest.mark.anyio
async def test_token_reused_until_early_expiry():
    calls = {"count": 0}

    def handler(request: httpx.Request):
        calls["count"] += 1
        return httpx.Response(
            200, json={"access_token": f"tok-{calls['count']}", "expires_in": 120}
        )

    clock = Clock()
    cache = _cache(handler, clock=clock)

    assert await cache.get_token() == "tok-1"
    clock.now += 59
    assert await cache.get_token() == "tok-1"
    # 120s lifetime minus the 60s buffer
    clock.now += 2
    assert await cache.get_token() == "tok-2"
    assert calls["count"] == 2


@pytest.mark.anyio
async def test_failed_refresh_does_not_poison_cache():
    responses = [
        httpx.Response(500, text="unavailable"),
        httpx.Response(200, json={"unexpected": True}),
        httpx.Response(200, json={"access_token": "tok-ok", "expires_in": 1800}),
    ]

    def handler(request: httpx.Request):
        return responses.pop(0)

    cache = _cache(handler)

    assert await cache.get_token() is None
    assert await cache.get_token() is None
    assert await cache.get_token() == "tok-ok"


@pytest.mark.anyio
async def test_network_error_returns_none():
    def handler(request: httpx.Request):
        raise httpx.ConnectError("refused", request=request)

    cache = _cache(handler)

    assert await cache.get_token() is None
