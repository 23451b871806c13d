from __future__ import annotations

import asyncio
from datetime import UTC, datetime, timedelta
from typing import Any

import pytest

from driversync.exceptions import AuthenticationError, ProtocolError
from driversync.token import TokenCache

TOKEN_URL = "https://hr.example.com/auth/oauth/v2/token"
T0 = datetime(2026, 1, 1, 12, 0, tzinfo=UTC)


class _Clock:
    def __init__(self, now: datetime = T0) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


class _TokenTransport:
    def __init__(self, *, expires_in: int = 3600, delay: float = 0.0) -> None:
        self.calls: list[dict[str, Any]] = []
        self.expires_in = expires_in
        self.delay = delay
        self.fail = False

    async def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
        self.calls.append({"method": method, "url": url, **kwargs})
        if self.delay:
            await asyncio.sleep(self.delay)
        if self.fail:
            raise ProtocolError("HTTP 401 from token", status_code=401, endpoint=url, body="denied")
        return {"access_token": f"tok-{len(self.calls)}", "token_type": "Bearer", "expires_in": self.expires_in}


def _cache(transport: _TokenTransport, clock: _Clock) -> TokenCache:
    return TokenCache(transport, TOKEN_URL, "client-1", "secret-1", safety_margin=300, clock=clock)


@pytest.mark.asyncio
async def test_first_call_exchanges_client_credentials() -> None:
    transport = _TokenTransport()
    cache = _cache(transport, _Clock())

    token = await cache.get_valid_token()

    assert token.access_token == "tok-1"
    assert token.expires_at == T0 + timedelta(seconds=3600)
    call = transport.calls[0]
    assert call["method"] == "POST"
    assert call["url"] == TOKEN_URL
    assert call["form"] == {
        "grant_type": "client_credentials",
        "client_id": "client-1",
        "client_secret": "secret-1",
    }


@pytest.mark.asyncio
async def test_token_reused_before_safety_margin() -> None:
    transport = _TokenTransport()
    clock = _Clock()
    cache = _cache(transport, clock)

    first = await cache.get_valid_token()
    clock.advance(3600 - 301)
    second = await cache.get_valid_token()

    assert second is first
    assert len(transport.calls) == 1


@pytest.mark.asyncio
async def test_token_refreshed_inside_safety_margin() -> None:
    transport = _TokenTransport()
    clock = _Clock()
    cache = _cache(transport, clock)

    await cache.get_valid_token()
    clock.advance(3600 - 299)
    refreshed = await cache.get_valid_token()

    assert refreshed.access_token == "tok-2"
    assert len(transport.calls) == 2


@pytest.mark.asyncio
async def test_token_refreshed_after_expiry() -> None:
    transport = _TokenTransport()
    clock = _Clock()
    cache = _cache(transport, clock)

    await cache.get_valid_token()
    clock.advance(4000)
    refreshed = await cache.get_valid_token()

    assert refreshed.access_token == "tok-2"


@pytest.mark.asyncio
async def test_failed_exchange_without_token_raises_authentication_error() -> None:
    transport = _TokenTransport()
    transport.fail = True
    cache = _cache(transport, _Clock())

    with pytest.raises(AuthenticationError) as exc_info:
        await cache.get_valid_token()

    assert exc_info.value.endpoint == TOKEN_URL
    assert cache.token is None


@pytest.mark.asyncio
async def test_failed_refresh_keeps_token_that_is_still_valid() -> None:
    transport = _TokenTransport()
    clock = _Clock()
    cache = _cache(transport, clock)

    original = await cache.get_valid_token()
    clock.advance(3600 - 60)
    transport.fail = True

    with pytest.raises(AuthenticationError):
        await cache.get_valid_token()

    assert cache.token is original


@pytest.mark.asyncio
async def test_failed_refresh_drops_expired_token() -> None:
    transport = _TokenTransport()
    clock = _Clock()
    cache = _cache(transport, clock)

    await cache.get_valid_token()
    clock.advance(3601)
    transport.fail = True

    with pytest.raises(AuthenticationError):
        await cache.get_valid_token()

    assert cache.token is None


@pytest.mark.asyncio
async def test_malformed_token_response_is_authentication_error() -> None:
    class _EmptyTokenTransport:
        async def request_json(self, method: str, url: str, **kwargs: Any) -> Any:
            return {"token_type": "Bearer"}

    cache = TokenCache(_EmptyTokenTransport(), TOKEN_URL, "c", "s")

    with pytest.raises(AuthenticationError):
        await cache.get_valid_token()


@pytest.mark.asyncio
async def test_concurrent_callers_share_one_refresh() -> None:
    transport = _TokenTransport(delay=0.01)
    cache = _cache(transport, _Clock())

    tokens = await asyncio.gather(*(cache.get_valid_token() for _ in range(5)))

    assert len(transport.calls) == 1
    assert {t.access_token for t in tokens} == {"tok-1"}


@pytest.mark.asyncio
async def test_invalidate_forces_new_exchange() -> None:
    transport = _TokenTransport()
    cache = _cache(transport, _Clock())

    await cache.get_valid_token()
    cache.invalidate()
    token = await cache.get_valid_token()

    assert token.access_token == "tok-2"
