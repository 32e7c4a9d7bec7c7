"""
Tests for the fixed-window rate limiter and its stores
"""
from unittest.mock import AsyncMock

import pytest
import redis
from starlette.requests import Request

from utils.rate_limit import (
    CMS_RATE_LIMITS,
    MemoryRateLimitStore,
    RateLimiter,
    RateLimitInfo,
    RateLimitRule,
    RedisRateLimitStore,
    WEBSITE_RATE_LIMITS,
    get_client_id,
    rate_limit_headers,
)

T0 = 1_900_000_000.0


def make_request(headers, client=None):
    raw = [(k.lower().encode(), v.encode()) for k, v in headers.items()]
    scope = {"type": "http", "method": "GET", "path": "/", "headers": raw}
    if client is not None:
        scope["client"] = client
    return Request(scope)


def test_website_budgets():
    assert {m: r.requests for m, r in WEBSITE_RATE_LIMITS.items()} == {"GET": 100, "POST": 20, "PUT": 10, "DELETE": 5}
    assert all(r.window_seconds == 900 for r in WEBSITE_RATE_LIMITS.values())


@pytest.mark.asyncio
async def test_request_after_budget_is_refused():
    limiter = RateLimiter({"GET": RateLimitRule(3, 60)})

    infos = [await limiter.check("client", "GET", now=T0 + i) for i in range(4)]

    assert [i.allowed for i in infos] == [True, True, True, False]
    assert [i.remaining for i in infos] == [2, 1, 0, 0]
    refused = infos[-1]
    assert 0 < refused.retry_after <= 60
    assert refused.reset == int(T0 + 60)


@pytest.mark.asyncio
async def test_window_resets_after_expiry():
    limiter = RateLimiter({"GET": RateLimitRule(2, 60)})
    for i in range(3):
        await limiter.check("client", "GET", now=T0 + i)

    info = await limiter.check("client", "GET", now=T0 + 61)

    assert info.allowed is True
    # Count restarted at 1
    assert info.remaining == 1


@pytest.mark.asyncio
async def test_methods_have_separate_budgets():
    limiter = RateLimiter(WEBSITE_RATE_LIMITS)
    for i in range(5):
        assert (await limiter.check("client", "DELETE", now=T0 + i)).allowed

    assert (await limiter.check("client", "DELETE", now=T0 + 6)).allowed is False
    assert (await limiter.check("client", "GET", now=T0 + 6)).allowed is True


@pytest.mark.asyncio
async def test_unknown_methods_share_the_default_budget():
    limiter = RateLimiter(CMS_RATE_LIMITS)
    await limiter.check("client", "POST", now=T0)
    info = await limiter.check("client", "PATCH", now=T0)
    assert info.limit == 500
    assert info.remaining == 498


@pytest.mark.asyncio
async def test_memory_store_sweeps_expired_entries():
    store = MemoryRateLimitStore()
    await store.hit("a", 10, T0)
    await store.hit("b", 100, T0)
    assert len(store) == 2

    await store.hit("c", 10, T0 + 50)

    assert len(store) == 2  # "a" expired and was swept


def test_client_id_prefers_forwarded_for():
    request = make_request({"X-Forwarded-For": "203.0.113.9, 10.0.0.1", "X-Real-IP": "10.0.0.2", "User-Agent": "Mozilla/5.0"})
    assert get_client_id(request) == "203.0.113.9_TW96aWxsYS"


def test_client_id_falls_back_to_real_ip_then_peer_address():
    assert get_client_id(make_request({"X-Real-IP": "10.0.0.2"}, client=("10.0.0.9", 5000))).startswith("10.0.0.2_")
    assert get_client_id(make_request({}, client=("10.0.0.9", 5000))).startswith("10.0.0.9_")
    assert get_client_id(make_request({})).startswith("unknown_")


def test_rate_limit_headers():
    headers = rate_limit_headers(RateLimitInfo(False, 20, 0, 1900000900, 42))
    assert headers == {
        "X-RateLimit-Limit": "20",
        "X-RateLimit-Remaining": "0",
        "X-RateLimit-Reset": "1900000900",
        "Retry-After": "42",
    }
    assert "Retry-After" not in rate_limit_headers(RateLimitInfo(True, 20, 19, 1900000900))


@pytest.mark.asyncio
async def test_redis_store_sets_expiry_on_first_hit():
    client = AsyncMock()
    client.incr.return_value = 1

    count, reset_at = await RedisRateLimitStore(client).hit("k", 900, T0)

    assert count == 1
    assert reset_at == T0 + 900
    client.pexpire.assert_awaited_once_with("rate_limit:k", 900_000)


@pytest.mark.asyncio
async def test_redis_store_reads_remaining_ttl():
    client = AsyncMock()
    client.incr.return_value = 4
    client.pttl.return_value = 30_000

    count, reset_at = await RedisRateLimitStore(client).hit("k", 900, T0)

    assert count == 4
    assert reset_at == T0 + 30


@pytest.mark.asyncio
async def test_redis_store_restores_missing_expiry():
    client = AsyncMock()
    client.incr.return_value = 2
    client.pttl.return_value = -1

    count, reset_at = await RedisRateLimitStore(client).hit("k", 60, T0)

    assert (count, reset_at) == (2, T0 + 60)
    client.pexpire.assert_awaited_once_with("rate_limit:k", 60_000)


@pytest.mark.asyncio
async def test_redis_store_falls_back_to_memory_on_errors():
    client = AsyncMock()
    client.incr.side_effect = redis.ConnectionError("down")
    store = RedisRateLimitStore(client)

    assert await store.hit("k", 60, T0) == (1, T0 + 60)
    assert await store.hit("k", 60, T0 + 1) == (2, T0 + 60)
