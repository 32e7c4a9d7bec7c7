import base64
import logging
import math
from dataclasses import dataclass
from time import time
from typing import Dict, Mapping, Optional, Tuple

import redis
import redis.asyncio as aioredis
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, Response

logger = logging.getLogger(__name__)

FIFTEEN_MINUTES = 15 * 60


@dataclass(frozen=True)
class RateLimitRule:
    requests: int
    window_seconds: int


@dataclass(frozen=True)
class RateLimitInfo:
    allowed: bool
    limit: int
    remaining: int
    reset: int
    retry_after: Optional[int] = None


# Public website budgets, per client and method
WEBSITE_RATE_LIMITS = {
    "GET": RateLimitRule(100, FIFTEEN_MINUTES),
    "POST": RateLimitRule(20, FIFTEEN_MINUTES),
    "PUT": RateLimitRule(10, FIFTEEN_MINUTES),
    "DELETE": RateLimitRule(5, FIFTEEN_MINUTES),
}

# CMS: one shared budget for every method
CMS_RATE_LIMITS = {
    "GET": RateLimitRule(500, FIFTEEN_MINUTES),
}


class MemoryRateLimitStore:
    """
    Fixed-window counters kept in process memory.
    Entries map key -> (count, reset_at) with reset_at in epoch seconds.
    """

    def __init__(self):
        self._windows: Dict[str, Tuple[int, float]] = {}

    def _sweep(self, now: float) -> None:
        expired = [key for key, (_, reset_at) in self._windows.items() if now > reset_at]
        for key in expired:
            del self._windows[key]

    async def hit(self, key: str, window_seconds: int, now: float) -> Tuple[int, float]:
        self._sweep(now)
        entry = self._windows.get(key)
        if entry is None:
            entry = (1, now + window_seconds)
        else:
            entry = (entry[0] + 1, entry[1])
        self._windows[key] = entry
        return entry

    def __len__(self) -> int:
        return len(self._windows)


class RedisRateLimitStore:
    """
    Fixed-window counters shared through Redis (INCR + PEXPIRE) on a redis.asyncio client.
    Any Redis error falls back to the in-memory store for that hit.
    """

    def __init__(self, client, prefix: str = "rate_limit:"):
        self.client = client
        self.prefix = prefix
        self.fallback = MemoryRateLimitStore()

    async def hit(self, key: str, window_seconds: int, now: float) -> Tuple[int, float]:
        redis_key = f"{self.prefix}{key}"
        try:
            count = int(await self.client.incr(redis_key))
            if count == 1:
                await self.client.pexpire(redis_key, window_seconds * 1000)
                return count, now + window_seconds
            ttl_ms = await self.client.pttl(redis_key)
            if ttl_ms is None or ttl_ms < 0:
                # Key lost its expiry; start the window over
                await self.client.pexpire(redis_key, window_seconds * 1000)
                ttl_ms = window_seconds * 1000
            return count, now + ttl_ms / 1000.0
        except redis.RedisError as e:
            logger.warning(f"Redis rate limit check failed: {e}. Falling back to in-memory.")
            return await self.fallback.hit(key, window_seconds, now)


def build_rate_limit_store(redis_url: Optional[str] = None):
    """Redis store when REDIS_URL is reachable, otherwise in-memory."""
    if not redis_url:
        logger.info("REDIS_URL not set. Using in-memory rate limiting.")
        return MemoryRateLimitStore()
    try:
        with redis.from_url(redis_url, socket_connect_timeout=2) as sync_client:
            sync_client.ping()
    except redis.RedisError as e:
        logger.warning(f"Redis connection failed: {e}. Falling back to in-memory rate limiting.")
        return MemoryRateLimitStore()
    logger.info("Redis connected successfully for rate limiting")
    client = aioredis.from_url(redis_url, decode_responses=True, socket_connect_timeout=2, socket_timeout=2)
    return RedisRateLimitStore(client)


class RateLimiter:
    """
    Per-client, per-method fixed-window limiter.

    Methods missing from ``limits`` are counted against the default
    method's rule and key.
    """

    def __init__(self, limits: Mapping[str, RateLimitRule], store=None, default_method: str = "GET"):
        if default_method not in limits:
            raise ValueError(f"limits must define a rule for {default_method}")
        self.limits = dict(limits)
        self.store = store if store is not None else MemoryRateLimitStore()
        self.default_method = default_method

    def resolve_method(self, method: str) -> str:
        method = (method or "").upper()
        return method if method in self.limits else self.default_method

    async def check(self, client_id: str, method: str, now: Optional[float] = None) -> RateLimitInfo:
        now = time() if now is None else now
        method = self.resolve_method(method)
        rule = self.limits[method]

        count, reset_at = await self.store.hit(f"{client_id}_{method}", rule.window_seconds, now)
        reset = math.ceil(reset_at)

        if count > rule.requests:
            retry_after = min(max(math.ceil(reset_at - now), 1), rule.window_seconds)
            return RateLimitInfo(False, rule.requests, 0, reset, retry_after)

        return RateLimitInfo(True, rule.requests, rule.requests - count, reset)


def get_client_id(request: Request) -> str:
    """Client IP joined with a short user-agent fingerprint."""
    xff = request.headers.get("x-forwarded-for")
    if xff:
        # Take first IP in the list
        client_ip = xff.split(",")[0].strip()
    else:
        client = request.client
        client_ip = request.headers.get("x-real-ip") or (client.host if client else "unknown")

    user_agent = request.headers.get("user-agent") or "unknown"
    fingerprint = base64.b64encode(user_agent.encode("utf-8")).decode("ascii")[:10]
    return f"{client_ip}_{fingerprint}"


def rate_limit_headers(info: RateLimitInfo) -> Dict[str, str]:
    headers = {
        "X-RateLimit-Limit": str(info.limit),
        "X-RateLimit-Remaining": str(info.remaining),
        "X-RateLimit-Reset": str(info.reset),
    }
    if info.retry_after:
        headers["Retry-After"] = str(info.retry_after)
    return headers


class RateLimiterMiddleware(BaseHTTPMiddleware):
    """
    CMS rate limiter: 500 requests per 15 minutes per client, shared by
    every method. Redis-backed when configured, in-memory otherwise.
    """

    def __init__(self, app, limiter: Optional[RateLimiter] = None):
        super().__init__(app)
        self.limiter = limiter or RateLimiter(CMS_RATE_LIMITS)

    async def dispatch(self, request: Request, call_next) -> Response:
        info = await self.limiter.check(get_client_id(request), request.method)

        if not info.allowed:
            return JSONResponse(
                status_code=429,
                content={"message": "Too many requests, please try again later."},
                headers=rate_limit_headers(info),
            )

        response = await call_next(request)
        response.headers.update(rate_limit_headers(info))
        return response
