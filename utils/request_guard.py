"""
Request guard for the public website API.

Runs ahead of every route: CORS preflight, IP and bot blocking, URL
normalization, auth presence on protected routes, CSRF and per-method
rate limiting, then stamps security headers on the way out.
"""
import logging
import re
from typing import Dict, Iterable, List, Optional

from starlette.middleware.base import BaseHTTPMiddleware
from starlette.requests import Request
from starlette.responses import JSONResponse, RedirectResponse, Response

from config.settings import Settings
from utils.rate_limit import RateLimiter, get_client_id, rate_limit_headers
from utils.shared_utils import get_request_id

logger = logging.getLogger(__name__)

BAD_BOT_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"scrapy",
        r"curl(?!/7\.8[0-9])",  # modern curl is allowed
        r"python-requests",
        r"headless",
        r"phantom",
        r"selenium",
        r"bot.*scrape",
        r"scrape.*bot",
        r"grab",
        r"harvest",
        r"extract",
        r"spider",
        r"crawler",
    )
]

# Search engines and link unfurlers; these win over BAD_BOT_PATTERNS
ALLOWED_BOT_PATTERNS = [
    re.compile(pattern, re.IGNORECASE)
    for pattern in (
        r"googlebot",
        r"bingbot",
        r"slurp",
        r"duckduckbot",
        r"baiduspider",
        r"yandex",
        r"facebookexternalhit",
        r"linkedinbot",
        r"twitterbot",
        r"whatsapp",
        r"telegram",
        r"discordbot",
    )
]

PROTECTED_ROUTES = ("/admin", "/api/portfolio", "/api/upload")
ADMIN_LOGIN_PATH = "/admin/login"
PUBLIC_API_ROUTES = ("/api/contact", "/api/analytics", "/api/projects", "/api/projects/featured")
RATE_LIMIT_BYPASS_ROUTES = ("/_next", "/static", "/favicon.ico", "/robots.txt", "/sitemap.xml")

CORS_ALLOW_METHODS = "GET, POST, PUT, DELETE, OPTIONS"
CORS_ALLOW_HEADERS = "Content-Type, Authorization, X-CSRF-Token, X-Requested-With"


def get_client_ip(request: Request) -> str:
    forwarded_for = request.headers.get("x-forwarded-for")
    return (
        request.headers.get("cf-connecting-ip")
        or (forwarded_for.split(",")[0].strip() if forwarded_for else None)
        or request.headers.get("x-real-ip")
        or "unknown"
    )


def is_bad_bot(user_agent: str) -> bool:
    if any(pattern.search(user_agent) for pattern in ALLOWED_BOT_PATTERNS):
        return False
    return any(pattern.search(user_agent) for pattern in BAD_BOT_PATTERNS)


def _matches(pathname: str, prefixes: Iterable[str]) -> bool:
    return any(pathname.startswith(prefix) for prefix in prefixes)


def is_protected_route(pathname: str) -> bool:
    return pathname != ADMIN_LOGIN_PATH and _matches(pathname, PROTECTED_ROUTES)


def is_public_api_route(pathname: str) -> bool:
    return _matches(pathname, PUBLIC_API_ROUTES)


def should_bypass_rate_limit(pathname: str) -> bool:
    return _matches(pathname, RATE_LIMIT_BYPASS_ROUTES)


def normalize_url(request: Request, production: bool) -> Optional[str]:
    """Canonical URL when a redirect is needed, otherwise None."""
    url = request.url
    changes = {}

    hostname = url.hostname or ""
    if production and hostname.startswith("www."):
        netloc = url.netloc.replace("www.", "", 1)
        changes["netloc"] = netloc

    if url.path != "/" and url.path.endswith("/"):
        changes["path"] = url.path.rstrip("/") or "/"

    if not changes:
        return None
    return str(url.replace(**changes))


def has_credentials(request: Request) -> bool:
    return bool(
        request.cookies.get("admin-session")
        or request.headers.get("x-api-key")
        or request.headers.get("authorization")
    )


def csrf_token_valid(request: Request, development: bool) -> bool:
    if request.method in ("GET", "HEAD"):
        return True
    if is_public_api_route(request.url.path):
        return True
    if development:
        return True

    header_token = request.headers.get("x-csrf-token")
    cookie_token = request.cookies.get("csrf-token")
    return bool(header_token and cookie_token and header_token == cookie_token)


def preflight_response(request: Request, production: bool, allowed_origins: List[str]) -> Response:
    response = Response(status_code=204)
    origin = request.headers.get("origin")

    if production and origin:
        if origin in allowed_origins:
            response.headers["Access-Control-Allow-Origin"] = origin
    else:
        response.headers["Access-Control-Allow-Origin"] = origin or "*"

    response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
    response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS
    response.headers["Access-Control-Max-Age"] = "86400"
    return response


def add_security_headers(response: Response, production: bool) -> None:
    response.headers["X-Content-Type-Options"] = "nosniff"
    response.headers["X-XSS-Protection"] = "1; mode=block"
    response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"
    response.headers["Permissions-Policy"] = "camera=(), microphone=(), geolocation=(), interest-cohort=()"

    if production:
        response.headers["Expect-CT"] = "max-age=86400, enforce"

    if "application/json" in response.headers.get("content-type", ""):
        response.headers["Access-Control-Allow-Credentials"] = "true"
        response.headers["Access-Control-Allow-Methods"] = CORS_ALLOW_METHODS
        response.headers["Access-Control-Allow-Headers"] = CORS_ALLOW_HEADERS


def guard_error(error: str, status: int, request_id: str, headers: Optional[Dict[str, str]] = None, **extra) -> JSONResponse:
    content = {"success": False, "error": error}
    content.update(extra)
    content["requestId"] = request_id
    return JSONResponse(status_code=status, content=content, headers=headers)


class SiteGuardMiddleware(BaseHTTPMiddleware):
    """Cross-cutting checks for the public website API."""

    def __init__(self, app, settings: Settings, limiter: RateLimiter):
        super().__init__(app)
        self.settings = settings
        self.limiter = limiter
        self.production = settings.is_production
        self.development = settings.is_development
        self.blocked_ips = settings.blocked_ips_set
        self.allowed_origins = [o for o in [settings.site_url, *settings.allowed_origins_list] if o]

    async def dispatch(self, request: Request, call_next) -> Response:
        if request.method == "OPTIONS":
            return preflight_response(request, self.production, self.allowed_origins)

        response = await self._guard(request, call_next)
        add_security_headers(response, self.production)
        return response

    async def _guard(self, request: Request, call_next) -> Response:
        request_id = get_request_id(request)
        pathname = request.url.path

        client_ip = get_client_ip(request)
        if client_ip in self.blocked_ips:
            logger.warning(f"Blocked IP {client_ip} [{request_id}]")
            return guard_error("Access denied", 403, request_id)

        if is_bad_bot(request.headers.get("user-agent") or "unknown"):
            logger.warning(f"Bot detected from {client_ip} [{request_id}]")
            return guard_error("Bot detected", 403, request_id)

        normalized = normalize_url(request, self.production)
        if normalized:
            return RedirectResponse(normalized, status_code=308)

        if is_protected_route(pathname) and not has_credentials(request):
            if pathname.startswith("/api/"):
                return guard_error("Authentication required", 401, request_id)
            return RedirectResponse(ADMIN_LOGIN_PATH, status_code=307)

        if not csrf_token_valid(request, self.development):
            return guard_error("CSRF token validation failed", 403, request_id)

        if not pathname.startswith("/api/") or should_bypass_rate_limit(pathname):
            return await call_next(request)

        info = await self.limiter.check(get_client_id(request), request.method)
        headers = rate_limit_headers(info)
        if not info.allowed:
            logger.warning(f"Rate limit exceeded for {client_ip} on {request.method} {pathname} [{request_id}]")
            return guard_error(
                "Rate limit exceeded",
                429,
                request_id,
                headers=headers,
                message=f"Too many requests. Please try again in {info.retry_after} seconds.",
            )

        response = await call_next(request)
        response.headers.update(headers)
        return response
