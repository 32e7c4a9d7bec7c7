"""
Portfolio CMS API
Projects, contact messages, bookings and analytics for the portfolio site
"""

from pathlib import Path
import logging
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import RedirectResponse
from fastapi.staticfiles import StaticFiles
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.middleware.base import BaseHTTPMiddleware
from starlette.middleware.sessions import SessionMiddleware

# Import routers
from auth import auth_router
from routers.analytics_router import analytics_router
from routers.bookings_router import bookings_router, bookings_v1_router
from routers.health_router import health_router
from routers.messages_router import messages_router, messages_v1_router
from routers.projects_router import projects_router, projects_v1_router
from routers.stats_router import stats_router
from utils.rate_limit import CMS_RATE_LIMITS, RateLimiter, RateLimiterMiddleware, build_rate_limit_store
from utils.responses import error_response
from utils.shared_utils import RequestLoggingMiddleware, UncaughtExceptionMiddleware, configure_logging
from utils.validation import NotFound, ValidationFailed
from database import init_db
from config.settings import Settings, get_settings, validate_runtime_config

logger = logging.getLogger(__name__)

SESSION_COOKIE = "cms.sid"
SESSION_MAX_AGE = 6 * 60 * 60


class SecurityHeadersMiddleware(BaseHTTPMiddleware):
    """Add security headers to all responses: CSP, HSTS, X-Frame-Options, X-Content-Type-Options"""

    def __init__(self, app, connect_sources=(), production: bool = False):
        super().__init__(app)
        connect_src = " ".join(["'self'", *connect_sources])
        self.csp = (
            "default-src 'self'; "
            "script-src 'self' 'unsafe-inline'; "
            "style-src 'self' 'unsafe-inline'; "
            f"connect-src {connect_src}; "
            "img-src 'self' data: blob:; "
            "font-src 'self' data:; "
            "object-src 'none'; "
            "base-uri 'self'; "
            "form-action 'self';"
        )
        self.production = production

    async def dispatch(self, request, call_next):
        response = await call_next(request)

        response.headers["Content-Security-Policy"] = self.csp

        # HTTPS is only guaranteed in production
        if self.production:
            response.headers["Strict-Transport-Security"] = "max-age=31536000; includeSubDomains"

        response.headers["X-Frame-Options"] = "DENY"
        response.headers["X-Content-Type-Options"] = "nosniff"
        response.headers["Referrer-Policy"] = "strict-origin-when-cross-origin"

        return response


class SPAStaticFiles(StaticFiles):
    """Static files with index.html served for unknown client-side routes."""

    async def get_response(self, path, scope):
        try:
            return await super().get_response(path, scope)
        except StarletteHTTPException as exc:
            if exc.status_code != 404:
                raise
            return await super().get_response("index.html", scope)


def register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(ValidationFailed)
    async def validation_failed_handler(request: Request, exc: ValidationFailed):
        return error_response(exc.message, status=400, issues=exc.issues or None)

    @app.exception_handler(NotFound)
    async def not_found_handler(request: Request, exc: NotFound):
        return error_response(exc.message, status=404)

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        issues = [
            {"path": list(err.get("loc", ())), "message": err.get("msg"), "code": err.get("type")}
            for err in exc.errors()
        ]
        return error_response("Invalid request", status=400, issues=issues)

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        response = error_response(exc.detail, status=exc.status_code)
        if exc.headers:
            response.headers.update(exc.headers)
        return response


def mount_admin(app: FastAPI, settings: Settings) -> None:
    """/admin: the built SPA behind ENABLE_NEW_ADMIN, the legacy admin otherwise."""
    dist = Path(settings.admin_ui_dist) if settings.admin_ui_dist else None

    if settings.enable_new_admin and dist is not None and dist.is_dir():
        app.mount("/admin", SPAStaticFiles(directory=dist, html=True), name="admin-ui")
        logger.info(f"Serving new admin UI from {dist}")
        return

    if settings.enable_new_admin:
        logger.warning("ENABLE_NEW_ADMIN is set but ADMIN_UI_DIST is missing; using the legacy admin")

    @app.get("/admin", include_in_schema=False)
    @app.get("/admin/{path:path}", include_in_schema=False)
    async def legacy_admin_redirect(path: str = ""):
        return RedirectResponse(settings.legacy_admin_url, status_code=307)


def create_app(settings: Optional[Settings] = None, limiter: Optional[RateLimiter] = None) -> FastAPI:
    settings = settings or get_settings()
    validate_runtime_config(settings)
    configure_logging(settings.log_level, settings.log_file)

    app = FastAPI(title="Portfolio CMS API")
    app.state.settings = settings

    register_exception_handlers(app)

    if limiter is None:
        limiter = RateLimiter(CMS_RATE_LIMITS, build_rate_limit_store(settings.redis_url))

    app.add_middleware(UncaughtExceptionMiddleware)
    app.add_middleware(RateLimiterMiddleware, limiter=limiter)
    app.add_middleware(RequestLoggingMiddleware)
    app.add_middleware(
        SecurityHeadersMiddleware,
        connect_sources=settings.allowed_origins_list,
        production=settings.is_production,
    )
    app.add_middleware(
        SessionMiddleware,
        secret_key=settings.session_secret,
        session_cookie=SESSION_COOKIE,
        max_age=SESSION_MAX_AGE,
        same_site="lax",
        https_only=settings.is_production,
    )

    # CORS MUST be near the bottom
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.allowed_origins_list,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.on_event("startup")
    async def initialize_database():
        """Create all tables."""
        try:
            await init_db()
            logger.info("Database initialized successfully")
        except Exception as e:
            logger.error(f"Database initialization failed: {e}")
            raise

    app.include_router(health_router)
    app.include_router(auth_router)
    app.include_router(projects_router)
    app.include_router(projects_v1_router)
    app.include_router(messages_router)
    app.include_router(messages_v1_router)
    app.include_router(bookings_router)
    app.include_router(bookings_v1_router)
    app.include_router(stats_router)
    app.include_router(analytics_router)

    mount_admin(app, settings)

    logger.info(f"CMS API configured for {settings.node_env}")
    return app


app = create_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=get_settings().port)
