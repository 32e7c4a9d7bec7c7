"""
Portfolio website API
Public form and project endpoints for the marketing site, proxied to the CMS
"""

import logging
from typing import Optional

import httpx
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config.settings import Settings, get_settings
from routers.site_router import site_router
from services.cms_client import CmsClient, build_cms_client
from utils.rate_limit import WEBSITE_RATE_LIMITS, RateLimiter, build_rate_limit_store
from utils.request_guard import SiteGuardMiddleware
from utils.shared_utils import RequestLoggingMiddleware, UncaughtExceptionMiddleware, configure_logging

logger = logging.getLogger(__name__)

SITE_ERROR_BODY = {"success": False, "error": "Internal server error"}


def create_site_app(
    settings: Optional[Settings] = None,
    cms_client: Optional[CmsClient] = None,
    limiter: Optional[RateLimiter] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> FastAPI:
    settings = settings or get_settings()
    configure_logging(settings.log_level, settings.log_file)

    app = FastAPI(title="Portfolio Website API")
    app.state.settings = settings
    app.state.cms_client = cms_client or build_cms_client(settings, transport=transport)

    if limiter is None:
        limiter = RateLimiter(WEBSITE_RATE_LIMITS, build_rate_limit_store(settings.redis_url))

    origins = [o for o in [settings.site_url, *settings.allowed_origins_list] if o]
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_credentials=True,
            allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            allow_headers=["Content-Type", "Authorization", "X-CSRF-Token", "X-Requested-With"],
        )

    # Preflights are answered by the guard, which sits outside CORS
    app.add_middleware(UncaughtExceptionMiddleware, content=SITE_ERROR_BODY)
    app.add_middleware(SiteGuardMiddleware, settings=settings, limiter=limiter)
    app.add_middleware(RequestLoggingMiddleware)

    app.include_router(site_router)

    logger.info(f"Website API proxying to {settings.cms_base_url}")
    return app


app = create_site_app()

if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=3000)
