"""
Health Router - liveness probe and admin UI rollout helpers
"""
from fastapi import APIRouter, Request

health_router = APIRouter(tags=["health"])


@health_router.get("/api/health")
async def health(request: Request):
    return {"status": "ok", "environment": request.app.state.settings.node_env}


@health_router.get("/api/v1/legacy-admin")
async def legacy_admin(request: Request):
    """Where the legacy admin lives, for the new SPA's fallback link"""
    return {"redirectUrl": request.app.state.settings.legacy_admin_url}
