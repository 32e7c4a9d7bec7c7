"""
Analytics Router - event tracking and the admin analytics summary
"""
from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_admin
from database import get_db
from models.analytics import AnalyticsQuery, AnalyticsTrack
from services.analytics_service import AnalyticsService, analytics_session_id
from utils.shared_utils import log_endpoint_event
from utils.validation import parse_body, parse_query

# Create router
analytics_router = APIRouter(prefix="/api/v2/analytics", tags=["analytics"])


@analytics_router.post("/track")
async def track_event(request: Request, db: AsyncSession = Depends(get_db)):
    """Record a page or site event"""
    event = await parse_body(AnalyticsTrack, request, "Invalid analytics payload")
    event_id = await AnalyticsService(db).track(
        event,
        ip_address=request.client.host if request.client else None,
        user_agent=request.headers.get("user-agent"),
        session_id=analytics_session_id(request.session),
    )
    return {"success": True, "eventId": event_id}


@analytics_router.get("")
async def get_analytics(request: Request, db: AsyncSession = Depends(get_db), admin: dict = Depends(require_admin)):
    """Summary of tracked events for 1d, 7d or 30d"""
    params = parse_query(AnalyticsQuery, request)
    dashboard = await AnalyticsService(db).get_dashboard_analytics(params.timeframe)
    log_endpoint_event("/api/v2/analytics", "success", {"timeframe": params.timeframe, "events": dashboard["summary"]["totalEvents"]})
    return dashboard
