"""
Analytics Service - Business logic for analytics metrics
"""
import logging
import secrets
from typing import Any, Dict, Optional

from sqlalchemy.ext.asyncio import AsyncSession

from crud.analytics import AnalyticsRepository
from models.analytics import AnalyticsEventOut, AnalyticsTrack
from utils.responses import serialize_many

logger = logging.getLogger(__name__)

RECENT_EVENTS_LIMIT = 100
SESSION_KEY = "analytics_session"


class AnalyticsService:
    """Service class for analytics business logic"""

    def __init__(self, db: AsyncSession):
        self.repo = AnalyticsRepository(db)

    async def track(
        self,
        event: AnalyticsTrack,
        ip_address: Optional[str],
        user_agent: Optional[str],
        session_id: str,
    ) -> int:
        row = await self.repo.track_event(event, ip_address, user_agent, session_id)
        logger.debug(f"Tracked {event.event_type} as event {row.id}")
        return row.id

    async def get_dashboard_analytics(self, timeframe: str) -> Dict[str, Any]:
        """
        Summary of tracked events inside the timeframe window.

        Args:
            timeframe: One of 1d, 7d, 30d

        Returns:
            Dict with timeframe, summary counts and the most recent events
        """
        events = await self.repo.list_events_since(timeframe)
        return {
            "timeframe": timeframe,
            "summary": {
                "totalEvents": len(events),
                "pageViews": sum(1 for e in events if e.event_type == "page_view"),
                "uniqueSessions": len({e.session_id for e in events}),
                "projectViews": sum(1 for e in events if e.event_type == "project_view"),
            },
            "recentEvents": serialize_many(AnalyticsEventOut, events[:RECENT_EVENTS_LIMIT]),
        }


def analytics_session_id(session: dict) -> str:
    """Visitor id kept in the signed session, minted on first use."""
    if SESSION_KEY not in session:
        session[SESSION_KEY] = secrets.token_hex(16)
    return session[SESSION_KEY]
