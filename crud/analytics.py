"""
AnalyticsRepository for tracked page/site events
"""

import json
from datetime import datetime, timedelta
from typing import List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import AnalyticsEvent
from models.analytics import AnalyticsTrack

TIMEFRAME_DAYS = {"1d": 1, "7d": 7, "30d": 30}


class AnalyticsRepository:
    def __init__(self, db: AsyncSession):
        self.db = db

    async def track_event(
        self,
        event: AnalyticsTrack,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
        session_id: Optional[str] = None,
    ) -> AnalyticsEvent:
        row = AnalyticsEvent(
            event_type=event.event_type,
            event_data=json.dumps(event.event_data),
            page_url=event.page_url,
            referrer=event.referrer,
            ip_address=ip_address,
            user_agent=user_agent,
            session_id=session_id,
            created_at=datetime.utcnow(),
        )
        self.db.add(row)
        await self.db.flush()
        return row

    async def list_events_since(self, timeframe: str, now: Optional[datetime] = None) -> List[AnalyticsEvent]:
        """Events newer than the timeframe window, most recent first."""
        start = (now or datetime.utcnow()) - timedelta(days=TIMEFRAME_DAYS.get(timeframe, 7))
        result = await self.db.execute(
            select(AnalyticsEvent)
            .where(AnalyticsEvent.created_at >= start)
            .order_by(AnalyticsEvent.created_at.desc(), AnalyticsEvent.id.desc())
        )
        return list(result.scalars().all())
