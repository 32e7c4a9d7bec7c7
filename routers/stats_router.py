"""
Stats Router - dashboard counters for the admin UI
"""
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from crud.booking import BookingRepository
from crud.message import MessageRepository
from crud.project import ProjectRepository
from database import get_db

stats_router = APIRouter(prefix="/api/v2/stats", tags=["stats"])


@stats_router.get("")
async def get_stats(db: AsyncSession = Depends(get_db)):
    """Totals shown on the admin dashboard; pending = confirmed bookings from today on"""
    # One session serves all three counts, so they run one after another
    total_projects = await ProjectRepository(db).count_projects()
    unread_messages = await MessageRepository(db).count_unread()
    pending_bookings = await BookingRepository(db).count_upcoming()
    return {
        "totalProjects": total_projects,
        "unreadMessages": unread_messages,
        "pendingBookings": pending_bookings,
    }
