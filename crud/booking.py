"""
BookingRepository for database operations on Booking, BlockedSlot and
the availability tables
"""

from datetime import datetime
from typing import List, Optional, Tuple

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from database_models import AvailabilityOverride, BlockedSlot, Booking, WorkingHours
from models.bookings import BlockedSlotCreate, BookingCreate, BookingsQuery
from models.common import PaginationMeta, build_meta

CONFIRMED = "confirmed"


def utc_today() -> str:
    """Today's date (UTC) as YYYY-MM-DD."""
    return datetime.utcnow().date().isoformat()


class BookingRepository:
    """
    Repository class for bookings and the tables that shape availability.
    """

    def __init__(self, db: AsyncSession):
        self.db = db

    async def list_bookings(self, params: BookingsQuery, today: Optional[str] = None) -> Tuple[List[Booking], PaginationMeta]:
        """
        List bookings matching every supplied filter, soonest first.

        Args:
            params: Validated query (status, date, upcoming, page, page_size)
            today: Reference date for ``upcoming``; defaults to the UTC date

        Returns:
            Tuple of (bookings on the requested page, pagination meta)
        """
        conditions = []
        if params.status:
            conditions.append(Booking.status == params.status)
        if params.date:
            conditions.append(Booking.date == params.date)
        if params.upcoming:
            conditions.append(Booking.date >= (today or utc_today()))
            conditions.append(Booking.status == CONFIRMED)

        total = await self.db.scalar(select(func.count(Booking.id)).where(*conditions))
        result = await self.db.execute(
            select(Booking)
            .where(*conditions)
            .order_by(Booking.date.asc(), Booking.time.asc())
            .offset(params.offset)
            .limit(params.page_size)
        )
        return list(result.scalars().all()), build_meta(params.page, params.page_size, total or 0)

    async def get_booking_by_id(self, booking_id: int) -> Optional[Booking]:
        result = await self.db.execute(select(Booking).where(Booking.id == booking_id))
        return result.scalar_one_or_none()

    async def create_booking(self, data: BookingCreate) -> Booking:
        now = datetime.utcnow()
        booking = Booking(
            **data.model_dump(),
            status=CONFIRMED,
            created_at=now,
            updated_at=now,
            booking_reminders=[],
        )
        self.db.add(booking)
        await self.db.flush()
        return booking

    async def update_status(self, booking: Booking, status: str) -> Booking:
        booking.status = status
        booking.updated_at = datetime.utcnow()
        await self.db.flush()
        return booking

    async def count_upcoming(self, today: Optional[str] = None) -> int:
        return await self.db.scalar(
            select(func.count(Booking.id)).where(
                Booking.status == CONFIRMED,
                Booking.date >= (today or utc_today()),
            )
        ) or 0

    async def list_confirmed_on(self, date: str) -> List[Booking]:
        result = await self.db.execute(
            select(Booking)
            .where(Booking.date == date, Booking.status == CONFIRMED)
            .order_by(Booking.time.asc())
        )
        return list(result.scalars().all())

    # ------------------------------------------------------------------
    # Availability inputs
    # ------------------------------------------------------------------

    async def list_blocked_slots(self, date: str) -> List[BlockedSlot]:
        result = await self.db.execute(
            select(BlockedSlot).where(BlockedSlot.date == date).order_by(BlockedSlot.start_time.asc())
        )
        return list(result.scalars().all())

    async def create_blocked_slot(self, data: BlockedSlotCreate) -> BlockedSlot:
        blocked = BlockedSlot(**data.model_dump(), created_at=datetime.utcnow())
        self.db.add(blocked)
        await self.db.flush()
        return blocked

    async def get_blocked_slot(self, blocked_id: int) -> Optional[BlockedSlot]:
        result = await self.db.execute(select(BlockedSlot).where(BlockedSlot.id == blocked_id))
        return result.scalar_one_or_none()

    async def delete_blocked_slot(self, blocked: BlockedSlot) -> None:
        await self.db.delete(blocked)
        await self.db.flush()

    async def get_override(self, date: str) -> Optional[AvailabilityOverride]:
        result = await self.db.execute(select(AvailabilityOverride).where(AvailabilityOverride.date == date))
        return result.scalar_one_or_none()

    async def list_working_hours(self, day_of_week: Optional[int] = None) -> List[WorkingHours]:
        stmt = select(WorkingHours).order_by(WorkingHours.day_of_week.asc(), WorkingHours.start_time.asc())
        if day_of_week is not None:
            stmt = stmt.where(WorkingHours.day_of_week == day_of_week)
        result = await self.db.execute(stmt)
        return list(result.scalars().all())

    async def count_working_hours(self) -> int:
        return await self.db.scalar(select(func.count(WorkingHours.id))) or 0
