"""
Bookings Router - meetings, availability and blocked time
"""
import logging
import re

from fastapi import APIRouter, Depends, Request
from sqlalchemy.ext.asyncio import AsyncSession

from auth import require_admin
from crud.booking import BookingRepository
from database import get_db
from models.bookings import (
    DATE_PATTERN,
    AvailabilityQuery,
    BlockedSlotCreate,
    BlockedSlotOut,
    BookingCreate,
    BookingOut,
    BookingsQuery,
    BookingStatusUpdate,
)
from services.availability_service import compute_availability
from utils.responses import data_response, page_response, serialize, serialize_many
from utils.validation import NotFound, ValidationFailed, parse_body, parse_id, parse_query

logger = logging.getLogger(__name__)

bookings_router = APIRouter(prefix="/api/v2/bookings", tags=["bookings"])
bookings_v1_router = APIRouter(prefix="/api/v1/bookings", tags=["bookings-v1"])

DATE_RE = re.compile(DATE_PATTERN)


async def _list(request: Request, db: AsyncSession):
    params = parse_query(BookingsQuery, request)
    rows, meta = await BookingRepository(db).list_bookings(params)
    return page_response(serialize_many(BookingOut, rows), meta)


async def _get(raw_id: str, db: AsyncSession):
    booking = await BookingRepository(db).get_booking_by_id(parse_id(raw_id, "Booking"))
    if booking is None:
        raise NotFound("Booking")
    return data_response(serialize(BookingOut, booking))


async def _update_status(raw_id: str, request: Request, db: AsyncSession):
    booking_id = parse_id(raw_id, "Booking")
    body = await parse_body(BookingStatusUpdate, request, "Invalid status payload")

    repo = BookingRepository(db)
    booking = await repo.get_booking_by_id(booking_id)
    if booking is None:
        raise NotFound("Booking")
    booking = await repo.update_status(booking, body.status)
    logger.info(f"Booking {booking.id} status -> {booking.status}")
    return data_response(serialize(BookingOut, booking))


@bookings_router.get("")
async def list_bookings(request: Request, db: AsyncSession = Depends(get_db)):
    """List bookings filtered by status, date or upcoming"""
    return await _list(request, db)


@bookings_router.post("")
async def create_booking(request: Request, db: AsyncSession = Depends(get_db)):
    """Create a booking; new bookings are always confirmed"""
    data = await parse_body(BookingCreate, request, "Invalid booking payload")
    booking = await BookingRepository(db).create_booking(data)
    logger.info(f"Booking {booking.id} created for {booking.date} {booking.time}")
    return data_response(serialize(BookingOut, booking), status=201)


@bookings_router.get("/availability/{date}")
async def get_availability(date: str, request: Request, db: AsyncSession = Depends(get_db)):
    """Open start times for a date and meeting duration"""
    date = date.strip()
    if not DATE_RE.match(date):
        raise ValidationFailed("Date must be formatted as YYYY-MM-DD")
    params = parse_query(AvailabilityQuery, request)
    return await compute_availability(BookingRepository(db), date, params.duration)


@bookings_router.post("/block")
async def block_time(request: Request, db: AsyncSession = Depends(get_db), admin: dict = Depends(require_admin)):
    data = await parse_body(BlockedSlotCreate, request, "Invalid blocked slot payload")
    blocked = await BookingRepository(db).create_blocked_slot(data)
    logger.info(f"{admin['username']} blocked {blocked.date} {blocked.start_time}-{blocked.end_time}")
    return data_response(serialize(BlockedSlotOut, blocked), status=201)


@bookings_router.delete("/block/{blocked_id}")
async def unblock_time(blocked_id: str, db: AsyncSession = Depends(get_db), admin: dict = Depends(require_admin)):
    repo = BookingRepository(db)
    blocked = await repo.get_blocked_slot(parse_id(blocked_id, "Blocked slot"))
    if blocked is None:
        raise NotFound("Blocked slot")
    await repo.delete_blocked_slot(blocked)
    return {"success": True}


@bookings_router.get("/{booking_id}")
async def get_booking(booking_id: str, db: AsyncSession = Depends(get_db)):
    return await _get(booking_id, db)


@bookings_router.patch("/{booking_id}/status")
async def update_booking_status(booking_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await _update_status(booking_id, request, db)


@bookings_v1_router.get("")
async def list_bookings_v1(request: Request, db: AsyncSession = Depends(get_db)):
    return await _list(request, db)


@bookings_v1_router.get("/{booking_id}")
async def get_booking_v1(booking_id: str, db: AsyncSession = Depends(get_db)):
    return await _get(booking_id, db)


@bookings_v1_router.patch("/{booking_id}/status")
async def update_booking_status_v1(booking_id: str, request: Request, db: AsyncSession = Depends(get_db)):
    return await _update_status(booking_id, request, db)
