"""
Availability Service - open meeting slots for a date
"""
import logging
from datetime import date as date_type, datetime
from typing import Dict, Iterable, List, Optional, Tuple

from pydantic import TypeAdapter, ValidationError

from crud.booking import BookingRepository
from models.bookings import WorkingPeriod
from utils.validation import ValidationFailed

logger = logging.getLogger(__name__)

SLOT_INCREMENT_MINUTES = 30

# Mon-Fri with a lunch break; keys follow 0=Sunday .. 6=Saturday
DEFAULT_WORKING_HOURS: Dict[int, List[Tuple[str, str]]] = {
    day: [("09:00", "12:00"), ("13:00", "17:00")] for day in range(1, 6)
}

WORKING_PERIODS = TypeAdapter(List[WorkingPeriod])


def to_minutes(value: str) -> int:
    hours, minutes = value.split(":")
    return int(hours) * 60 + int(minutes)


def to_hhmm(minutes: int) -> str:
    return f"{minutes // 60:02d}:{minutes % 60:02d}"


def day_of_week(day: date_type) -> int:
    """0=Sunday .. 6=Saturday"""
    return (day.weekday() + 1) % 7


def overlaps(start: int, end: int, other_start: int, other_end: int) -> bool:
    return start < other_end and other_start < end


def iterate_slot_starts(period_start: int, period_end: int, duration: int) -> List[int]:
    slots = []
    current = period_start
    while current + duration <= period_end:
        slots.append(current)
        current += SLOT_INCREMENT_MINUTES
    return slots


def parse_custom_hours(raw: Optional[str]) -> List[Tuple[str, str]]:
    """Stored override periods; malformed JSON or entries read as no periods."""
    if not raw:
        return []
    try:
        periods = WORKING_PERIODS.validate_json(raw)
    except ValidationError as e:
        logger.warning(f"Ignoring malformed custom_hours {raw!r}: {e.error_count()} error(s)")
        return []
    return [(p.start, p.end) for p in periods if p.start < p.end]


async def resolve_working_periods(repo: BookingRepository, day: date_type) -> List[Tuple[str, str]]:
    """
    Working periods for a date. An override for the date wins; otherwise
    the weekly schedule, or DEFAULT_WORKING_HOURS when none is stored.
    """
    override = await repo.get_override(day.isoformat())
    if override is not None:
        if not override.is_available:
            return []
        custom = parse_custom_hours(override.custom_hours)
        if custom:
            return custom

    weekday = day_of_week(day)
    if await repo.count_working_hours() == 0:
        return list(DEFAULT_WORKING_HOURS.get(weekday, []))

    rows = await repo.list_working_hours(weekday)
    return [(row.start_time, row.end_time) for row in rows if row.is_working]


def free_slots(
    periods: Iterable[Tuple[str, str]],
    duration: int,
    busy: Iterable[Tuple[int, int]],
    not_before: Optional[int] = None,
) -> List[str]:
    busy = list(busy)
    slots = []
    for period_start, period_end in periods:
        for start in iterate_slot_starts(to_minutes(period_start), to_minutes(period_end), duration):
            if not_before is not None and start <= not_before:
                continue
            if any(overlaps(start, start + duration, b_start, b_end) for b_start, b_end in busy):
                continue
            slots.append(to_hhmm(start))
    return sorted(set(slots))


async def compute_availability(
    repo: BookingRepository,
    date: str,
    duration: int,
    now: Optional[datetime] = None,
) -> dict:
    """
    Available start times for ``date`` and a meeting of ``duration`` minutes.

    Candidates step every SLOT_INCREMENT_MINUTES through each working
    period and are dropped when they overlap a blocked slot or a confirmed
    booking. Past dates have no slots; for today, starts already gone are
    dropped. ``now`` is UTC.
    """
    try:
        day = date_type.fromisoformat(date)
    except ValueError:
        raise ValidationFailed("Invalid date", [{"path": ["date"], "message": "Date must be a real calendar date", "code": "invalid_date"}])

    now = now or datetime.utcnow()
    periods = await resolve_working_periods(repo, day)
    blocked = await repo.list_blocked_slots(date)
    bookings = await repo.list_confirmed_on(date)

    busy = [(to_minutes(b.start_time), to_minutes(b.end_time)) for b in blocked]
    busy.extend((to_minutes(b.time), to_minutes(b.time) + b.duration) for b in bookings)

    today = now.date()
    if day < today:
        slots = []
    elif day == today:
        slots = free_slots(periods, duration, busy, not_before=now.hour * 60 + now.minute)
    else:
        slots = free_slots(periods, duration, busy)

    return {
        "date": date,
        "duration": duration,
        "availableSlots": slots,
        "workingHours": [{"start": start, "end": end} for start, end in periods],
        "blockedCount": len(blocked),
        "bookedCount": len(bookings),
    }
