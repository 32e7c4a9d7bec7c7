from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, model_validator

from models.common import PageQuery

DATE_PATTERN = r"^\d{4}-\d{2}-\d{2}$"
TIME_PATTERN = r"^\d{2}:\d{2}$"
STRICT_TIME_PATTERN = r"^(?:[01]\d|2[0-3]):[0-5]\d$"

MIN_BOOKING_MINUTES = 15
MAX_BOOKING_MINUTES = 480
MIN_AVAILABILITY_MINUTES = 15
MAX_AVAILABILITY_MINUTES = 240
DEFAULT_AVAILABILITY_MINUTES = 30

BookingStatus = Literal["confirmed", "cancelled", "completed", "no-show"]


class BookingsQuery(PageQuery):
    status: Optional[BookingStatus] = None
    date: Optional[str] = Field(default=None, pattern=DATE_PATTERN)
    upcoming: Optional[bool] = None


class BookingCreate(BaseModel):
    """
    Booking request. Any status supplied by the caller is dropped; new
    bookings are always confirmed.
    """
    model_config = ConfigDict(str_strip_whitespace=True, extra="ignore")

    name: str = Field(min_length=1)
    email: EmailStr
    phone: Optional[str] = None
    date: str = Field(pattern=DATE_PATTERN)
    time: str = Field(pattern=TIME_PATTERN)
    duration: int = Field(ge=MIN_BOOKING_MINUTES, le=MAX_BOOKING_MINUTES, strict=True)
    meeting_type: str = Field(min_length=1)
    notes: Optional[str] = None


class BookingStatusUpdate(BaseModel):
    status: BookingStatus


class BlockedSlotCreate(BaseModel):
    model_config = ConfigDict(str_strip_whitespace=True)

    date: str = Field(pattern=DATE_PATTERN)
    start_time: str = Field(pattern=STRICT_TIME_PATTERN)
    end_time: str = Field(pattern=STRICT_TIME_PATTERN)
    reason: Optional[str] = None

    @model_validator(mode="after")
    def check_range(self):
        if self.end_time <= self.start_time:
            raise ValueError("end_time must be after start_time")
        return self


class WorkingPeriod(BaseModel):
    """One stored {start, end} entry of an availability override."""
    start: str = Field(pattern=STRICT_TIME_PATTERN)
    end: str = Field(pattern=STRICT_TIME_PATTERN)


class AvailabilityQuery(BaseModel):
    duration: int = Field(
        default=DEFAULT_AVAILABILITY_MINUTES,
        ge=MIN_AVAILABILITY_MINUTES,
        le=MAX_AVAILABILITY_MINUTES,
    )


class BookingReminderOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    booking_id: int
    reminder_type: Optional[str] = None
    sent_at: Optional[datetime] = None


class BookingOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    phone: Optional[str] = None
    date: str
    time: str
    duration: int
    meeting_type: str
    notes: Optional[str] = None
    status: str
    meeting_link: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    booking_reminders: List[BookingReminderOut] = []


class BlockedSlotOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    date: str
    start_time: str
    end_time: str
    reason: Optional[str] = None
    created_at: datetime
