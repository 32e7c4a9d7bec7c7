from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Index
from sqlalchemy.orm import relationship
from datetime import datetime
from database import Base

BOOKING_STATUSES = ("confirmed", "cancelled", "completed", "no-show")


class Project(Base):
    """Portfolio project shown on the public website."""
    __tablename__ = "projects"

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String, nullable=False)
    slug = Column(String, unique=True, nullable=False, index=True)
    short_description = Column(Text, nullable=True)
    description = Column(Text, nullable=True)
    detailed_content = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="draft")
    featured = Column(Boolean, nullable=False, default=False)
    sort_order = Column(Integer, nullable=False, default=0)
    live_url = Column(String, nullable=True)
    repo_url = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    project_images = relationship(
        "ProjectImage",
        back_populates="project",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
        order_by="ProjectImage.sort_order",
    )


class ProjectImage(Base):
    __tablename__ = "project_images"

    id = Column(Integer, primary_key=True, index=True)
    project_id = Column(Integer, ForeignKey("projects.id", ondelete="CASCADE"), nullable=False, index=True)
    image_url = Column(String, nullable=False)
    alt_text = Column(String, nullable=True)
    image_type = Column(String, nullable=True)
    sort_order = Column(Integer, nullable=False, default=0)

    project = relationship("Project", back_populates="project_images")


class Message(Base):
    """Contact form submission."""
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    subject = Column(String, nullable=True)
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=True, default=False)
    is_archived = Column(Boolean, nullable=False, default=False)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class Booking(Base):
    """
    Booked meeting. Dates and times are stored as zero-padded text
    (YYYY-MM-DD / HH:MM) so lexical order matches chronological order.
    """
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String, nullable=False)
    email = Column(String, nullable=False)
    phone = Column(String, nullable=True)
    date = Column(String(10), nullable=False, index=True)
    time = Column(String(5), nullable=False)
    duration = Column(Integer, nullable=False)
    meeting_type = Column(String, nullable=False)
    notes = Column(Text, nullable=True)
    status = Column(String, nullable=False, default="confirmed", index=True)
    meeting_link = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    booking_reminders = relationship(
        "BookingReminder",
        back_populates="booking",
        cascade="all, delete-orphan",
        passive_deletes=True,
        lazy="selectin",
    )


class BookingReminder(Base):
    __tablename__ = "booking_reminders"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id", ondelete="CASCADE"), nullable=False, index=True)
    reminder_type = Column(String, nullable=True)
    sent_at = Column(DateTime, nullable=True)

    booking = relationship("Booking", back_populates="booking_reminders")


class WorkingHours(Base):
    """Weekly schedule. day_of_week follows 0=Sunday .. 6=Saturday."""
    __tablename__ = "working_hours"

    id = Column(Integer, primary_key=True, index=True)
    day_of_week = Column(Integer, nullable=False)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    is_working = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AvailabilityOverride(Base):
    __tablename__ = "availability_overrides"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(String(10), unique=True, nullable=False, index=True)
    is_available = Column(Boolean, nullable=False)
    # JSON list of {"start": "HH:MM", "end": "HH:MM"}
    custom_hours = Column(Text, nullable=True)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class BlockedSlot(Base):
    __tablename__ = "blocked_slots"

    id = Column(Integer, primary_key=True, index=True)
    date = Column(String(10), nullable=False, index=True)
    start_time = Column(String(5), nullable=False)
    end_time = Column(String(5), nullable=False)
    reason = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


class AnalyticsEvent(Base):
    __tablename__ = "analytics"

    id = Column(Integer, primary_key=True, index=True)
    event_type = Column(String, nullable=False, index=True)
    event_data = Column(Text, nullable=True)
    page_url = Column(String, nullable=True)
    referrer = Column(String, nullable=True)
    ip_address = Column(String, nullable=True)
    user_agent = Column(String, nullable=True)
    session_id = Column(String, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False, index=True)


class AdminUser(Base):
    __tablename__ = "admin_users"

    id = Column(Integer, primary_key=True, index=True)
    username = Column(String, unique=True, nullable=False, index=True)
    hashed_password = Column(String, nullable=False)
    role = Column(String, nullable=False, default="admin")
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)


Index("idx_blocked_slots_date_start", BlockedSlot.date, BlockedSlot.start_time)
