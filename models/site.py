"""
Input checks for the public website forms.

These mirror what the browser forms send and report problems per field
as {"field", "message"} so the site can highlight them.
"""
import re
from typing import Any, Dict, List, Optional, Tuple

from models.bookings import DATE_PATTERN, MAX_AVAILABILITY_MINUTES, MIN_AVAILABILITY_MINUTES, STRICT_TIME_PATTERN
from utils.security_utils import is_valid_email, sanitize_input

DATE_RE = re.compile(DATE_PATTERN)
TIME_RE = re.compile(STRICT_TIME_PATTERN)

FieldError = Dict[str, str]


def to_int(value: Any) -> Optional[int]:
    """Whole number from a JSON number or numeric string; None otherwise."""
    if isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        return int(value) if value.is_integer() else None
    if isinstance(value, str):
        try:
            number = float(value.strip())
        except ValueError:
            return None
        return int(number) if number.is_integer() else None
    return None


def _text(record: dict, key: str) -> str:
    value = record.get(key)
    return value if isinstance(value, str) else ""


def parse_duration(value: Any, default: int = 30) -> Optional[int]:
    """Meeting length in minutes within the bookable range, or None."""
    duration = to_int(default if value is None else value)
    if duration is None or not MIN_AVAILABILITY_MINUTES <= duration <= MAX_AVAILABILITY_MINUTES:
        return None
    return duration


def validate_booking_request(payload: Any) -> Tuple[Optional[Dict[str, Any]], List[FieldError]]:
    """
    Sanitize and check a booking form.

    Returns (data, []) on success, (None, errors) otherwise. ``data`` uses
    the CMS field names; a missing meeting type defaults to "<duration>min".
    """
    record = payload if isinstance(payload, dict) else {}
    errors: List[FieldError] = []

    name = sanitize_input(record.get("name"), max_length=100)
    if len(name) < 2:
        errors.append({"field": "name", "message": "Name must be at least 2 characters long"})

    email = _text(record, "email").strip().lower()
    if not is_valid_email(email):
        errors.append({"field": "email", "message": "A valid email address is required"})

    date = _text(record, "date").strip()
    if not DATE_RE.match(date):
        errors.append({"field": "date", "message": "Date must be formatted as YYYY-MM-DD"})

    time = _text(record, "time").strip()
    if not TIME_RE.match(time):
        errors.append({"field": "time", "message": "Time must be formatted as HH:MM"})

    duration = parse_duration(record.get("duration"), default=0)
    if duration is None:
        errors.append({"field": "duration", "message": "Duration must be between 15 and 240 minutes"})

    meeting_type = sanitize_input(_text(record, "meetingType") or _text(record, "meeting_type"), max_length=100)
    phone = sanitize_input(record.get("phone"), max_length=50)
    notes = sanitize_input(record.get("notes"), multiline=True, max_length=2000)

    if errors:
        return None, errors

    return {
        "name": name,
        "email": email,
        "date": date,
        "time": time,
        "duration": duration,
        "meeting_type": meeting_type or f"{duration}min",
        "phone": phone or None,
        "notes": notes or None,
    }, []


def validate_contact_request(payload: Any) -> Tuple[Optional[Dict[str, Any]], Optional[str]]:
    """Contact form check; returns (data, None) or (None, error message)."""
    record = payload if isinstance(payload, dict) else {}
    name = _text(record, "name").strip()
    email = _text(record, "email").strip()
    message = _text(record, "message").strip()

    if not name or not email or not message:
        return None, "Name, email, and message are required"
    if not is_valid_email(email):
        return None, "Please provide a valid email address"

    return {
        "name": name,
        "email": email,
        "subject": _text(record, "subject").strip() or "Contact Form Submission",
        "message": message,
    }, None
