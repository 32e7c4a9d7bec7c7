"""
Security utilities for user input sanitization
"""
import re
from typing import Any, Optional

import nh3

TAG_PATTERN = re.compile(r"<[^>]*>")
WHITESPACE_PATTERN = re.compile(r"\s+")
# Control whitespace dropped from multiline input (newlines survive)
MULTILINE_STRIP_PATTERN = re.compile(r"[\t\v\f\r]")

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$", re.IGNORECASE)

DEFAULT_MAX_LENGTH = 2000


def sanitize_input(value: Any, multiline: bool = False, max_length: Optional[int] = DEFAULT_MAX_LENGTH) -> str:
    """
    Strip markup from free-text input.

    Non-strings become "". Tags are removed; single-line input has every
    whitespace run collapsed to one space, multiline input keeps its
    newlines. The result is trimmed and cut to ``max_length``.
    """
    if not isinstance(value, str):
        return ""

    without_tags = TAG_PATTERN.sub("", value)
    if multiline:
        normalized = MULTILINE_STRIP_PATTERN.sub("", without_tags.replace("\r\n", "\n"))
    else:
        normalized = WHITESPACE_PATTERN.sub(" ", without_tags)

    trimmed = normalized.strip()
    return trimmed[:max_length] if max_length else trimmed


def sanitize_html(html: Optional[str]) -> Optional[str]:
    """Rich content from the CMS, cleaned of scripts and unsafe attributes."""
    if not html:
        return None
    return nh3.clean(html)


def is_valid_email(value: str) -> bool:
    return bool(EMAIL_PATTERN.match(value or ""))
