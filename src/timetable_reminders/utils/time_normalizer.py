"""Normalization of loosely formatted class times into 24-hour HH:MM.

Printed timetables usually omit AM/PM for afternoon slots ("01:15" means
13:15), so bare hours 1-8 are read as PM. This is a lossy heuristic: a
genuine 1-8 AM class is misread. It is kept on purpose because the observed
campus hours never start before 9 AM.
"""

import logging
import re
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_TIME = "09:00"

# Campus-hours clamp (applied after AM/PM adjustment)
EARLIEST_HOUR = 8
LATEST_HOUR = 18
EARLY_FALLBACK = "09:00"
LATE_FALLBACK = "17:00"

_MERIDIAN = r"(?P<meridian>[ap])\.?\s*m\.?"

_CLOCK_RE = re.compile(
    r"^(?P<hour>\d{1,2})[:.](?P<minute>\d{2})\s*(?:" + _MERIDIAN + r")?$",
    re.IGNORECASE,
)
_HOUR_ONLY_RE = re.compile(r"^(?P<hour>\d{1,2})\s*" + _MERIDIAN + r"$", re.IGNORECASE)

_HALF = r"\d{1,2}[:.]\d{2}(?:\s*[ap]\.?\s*m\.?)?|\d{1,2}\s*[ap]\.?\s*m\.?"
_RANGE_RE = re.compile(
    r"(?P<start>" + _HALF + r")\s*(?:-|–|—|to)\s*(?P<end>" + _HALF + r")",
    re.IGNORECASE,
)


def _split_clock(raw: str) -> Optional[tuple[int, int, Optional[str]]]:
    """Split a time string into (hour, minute, meridian) or None if malformed."""
    text = raw.strip()
    match = _CLOCK_RE.match(text) or _HOUR_ONLY_RE.match(text)
    if not match:
        return None

    hour = int(match.group("hour"))
    minute = int(match.groupdict().get("minute") or 0)
    meridian = match.group("meridian")

    if minute > 59:
        return None
    if meridian:
        if not 1 <= hour <= 12:
            return None
        return hour, minute, meridian.upper() + "M"
    if hour > 23:
        return None
    return hour, minute, None


def normalize_time(raw: Optional[str]) -> str:
    """
    Convert an ambiguous time string into canonical 24-hour HH:MM.

    Args:
        raw: Time such as "01:15", "9:30", "2:30 PM", "11am".

    Returns:
        HH:MM in 24-hour form. Malformed input returns DEFAULT_TIME.
    """
    if not isinstance(raw, str):
        logger.warning(f"Unparseable time {raw!r}, using {DEFAULT_TIME}")
        return DEFAULT_TIME

    parts = _split_clock(raw)
    if parts is None:
        logger.warning(f"Unparseable time {raw!r}, using {DEFAULT_TIME}")
        return DEFAULT_TIME

    hour, minute, meridian = parts
    if meridian == "PM" and hour != 12:
        hour += 12
    elif meridian == "AM" and hour == 12:
        hour = 0
    elif meridian is None and 1 <= hour <= 8:
        # Afternoon classes are printed without PM
        hour += 12

    if hour < EARLIEST_HOUR:
        logger.debug(f"Clamping {raw!r} to {EARLY_FALLBACK}")
        return EARLY_FALLBACK
    if hour > LATEST_HOUR:
        logger.debug(f"Clamping {raw!r} to {LATE_FALLBACK}")
        return LATE_FALLBACK

    return f"{hour:02d}:{minute:02d}"


def normalize_range(raw: Optional[str]) -> Optional[tuple[str, str]]:
    """
    Find a start-end range in text and normalize both halves independently.

    Args:
        raw: Text containing a range such as "13:15-14:10" or "2:30 PM - 3:25 PM".

    Returns:
        (start, end) in HH:MM, or None if the text holds no range.
    """
    if not isinstance(raw, str):
        return None

    match = _RANGE_RE.search(raw)
    if not match:
        return None

    return normalize_time(match.group("start")), normalize_time(match.group("end"))


def time_to_minutes(time_str: str) -> int:
    """Convert HH:MM to minutes since midnight."""
    hour, minute = time_str.split(":")
    return int(hour) * 60 + int(minute)
