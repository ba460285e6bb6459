"""Recover structured timetable entries from loosely formatted model output."""

import json
import logging
import re
from dataclasses import dataclass
from typing import Optional

logger = logging.getLogger(__name__)

# Payload shapes accepted from the vision/LLM collaborator
SHAPE_ENTRIES = "entries"
SHAPE_COURSES = "courses"
SHAPE_LIST = "list"


@dataclass
class RawEntry:
    """One timetable cell as reported by the model, before validation."""
    day: Optional[str]
    subject: Optional[str]
    time: Optional[str]
    location: Optional[str] = None
    instructor: Optional[str] = None
    type: Optional[str] = None
    name: Optional[str] = None

    @classmethod
    def from_dict(cls, item) -> Optional["RawEntry"]:
        """
        Build an entry from a decoded JSON object.

        Missing and null fields are tolerated. Returns None when the item is
        not an object or a field holds a nested structure.
        """
        if not isinstance(item, dict):
            return None

        values = {}
        for key, aliases in _FIELD_ALIASES.items():
            value = _first_present(item, aliases)
            if isinstance(value, (dict, list)):
                logger.debug(f"Rejecting entry with nested {key!r}: {item}")
                return None
            if value is not None and not isinstance(value, str):
                value = str(value)
            values[key] = value.strip() if value else None

        if values["time"] is None:
            start = _first_present(item, ("start_time", "startTime", "start"))
            end = _first_present(item, ("end_time", "endTime", "end"))
            if isinstance(start, str) and isinstance(end, str):
                values["time"] = f"{start.strip()}-{end.strip()}"

        return cls(**values)


_FIELD_ALIASES = {
    "day": ("day",),
    "subject": ("subject", "subject_code", "courseCode", "code"),
    "time": ("time",),
    "location": ("location", "room"),
    "instructor": ("instructor", "lecturer"),
    "type": ("type", "class_type"),
    "name": ("name", "subject_name", "courseName"),
}


def _first_present(item: dict, keys) -> object:
    for key in keys:
        if item.get(key) is not None:
            return item[key]
    return None


def clean_json_response(response: str) -> str:
    """Remove markdown code blocks and surrounding whitespace."""
    if not response:
        return ""

    # Remove markdown code blocks
    response = re.sub(r"```(?:json)?\s*", "", response)
    return response.strip()


def _outermost(text: str, opening: str, closing: str) -> Optional[str]:
    first = text.find(opening)
    last = text.rfind(closing)
    if first == -1 or last <= first:
        return None
    return text[first:last + 1]


def extract_json_payload(response: str) -> Optional[dict | list]:
    """
    Decode the JSON payload embedded in a model response.

    Strips code fences, then decodes the substring from the first '{' to the
    last '}'. A bare array ('[' .. ']') is tried when no object decodes.

    Args:
        response: Raw model output, possibly wrapped in prose.

    Returns:
        The decoded object or list, or None when nothing decodes.
    """
    cleaned = clean_json_response(response)
    if not cleaned:
        return None

    candidates = [_outermost(cleaned, "{", "}"), _outermost(cleaned, "[", "]")]
    # A bare array of objects also spans '{'..'}'; try the array first then
    first_object = cleaned.find("{")
    first_array = cleaned.find("[")
    if first_array != -1 and (first_object == -1 or first_array < first_object):
        candidates.reverse()

    for candidate in candidates:
        if candidate is None:
            continue
        try:
            return json.loads(candidate)
        except json.JSONDecodeError as e:
            logger.debug(f"Candidate payload did not decode: {e}")

    logger.warning("No JSON payload found in model response")
    return None


def detect_shape(payload) -> Optional[str]:
    """Tag a decoded payload with its shape, or None if unrecognized."""
    if isinstance(payload, list):
        return SHAPE_LIST
    if isinstance(payload, dict):
        if isinstance(payload.get("entries"), list):
            return SHAPE_ENTRIES
        if isinstance(payload.get("courses"), list):
            return SHAPE_COURSES
    return None


def _flatten_courses(courses: list) -> tuple[list[RawEntry], int]:
    """Flatten {courseCode, schedule: [...]} objects into one entry per session."""
    entries = []
    rejected = 0
    for course in courses:
        if not isinstance(course, dict) or not isinstance(course.get("schedule"), list):
            rejected += 1
            continue
        for session in course["schedule"]:
            if not isinstance(session, dict):
                rejected += 1
                continue
            merged = {
                "courseCode": course.get("courseCode") or course.get("code"),
                "courseName": course.get("courseName") or course.get("name"),
                "instructor": course.get("instructor"),
            }
            merged.update({k: v for k, v in session.items() if v is not None})
            entry = RawEntry.from_dict(merged)
            if entry is None:
                rejected += 1
            else:
                entries.append(entry)
    return entries, rejected


def payload_to_entries(payload) -> tuple[list[RawEntry], int]:
    """
    Convert a decoded payload into raw entries.

    Returns:
        (entries, rejected) where rejected counts items of unrecognized shape.
    """
    shape = detect_shape(payload)
    if shape is None:
        logger.warning(f"Unrecognized payload shape: {type(payload).__name__}")
        return [], 0

    if shape == SHAPE_COURSES:
        return _flatten_courses(payload["courses"])

    items = payload if shape == SHAPE_LIST else payload["entries"]
    entries = []
    rejected = 0
    for item in items:
        entry = RawEntry.from_dict(item)
        if entry is None:
            rejected += 1
        else:
            entries.append(entry)
    return entries, rejected
