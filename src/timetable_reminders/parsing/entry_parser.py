"""Turn raw model output into validated course sessions."""

import logging
import re
from dataclasses import dataclass, field
from typing import Optional

from ..models import Session, SessionKind, UNKNOWN_INSTRUCTOR, Weekday
from ..utils.time_normalizer import normalize_range, time_to_minutes
from .patterns import course_name_for, match_subject
from .response_cleaner import RawEntry, extract_json_payload, payload_to_entries

logger = logging.getLogger(__name__)

# Fixed campus lunch slot, excluded regardless of subject text
LUNCH_SLOT = ("11:20", "12:20")

# Excluded when found in subject or type text (case-insensitive)
EXCLUDED_KEYWORDS = ("lunch", "recess", "break")

# Grid cells that are not classes (free periods); discarded as a whole cell
NON_CLASS_KEYWORDS = ("library", "self study", "project")


@dataclass
class ParsedEntry:
    """A validated session together with the course it belongs to."""
    code: str
    name: str
    instructor: Optional[str]
    session: Session


@dataclass
class ParseResult:
    """Parsed entries plus diagnostic counts."""
    entries: list[ParsedEntry] = field(default_factory=list)
    discarded: int = 0  # unrecognized or malformed
    excluded: int = 0  # lunch/break rule

    @property
    def total(self) -> int:
        return len(self.entries) + self.discarded + self.excluded


def is_non_class(text: Optional[str]) -> bool:
    """Check for library, self-study and project cells."""
    lowered = (text or "").lower()
    return any(keyword in lowered for keyword in NON_CLASS_KEYWORDS)


def is_excluded(entry: RawEntry, time_range: Optional[tuple[str, str]]) -> bool:
    """Apply the lunch-slot and break-keyword exclusion rules independently."""
    if time_range == LUNCH_SLOT:
        return True
    text = f"{entry.subject or ''} {entry.type or ''}".lower()
    return any(keyword in text for keyword in EXCLUDED_KEYWORDS)


def parse_entry(entry: RawEntry) -> Optional[ParsedEntry]:
    """
    Validate a single raw entry.

    Returns:
        ParsedEntry, or None when the day, time range or subject is not recognized.
    """
    day = Weekday.parse(entry.day)
    if day is None:
        logger.warning(f"Unknown day name: {entry.day!r}")
        return None

    time_range = normalize_range(entry.time)
    if time_range is None:
        logger.warning(f"No time range in {entry.time!r}")
        return None

    if is_non_class(entry.subject):
        logger.warning(f"Not a class: {entry.subject!r}")
        return None

    start_time, end_time = time_range
    if time_to_minutes(start_time) >= time_to_minutes(end_time):
        logger.warning(f"Start {start_time} is not before end {end_time} in {entry.time!r}")
        return None

    pattern_name, match = match_subject(entry.subject)
    if match is None:
        logger.warning(f"Unrecognized subject: {entry.subject!r}")
        return None
    logger.debug(f"Subject {entry.subject!r} matched {pattern_name}")

    session = Session(
        day=day,
        start_time=start_time,
        end_time=end_time,
        location=entry.location or match.location,
        kind=SessionKind.parse(entry.type),
    )
    return ParsedEntry(
        code=match.code,
        name=entry.name or course_name_for(match.code),
        instructor=match.instructor or entry.instructor or UNKNOWN_INSTRUCTOR,
        session=session,
    )


def parse_entries(entries: list[RawEntry]) -> ParseResult:
    """
    Parse raw entries, dropping excluded slots and unrecognized cells.

    Args:
        entries: Raw entries from the model output.

    Returns:
        ParseResult with the surviving entries and discard/exclusion counts.
    """
    result = ParseResult()
    for entry in entries:
        if is_excluded(entry, normalize_range(entry.time)):
            logger.debug(f"Excluding {entry.subject!r} at {entry.time!r}")
            result.excluded += 1
            continue

        parsed = parse_entry(entry)
        if parsed is None:
            result.discarded += 1
        else:
            result.entries.append(parsed)

    logger.info(
        f"Parsed {len(result.entries)} entries "
        f"({result.discarded} discarded, {result.excluded} excluded)"
    )
    return result


def parse_model_output(response: str) -> ParseResult:
    """
    Parse model output that is either JSON (possibly wrapped) or raw grid text.

    Args:
        response: Text returned by the vision/LLM collaborator.

    Returns:
        ParseResult; unrecognized payload items count as discarded.
    """
    payload = extract_json_payload(response)
    if payload is None:
        logger.info("No JSON payload, falling back to grid text parsing")
        return parse_entries(parse_text_grid(response or ""))

    raw_entries, rejected = payload_to_entries(payload)
    result = parse_entries(raw_entries)
    result.discarded += rejected
    return result


# ==================== Raw Text Fallback ====================

GRID_DAYS = ["Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday"]

_SLOT_RE = re.compile(r"\d{1,2}[:.]\d{2}\s*-\s*\d{1,2}[:.]\d{2}")


def parse_text_grid(text: str) -> list[RawEntry]:
    """
    Read entries from OCR text of a printed timetable grid.

    Inside the grid (after a MONDAY/TUESDAY header, before a CLASSROOM or
    SUBJECT CODE footer) a line holding a time range opens a slot, and the
    following lines are that slot's cells for Monday, Tuesday, ... in order.
    Each cell line may hold several whitespace-separated subject tokens.
    Library, self-study and project cells are kept whole so they are
    discarded as one entry.
    """
    entries = []
    in_grid = False
    slot = None
    day_index = 0

    for line in (raw.strip() for raw in text.splitlines()):
        if not line:
            continue
        upper = line.upper()

        if "MONDAY" in upper or "TUESDAY" in upper:
            in_grid = True
            continue
        if not in_grid:
            continue
        if "CLASSROOM" in upper or "SUBJECT CODE" in upper:
            break

        slot_match = _SLOT_RE.search(line)
        if slot_match:
            slot = slot_match.group(0)
            day_index = 0
            continue

        if slot is None or day_index >= len(GRID_DAYS):
            continue

        day = GRID_DAYS[day_index]
        if is_non_class(line):
            entries.append(RawEntry(day=day, subject=line, time=slot))
        else:
            for token in line.split():
                entries.append(RawEntry(day=day, subject=token, time=slot))
        day_index += 1

    logger.info(f"Grid text produced {len(entries)} raw entries")
    return entries


_SEMESTER_RE = re.compile(r"(\d+(?:ST|ND|RD|TH))\s+SEMESTER", re.IGNORECASE)
_ACADEMIC_YEAR_RE = re.compile(r"(?<!\d)(\d{4}-\d{2,4})(?![-\d])")


def extract_metadata(text: str) -> dict:
    """
    Pull semester and academic year labels out of model output.

    JSON output is read from its "metadata" object; raw text is scanned for
    labels like "7TH SEMESTER" and "2024-25".
    """
    payload = extract_json_payload(text) if text else None
    if payload is not None:
        labels = payload.get("metadata") if isinstance(payload, dict) else None
        if not isinstance(labels, dict):
            return {}
        metadata = {}
        for source_key, key in (("semester", "semester"), ("academicYear", "academic_year")):
            value = labels.get(source_key)
            if isinstance(value, str) and value.strip():
                metadata[key] = value.strip()
        return metadata

    metadata = {}
    for line in (text or "").splitlines():
        semester = _SEMESTER_RE.search(line)
        if semester:
            metadata["semester"] = semester.group(1).upper()
        year = _ACADEMIC_YEAR_RE.search(line)
        if year:
            metadata["academic_year"] = year.group(1)
    return metadata
