"""Merge parsed entries into courses and wrap them as a timetable."""

import logging
from dataclasses import replace
from datetime import datetime
from typing import Optional

from ..models import (
    Course,
    Session,
    Timetable,
    TimetableMetadata,
    UNKNOWN_INSTRUCTOR,
)
from ..utils.semester_logic import current_academic_year, current_semester
from .entry_parser import ParsedEntry

logger = logging.getLogger(__name__)


def _is_unknown(instructor: Optional[str]) -> bool:
    return not instructor or instructor.strip().upper() == UNKNOWN_INSTRUCTOR


def normalize_schedule(sessions: list[Session]) -> list[Session]:
    """
    Deduplicate sessions by (day, start, end), keeping the first, and sort them.

    Sorted by day (Monday first), then start time, then end time.
    """
    seen = set()
    unique = []
    for session in sessions:
        if session.key in seen:
            logger.debug(f"Dropping duplicate session {session.key}")
            continue
        seen.add(session.key)
        unique.append(session)
    return sorted(unique, key=lambda s: s.sort_key)


def aggregate(entries: list[ParsedEntry]) -> list[Course]:
    """
    Group parsed entries into courses keyed by uppercased code.

    The first entry's name and instructor are kept, except that a known
    instructor from a later entry replaces an unknown ("TBD") one.

    Args:
        entries: Parsed entries in any order.

    Returns:
        Courses sorted by code, each with a deduplicated, sorted schedule.
    """
    courses: dict[str, Course] = {}
    for entry in entries:
        key = entry.code.upper()
        course = courses.get(key)
        if course is None:
            courses[key] = Course(
                code=key,
                name=entry.name,
                instructor=entry.instructor or UNKNOWN_INSTRUCTOR,
                schedule=[entry.session],
            )
            continue

        if _is_unknown(course.instructor) and not _is_unknown(entry.instructor):
            course.instructor = entry.instructor
        course.schedule.append(entry.session)

    for course in courses.values():
        course.schedule = normalize_schedule(course.schedule)

    result = [courses[key] for key in sorted(courses)]
    logger.info(f"Aggregated {len(entries)} entries into {len(result)} courses")
    return result


def build_timetable(
    courses: list[Course],
    source: str,
    now: datetime,
    semester: Optional[str] = None,
    academic_year: Optional[str] = None
) -> Timetable:
    """
    Wrap courses with metadata.

    Args:
        courses: Aggregated courses.
        source: Where the data came from (e.g. "gemini", "manual_parser").
        now: Current time, used for lastUpdated and default labels.
        semester: Semester label, defaults to the month-based semester.
        academic_year: Academic year label, defaults to the month-based year.
    """
    metadata = TimetableMetadata(
        semester=semester or current_semester(now.date()),
        academic_year=academic_year or current_academic_year(now.date()),
        last_updated=now.isoformat(),
        source=source,
    )
    return Timetable(courses=courses, metadata=metadata)


def replace_session(
    timetable: Timetable,
    code: str,
    old: Session,
    new: Session
) -> Timetable:
    """
    Return a copy of the timetable with one session of a course edited.

    Raises:
        KeyError: If the course or the session is not in the timetable.
    """
    course = timetable.find_course(code)
    if course is None:
        raise KeyError(f"Unknown course: {code}")
    if old not in course.schedule:
        raise KeyError(f"Session {old.key} not found in {course.code}")

    schedule = [new if session == old else session for session in course.schedule]
    edited = replace(course, schedule=normalize_schedule(schedule))
    courses = [edited if c is course else c for c in timetable.courses]
    return replace(timetable, courses=courses)
