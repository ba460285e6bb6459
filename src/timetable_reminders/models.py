"""Timetable, course, session and reminder data model."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional

from .utils.time_normalizer import time_to_minutes

UNKNOWN_INSTRUCTOR = "TBD"


class Weekday(Enum):
    """Day of the week, ordered Monday=0 .. Sunday=6."""

    MONDAY = 0
    TUESDAY = 1
    WEDNESDAY = 2
    THURSDAY = 3
    FRIDAY = 4
    SATURDAY = 5
    SUNDAY = 6

    @property
    def label(self) -> str:
        return self.name.capitalize()

    @property
    def calendar_index(self) -> int:
        """Sunday=0 .. Saturday=6, as calendar libraries number days."""
        return (self.value + 1) % 7

    @classmethod
    def from_date(cls, d) -> "Weekday":
        return cls(d.weekday())

    @classmethod
    def parse(cls, text) -> Optional["Weekday"]:
        """Parse a day name or abbreviation, or None if unknown."""
        if not isinstance(text, str):
            return None
        return DAY_NAME_TO_WEEKDAY.get(text.strip().lower().rstrip("."))


DAY_NAME_TO_WEEKDAY = {
    "monday": Weekday.MONDAY, "mon": Weekday.MONDAY,
    "tuesday": Weekday.TUESDAY, "tue": Weekday.TUESDAY, "tues": Weekday.TUESDAY,
    "wednesday": Weekday.WEDNESDAY, "wed": Weekday.WEDNESDAY,
    "thursday": Weekday.THURSDAY, "thu": Weekday.THURSDAY,
    "thur": Weekday.THURSDAY, "thurs": Weekday.THURSDAY,
    "friday": Weekday.FRIDAY, "fri": Weekday.FRIDAY,
    "saturday": Weekday.SATURDAY, "sat": Weekday.SATURDAY,
    "sunday": Weekday.SUNDAY, "sun": Weekday.SUNDAY,
}


class SessionKind(Enum):
    """Kind of teaching session."""

    LECTURE = "Lecture"
    LAB = "Lab"
    TUTORIAL = "Tutorial"
    SEMINAR = "Seminar"
    PROJECT = "Project"
    LIBRARY = "Library"

    @classmethod
    def parse(cls, text) -> "SessionKind":
        """Map free text like 'LEC', 'practical' or 'Lab' onto a kind (default Lecture)."""
        if not isinstance(text, str):
            return cls.LECTURE
        lowered = text.strip().lower()
        for keyword, kind in SESSION_KIND_KEYWORDS:
            if keyword in lowered:
                return kind
        return cls.LECTURE


# Checked in order, first keyword found wins
SESSION_KIND_KEYWORDS = [
    ("lab", SessionKind.LAB),
    ("practical", SessionKind.LAB),
    ("tut", SessionKind.TUTORIAL),
    ("seminar", SessionKind.SEMINAR),
    ("project", SessionKind.PROJECT),
    ("library", SessionKind.LIBRARY),
    ("self study", SessionKind.LIBRARY),
    ("lec", SessionKind.LECTURE),
]


@dataclass(frozen=True)
class Session:
    """One recurring weekly time block of a course."""
    day: Weekday
    start_time: str  # HH:MM, 24-hour
    end_time: str  # HH:MM, 24-hour
    location: Optional[str] = None
    kind: SessionKind = SessionKind.LECTURE

    @property
    def key(self) -> tuple[Weekday, str, str]:
        """Dedup identity within a course."""
        return self.day, self.start_time, self.end_time

    @property
    def sort_key(self) -> tuple[int, int, int]:
        return self.day.value, time_to_minutes(self.start_time), time_to_minutes(self.end_time)

    def to_dict(self) -> dict:
        return {
            "day": self.day.label,
            "startTime": self.start_time,
            "endTime": self.end_time,
            "location": self.location,
            "type": self.kind.value,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Session":
        day = Weekday.parse(data.get("day"))
        if day is None:
            raise ValueError(f"Invalid day: {data.get('day')!r}")
        return cls(
            day=day,
            start_time=data["startTime"],
            end_time=data["endTime"],
            location=data.get("location"),
            kind=SessionKind.parse(data.get("type")),
        )


@dataclass
class Course:
    """A subject with its weekly sessions."""
    code: str
    name: str
    instructor: Optional[str] = UNKNOWN_INSTRUCTOR
    schedule: list[Session] = field(default_factory=list)

    @property
    def key(self) -> str:
        return self.code.upper()

    def to_dict(self) -> dict:
        return {
            "code": self.code,
            "name": self.name,
            "instructor": self.instructor,
            "schedule": [session.to_dict() for session in self.schedule],
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Course":
        return cls(
            code=data["code"],
            name=data.get("name") or data["code"],
            instructor=data.get("instructor"),
            schedule=[Session.from_dict(item) for item in data.get("schedule", [])],
        )


@dataclass
class TimetableMetadata:
    """Descriptive fields stored alongside the courses."""
    semester: str
    academic_year: str
    last_updated: str  # ISO timestamp
    source: str

    def to_dict(self) -> dict:
        return {
            "semester": self.semester,
            "academicYear": self.academic_year,
            "lastUpdated": self.last_updated,
            "source": self.source,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "TimetableMetadata":
        return cls(
            semester=data.get("semester", "Unknown"),
            academic_year=data.get("academicYear", "Unknown"),
            last_updated=data.get("lastUpdated", ""),
            source=data.get("source", "unknown"),
        )


@dataclass
class Timetable:
    """All courses of one user's weekly timetable."""
    courses: list[Course]
    metadata: TimetableMetadata

    def find_course(self, code: str) -> Optional[Course]:
        key = code.upper()
        for course in self.courses:
            if course.key == key:
                return course
        return None

    def session_count(self) -> int:
        return sum(len(course.schedule) for course in self.courses)

    def to_dict(self) -> dict:
        return {
            "courses": [course.to_dict() for course in self.courses],
            "metadata": self.metadata.to_dict(),
        }

    @classmethod
    def from_dict(cls, data: dict) -> "Timetable":
        return cls(
            courses=[Course.from_dict(item) for item in data.get("courses", [])],
            metadata=TimetableMetadata.from_dict(data.get("metadata", {})),
        )


@dataclass(frozen=True)
class ReminderSpec:
    """A computed reminder instant for one session occurrence."""
    course: Course
    session: Session
    lead_minutes: int
    fire_instant: datetime
    class_start: datetime


class ReminderState(Enum):
    """Lifecycle of an issued reminder."""

    PENDING = "pending"
    SCHEDULED = "scheduled"
    FIRED = "fired"
    CANCELLED = "cancelled"


ALLOWED_TRANSITIONS = {
    ReminderState.PENDING: {ReminderState.SCHEDULED},
    ReminderState.SCHEDULED: {ReminderState.FIRED, ReminderState.CANCELLED},
    ReminderState.FIRED: set(),
    ReminderState.CANCELLED: set(),
}


@dataclass
class IssuedReminder:
    """A reminder handed to the dispatcher."""
    id: Optional[str]
    spec: ReminderSpec
    state: ReminderState = ReminderState.PENDING

    @property
    def course(self) -> Course:
        return self.spec.course

    @property
    def session(self) -> Session:
        return self.spec.session

    @property
    def fire_instant(self) -> datetime:
        return self.spec.fire_instant

    @property
    def lead_minutes(self) -> int:
        return self.spec.lead_minutes

    def transition(self, new_state: ReminderState) -> None:
        """Move to a new state, rejecting illegal transitions."""
        if new_state not in ALLOWED_TRANSITIONS[self.state]:
            raise ValueError(f"Cannot move reminder {self.id} from {self.state.value} to {new_state.value}")
        self.state = new_state

    def to_dict(self) -> dict:
        return {
            "id": self.id,
            "courseCode": self.course.code,
            "courseName": self.course.name,
            "day": self.session.day.label,
            "startTime": self.session.start_time,
            "location": self.session.location,
            "reminderTime": self.fire_instant.isoformat(),
            "reminderMinutes": self.lead_minutes,
            "state": self.state.value,
        }
