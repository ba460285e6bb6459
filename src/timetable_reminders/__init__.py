"""Timetable normalization and class-reminder scheduling."""

from .models import (
    Course,
    IssuedReminder,
    ReminderSpec,
    ReminderState,
    Session,
    SessionKind,
    Timetable,
    TimetableMetadata,
    Weekday,
)
from .pipeline import ProcessResult, TimetableService

__version__ = "0.1.0"
