"""Class reminder scheduling against a notification dispatcher.

The dispatcher is any object with two coroutines:

    schedule(fire_instant, payload) -> id or None
    cancel_all(scope) -> number of cancelled reminders

A None id means that one reminder could not be scheduled; it is counted as
skipped and the batch goes on. Exceptions raised by the dispatcher mean it
is unavailable and propagate to the caller.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import Optional

from ..config import config
from ..models import IssuedReminder, ReminderSpec, ReminderState, Timetable
from ..utils.semester_logic import format_time
from .projector import project_reminders

logger = logging.getLogger(__name__)


def reminder_key(spec: ReminderSpec) -> str:
    """Stable key for a reminder: course, day, start and end time, lead time."""
    session = spec.session
    return (
        f"{spec.course.code}-{session.day.label}-"
        f"{session.start_time}-{session.end_time}-{spec.lead_minutes}"
    )


def build_payload(spec: ReminderSpec) -> dict:
    """Build the notification title, body and data for a reminder."""
    course = spec.course
    session = spec.session
    location = session.location or "TBD"

    return {
        "title": f"Class Reminder - {course.code}",
        "body": (
            f"{course.name} starts in {spec.lead_minutes} minutes "
            f"({format_time(session.start_time)}) at {location}"
        ),
        "data": {
            "type": "class_reminder",
            "courseCode": course.code,
            "courseName": course.name,
            "day": session.day.label,
            "startTime": session.start_time,
            "location": location,
            "minutesBefore": str(spec.lead_minutes),
            "reminderKey": reminder_key(spec),
        },
    }


@dataclass
class ScheduleResult:
    """Reminders issued in one batch. Owned by the caller."""
    scope: str
    reminders: list[IssuedReminder] = field(default_factory=list)
    skipped: list[ReminderSpec] = field(default_factory=list)

    @property
    def scheduled(self) -> int:
        return sum(1 for r in self.reminders if r.state == ReminderState.SCHEDULED)

    @property
    def skipped_count(self) -> int:
        return len(self.skipped)

    @property
    def ids(self) -> list[str]:
        return [r.id for r in self.reminders]

    def cancel_all(self) -> int:
        """Mark every scheduled reminder cancelled. Returns how many moved."""
        cancelled = 0
        for reminder in self.reminders:
            if reminder.state == ReminderState.SCHEDULED:
                reminder.transition(ReminderState.CANCELLED)
                cancelled += 1
        return cancelled

    def to_cache(self) -> list[dict]:
        """Rows for the display cache."""
        return [reminder.to_dict() for reminder in self.reminders]

    def summary(self) -> str:
        """Human-readable summary of the batch."""
        if not self.reminders and not self.skipped:
            return "No upcoming classes to remind you about."

        lines = [f"⏰ {self.scheduled} class reminder(s) scheduled"]
        if self.skipped:
            lines[0] += f", {self.skipped_count} skipped"

        for reminder in self.reminders:
            session = reminder.session
            lines.append(
                f"• {reminder.course.code} {session.day.label} "
                f"{format_time(session.start_time)} "
                f"({reminder.lead_minutes} min before)"
            )
        return "\n".join(lines)


class ReminderScheduler:
    """Issues class reminders for a whole timetable (cancel-all, then reschedule)."""

    def __init__(self, dispatcher, lead_minutes: Optional[list[int]] = None):
        """
        Args:
            dispatcher: Object providing async schedule() and cancel_all().
            lead_minutes: Minutes before class; defaults to REMINDER_LEAD_MINUTES.
        """
        self.dispatcher = dispatcher
        self.lead_minutes = sorted(set(lead_minutes if lead_minutes is not None else config.get_lead_minutes()))

    async def cancel_all(self, scope: str, previous: Optional[ScheduleResult] = None) -> int:
        """Cancel every reminder of a scope and mark the previous batch cancelled."""
        cancelled = await self.dispatcher.cancel_all(scope)
        logger.info(f"Cancelled {cancelled} reminder(s) for {scope}")
        if previous is not None:
            previous.cancel_all()
        return cancelled

    async def schedule_all(
        self,
        timetable: Timetable,
        now: datetime,
        scope: str,
        previous: Optional[ScheduleResult] = None
    ) -> ScheduleResult:
        """
        Replace all reminders of a scope with reminders for the timetable.

        Sessions are dispatched one at a time: courses in timetable order,
        sessions in schedule order, leads ascending.

        Args:
            timetable: The timetable to remind about.
            now: Current time.
            scope: Owner of the reminders (e.g. a chat id).
            previous: Result of the last batch, marked cancelled.

        Returns:
            ScheduleResult with scheduled and skipped reminders.
        """
        await self.cancel_all(scope, previous)

        result = ScheduleResult(scope=scope)
        for course in timetable.courses:
            for session in course.schedule:
                specs = project_reminders(course, session, self.lead_minutes, now)
                for spec in specs:
                    await self._issue(spec, result)

        logger.info(
            f"Scheduled {result.scheduled} reminder(s) for {scope}, "
            f"skipped {result.skipped_count}"
        )
        return result

    async def _issue(self, spec: ReminderSpec, result: ScheduleResult) -> None:
        """Hand one reminder to the dispatcher."""
        reminder_id = await self.dispatcher.schedule(spec.fire_instant, build_payload(spec))
        if reminder_id is None:
            logger.warning(f"Dispatcher skipped reminder {reminder_key(spec)}")
            result.skipped.append(spec)
            return

        reminder = IssuedReminder(id=reminder_id, spec=spec)
        reminder.transition(ReminderState.SCHEDULED)
        result.reminders.append(reminder)
        logger.debug(f"Scheduled reminder {reminder_id} for {spec.fire_instant.isoformat()}")
