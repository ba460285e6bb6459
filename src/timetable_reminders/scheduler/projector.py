"""Project weekly sessions onto concrete reminder instants.

Everything here is a pure function of its arguments: the current time is
always passed in as `now`, never read from the clock.
"""

from datetime import datetime, time, timedelta, tzinfo
from typing import Iterable, Optional

from ..models import Course, ReminderSpec, Session, Weekday


def _localize(naive: datetime, zone: Optional[tzinfo]) -> datetime:
    """Attach `now`'s zone to a wall-clock datetime."""
    if zone is None:
        return naive
    if hasattr(zone, "localize"):
        # pytz zones must be attached with localize()
        return zone.localize(naive.replace(tzinfo=None))
    return naive.replace(tzinfo=zone)


def _wall_clock(now: datetime) -> datetime:
    return now.replace(tzinfo=None)


def next_occurrence(day: Weekday, start_time: str, now: datetime) -> datetime:
    """
    Get the next start of a weekly session strictly after `now`.

    The candidate is the nearest date (today included) falling on `day`; if
    its start is not after `now`, it moves exactly one week ahead.

    Args:
        day: Weekday of the session.
        start_time: Session start in HH:MM.
        now: Current time (naive or tz-aware).

    Returns:
        Wall-clock start datetime, naive (zone applied by the caller).
    """
    wall_now = _wall_clock(now)
    today_index = Weekday.from_date(wall_now.date()).calendar_index
    days_ahead = (day.calendar_index - today_index) % 7

    hour, minute = map(int, start_time.split(":"))
    candidate = datetime.combine(wall_now.date() + timedelta(days=days_ahead), time(hour, minute))
    if candidate <= wall_now:
        candidate += timedelta(days=7)
    return candidate


def project_reminders(
    course: Course,
    session: Session,
    lead_minutes: Iterable[int],
    now: datetime
) -> list[ReminderSpec]:
    """
    Compute the reminders for the next occurrence of a session.

    Args:
        course: Course the session belongs to.
        session: The weekly session.
        lead_minutes: Minutes before class start; processed in ascending order.
        now: Current time. Fire instants carry the same zone as `now`.

    Returns:
        One ReminderSpec per lead time whose fire instant is after `now`.
        Leads that already passed are omitted, not moved to next week.

    Raises:
        ValueError: If a lead time is negative.
    """
    leads = sorted(set(lead_minutes))
    if leads and leads[0] < 0:
        raise ValueError(f"Lead time must not be negative: {leads[0]}")

    class_start = next_occurrence(session.day, session.start_time, now)
    zone = now.tzinfo

    reminders = []
    for lead in leads:
        fire_instant = _localize(class_start - timedelta(minutes=lead), zone)
        if fire_instant <= now:
            continue
        reminders.append(ReminderSpec(
            course=course,
            session=session,
            lead_minutes=lead,
            fire_instant=fire_instant,
            class_start=_localize(class_start, zone),
        ))
    return reminders
