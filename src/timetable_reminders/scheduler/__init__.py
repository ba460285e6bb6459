# Scheduler module - reminder projection and dispatch
from .projector import next_occurrence, project_reminders
from .notifications import ReminderScheduler, ScheduleResult, build_payload
