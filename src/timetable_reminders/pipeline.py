"""Timetable processing service: parse, aggregate, store and schedule reminders.

Operations for one owner must not overlap; the caller serializes them. If an
operation is interrupted mid-batch, run it again: every schedule starts with
cancel-all.
"""

import logging
from dataclasses import dataclass, replace
from datetime import datetime
from typing import Optional

from .database.operations import TimetableStore
from .models import Session, Timetable
from .parsing.aggregator import aggregate, build_timetable, replace_session
from .parsing.entry_parser import ParseResult, extract_metadata, parse_model_output
from .scheduler.notifications import ReminderScheduler, ScheduleResult
from .utils.error_handlers import NoDataExtractedError, TimetableNotFoundError

logger = logging.getLogger(__name__)


@dataclass
class ProcessResult:
    """Outcome of processing one uploaded timetable."""
    timetable: Timetable
    report: ParseResult
    schedule: ScheduleResult


class TimetableService:
    """Runs the upload -> timetable -> reminders flow for one dispatcher."""

    def __init__(
        self,
        store: TimetableStore,
        dispatcher,
        lead_minutes: Optional[list[int]] = None
    ):
        self.store = store
        self.scheduler = ReminderScheduler(dispatcher, lead_minutes)

    def build_timetable(
        self,
        raw_output: str,
        now: datetime,
        source: str = "gemini"
    ) -> tuple[Timetable, ParseResult]:
        """Parse model output into a timetable. Never raises for malformed data."""
        report = parse_model_output(raw_output)
        courses = aggregate(report.entries)
        labels = extract_metadata(raw_output)
        timetable = build_timetable(
            courses,
            source=source,
            now=now,
            semester=labels.get("semester"),
            academic_year=labels.get("academic_year"),
        )
        return timetable, report

    async def process_upload(
        self,
        owner: str,
        raw_output: str,
        now: datetime,
        previous: Optional[ScheduleResult] = None,
        source: str = "gemini"
    ) -> ProcessResult:
        """
        Replace an owner's timetable with a new upload and reschedule reminders.

        Args:
            owner: Owner key (store key and reminder scope).
            raw_output: Text returned by the vision/LLM collaborator.
            now: Current time.
            previous: Last schedule result for the owner, marked cancelled.
            source: Label for the parser that produced raw_output.

        Raises:
            NoDataExtractedError: If no course survives parsing.
            StoreUnavailableError: If the timetable cannot be saved.
        """
        timetable, report = self.build_timetable(raw_output, now, source)
        if not timetable.courses:
            logger.warning(
                f"No courses extracted for {owner} "
                f"({report.discarded} discarded, {report.excluded} excluded)"
            )
            raise NoDataExtractedError(report=report)

        self.store.save(owner, timetable)
        schedule = await self._schedule(owner, timetable, now, previous)
        return ProcessResult(timetable=timetable, report=report, schedule=schedule)

    async def reschedule(
        self,
        owner: str,
        now: datetime,
        previous: Optional[ScheduleResult] = None
    ) -> ScheduleResult:
        """
        Recompute all reminders for an owner's stored timetable.

        Raises:
            TimetableNotFoundError: If the owner has no stored timetable.
        """
        timetable = self.store.load(owner)
        if timetable is None:
            raise TimetableNotFoundError(f"No timetable stored for {owner}")
        return await self._schedule(owner, timetable, now, previous)

    async def edit_session(
        self,
        owner: str,
        code: str,
        old: Session,
        new: Session,
        now: datetime,
        previous: Optional[ScheduleResult] = None
    ) -> tuple[Timetable, ScheduleResult]:
        """
        Edit one session, save the timetable and reschedule everything.

        Raises:
            TimetableNotFoundError: If the owner has no stored timetable.
            KeyError: If the course or session does not exist.
        """
        timetable = self.store.load(owner)
        if timetable is None:
            raise TimetableNotFoundError(f"No timetable stored for {owner}")

        edited = replace_session(timetable, code, old, new)
        edited = replace(edited, metadata=replace(edited.metadata, last_updated=now.isoformat()))
        self.store.save(owner, edited)
        schedule = await self._schedule(owner, edited, now, previous)
        return edited, schedule

    async def _schedule(
        self,
        owner: str,
        timetable: Timetable,
        now: datetime,
        previous: Optional[ScheduleResult]
    ) -> ScheduleResult:
        result = await self.scheduler.schedule_all(timetable, now, owner, previous)
        self.store.save_reminders(owner, result.to_cache())
        return result
