"""Telegram reminder delivery through APScheduler date jobs."""

import logging
from datetime import datetime
from typing import Optional

from apscheduler.jobstores.base import ConflictingIdError, JobLookupError
from apscheduler.schedulers.base import STATE_STOPPED
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.date import DateTrigger
from telegram import Bot
from telegram.error import TelegramError

from ..utils.error_handlers import DispatcherUnavailableError

logger = logging.getLogger(__name__)


class TelegramDispatcher:
    """Schedules one-shot reminder jobs that message a Telegram chat."""

    def __init__(self, bot: Bot, scheduler: AsyncIOScheduler, chat_id: int):
        """
        Args:
            bot: Telegram bot used to send messages.
            scheduler: Shared scheduler holding the reminder jobs.
            chat_id: Chat that receives the reminders; also the job scope.
        """
        self.bot = bot
        self.scheduler = scheduler
        self.chat_id = chat_id

    @property
    def scope(self) -> str:
        return str(self.chat_id)

    def _ensure_running(self) -> None:
        if self.scheduler.state == STATE_STOPPED:
            raise DispatcherUnavailableError("Reminder scheduler is not running")

    def _job_id(self, payload: dict) -> str:
        key = payload.get("data", {}).get("reminderKey") or payload.get("title", "reminder")
        return f"{self.scope}:{key}"

    async def schedule(self, fire_instant: datetime, payload: dict) -> Optional[str]:
        """
        Add a date job that sends the reminder at fire_instant.

        Returns:
            The job id, or None if the job could not be added.

        Raises:
            DispatcherUnavailableError: If the scheduler is not running.
        """
        self._ensure_running()
        job_id = self._job_id(payload)
        text = f"{payload['title']}\n{payload['body']}"
        try:
            self.scheduler.add_job(
                self._deliver,
                DateTrigger(run_date=fire_instant, timezone=self.scheduler.timezone),
                args=[text],
                id=job_id,
                name=payload["title"],
                misfire_grace_time=300,
            )
        except (ConflictingIdError, ValueError) as e:
            logger.error(f"Failed to schedule reminder {job_id}: {e}")
            return None

        logger.debug(f"Added reminder job {job_id} at {fire_instant.isoformat()}")
        return job_id

    async def cancel_all(self, scope: str) -> int:
        """Remove every pending reminder job of a scope."""
        self._ensure_running()
        prefix = f"{scope}:"
        removed = 0
        for job in self.scheduler.get_jobs():
            if not job.id.startswith(prefix):
                continue
            try:
                self.scheduler.remove_job(job.id)
                removed += 1
            except JobLookupError:
                # Fired between listing and removal
                logger.debug(f"Reminder job {job.id} already gone")
        return removed

    async def _deliver(self, text: str) -> bool:
        """Send a reminder message to the chat."""
        try:
            await self.bot.send_message(chat_id=self.chat_id, text=text)
            logger.info(f"Sent reminder to {self.chat_id}")
            return True
        except TelegramError as e:
            logger.error(f"Failed to send reminder to {self.chat_id}: {e}")
            return False
