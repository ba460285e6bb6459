"""Main entry point: keep class reminders running for every stored timetable."""

import asyncio
import logging
import sys
from datetime import datetime

from apscheduler.schedulers.asyncio import AsyncIOScheduler
from telegram import Bot

from .config import config, Config
from .database.models import init_db
from .database.operations import TimetableStore
from .pipeline import TimetableService
from .scheduler.dispatcher import TelegramDispatcher
from .utils.error_handlers import TimetableError, user_message_for
from .utils.logging_config import setup_logging

logger = logging.getLogger(__name__)

# How often stored timetables are projected again (one week ahead each time)
RESCHEDULE_INTERVAL_HOURS = 24


async def reschedule_all(bot: Bot, scheduler: AsyncIOScheduler, store: TimetableStore) -> int:
    """Reschedule reminders for every stored timetable. Returns owners processed."""
    tz = config.get_timezone()
    now = datetime.now(tz)
    processed = 0

    try:
        owners = store.list_owners()
    except TimetableError as e:
        logger.error(f"Could not list stored timetables, retrying next cycle: {e}")
        return processed

    for owner in owners:
        try:
            chat_id = int(owner)
        except ValueError:
            logger.warning(f"Skipping owner {owner!r}: not a Telegram chat id")
            continue

        dispatcher = TelegramDispatcher(bot, scheduler, chat_id)
        service = TimetableService(store, dispatcher)
        try:
            result = await service.reschedule(owner, now)
        except TimetableError as e:
            logger.error(f"Could not reschedule {owner}: {e} ({user_message_for(e)})")
            continue

        logger.info(f"{owner}: {result.scheduled} scheduled, {result.skipped_count} skipped")
        processed += 1

    return processed


async def run() -> None:
    """Start the scheduler and keep reminders projected ahead."""
    init_db(config.DATABASE_PATH)
    store = TimetableStore(config.DATABASE_PATH)
    bot = Bot(config.TELEGRAM_TOKEN)
    scheduler = AsyncIOScheduler(timezone=config.get_timezone())
    scheduler.start()
    logger.info("Reminder scheduler started")

    try:
        while True:
            count = await reschedule_all(bot, scheduler, store)
            logger.info(f"Rescheduled reminders for {count} timetable(s)")
            await asyncio.sleep(RESCHEDULE_INTERVAL_HOURS * 3600)
    finally:
        scheduler.shutdown()
        logger.info("Reminder scheduler stopped")


def main() -> None:
    """Initialize and run the reminder service."""
    setup_logging(log_level=config.get_log_level(), log_to_file=True)

    # Validate configuration
    missing = Config.validate()
    if missing:
        logger.error(f"Missing required configuration: {', '.join(missing)}")
        logger.error("Please check your .env file")
        sys.exit(1)

    logger.info(f"Using database at {config.DATABASE_PATH}")
    try:
        asyncio.run(run())
    except KeyboardInterrupt:
        logger.info("Interrupted, shutting down")


if __name__ == "__main__":
    main()
