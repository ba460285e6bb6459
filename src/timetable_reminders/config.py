"""Configuration module - loads and validates environment variables."""

import logging
import os
from pathlib import Path

import pytz
from dotenv import load_dotenv

# Load .env file from project root
load_dotenv()

logger = logging.getLogger(__name__)

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.parent
DATA_DIR = PROJECT_ROOT / "data"

DEFAULT_LEAD_MINUTES = [15, 60]


class Config:
    """Application configuration loaded from environment variables."""

    # Telegram (reminder delivery)
    TELEGRAM_TOKEN: str = os.getenv("TELEGRAM_TOKEN", "")

    # Timetable document store
    DATABASE_PATH: str = os.getenv("DATABASE_PATH", str(DATA_DIR / "timetables.db"))

    # Wall-clock zone used for class times
    TIMEZONE: str = os.getenv("TIMEZONE", "Asia/Kolkata")

    # Minutes before class start, comma-separated (e.g. "15,60")
    REMINDER_LEAD_MINUTES: str = os.getenv("REMINDER_LEAD_MINUTES", "15,60")

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO")

    @classmethod
    def get_lead_minutes(cls) -> list[int]:
        """Parse REMINDER_LEAD_MINUTES into a sorted list of unique lead times."""
        leads = set()
        for item in cls.REMINDER_LEAD_MINUTES.split(","):
            item = item.strip()
            if not item:
                continue
            try:
                value = int(item)
            except ValueError:
                logger.warning(f"Ignoring invalid lead time: {item!r}")
                continue
            if value < 0:
                logger.warning(f"Ignoring negative lead time: {value}")
                continue
            leads.add(value)

        if not leads:
            return list(DEFAULT_LEAD_MINUTES)
        return sorted(leads)

    @classmethod
    def get_timezone(cls):
        """Resolve TIMEZONE to a pytz zone, falling back to UTC."""
        try:
            return pytz.timezone(cls.TIMEZONE)
        except pytz.UnknownTimeZoneError:
            logger.warning(f"Unknown timezone {cls.TIMEZONE!r}, using UTC")
            return pytz.utc

    @classmethod
    def get_log_level(cls) -> int:
        """Map LOG_LEVEL to a logging level (default INFO)."""
        level = logging.getLevelName(cls.LOG_LEVEL.upper())
        return level if isinstance(level, int) else logging.INFO

    @classmethod
    def validate(cls) -> list[str]:
        """Validate required configuration. Returns list of missing keys."""
        missing = []

        if not cls.TELEGRAM_TOKEN:
            missing.append("TELEGRAM_TOKEN")

        return missing

    @classmethod
    def is_valid(cls) -> bool:
        """Check if all required configuration is present."""
        return len(cls.validate()) == 0


# Convenience access
config = Config()
