"""Logging configuration for the timetable reminder service."""

import logging
import sys
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Optional

# Base paths
PROJECT_ROOT = Path(__file__).parent.parent.parent.parent
LOG_DIR = PROJECT_ROOT / "logs"

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that are chatty at INFO (HTTP polling, job runs)
QUIET_LOGGERS = {
    "httpx": logging.WARNING,
    "httpcore": logging.WARNING,
    "telegram": logging.WARNING,
    "apscheduler": logging.WARNING,
}


def _rotating_handler(path: Path, max_bytes: int, backup_count: int) -> RotatingFileHandler:
    path.parent.mkdir(parents=True, exist_ok=True)
    return RotatingFileHandler(path, maxBytes=max_bytes, backupCount=backup_count, encoding="utf-8")


def setup_logging(
    log_level: int = logging.INFO,
    log_to_file: bool = True,
    log_file: str = "reminders.log",
    max_bytes: int = 5 * 1024 * 1024,  # 5MB
    backup_count: int = 3,
    log_dir: Optional[Path] = None
) -> logging.Logger:
    """
    Configure root logging: stdout always, plus a rotating file if asked.

    Calling it again replaces the handlers installed by the previous call.

    Args:
        log_level: Level for the root logger and its handlers.
        log_to_file: Also write to log_dir/log_file.
        log_file: Log file name.
        max_bytes: Size at which the file rotates.
        backup_count: Rotated files to keep.
        log_dir: Directory for the log file (default: <project>/logs).

    Returns:
        Root logger instance
    """
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stdout)]
    if log_to_file:
        path = Path(log_dir or LOG_DIR) / log_file
        handlers.append(_rotating_handler(path, max_bytes, backup_count))

    root_logger = logging.getLogger()
    root_logger.handlers.clear()
    root_logger.setLevel(log_level)
    for handler in handlers:
        handler.setLevel(log_level)
        handler.setFormatter(formatter)
        root_logger.addHandler(handler)

    for name, level in QUIET_LOGGERS.items():
        logging.getLogger(name).setLevel(level)

    return root_logger
