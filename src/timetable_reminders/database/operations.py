"""Timetable document store on sqlite."""

import json
import logging
import sqlite3
from contextlib import contextmanager
from typing import Optional

from ..models import Timetable
from ..utils.error_handlers import StoreUnavailableError
from .models import get_connection

logger = logging.getLogger(__name__)


class TimetableStore:
    """Key/value store of one timetable document per owner."""

    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _get_conn(self):
        """Yield a connection; sqlite failures surface as StoreUnavailableError."""
        try:
            conn = get_connection(self.db_path)
        except sqlite3.Error as e:
            raise StoreUnavailableError(f"Cannot open {self.db_path}: {e}") from e
        try:
            yield conn
        except sqlite3.Error as e:
            logger.error(f"Timetable store error: {e}")
            raise StoreUnavailableError(str(e)) from e
        finally:
            conn.close()

    # ==================== Timetables ====================

    def save(self, key: str, timetable: Timetable) -> None:
        """Save a timetable, replacing any previous one for the key."""
        document = json.dumps(timetable.to_dict())
        with self._get_conn() as conn:
            conn.execute(
                """INSERT OR REPLACE INTO timetables (owner_key, document, updated_at)
                   VALUES (?, ?, CURRENT_TIMESTAMP)""",
                (key, document)
            )
            conn.commit()
        logger.info(f"Saved timetable for {key} ({len(timetable.courses)} courses)")

    def load(self, key: str) -> Optional[Timetable]:
        """Load the timetable for a key, or None if there is none."""
        with self._get_conn() as conn:
            cursor = conn.execute(
                "SELECT document FROM timetables WHERE owner_key = ?",
                (key,)
            )
            row = cursor.fetchone()
        if not row:
            return None
        return Timetable.from_dict(json.loads(row["document"]))

    def delete(self, key: str) -> bool:
        """Delete the timetable and cached reminders for a key."""
        with self._get_conn() as conn:
            cursor = conn.execute("DELETE FROM timetables WHERE owner_key = ?", (key,))
            conn.execute("DELETE FROM reminder_cache WHERE owner_key = ?", (key,))
            conn.commit()
            return cursor.rowcount > 0

    def list_owners(self) -> list[str]:
        """Get every key that has a stored timetable."""
        with self._get_conn() as conn:
            cursor = conn.execute("SELECT owner_key FROM timetables ORDER BY owner_key")
            return [row["owner_key"] for row in cursor.fetchall()]

    # ==================== Reminder Cache ====================

    def save_reminders(self, key: str, rows: list[dict]) -> int:
        """Replace the cached reminders of a key. Returns number stored."""
        with self._get_conn() as conn:
            conn.execute("DELETE FROM reminder_cache WHERE owner_key = ?", (key,))
            conn.executemany(
                """INSERT INTO reminder_cache
                   (owner_key, reminder_id, course_code, day, start_time,
                    reminder_time, reminder_minutes, state)
                   VALUES (?, ?, ?, ?, ?, ?, ?, ?)""",
                [
                    (key, row["id"], row["courseCode"], row["day"], row["startTime"],
                     row["reminderTime"], row["reminderMinutes"], row["state"])
                    for row in rows
                ]
            )
            conn.commit()
        return len(rows)

    def get_reminders(self, key: str) -> list[dict]:
        """Get cached reminders of a key, soonest first."""
        with self._get_conn() as conn:
            cursor = conn.execute(
                """SELECT * FROM reminder_cache
                   WHERE owner_key = ?
                   ORDER BY reminder_time, id""",
                (key,)
            )
            return [dict(row) for row in cursor.fetchall()]
