"""Database schema and initialization."""

import sqlite3
from pathlib import Path


SCHEMA = """
-- One timetable document per owner (last write wins)
CREATE TABLE IF NOT EXISTS timetables (
    owner_key TEXT PRIMARY KEY,
    document TEXT NOT NULL,
    updated_at TEXT DEFAULT CURRENT_TIMESTAMP
);

-- Display cache of the reminders issued in the last batch
CREATE TABLE IF NOT EXISTS reminder_cache (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    owner_key TEXT NOT NULL,
    reminder_id TEXT,
    course_code TEXT NOT NULL,
    day TEXT NOT NULL,
    start_time TEXT NOT NULL,
    reminder_time TEXT NOT NULL,
    reminder_minutes INTEGER NOT NULL,
    state TEXT NOT NULL,
    created_at TEXT DEFAULT CURRENT_TIMESTAMP
);

CREATE INDEX IF NOT EXISTS idx_reminder_cache_owner ON reminder_cache(owner_key);
"""


def get_connection(db_path: str) -> sqlite3.Connection:
    """Get a database connection with row factory enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    return conn


def init_db(db_path: str) -> None:
    """Initialize the database with all required tables."""
    # Ensure parent directory exists
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)

    conn = get_connection(db_path)
    try:
        conn.executescript(SCHEMA)
        conn.commit()
    finally:
        conn.close()
