"""Database initialization and connection management."""
import sqlite3
from pathlib import Path

from srs_engine.config import DEFAULT_DB_PATH

SCHEMA = """
CREATE TABLE IF NOT EXISTS flashcard_sets (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    title TEXT NOT NULL,
    description TEXT DEFAULT ''
);

CREATE TABLE IF NOT EXISTS flashcards (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    set_id INTEGER NOT NULL REFERENCES flashcard_sets(id),
    front TEXT NOT NULL,
    back TEXT NOT NULL,
    card_order INTEGER DEFAULT 0
);

CREATE TABLE IF NOT EXISTS flashcard_progress (
    learner_id TEXT NOT NULL,
    flashcard_id INTEGER NOT NULL REFERENCES flashcards(id),
    easiness_factor REAL NOT NULL DEFAULT 2.5,
    interval_days INTEGER NOT NULL DEFAULT 1,
    repetitions INTEGER NOT NULL DEFAULT 0,
    next_review_date TEXT NOT NULL,
    review_count INTEGER NOT NULL DEFAULT 0,
    is_remembered INTEGER NOT NULL DEFAULT 0,
    last_reviewed_at TEXT,
    PRIMARY KEY (learner_id, flashcard_id)
);

CREATE TABLE IF NOT EXISTS review_log (
    id INTEGER PRIMARY KEY AUTOINCREMENT,
    learner_id TEXT NOT NULL,
    flashcard_id INTEGER NOT NULL REFERENCES flashcards(id),
    quality INTEGER NOT NULL,
    reviewed_at TEXT NOT NULL
);

CREATE INDEX IF NOT EXISTS idx_progress_due
    ON flashcard_progress (learner_id, next_review_date);
"""


def get_connection(db_path: str = DEFAULT_DB_PATH) -> sqlite3.Connection:
    """Return a SQLite connection with row factory and foreign keys enabled."""
    conn = sqlite3.connect(db_path)
    conn.row_factory = sqlite3.Row
    conn.execute("PRAGMA foreign_keys = ON")
    return conn


def init_db(db_path: str = DEFAULT_DB_PATH) -> None:
    """Initialize the database, creating all tables if they don't exist."""
    Path(db_path).parent.mkdir(parents=True, exist_ok=True)
    conn = get_connection(db_path)
    conn.executescript(SCHEMA)
    conn.commit()
    conn.close()
