"""Tests for database initialization and connection management."""
from srs_engine.db import init_db, get_connection


def test_init_db_creates_tables(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    cursor = conn.execute(
        "SELECT name FROM sqlite_master WHERE type='table' ORDER BY name"
    )
    tables = {row[0] for row in cursor.fetchall()}
    expected = {"flashcard_sets", "flashcards", "flashcard_progress", "review_log"}
    assert expected.issubset(tables)
    conn.close()


def test_init_db_is_idempotent(tmp_db):
    init_db(tmp_db)
    init_db(tmp_db)  # should not raise
    conn = get_connection(tmp_db)
    cursor = conn.execute("SELECT name FROM sqlite_master WHERE type='table'")
    assert len(cursor.fetchall()) > 0
    conn.close()


def test_init_db_creates_parent_directory(tmp_path):
    db_path = tmp_path / "nested" / "dir" / "srs.db"
    init_db(str(db_path))
    assert db_path.exists()


def test_get_connection_returns_row_factory(tmp_db):
    init_db(tmp_db)
    conn = get_connection(tmp_db)
    conn.execute("INSERT INTO flashcard_sets (title) VALUES ('Verbs')")
    row = conn.execute("SELECT title, description FROM flashcard_sets").fetchone()
    assert row["title"] == "Verbs"
    assert row["description"] == ""
    conn.close()
