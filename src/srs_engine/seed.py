"""Seed the database with the bundled sample deck."""
import json
from pathlib import Path

from srs_engine.db import get_connection

CONTENT_DIR = Path(__file__).parent / "content"


def is_seeded(db_path: str) -> bool:
    """Check whether any flashcard set exists yet."""
    conn = get_connection(db_path)
    count = conn.execute("SELECT COUNT(*) FROM flashcard_sets").fetchone()[0]
    conn.close()
    return count > 0


def seed_sample_deck(db_path: str) -> int:
    """Insert the sample deck from sample_deck.json and return its set id."""
    data = json.loads((CONTENT_DIR / "sample_deck.json").read_text())
    conn = get_connection(db_path)
    cur = conn.execute(
        "INSERT INTO flashcard_sets (title, description) VALUES (?, ?)",
        (data["title"], data.get("description", "")),
    )
    set_id = cur.lastrowid
    for order, card in enumerate(data["cards"]):
        conn.execute(
            "INSERT INTO flashcards (set_id, front, back, card_order) VALUES (?, ?, ?, ?)",
            (set_id, card["front"], card["back"], order),
        )
    conn.commit()
    conn.close()
    return set_id


def seed_all(db_path: str) -> None:
    if is_seeded(db_path):
        return
    seed_sample_deck(db_path)
