"""SQLite-backed progress store.

Implements the boundary the engine talks to: per-learner progress reads,
keyed upserts, the due-card query and the statistics aggregate. Every
sqlite3 failure is re-raised as StoreUnavailable so callers only deal with
the engine's own exceptions.
"""
import logging
import sqlite3
from contextlib import contextmanager
from datetime import date, datetime
from typing import Iterable, Optional

from srs_engine.db import get_connection
from srs_engine.errors import StoreUnavailable
from srs_engine.models import Card, FlashcardSet, SchedulingState
from srs_engine.sm2 import PASSING_QUALITY

logger = logging.getLogger(__name__)

_CARD_WITH_PROGRESS = """
    SELECT f.id, f.set_id, f.front, f.back, f.card_order,
        p.easiness_factor, p.interval_days, p.repetitions, p.next_review_date,
        p.review_count, p.is_remembered, p.last_reviewed_at
    FROM flashcards f
    LEFT JOIN flashcard_progress p ON p.flashcard_id = f.id AND p.learner_id = ?
"""


def card_from_row(row) -> Card:
    return Card(
        id=row["id"],
        set_id=row["set_id"],
        front=row["front"],
        back=row["back"],
        card_order=row["card_order"] or 0,
    )


def state_from_row(row) -> Optional[SchedulingState]:
    """Scheduling state from a progress row, or None for a card never rated."""
    if row["next_review_date"] is None:
        return None
    return SchedulingState(
        easiness_factor=row["easiness_factor"],
        interval_days=row["interval_days"],
        repetitions=row["repetitions"],
        next_review_date=date.fromisoformat(row["next_review_date"]),
    )


class SQLiteProgressStore:
    def __init__(self, db_path: str):
        self.db_path = db_path

    @contextmanager
    def _connect(self):
        conn = None
        try:
            conn = get_connection(self.db_path)
            yield conn
            conn.commit()
        except sqlite3.Error as exc:
            logger.warning("progress store at %s failed: %s", self.db_path, exc)
            raise StoreUnavailable(str(exc)) from exc
        finally:
            if conn is not None:
                conn.close()

    # --- cards and sets ---

    def add_set(self, title: str, description: str = "") -> int:
        with self._connect() as conn:
            cur = conn.execute(
                "INSERT INTO flashcard_sets (title, description) VALUES (?, ?)",
                (title, description),
            )
            return cur.lastrowid

    def add_card(self, set_id: int, front: str, back: str, card_order: Optional[int] = None) -> int:
        with self._connect() as conn:
            if card_order is None:
                card_order = conn.execute(
                    "SELECT COUNT(*) FROM flashcards WHERE set_id = ?", (set_id,)
                ).fetchone()[0]
            cur = conn.execute(
                "INSERT INTO flashcards (set_id, front, back, card_order) VALUES (?, ?, ?, ?)",
                (set_id, front, back, card_order),
            )
            return cur.lastrowid

    def list_sets(self) -> list[FlashcardSet]:
        with self._connect() as conn:
            rows = conn.execute("SELECT * FROM flashcard_sets ORDER BY id").fetchall()
        return [FlashcardSet(id=r["id"], title=r["title"], description=r["description"] or "") for r in rows]

    def get_card(self, card_id: int) -> Optional[Card]:
        with self._connect() as conn:
            row = conn.execute("SELECT * FROM flashcards WHERE id = ?", (card_id,)).fetchone()
        return card_from_row(row) if row else None

    def get_cards(self, set_id: int) -> list[Card]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM flashcards WHERE set_id = ? ORDER BY card_order ASC, id ASC",
                (set_id,),
            ).fetchall()
        return [card_from_row(r) for r in rows]

    # --- progress ---

    def get_progress(self, learner_id: str, card_id: int) -> Optional[SchedulingState]:
        with self._connect() as conn:
            row = conn.execute(
                "SELECT * FROM flashcard_progress WHERE learner_id = ? AND flashcard_id = ?",
                (learner_id, card_id),
            ).fetchone()
        return state_from_row(row) if row else None

    def upsert_progress(
        self,
        learner_id: str,
        card_id: int,
        state: SchedulingState,
        quality: Optional[int] = None,
    ) -> None:
        """Write the learner's state for a card, one row per (learner, card).

        When quality is given the rating is also appended to the review log
        in the same transaction.
        """
        if state.next_review_date is None:
            raise ValueError("cannot store a scheduling state without a next_review_date")
        now = datetime.now().isoformat(timespec="seconds")
        remembered = quality >= PASSING_QUALITY if quality is not None else state.repetitions > 0
        with self._connect() as conn:
            conn.execute(
                """INSERT INTO flashcard_progress
                (learner_id, flashcard_id, easiness_factor, interval_days, repetitions,
                 next_review_date, review_count, is_remembered, last_reviewed_at)
                VALUES (?, ?, ?, ?, ?, ?, 1, ?, ?)
                ON CONFLICT(learner_id, flashcard_id) DO UPDATE SET
                    easiness_factor=excluded.easiness_factor,
                    interval_days=excluded.interval_days,
                    repetitions=excluded.repetitions,
                    next_review_date=excluded.next_review_date,
                    review_count=review_count + 1,
                    is_remembered=excluded.is_remembered,
                    last_reviewed_at=excluded.last_reviewed_at""",
                (
                    learner_id, card_id, state.easiness_factor, state.interval_days,
                    state.repetitions, state.next_review_date.isoformat(),
                    int(remembered), now,
                ),
            )
            if quality is not None:
                conn.execute(
                    "INSERT INTO review_log (learner_id, flashcard_id, quality, reviewed_at) VALUES (?, ?, ?, ?)",
                    (learner_id, card_id, quality, now),
                )

    def list_due(
        self,
        learner_id: str,
        set_id: Optional[int],
        today: date,
        limit: int,
    ) -> list[tuple[Card, SchedulingState]]:
        """Cards due on or before today, oldest due date first, then by card id.

        Cards the learner never rated are due today with the default state.
        """
        today_iso = today.isoformat()
        sql = _CARD_WITH_PROGRESS + " WHERE COALESCE(p.next_review_date, ?) <= ?"
        params: list = [learner_id, today_iso, today_iso]
        if set_id is not None:
            sql += " AND f.set_id = ?"
            params.append(set_id)
        sql += " ORDER BY COALESCE(p.next_review_date, ?) ASC, f.id ASC LIMIT ?"
        params.extend([today_iso, limit])
        with self._connect() as conn:
            rows = conn.execute(sql, params).fetchall()
        due = []
        for r in rows:
            state = state_from_row(r) or SchedulingState(next_review_date=today)
            due.append((card_from_row(r), state))
        return due

    def aggregate(self, learner_id: str, today: date, learned_threshold: int) -> dict:
        """Raw counts for the learner; average_ef is None when nothing is rated."""
        today_iso = today.isoformat()
        with self._connect() as conn:
            row = conn.execute(
                """SELECT COUNT(f.id) AS total_cards,
                    SUM(CASE WHEN COALESCE(p.next_review_date, ?) <= ? THEN 1 ELSE 0 END) AS cards_due_today,
                    SUM(CASE WHEN p.repetitions >= ? THEN 1 ELSE 0 END) AS cards_learned,
                    AVG(p.easiness_factor) AS average_ef
                FROM flashcards f
                LEFT JOIN flashcard_progress p ON p.flashcard_id = f.id AND p.learner_id = ?""",
                (today_iso, today_iso, learned_threshold, learner_id),
            ).fetchone()
        return {
            "total_cards": row["total_cards"] or 0,
            "cards_due_today": row["cards_due_today"] or 0,
            "cards_learned": row["cards_learned"] or 0,
            "average_ef": row["average_ef"],
        }

    def progress_rows(self, learner_id: str, set_id: int) -> list[sqlite3.Row]:
        """Every card of a set joined with the learner's progress, in card order."""
        with self._connect() as conn:
            return conn.execute(
                _CARD_WITH_PROGRESS + " WHERE f.set_id = ? ORDER BY f.card_order ASC, f.id ASC",
                (learner_id, set_id),
            ).fetchall()

    def remembered_flags(self, learner_id: str, card_ids: Iterable[int]) -> dict[int, bool]:
        card_ids = list(card_ids)
        if not card_ids:
            return {}
        placeholders = ", ".join("?" for _ in card_ids)
        with self._connect() as conn:
            rows = conn.execute(
                f"""SELECT flashcard_id, is_remembered FROM flashcard_progress
                WHERE learner_id = ? AND flashcard_id IN ({placeholders})""",
                [learner_id, *card_ids],
            ).fetchall()
        return {r["flashcard_id"]: bool(r["is_remembered"]) for r in rows}

    def rating_counts(self, learner_id: str) -> tuple[int, int]:
        """(all ratings, successful ratings) in the learner's review log."""
        with self._connect() as conn:
            row = conn.execute(
                """SELECT COUNT(*) as t, SUM(CASE WHEN quality >= ? THEN 1 ELSE 0 END) as c
                FROM review_log WHERE learner_id = ?""",
                (PASSING_QUALITY, learner_id),
            ).fetchone()
        return row["t"], row["c"] or 0

    def review_counts(self, learner_id: str, day: date) -> dict:
        with self._connect() as conn:
            total = conn.execute(
                "SELECT COUNT(*) FROM review_log WHERE learner_id = ?", (learner_id,)
            ).fetchone()[0]
            on_day = conn.execute(
                "SELECT COUNT(*) FROM review_log WHERE learner_id = ? AND substr(reviewed_at, 1, 10) = ?",
                (learner_id, day.isoformat()),
            ).fetchone()[0]
        return {"reviews_total": total, "reviews_today": on_day}

    def review_log(self, learner_id: str) -> list[dict]:
        with self._connect() as conn:
            rows = conn.execute(
                "SELECT * FROM review_log WHERE learner_id = ? ORDER BY id", (learner_id,)
            ).fetchall()
        return [dict(r) for r in rows]
