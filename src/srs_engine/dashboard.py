"""Review dashboard read-outs."""
from datetime import date

from srs_engine.models import ReviewStats
from srs_engine.store import SQLiteProgressStore


def get_mastery_label(pct: float) -> str:
    if pct >= 80:
        return "MASTERED"
    elif pct >= 50:
        return "SOLID"
    elif pct >= 20:
        return "LEARNING"
    return "NEW"


def get_mastery_color(pct: float) -> str:
    if pct >= 80:
        return "green"
    elif pct >= 50:
        return "yellow"
    elif pct >= 20:
        return "dark_orange"
    return "red"


def learned_percentage(stats: ReviewStats) -> float:
    if not stats.total_cards:
        return 0.0
    return round(stats.cards_learned / stats.total_cards * 100, 1)


def calc_retention(db_path: str, learner_id: str) -> float:
    """Share of the learner's ratings that were successful recalls."""
    total, passed = SQLiteProgressStore(db_path).rating_counts(learner_id)
    if not total:
        return 0.0
    return round((passed / total) * 100, 1)


def get_review_counts(db_path: str, learner_id: str, today: date | None = None) -> dict:
    return SQLiteProgressStore(db_path).review_counts(learner_id, today or date.today())
