# tests/test_dashboard.py
from datetime import date, timedelta

import pytest

from srs_engine.dashboard import (
    calc_retention, get_mastery_color, get_mastery_label, get_review_counts, learned_percentage,
)
from srs_engine.errors import StoreUnavailable
from srs_engine.models import ReviewStats


def test_mastery_label():
    assert get_mastery_label(85) == "MASTERED"
    assert get_mastery_label(60) == "SOLID"
    assert get_mastery_label(25) == "LEARNING"
    assert get_mastery_label(0) == "NEW"


def test_mastery_color():
    assert get_mastery_color(90) == "green"
    assert get_mastery_color(10) == "red"


def test_learned_percentage():
    assert learned_percentage(ReviewStats(4, 0, 1, 2.5)) == 25.0
    assert learned_percentage(ReviewStats(0, 0, 0, 2.5)) == 0.0


def test_retention_zero_with_no_reviews(tmp_db, store, deck):
    assert calc_retention(tmp_db, "ada") == 0.0


def test_retention_with_reviews(tmp_db, queue, deck):
    _, card_ids = deck
    queue.rate("ada", card_ids[0], 5)
    queue.rate("ada", card_ids[1], 4)
    queue.rate("ada", card_ids[2], 1)
    queue.rate("ada", card_ids[3], 3)
    queue.rate("grace", card_ids[0], 0)
    assert calc_retention(tmp_db, "ada") == 75.0
    assert calc_retention(tmp_db, "grace") == 0.0


def test_review_counts(tmp_db, queue, deck):
    _, card_ids = deck
    queue.rate("ada", card_ids[0], 4)
    queue.rate("ada", card_ids[0], 4)
    counts = get_review_counts(tmp_db, "ada")
    assert counts == {"reviews_total": 2, "reviews_today": 2}
    yesterday = get_review_counts(tmp_db, "ada", date.today() - timedelta(days=1))
    assert yesterday["reviews_today"] == 0


def test_read_outs_on_uninitialized_database_are_unavailable(tmp_db):
    with pytest.raises(StoreUnavailable):
        calc_retention(tmp_db, "ada")
    with pytest.raises(StoreUnavailable):
        get_review_counts(tmp_db, "ada")
