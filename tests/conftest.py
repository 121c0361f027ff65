from datetime import date

import pytest

from srs_engine.db import init_db
from srs_engine.review import ReviewQueue
from srs_engine.store import SQLiteProgressStore

TODAY = date(2024, 3, 1)


@pytest.fixture
def tmp_db(tmp_path):
    """Provide a temporary SQLite database path for tests."""
    db_path = str(tmp_path / "test_srs.db")
    return db_path


@pytest.fixture
def store(tmp_db):
    init_db(tmp_db)
    return SQLiteProgressStore(tmp_db)


@pytest.fixture
def deck(store):
    """A set of five cards; returns (set_id, [card ids in order])."""
    set_id = store.add_set("Capitals", "European capitals")
    pairs = [("France", "Paris"), ("Spain", "Madrid"), ("Italy", "Rome"),
             ("Austria", "Vienna"), ("Poland", "Warsaw")]
    card_ids = [store.add_card(set_id, front, back) for front, back in pairs]
    return set_id, card_ids


@pytest.fixture
def queue(store):
    return ReviewQueue(store, clock=lambda: TODAY)
