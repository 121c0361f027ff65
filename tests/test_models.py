"""Tests for data model classes."""
import dataclasses

import pytest

from srs_engine.models import Card, FlashcardSet, ReviewStats, SchedulingState


def test_scheduling_state_defaults():
    s = SchedulingState()
    assert s.easiness_factor == 2.5
    assert s.interval_days == 1
    assert s.repetitions == 0
    assert s.next_review_date is None


def test_scheduling_state_is_immutable():
    s = SchedulingState()
    with pytest.raises(dataclasses.FrozenInstanceError):
        s.repetitions = 3


def test_card_creation():
    c = Card(id=1, set_id=2, front="Q?", back="A")
    assert c.card_order == 0
    assert c.set_id == 2


def test_flashcard_set_default_description():
    assert FlashcardSet(id=1, title="Verbs").description == ""


def test_review_stats_fields():
    stats = ReviewStats(total_cards=5, cards_due_today=2, cards_learned=1, average_ef=2.5)
    assert stats.total_cards == 5
    assert stats.average_ef == 2.5
