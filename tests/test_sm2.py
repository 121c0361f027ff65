# tests/test_sm2.py
from datetime import date, timedelta

import pytest

from srs_engine.errors import InvalidQuality
from srs_engine.models import SchedulingState
from srs_engine.sm2 import QUALITY_DESCRIPTIONS, default_state, schedule

TODAY = date(2024, 3, 1)


def state(ef=2.5, interval=1, reps=0):
    return SchedulingState(easiness_factor=ef, interval_days=interval, repetitions=reps,
                           next_review_date=TODAY)


def test_perfect_first_review():
    result = schedule(5, state(), TODAY)
    assert result.repetitions == 1
    assert result.interval_days == 1
    assert result.easiness_factor == pytest.approx(2.6)


def test_second_success_is_six_days():
    result = schedule(3, state(reps=1), TODAY)
    assert result.repetitions == 2
    assert result.interval_days == 6


def test_blackout_resets_and_lowers_ef():
    result = schedule(0, state(interval=30, reps=5), TODAY)
    assert result.repetitions == 0
    assert result.interval_days == 1
    assert result.easiness_factor < 2.5
    assert result.easiness_factor >= 1.3


def test_third_success_multiplies_interval():
    """Third+ correct: interval = round(old_interval * new EF)."""
    result = schedule(4, state(interval=6, reps=2), TODAY)
    assert result.interval_days == 15  # round(6 * 2.5)
    assert result.repetitions == 3


def test_growth_uses_updated_ef():
    result = schedule(5, state(interval=6, reps=2), TODAY)
    assert result.interval_days == round(6 * 2.6)


def test_next_review_date_is_today_plus_interval():
    result = schedule(4, state(interval=6, reps=2), TODAY)
    assert result.next_review_date == TODAY + timedelta(days=15)


@pytest.mark.parametrize("quality", range(6))
@pytest.mark.parametrize("ef", [1.3, 1.5, 2.5, 3.2])
def test_ef_never_below_floor(quality, ef):
    assert schedule(quality, state(ef=ef, interval=4, reps=3), TODAY).easiness_factor >= 1.3


@pytest.mark.parametrize("quality", [0, 1, 2])
@pytest.mark.parametrize("reps,interval", [(0, 1), (1, 1), (2, 6), (7, 120)])
def test_failure_always_resets(quality, reps, interval):
    result = schedule(quality, state(interval=interval, reps=reps), TODAY)
    assert result.repetitions == 0
    assert result.interval_days == 1


@pytest.mark.parametrize("ef", [1.3, 2.0, 2.5, 3.5])
def test_onboarding_ladder_ignores_ef(ef):
    first = schedule(3, state(ef=ef), TODAY)
    second = schedule(3, first, TODAY)
    assert first.interval_days == 1
    assert second.interval_days == 6


def test_prior_state_untouched():
    prior = state(interval=6, reps=2)
    schedule(5, prior, TODAY)
    assert prior == state(interval=6, reps=2)


@pytest.mark.parametrize("quality", [-1, 6, 10, 2.5, "3", None, True])
def test_invalid_quality_rejected(quality):
    with pytest.raises(InvalidQuality):
        schedule(quality, state(), TODAY)


def test_invalid_quality_is_value_error():
    with pytest.raises(ValueError):
        schedule(7, state(), TODAY)


def test_default_state():
    s = default_state(TODAY)
    assert s == SchedulingState(2.5, 1, 0, TODAY)


def test_schedule_defaults_to_today():
    result = schedule(4, state())
    assert result.next_review_date == date.today() + timedelta(days=1)


def test_quality_descriptions_cover_scale():
    assert [q["value"] for q in QUALITY_DESCRIPTIONS] == [0, 1, 2, 3, 4, 5]
