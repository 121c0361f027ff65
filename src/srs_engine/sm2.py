"""SM-2 spaced repetition algorithm."""
from datetime import date, timedelta
from typing import Optional

from srs_engine.errors import InvalidQuality
from srs_engine.models import SchedulingState

DEFAULT_EASINESS = 2.5
MIN_EASINESS = 1.3
MIN_QUALITY = 0
MAX_QUALITY = 5
PASSING_QUALITY = 3

QUALITY_DESCRIPTIONS = [
    {"value": 0, "label": "Blackout", "description": "No memory at all"},
    {"value": 1, "label": "Wrong", "description": "Remembered on seeing the answer"},
    {"value": 2, "label": "Hard", "description": "Remembered after a hint"},
    {"value": 3, "label": "Correct", "description": "Recalled with serious difficulty"},
    {"value": 4, "label": "Good", "description": "Recalled after some hesitation"},
    {"value": 5, "label": "Perfect", "description": "Instant recall"},
]


def default_state(today: Optional[date] = None) -> SchedulingState:
    """State of a card the learner has never rated."""
    return SchedulingState(
        easiness_factor=DEFAULT_EASINESS,
        interval_days=1,
        repetitions=0,
        next_review_date=today or date.today(),
    )


def validate_quality(quality) -> int:
    # bool is an int subclass but True/False are not ratings
    if isinstance(quality, bool) or not isinstance(quality, int):
        raise InvalidQuality(quality)
    if not MIN_QUALITY <= quality <= MAX_QUALITY:
        raise InvalidQuality(quality)
    return quality


def schedule(
    quality: int,
    prior: SchedulingState,
    today: Optional[date] = None,
) -> SchedulingState:
    """Calculate the next scheduling state using SM-2.

    Args:
        quality: Rating 0-5 (0=complete blackout, 5=perfect)
        prior: The card's current state for this learner
        today: Date the rating happens on, defaults to date.today()

    Returns:
        The new SchedulingState. The prior state is left untouched.

    Raises:
        InvalidQuality: quality is not an integer in 0-5.
    """
    validate_quality(quality)
    today = today or date.today()

    # Update easiness factor
    new_ef = prior.easiness_factor + (0.1 - (5 - quality) * (0.08 + (5 - quality) * 0.02))
    new_ef = max(MIN_EASINESS, new_ef)

    if quality < PASSING_QUALITY:
        # Failed recall restarts the ladder
        new_repetitions = 0
        new_interval = 1
    else:
        new_repetitions = prior.repetitions + 1
        if new_repetitions == 1:
            new_interval = 1
        elif new_repetitions == 2:
            new_interval = 6
        else:
            new_interval = round(prior.interval_days * new_ef)

    return SchedulingState(
        easiness_factor=new_ef,
        interval_days=new_interval,
        repetitions=new_repetitions,
        next_review_date=today + timedelta(days=new_interval),
    )
