"""Exceptions raised by the scheduling engine."""


class SchedulingError(Exception):
    """Base class for engine errors."""


class InvalidQuality(SchedulingError, ValueError):
    """A rating outside 0-5 was passed to the scheduler."""

    def __init__(self, quality):
        super().__init__(f"quality must be an integer between 0 and 5, got {quality!r}")
        self.quality = quality


class StoreUnavailable(SchedulingError):
    """The progress store could not be read or written."""


class InvalidTransition(SchedulingError):
    """A study session operation was called in a state that does not allow it."""


class CardNotFound(SchedulingError, LookupError):
    def __init__(self, card_id):
        super().__init__(f"no flashcard with id {card_id!r}")
        self.card_id = card_id
