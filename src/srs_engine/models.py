"""Data classes for the scheduling domain model."""
from dataclasses import dataclass
from datetime import date
from typing import Optional


@dataclass
class FlashcardSet:
    id: int
    title: str
    description: str = ""


@dataclass(frozen=True)
class Card:
    id: int
    set_id: int
    front: str
    back: str
    card_order: int = 0


@dataclass(frozen=True)
class SchedulingState:
    """SM-2 progress of one learner on one card."""
    easiness_factor: float = 2.5
    interval_days: int = 1
    repetitions: int = 0
    next_review_date: Optional[date] = None


@dataclass
class CardProgress:
    card: Card
    state: SchedulingState
    is_due: bool
    review_count: int = 0
    is_remembered: Optional[bool] = None
    last_reviewed_at: Optional[str] = None


@dataclass
class ReviewStats:
    total_cards: int
    cards_due_today: int
    cards_learned: int
    average_ef: float
