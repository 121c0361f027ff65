"""Interactive study session: known/unknown classification, undo and retry."""
import logging
from concurrent import futures
from dataclasses import dataclass
from enum import Enum
from functools import partial
from typing import Iterable, Optional

from srs_engine.errors import InvalidTransition
from srs_engine.models import Card

logger = logging.getLogger(__name__)


class Decision(str, Enum):
    KNOWN = "known"
    UNKNOWN = "unknown"


# The session only captures a binary signal: SM-2 "good" and "incorrect".
QUALITY_FOR_DECISION = {Decision.KNOWN: 4, Decision.UNKNOWN: 1}


@dataclass(frozen=True)
class HistoryEntry:
    card_id: int
    decision: Decision
    # classification the card had before this mark, restored on undo
    previous: Optional[Decision] = None


class StudySession:
    """One interactive review pass over a fixed deck of cards.

    Every mark issues one rating through the review queue. Given an
    executor, the in-memory classification never waits for that write; it is
    never rolled back when the write fails. Undo, retry and reset only touch
    in-memory state.
    """

    def __init__(
        self,
        cards: Iterable[Card],
        queue=None,
        learner_id: Optional[str] = None,
        known: Iterable[int] = (),
        unknown: Iterable[int] = (),
        executor: Optional[futures.Executor] = None,
    ):
        self._deck = tuple(cards)
        deck_ids = {c.id for c in self._deck}
        self._known = set(known) & deck_ids
        self._unknown = set(unknown) & deck_ids
        if self._known & self._unknown:
            raise ValueError("a card cannot start both known and unknown")
        self._active = self._deck
        self.current_index = 0
        self.history: list[HistoryEntry] = []
        self.retry_mode = False
        self.queue = queue
        self.learner_id = learner_id
        self.executor = executor
        self._pending: list[futures.Future] = []

    @classmethod
    def start(cls, cards, *, queue=None, learner_id=None, known=(), unknown=(), executor=None) -> "StudySession":
        if queue is not None and learner_id is None:
            raise ValueError("learner_id is required to persist ratings")
        return cls(cards, queue=queue, learner_id=learner_id, known=known, unknown=unknown, executor=executor)

    @property
    def deck(self) -> tuple[Card, ...]:
        return self._deck

    @property
    def active_cards(self) -> tuple[Card, ...]:
        return self._active

    @property
    def known(self) -> frozenset:
        return frozenset(self._known)

    @property
    def unknown(self) -> frozenset:
        return frozenset(self._unknown)

    @property
    def history_length(self) -> int:
        return len(self.history)

    @property
    def remaining(self) -> int:
        return len(self._active) - self.current_index

    def is_exhausted(self) -> bool:
        return self.current_index >= len(self._active)

    def current(self) -> Optional[Card]:
        if self.is_exhausted():
            return None
        return self._active[self.current_index]

    def progress(self) -> dict:
        return {
            "position": self.current_index,
            "total": len(self._active),
            "known": len(self._known),
            "unknown": len(self._unknown),
            "retry_mode": self.retry_mode,
        }

    def classification(self, card_id: int) -> Optional[Decision]:
        if card_id in self._known:
            return Decision.KNOWN
        if card_id in self._unknown:
            return Decision.UNKNOWN
        return None

    def _classify(self, card_id: int, decision: Optional[Decision]) -> None:
        self._known.discard(card_id)
        self._unknown.discard(card_id)
        if decision is Decision.KNOWN:
            self._known.add(card_id)
        elif decision is Decision.UNKNOWN:
            self._unknown.add(card_id)

    def mark(self, decision, card_id: Optional[int] = None) -> Optional[futures.Future]:
        """Classify the current card and move on to the next one.

        Returns a Future resolving to the persisted SchedulingState, or None
        for an offline session. A failed write surfaces through the Future.
        The write only runs in the background when the session was given an
        executor; otherwise it runs before mark returns and the Future comes
        back already done.
        """
        decision = Decision(decision)
        card = self.current()
        if card is None:
            raise InvalidTransition("no card to mark: the deck is exhausted")
        if card_id is not None and card_id != card.id:
            raise InvalidTransition(f"card {card_id} is not the card being shown ({card.id})")

        self.history.append(HistoryEntry(card.id, decision, self.classification(card.id)))
        self._classify(card.id, decision)
        self.current_index += 1
        return self._persist(card.id, QUALITY_FOR_DECISION[decision])

    def _persist(self, card_id: int, quality: int) -> Optional[futures.Future]:
        if self.queue is None:
            return None
        if self.executor is not None:
            future = self.executor.submit(self.queue.rate, self.learner_id, card_id, quality)
        else:
            future = futures.Future()
            try:
                future.set_result(self.queue.rate(self.learner_id, card_id, quality))
            except Exception as exc:
                future.set_exception(exc)
        future.add_done_callback(partial(self._report_write, card_id))
        self._pending.append(future)
        return future

    def _report_write(self, card_id: int, future: futures.Future) -> None:
        if future.cancelled():
            return
        exc = future.exception()
        if exc is not None:
            logger.warning("progress for card %s was not saved: %s", card_id, exc)

    def undo(self) -> HistoryEntry:
        """Revert the last mark in this pass. The persisted rating stays."""
        if not self.history:
            raise InvalidTransition("nothing to undo")
        entry = self.history.pop()
        self._classify(entry.card_id, entry.previous)
        if self.current_index > 0:
            self.current_index -= 1
        return entry

    def enter_retry(self) -> None:
        """Restrict the session to the cards currently classified unknown."""
        if not self._unknown:
            raise InvalidTransition("no unknown cards to retry")
        seen = set()
        retry_cards = []
        for card in self._deck:
            if card.id in self._unknown and card.id not in seen:
                seen.add(card.id)
                retry_cards.append(card)
        self._active = tuple(retry_cards)
        self.retry_mode = True
        self.current_index = 0
        self.history = []

    def exit_retry(self) -> None:
        if not self.retry_mode:
            raise InvalidTransition("not in retry mode")
        self._active = self._deck
        self.retry_mode = False
        self.current_index = 0
        self.history = []

    def reset_all(self) -> None:
        self._known.clear()
        self._unknown.clear()
        self.history = []
        self._active = self._deck
        self.retry_mode = False
        self.current_index = 0

    def wait_for_writes(self, timeout: Optional[float] = None) -> list[BaseException]:
        """Wait for outstanding ratings and return the ones that failed."""
        done, not_done = futures.wait(self._pending, timeout=timeout)
        self._pending = list(not_done)
        return [f.exception() for f in done if not f.cancelled() and f.exception() is not None]
