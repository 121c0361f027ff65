"""Review queue: due cards, statistics and the rating write path."""
import logging
import threading
from collections import defaultdict
from datetime import date
from typing import Callable, Optional

from srs_engine.errors import CardNotFound, StoreUnavailable
from srs_engine.models import Card, CardProgress, ReviewStats, SchedulingState
from srs_engine.session import StudySession
from srs_engine.sm2 import DEFAULT_EASINESS, default_state, schedule, validate_quality
from srs_engine.store import card_from_row, state_from_row

logger = logging.getLogger(__name__)

DUE_PAGE_SIZE = 50
# Past the two fixed onboarding intervals (1 day, 6 days)
LEARNED_THRESHOLD = 2


class ReviewQueue:
    """Combines a progress store with "today" to drive reviews for learners."""

    def __init__(self, store, clock: Callable[[], date] = date.today, page_size: int = DUE_PAGE_SIZE):
        self.store = store
        self.clock = clock
        self.page_size = page_size
        # one lock per (learner, card) so concurrent ratings of a card apply in turn
        self._card_locks = defaultdict(threading.Lock)
        self._card_locks_guard = threading.Lock()

    def _card_lock(self, learner_id: str, card_id: int) -> threading.Lock:
        with self._card_locks_guard:
            return self._card_locks[(learner_id, card_id)]

    def due_cards(self, learner_id: str, set_id: Optional[int] = None) -> list[tuple[Card, SchedulingState]]:
        try:
            return self.store.list_due(learner_id, set_id, self.clock(), self.page_size)
        except StoreUnavailable:
            logger.warning("due cards unavailable for %s, returning an empty queue", learner_id)
            return []

    def stats(self, learner_id: str) -> ReviewStats:
        try:
            raw = self.store.aggregate(learner_id, self.clock(), LEARNED_THRESHOLD)
        except StoreUnavailable:
            logger.warning("review stats unavailable for %s, returning defaults", learner_id)
            return ReviewStats(0, 0, 0, DEFAULT_EASINESS)
        average_ef = raw["average_ef"]
        return ReviewStats(
            total_cards=raw["total_cards"],
            cards_due_today=raw["cards_due_today"],
            cards_learned=raw["cards_learned"],
            average_ef=average_ef if average_ef is not None else DEFAULT_EASINESS,
        )

    def rate(self, learner_id: str, card_id: int, quality: int) -> SchedulingState:
        """Apply one rating and persist it.

        Raises InvalidQuality before touching the store, CardNotFound for an
        unknown card, and StoreUnavailable when the read or write fails. Ratings
        of the same card by the same learner are applied one at a time, so
        none is lost when several run on a thread pool.
        """
        validate_quality(quality)
        if self.store.get_card(card_id) is None:
            raise CardNotFound(card_id)
        today = self.clock()
        with self._card_lock(learner_id, card_id):
            prior = self.store.get_progress(learner_id, card_id) or default_state(today)
            new_state = schedule(quality, prior, today)
            self.store.upsert_progress(learner_id, card_id, new_state, quality=quality)
        logger.debug(
            "rated card %s for %s: q=%d ef=%.2f interval=%d next=%s",
            card_id, learner_id, quality, new_state.easiness_factor,
            new_state.interval_days, new_state.next_review_date,
        )
        return new_state

    def cards_with_progress(self, learner_id: str, set_id: int) -> list[CardProgress]:
        """Every card of a set merged with the learner's progress, in card order."""
        today = self.clock()
        merged = []
        for row in self.store.progress_rows(learner_id, set_id):
            state = state_from_row(row)
            if state is None:
                merged.append(CardProgress(card=card_from_row(row), state=default_state(today), is_due=True))
                continue
            merged.append(CardProgress(
                card=card_from_row(row),
                state=state,
                is_due=state.next_review_date <= today,
                review_count=row["review_count"],
                is_remembered=bool(row["is_remembered"]),
                last_reviewed_at=row["last_reviewed_at"],
            ))
        return merged

    def start_session(
        self,
        learner_id: str,
        set_id: Optional[int] = None,
        *,
        due_only: bool = True,
        carry_over: bool = False,
        executor=None,
    ) -> StudySession:
        """Build a study session from the due queue or from a whole set.

        With carry_over, cards the learner already rated start classified
        known or unknown according to their last rating. Pass an executor for
        ratings to be saved in the background; without one each mark waits
        for its write.
        """
        if due_only:
            cards = [card for card, _ in self.due_cards(learner_id, set_id)]
        else:
            if set_id is None:
                raise ValueError("set_id is required when due_only is False")
            cards = self.store.get_cards(set_id)
        known, unknown = set(), set()
        if carry_over and cards:
            flags = self.store.remembered_flags(learner_id, [c.id for c in cards])
            for card_id, remembered in flags.items():
                (known if remembered else unknown).add(card_id)
        return StudySession.start(
            cards, queue=self, learner_id=learner_id,
            known=known, unknown=unknown, executor=executor,
        )
