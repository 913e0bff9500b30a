"""
Review Service — Application layer orchestrator.

Reads cards from the store, picks and orders the working set, and hands it
to a new ReviewSession.
"""

import logging

from cadence.domain.constants import ADVANCE_DELAY, HARD_RETRY_DELAY
from cadence.domain.models import Card
from cadence.domain.ports import CardStore, Clock, RandomSource, ReviewTracker
from cadence.infrastructure.clock import PythonRandomSource, SystemClock

from .due_selector import get_due_count, order_deck_for_card, select_due_cards
from .review_session import ReviewMode, ReviewSession

logger = logging.getLogger(__name__)


class ReviewService:
    """
    Starts review sessions.

    Depends on the CardStore abstraction, not on a concrete adapter.
    """

    def __init__(
        self,
        store: CardStore,
        clock: Clock | None = None,
        rng: RandomSource | None = None,
        tracker: ReviewTracker | None = None,
        hard_retry_delay: float = HARD_RETRY_DELAY,
        advance_delay: float = ADVANCE_DELAY,
    ):
        self._store = store
        self._clock = clock or SystemClock()
        self._rng = rng or PythonRandomSource()
        self._tracker = tracker
        self._hard_retry_delay = hard_retry_delay
        self._advance_delay = advance_delay

    async def get_due_cards(self, user_id: str, deck_id: str | None = None) -> list[Card]:
        """Due cards in presentation order (shuffled)."""
        cards = await self._store.fetch_cards_for_user(user_id, deck_id)
        return select_due_cards(cards, self._rng, now=self._clock.now())

    async def get_due_count(self, user_id: str, deck_id: str | None = None) -> int:
        cards = await self._store.fetch_cards_for_user(user_id, deck_id)
        return get_due_count(cards, now=self._clock.now())

    async def start_global_review(self, user_id: str) -> ReviewSession | None:
        """
        Start a session over every due card the user owns.

        Returns:
            The session, or None if nothing is due.
        """
        cards = await self.get_due_cards(user_id)
        session = self._new_session(user_id, ReviewMode.ALL_DUE)
        if not session.load(cards):
            logger.info(f"Nothing due for user {user_id}")
            return None
        return session

    async def start_deck_review(
        self, user_id: str, deck_id: str, first_card_id: str | None = None
    ) -> ReviewSession | None:
        """
        Start a session over a whole deck, due or not.

        Args:
            first_card_id: Card the learner picked; it is presented first.

        Returns:
            The session, or None if the deck has no cards.
        """
        cards = await self._store.fetch_cards_for_user(user_id, deck_id)
        ordered = order_deck_for_card(cards, first_card_id, self._rng)
        session = self._new_session(user_id, ReviewMode.DECK)
        if not session.load(ordered):
            logger.info(f"Deck {deck_id} has no cards")
            return None
        return session

    async def aclose(self) -> None:
        await self._store.aclose()

    def _new_session(self, user_id: str, mode: ReviewMode) -> ReviewSession:
        return ReviewSession(
            self._store,
            user_id,
            mode=mode,
            clock=self._clock,
            rng=self._rng,
            tracker=self._tracker,
            hard_retry_delay=self._hard_retry_delay,
            advance_delay=self._advance_delay,
        )
