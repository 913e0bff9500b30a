"""
Review session state machine.

States::

    LOADING -> PRESENTING(answer hidden) -> PRESENTING(answer shown)
            -> PRESENTING(next card) | SESSION_END -> CLOSED

One user action is handled at a time. Invalid or overlapping actions are
no-ops so duplicate UI events are harmless. Persistence failures never block
navigation; they are recorded on the session instead of raised.
"""

import asyncio
import logging
import math
from dataclasses import dataclass
from datetime import datetime
from enum import Enum

from cadence.domain.constants import ADVANCE_DELAY, HARD_RETRY_DELAY
from cadence.domain.models import Card, CardStats, ReviewEvent, ReviewResponse
from cadence.domain.ports import CardStore, Clock, RandomSource, ReviewTracker
from cadence.infrastructure.clock import PythonRandomSource, SystemClock

from .due_selector import shuffle_cards
from .presentation import SessionSnapshot, describe_card, response_message
from .scheduler import calculate_next_review

logger = logging.getLogger(__name__)

SAVE_FAILED_MESSAGE = "Review kept for this session, but it could not be saved."


class SessionState(str, Enum):
    LOADING = "loading"
    PRESENTING = "presenting"
    SESSION_END = "session_end"
    CLOSED = "closed"


class ReviewMode(str, Enum):
    DECK = "deck"  # one deck, can be restarted from the end screen
    ALL_DUE = "all_due"  # every due card across the user's decks


@dataclass(frozen=True)
class ReviewOutcome:
    """
    Result of a processed response.

    ``success`` is False when the new stats could not be saved. Navigation
    has still happened in that case.
    """

    card_id: str
    response: ReviewResponse
    stats: CardStats
    success: bool
    message: str

    @property
    def immediate_review(self) -> bool:
        return self.response is ReviewResponse.HARD


class ReviewSession:
    """
    Presents an ordered working set one card at a time.

    The working set is a session-scoped copy; the store stays the system of
    record and receives every new stats value as soon as it is computed.
    """

    def __init__(
        self,
        store: CardStore,
        user_id: str,
        mode: ReviewMode = ReviewMode.ALL_DUE,
        clock: Clock | None = None,
        rng: RandomSource | None = None,
        tracker: ReviewTracker | None = None,
        hard_retry_delay: float = HARD_RETRY_DELAY,
        advance_delay: float = ADVANCE_DELAY,
    ):
        """
        Args:
            store: Card store receiving write-through updates.
            user_id: Reported to the tracker with each review.
            mode: DECK sessions can be continued after the last card.
            clock: Time source; system UTC clock if not provided.
            rng: Random source for jitter and reshuffles.
            tracker: Optional stats aggregation collaborator.
            hard_retry_delay: Seconds before a "hard" card is shown again.
            advance_delay: Seconds before moving to the next card.
        """
        self._store = store
        self.user_id = user_id
        self.mode = mode
        self._clock = clock or SystemClock()
        self._rng = rng or PythonRandomSource()
        self._tracker = tracker
        self._hard_retry_delay = hard_retry_delay
        self._advance_delay = advance_delay

        self._state = SessionState.LOADING
        self._cards: list[Card] = []
        self._cursor = 0
        self._show_answer = False
        self._busy = False
        self._revealed_at: datetime | None = None
        self._started_at: datetime | None = None
        self._total_reviewed = 0
        self._failed_saves = 0

    # ------------------------------------------------------------------
    # Read-only state
    # ------------------------------------------------------------------

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def cursor(self) -> int:
        return self._cursor

    @property
    def show_answer(self) -> bool:
        return self._show_answer

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def cards(self) -> tuple[Card, ...]:
        return tuple(self._cards)

    @property
    def current_card(self) -> Card | None:
        if self._state is not SessionState.PRESENTING:
            return None
        return self._cards[self._cursor]

    @property
    def total_reviewed(self) -> int:
        return self._total_reviewed

    @property
    def failed_saves(self) -> int:
        return self._failed_saves

    @property
    def save_failed(self) -> bool:
        return self._failed_saves > 0

    @property
    def started_at(self) -> datetime | None:
        return self._started_at

    @property
    def elapsed_seconds(self) -> int:
        if self._started_at is None:
            return 0
        return max(0, math.floor((self._clock.now() - self._started_at).total_seconds()))

    # ------------------------------------------------------------------
    # Transitions
    # ------------------------------------------------------------------

    def load(self, cards: list[Card]) -> bool:
        """
        Populate the working set in the given order.

        Returns:
            False if there is nothing to review; the session stays in LOADING.
        """
        if self._state is not SessionState.LOADING:
            logger.debug(f"load() ignored in state {self._state.value}")
            return False
        if not cards:
            return False

        self._cards = list(cards)
        self._cursor = 0
        self._show_answer = False
        self._started_at = self._clock.now()
        self._state = SessionState.PRESENTING
        logger.debug(f"Session loaded with {len(self._cards)} cards ({self.mode.value})")
        return True

    def reveal_answer(self) -> bool:
        """Show the answer of the current card. No-op if already shown."""
        if self._state is not SessionState.PRESENTING or self._show_answer or self._busy:
            return False
        self._show_answer = True
        self._revealed_at = self._clock.now()
        return True

    async def respond(self, response: ReviewResponse | str) -> ReviewOutcome | None:
        """
        Apply the learner's response to the current card.

        Computes new stats, writes them to the store, updates the working
        set, then either re-presents the same card (hard) or advances.

        Returns:
            The outcome, or None if the call was not valid in the current state
            (answer hidden, session not presenting, or a response in flight).
        """
        if self._busy or self._state is not SessionState.PRESENTING or not self._show_answer:
            logger.debug("respond() ignored: no revealed card or a response is in flight")
            return None

        response = ReviewResponse(response)
        self._busy = True
        index = self._cursor
        card = self._cards[index]

        try:
            now = self._clock.now()
            new_stats = calculate_next_review(card.stats, response, now=now, rng=self._rng)
            saved = await self._save(card.id, new_stats)

            outcome = ReviewOutcome(
                card_id=card.id,
                response=response,
                stats=new_stats,
                success=saved,
                message=response_message(response, new_stats.interval, new_stats.repetitions)
                if saved
                else SAVE_FAILED_MESSAGE,
            )

            if self._state is SessionState.CLOSED:
                # Torn down while the write was in flight
                return outcome

            self._cards[index] = card.with_stats(new_stats)
            self._total_reviewed += 1
            if saved:
                await self._track(card, response, now)
            else:
                self._failed_saves += 1

            if response is ReviewResponse.HARD:
                await self._pause(self._hard_retry_delay)
                if self._state is SessionState.CLOSED:
                    return outcome
                self._show_answer = False
                self._revealed_at = None
            else:
                await self._pause(self._advance_delay)
                if self._state is SessionState.CLOSED:
                    return outcome
                self._advance()

            return outcome
        finally:
            self._busy = False

    def continue_session(self) -> bool:
        """
        Restart a finished single-deck session with a fresh shuffle.

        Reuses the in-memory working set, including stats updated during
        this session; the store is not queried again.
        """
        if self._state is not SessionState.SESSION_END or self.mode is not ReviewMode.DECK:
            return False

        self._cards = shuffle_cards(self._cards, self._rng)
        self._cursor = 0
        self._show_answer = False
        self._revealed_at = None
        self._state = SessionState.PRESENTING
        logger.debug("Session restarted")
        return True

    def end_session(self) -> int:
        """
        Leave the review flow, from the end screen or as an abort.

        Returns:
            The number of responses processed in this session.
        """
        if self._state is not SessionState.CLOSED:
            logger.info(
                f"Session ended: {self._total_reviewed} reviewed, "
                f"{self._failed_saves} failed saves, {self.elapsed_seconds}s"
            )
            self._state = SessionState.CLOSED
            self._cards = []
            self._show_answer = False
            self._revealed_at = None
        return self._total_reviewed

    def snapshot(self) -> SessionSnapshot:
        card = self.current_card
        return SessionSnapshot(
            state=self._state.value,
            card=card,
            show_answer=self._show_answer,
            position=self._cursor + 1 if card else 0,
            total=len(self._cards),
            display=describe_card(card, with_lapses=self.mode is ReviewMode.ALL_DUE)
            if card
            else None,
            total_reviewed=self._total_reviewed,
            save_failed=self.save_failed,
            busy=self._busy,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _advance(self) -> None:
        self._cursor += 1
        self._show_answer = False
        self._revealed_at = None
        if self._cursor >= len(self._cards):
            self._state = SessionState.SESSION_END
            logger.debug(f"Session finished after {self._total_reviewed} responses")

    async def _save(self, card_id: str, stats: CardStats) -> bool:
        try:
            # Shielded so an abandoned session does not cancel the write
            saved = bool(await asyncio.shield(self._store.update_card_stats(card_id, stats)))
        except Exception as e:
            logger.warning(f"Failed to save stats for card {card_id}: {e}")
            return False
        if not saved:
            logger.warning(f"Store rejected stats for card {card_id}")
        return saved

    async def _track(self, card: Card, response: ReviewResponse, now: datetime) -> None:
        if self._tracker is None:
            return

        study_time = 0
        if self._revealed_at is not None:
            study_time = max(0, math.floor((now - self._revealed_at).total_seconds()))

        event = ReviewEvent(
            user_id=self.user_id,
            card_id=card.id,
            deck_id=card.deck_id,
            response=response,
            study_time=study_time,
        )
        try:
            await self._tracker.track_review(event)
        except Exception as e:
            logger.warning(f"Failed to track review for card {card.id}: {e}")

    @staticmethod
    async def _pause(delay: float) -> None:
        if delay > 0:
            await asyncio.sleep(delay)
