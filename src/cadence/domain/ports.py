"""
Ports (interfaces) for the scheduling core.

These define the contract that infrastructure adapters must implement.
Application services depend on these abstractions, not concrete implementations.
"""

from abc import ABC, abstractmethod
from datetime import datetime

from .models import Card, CardStats, ReviewEvent


class CardStore(ABC):
    """
    Port for reading and writing cards.

    The store is the system of record; sessions only hold a cached copy.

    Implementations:
        - InMemoryCardStore: Process-local dictionary.
        - YamlCardStore: Cards kept in a YAML file.
        - RestCardStore: PostgREST-style HTTP API.
    """

    @abstractmethod
    async def fetch_cards_for_user(
        self, user_id: str, deck_id: str | None = None
    ) -> list[Card]:
        """
        Fetch the cards owned by a user.

        Args:
            user_id: Owner of the decks.
            deck_id: Restrict to a single deck; all decks if None.

        Returns:
            List of Card objects. Empty if nothing matches.

        Raises:
            OSError: The store could not be reached (ConnectionError for remote stores).
            ValueError: The store answered with data that could not be parsed.
        """
        pass

    @abstractmethod
    async def update_card_stats(self, card_id: str, stats: CardStats) -> bool:
        """
        Persist new scheduling state for a card.

        Writing the same stats twice must leave the same stored state.

        Returns:
            True if the write was applied, False otherwise.
        """
        pass

    async def aclose(self) -> None:
        """Release connections held by the store. No-op by default."""
        return None


class ReviewTracker(ABC):
    """Port for the external stats aggregation collaborator."""

    @abstractmethod
    async def track_review(self, event: ReviewEvent) -> None:
        pass


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current time as a timezone-aware datetime."""
        pass


class RandomSource(ABC):
    """Source of uniform floats, injected wherever shuffling or jitter happens."""

    @abstractmethod
    def next(self) -> float:
        """Return a float in [0, 1)."""
        pass
