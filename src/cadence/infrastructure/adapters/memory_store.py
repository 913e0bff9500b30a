"""In-memory card store, for embedding and tests."""

import logging
from collections.abc import Iterable

from cadence.domain.models import Card, CardStats
from cadence.domain.ports import CardStore

logger = logging.getLogger(__name__)


class InMemoryCardStore(CardStore):
    """
    Keeps cards in a dict keyed by card id.

    Deck ownership is tracked separately so user filtering works the same
    way it does against a real database.
    """

    def __init__(self, cards: Iterable[Card] = (), owners: dict[str, str] | None = None):
        """
        Args:
            cards: Initial cards.
            owners: deck_id -> user_id. Decks without an owner are visible to every user.
        """
        self._cards: dict[str, Card] = {card.id: card for card in cards}
        self._owners = dict(owners or {})
        self.writes: list[tuple[str, CardStats]] = []

    def add(self, card: Card, user_id: str | None = None) -> None:
        self._cards[card.id] = card
        if user_id is not None:
            self._owners[card.deck_id] = user_id

    def get(self, card_id: str) -> Card | None:
        return self._cards.get(card_id)

    async def fetch_cards_for_user(
        self, user_id: str, deck_id: str | None = None
    ) -> list[Card]:
        return [
            card
            for card in self._cards.values()
            if self._owners.get(card.deck_id, user_id) == user_id
            and (deck_id is None or card.deck_id == deck_id)
        ]

    async def update_card_stats(self, card_id: str, stats: CardStats) -> bool:
        card = self._cards.get(card_id)
        if card is None:
            logger.warning(f"Cannot update unknown card {card_id}")
            return False
        self._cards[card_id] = card.with_stats(stats)
        self.writes.append((card_id, stats))
        return True
