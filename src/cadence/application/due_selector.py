"""
Due-set selection and presentation ordering.

Decides which cards are eligible for review now and in which order a
session presents them. Shuffles draw from an injected RandomSource so tests
can fix the permutation.
"""

from collections.abc import Iterable, Sequence
from datetime import datetime, timezone
from typing import TypeVar

from cadence.domain.constants import (
    CONSOLIDATING_REPETITIONS,
    DIFFICULT_LAPSES,
    LEARNING_REPETITIONS,
    MASTERED_EASE_THRESHOLD,
)
from cadence.domain.models import Card, CardDifficulty, Mastery
from cadence.domain.ports import RandomSource

T = TypeVar("T")


def is_due(next_review: datetime | None, now: datetime | None = None) -> bool:
    """A card without a scheduled review is always due."""
    if next_review is None:
        return True
    now = now or datetime.now(timezone.utc)
    if next_review.tzinfo is None:
        # Naive timestamps from stores are taken as UTC
        next_review = next_review.replace(tzinfo=timezone.utc)
    return next_review <= now


def get_due_count(cards: Iterable[Card], now: datetime | None = None) -> int:
    return sum(1 for card in cards if is_due(card.next_review, now))


def shuffle_cards(items: Sequence[T], rng: RandomSource) -> list[T]:
    """
    Fisher-Yates shuffle returning a new list.

    Each index draw is ``floor(rng.next() * (i + 1))``.
    """
    shuffled = list(items)
    for i in range(len(shuffled) - 1, 0, -1):
        j = min(int(rng.next() * (i + 1)), i)
        shuffled[i], shuffled[j] = shuffled[j], shuffled[i]
    return shuffled


def select_due_cards(
    cards: Iterable[Card], rng: RandomSource, now: datetime | None = None
) -> list[Card]:
    """
    Filter to due cards and shuffle them.

    Returns:
        The presentation order. An empty list means nothing is due; the caller
        decides how to present that.
    """
    due = [card for card in cards if is_due(card.next_review, now)]
    if not due:
        return []
    return shuffle_cards(due, rng)


def order_deck_for_card(
    cards: Iterable[Card], first_card_id: str | None, rng: RandomSource
) -> list[Card]:
    """
    Order a whole deck for a single-deck review.

    The deck is shuffled without looking at due-ness, then the card that
    triggered the review is moved to the front.
    """
    ordered = shuffle_cards(list(cards), rng)
    if first_card_id is None:
        return ordered

    for index, card in enumerate(ordered):
        if card.id == first_card_id:
            ordered.insert(0, ordered.pop(index))
            break
    return ordered


def get_card_mastery(repetitions: int, ease_factor: float) -> Mastery:
    if repetitions == 0:
        return Mastery.NEW
    if repetitions < LEARNING_REPETITIONS:
        return Mastery.LEARNING
    if repetitions < CONSOLIDATING_REPETITIONS:
        return Mastery.CONSOLIDATING
    if ease_factor > MASTERED_EASE_THRESHOLD:
        return Mastery.MASTERED
    return Mastery.REVIEW


def get_card_mastery_with_lapses(
    repetitions: int, ease_factor: float, lapses: int
) -> Mastery:
    """
    Lapse-aware mastery used by the global review flow.

    Once past the learning stage, a card that has lapsed often is kept in
    "review" regardless of its repetitions and ease.
    """
    base = get_card_mastery(repetitions, ease_factor)
    if base in (Mastery.NEW, Mastery.LEARNING):
        return base
    if lapses >= DIFFICULT_LAPSES:
        return Mastery.REVIEW
    return base


def get_card_difficulty(lapses: int, ease_factor: float) -> CardDifficulty:
    if lapses == 0 and ease_factor >= 2.5:
        return CardDifficulty.EASY
    if lapses <= 1 and ease_factor >= 2.2:
        return CardDifficulty.MEDIUM
    if lapses <= 2 and ease_factor >= 1.8:
        return CardDifficulty.HARD
    return CardDifficulty.VERY_HARD


def get_immediate_review_cards(
    cards: Iterable[Card], now: datetime | None = None
) -> list[Card]:
    """Cards that were answered "hard" (interval 0) and are due again."""
    # A never-reviewed card also has interval 0; only reviewed ones count
    return [
        card
        for card in cards
        if card.stats.interval == 0
        and card.stats.last_reviewed is not None
        and is_due(card.next_review, now)
    ]
