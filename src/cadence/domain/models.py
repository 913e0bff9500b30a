"""
Domain models for scheduling.

These are pure data structures with no I/O or external dependencies.
"""

from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any

from .constants import DEFAULT_EASE


class ReviewResponse(str, Enum):
    """The learner's self-assessment after seeing the answer."""

    HARD = "hard"
    MEDIUM = "medium"
    EASY = "easy"


class Mastery(str, Enum):
    NEW = "new"
    LEARNING = "learning"
    CONSOLIDATING = "consolidating"
    REVIEW = "review"
    MASTERED = "mastered"


class CardDifficulty(str, Enum):
    EASY = "easy"
    MEDIUM = "medium"
    HARD = "hard"
    VERY_HARD = "very_hard"


@dataclass(frozen=True)
class CardStats:
    """
    Scheduling state of a single card.

    Attributes:
        interval: Days until the next review. 0 means due within minutes.
        repetitions: Consecutive non-hard reviews since the last reset.
        ease_factor: Interval growth multiplier, kept within [1.3, 3.0].
        last_reviewed: Time of the most recent response (None if never reviewed).
        next_review: Time at/after which the card is due (None means due now).
        lapses: Number of "hard" responses recorded for the card.
    """

    interval: int = 0
    repetitions: int = 0
    ease_factor: float = DEFAULT_EASE
    last_reviewed: datetime | None = None
    next_review: datetime | None = None
    lapses: int = 0

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "CardStats":
        """
        Build stats from a partial mapping.

        Accepts both snake_case (``ease_factor``) and camelCase (``easeFactor``)
        keys. Missing or null values fall back to the defaults.
        """

        def pick(*keys: str) -> Any:
            for key in keys:
                value = data.get(key)
                if value is not None:
                    return value
            return None

        interval = pick("interval")
        repetitions = pick("repetitions")
        ease = pick("ease_factor", "easeFactor")
        lapses = pick("lapses")

        return cls(
            interval=int(interval) if interval is not None else 0,
            repetitions=int(repetitions) if repetitions is not None else 0,
            ease_factor=float(ease) if ease else DEFAULT_EASE,
            last_reviewed=_parse_timestamp(pick("last_reviewed", "lastReviewed")),
            next_review=_parse_timestamp(pick("next_review", "nextReview")),
            lapses=int(lapses) if lapses is not None else 0,
        )

    def to_row(self) -> dict[str, Any]:
        """Serialize to the column layout used by the card stores."""
        return {
            "interval": self.interval,
            "repetitions": self.repetitions,
            "ease_factor": self.ease_factor,
            "last_reviewed": self.last_reviewed.isoformat() if self.last_reviewed else None,
            "next_review": self.next_review.isoformat() if self.next_review else None,
            "lapses": self.lapses,
        }


@dataclass(frozen=True)
class Card:
    """A flashcard together with its scheduling state."""

    id: str
    deck_id: str
    front: str
    back: str
    stats: CardStats = field(default_factory=CardStats)
    deck_name: str | None = None

    @property
    def next_review(self) -> datetime | None:
        return self.stats.next_review

    def with_stats(self, stats: CardStats) -> "Card":
        return replace(self, stats=stats)

    @classmethod
    def from_row(cls, row: Mapping[str, Any]) -> "Card":
        """Build a card from a store row (``{id, deck_id, front, back, interval?, ...}``)."""
        deck = row.get("decks")
        deck_name = deck.get("name") if isinstance(deck, Mapping) else row.get("deck_name")
        return cls(
            id=str(row["id"]),
            deck_id=str(row.get("deck_id", "")),
            front=str(row.get("front", "")),
            back=str(row.get("back", "")),
            stats=CardStats.from_mapping(row),
            deck_name=deck_name,
        )


@dataclass(frozen=True)
class ReviewEvent:
    """
    A processed response, reported to the stats aggregation collaborator.

    Attributes:
        study_time: Whole seconds between answer reveal and response.
    """

    user_id: str
    card_id: str
    deck_id: str
    response: ReviewResponse
    study_time: int = 0


def _parse_timestamp(value: Any) -> datetime | None:
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value
    text = str(value)
    # Python < 3.11 does not accept a trailing "Z"
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    return datetime.fromisoformat(text)
