from datetime import datetime, timezone

import pytest

from cadence.domain.models import Card, CardStats, ReviewResponse


def test_card_stats_defaults():
    stats = CardStats()
    assert stats.interval == 0
    assert stats.repetitions == 0
    assert stats.ease_factor == 2.5
    assert stats.last_reviewed is None
    assert stats.next_review is None
    assert stats.lapses == 0


def test_from_mapping_accepts_both_key_styles():
    snake = CardStats.from_mapping({"ease_factor": 2.1, "next_review": "2026-10-20T09:00:00Z"})
    camel = CardStats.from_mapping({"easeFactor": 2.1, "nextReview": "2026-10-20T09:00:00+00:00"})

    assert snake == camel
    assert snake.next_review == datetime(2026, 10, 20, 9, 0, tzinfo=timezone.utc)


def test_from_mapping_nulls_fall_back_to_defaults():
    stats = CardStats.from_mapping(
        {"interval": None, "repetitions": None, "ease_factor": None, "lapses": None}
    )
    assert stats == CardStats()


def test_to_row_round_trips_timestamps():
    when = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)
    stats = CardStats(interval=3, repetitions=2, ease_factor=2.6, last_reviewed=when)

    row = stats.to_row()

    assert row["last_reviewed"] == "2026-10-19T09:00:00+00:00"
    assert row["next_review"] is None
    assert CardStats.from_mapping(row) == stats


def test_card_from_store_row():
    card = Card.from_row(
        {
            "id": 17,
            "deck_id": 4,
            "front": "logos",
            "back": "word",
            "repetitions": 3,
            "decks": {"user_id": "u1", "name": "Greek"},
        }
    )

    assert card.id == "17"
    assert card.deck_id == "4"
    assert card.deck_name == "Greek"
    assert card.stats.repetitions == 3
    assert card.stats.ease_factor == 2.5


def test_with_stats_returns_copy():
    card = Card(id="a", deck_id="d", front="f", back="b")
    updated = card.with_stats(CardStats(interval=4))

    assert card.stats.interval == 0
    assert updated.stats.interval == 4
    assert updated.id == "a"


def test_response_is_a_closed_set():
    assert ReviewResponse("hard") is ReviewResponse.HARD
    with pytest.raises(ValueError):
        ReviewResponse("again")
