"""
Interval scheduler.

A modified SM-2 rule with fixed early-repetition intervals. Pure computation:
the only inputs besides the card's stats are the current time and a random
source used for the due-date jitter.
"""

import math
from collections.abc import Mapping
from datetime import datetime, timedelta, timezone
from typing import Any

from cadence.domain.constants import (
    DEFAULT_EASE,
    EASY_EASE_BONUS,
    EASY_INTERVALS,
    EASY_MULTIPLIER_CAP,
    GRADUATION_INTERVAL,
    HARD_EASE_PENALTY,
    HARD_RETRY_MINUTES,
    JITTER_RATIO,
    LEARNING_INTERVALS,
    MATURE_MIN_INTERVAL,
    MATURE_REPETITIONS,
    MATURITY_CAP,
    MATURITY_STEP,
    MAX_EASE,
    MAX_INTERVAL,
    MEDIUM_EASE_PENALTY,
    MEDIUM_INTERVAL_DAMPING,
    MIN_EASE,
    MINUTES_PER_DAY,
)
from cadence.domain.models import CardStats, ReviewResponse
from cadence.domain.ports import RandomSource


def calculate_next_review(
    current: CardStats | Mapping[str, Any] | None,
    response: ReviewResponse | str,
    now: datetime | None = None,
    rng: RandomSource | None = None,
) -> CardStats:
    """
    Compute the card's next scheduling state.

    Never raises for in-domain input: missing values are defaulted and
    out-of-range values (negative interval, ease outside [1.3, 3.0]) are clamped.

    Args:
        current: Current stats; a partial mapping is accepted.
        response: hard, medium or easy.
        now: Review time. Defaults to the current UTC time.
        rng: Random source for the due-date jitter. Without one, no jitter is added.

    Returns:
        New CardStats with last_reviewed set to ``now``.
    """
    stats = _normalize(current)
    response = ReviewResponse(response)
    now = now or datetime.now(timezone.utc)

    if response is ReviewResponse.HARD:
        return CardStats(
            interval=0,
            repetitions=0,
            ease_factor=max(MIN_EASE, stats.ease_factor - HARD_EASE_PENALTY),
            last_reviewed=now,
            next_review=now + timedelta(minutes=HARD_RETRY_MINUTES),
            lapses=stats.lapses + 1,
        )

    if response is ReviewResponse.MEDIUM:
        ease = max(MIN_EASE, stats.ease_factor - MEDIUM_EASE_PENALTY)
        early = [*LEARNING_INTERVALS, GRADUATION_INTERVAL]
        if stats.repetitions < len(early):
            interval = early[stats.repetitions]
        else:
            interval = round_half_up(stats.interval * ease * MEDIUM_INTERVAL_DAMPING)
    else:
        ease = min(MAX_EASE, stats.ease_factor + EASY_EASE_BONUS)
        if stats.repetitions < len(EASY_INTERVALS):
            interval = EASY_INTERVALS[stats.repetitions]
        else:
            base_multiplier = min(ease, EASY_MULTIPLIER_CAP)
            maturity = min(
                1 + (stats.repetitions - MATURE_REPETITIONS) * MATURITY_STEP, MATURITY_CAP
            )
            interval = round_half_up(stats.interval * base_multiplier * maturity)

    repetitions = stats.repetitions + 1
    interval = min(interval, MAX_INTERVAL)
    if repetitions > MATURE_REPETITIONS and interval < MATURE_MIN_INTERVAL:
        interval = MATURE_MIN_INTERVAL

    next_review = now + timedelta(days=interval)
    if rng is not None:
        next_review += timedelta(minutes=jitter_minutes(interval, rng))

    return CardStats(
        interval=interval,
        repetitions=repetitions,
        ease_factor=ease,
        last_reviewed=now,
        next_review=next_review,
        lapses=stats.lapses,
    )


def jitter_minutes(interval: int, rng: RandomSource) -> int:
    """
    Uniform offset within +/-10% of the interval, in whole minutes.

    Spreads reviews so cards learned together do not all fall due at once.
    """
    spread = (rng.next() - 0.5) * 2 * JITTER_RATIO
    return math.floor(spread * interval * MINUTES_PER_DAY)


def _normalize(current: CardStats | Mapping[str, Any] | None) -> CardStats:
    if current is None:
        stats = CardStats()
    elif isinstance(current, CardStats):
        stats = current
    else:
        stats = CardStats.from_mapping(current)

    ease = stats.ease_factor if stats.ease_factor else DEFAULT_EASE
    return CardStats(
        interval=max(0, int(stats.interval or 0)),
        repetitions=max(0, int(stats.repetitions or 0)),
        ease_factor=min(MAX_EASE, max(MIN_EASE, ease)),
        last_reviewed=stats.last_reviewed,
        next_review=stats.next_review,
        lapses=max(0, int(stats.lapses or 0)),
    )


def round_half_up(value: float) -> int:
    # round() in Python is banker's rounding; intervals round .5 up
    return int(math.floor(value + 0.5))
