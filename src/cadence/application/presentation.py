"""
Display values derived from scheduling state.

Renderers read these instead of computing anything from raw stats.
This is a pure computation module with no I/O.
"""

from dataclasses import dataclass

from cadence.domain.models import Card, CardDifficulty, Mastery, ReviewResponse

from .due_selector import get_card_difficulty, get_card_mastery, get_card_mastery_with_lapses
from .scheduler import round_half_up


@dataclass(frozen=True)
class CardDisplay:
    """
    Per-card values shown next to the answer.

    Attributes:
        win_streak: Consecutive successful reviews (the card's repetitions).
        ease_percent: Ease relative to the default, e.g. 2.6 -> +10.
    """

    win_streak: int
    ease_percent: int
    mastery: Mastery
    lapses: int
    difficulty: CardDifficulty


@dataclass(frozen=True)
class SessionSnapshot:
    """Everything a renderer needs after a transition."""

    state: str
    card: Card | None
    show_answer: bool
    position: int  # 1-based; 0 when no card is presented
    total: int
    display: CardDisplay | None
    total_reviewed: int
    save_failed: bool
    busy: bool


def describe_card(card: Card, with_lapses: bool = False) -> CardDisplay:
    stats = card.stats
    if with_lapses:
        mastery = get_card_mastery_with_lapses(stats.repetitions, stats.ease_factor, stats.lapses)
    else:
        mastery = get_card_mastery(stats.repetitions, stats.ease_factor)

    return CardDisplay(
        win_streak=stats.repetitions,
        ease_percent=round_half_up(stats.ease_factor * 100 - 250),
        mastery=mastery,
        lapses=stats.lapses,
        difficulty=get_card_difficulty(stats.lapses, stats.ease_factor),
    )


def format_interval(days: int) -> str:
    if days <= 0:
        return "a few minutes"
    if days == 1:
        return "1 day"
    if days < 7:
        return f"{days} days"
    if days < 30:
        weeks = round_half_up(days / 7)
        return "1 week" if weeks == 1 else f"{weeks} weeks"
    months = round_half_up(days / 30)
    return "1 month" if months == 1 else f"{months} months"


def response_message(response: ReviewResponse, interval: int, repetitions: int = 0) -> str:
    """Feedback line shown after a response."""
    when = format_interval(interval)
    if response is ReviewResponse.HARD:
        return "This card needs more work. It will come back in a few minutes."

    if response is ReviewResponse.MEDIUM:
        if repetitions <= 2:
            return f"Good! This card is still being learned. Next review in {when}."
        return f"Correct, with some hesitation. Next review in {when}."

    if repetitions == 1:
        return f"Excellent! First recall confirmed. Next review in {when}."
    if repetitions == 2:
        return f"Great! The card is moving into long-term retention. Next review in {when}."
    if repetitions <= 5:
        return f"Mastered! Next review in {when}."
    return f"Expert! This one is well anchored. Next review in {when}."


def format_study_time(seconds: int) -> str:
    if seconds < 60:
        return f"{seconds}s"
    if seconds < 3600:
        return f"{seconds // 60}min"
    hours, rest = divmod(seconds, 3600)
    minutes = rest // 60
    return f"{hours}h {minutes}min" if minutes else f"{hours}h"
