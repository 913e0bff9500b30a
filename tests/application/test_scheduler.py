import random
from datetime import timedelta

import pytest

from cadence.application.scheduler import calculate_next_review, jitter_minutes, round_half_up
from cadence.domain.constants import MAX_EASE, MAX_INTERVAL, MIN_EASE
from cadence.domain.models import CardStats, ReviewResponse

HARD = ReviewResponse.HARD
MEDIUM = ReviewResponse.MEDIUM
EASY = ReviewResponse.EASY


@pytest.fixture
def rng(scripted_rng):
    # 0.5 maps to a zero jitter offset
    return scripted_rng(0.5)


# --- Worked examples ---


def test_first_easy_review(clock, rng):
    result = calculate_next_review(
        CardStats(interval=0, repetitions=0, ease_factor=2.5), EASY, now=clock.now(), rng=rng
    )

    assert result.interval == 1
    assert result.repetitions == 1
    assert result.ease_factor == pytest.approx(2.6)
    assert result.last_reviewed == clock.now()
    assert result.next_review == clock.now() + timedelta(days=1)


def test_second_easy_review(clock, rng):
    result = calculate_next_review(
        CardStats(interval=1, repetitions=1, ease_factor=2.6), EASY, now=clock.now(), rng=rng
    )

    assert result.interval == 4
    assert result.repetitions == 2
    assert result.ease_factor == pytest.approx(2.7)


def test_third_easy_review_uses_ten_days(clock, rng):
    result = calculate_next_review(
        CardStats(interval=4, repetitions=2, ease_factor=2.7), EASY, now=clock.now(), rng=rng
    )
    assert result.interval == 10
    assert result.repetitions == 3


def test_mature_easy_review(clock, rng):
    # base multiplier capped at 2.8, maturity factor 1.0 at 3 repetitions
    result = calculate_next_review(
        CardStats(interval=10, repetitions=3, ease_factor=2.8), EASY, now=clock.now(), rng=rng
    )

    assert result.interval == 28
    assert result.repetitions == 4
    assert result.ease_factor == pytest.approx(2.9)


def test_hard_resets_mature_card(clock, rng):
    result = calculate_next_review(
        CardStats(interval=7, repetitions=4, ease_factor=2.5), HARD, now=clock.now(), rng=rng
    )

    assert result.interval == 0
    assert result.repetitions == 0
    assert result.ease_factor == pytest.approx(2.3)
    assert result.lapses == 1


# --- Medium path ---


@pytest.mark.parametrize(
    "repetitions, expected_interval",
    [(0, 1), (1, 3), (2, 7)],
)
def test_medium_learning_sequence(clock, rng, repetitions, expected_interval):
    result = calculate_next_review(
        CardStats(interval=5, repetitions=repetitions), MEDIUM, now=clock.now(), rng=rng
    )
    assert result.interval == expected_interval
    assert result.repetitions == repetitions + 1
    assert result.ease_factor == pytest.approx(2.35)


def test_medium_mature_growth_is_damped(clock, rng):
    # round(7 * 2.35 * 0.85) = round(13.98) = 14
    result = calculate_next_review(
        CardStats(interval=7, repetitions=3, ease_factor=2.5), MEDIUM, now=clock.now(), rng=rng
    )
    assert result.interval == 14
    assert result.repetitions == 4


def test_mature_card_never_drops_below_a_week(clock, rng):
    result = calculate_next_review(
        CardStats(interval=1, repetitions=5, ease_factor=1.3), MEDIUM, now=clock.now(), rng=rng
    )
    assert result.interval == 7
    assert result.repetitions == 6


def test_interval_capped_at_sixty_days(clock, rng):
    # 50 * 2.8 * 1.25 = 175
    result = calculate_next_review(
        CardStats(interval=50, repetitions=8, ease_factor=3.0), EASY, now=clock.now(), rng=rng
    )
    assert result.interval == MAX_INTERVAL
    assert result.ease_factor == MAX_EASE


def test_maturity_factor_is_capped(clock, rng):
    # repetitions 20 -> 1 + 17 * 0.05 would be 1.85, capped at 1.3; 10 * 2.5 * 1.3 = 32.5 -> 33
    result = calculate_next_review(
        CardStats(interval=10, repetitions=20, ease_factor=2.4), EASY, now=clock.now(), rng=rng
    )
    assert result.interval == 33


# --- Hard path ---


def test_hard_is_five_minutes_without_jitter(clock, scripted_rng):
    rng = scripted_rng(0.0)
    result = calculate_next_review(
        CardStats(interval=30, repetitions=6, ease_factor=2.9, lapses=2),
        HARD,
        now=clock.now(),
        rng=rng,
    )

    assert result.next_review == clock.now() + timedelta(minutes=5)
    assert result.lapses == 3
    assert rng.calls == 0


def test_hard_never_goes_below_min_ease(clock):
    result = calculate_next_review(CardStats(ease_factor=1.35), HARD, now=clock.now())
    assert result.ease_factor == MIN_EASE


# --- Defaults and correction ---


def test_missing_stats_are_defaulted(clock):
    result = calculate_next_review(None, EASY, now=clock.now())
    assert result.interval == 1
    assert result.repetitions == 1
    assert result.ease_factor == pytest.approx(2.6)


def test_partial_mapping_accepted(clock):
    result = calculate_next_review(
        {"interval": None, "easeFactor": 2.0}, "medium", now=clock.now()
    )
    assert result.interval == 1
    assert result.ease_factor == pytest.approx(1.85)


def test_out_of_range_input_is_corrected(clock):
    high = calculate_next_review(
        CardStats(interval=-4, repetitions=-2, ease_factor=5.0), EASY, now=clock.now()
    )
    assert high.ease_factor == MAX_EASE
    assert high.interval == 1
    assert high.repetitions == 1

    low = calculate_next_review(CardStats(ease_factor=0.4), MEDIUM, now=clock.now())
    assert low.ease_factor == MIN_EASE


def test_lapses_carried_on_success(clock):
    result = calculate_next_review(CardStats(repetitions=1, lapses=2), EASY, now=clock.now())
    assert result.lapses == 2


# --- Jitter ---


def test_jitter_stays_within_ten_percent(clock, scripted_rng):
    low = calculate_next_review(
        CardStats(interval=4, repetitions=2, ease_factor=2.7),
        EASY,
        now=clock.now(),
        rng=scripted_rng(0.0),
    )
    high = calculate_next_review(
        CardStats(interval=4, repetitions=2, ease_factor=2.7),
        EASY,
        now=clock.now(),
        rng=scripted_rng(0.9999),
    )

    base = clock.now() + timedelta(days=10)
    assert base - timedelta(days=1) <= low.next_review < base
    assert base < high.next_review <= base + timedelta(days=1)


def test_jitter_is_whole_minutes(scripted_rng):
    assert jitter_minutes(10, scripted_rng(0.5)) == 0
    assert jitter_minutes(10, scripted_rng(0.0)) == -1440
    assert isinstance(jitter_minutes(7, scripted_rng(0.73)), int)


def test_no_rng_means_no_jitter(clock):
    result = calculate_next_review(CardStats(repetitions=1), EASY, now=clock.now())
    assert result.next_review == clock.now() + timedelta(days=4)


def test_round_half_up_rounds_halves_up():
    assert round_half_up(2.5) == 3
    assert round_half_up(3.5) == 4
    assert round_half_up(13.98) == 14
    assert round_half_up(-0.5) == 0


# --- Properties over random response sequences ---


def test_invariants_hold_over_long_histories(clock, scripted_rng):
    source = random.Random(1234)
    responses = [HARD, MEDIUM, EASY]

    for _ in range(50):
        stats = CardStats()
        for _ in range(40):
            response = source.choice(responses)
            new = calculate_next_review(
                stats, response, now=clock.now(), rng=scripted_rng(source.random())
            )

            assert MIN_EASE <= new.ease_factor <= MAX_EASE
            if response is HARD:
                assert new.repetitions == 0
                assert new.interval == 0
                assert new.next_review == clock.now() + timedelta(minutes=5)
            else:
                assert new.repetitions == stats.repetitions + 1
                assert new.interval <= MAX_INTERVAL
                if new.repetitions > 3:
                    assert new.interval >= 7
            stats = new
