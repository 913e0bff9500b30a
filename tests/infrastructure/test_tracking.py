import logging

import pytest

from cadence.domain.models import ReviewEvent, ReviewResponse
from cadence.infrastructure.clock import PythonRandomSource, SystemClock
from cadence.infrastructure.tracking import LoggingReviewTracker


@pytest.mark.asyncio
async def test_logging_tracker_counts_and_logs(caplog):
    tracker = LoggingReviewTracker()

    with caplog.at_level(logging.INFO, logger="cadence.infrastructure.tracking"):
        await tracker.track_review(ReviewEvent("u1", "c1", "d1", ReviewResponse.EASY, 75))
        await tracker.track_review(ReviewEvent("u1", "c2", "d1", ReviewResponse.HARD, 5))

    assert tracker.counts == {"hard": 1, "medium": 0, "easy": 1}
    assert tracker.total_study_time == 80
    assert "c1" in caplog.text
    assert "1min" in caplog.text


def test_system_clock_is_timezone_aware():
    assert SystemClock().now().tzinfo is not None


def test_random_source_range_and_seed():
    values = [PythonRandomSource(seed=3).next() for _ in range(3)]
    assert len(set(values)) == 1
    rng = PythonRandomSource()
    assert all(0.0 <= rng.next() < 1.0 for _ in range(100))
