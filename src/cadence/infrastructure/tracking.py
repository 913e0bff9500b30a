"""
Review trackers.

The core only reports review events; aggregating them (streaks, totals,
heatmaps) belongs to the surrounding application.
"""

import logging

from cadence.application.presentation import format_study_time
from cadence.domain.models import ReviewEvent
from cadence.domain.ports import ReviewTracker

logger = logging.getLogger(__name__)


class LoggingReviewTracker(ReviewTracker):
    """Writes one log line per review and keeps a running count per response."""

    def __init__(self):
        self.counts: dict[str, int] = {"hard": 0, "medium": 0, "easy": 0}
        self.total_study_time = 0

    async def track_review(self, event: ReviewEvent) -> None:
        self.counts[event.response.value] += 1
        self.total_study_time += event.study_time
        logger.info(
            f"Reviewed card {event.card_id} (deck {event.deck_id}): "
            f"{event.response.value} in {format_study_time(event.study_time)}"
        )
