"""System time and randomness behind the Clock and RandomSource ports."""

import random
from datetime import datetime, timezone

from cadence.domain.ports import Clock, RandomSource


class SystemClock(Clock):
    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class PythonRandomSource(RandomSource):
    """
    RandomSource backed by ``random.Random``.

    Pass a seed to make shuffles and jitter reproducible.
    """

    def __init__(self, seed: int | None = None):
        self._random = random.Random(seed)

    def next(self) -> float:
        return self._random.random()
