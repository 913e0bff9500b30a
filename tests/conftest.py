from datetime import datetime, timedelta, timezone

import pytest

from cadence.domain.models import Card, CardStats
from cadence.domain.ports import Clock, RandomSource

NOW = datetime(2026, 10, 19, 9, 0, tzinfo=timezone.utc)


class FixedClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = NOW):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> None:
        self.current += timedelta(**kwargs)


class ScriptedRandom(RandomSource):
    """Returns the given values in order, repeating the last one."""

    def __init__(self, *values: float):
        self.values = list(values) or [0.5]
        self.calls = 0

    def next(self) -> float:
        value = self.values[min(self.calls, len(self.values) - 1)]
        self.calls += 1
        return value


def make_card(card_id: str, deck_id: str = "d1", **stats) -> Card:
    return Card(
        id=card_id,
        deck_id=deck_id,
        front=f"front {card_id}",
        back=f"back {card_id}",
        stats=CardStats(**stats),
    )


@pytest.fixture
def clock():
    return FixedClock()


@pytest.fixture
def scripted_rng():
    return ScriptedRandom


@pytest.fixture
def keep_order():
    # Every Fisher-Yates draw picks the last index, so order is unchanged
    return ScriptedRandom(0.999)


@pytest.fixture
def card_factory():
    return make_card


@pytest.fixture
def mock_home(tmp_path, monkeypatch):
    """Mocks Path.home() to point to a temp dir."""
    home = tmp_path / "home"
    home.mkdir()

    # Isolate config files and env from the developer's machine
    monkeypatch.setenv("HOME", str(home))
    for var in (
        "CADENCE_BACKEND",
        "CADENCE_STORE_PATH",
        "CADENCE_REST_URL",
        "CADENCE_USER_ID",
        "CADENCE_SEED",
        "CADENCE_VERBOSE",
    ):
        monkeypatch.delenv(var, raising=False)
    return home
