"""Shared test fixtures for battlereplay."""

import pytest

from battlereplay.config import default_config
from battlereplay.core import reasoning, timeline
from battlereplay.core.chunking import clear_cache
from battlereplay.core.clock import TickScheduler


class FakeClock:
    """Manually advanced monotonic clock (seconds)."""

    def __init__(self, start: float = 100.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance_ms(self, ms: int) -> None:
        self.now += ms / 1000.0


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def scheduler(clock):
    return TickScheduler(clock)


@pytest.fixture
def config():
    """Default config with a short linger so phase tests stay small."""
    cfg = default_config()
    cfg.playback.linger_ticks = 3
    return cfg


@pytest.fixture(autouse=True)
def _fresh_caches():
    clear_cache()
    yield
    clear_cache()
    timeline.clear_cache()
    reasoning.clear_cache()
