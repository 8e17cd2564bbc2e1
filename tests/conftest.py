"""
Pytest fixtures for Royal Road tests.

Provides in-memory stores, a controllable clock and seeded randomness
for deterministic engine tests.
"""

import random
from datetime import datetime, timedelta, timezone

import pytest
from pathlib import Path

# Add src to path for imports
import sys
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from royal_road.state import (
    EventBus,
    MemorySaveStore,
    PlayerProgressionEngine,
    ResourceKind,
)


class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += timedelta(seconds=seconds)


@pytest.fixture
def clock():
    """Clock frozen at a fixed UTC instant."""
    return FakeClock(datetime(2025, 1, 1, 12, 0, 0, tzinfo=timezone.utc))


@pytest.fixture
def rng():
    """Seeded random source."""
    return random.Random(42)


@pytest.fixture
def memory_store():
    """In-memory save store for testing."""
    return MemorySaveStore()


@pytest.fixture
def bus():
    return EventBus()


@pytest.fixture
def events(bus):
    """Every notification published on the bus, in order."""
    received = []
    bus.on_any(received.append)
    return received


@pytest.fixture
def engine(memory_store, bus, clock, rng):
    """Fresh engine whose Slave-class taps always succeed."""
    return PlayerProgressionEngine(
        memory_store,
        bus=bus,
        config={"tap_opportunity_chance": 1.0},
        rng=rng,
        clock=clock,
    )


@pytest.fixture
def rich_engine(engine):
    """Engine with plenty of rice and honor to spend."""
    engine.ledger.credit(ResourceKind.RICE, 1_000_000)
    engine.ledger.credit(ResourceKind.HONOR, 10_000)
    return engine
