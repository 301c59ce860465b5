"""
Pytest configuration shared across gridagg tests.
"""

import random

import pytest

from gridagg import rulebook
from gridagg.core.grid.models import EventType, GridEvent, GridOrigin


def _make_events(n_supply, n_demand, x=100.0, y=100.0, hour=8):
    """n_supply Supply + n_demand Demand events at one point and hour."""
    return (
        [GridEvent(x, y, hour, EventType.SUPPLY) for _ in range(n_supply)]
        + [GridEvent(x, y, hour, EventType.DEMAND) for _ in range(n_demand)]
    )


@pytest.fixture
def origin():
    """2 x 2 grid of 500 m cells anchored at (0, 0)."""
    return GridOrigin(min_x=0.0, min_y=0.0, width=1000.0, height=1000.0)


@pytest.fixture
def random_events():
    """Reproducible scatter of 5,000 events over a 10 km x 6 km envelope."""
    rng = random.Random(1234)
    return [
        GridEvent(
            x=rng.uniform(0.0, 10_000.0),
            y=rng.uniform(0.0, 6_000.0),
            hour=rng.randrange(24),
            event_type=EventType.SUPPLY if rng.random() < 0.45 else EventType.DEMAND,
        )
        for _ in range(5_000)
    ]


@pytest.fixture(autouse=True)
def _fresh_rulebook_cache(monkeypatch):
    """Each test sees the packaged rulebook unless it points elsewhere."""
    monkeypatch.delenv(rulebook.RULEBOOK_ENV_VAR, raising=False)
    monkeypatch.delenv("GRIDAGG_MAX_WORKERS", raising=False)
    rulebook.clear_cache()
    yield
    rulebook.clear_cache()


@pytest.fixture
def make_events():
    """Factory: make_events(n_supply, n_demand, x=..., y=..., hour=...)."""
    return _make_events
