"""
Grid Aggregation Data Models

Immutable records flowing through the aggregation engine:

- GridEvent: one Supply or Demand event in projected (metre) space
- GridOrigin: the envelope that anchors the grid
- HourlyZoneResult: classified counts for one cell-hour
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from enum import Enum
from typing import Iterable, Sequence

import numpy as np

from gridagg.constants import HOURS_PER_DAY
from gridagg.utils.error_handling import ConfigurationError


class EventType(str, Enum):
    """
    Supply = a driver completing a dropoff (becoming available).
    Demand = a passenger originating a pickup request.
    """
    SUPPLY = "Supply"
    DEMAND = "Demand"

    def __str__(self) -> str:
        return self.value

    @classmethod
    def parse(cls, value: str) -> "EventType":
        """Case-insensitive lookup by value; raises ValueError if unknown."""
        key = str(value).strip().lower()
        for member in cls:
            if member.value.lower() == key:
                return member
        raise ValueError(f"unknown event_type '{value}' (expected Supply or Demand)")


class ZoneStatus(str, Enum):
    """
    Classification of a grid cell in one hour bucket.

    - NET_SUPPLY: effective driver capacity exceeds ride requests
    - NET_DEMAND: ride requests exceed effective driver capacity
    - BALANCED: capacity equals requests (above the activity threshold)
    - UNSUPPORTED: total activity below the threshold; no reliable signal
    """
    UNSUPPORTED = "Unsupported"
    NET_SUPPLY = "NetSupply"
    NET_DEMAND = "NetDemand"
    BALANCED = "Balanced"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class GridEvent:
    x: float
    y: float
    hour: int
    event_type: EventType


@dataclass(frozen=True)
class GridOrigin:
    """
    Bounding envelope of all events in projected metres.

    Attributes:
        min_x: Western edge
        min_y: Southern edge
        width: East-west extent (>= 0)
        height: North-south extent (>= 0)
    """
    min_x: float
    min_y: float
    width: float
    height: float

    def __post_init__(self):
        for name in ("min_x", "min_y", "width", "height"):
            if not math.isfinite(getattr(self, name)):
                raise ConfigurationError(f"GridOrigin.{name} must be finite (got {getattr(self, name)}).")
        if self.width < 0 or self.height < 0:
            raise ConfigurationError(
                f"GridOrigin width and height must be non-negative (got {self.width} x {self.height})."
            )

    @property
    def max_x(self) -> float:
        return self.min_x + self.width

    @property
    def max_y(self) -> float:
        return self.min_y + self.height

    @classmethod
    def from_bounds(cls, min_x: float, min_y: float, max_x: float, max_y: float) -> "GridOrigin":
        return cls(min_x=min_x, min_y=min_y, width=max_x - min_x, height=max_y - min_y)


@dataclass(frozen=True)
class GridShape:
    """Grid dimensions in cells."""
    width: int
    height: int

    @property
    def cells(self) -> int:
        return self.width * self.height

    @property
    def size(self) -> int:
        """Number of cell-hour counters."""
        return HOURS_PER_DAY * self.width * self.height


@dataclass(frozen=True)
class HourlyZoneResult:
    """
    Aggregated result for one cell/hour combination.

    Attributes:
        supply: Raw driver events observed in this cell-hour
        demand: Raw request events observed in this cell-hour
        effective_supply: supply x capacity factor, rounded; the rides the
            driver pool can realistically complete within the hour
    """
    cell_x: int
    cell_y: int
    hour: int
    supply: int
    demand: int
    effective_supply: int
    status: ZoneStatus

    @property
    def net(self) -> int:
        """Positive = driver surplus, negative = unmet requests."""
        return self.effective_supply - self.demand

    @property
    def total(self) -> int:
        return self.supply + self.demand


@dataclass(frozen=True)
class EventBatch:
    """
    Columnar view of a set of events.

    The accumulator partitions these arrays across workers; building them
    once avoids touching Python objects inside the hot loop.
    """
    x: np.ndarray
    y: np.ndarray
    hour: np.ndarray
    is_supply: np.ndarray

    def __len__(self) -> int:
        return int(self.x.shape[0])

    @classmethod
    def from_events(cls, events: Iterable[GridEvent]) -> "EventBatch":
        events = events if isinstance(events, Sequence) else list(events)
        n = len(events)
        x = np.empty(n, dtype=np.float64)
        y = np.empty(n, dtype=np.float64)
        hour = np.empty(n, dtype=np.int64)
        is_supply = np.empty(n, dtype=bool)
        for i, evt in enumerate(events):
            x[i] = evt.x
            y[i] = evt.y
            hour[i] = evt.hour
            is_supply[i] = evt.event_type is EventType.SUPPLY
        return cls(x=x, y=y, hour=hour, is_supply=is_supply)

    def slice(self, start: int, stop: int) -> "EventBatch":
        return EventBatch(
            x=self.x[start:stop],
            y=self.y[start:stop],
            hour=self.hour[start:stop],
            is_supply=self.is_supply[start:stop],
        )
