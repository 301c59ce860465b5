"""
gridagg - hourly supply/demand grid aggregation.

Bins geolocated, hour-stamped Supply and Demand events into a uniform metric
grid and classifies each active cell-hour as NetSupply, NetDemand, Balanced
or Unsupported.
"""

from gridagg.core.grid.aggregate import aggregate_hourly, aggregate_hourly_with_summary
from gridagg.core.grid.indexer import calculate_bounding_box
from gridagg.core.grid.models import (
    EventType,
    GridEvent,
    GridOrigin,
    HourlyZoneResult,
    ZoneStatus,
)

__version__ = "1.0.0"

__all__ = [
    "EventType",
    "GridEvent",
    "GridOrigin",
    "HourlyZoneResult",
    "ZoneStatus",
    "aggregate_hourly",
    "aggregate_hourly_with_summary",
    "calculate_bounding_box",
]
