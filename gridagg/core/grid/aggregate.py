# gridagg/core/grid/aggregate.py
"""
Aggregation entry point: accumulate, join, classify.

aggregate_hourly is the one operation the core exposes to collaborators.
All preconditions are checked before any counter is allocated.
"""

from __future__ import annotations

import logging
import time
from collections import Counter
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, Dict, Iterable, List, Optional, Union

from gridagg import constants
from gridagg.core.grid.accumulator import accumulate_counts, resolve_worker_count
from gridagg.core.grid.classifier import classify_counts
from gridagg.core.grid.indexer import grid_shape
from gridagg.core.grid.models import EventBatch, GridEvent, GridOrigin, HourlyZoneResult, ZoneStatus
from gridagg.utils.error_handling import (
    validate_non_negative_finite,
    validate_non_negative_int,
    validate_positive_finite,
)

logger = logging.getLogger(__name__)

SCHEMA_VERSION = "1.0.0"

Events = Union[Iterable[GridEvent], EventBatch]


@dataclass
class AggregationResult:
    results: List[HourlyZoneResult]
    metadata: Dict[str, Any]


def _validate_parameters(
    cell_size: float,
    capacity_factor: float,
    min_activity_threshold: int,
    max_workers: Optional[int],
) -> None:
    validate_positive_finite(cell_size, "cell_size")
    validate_non_negative_finite(capacity_factor, "capacity_factor")
    validate_non_negative_int(min_activity_threshold, "min_activity_threshold")
    resolve_worker_count(max_workers, 0)


def aggregate_hourly_with_summary(
    events: Events,
    origin: GridOrigin,
    cell_size: float,
    capacity_factor: float = constants.DEFAULT_CAPACITY_FACTOR,
    min_activity_threshold: int = constants.DEFAULT_MIN_ACTIVITY_THRESHOLD,
    max_workers: Optional[int] = None,
) -> AggregationResult:
    """
    Aggregate and classify, returning the results together with run metadata.

    Raises:
        ConfigurationError: cell_size <= 0, negative capacity_factor or
            threshold, or a non-positive worker count
    """
    _validate_parameters(cell_size, capacity_factor, min_activity_threshold, max_workers)
    batch = events if isinstance(events, EventBatch) else EventBatch.from_events(events)
    shape = grid_shape(origin, cell_size)

    t0 = time.perf_counter()
    if len(batch) == 0:
        results: List[HourlyZoneResult] = []
        counted = dropped = 0
        t1 = t0
    else:
        counts = accumulate_counts(batch, origin, cell_size, max_workers=max_workers)
        t1 = time.perf_counter()
        # Classification only starts once accumulate_counts has joined its pool
        results = classify_counts(counts, capacity_factor, min_activity_threshold)
        counted, dropped = counts.counted, counts.dropped
    t2 = time.perf_counter()

    by_status = Counter(r.status for r in results)
    metadata = {
        "grid_width": shape.width,
        "grid_height": shape.height,
        "cell_size_m": float(cell_size),
        "capacity_factor": float(capacity_factor),
        "min_activity_threshold": min_activity_threshold,
        "events_total": len(batch),
        "events_counted": counted,
        "events_dropped": dropped,
        "active_cell_hours": len(results),
        "status_counts": {s.value: by_status.get(s, 0) for s in ZoneStatus},
        "accumulate_seconds": round(t1 - t0, 6),
        "classify_seconds": round(t2 - t1, 6),
        "generated_at": datetime.now(timezone.utc).isoformat(),
        "schema_version": SCHEMA_VERSION,
    }

    if len(batch) and not results:
        logger.error(
            f"Aggregation produced zero active cell-hours from {len(batch)} events. "
            "Check the grid origin against the event coordinates."
        )
    else:
        logger.info(
            f"Aggregated {counted} events into {len(results)} active cell-hours "
            f"on a {shape.width}x{shape.height} grid"
        )

    return AggregationResult(results=results, metadata=metadata)


def aggregate_hourly(
    events: Events,
    origin: GridOrigin,
    cell_size: float,
    capacity_factor: float = constants.DEFAULT_CAPACITY_FACTOR,
    min_activity_threshold: int = constants.DEFAULT_MIN_ACTIVITY_THRESHOLD,
    max_workers: Optional[int] = None,
) -> List[HourlyZoneResult]:
    """
    Aggregate events into classified cell-hours.

    Args:
        events: Events in projected metres; may be empty
        origin: Envelope the grid is laid over
        cell_size: Cell edge length in metres, > 0
        capacity_factor: Average trips per available driver per hour
        min_activity_threshold: Minimum supply + demand per classified cell-hour
        max_workers: Accumulation pool size (defaults to CPU count)

    Returns:
        Active cell-hours, unordered; see reporting.sort_results for display order
    """
    return aggregate_hourly_with_summary(
        events,
        origin,
        cell_size,
        capacity_factor=capacity_factor,
        min_activity_threshold=min_activity_threshold,
        max_workers=max_workers,
    ).results
