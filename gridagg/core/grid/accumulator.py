# gridagg/core/grid/accumulator.py
"""
Concurrent per-cell-hour accumulation.

The event batch is split into contiguous ranges, one per worker. Each worker
turns its range into flat counter indices and tallies them with
np.bincount into a private buffer; nothing is shared while workers run, so
no lock is ever taken. Once every worker has retired the private buffers
are summed into the final supply/demand arrays. Addition per counter is
commutative and associative, so the partitioning and the completion order
have no effect on the result.
"""

from __future__ import annotations

import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple, Union

import numpy as np

from gridagg.constants import HOURS_PER_DAY
from gridagg.core.grid.indexer import cell_indices, flat_index, grid_shape
from gridagg.core.grid.models import EventBatch, GridEvent, GridOrigin, GridShape
from gridagg.utils.error_handling import ConfigurationError, validate_positive_finite

logger = logging.getLogger(__name__)

# Below this many events per worker the thread hand-off costs more than it saves
MIN_EVENTS_PER_WORKER = 10_000


@dataclass(frozen=True)
class HourlyCounts:
    """
    Fully populated counter arrays, shape (24, grid width, grid height).

    Both arrays are read-only; the classifier consumes them without mutation.
    """
    supply: np.ndarray
    demand: np.ndarray
    shape: GridShape
    counted: int
    dropped: int


def resolve_worker_count(
    max_workers: Optional[int],
    n_events: int,
    min_events_per_worker: int = MIN_EVENTS_PER_WORKER,
) -> int:
    """Worker count actually used: requested (or CPU count), capped by batch size."""
    if max_workers is None:
        max_workers = os.cpu_count() or 1
    if isinstance(max_workers, bool) or not isinstance(max_workers, int) or max_workers < 1:
        raise ConfigurationError(f"max_workers must be a positive integer (got {max_workers!r}).")
    by_volume = max(1, n_events // max(1, min_events_per_worker))
    return max(1, min(max_workers, by_volume))


def partition_ranges(n: int, parts: int) -> List[Tuple[int, int]]:
    """Static contiguous [start, stop) ranges covering 0..n."""
    bounds = np.linspace(0, n, parts + 1).astype(np.int64)
    return [(int(bounds[i]), int(bounds[i + 1])) for i in range(parts) if bounds[i + 1] > bounds[i]]


def _tally_range(
    batch: EventBatch,
    origin: GridOrigin,
    cell_size: float,
    shape: GridShape,
) -> Tuple[np.ndarray, np.ndarray, int]:
    """
    Count one worker's range into private flat buffers.

    Returns:
        supply: int64 [24*W*H]
        demand: int64 [24*W*H]
        dropped: events outside the grid
    """
    cx, cy, valid = cell_indices(batch.x, batch.y, origin, cell_size, shape)
    flat = flat_index(batch.hour[valid], cx[valid], cy[valid], shape)
    is_supply = batch.is_supply[valid]

    supply = np.bincount(flat[is_supply], minlength=shape.size)
    demand = np.bincount(flat[~is_supply], minlength=shape.size)
    dropped = int(len(batch) - np.count_nonzero(valid))
    return supply, demand, dropped


def accumulate_counts(
    events: Union[Iterable[GridEvent], EventBatch],
    origin: GridOrigin,
    cell_size: float,
    max_workers: Optional[int] = None,
    min_events_per_worker: int = MIN_EVENTS_PER_WORKER,
) -> HourlyCounts:
    """
    Tally supply and demand per (hour, cell_x, cell_y).

    Args:
        events: GridEvents or a prebuilt EventBatch; order is irrelevant
        origin: Grid anchor and extent
        cell_size: Cell edge length in metres
        max_workers: Pool size; defaults to the CPU count
        min_events_per_worker: Smallest range worth handing to a thread

    Returns:
        HourlyCounts, populated only after every worker has finished
    """
    cell_size = validate_positive_finite(cell_size, "cell_size")
    batch = events if isinstance(events, EventBatch) else EventBatch.from_events(events)
    shape = grid_shape(origin, cell_size)
    n_events = len(batch)
    workers = resolve_worker_count(max_workers, n_events, min_events_per_worker)

    supply = np.zeros(shape.size, dtype=np.int64)
    demand = np.zeros(shape.size, dtype=np.int64)
    dropped = 0

    if n_events:
        ranges = partition_ranges(n_events, workers)
        logger.debug(
            f"Accumulating {n_events} events into {shape.width}x{shape.height} cells "
            f"with {len(ranges)} worker(s)"
        )
        if len(ranges) == 1:
            partials = [_tally_range(batch, origin, cell_size, shape)]
        else:
            with ThreadPoolExecutor(max_workers=len(ranges), thread_name_prefix="gridagg") as pool:
                futures = [
                    pool.submit(_tally_range, batch.slice(start, stop), origin, cell_size, shape)
                    for start, stop in ranges
                ]
                # Leaving the with-block joins the pool; result() re-raises worker errors
                partials = [f.result() for f in futures]

        for part_supply, part_demand, part_dropped in partials:
            supply += part_supply
            demand += part_demand
            dropped += part_dropped

    if dropped:
        logger.info(f"Dropped {dropped} event(s) outside the {shape.width}x{shape.height} grid")

    supply = supply.reshape(HOURS_PER_DAY, shape.width, shape.height)
    demand = demand.reshape(HOURS_PER_DAY, shape.width, shape.height)
    supply.flags.writeable = False
    demand.flags.writeable = False

    return HourlyCounts(
        supply=supply,
        demand=demand,
        shape=shape,
        counted=n_events - dropped,
        dropped=dropped,
    )
