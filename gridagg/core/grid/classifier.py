# gridagg/core/grid/classifier.py
"""
Classification pass over populated counters.

Runs after the accumulator has joined every worker. Reads the counter
arrays without mutating them and emits one HourlyZoneResult per active
cell-hour; inactive cell-hours (supply + demand == 0) produce nothing, so
the result is proportional to activity, not to grid size.
"""

from __future__ import annotations

import logging
from typing import List

import numpy as np

from gridagg import constants
from gridagg.core.grid.accumulator import HourlyCounts
from gridagg.core.grid.models import HourlyZoneResult
from gridagg.rulebook import classify_zone
from gridagg.utils.error_handling import validate_non_negative_finite, validate_non_negative_int

logger = logging.getLogger(__name__)


def effective_supply(supply: np.ndarray, capacity_factor: float) -> np.ndarray:
    """round(supply x capacity_factor); halves round to even."""
    return np.rint(np.asarray(supply, dtype=np.float64) * capacity_factor).astype(np.int64)


def classify_counts(
    counts: HourlyCounts,
    capacity_factor: float = constants.DEFAULT_CAPACITY_FACTOR,
    min_activity_threshold: int = constants.DEFAULT_MIN_ACTIVITY_THRESHOLD,
) -> List[HourlyZoneResult]:
    """
    Reduce counter arrays to the sparse list of classified cell-hours.

    Args:
        counts: Output of accumulate_counts
        capacity_factor: Average trips one available driver completes per hour
        min_activity_threshold: Minimum supply + demand for a meaningful status

    Returns:
        One HourlyZoneResult per active cell-hour, in (hour, cell_x, cell_y)
        iteration order (callers must not rely on it)
    """
    capacity_factor = validate_non_negative_finite(capacity_factor, "capacity_factor")
    min_activity_threshold = validate_non_negative_int(min_activity_threshold, "min_activity_threshold")

    total = counts.supply + counts.demand
    hours, cxs, cys = np.nonzero(total)
    supply = counts.supply[hours, cxs, cys]
    demand = counts.demand[hours, cxs, cys]
    eff = effective_supply(supply, capacity_factor)

    results = [
        HourlyZoneResult(
            cell_x=int(cx),
            cell_y=int(cy),
            hour=int(hr),
            supply=int(s),
            demand=int(d),
            effective_supply=int(e),
            status=classify_zone(int(s), int(d), int(e), min_activity_threshold),
        )
        for hr, cx, cy, s, d, e in zip(
            hours.tolist(), cxs.tolist(), cys.tolist(),
            supply.tolist(), demand.tolist(), eff.tolist(),
        )
    ]

    logger.debug(
        f"Classified {len(results)} active cell-hours out of {counts.shape.size} "
        f"(capacity_factor={capacity_factor}, threshold={min_activity_threshold})"
    )
    return results
