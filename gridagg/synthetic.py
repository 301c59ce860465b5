"""
Synthetic demo data.

Uniformly scattered supply and demand events inside a lon/lat box with
uniformly random hours. Used by the CLI when no input file is given and by
tests that need volume.
"""

from __future__ import annotations

import logging
from typing import Dict, List, Optional, Tuple

import numpy as np

from gridagg import constants
from gridagg.core.grid.indexer import bounding_box_from_points
from gridagg.core.grid.models import EventType, GridEvent, GridOrigin
from gridagg.projection import project_many

logger = logging.getLogger(__name__)


def generate_random_points(
    n_points: int,
    lon_min: float,
    lon_max: float,
    lat_min: float,
    lat_max: float,
    rng: np.random.Generator,
) -> Tuple[np.ndarray, np.ndarray]:
    """Return (lons, lats) drawn uniformly from the box."""
    lons = rng.uniform(lon_min, lon_max, size=n_points)
    lats = rng.uniform(lat_min, lat_max, size=n_points)
    return lons, lats


def generate_synthetic_events(
    n_events: int = constants.DEFAULT_SYNTHETIC_EVENTS,
    bounds: Optional[Dict[str, float]] = None,
    seed: Optional[int] = constants.DEFAULT_SYNTHETIC_SEED,
) -> Tuple[List[GridEvent], GridOrigin]:
    """
    Build n_events supply and n_events demand events, projected to metres.

    Args:
        n_events: Events per kind (total is twice this)
        bounds: lon_min/lon_max/lat_min/lat_max; defaults to the NYC demo box
        seed: RNG seed; the same seed yields the same events

    Returns:
        (events, origin) where origin is the bounding box of both sets
    """
    b = dict(constants.DEFAULT_SYNTHETIC_BOUNDS)
    if bounds:
        b.update(bounds)
    rng = np.random.default_rng(seed)

    # Supply = drivers completing a dropoff, Demand = passengers requesting a pickup
    s_lons, s_lats = generate_random_points(n_events, b["lon_min"], b["lon_max"], b["lat_min"], b["lat_max"], rng)
    d_lons, d_lats = generate_random_points(n_events, b["lon_min"], b["lon_max"], b["lat_min"], b["lat_max"], rng)
    sx, sy = project_many(s_lons, s_lats)
    dx, dy = project_many(d_lons, d_lats)

    if n_events == 0:
        logger.warning("Synthetic generator asked for zero events")
        return [], GridOrigin(min_x=0.0, min_y=0.0, width=0.0, height=0.0)

    origin = bounding_box_from_points(zip(sx.tolist(), sy.tolist()), zip(dx.tolist(), dy.tolist()))

    s_hours = rng.integers(0, constants.HOURS_PER_DAY, size=n_events)
    d_hours = rng.integers(0, constants.HOURS_PER_DAY, size=n_events)

    events: List[GridEvent] = []
    for i in range(n_events):
        events.append(GridEvent(float(sx[i]), float(sy[i]), int(s_hours[i]), EventType.SUPPLY))
        events.append(GridEvent(float(dx[i]), float(dy[i]), int(d_hours[i]), EventType.DEMAND))

    logger.info(f"Generated {len(events)} synthetic events (seed={seed})")
    return events, origin
