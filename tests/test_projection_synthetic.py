"""
Tests for gridagg/projection.py and gridagg/synthetic.py
"""

import numpy as np
import pytest

from gridagg.core.grid.indexer import locate_cell
from gridagg.core.grid.models import EventType
from gridagg.projection import project, project_many, unproject, unproject_many
from gridagg.synthetic import generate_synthetic_events


class TestProjection:

    def test_origin_maps_to_zero(self):
        x, y = project(0.0, 0.0)
        assert x == pytest.approx(0.0, abs=1e-6)
        assert y == pytest.approx(0.0, abs=1e-6)

    def test_round_trip(self):
        lon, lat = unproject(*project(-73.98, 40.75))
        assert lon == pytest.approx(-73.98)
        assert lat == pytest.approx(40.75)

    def test_vectorized_matches_scalar(self):
        lons = np.array([-74.0, -73.9])
        lats = np.array([40.7, 40.8])
        xs, ys = project_many(lons, lats)
        for i in range(2):
            assert (xs[i], ys[i]) == pytest.approx(project(lons[i], lats[i]))
        back_lons, back_lats = unproject_many(xs, ys)
        np.testing.assert_allclose(back_lons, lons)
        np.testing.assert_allclose(back_lats, lats)

    def test_metres_east_increase_x(self):
        x0, _ = project(-74.0, 40.7)
        x1, _ = project(-73.99, 40.7)
        assert x1 > x0


class TestSyntheticEvents:

    def test_twice_n_events(self):
        events, _ = generate_synthetic_events(100, seed=1)
        assert len(events) == 200
        kinds = [e.event_type for e in events]
        assert kinds.count(EventType.SUPPLY) == kinds.count(EventType.DEMAND) == 100

    def test_same_seed_same_events(self):
        a, origin_a = generate_synthetic_events(50, seed=7)
        b, origin_b = generate_synthetic_events(50, seed=7)
        assert a == b
        assert origin_a == origin_b

    def test_different_seed_differs(self):
        a, _ = generate_synthetic_events(50, seed=7)
        b, _ = generate_synthetic_events(50, seed=8)
        assert a != b

    def test_every_event_lands_in_grid(self):
        events, origin = generate_synthetic_events(500, seed=3)
        assert all(0 <= e.hour < 24 for e in events)
        assert all(locate_cell(e.x, e.y, origin, 500.0) is not None for e in events)

    def test_custom_bounds(self):
        bounds = {"lon_min": 2.30, "lon_max": 2.35, "lat_min": 48.85, "lat_max": 48.87}
        events, origin = generate_synthetic_events(20, bounds=bounds, seed=0)
        min_lon, min_lat = unproject(origin.min_x, origin.min_y)
        assert min_lon >= 2.30 - 1e-9
        assert min_lat >= 48.85 - 1e-9
        assert len(events) == 40

    def test_zero_events(self):
        events, origin = generate_synthetic_events(0)
        assert events == []
        assert origin.width == 0.0
