"""
End-to-end tests for gridagg/core/grid/aggregate.py

Scenarios mirror the worked examples used to document the classifier:
one dense morning cell, one sparse cell below the activity threshold and
one cell where scaled supply outweighs equal raw counts.
"""

import pytest

from gridagg import aggregate_hourly, aggregate_hourly_with_summary
from gridagg.core.grid.indexer import calculate_bounding_box, grid_shape
from gridagg.core.grid.models import EventBatch, GridOrigin, ZoneStatus
from gridagg.reporting import sort_results
from gridagg.utils.error_handling import ConfigurationError


def _by_key(results):
    return {(r.hour, r.cell_x, r.cell_y): r for r in results}


class TestScenarios:

    def test_dense_and_sparse_cells(self, origin, make_events):
        events = make_events(3, 2, hour=8) + make_events(2, 1, hour=9)
        results = _by_key(aggregate_hourly(events, origin, 500.0))
        assert set(results) == {(8, 0, 0), (9, 0, 0)}

        busy = results[(8, 0, 0)]
        assert (busy.supply, busy.demand, busy.effective_supply) == (3, 2, 6)
        assert busy.net == 4
        assert busy.status is ZoneStatus.NET_SUPPLY

        quiet = results[(9, 0, 0)]
        assert (quiet.supply, quiet.demand) == (2, 1)
        assert quiet.status is ZoneStatus.UNSUPPORTED

    def test_capacity_tips_equal_counts_to_supply(self, origin, make_events):
        (r,) = aggregate_hourly(make_events(4, 4, hour=10), origin, 500.0)
        assert r.effective_supply == 8
        assert r.net == 4
        assert r.status is ZoneStatus.NET_SUPPLY

    def test_capacity_one_gives_balanced(self, origin, make_events):
        (r,) = aggregate_hourly(make_events(4, 4, hour=10), origin, 500.0, capacity_factor=1.0)
        assert r.status is ZoneStatus.BALANCED

    def test_net_demand(self, origin, make_events):
        (r,) = aggregate_hourly(make_events(1, 6, x=700.0, y=300.0, hour=17), origin, 500.0)
        assert (r.cell_x, r.cell_y, r.hour) == (1, 0, 17)
        assert r.status is ZoneStatus.NET_DEMAND

    def test_threshold_override(self, origin, make_events):
        (r,) = aggregate_hourly(make_events(2, 1), origin, 500.0, min_activity_threshold=3)
        assert r.status is ZoneStatus.NET_SUPPLY


class TestInvariants:

    def test_empty_input_returns_empty(self, origin):
        assert aggregate_hourly([], origin, 500.0) == []

    @pytest.mark.parametrize("cell_size", [0.0, -1.0, float("nan")])
    def test_bad_cell_size_rejected_before_work(self, origin, cell_size):
        with pytest.raises(ConfigurationError):
            aggregate_hourly([], origin, cell_size)

    def test_bad_worker_count_rejected(self, origin, make_events):
        with pytest.raises(ConfigurationError):
            aggregate_hourly(make_events(1, 1), origin, 500.0, max_workers=0)

    def test_sparse_and_bounded(self, random_events):
        origin = calculate_bounding_box(random_events)
        results = aggregate_hourly(random_events, origin, 500.0)
        assert len(results) <= grid_shape(origin, 500.0).size
        assert all(r.supply + r.demand > 0 for r in results)
        assert len({(r.hour, r.cell_x, r.cell_y) for r in results}) == len(results)

    def test_counts_conserved(self, random_events):
        origin = calculate_bounding_box(random_events)
        results = aggregate_hourly(random_events, origin, 750.0)
        assert sum(r.total for r in results) == len(random_events)

    def test_result_independent_of_input_order_and_form(self, random_events):
        origin = calculate_bounding_box(random_events)
        a = sort_results(aggregate_hourly(random_events, origin, 500.0, max_workers=1))
        b = sort_results(aggregate_hourly(EventBatch.from_events(random_events[::-1]), origin, 500.0, max_workers=4))
        assert a == b

    def test_coarse_grid_single_cell(self, random_events):
        origin = calculate_bounding_box(random_events)
        results = aggregate_hourly(random_events, origin, 1_000_000.0)
        assert {(r.cell_x, r.cell_y) for r in results} == {(0, 0)}
        assert len(results) == 24


class TestSummary:

    def test_metadata(self, origin, make_events):
        events = make_events(3, 2, hour=8) + make_events(2, 1, hour=9) + make_events(1, 0, x=5_000.0)
        summary = aggregate_hourly_with_summary(events, origin, 500.0)
        meta = summary.metadata
        assert meta["grid_width"] == 2 and meta["grid_height"] == 2
        assert meta["events_total"] == 9
        assert meta["events_counted"] == 8
        assert meta["events_dropped"] == 1
        assert meta["active_cell_hours"] == 2
        assert meta["status_counts"] == {
            "Unsupported": 1, "NetSupply": 1, "NetDemand": 0, "Balanced": 0,
        }
        assert meta["schema_version"]

    def test_empty_metadata(self):
        summary = aggregate_hourly_with_summary([], GridOrigin(0.0, 0.0, 0.0, 0.0), 500.0)
        assert summary.results == []
        assert summary.metadata["events_total"] == 0
        assert summary.metadata["grid_width"] == 1

    def test_all_events_dropped_logs_error(self, origin, make_events, caplog):
        events = make_events(2, 2, x=50_000.0, y=50_000.0)
        with caplog.at_level("ERROR"):
            summary = aggregate_hourly_with_summary(events, origin, 500.0)
        assert summary.results == []
        assert summary.metadata["events_dropped"] == 4
        assert "zero active cell-hours from 4 events" in caplog.text
