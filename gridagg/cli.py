"""
Command-line interface.

Usage:
    python -m gridagg                           # synthetic data -> map.html
    python -m gridagg --input events.csv        # load CSV       -> map.html
    python -m gridagg --input events.csv --output out.html --capacity 2.5 --grid-size 500 --threshold 5
    python -m gridagg --sample                  # write events_sample.csv and exit

Flags override the rulebook (config/rulebook.yml or GRIDAGG_RULEBOOK);
GRIDAGG_MAX_WORKERS overrides the rulebook's worker count.
"""

from __future__ import annotations

import argparse
import contextlib
import logging
import sys
from typing import List, Optional

from gridagg import constants, rulebook
from gridagg.core.grid.aggregate import aggregate_hourly_with_summary
from gridagg.core.grid.indexer import calculate_bounding_box
from gridagg.io.loader import load_events_csv, write_sample_csv
from gridagg.map_export import export_html
from gridagg.reporting import format_summary, format_zone_table, write_results_csv
from gridagg.synthetic import generate_synthetic_events
from gridagg.utils.env import env_int
from gridagg.utils.error_handling import GridAggregateError
from gridagg.utils.run_logging import LOG_FORMAT, RunLogHandler

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_NO_EVENTS = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="gridagg",
        description="Aggregate supply/demand events into an hourly grid and map the imbalance.",
    )
    parser.add_argument("--input", help="Event CSV (lat, lon, hour, day, event_type); synthetic data if omitted")
    parser.add_argument("--output", default=constants.DEFAULT_MAP_OUTPUT, help="HTML map output path")
    parser.add_argument("--sample", action="store_true", help=f"Write {constants.SAMPLE_CSV_PATH} and exit")
    parser.add_argument("--grid-size", type=float, help="Cell edge length in metres")
    parser.add_argument("--capacity", type=float, help="Trips per available driver per hour")
    parser.add_argument("--threshold", type=int, help="Minimum events per classified cell-hour")
    parser.add_argument("--workers", type=int, help="Accumulation worker count")
    parser.add_argument("--seed", type=int, help="Seed for synthetic data")
    parser.add_argument("--csv-out", help="Also write the classified cell-hours as CSV")
    parser.add_argument("--rulebook", help="Path to an alternative rulebook.yml")
    parser.add_argument("--log-file", help="Mirror this run's log into a file")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    return parser


def run(args: argparse.Namespace) -> int:
    if args.sample:
        path = write_sample_csv(constants.SAMPLE_CSV_PATH)
        print(f"Sample CSV written to: {path}")
        print(f"Edit it and re-run with: python -m gridagg --input {path}")
        return EXIT_OK

    settings = rulebook.load_settings(args.rulebook)
    reporting = rulebook.load_reporting(args.rulebook)
    grid_size = args.grid_size if args.grid_size is not None else settings.grid_size_m
    capacity = args.capacity if args.capacity is not None else settings.capacity_factor
    threshold = args.threshold if args.threshold is not None else settings.min_activity_threshold
    workers = args.workers if args.workers is not None else env_int("GRIDAGG_MAX_WORKERS", settings.max_workers)

    if args.input:
        print(f"Loading events from: {args.input}")
        loaded = load_events_csv(args.input)
        print(f"  Lines read   : {loaded.lines_read}")
        print(f"  Events loaded: {len(loaded.events)}")
        if loaded.parse_errors:
            print(f"  Parse errors : {loaded.parse_errors}  (see log for details)")
        if loaded.earliest_day:
            print(f"  Date range   : {loaded.earliest_day} -> {loaded.latest_day}")
        if not loaded.events:
            logger.error("No events loaded - nothing to aggregate.")
            return EXIT_NO_EVENTS
        events = loaded.events
        origin = calculate_bounding_box(events)
    else:
        synthetic = rulebook.load_synthetic(args.rulebook)
        seed = args.seed if args.seed is not None else synthetic.seed
        print("No --input file specified. Running with synthetic demo data.")
        print("  Tip: python -m gridagg --sample   to generate a starter CSV.")
        events, origin = generate_synthetic_events(synthetic.n_events, synthetic.bounds, seed)
        if not events:
            logger.error("Synthetic generator produced no events - nothing to aggregate.")
            return EXIT_NO_EVENTS

    print()
    print(f"Grid size         : {grid_size} m")
    print(f"Capacity factor   : {capacity}x trips/driver/hour")
    print(f"Activity threshold: {threshold} events/cell-hour")
    print()

    summary = aggregate_hourly_with_summary(
        events,
        origin,
        grid_size,
        capacity_factor=capacity,
        min_activity_threshold=threshold,
        max_workers=workers,
    )
    results = summary.results

    print(format_summary(results, reporting))
    print()
    print(format_zone_table(results))
    print()

    if args.csv_out:
        write_results_csv(results, args.csv_out)
        print(f"Cell-hour CSV written to: {args.csv_out}")

    path = export_html(results, origin, grid_size, args.output, reporting)
    print(f"Map written to: {path}")
    print(f"Open {path} in any browser to explore the hourly grid.")
    return EXIT_OK


def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format=LOG_FORMAT,
    )

    run_log = RunLogHandler(args.log_file) if args.log_file else contextlib.nullcontext()
    try:
        with run_log:
            return run(args)
    except (GridAggregateError, OSError) as e:
        logger.error(f"{type(e).__name__}: {e}")
        return EXIT_ERROR


if __name__ == "__main__":
    sys.exit(main())
