"""
Grid Aggregation Core Module

Modules:
- models.py - Event, origin and result records
- indexer.py - Cell arithmetic and bounding box
- accumulator.py - Concurrent per-cell-hour counting
- classifier.py - Cell-hour classification pass
- aggregate.py - Public aggregate_hourly entry point
"""
