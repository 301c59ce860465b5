"""
Event CSV ingestion.

Reads rideshare event CSVs and returns projected GridEvents ready for
aggregation.

Expected CSV format (header row required):

    lat,lon,hour,day,event_type
    40.750,-73.980,8,2024-01-15,Supply
    40.720,-74.010,9,2024-01-15,Demand

Columns (matched by name, any order, case-insensitive):
    lat        - WGS84 decimal latitude within the Web Mercator limit (+/-85.0511)
    lon        - WGS84 decimal longitude [-180, 180]
    hour       - integer hour of day [0, 23]
    day        - ISO date YYYY-MM-DD (optional; used for multi-day datasets)
    event_type - "Supply" or "Demand" (case-insensitive)

Lines starting with '#' and blank lines are skipped. The first remaining
line must be the header; any other preamble fails the load with a single
parse error. Invalid records are counted, logged and skipped; they never
abort the load.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import date
from pathlib import Path
from typing import Callable, List, Optional, Tuple, Union

import numpy as np
import pandas as pd

from gridagg import constants
from gridagg.core.grid.models import EventType, GridEvent
from gridagg.projection import project_many
from gridagg.utils.error_handling import IngestionError

logger = logging.getLogger(__name__)

_EVENT_TYPES = {t.value.lower(): t for t in EventType}


@dataclass
class LoadResult:
    events: List[GridEvent]
    lines_read: int
    parse_errors: int
    earliest_day: Optional[date] = None
    latest_day: Optional[date] = None
    errors: List[str] = field(default_factory=list)


def _read_frame(path: Path, bad_lines: List[List[str]]) -> Optional[pd.DataFrame]:
    def _collect(line: List[str]):
        bad_lines.append(line)
        return None

    try:
        return pd.read_csv(
            path,
            dtype=str,
            comment="#",
            skip_blank_lines=True,
            skipinitialspace=True,
            engine="python",
            on_bad_lines=_collect,
        )
    except FileNotFoundError:
        raise
    except pd.errors.EmptyDataError:
        return None
    except (OSError, UnicodeDecodeError, pd.errors.ParserError) as e:
        raise IngestionError(f"Cannot read event file {path}: {e}") from e


def _strip(series: pd.Series) -> pd.Series:
    return series.astype("string").str.strip()


def load_events_csv(
    path: Union[str, Path],
    transform: Optional[Callable[..., Tuple[np.ndarray, np.ndarray]]] = None,
) -> LoadResult:
    """
    Parse, validate and project an event CSV.

    Args:
        path: CSV file path
        transform: (lons, lats) -> (xs, ys) in metres; defaults to Web Mercator

    Returns:
        LoadResult with the valid events and per-record error accounting

    Raises:
        FileNotFoundError: If the file does not exist
        IngestionError: If the file exists but cannot be read as CSV
    """
    path = Path(path)
    logger.info(f"Loading events from {path}")

    bad_lines: List[List[str]] = []
    df = _read_frame(path, bad_lines)

    if df is None:
        msg = "No valid header row found in file."
        logger.error(msg)
        return LoadResult(events=[], lines_read=0, parse_errors=1, errors=[msg])

    df.columns = [str(c).strip().lower() for c in df.columns]
    missing = [c for c in constants.CSV_REQUIRED_COLUMNS if c not in df.columns]
    if missing:
        msg = (
            f"Header row missing column(s) {', '.join(missing)}; "
            f"expected columns: lat, lon, hour, day, event_type"
        )
        logger.error(msg)
        return LoadResult(events=[], lines_read=0, parse_errors=1, errors=[msg])

    df = df.reset_index(drop=True)
    lat_raw = _strip(df["lat"])
    lon_raw = _strip(df["lon"])
    hour_raw = _strip(df["hour"])
    type_raw = _strip(df["event_type"])

    lat = pd.to_numeric(lat_raw, errors="coerce")
    lon = pd.to_numeric(lon_raw, errors="coerce")
    hour_is_int = hour_raw.str.fullmatch(r"[+-]?\d+").fillna(False).astype(bool)
    hour = pd.to_numeric(hour_raw.where(hour_is_int), errors="coerce")
    event_type = type_raw.str.lower().map(_EVENT_TYPES)

    lat_ok = lat.between(-constants.MERCATOR_LAT_LIMIT, constants.MERCATOR_LAT_LIMIT).fillna(False).astype(bool)
    lon_ok = lon.between(constants.LON_MIN, constants.LON_MAX).fillna(False).astype(bool)
    hour_ok = hour.between(0, constants.HOURS_PER_DAY - 1).fillna(False).astype(bool)
    type_ok = event_type.notna()
    valid = lat_ok & lon_ok & hour_ok & type_ok

    errors: List[str] = []
    for line in bad_lines:
        errors.append(f"malformed record ({len(line)} fields): {','.join(line)}")
    for i in df.index[~valid]:
        record = i + 1
        if not lat_ok[i]:
            reason = f"invalid lat '{lat_raw[i]}'"
        elif not lon_ok[i]:
            reason = f"invalid lon '{lon_raw[i]}'"
        elif not hour_ok[i]:
            reason = f"invalid hour '{hour_raw[i]}'"
        else:
            reason = f"unknown event_type '{type_raw[i]}' (expected Supply or Demand)"
        errors.append(f"record {record}: {reason}")
    for msg in errors:
        logger.warning(f"[Ingestion] {msg} - skipped.")

    earliest = latest = None
    if "day" in df.columns:
        days = pd.to_datetime(_strip(df["day"]), format=constants.CSV_DAY_FORMAT, errors="coerce")
        days = days[valid].dropna()
        if not days.empty:
            earliest = days.min().date()
            latest = days.max().date()

    xs, ys = (transform or project_many)(lon[valid].to_numpy(dtype=float), lat[valid].to_numpy(dtype=float))
    events = [
        GridEvent(x=float(x), y=float(y), hour=int(h), event_type=t)
        for x, y, h, t in zip(xs, ys, hour[valid].astype(int).tolist(), event_type[valid].tolist())
    ]

    result = LoadResult(
        events=events,
        lines_read=len(df) + len(bad_lines),
        parse_errors=len(errors),
        earliest_day=earliest,
        latest_day=latest,
        errors=errors,
    )
    logger.info(
        f"Loaded {len(events)} events from {result.lines_read} records "
        f"({result.parse_errors} parse errors)"
    )
    return result


SAMPLE_CSV = (
    "# Grid Aggregate - rideshare event data\n"
    "# Columns: lat, lon, hour (0-23), day (YYYY-MM-DD), event_type (Supply|Demand)\n"
    "lat,lon,hour,day,event_type\n"
    "40.7500,-73.9800,8,2024-01-15,Supply\n"
    "40.7480,-73.9820,8,2024-01-15,Supply\n"
    "40.7510,-73.9790,9,2024-01-15,Demand\n"
    "40.7450,-73.9850,9,2024-01-15,Demand\n"
    "40.7460,-73.9870,9,2024-01-15,Demand\n"
)


def write_sample_csv(path: Union[str, Path] = constants.SAMPLE_CSV_PATH) -> Path:
    """Write a starter CSV the user can edit and feed back with --input."""
    path = Path(path)
    path.write_text(SAMPLE_CSV, encoding="utf-8")
    logger.info(f"Sample CSV written to {path}")
    return path
