"""
Result reporting: canonical ordering, status tallies, console tables and CSV.

The aggregation core returns cell-hours unordered; everything user-facing
goes through sort_results so tables, CSVs and maps list rows in the same
(hour, cell_x, cell_y) order.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Union

import pandas as pd

from gridagg.core.grid.models import HourlyZoneResult, ZoneStatus
from gridagg.rulebook import ReportingSettings

logger = logging.getLogger(__name__)

RESULT_COLUMNS = [
    "hour", "cell_x", "cell_y", "supply", "effective_supply", "demand", "net", "status",
]


def sort_results(results: Iterable[HourlyZoneResult]) -> List[HourlyZoneResult]:
    return sorted(results, key=lambda r: (r.hour, r.cell_x, r.cell_y))


def status_counts(results: Iterable[HourlyZoneResult]) -> Dict[ZoneStatus, int]:
    """Count per status; every status is present, zero if unused."""
    counts = {status: 0 for status in ZoneStatus}
    for r in results:
        counts[r.status] += 1
    return counts


def format_summary(
    results: List[HourlyZoneResult],
    reporting: Optional[ReportingSettings] = None,
) -> str:
    reporting = reporting or ReportingSettings()
    counts = status_counts(results)
    lines = [
        "=== Hourly Supply / Demand Summary ===",
        f"Total active cell-hours : {len(results)}",
    ]
    for status in (ZoneStatus.NET_SUPPLY, ZoneStatus.NET_DEMAND, ZoneStatus.BALANCED, ZoneStatus.UNSUPPORTED):
        lines.append(f"  {reporting.label_for(status):<38}: {counts[status]}")
    return "\n".join(lines)


def format_zone_table(results: Iterable[HourlyZoneResult], include_unsupported: bool = False) -> str:
    """
    Fixed-width table of cell-hours in canonical order.

    Unsupported rows are left out unless asked for; they carry no signal.
    """
    lines = [
        "Hour | Cell (X,  Y) | Drivers | Eff.Supply | Requests |   Net | Status",
        "-----|--------------|---------|------------|----------|-------|------------",
    ]
    for r in sort_results(results):
        if r.status is ZoneStatus.UNSUPPORTED and not include_unsupported:
            continue
        lines.append(
            f" {r.hour:02d}  | ({r.cell_x:3d},{r.cell_y:3d})     "
            f"| {r.supply:7d} | {r.effective_supply:10d} | {r.demand:8d} | {r.net:+5d} | {r.status.value}"
        )
    return "\n".join(lines)


def results_to_dataframe(results: Iterable[HourlyZoneResult]) -> pd.DataFrame:
    rows = [
        {
            "hour": r.hour,
            "cell_x": r.cell_x,
            "cell_y": r.cell_y,
            "supply": r.supply,
            "effective_supply": r.effective_supply,
            "demand": r.demand,
            "net": r.net,
            "status": r.status.value,
        }
        for r in sort_results(results)
    ]
    return pd.DataFrame(rows, columns=RESULT_COLUMNS)


def write_results_csv(results: Iterable[HourlyZoneResult], path: Union[str, Path]) -> Path:
    path = Path(path)
    path.parent.mkdir(parents=True, exist_ok=True)
    df = results_to_dataframe(results)
    df.to_csv(path, index=False)
    logger.info(f"Wrote {len(df)} cell-hour rows to {path}")
    return path
