"""
Interactive HTML map export.

Renders classified cell-hours as coloured rectangles on a Leaflet map
(via folium):

- one layer per active hour, switched from the layer control
- colour per status from the rulebook (NetDemand red, NetSupply blue,
  Balanced green, Unsupported grey)
- NetSupply/NetDemand opacity grows with |net| so the strongest
  imbalances stand out
- popup per cell with the full supply/demand breakdown

Cell rectangles are rebuilt from the same indexer arithmetic the
accumulator uses, then unprojected to WGS84.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple, Union

import folium

from gridagg import constants
from gridagg.core.grid.indexer import cell_bounds
from gridagg.core.grid.models import GridOrigin, HourlyZoneResult, ZoneStatus
from gridagg.projection import unproject, unproject_many
from gridagg.reporting import sort_results, status_counts
from gridagg.rulebook import ReportingSettings

logger = logging.getLogger(__name__)

LonLatBounds = Tuple[float, float, float, float]


def cell_lonlat_bounds(
    result: HourlyZoneResult,
    origin: GridOrigin,
    cell_size: float,
) -> LonLatBounds:
    """(min_lon, min_lat, max_lon, max_lat) of a result's cell."""
    min_x, min_y, max_x, max_y = cell_bounds(result.cell_x, result.cell_y, origin, cell_size)
    lons, lats = unproject_many([min_x, max_x], [min_y, max_y])
    return float(lons[0]), float(lats[0]), float(lons[1]), float(lats[1])


def choose_zoom(origin: GridOrigin) -> int:
    """Zoom level from the envelope's longitude span."""
    min_lon, _ = unproject(origin.min_x, origin.min_y)
    max_lon, _ = unproject(origin.max_x, origin.max_y)
    span = max_lon - min_lon
    for max_span, zoom in constants.MAP_ZOOM_STEPS:
        if span < max_span:
            return zoom
    return constants.MAP_FALLBACK_ZOOM


def fill_opacity(result: HourlyZoneResult, max_abs_net: int) -> float:
    if result.status is ZoneStatus.BALANCED:
        return constants.MAP_BALANCED_FILL_OPACITY
    if result.status is ZoneStatus.UNSUPPORTED:
        return constants.MAP_UNSUPPORTED_FILL_OPACITY
    t = min(abs(result.net) / max(max_abs_net, 1), 1.0)
    return round(constants.MAP_MIN_FILL_OPACITY + constants.MAP_FILL_OPACITY_RANGE * t, 2)


def _popup_html(r: HourlyZoneResult) -> str:
    net_color = "#5dade2" if r.net > 0 else "#ec7063" if r.net < 0 else "#58d68d"
    return (
        f"<b>Cell ({r.cell_x}, {r.cell_y})</b><br/>"
        f"<b>Hour:</b> {r.hour:02d}:00<br/>"
        f"<b>Drivers (raw):</b> {r.supply}<br/>"
        f"<b>Effective supply:</b> {r.effective_supply}<br/>"
        f"<b>Ride requests:</b> {r.demand}<br/>"
        f"<b>Net:</b> <span style='color:{net_color};font-weight:700'>{r.net:+d}</span><br/>"
        f"<b>Status:</b> {r.status.value}"
    )


def _legend_html(results: List[HourlyZoneResult], reporting: ReportingSettings) -> str:
    counts = status_counts(results)
    rows = []
    for status in (ZoneStatus.NET_DEMAND, ZoneStatus.NET_SUPPLY, ZoneStatus.BALANCED, ZoneStatus.UNSUPPORTED):
        rows.append(
            f"<tr>"
            f"<td><span style='display:inline-block;width:12px;height:12px;background:{reporting.color_for(status)};"
            f"border-radius:3px;'></span></td>"
            f"<td style='padding-left:8px;'>{reporting.label_for(status)}</td>"
            f"<td style='padding-left:8px;text-align:right;'>{counts[status]}</td>"
            f"</tr>"
        )
    return (
        "<div style='position:fixed;bottom:24px;left:12px;background:rgba(22,33,62,0.95);color:#e0e0e0;"
        "padding:12px 16px;border-radius:10px;box-shadow:0 4px 20px rgba(0,0,0,0.5);"
        "font:12px system-ui;z-index:9999;'>"
        "<div style='font-weight:600;margin-bottom:8px;letter-spacing:1px;text-transform:uppercase;"
        "color:#a0c4ff;'>Grid Aggregate</div>"
        "<table style='border-spacing:0 3px;'>" + "".join(rows) + "</table>"
        "<div style='margin-top:8px;font-size:10px;color:#888;'>"
        "Effective supply = raw driver events x capacity factor.<br/>"
        "Counts are cell-hours across all hours; pick an hour in the layer control."
        "</div>"
        "</div>"
    )


def build_map(
    results: List[HourlyZoneResult],
    origin: GridOrigin,
    cell_size: float,
    reporting: Optional[ReportingSettings] = None,
) -> folium.Map:
    """Build the folium map without writing it."""
    reporting = reporting or ReportingSettings()
    ordered = sort_results(results)

    center_lon, center_lat = unproject(
        origin.min_x + origin.width / 2.0,
        origin.min_y + origin.height / 2.0,
    )
    m = folium.Map(location=[center_lat, center_lon], zoom_start=choose_zoom(origin), tiles=None)
    folium.TileLayer(
        tiles=constants.MAP_TILE_URL,
        attr=constants.MAP_TILE_ATTRIBUTION,
        max_zoom=constants.MAP_MAX_ZOOM,
        name="OpenStreetMap",
        control=False,
    ).add_to(m)

    max_abs_net = max((abs(r.net) for r in ordered), default=1)
    hours = sorted({r.hour for r in ordered})
    layers: Dict[int, folium.FeatureGroup] = {}
    for hour in hours:
        layers[hour] = folium.FeatureGroup(name=f"{hour:02d}:00", overlay=False, show=(hour == hours[0]))

    for r in ordered:
        min_lon, min_lat, max_lon, max_lat = cell_lonlat_bounds(r, origin, cell_size)
        folium.Rectangle(
            bounds=[[min_lat, min_lon], [max_lat, max_lon]],
            color="rgba(0,0,0,0.25)",
            weight=0.8,
            fill=True,
            fill_color=reporting.color_for(r.status),
            fill_opacity=fill_opacity(r, max_abs_net),
            popup=folium.Popup(_popup_html(r), max_width=260),
        ).add_to(layers[r.hour])

    for hour in hours:
        layers[hour].add_to(m)
    if hours:
        folium.LayerControl(collapsed=False).add_to(m)

    m.get_root().html.add_child(folium.Element(_legend_html(ordered, reporting)))
    return m


def export_html(
    results: List[HourlyZoneResult],
    origin: GridOrigin,
    cell_size: float,
    output_path: Union[str, Path],
    reporting: Optional[ReportingSettings] = None,
) -> Path:
    """
    Write a self-contained HTML map (opens in any browser, no server).

    Returns:
        The written path
    """
    output_path = Path(output_path)
    output_path.parent.mkdir(parents=True, exist_ok=True)
    m = build_map(results, origin, cell_size, reporting)
    output_path.write_text(m.get_root().render(), encoding="utf-8")
    logger.info(f"Map with {len(results)} cell-hours written to {output_path}")
    return output_path


def to_geojson_features(
    results: List[HourlyZoneResult],
    origin: GridOrigin,
    cell_size: float,
) -> List[Dict[str, Any]]:
    """GeoJSON Feature dicts (WGS84 polygons) in canonical order."""
    out = []
    for r in sort_results(results):
        min_lon, min_lat, max_lon, max_lat = cell_lonlat_bounds(r, origin, cell_size)
        out.append({
            "type": "Feature",
            "geometry": {
                "type": "Polygon",
                "coordinates": [[
                    [min_lon, min_lat],
                    [max_lon, min_lat],
                    [max_lon, max_lat],
                    [min_lon, max_lat],
                    [min_lon, min_lat],
                ]],
            },
            "properties": {
                "cell_id": f"{r.cell_x}:{r.cell_y}",
                "hour": r.hour,
                "cell_x": r.cell_x,
                "cell_y": r.cell_y,
                "supply": r.supply,
                "effective_supply": r.effective_supply,
                "demand": r.demand,
                "net": r.net,
                "status": r.status.value,
            },
        })
    return out
