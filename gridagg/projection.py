"""
Projection adapter: WGS84 <-> Web Mercator.

The aggregation core works in planar metres and never projects anything
itself. Ingestion and synthetic generation project on the way in; the map
exporter unprojects cell corners on the way out.

Dependencies: pyproj, numpy
"""

from typing import Tuple

import numpy as np
import pyproj

from gridagg.constants import CRS_WEB_MERCATOR, CRS_WGS84

# Coordinate Reference Systems
WGS84 = pyproj.CRS(CRS_WGS84)  # GPS coordinates (lat/lon)
WEB_MERCATOR = pyproj.CRS(CRS_WEB_MERCATOR)  # Web map standard, metres

# Transformers (always_xy: lon/x first, lat/y second)
wgs84_to_webmerc = pyproj.Transformer.from_crs(WGS84, WEB_MERCATOR, always_xy=True)
webmerc_to_wgs84 = pyproj.Transformer.from_crs(WEB_MERCATOR, WGS84, always_xy=True)


def project(lon: float, lat: float) -> Tuple[float, float]:
    """(lon, lat) degrees -> (x, y) metres."""
    x, y = wgs84_to_webmerc.transform(lon, lat)
    return float(x), float(y)


def unproject(x: float, y: float) -> Tuple[float, float]:
    """(x, y) metres -> (lon, lat) degrees."""
    lon, lat = webmerc_to_wgs84.transform(x, y)
    return float(lon), float(lat)


def project_many(lons, lats) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorized project over equal-length sequences."""
    xs, ys = wgs84_to_webmerc.transform(
        np.asarray(lons, dtype=np.float64),
        np.asarray(lats, dtype=np.float64),
    )
    return np.asarray(xs, dtype=np.float64), np.asarray(ys, dtype=np.float64)


def unproject_many(xs, ys) -> Tuple[np.ndarray, np.ndarray]:
    """Vectorized unproject over equal-length sequences."""
    lons, lats = webmerc_to_wgs84.transform(
        np.asarray(xs, dtype=np.float64),
        np.asarray(ys, dtype=np.float64),
    )
    return np.asarray(lons, dtype=np.float64), np.asarray(lats, dtype=np.float64)
