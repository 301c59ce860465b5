"""
Application Constants

Module-level defaults for grid aggregation, synthetic data and map export.
Runtime values normally come from config/rulebook.yml; these are the
fallbacks used when a key is absent.
"""

# Time bucketing
HOURS_PER_DAY = 24

# Default aggregation parameters
DEFAULT_GRID_SIZE_M = 500.0
DEFAULT_CAPACITY_FACTOR = 2.0  # trips per available driver per hour
DEFAULT_MIN_ACTIVITY_THRESHOLD = 5  # supply + demand events per cell-hour

# Geographic validity ranges (WGS84 decimal degrees)
# Web Mercator is only defined up to this latitude; beyond it y grows without bound
MERCATOR_LAT_LIMIT = 85.05112878
LON_MIN = -180.0
LON_MAX = 180.0

# Coordinate reference systems
CRS_WGS84 = "EPSG:4326"
CRS_WEB_MERCATOR = "EPSG:3857"

# Synthetic demo data (lower Manhattan / Brooklyn)
DEFAULT_SYNTHETIC_EVENTS = 5_000
DEFAULT_SYNTHETIC_SEED = 42
DEFAULT_SYNTHETIC_BOUNDS = {
    "lon_min": -74.1,
    "lon_max": -73.9,
    "lat_min": 40.70,
    "lat_max": 40.85,
}

# Ingestion
CSV_REQUIRED_COLUMNS = ("lat", "lon", "hour", "event_type")
CSV_OPTIONAL_COLUMNS = ("day",)
CSV_DAY_FORMAT = "%Y-%m-%d"
SAMPLE_CSV_PATH = "events_sample.csv"

# Output defaults
DEFAULT_MAP_OUTPUT = "map.html"

# Map tile provider
MAP_TILE_URL = "https://{s}.tile.openstreetmap.org/{z}/{x}/{y}.png"
MAP_TILE_ATTRIBUTION = "&copy; OpenStreetMap contributors"
MAP_MAX_ZOOM = 19

# Zoom heuristic: (max longitude span in degrees, zoom level)
MAP_ZOOM_STEPS = [(0.05, 14), (0.2, 12), (1.0, 10)]
MAP_FALLBACK_ZOOM = 8

# Fill opacity scaling for net-imbalanced cells
MAP_MIN_FILL_OPACITY = 0.25
MAP_FILL_OPACITY_RANGE = 0.65
MAP_BALANCED_FILL_OPACITY = 0.55
MAP_UNSUPPORTED_FILL_OPACITY = 0.3

# Map status colours (fallback if rulebook has none)
STATUS_COLORS = {
    "NetDemand": "#e74c3c",
    "NetSupply": "#2980b9",
    "Balanced": "#27ae60",
    "Unsupported": "#646464",
}
