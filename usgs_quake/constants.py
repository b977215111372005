"""Library-wide constants and defaults."""

# Public USGS FDSN event service
BASE_URL = "https://earthquake.usgs.gov"
QUERY_PATH = "/fdsnws/event/1/query"
RESPONSE_FORMAT = "geojson"

# Fixed query window. Events start at the baseline date and must have been
# updated after BASELINE_UPDATED_TIME on that day.
BASELINE_DATE = "2023-11-22"
BASELINE_UPDATED_TIME = "14:00:00"

# Envelope tags expected in a GeoJSON response
COLLECTION_TYPE = "FeatureCollection"
FEATURE_TYPE = "Feature"

# HTTP / scheduling
DEFAULT_TIMEOUT = 15.0  # seconds
REFRESH_INTERVAL = 10.0  # seconds between refresh ticks

# Time formatting. DEFAULT_TZ=None means the system local time zone.
DEFAULT_TZ = None
DATE_FORMAT = "%Y-%m-%d"
TIME_FORMAT = "%Y-%m-%d %H:%M:%S"
CHART_LABEL_FORMAT = "%b %d"  # e.g. "Nov 22"
DATE_PLACEHOLDER = "yyyy-MM-dd"

# Display defaults
UNKNOWN_PLACE = "Unknown"
DEFAULT_MAGNITUDE = 0.0

# CSV export: one header per populated column
CSV_COLUMNS = ["Index", "Magnitude", "Place", "Time", "Type", "Title"]
DEFAULT_EXPORT_PATH = "output_earthquake.csv"

# Columns of the working DataFrame (present even when there are no events)
CANONICAL_FIELDS = [
    "magnitude",
    "place",
    "time_ms",           # epoch milliseconds, UTC
    "time",              # "YYYY-MM-DD HH:MM:SS" in the display time zone
    "day",               # "YYYY-MM-DD" prefix of time
    "event_type",
    "title",
]
