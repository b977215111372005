"""
usgs_quake
A small client that polls the USGS earthquake service, filters the events by
place or date range and shapes them for a table, a daily bar chart and CSV.
"""

__version__ = "0.1.0"

from .api import UsgsAPI
from .controller import QuakeController
from .dataset import EarthquakeDataset, chart_series, daily_chart_series, max_magnitude_per_day
from .errors import ExportError, FormatError, NetworkError, QuakeError, ValidationError
from .export import export_to_csv
from .filters import fetch_display_list, is_valid_date_format, parse_filter_start
from .models import DisplayEvent, FilterState, RawEvent, RawEventBatch
from .refresh import RefreshLoop, RefreshState, TickResult
from .transform import distinct_places, to_display_list

__all__ = [
    "UsgsAPI",
    "QuakeController",
    "EarthquakeDataset",
    "chart_series",
    "daily_chart_series",
    "max_magnitude_per_day",
    "QuakeError",
    "NetworkError",
    "FormatError",
    "ValidationError",
    "ExportError",
    "export_to_csv",
    "fetch_display_list",
    "is_valid_date_format",
    "parse_filter_start",
    "DisplayEvent",
    "FilterState",
    "RawEvent",
    "RawEventBatch",
    "RefreshLoop",
    "RefreshState",
    "TickResult",
    "distinct_places",
    "to_display_list",
]
