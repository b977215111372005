"""
Filter engine entry points.

Every function here re-fetches the full batch before filtering; there is no
cache between calls, so results are never stale but each call costs one
round trip to the service.
"""

from __future__ import annotations

import datetime as _dt
import re
from typing import List, Optional, Set

from .api import UsgsAPI
from .constants import BASELINE_DATE, DATE_FORMAT, DEFAULT_TZ
from .dataset import EarthquakeDataset
from .errors import ValidationError
from .logger import get_logger
from .models import DisplayEvent, FilterState

_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")

_logger = get_logger("filters")


def is_valid_date_format(text: Optional[str]) -> bool:
    """True for a real calendar date written exactly as "yyyy-MM-dd"."""
    if not text or not _DATE_RE.match(text):
        return False
    try:
        _dt.datetime.strptime(text, DATE_FORMAT)
    except ValueError:
        return False
    return True


def parse_filter_start(text: Optional[str], *, baseline: str = BASELINE_DATE) -> _dt.date:
    """
    Validate a user-entered range start and return it as a date.

    Raises
    ------
    ValidationError
        If ``text`` is not "yyyy-MM-dd" or is not strictly after ``baseline``.
    """
    if not is_valid_date_format(text):
        raise ValidationError(f"{text!r} is not a date in yyyy-MM-dd format")
    start = _dt.datetime.strptime(text, DATE_FORMAT).date()
    floor = _dt.datetime.strptime(baseline, DATE_FORMAT).date()
    if start <= floor:
        raise ValidationError(f"date must be after {baseline}, got {text}")
    return start


def fetch_places(api: UsgsAPI) -> Set[str]:
    """Distinct regions of a fresh batch, for the place selector."""
    return EarthquakeDataset.from_batch(api.fetch()).distinct_places()


def filter_earthquakes_by_place(
    api: UsgsAPI, place: str, *, tz: Optional[str] = DEFAULT_TZ
) -> List[DisplayEvent]:
    ds = EarthquakeDataset.from_batch(api.fetch(), tz=tz).filter_by_place(place)
    return ds.to_display_list()


def filter_earthquakes_by_date_range(
    api: UsgsAPI,
    start: _dt.date,
    *,
    today: Optional[_dt.date] = None,
    tz: Optional[str] = DEFAULT_TZ,
) -> List[DisplayEvent]:
    ds = EarthquakeDataset.from_batch(api.fetch(), tz=tz)
    return ds.filter_by_date_range(start=start, end=today).to_display_list()


def fetch_display_list(
    api: UsgsAPI,
    state: Optional[FilterState] = None,
    *,
    today: Optional[_dt.date] = None,
    tz: Optional[str] = DEFAULT_TZ,
) -> List[DisplayEvent]:
    """
    Fetch once and apply whichever filters ``state`` has active.

    With both a place and a date range the result is their intersection;
    with neither it is the whole batch. Sequence ids always run 1..N over
    the returned list.
    """
    state = state or FilterState()
    ds = EarthquakeDataset.from_batch(api.fetch(), tz=tz).apply_filters(state, today=today)
    rows = ds.to_display_list()
    _logger.info("Pipeline produced %d rows (%s)", len(rows), state.describe())
    return rows
