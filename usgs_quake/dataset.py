from __future__ import annotations

import datetime as _dt
from typing import Dict, List, Mapping, Optional, Sequence, Set, Tuple, Union

import numpy as np
import pandas as pd

from .constants import (
    CANONICAL_FIELDS, CHART_LABEL_FORMAT, DATE_FORMAT, DEFAULT_MAGNITUDE, DEFAULT_TZ,
    UNKNOWN_PLACE,
)
from .export import export_to_csv
from .logger import get_logger
from .models import DisplayEvent, FilterState, RawEvent, RawEventBatch
from .transform import distinct_places, format_timestamp, local_today, to_display_list

DayLike = Union[str, _dt.date]


def _day_string(day: DayLike) -> str:
    if isinstance(day, _dt.datetime):
        day = day.date()
    if isinstance(day, _dt.date):
        return day.strftime(DATE_FORMAT)
    normalized = _dt.datetime.strptime(day, DATE_FORMAT).strftime(DATE_FORMAT)
    # strptime accepts "2023-11-5"; the day column is always zero-padded
    if normalized != day:
        raise ValueError(f"day {day!r} is not zero-padded yyyy-MM-dd")
    return normalized


class EarthquakeDataset:
    """
    Lightweight container over one fetched batch with DataFrame-backed filters.

    Key features:
    - Normalize raw events to a canonical schema (columns always exist, may be null).
    - Client-side filters: case-insensitive place substring, inclusive day range.
    - Display projection with contiguous 1..N sequence ids after filtering.

    Row labels of the internal DataFrame are positions in the original batch,
    so filters only ever drop rows and never reorder them.

    Parameters
    ----------
    events : sequence of RawEvent
        Events of one API response (a RawEventBatch works too).
    tz : str, optional
        Display time zone; None means the system local zone.

    Examples
    --------
    >>> ds = EarthquakeDataset.from_batch(api.fetch())
    >>> rows = (ds.filter_by_date_range(start="2023-11-21")
    ...           .filter_by_place("california")
    ...           .to_display_list())
    """

    def __init__(self, events: Sequence[RawEvent], tz: Optional[str] = DEFAULT_TZ) -> None:
        self._logger = get_logger("dataset")
        self._raw: List[RawEvent] = list(events or [])
        self.tz = tz
        self._df: Optional[pd.DataFrame] = None  # built lazily

    # ------------- Constructors -------------
    @classmethod
    def from_batch(cls, batch: RawEventBatch, tz: Optional[str] = DEFAULT_TZ) -> "EarthquakeDataset":
        """Create dataset from one fetched batch."""
        return cls(batch.events, tz=tz)

    # ------------- Core -------------
    def to_dataframe(self) -> pd.DataFrame:
        """
        Return the internal DataFrame, building it once from raw events.

        - Ensures all canonical columns exist (possibly null).
        - Formats 'time' and 'day' in the dataset time zone.
        - Casts magnitude to float (NaN when absent).
        """
        if self._df is not None:
            return self._df

        rows = [
            {
                "magnitude": e.magnitude,
                "place": e.place,
                "time_ms": e.occurred_at_millis,
                "time": format_timestamp(e.occurred_at_millis, self.tz),
                "event_type": e.event_type,
                "title": e.title,
            }
            for e in self._raw
        ]
        df = pd.DataFrame(rows, columns=CANONICAL_FIELDS)
        df["magnitude"] = pd.to_numeric(df["magnitude"], errors="coerce")
        df["day"] = df["time"].astype("string").str.slice(0, 10)

        self._df = df
        return self._df

    def __len__(self) -> int:
        return len(self.to_dataframe())

    # ------------- Filters (in-place; chainable) -------------
    def filter_by_place(self, place: Optional[str]) -> "EarthquakeDataset":
        """
        Keep rows whose place contains ``place`` (case-insensitive).

        Events without a place are matched as "Unknown". An empty or None
        ``place`` leaves the dataset untouched.

        Examples
        --------
        >>> ds.filter_by_place("california")
        """
        if not place:
            return self
        df = self.to_dataframe()
        col = df["place"].astype("string").fillna(UNKNOWN_PLACE)
        mask = col.str.contains(place, case=False, regex=False)
        self._df = df[mask.to_numpy(dtype=bool)]
        self._logger.debug("Place filter %r kept %d rows", place, len(self._df))
        return self

    def filter_by_date_range(
        self,
        *,
        start: DayLike,
        end: Optional[DayLike] = None,
    ) -> "EarthquakeDataset":
        """
        Keep rows whose local day lies in [start, end] (inclusive).

        ``end`` defaults to today's date in the dataset time zone, so the
        window advances with the wall clock.

        Examples
        --------
        >>> ds.filter_by_date_range(start="2023-11-21")
        """
        s = _day_string(start)
        e = _day_string(end if end is not None else local_today(self.tz))
        df = self.to_dataframe()
        day = df["day"]
        mask = (day >= s) & (day <= e)
        self._df = df[mask.to_numpy(dtype=bool)]
        self._logger.debug("Date filter %s..%s kept %d rows", s, e, len(self._df))
        return self

    def apply_filters(self, state: FilterState, *, today: Optional[_dt.date] = None) -> "EarthquakeDataset":
        """Date range first, then place; both are plain predicates so the order is free."""
        if state.has_date_range:
            self.filter_by_date_range(start=state.start, end=today)
        if state.has_place:
            self.filter_by_place(state.place)
        return self

    # ------------- Projections -------------
    def events(self) -> List[RawEvent]:
        """Raw events that survived the filters, in batch order."""
        return [self._raw[i] for i in self.to_dataframe().index]

    def to_display_list(self) -> List[DisplayEvent]:
        return to_display_list(self.events(), self.tz)

    def distinct_places(self) -> Set[str]:
        return distinct_places(self.events())

    def aggregate_daily_max(self) -> Dict[_dt.date, float]:
        return max_magnitude_per_day(self.to_display_list())

    def save(self, path: str) -> "EarthquakeDataset":
        """
        Write the current rows to CSV.

        Examples
        --------
        >>> ds.filter_by_place("alaska").save("alaska.csv")
        """
        export_to_csv(path, self.to_display_list())
        return self


# ------------- Daily aggregation -------------
def max_magnitude_per_day(events: Sequence[DisplayEvent]) -> Dict[_dt.date, float]:
    """
    Maximum magnitude per calendar day, keyed by date in chronological order.

    The day is the "yyyy-MM-dd" prefix of each event's formatted time; a
    missing magnitude counts as 0.0.

    Examples
    --------
    >>> max_magnitude_per_day(rows)
    {datetime.date(2023, 11, 22): 5.2, datetime.date(2023, 11, 23): 1.0}
    """
    if not events:
        return {}
    df = pd.DataFrame({
        "day": pd.to_datetime([e.day for e in events], format=DATE_FORMAT),
        "magnitude": pd.to_numeric([e.magnitude for e in events], errors="coerce"),
    })
    m = df["magnitude"]
    df["magnitude"] = np.where(m.notna(), m, DEFAULT_MAGNITUDE)
    daily = df.groupby("day", sort=True)["magnitude"].max()
    return {ts.date(): float(mag) for ts, mag in daily.items()}


def chart_series(daily_max: Mapping[_dt.date, float]) -> List[Tuple[str, float]]:
    """Label an already aggregated day -> max mapping; labels look like "Nov 22"."""
    return [(day.strftime(CHART_LABEL_FORMAT), mag) for day, mag in daily_max.items()]


def daily_chart_series(events: Sequence[DisplayEvent]) -> List[Tuple[str, float]]:
    """One (label, max magnitude) bar per day of ``events``."""
    return chart_series(max_magnitude_per_day(events))
