"""
Plain records for earthquake events and the active filter selection.

RawEvent / RawEventBatch mirror one USGS GeoJSON response. DisplayEvent is the
table-ready projection with defaults applied and the time formatted. All of
them are frozen: every refresh builds fresh objects instead of editing old ones.
"""

from __future__ import annotations

import datetime as _dt
from dataclasses import dataclass, replace
from typing import Any, Dict, Optional, Tuple

from .constants import COLLECTION_TYPE, FEATURE_TYPE
from .errors import FormatError


def _require(props: Dict[str, Any], key: str, types: Tuple[type, ...], optional: bool = False) -> Any:
    value = props.get(key)
    if value is None:
        if optional:
            return None
        raise FormatError(f"feature property '{key}' is missing")
    # bool is an int subclass; never accept it as a number
    if isinstance(value, bool) or not isinstance(value, types):
        raise FormatError(
            f"feature property '{key}' has type {type(value).__name__}"
        )
    return value


def _require_timestamp(props: Dict[str, Any]) -> int:
    millis = _require(props, "time", (int,))
    try:
        _dt.datetime.fromtimestamp(millis // 1000, tz=_dt.timezone.utc)
    except (OverflowError, OSError, ValueError) as e:
        raise FormatError(f"feature property 'time' out of range: {millis}") from e
    return millis


@dataclass(frozen=True)
class RawEvent:
    """One earthquake as reported by the API."""

    magnitude: Optional[float]
    place: Optional[str]
    occurred_at_millis: int
    event_type: str
    title: str

    @classmethod
    def from_feature(cls, feature: Any) -> "RawEvent":
        """Parse one GeoJSON feature; unknown keys are ignored."""
        if not isinstance(feature, dict):
            raise FormatError(f"feature must be an object, got {type(feature).__name__}")
        props = feature.get("properties")
        if not isinstance(props, dict):
            raise FormatError("feature has no 'properties' object")
        if feature.get("type", FEATURE_TYPE) != FEATURE_TYPE:
            raise FormatError(f"unexpected feature type {feature.get('type')!r}")

        mag = _require(props, "mag", (int, float), optional=True)
        return cls(
            magnitude=float(mag) if mag is not None else None,
            place=_require(props, "place", (str,), optional=True),
            occurred_at_millis=_require_timestamp(props),
            event_type=_require(props, "type", (str,)),
            title=_require(props, "title", (str,)),
        )


@dataclass(frozen=True)
class RawEventBatch:
    """One API snapshot: the ordered events plus the envelope type tag."""

    events: Tuple[RawEvent, ...] = ()
    batch_type: str = COLLECTION_TYPE

    def __len__(self) -> int:
        return len(self.events)

    def __iter__(self):
        return iter(self.events)

    @classmethod
    def from_geojson(cls, payload: Any) -> "RawEventBatch":
        """
        Build a batch from a decoded GeoJSON FeatureCollection.

        Raises
        ------
        FormatError
            If the envelope tag is wrong or a required field is missing.
        """
        if not isinstance(payload, dict):
            raise FormatError(f"response must be a JSON object, got {type(payload).__name__}")
        batch_type = payload.get("type")
        if batch_type != COLLECTION_TYPE:
            raise FormatError(f"unexpected top-level type {batch_type!r}")
        features = payload.get("features")
        if not isinstance(features, list):
            raise FormatError("response has no 'features' array")
        return cls(
            events=tuple(RawEvent.from_feature(f) for f in features),
            batch_type=batch_type,
        )


@dataclass(frozen=True)
class DisplayEvent:
    """Table row: 1-based position, defaults applied, local formatted time."""

    sequence_id: int
    magnitude: float
    place: str
    formatted_time: str
    event_type: str
    title: str

    @property
    def day(self) -> str:
        """The 'yyyy-MM-dd' part of formatted_time."""
        return self.formatted_time.split(" ", 1)[0]


@dataclass(frozen=True)
class FilterState:
    """
    Snapshot of the user's filter selection.

    An empty place means "no place filter"; a missing start means "no date
    range". The end of a date range is always the day of evaluation.
    """

    place: Optional[str] = None
    start: Optional[_dt.date] = None

    def __post_init__(self) -> None:
        if self.place is not None and not self.place.strip():
            object.__setattr__(self, "place", None)

    @property
    def has_place(self) -> bool:
        return self.place is not None

    @property
    def has_date_range(self) -> bool:
        return self.start is not None

    @property
    def is_empty(self) -> bool:
        return not (self.has_place or self.has_date_range)

    def with_place(self, place: Optional[str]) -> "FilterState":
        return replace(self, place=place)

    def with_start(self, start: Optional[_dt.date]) -> "FilterState":
        return replace(self, start=start)

    def cleared(self) -> "FilterState":
        return FilterState()

    def describe(self) -> str:
        parts = []
        if self.has_place:
            parts.append(f"place~{self.place!r}")
        if self.has_date_range:
            parts.append(f"since {self.start.isoformat()}")
        return ", ".join(parts) or "no filters"
