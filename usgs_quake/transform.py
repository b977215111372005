"""Pure transformations from raw API events to display rows and place options."""

from __future__ import annotations

import datetime as _dt
import re
from typing import Iterable, List, Optional, Set
from zoneinfo import ZoneInfo

from .constants import DEFAULT_MAGNITUDE, DEFAULT_TZ, TIME_FORMAT, UNKNOWN_PLACE
from .models import DisplayEvent, RawEvent

_REGION_RE = re.compile(r",\s*(.+)")


def format_timestamp(millis: int, tz: Optional[str] = DEFAULT_TZ) -> str:
    """
    Format epoch milliseconds as "YYYY-MM-DD HH:MM:SS".

    ``tz=None`` renders in the system local time zone; otherwise ``tz`` is an
    IANA zone name such as "UTC" or "Europe/Zurich".
    """
    seconds = millis // 1000
    if tz is None:
        moment = _dt.datetime.fromtimestamp(seconds)
    else:
        moment = _dt.datetime.fromtimestamp(seconds, tz=ZoneInfo(tz))
    return moment.strftime(TIME_FORMAT)


def region_of(place: Optional[str]) -> str:
    """Text after the first comma of a place ("10km N of X, California" -> "California")."""
    if place is None:
        return UNKNOWN_PLACE
    match = _REGION_RE.search(place)
    return match.group(1) if match else UNKNOWN_PLACE


def distinct_places(events: Iterable[RawEvent]) -> Set[str]:
    """Set of regions used to populate the place selector."""
    return {region_of(e.place) for e in events}


def to_display_event(position: int, event: RawEvent, tz: Optional[str] = DEFAULT_TZ) -> DisplayEvent:
    return DisplayEvent(
        sequence_id=position,
        magnitude=event.magnitude if event.magnitude is not None else DEFAULT_MAGNITUDE,
        place=event.place if event.place is not None else UNKNOWN_PLACE,
        formatted_time=format_timestamp(event.occurred_at_millis, tz),
        event_type=event.event_type,
        title=event.title,
    )


def to_display_list(events: Iterable[RawEvent], tz: Optional[str] = DEFAULT_TZ) -> List[DisplayEvent]:
    """
    Project raw events to display rows, numbered 1..N in input order.

    Accepts a RawEventBatch or any iterable of RawEvent. Calling it twice on
    the same input yields equal lists.
    """
    return [to_display_event(i, e, tz) for i, e in enumerate(events, start=1)]


def local_today(tz: Optional[str] = DEFAULT_TZ) -> _dt.date:
    """Wall-clock date in the display time zone; the end of every date-range filter."""
    if tz is None:
        return _dt.date.today()
    return _dt.datetime.now(tz=ZoneInfo(tz)).date()
