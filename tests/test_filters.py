import datetime as dt

import pytest

from usgs_quake.errors import ValidationError
from usgs_quake.filters import (
    fetch_display_list, fetch_places, filter_earthquakes_by_date_range,
    filter_earthquakes_by_place, is_valid_date_format, parse_filter_start,
)
from usgs_quake.models import FilterState
from usgs_quake.transform import to_display_list

NOV25 = dt.date(2023, 11, 25)


@pytest.mark.parametrize(
    "text,ok",
    [
        ("2023-11-22", True),
        ("2024-02-29", True),
        ("2023/11/22", False),
        ("2023-13-01", False),
        ("2023-02-30", False),
        ("2023-1-05", False),
        ("yyyy-MM-dd", False),
        ("", False),
        (None, False),
        (" 2023-11-22", False),
    ],
)
def test_is_valid_date_format(text, ok):
    assert is_valid_date_format(text) is ok


class TestParseFilterStart:
    def test_after_baseline(self):
        assert parse_filter_start("2023-11-23") == dt.date(2023, 11, 23)

    @pytest.mark.parametrize("text", ["2023-11-22", "2023-01-01", "2023/11/30", "tomorrow"])
    def test_rejected(self, text):
        with pytest.raises(ValidationError):
            parse_filter_start(text)

    def test_custom_baseline(self):
        assert parse_filter_start("2020-01-02", baseline="2020-01-01") == dt.date(2020, 1, 2)

    def test_validation_error_is_value_error(self):
        with pytest.raises(ValueError):
            parse_filter_start("nope")


def test_no_filters_round_trip(api, payload):
    from usgs_quake.models import RawEventBatch

    expected = to_display_list(RawEventBatch.from_geojson(payload), tz="UTC")
    assert fetch_display_list(api, FilterState(), tz="UTC") == expected
    assert fetch_display_list(api, FilterState(place=""), tz="UTC") == expected
    assert fetch_display_list(api, tz="UTC") == expected


def test_every_call_refetches(api, usgs):
    fetch_display_list(api, FilterState(place="alaska"), tz="UTC")
    filter_earthquakes_by_place(api, "alaska", tz="UTC")
    filter_earthquakes_by_date_range(api, dt.date(2023, 11, 21), today=NOV25, tz="UTC")
    assert len(usgs.requests) == 3


def test_place_only(api):
    rows = filter_earthquakes_by_place(api, "ALASKA", tz="UTC")
    assert [(r.sequence_id, r.magnitude) for r in rows] == [(1, 5.2)]


def test_date_range_only(api):
    rows = filter_earthquakes_by_date_range(api, dt.date(2023, 11, 21), today=NOV25, tz="UTC")
    assert [r.sequence_id for r in rows] == [1, 2, 3]
    assert [r.day for r in rows] == ["2023-11-22", "2023-11-25", "2023-11-25"]


def test_date_window_end_moves_with_today(api):
    rows = filter_earthquakes_by_date_range(api, dt.date(2023, 11, 21), today=dt.date(2023, 11, 23), tz="UTC")
    assert [r.day for r in rows] == ["2023-11-22"]


def test_both_filters(api):
    state = FilterState(place="california", start=dt.date(2023, 11, 21))
    assert fetch_display_list(api, state, today=NOV25, tz="UTC") == []

    state = state.with_place("alaska")
    rows = fetch_display_list(api, state, today=NOV25, tz="UTC")
    assert [(r.sequence_id, r.place) for r in rows] == [(1, "50km S of Adak, Alaska")]


def test_fetch_places(api):
    assert fetch_places(api) == {"California", "Alaska", "Unknown"}
