import datetime as dt

import pytest

from conftest import collection, feature
from usgs_quake.constants import CANONICAL_FIELDS
from usgs_quake.dataset import EarthquakeDataset, daily_chart_series, max_magnitude_per_day
from usgs_quake.models import DisplayEvent, FilterState, RawEventBatch

NOV25 = dt.date(2023, 11, 25)


@pytest.fixture
def ds(payload):
    return EarthquakeDataset.from_batch(RawEventBatch.from_geojson(payload), tz="UTC")


def row(i, day, mag):
    return DisplayEvent(i, mag, "p", f"{day} 10:00:00", "earthquake", "t")


class TestDataFrame:
    def test_canonical_columns(self, ds):
        df = ds.to_dataframe()
        assert list(df.columns) == CANONICAL_FIELDS
        assert df["day"].tolist() == ["2023-11-20", "2023-11-22", "2023-11-25", "2023-11-25"]
        assert df["magnitude"].isna().tolist() == [False, False, True, False]

    def test_empty_dataset_keeps_columns(self):
        ds = EarthquakeDataset([])
        assert list(ds.to_dataframe().columns) == CANONICAL_FIELDS
        assert len(ds) == 0
        assert ds.filter_by_place("x").filter_by_date_range(start="2023-11-23").to_display_list() == []


class TestPlaceFilter:
    def test_case_insensitive(self, ds):
        rows = ds.filter_by_place("california").to_display_list()
        assert [r.place for r in rows] == ["10km N of Ridgecrest, California"]

    def test_substring_matches_anywhere(self, ds):
        rows = ds.filter_by_place("RIDGECREST").to_display_list()
        assert [r.sequence_id for r in rows] == [1, 2]
        assert rows[1].place == "Ridgecrest CA"

    def test_missing_place_matches_unknown(self, ds):
        rows = ds.filter_by_place("unknown").to_display_list()
        assert len(rows) == 1
        assert rows[0].place == "Unknown"

    @pytest.mark.parametrize("place", ["", None])
    def test_unset_place_keeps_everything(self, ds, place):
        assert len(ds.filter_by_place(place)) == 4

    def test_regex_characters_are_literal(self, ds):
        assert len(ds.filter_by_place(".*")) == 0


class TestDateRangeFilter:
    def test_inclusive_window(self):
        body = collection(
            feature(1.0, "a, X", "2023-11-20"),
            feature(2.0, "b, X", "2023-11-22"),
            feature(3.0, "c, X", "2023-11-25"),
        )
        ds = EarthquakeDataset.from_batch(RawEventBatch.from_geojson(body), tz="UTC")
        rows = ds.filter_by_date_range(start="2023-11-21", end="2023-11-25").to_display_list()

        assert [r.magnitude for r in rows] == [2.0, 3.0]
        assert [r.sequence_id for r in rows] == [1, 2]

    def test_bounds_are_inclusive(self, ds):
        rows = ds.filter_by_date_range(start=dt.date(2023, 11, 22), end=dt.date(2023, 11, 22)).to_display_list()
        assert [r.place for r in rows] == ["50km S of Adak, Alaska"]

    def test_end_defaults_to_today(self, ds):
        # every sample event is in the past, so an open window keeps all of them
        assert len(ds.filter_by_date_range(start="2023-11-01")) == 4

    def test_future_start_keeps_nothing(self, ds):
        tomorrow = dt.datetime.now(dt.timezone.utc).date() + dt.timedelta(days=2)
        assert len(ds.filter_by_date_range(start=tomorrow)) == 0

    def test_malformed_day_string(self, ds):
        with pytest.raises(ValueError):
            ds.filter_by_date_range(start="2023/11/21")

    def test_day_string_must_be_zero_padded(self, ds):
        with pytest.raises(ValueError, match="zero-padded"):
            ds.filter_by_date_range(start="2023-11-5")


class TestApplyFilters:
    def test_both_filters_intersect(self, ds):
        state = FilterState(place="ridgecrest", start=dt.date(2023, 11, 21))
        rows = ds.apply_filters(state, today=NOV25).to_display_list()

        assert [(r.sequence_id, r.place) for r in rows] == [(1, "Ridgecrest CA")]

    def test_no_filters_is_identity(self, payload, ds):
        from usgs_quake.transform import to_display_list

        expected = to_display_list(RawEventBatch.from_geojson(payload), tz="UTC")
        assert ds.apply_filters(FilterState()).to_display_list() == expected

    def test_distinct_places_follow_filters(self, ds):
        assert ds.filter_by_place("alaska").distinct_places() == {"Alaska"}


class TestAggregation:
    def test_max_magnitude_per_day(self):
        rows = [row(1, "2023-11-22", 3.0), row(2, "2023-11-22", 5.2), row(3, "2023-11-23", 1.0)]
        assert max_magnitude_per_day(rows) == {dt.date(2023, 11, 22): 5.2, dt.date(2023, 11, 23): 1.0}

    def test_days_are_chronological(self):
        rows = [row(1, "2023-11-25", 1.0), row(2, "2023-11-20", 2.0)]
        assert list(max_magnitude_per_day(rows)) == [dt.date(2023, 11, 20), dt.date(2023, 11, 25)]

    def test_zero_magnitude_day_is_kept(self):
        assert max_magnitude_per_day([row(1, "2023-11-25", 0.0)]) == {NOV25: 0.0}

    def test_empty(self):
        assert max_magnitude_per_day([]) == {}
        assert daily_chart_series([]) == []

    def test_dataset_daily_max(self, ds):
        assert ds.aggregate_daily_max() == {
            dt.date(2023, 11, 20): 3.0,
            dt.date(2023, 11, 22): 5.2,
            NOV25: 1.0,
        }

    def test_chart_labels(self):
        rows = [row(1, "2023-11-22", 4.4), row(2, "2023-12-03", 2.0)]
        assert daily_chart_series(rows) == [("Nov 22", 4.4), ("Dec 03", 2.0)]


def test_save_writes_current_rows(ds, tmp_path):
    out = tmp_path / "alaska.csv"
    ds.filter_by_place("alaska").save(str(out))
    lines = out.read_text(encoding="utf-8").splitlines()
    assert len(lines) == 2
    assert lines[1].startswith('1,5.2,"50km S of Adak, Alaska",2023-11-22 12:00:00,earthquake,')
