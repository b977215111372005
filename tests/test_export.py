import csv
import os

import pytest

from usgs_quake.errors import ExportError
from usgs_quake.export import export_to_csv
from usgs_quake.models import DisplayEvent

HEADER = "Index,Magnitude,Place,Time,Type,Title"


def rows():
    return [
        DisplayEvent(1, 3.0, "10km N of Ridgecrest, California", "2023-11-20 12:00:00", "earthquake",
                     "M 3.0 - 10km N of Ridgecrest, California"),
        DisplayEvent(2, 0.0, "Unknown", "2023-11-25 12:00:00", "quarry blast", "Quarry"),
    ]


def test_empty_list_writes_header_only(tmp_path):
    out = export_to_csv(tmp_path / "empty.csv", [])
    assert out.read_text(encoding="utf-8") == HEADER + "\n"


def test_header_and_one_row_per_event(tmp_path):
    out = export_to_csv(tmp_path / "quakes.csv", rows())
    lines = out.read_text(encoding="utf-8").splitlines()

    assert lines[0] == HEADER
    assert len(lines) == 3
    assert lines[2] == "2,0.0,Unknown,2023-11-25 12:00:00,quarry blast,Quarry"


def test_commas_inside_fields_keep_six_columns(tmp_path):
    out = export_to_csv(tmp_path / "quakes.csv", rows())
    with open(out, newline="", encoding="utf-8") as fh:
        records = list(csv.reader(fh))

    assert all(len(r) == 6 for r in records)
    assert records[1] == [
        "1", "3.0", "10km N of Ridgecrest, California", "2023-11-20 12:00:00", "earthquake",
        "M 3.0 - 10km N of Ridgecrest, California",
    ]


def test_accepts_string_path(tmp_path):
    path = os.path.join(str(tmp_path), "q.csv")
    assert export_to_csv(path, rows()).exists()


def test_missing_directory_raises_export_error(tmp_path):
    with pytest.raises(ExportError) as info:
        export_to_csv(tmp_path / "nope" / "q.csv", rows())
    assert isinstance(info.value, OSError)


def test_write_failure_raises_export_error(tmp_path, mocker):
    mocker.patch("pandas.DataFrame.to_csv", side_effect=PermissionError("denied"))
    with pytest.raises(ExportError, match="denied"):
        export_to_csv(tmp_path / "q.csv", rows())
