"""CSV export of the currently displayed rows."""

from __future__ import annotations

from pathlib import Path
from typing import Sequence, Union

import pandas as pd

from .constants import CSV_COLUMNS
from .errors import ExportError
from .logger import get_logger
from .models import DisplayEvent

_logger = get_logger("export")


def events_to_dataframe(events: Sequence[DisplayEvent]) -> pd.DataFrame:
    """Rows in display order, one column per CSV header."""
    return pd.DataFrame(
        [
            (e.sequence_id, e.magnitude, e.place, e.formatted_time, e.event_type, e.title)
            for e in events
        ],
        columns=CSV_COLUMNS,
    )


def export_to_csv(path: Union[str, Path], events: Sequence[DisplayEvent]) -> Path:
    """
    Write ``events`` to ``path`` as UTF-8 CSV with a six-column header.

    Fields containing commas (most USGS places do) are quoted, so every row
    has exactly six columns.

    Raises
    ------
    ExportError
        If the file cannot be written (missing directory, permissions, disk full).
    """
    path = Path(path)
    df = events_to_dataframe(events)
    try:
        df.to_csv(path, index=False, encoding="utf-8", lineterminator="\n")
    except OSError as e:
        raise ExportError(f"could not write {path}: {e}") from e
    _logger.info("Exported %d rows to %s", len(df), path)
    return path
