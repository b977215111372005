"""
Headless counterpart of the tracker window's controls.

Holds what the widgets would show (status line, date input, validation hint,
place options) and turns user actions into FilterState replacements on the
refresh loop. Validation and export failures stop here: they become a status
message instead of an exception.
"""

from __future__ import annotations

import datetime as _dt
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from .constants import BASELINE_DATE, DATE_PLACEHOLDER, DEFAULT_EXPORT_PATH
from .dataset import chart_series
from .errors import ExportError, QuakeError, ValidationError
from .export import export_to_csv
from .filters import fetch_places, parse_filter_start
from .logger import get_logger
from .models import DisplayEvent
from .refresh import RefreshLoop, TickResult

STATUS_INITIAL = "Status: Choose any option"
STATUS_OK = "Status: All works normal."
STATUS_DATE_REJECTED = "Status: Date was not accepted."


class QuakeController:
    """
    Parameters
    ----------
    loop : RefreshLoop
        The loop whose filters this controller edits and whose rows it shows.
    export_path : str | Path
        Target of :meth:`export` when no path is given.
    baseline : str
        User-entered range starts must be strictly after this date.
    """

    def __init__(
        self,
        loop: RefreshLoop,
        *,
        export_path: Union[str, Path] = DEFAULT_EXPORT_PATH,
        baseline: str = BASELINE_DATE,
    ) -> None:
        self._logger = get_logger("controller")
        self.loop = loop
        self.export_path = Path(export_path)
        self.baseline = baseline

        self.status = STATUS_INITIAL
        self.status_is_error = False
        self.date_input = DATE_PLACEHOLDER
        self.date_hint = f"Date must be after {baseline}"
        self.place_options: List[Optional[str]] = [None]

        self._tick_failed = False
        loop.add_observer(on_publish=self._on_published, on_error=self._on_tick_failed)

    # ---------- What the widgets display ----------
    @property
    def rows(self) -> Tuple[DisplayEvent, ...]:
        return self.loop.published

    @property
    def chart(self) -> List[Tuple[str, float]]:
        return chart_series(self.loop.daily_max)

    def _set_status(self, text: str, *, error: bool = False) -> None:
        self._tick_failed = False
        self.status = text
        self.status_is_error = error

    def _attention(self, message: object) -> None:
        self._set_status(f"Attention: {message}.", error=True)

    # ---------- Actions ----------
    def load_places(self) -> bool:
        """Fill the place selector: sorted regions, then None for "no filter"."""
        try:
            places = fetch_places(self.loop.api)
        except QuakeError as e:
            self._logger.warning("Could not load places: %s", e)
            self._attention(e)
            return False
        self.place_options = sorted(places) + [None]
        return True

    def select_place(self, place: Optional[str]) -> bool:
        filters = self.loop.filters.with_place(place)
        self.loop.set_filters(filters)
        if filters.has_place:
            self._set_status(f"Status: Filtered by {filters.place}.")
        else:
            self._set_status(STATUS_OK)
        return True

    def submit_date(self, text: str) -> bool:
        """
        Use ``text`` as the start of the date range.

        A rejected date resets the input to its placeholder and leaves the
        active filters unchanged.
        """
        self.date_input = text
        try:
            start = parse_filter_start(text, baseline=self.baseline)
        except ValidationError as e:
            self._logger.warning("Rejected date input %r: %s", text, e)
            self.date_input = DATE_PLACEHOLDER
            self.date_hint = f"Date was not accepted, must be after {self.baseline}"
            self._set_status(STATUS_DATE_REJECTED, error=True)
            return False
        self.loop.set_filters(self.loop.filters.with_start(start))
        self.date_hint = "Date is ok."
        self._set_status(STATUS_OK)
        return True

    def filter_today(self) -> bool:
        """Restrict the date range to today only."""
        self.loop.set_filters(self.loop.filters.with_start(self.loop.today()))
        self._set_status(STATUS_OK)
        return True

    def clear_filters(self) -> bool:
        self.loop.set_filters(self.loop.filters.cleared())
        self.date_input = DATE_PLACEHOLDER
        self._set_status(STATUS_OK)
        return True

    def export(self, path: Optional[Union[str, Path]] = None) -> bool:
        """Write the rows currently on display; failures only change the status."""
        target = Path(path) if path is not None else self.export_path
        try:
            export_to_csv(target, self.rows)
        except ExportError as e:
            self._logger.error("Export failed: %s", e)
            self._attention(e)
            return False
        self._set_status(STATUS_OK)
        return True

    # ---------- Loop callbacks ----------
    def _on_tick_failed(self, result: TickResult) -> None:
        self._attention(result.message)
        self._tick_failed = True

    def _on_published(self, rows: Tuple[DisplayEvent, ...], daily_max: Dict[_dt.date, float]) -> None:
        # Only a tick failure message is cleared; newer messages stay up.
        if self._tick_failed:
            self._set_status(STATUS_OK)
