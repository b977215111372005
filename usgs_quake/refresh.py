"""
Periodic refresh: fetch -> filter -> transform -> aggregate on a background thread.

The producer thread never touches observers. Each finished tick is dropped
into a single-slot channel (last write wins) and the consumer, typically the
UI thread, calls :meth:`RefreshLoop.drain` on its own turn to publish it.
"""

from __future__ import annotations

import datetime as _dt
import enum
import queue
import threading
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional, Tuple

from .api import UsgsAPI
from .constants import DEFAULT_TZ, REFRESH_INTERVAL
from .dataset import max_magnitude_per_day
from .errors import QuakeError
from .filters import fetch_display_list
from .logger import get_logger
from .models import DisplayEvent, FilterState
from .transform import local_today

PublishObserver = Callable[[Tuple[DisplayEvent, ...], Dict[_dt.date, float]], None]
ErrorObserver = Callable[["TickResult"], None]


class RefreshState(str, enum.Enum):
    IDLE = "idle"
    FETCHING = "fetching"
    SUCCESS = "success"
    FAILED = "failed"


@dataclass(frozen=True)
class TickResult:
    """Outcome of one refresh tick; ``error_kind`` is set only when ``ok`` is False."""

    ok: bool
    events: Tuple[DisplayEvent, ...] = ()
    filters: FilterState = field(default_factory=FilterState)
    daily_max: Dict[_dt.date, float] = field(default_factory=dict)
    error_kind: Optional[str] = None
    message: str = ""


class RefreshLoop:
    """
    Re-run the pipeline every ``interval`` seconds, first tick immediately.

    Filter changes are made by replacing the whole :class:`FilterState`
    through :meth:`set_filters`; each tick reads one snapshot of it. A tick
    that starts while another is still running is skipped rather than queued.

    Parameters
    ----------
    api : UsgsAPI
        Fetcher used on every tick. Its timeout bounds how long a tick can take.
    interval : float
        Seconds between the start of one wait and the next tick.
    filters : FilterState, optional
        Initial filter selection.
    tz : str, optional
        Display time zone; None means the system local zone.
    today : callable, optional
        Returns the end date of date-range filters. Defaults to the wall clock.

    Examples
    --------
    >>> loop = RefreshLoop(UsgsAPI())
    >>> loop.add_observer(on_publish=lambda rows, daily: print(len(rows)))
    >>> loop.start()
    >>> loop.drain(timeout=30)   # on the consumer thread
    """

    def __init__(
        self,
        api: UsgsAPI,
        *,
        interval: float = REFRESH_INTERVAL,
        filters: Optional[FilterState] = None,
        tz: Optional[str] = DEFAULT_TZ,
        today: Optional[Callable[[], _dt.date]] = None,
    ) -> None:
        self._logger = get_logger("refresh")
        self.api = api
        self.interval = float(interval)
        self.tz = tz
        self._today = today or (lambda: local_today(tz))
        self._filters = filters or FilterState()

        self._slot: "queue.Queue[TickResult]" = queue.Queue(maxsize=1)
        self._busy = threading.Lock()
        self._stop = threading.Event()
        self._thread: Optional[threading.Thread] = None

        self._state = RefreshState.IDLE
        self._published: Tuple[DisplayEvent, ...] = ()
        self._daily_max: Dict[_dt.date, float] = {}
        self._publish_observers: List[PublishObserver] = []
        self._error_observers: List[ErrorObserver] = []
        self.ticks = 0
        self.skipped = 0
        self.last_result: Optional[TickResult] = None

    # ---------- Shared state ----------
    @property
    def state(self) -> RefreshState:
        return self._state

    @property
    def filters(self) -> FilterState:
        return self._filters

    def set_filters(self, filters: FilterState) -> None:
        """Swap in a new filter snapshot; picked up by the next tick."""
        self._filters = filters
        self._logger.info("Filters set: %s", filters.describe())

    def today(self) -> _dt.date:
        """End date of date-range filters right now."""
        return self._today()

    @property
    def published(self) -> Tuple[DisplayEvent, ...]:
        return self._published

    @property
    def daily_max(self) -> Dict[_dt.date, float]:
        return self._daily_max

    def add_observer(
        self,
        on_publish: Optional[PublishObserver] = None,
        on_error: Optional[ErrorObserver] = None,
    ) -> None:
        if on_publish is not None:
            self._publish_observers.append(on_publish)
        if on_error is not None:
            self._error_observers.append(on_error)

    # ---------- Producer side ----------
    def tick(self) -> Optional[TickResult]:
        """
        Run the pipeline once and offer the outcome to the channel.

        Returns None when another tick is still in flight. Fetch failures are
        returned as a failed TickResult, never raised.
        """
        if not self._busy.acquire(blocking=False):
            self.skipped += 1
            self._logger.warning("Refresh tick skipped: previous tick still running")
            return None
        try:
            filters = self._filters
            self._state = RefreshState.FETCHING
            try:
                rows = tuple(fetch_display_list(self.api, filters, today=self.today(), tz=self.tz))
                daily_max = max_magnitude_per_day(rows)
            except QuakeError as e:
                self._state = RefreshState.FAILED
                result = TickResult(ok=False, filters=filters, error_kind=e.kind, message=str(e))
                self._logger.warning("Refresh tick failed (%s): %s", e.kind, e)
            else:
                self._state = RefreshState.SUCCESS
                result = TickResult(ok=True, events=rows, filters=filters, daily_max=daily_max)
            self.ticks += 1
            self.last_result = result
            self._offer(result)
            return result
        finally:
            self._state = RefreshState.IDLE
            self._busy.release()

    def _offer(self, result: TickResult) -> None:
        while True:
            try:
                self._slot.put_nowait(result)
                return
            except queue.Full:
                try:
                    dropped = self._slot.get_nowait()
                    self._logger.debug("Dropped undrained tick result (ok=%s)", dropped.ok)
                except queue.Empty:
                    pass

    def _run(self) -> None:
        while not self._stop.is_set():
            try:
                self.tick()
            except Exception:
                self._logger.exception("Refresh tick crashed; retrying on next interval")
            if self._stop.wait(self.interval):
                break

    def start(self) -> None:
        if self.running:
            return
        self._stop.clear()
        self._thread = threading.Thread(target=self._run, name="usgs-quake-refresh", daemon=True)
        self._thread.start()
        self._logger.info("Refresh loop started (every %.1fs)", self.interval)

    def stop(self, timeout: Optional[float] = None) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout)
            self._thread = None
        self._logger.info("Refresh loop stopped")

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    # ---------- Consumer side ----------
    def drain(self, timeout: Optional[float] = None) -> Optional[TickResult]:
        """
        Publish the latest finished tick, if any. Call from the consumer thread.

        ``timeout=None`` returns immediately; otherwise wait up to ``timeout``
        seconds for a result. On success the published rows are replaced as a
        whole and publish observers are called; on failure the previous rows
        are kept and error observers are called.
        """
        try:
            if timeout is None:
                result = self._slot.get_nowait()
            else:
                result = self._slot.get(timeout=timeout)
        except queue.Empty:
            return None

        if result.ok:
            self._published = result.events
            self._daily_max = result.daily_max
            self._logger.info("Published %d rows", len(result.events))
            for observer in self._publish_observers:
                observer(self._published, self._daily_max)
        else:
            for observer in self._error_observers:
                observer(result)
        return result

    def refresh_now(self) -> Optional[TickResult]:
        """Synchronous tick + drain, for one-shot callers."""
        if self.tick() is None:
            return None
        return self.drain()
