from __future__ import annotations

import datetime as _dt
from typing import Any, Dict, Optional, Union

import httpx

from .constants import (
    BASE_URL, QUERY_PATH, RESPONSE_FORMAT, BASELINE_DATE, BASELINE_UPDATED_TIME,
    DEFAULT_TIMEOUT,
)
from .errors import FormatError, NetworkError
from .logger import get_logger
from .models import RawEventBatch

DateLike = Union[str, _dt.datetime, _dt.date]


class UsgsAPI:
    """
    Low-level client for the USGS FDSN 'event' query service.

    The client owns HTTP concerns (base URL, timeout, headers) and a fixed
    query window. One call to :meth:`fetch` issues exactly one GET and returns
    a parsed :class:`RawEventBatch`. There is no retry logic here: failures
    propagate to the caller (usually the refresh loop).

    Parameters
    ----------
    base_url : str, optional
        Service host, e.g. "https://earthquake.usgs.gov".
    timeout : float, optional
        HTTP timeout in seconds. Bounds the worst-case latency of one refresh.
    start : str | date | datetime, optional
        First day of the query window (also used for ``updatedafter``).
    end : str | date | datetime, optional
        Last bound of the window. When None the service default ("now") applies.
    client : httpx.Client, optional
        An existing httpx client. If not provided, one is created lazily and
        closed by :meth:`close`.

    Examples
    --------
    >>> from usgs_quake.api import UsgsAPI
    >>> with UsgsAPI() as api:
    ...     batch = api.fetch()
    >>> len(batch)
    1337  # for example
    """

    def __init__(
        self,
        base_url: str = BASE_URL,
        timeout: float = DEFAULT_TIMEOUT,
        *,
        start: DateLike = BASELINE_DATE,
        end: Optional[DateLike] = None,
        client: Optional[httpx.Client] = None,
    ) -> None:
        self._logger = get_logger("api")
        self.base_url = base_url.rstrip("/")
        self.timeout = float(timeout)
        self.start = start
        self.end = end
        self._client = client
        self._owns_client = client is None

    # ---------- Lifecycle ----------
    def _ensure_client(self) -> httpx.Client:
        if self._client is None:
            self._client = httpx.Client(
                timeout=self.timeout,
                follow_redirects=True,
                headers={
                    "Accept": "application/geo+json, application/json, */*",
                    "User-Agent": "usgs-quake/0.1",
                },
            )
            self._owns_client = True
        return self._client

    def close(self) -> None:
        """Close the underlying HTTP client if we created it."""
        if self._client is not None and self._owns_client:
            self._client.close()
            self._client = None

    def __enter__(self) -> "UsgsAPI":
        self._ensure_client()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    # ---------- URL / param helpers ----------
    @property
    def url(self) -> str:
        return f"{self.base_url}{QUERY_PATH}"

    @staticmethod
    def _to_date_string(dt: DateLike) -> str:
        """
        Render a date-like value the way the query service expects it.

        Strings pass through untouched, dates become "YYYY-MM-DD" and datetimes
        "YYYY-MM-DDTHH:MM:SS" (converted to UTC first when tz-aware).
        """
        if isinstance(dt, str):
            return dt
        if isinstance(dt, _dt.datetime):
            if dt.tzinfo is not None:
                dt = dt.astimezone(_dt.timezone.utc)
            return dt.strftime("%Y-%m-%dT%H:%M:%S")
        if isinstance(dt, _dt.date):
            return dt.isoformat()
        raise TypeError(f"Unsupported dt type: {type(dt)!r}")

    def query_params(self) -> Dict[str, Any]:
        start = self._to_date_string(self.start)
        params: Dict[str, Any] = {
            "format": RESPONSE_FORMAT,
            "starttime": start,
            "updatedafter": f"{start[:10]}T{BASELINE_UPDATED_TIME}",
        }
        if self.end is not None:
            params["endtime"] = self._to_date_string(self.end)
        return params

    # ---------- HTTP helper ----------
    def _get_json(self, url: str, params: Dict[str, Any]) -> Any:
        client = self._ensure_client()
        self._logger.debug("GET %s params=%s", url, params)
        try:
            resp = client.get(url, params=params)
        except httpx.RequestError as e:
            raise NetworkError(f"USGS request error: {e!r}") from e

        if resp.status_code == 204:
            return {"type": "FeatureCollection", "features": []}
        if not resp.is_success:
            # The service answers bad parameters with a plain-text explanation
            raise NetworkError(
                f"USGS HTTP {resp.status_code}: {resp.text[:300]}"
            )

        try:
            return resp.json()
        except ValueError as e:
            raise FormatError(f"USGS returned non-JSON payload: {resp.text[:300]}") from e

    def fetch_raw(self) -> Any:
        """Return the decoded JSON body of one query, unvalidated."""
        return self._get_json(self.url, self.query_params())

    def fetch(self) -> RawEventBatch:
        """
        Fetch the full event batch for the configured window.

        Returns
        -------
        RawEventBatch

        Raises
        ------
        NetworkError
            On transport failure (DNS, refused connection, timeout) or a non-2xx status.
        FormatError
            When the body is not a valid FeatureCollection envelope.
        """
        batch = RawEventBatch.from_geojson(self.fetch_raw())
        self._logger.info(
            "Fetched %d events since %s", len(batch), self._to_date_string(self.start)
        )
        return batch
