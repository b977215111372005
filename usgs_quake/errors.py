"""Error taxonomy shared by the fetcher, filters, exporter and controller."""

from __future__ import annotations


class QuakeError(Exception):
    """Base class for every error raised by this library."""

    kind = "error"


class NetworkError(QuakeError):
    """The USGS service could not be reached or answered with a non-2xx status."""

    kind = "network"


class FormatError(QuakeError):
    """The response body is not a valid GeoJSON FeatureCollection."""

    kind = "format"


class ValidationError(QuakeError, ValueError):
    """A user-entered filter value was rejected."""

    kind = "validation"


class ExportError(QuakeError, OSError):
    """Writing the CSV export failed."""

    kind = "export"
