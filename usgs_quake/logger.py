"""
Logging for usgs_quake.

Every module logs through a child of the "usgs_quake" logger
("usgs_quake.api", "usgs_quake.refresh", ...). Only the parent carries
handlers: a NullHandler until the host application, or the CLI via
``-v``, calls :func:`configure_logging`.
"""

from __future__ import annotations
import logging
from typing import IO, Optional

LIB_LOGGER_NAME = "usgs_quake"
DEFAULT_FORMAT = "[%(asctime)s] %(levelname)s %(name)s - %(message)s"

# Marks the handler configure_logging() installed, so a second call replaces it
# without touching handlers the host attached itself.
_OWN_HANDLER_ATTR = "_usgs_quake_handler"


def _library_logger() -> logging.Logger:
    logger = logging.getLogger(LIB_LOGGER_NAME)
    if not logger.handlers:
        logger.addHandler(logging.NullHandler())
    return logger


def get_logger(component: Optional[str] = None) -> logging.Logger:
    """Logger for one part of the library, e.g. ``get_logger("api")``."""
    parent = _library_logger()
    return parent.getChild(component) if component else parent


def level_for_verbosity(count: int) -> int:
    """Map repeated ``-v`` flags to a level: none -> WARNING, -v -> INFO, -vv -> DEBUG."""
    if count <= 0:
        return logging.WARNING
    return logging.INFO if count == 1 else logging.DEBUG


def configure_logging(
    level: int = logging.INFO,
    fmt: Optional[str] = None,
    stream: Optional[IO[str]] = None,
) -> logging.Handler:
    """
    Send library records at ``level`` and above to ``stream`` (stderr by default).

    Returns the installed handler. Calling again swaps the previous one out.

    Examples
    --------
    >>> from usgs_quake.logger import configure_logging
    >>> configure_logging(logging.DEBUG)
    >>> # refresh ticks and HTTP requests now show up on stderr
    """
    logger = _library_logger()
    for old in [h for h in logger.handlers if getattr(h, _OWN_HANDLER_ATTR, False)]:
        logger.removeHandler(old)

    handler = logging.StreamHandler(stream)
    handler.setLevel(level)
    handler.setFormatter(logging.Formatter(fmt or DEFAULT_FORMAT, datefmt="%Y-%m-%d %H:%M:%S"))
    setattr(handler, _OWN_HANDLER_ATTR, True)

    logger.setLevel(level)
    logger.addHandler(handler)
    return handler
