"""
Diagnostic logging for depfloor.

Every module logs through ``get_logger("<module>")``, which places it under
the ``depfloor`` logger.  Nothing is emitted until :func:`setup_logging`
installs a handler, so importing depfloor as a library stays silent.

The CLI maps ``-v`` / ``-vv`` onto levels with :func:`verbosity_level`.
Registry fetches, closure levels and probe outcomes log at DEBUG; one line
per resolved dependent logs at INFO.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Optional

from depfloor.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "depfloor"

_logging_configured: bool = False
_lock = threading.Lock()


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name when writing to a terminal."""

    COLORS = {
        "DEBUG": "\033[36m",
        "INFO": "\033[32m",
        "WARNING": "\033[33m",
        "ERROR": "\033[31m",
        "CRITICAL": "\033[35m",
    }
    RESET = "\033[0m"

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = self.COLORS.get(record.levelname)
        if color and self.use_color and self._should_use_color():
            # Copy so other handlers still see the plain level name
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(record)

    @staticmethod
    def _should_use_color() -> bool:
        if os.environ.get("NO_COLOR") or os.environ.get("CI"):
            return False
        try:
            return sys.stderr.isatty()
        except (AttributeError, OSError):
            return False


def verbosity_level(verbose: int) -> int:
    """Map a ``-v`` count to a logging level: WARNING, INFO, then DEBUG."""
    if verbose <= 0:
        return logging.WARNING
    if verbose == 1:
        return logging.INFO
    return logging.DEBUG


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Send depfloor logs at *level* and above to *stream* (stderr by default).

    Calling it again replaces the previous handler. ``verbose`` switches to
    a format with timestamps and logger names.
    """
    global _logging_configured

    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(
        ColoredFormatter(
            LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT,
            datefmt=LOG_DATE_FORMAT,
            use_color=not os.environ.get("NO_COLOR"),
        )
    )

    with _lock:
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.handlers.clear()
        root.addHandler(handler)
        root.setLevel(level)
        root.propagate = False
        _logging_configured = True


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return ``depfloor.<name>`` (or the ``depfloor`` logger itself).

    Names already under the namespace are used as-is.
    """
    if not name or name == ROOT_LOGGER_NAME:
        qualified = ROOT_LOGGER_NAME
    elif name.startswith(ROOT_LOGGER_NAME + "."):
        qualified = name
    else:
        qualified = f"{ROOT_LOGGER_NAME}.{name}"

    # Library-safe: nothing reaches the last-resort stderr handler until
    # setup_logging installs a real one
    root = logging.getLogger(ROOT_LOGGER_NAME)
    with _lock:
        if not root.handlers:
            root.addHandler(logging.NullHandler())

    return logging.getLogger(qualified)


def is_logging_configured() -> bool:
    return _logging_configured


def disable_logging() -> None:
    """Silence depfloor logging until :func:`setup_logging` is called again."""
    global _logging_configured

    with _lock:
        root = logging.getLogger(ROOT_LOGGER_NAME)
        root.handlers.clear()
        root.addHandler(logging.NullHandler())
        root.setLevel(logging.NOTSET)
        _logging_configured = False
