"""
Logging for depscout.

Every module logs under the ``depscout`` namespace through :func:`get_logger`.
The CLI calls :func:`setup_logging` once per run with the level chosen by
``-v``; when depscout is imported as a library its loggers carry a
``NullHandler`` and stay silent.

Registry traffic is already reported by :mod:`depscout.core.registry`, so the
per-request INFO lines of httpx and its HTTP/2 stack are held back unless
logging at DEBUG.
"""

from __future__ import annotations

import os
import sys
import logging
import threading
from typing import IO, Dict, Optional, Tuple

from depscout.constants import (
    LOG_DATE_FORMAT,
    LOG_DEFAULT_FORMAT,
    LOG_VERBOSE_FORMAT,
)

ROOT_LOGGER_NAME = "depscout"

#: Third-party loggers that echo every registry request.
HTTP_LOGGERS: Tuple[str, ...] = ("httpx", "httpcore", "hpack")

_LEVEL_COLORS: Dict[str, str] = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"

_lock = threading.Lock()


def stream_supports_color(stream: Optional[IO[str]]) -> bool:
    """Return True when ANSI colors may be written to ``stream``.

    ``NO_COLOR`` and ``CI`` take precedence over terminal detection.
    """
    if os.environ.get("NO_COLOR") or os.environ.get("CI"):
        return False
    isatty = getattr(stream, "isatty", None)
    if isatty is None:
        return False
    try:
        return bool(isatty())
    except (ValueError, OSError):
        return False


class ColoredFormatter(logging.Formatter):
    """Formatter that colors level names on terminal streams.

    Args:
        fmt: Log format string.
        datefmt: Format for ``%(asctime)s``.
        stream: Stream the owning handler writes to. Checked at format time;
            ``None`` means the current ``sys.stderr``.
        use_color: ``False`` disables colors regardless of the stream.
    """

    def __init__(
        self,
        fmt: str,
        *,
        datefmt: Optional[str] = None,
        stream: Optional[IO[str]] = None,
        use_color: bool = True,
    ) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        self.stream = stream
        self.use_color = use_color

    def format(self, record: logging.LogRecord) -> str:
        color = _LEVEL_COLORS.get(record.levelname)
        if color and self.use_color and stream_supports_color(self.stream or sys.stderr):
            # Other handlers must keep seeing the plain level name
            record = logging.makeLogRecord(record.__dict__)
            record.levelname = f"{color}{record.levelname}{_RESET}"
        return super().format(record)


def setup_logging(
    *,
    level: int = logging.INFO,
    verbose: bool = False,
    stream: Optional[IO[str]] = None,
) -> None:
    """Install the depscout handler, replacing any previous one.

    Args:
        level: Threshold for depscout's own loggers.
        verbose: Use the timestamped format that includes logger names.
        stream: Destination stream; defaults to ``sys.stderr``.
    """
    fmt = LOG_VERBOSE_FORMAT if verbose else LOG_DEFAULT_FORMAT
    handler = logging.StreamHandler(stream or sys.stderr)
    handler.setLevel(level)
    handler.setFormatter(ColoredFormatter(fmt, datefmt=LOG_DATE_FORMAT, stream=stream))

    with _lock:
        root_logger = logging.getLogger(ROOT_LOGGER_NAME)
        root_logger.handlers.clear()
        root_logger.addHandler(handler)
        root_logger.setLevel(level)
        root_logger.propagate = False

        http_level = logging.NOTSET if level <= logging.DEBUG else logging.WARNING
        for name in HTTP_LOGGERS:
            logging.getLogger(name).setLevel(http_level)


def get_logger(name: Optional[str] = None) -> logging.Logger:
    """Return the ``depscout.<name>`` logger.

    ``name`` may already carry the ``depscout.`` prefix; ``None`` returns the
    package root logger.
    """
    if not name:
        name = ROOT_LOGGER_NAME
    elif name != ROOT_LOGGER_NAME and not name.startswith(f"{ROOT_LOGGER_NAME}."):
        name = f"{ROOT_LOGGER_NAME}.{name}"

    logger = logging.getLogger(name)

    if not logger.handlers and (logger.parent is None or not logger.parent.handlers):
        logger.addHandler(logging.NullHandler())

    return logger
