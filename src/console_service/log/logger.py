"""Thread-safe log record formatting for console-service.

The Logger owns the level threshold and the time-bucket header state and
serialises every write from any number of threads into a single LogSink.
Each record becomes one line::

    <tag, left-justified to 12> <native thread id, width 4> <message>

and a standalone header line carrying the local date, time and UTC offset
precedes the first record of every distinct wall-clock second::

    2026/10/18 17:20:05 UTC+120mins
"""

from __future__ import annotations

import threading
import time
from datetime import datetime, timedelta
from enum import IntEnum
from typing import TYPE_CHECKING

from loguru import logger as _loguru

if TYPE_CHECKING:
    from .sink import LogSink

MAX_TAG_LEN = 12
MAX_LOG_MESSAGE_LEN = 4096


class LogLevel(IntEnum):
    """Predefined logging levels. Lower value means higher severity."""

    ERROR = 10
    WARNING = 100
    INFORMATION = 1000
    DEBUG = 10000
    VERBOSE = 100000


def default_level() -> int:
    """Threshold for a new Logger: verbose in development, terse under ``python -O``."""
    if __debug__:
        return LogLevel.DEBUG
    return LogLevel.WARNING


def format_timestamp(when: datetime | None = None) -> str:
    """Format a local timestamp as ``YYYY/MM/DD HH:MM:SS UTC±Nmins``.

    Args:
        when: Moment to format (default: now). Naive values are taken as local time.

    Returns:
        Timestamp string with an explicit offset sign.
    """
    if when is None:
        when = datetime.now().astimezone()
    elif when.tzinfo is None:
        when = when.astimezone()

    offset = when.utcoffset() or timedelta(0)
    minutes = int(offset.total_seconds()) // 60
    sign = '+' if minutes >= 0 else '-'
    return f"{when:%Y/%m/%d %H:%M:%S} UTC{sign}{abs(minutes)}mins"


class Logger:
    """Serialises formatted records from concurrent callers into one sink.

    Sink failures never reach the caller of ``write``; the most recent one
    is kept in ``last_error``.
    """

    def __init__(self, sink: LogSink, level: int | None = None) -> None:
        self._sink = sink
        self._level = default_level() if level is None else level
        self._lock = threading.Lock()
        self._last_bucket: int | None = None
        self.last_error: Exception | None = None

    @property
    def sink(self) -> LogSink:
        return self._sink

    def set_level(self, level: int) -> None:
        self._level = level

    def get_level(self) -> int:
        return self._level

    def write(self, level: int, tag: str, message: str) -> None:
        """Format and emit one record if ``level`` passes the threshold.

        Args:
            level: Record severity; dropped when greater than the threshold.
            tag: Short source tag.
            message: Record text.
        """
        # Unlocked read: a concurrent set_level() may take effect one record late.
        if level > self._level:
            return

        with self._lock:
            now = time.time()
            bucket = int(now)
            try:
                if bucket != self._last_bucket:
                    self._sink.write_line(format_timestamp(datetime.fromtimestamp(now).astimezone()))
                    self._last_bucket = bucket
                self._sink.write_line(
                    f"{tag:<{MAX_TAG_LEN}} {threading.get_native_id():>4} {message}"
                )
            except Exception as e:
                self._record_error(e)

    def _record_error(self, error: Exception) -> None:
        if self.last_error is None:
            _loguru.debug(f"Log sink write failed, further failures are not reported: {error}")
        self.last_error = error

    def close(self) -> None:
        """Close the underlying sink."""
        with self._lock:
            try:
                self._sink.close()
            except Exception as e:
                self._record_error(e)

    def __enter__(self) -> "Logger":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
