"""Per-subsystem log facade.

Usage:
    log = LogWriter("worker", logger)
    log.write(LogLevel.INFORMATION, "processed {} items in {:.1f}s", count, elapsed)
    log.info("queue drained")

    # One record built from several pieces, flushed when the block ends
    with log.stream(LogLevel.DEBUG) as s:
        s.write("batch ", batch_id, ": ")
        for item in items:
            s.write(item.name, " ")
"""

from __future__ import annotations

from typing import Any

from .logger import MAX_LOG_MESSAGE_LEN, MAX_TAG_LEN, Logger, LogLevel


def _safe_repr(value: Any) -> str:
    try:
        return repr(value)
    except Exception as e:
        return f"<{type(value).__name__} repr failed: {type(e).__name__}>"


def _safe_str(value: Any) -> str:
    try:
        return str(value)
    except Exception:
        return _safe_repr(value)


def render(fmt: str, args: tuple, kwargs: dict) -> str:
    """Render ``fmt`` with brace-style arguments, bounded and never raising.

    A format/argument mismatch, or an argument that fails to format, keeps
    the raw format text followed by the argument reprs. The result is cut to
    ``MAX_LOG_MESSAGE_LEN - 1`` characters.
    """
    text = _safe_str(fmt)
    if args or kwargs:
        try:
            text = text.format(*args, **kwargs)
        except Exception:
            extras = [_safe_repr(a) for a in args]
            extras.extend(f"{k}={_safe_repr(v)}" for k, v in kwargs.items())
            text = f"{text} {' '.join(extras)}"
    return text[:MAX_LOG_MESSAGE_LEN - 1]


class LogWriter:
    """Binds a short tag to a Logger.

    Args:
        tag: Source tag, cut to 12 characters.
        logger: Target logger.
    """

    def __init__(self, tag: str, logger: Logger) -> None:
        self.tag = tag[:MAX_TAG_LEN]
        self.logger = logger

    def write(self, level: int, fmt: str, *args: Any, **kwargs: Any) -> None:
        if level > self.logger.get_level():
            return
        self.logger.write(level, self.tag, render(fmt, args, kwargs))

    def error(self, fmt: str, *args: Any, **kwargs: Any) -> None:
        self.write(LogLevel.ERROR, fmt, *args, **kwargs)

    def warning(self, fmt: str, *args: Any, **kwargs: Any) -> None:
        self.write(LogLevel.WARNING, fmt, *args, **kwargs)

    def info(self, fmt: str, *args: Any, **kwargs: Any) -> None:
        self.write(LogLevel.INFORMATION, fmt, *args, **kwargs)

    def debug(self, fmt: str, *args: Any, **kwargs: Any) -> None:
        self.write(LogLevel.DEBUG, fmt, *args, **kwargs)

    def verbose(self, fmt: str, *args: Any, **kwargs: Any) -> None:
        self.write(LogLevel.VERBOSE, fmt, *args, **kwargs)

    def stream(self, level: int) -> "LogStream":
        """Start a record assembled from several values."""
        return LogStream(self, level)


class LogStream:
    """Accumulates text and emits it as exactly one record.

    Values are converted with ``str()`` so there is no format string to get
    wrong. The record is emitted when the ``with`` block exits, whether it
    exits normally or by an exception, or on an explicit ``close()``.
    """

    def __init__(self, writer: LogWriter, level: int) -> None:
        self._writer = writer
        self._level = level
        self._parts: list[str] = []
        self._closed = False

    def write(self, *values: Any) -> "LogStream":
        if not self._closed:
            self._parts.extend(_safe_str(v) for v in values)
        return self

    def getvalue(self) -> str:
        return ''.join(self._parts)

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        # Rendered text goes in as the format; braces in it are not expanded.
        text = self.getvalue()[:MAX_LOG_MESSAGE_LEN - 1]
        if self._level <= self._writer.logger.get_level():
            self._writer.logger.write(self._level, self._writer.tag, text)

    def __enter__(self) -> "LogStream":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
