"""Log sinks: destinations that append formatted lines.

``FileLogSink`` is the durable one. It writes UTF-16LE text with CRLF line
endings, marks each process session with BEGIN/END lines and rolls an
existing log over into a numbered chain before opening::

    service.log      <- active file
    service_1.log    <- previous session
    service_2.log    <- the one before that
"""

from __future__ import annotations

import codecs
import weakref
from abc import ABC, abstractmethod
from pathlib import Path
from typing import BinaryIO

from loguru import logger
from rich.console import Console

from .logger import format_timestamp

ENCODING = 'utf-16-le'
LINE_END = '\r\n'
BEGIN_SESSION = '######## BEGIN SESSION ########'
END_SESSION = '######## END SESSION ########'


def _encode(text: str) -> bytes:
    return (text + LINE_END).encode(ENCODING)


def rolled_name(path: Path | str, index: int) -> Path:
    """Return the chain member ``<stem>_<index><suffix>`` next to ``path``."""
    path = Path(path)
    return path.with_name(f"{path.stem}_{index}{path.suffix}")


def rollover(path: Path | str) -> Path:
    """Shift the rollover chain of ``path`` up by one and move ``path`` to index 1.

    Members are renamed from the highest contiguous index downward so no
    rename ever targets an existing file. A gap in the chain ends it.

    Args:
        path: Active log file.

    Returns:
        Path of chain member 1.
    """
    path = Path(path)

    last = 0
    while rolled_name(path, last + 1).exists():
        last += 1

    for index in range(last, 0, -1):
        rolled_name(path, index).rename(rolled_name(path, index + 1))

    first = rolled_name(path, 1)
    if path.exists():
        path.rename(first)
    return first


def read_log_lines(path: Path | str) -> list[str]:
    """Decode a log file written by FileLogSink into its lines."""
    data = Path(path).read_bytes()
    if data.startswith(codecs.BOM_UTF16_LE):
        data = data[len(codecs.BOM_UTF16_LE):]
    text = data.decode(ENCODING, errors='replace')
    lines = text.split(LINE_END)
    if lines and lines[-1] == '':
        lines.pop()
    return lines


class LogSink(ABC):
    """Abstract destination for formatted log lines."""

    @abstractmethod
    def write_line(self, text: str) -> None:
        """Append one line (without terminator)."""

    def close(self) -> None:
        """Release the destination. Later writes may be dropped."""

    def __enter__(self) -> "LogSink":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()


class NullLogSink(LogSink):
    """Sends log lines to nowhere."""

    def write_line(self, text: str) -> None:
        pass


class ConsoleLogSink(LogSink):
    """Mirrors log lines on stderr, used while running in debug mode."""

    def __init__(self, console: Console | None = None) -> None:
        self.console = console or Console(
            stderr=True, markup=False, highlight=False, emoji=False, soft_wrap=True
        )

    def write_line(self, text: str) -> None:
        self.console.print(text, markup=False, highlight=False, emoji=False, soft_wrap=True)


class TeeLogSink(LogSink):
    """Fans each line out to several sinks.

    Every sink gets the line even if an earlier one fails; the first
    failure is re-raised afterwards.
    """

    def __init__(self, *sinks: LogSink) -> None:
        self.sinks = list(sinks)

    def add(self, sink: LogSink) -> None:
        self.sinks.append(sink)

    def write_line(self, text: str) -> None:
        error: Exception | None = None
        for sink in self.sinks:
            try:
                sink.write_line(text)
            except Exception as e:
                if error is None:
                    error = e
        if error is not None:
            raise error

    def close(self) -> None:
        for sink in self.sinks:
            sink.close()


def _end_session(fp: BinaryIO) -> None:
    """Write the END marker and close; runs once, from close() or at teardown."""
    if fp.closed:
        return
    try:
        fp.write(_encode(f"{format_timestamp()} {END_SESSION}"))
        fp.flush()
    finally:
        fp.close()


class FileLogSink(LogSink):
    """Appends UTF-16LE lines to a file and flushes after every line.

    Args:
        path: Log file path. Parent directories are created.
        rollover: Roll an existing file over into the numbered chain first.
    """

    rollover = staticmethod(rollover)

    def __init__(self, path: Path | str, rollover: bool = True) -> None:
        self.path = Path(path)
        self._fp: BinaryIO | None = None
        self._finalizer: weakref.finalize | None = None

        if rollover and self.path.exists():
            try:
                type(self).rollover(self.path)
            except OSError as e:
                # Typically a viewer holding a chain member open; append instead
                logger.warning(f"Could not roll over {self.path}, appending to it: {e}")

        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fp = open(self.path, 'ab')
        except OSError as e:
            logger.warning(f"Could not open log file {self.path}, log output is dropped: {e}")
            return

        try:
            if fp.tell() == 0:
                fp.write(codecs.BOM_UTF16_LE)
            fp.write(_encode(f"{format_timestamp()} {BEGIN_SESSION}"))
            fp.flush()
        except OSError as e:
            fp.close()
            logger.warning(f"Could not write to log file {self.path}, log output is dropped: {e}")
            return

        self._fp = fp
        self._finalizer = weakref.finalize(self, _end_session, fp)

    @property
    def is_open(self) -> bool:
        return self._fp is not None and not self._fp.closed

    def write_line(self, text: str) -> None:
        if not self.is_open:
            return
        self._fp.write(_encode(text))
        self._fp.flush()

    def close(self) -> None:
        """Write the END marker and close the file. Safe to call twice."""
        if self._finalizer is not None:
            self._finalizer()
