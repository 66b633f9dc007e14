"""Leveled, tagged, thread-safe logging to a rolling UTF-16 file.

Two levels of objects: one Logger per process does the formatting and owns
the level threshold; many LogWriters, each with its own tag, are what code
writes through. Messages from one source can then be filtered by tag.
"""

from .logger import (
    MAX_LOG_MESSAGE_LEN,
    MAX_TAG_LEN,
    Logger,
    LogLevel,
    default_level,
    format_timestamp,
)
from .sink import (
    BEGIN_SESSION,
    END_SESSION,
    ConsoleLogSink,
    FileLogSink,
    LogSink,
    NullLogSink,
    TeeLogSink,
    read_log_lines,
    rolled_name,
    rollover,
)
from .writer import LogStream, LogWriter

__all__ = [
    'BEGIN_SESSION',
    'END_SESSION',
    'MAX_LOG_MESSAGE_LEN',
    'MAX_TAG_LEN',
    'ConsoleLogSink',
    'FileLogSink',
    'LogLevel',
    'LogSink',
    'LogStream',
    'LogWriter',
    'Logger',
    'NullLogSink',
    'TeeLogSink',
    'default_level',
    'format_timestamp',
    'read_log_lines',
    'rolled_name',
    'rollover',
]
