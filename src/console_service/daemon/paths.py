"""Path helpers for console-service log files.

All functions return Path objects. Directories are NOT created here;
FileLogSink creates the log directory when it opens the file.
"""

import tempfile
from pathlib import Path

from ..config import APP_NAME, get_settings

__all__ = [
    'APP_NAME',
    'get_temp_dir',
    'get_log_dir',
    'get_log_file_path',
]


def get_temp_dir() -> Path:
    """Get the system temp directory.

    Returns:
        Path to the temp directory
        - Windows: %TEMP% (C:\\Windows\\Temp for LocalSystem services)
        - macOS/Linux: $TMPDIR or /tmp
    """
    return Path(tempfile.gettempdir())


def get_log_dir() -> Path:
    """Get the directory service log files go to.

    Returns:
        CONSOLE_SERVICE_LOG__DIRECTORY if set, otherwise the system temp directory.
    """
    directory = get_settings().log.directory
    if directory is not None:
        return Path(directory)
    return get_temp_dir()


def get_log_file_path(service_name: str) -> Path:
    """Get the default log file path for a service.

    Args:
        service_name: Service identity

    Returns:
        ``<log dir>/<service_name>.log``
    """
    return get_log_dir() / f'{service_name}.log'
