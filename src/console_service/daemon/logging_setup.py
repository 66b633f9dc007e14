"""Loguru setup for console-service framework diagnostics.

The service's own log goes through LogWriter -> Logger -> FileLogSink.
Loguru carries what cannot go there: the log file failing to open, the
SCM being unreachable, a control handler that could not be registered.

Usage:
    from console_service.daemon.logging_setup import setup_logging

    # At startup
    setup_logging(service_mode=not debug)
"""

import sys
from pathlib import Path

from loguru import logger

# Default console format with colors
CONSOLE_FORMAT = (
    "<green>{time:YYYY-MM-DD HH:mm:ss}</green> | "
    "<level>{level: <8}</level> | "
    "<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | "
    "<level>{message}</level>"
)

# Simple format without colors (for file output)
FILE_FORMAT = (
    "{time:YYYY-MM-DD HH:mm:ss} | "
    "{level: <8} | "
    "{name}:{function}:{line} | "
    "{message}"
)


def setup_logging(
    log_level: str = "INFO",
    console: bool = True,
    log_dir: Path | None = None,
    service_mode: bool = False,
) -> None:
    """Configure loguru handlers.

    Args:
        log_level: Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL).
        console: Enable console (stderr) output.
        log_dir: If given, also write ``framework.log`` there with rotation.
        service_mode: When True, skip the console handler if stderr is None or
            not a tty (running under the SCM).

    Example:
        >>> setup_logging()  # Console only
        >>> setup_logging(service_mode=True, log_dir=Path("C:/Windows/Temp"))
    """
    logger.remove()

    if console and not (service_mode and (sys.stderr is None or not sys.stderr.isatty())):
        logger.add(
            sys.stderr,
            format=CONSOLE_FORMAT,
            level=log_level,
            colorize=True,
            backtrace=True,
            diagnose=True,
            enqueue=True,
        )

    if log_dir is not None:
        log_dir = Path(log_dir)
        log_dir.mkdir(parents=True, exist_ok=True)
        logger.add(
            str(log_dir / "framework.log"),
            level=log_level,
            format=FILE_FORMAT,
            rotation="10 MB",
            retention="7 days",
            enqueue=True,
            backtrace=True,
            diagnose=False,
        )
