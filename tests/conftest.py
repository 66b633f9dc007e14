"""Shared fixtures: recording sinks, a fake SCM dispatcher, isolated settings."""

import threading
import time

import pytest

from console_service import config
from console_service.daemon import controller as controller_module
from console_service.log import Logger, LogLevel, LogSink


class RecordingSink(LogSink):
    """Keeps every line it receives."""

    def __init__(self):
        self.lines: list[str] = []
        self.closed = False

    @property
    def calls(self) -> int:
        return len(self.lines)

    def write_line(self, text: str) -> None:
        self.lines.append(text)

    def close(self) -> None:
        self.closed = True


class FakeDispatcher:
    """Stands in for the SCM: runs service_main on its own thread."""

    def __init__(self, run_error: int = 0, register_ok: bool = True):
        self.run_error = run_error
        self.register_ok = register_ok
        self.handler = None
        self.statuses = []
        self.run_calls = 0

    def run(self, name, service_main):
        self.run_calls += 1
        if self.run_error:
            return self.run_error
        scm_thread = threading.Thread(target=service_main, args=([name],))
        scm_thread.start()
        scm_thread.join()
        return 0

    def register_control_handler(self, name, handler):
        if not self.register_ok:
            return None
        self.handler = handler
        return "status-handle"

    def report_status(self, handle, status):
        assert handle == "status-handle"
        self.statuses.append(status)

    @property
    def states(self):
        return [s.current_state for s in self.statuses]


def wait_until(predicate, timeout: float = 5.0, interval: float = 0.01) -> bool:
    """Poll ``predicate`` until it is true or ``timeout`` passes."""
    deadline = time.monotonic() + timeout
    while time.monotonic() < deadline:
        if predicate():
            return True
        time.sleep(interval)
    return predicate()


def start_in_thread(service, argv):
    """Call ``service.start(argv)`` on a background thread.

    Returns:
        (thread, result) where result[0] holds the exit code once joined.
    """
    result = []
    thread = threading.Thread(target=lambda: result.append(service.start(argv)), daemon=True)
    thread.start()
    return thread, result


@pytest.fixture(autouse=True)
def isolated_settings(monkeypatch, tmp_path):
    """Point the log directory at tmp_path and start from fresh settings."""
    monkeypatch.setenv("CONSOLE_SERVICE_LOG__DIRECTORY", str(tmp_path / "logs"))
    monkeypatch.setenv("CONSOLE_SERVICE_LOG__ECHO_CONSOLE", "false")
    monkeypatch.delenv("CONSOLE_SERVICE_LOG__LEVEL", raising=False)
    monkeypatch.delenv("CONSOLE_SERVICE_LOG__ROLLOVER", raising=False)
    config._settings_cache = None
    yield
    config._settings_cache = None


@pytest.fixture(autouse=True)
def release_controller_slot():
    """Free the one-controller-per-process slot after every test."""
    yield
    controller_module._active_controller = None


@pytest.fixture
def sink():
    return RecordingSink()


@pytest.fixture
def logger(sink):
    return Logger(sink, level=LogLevel.VERBOSE)


@pytest.fixture
def dispatcher():
    return FakeDispatcher()
