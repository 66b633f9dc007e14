"""Tests for daemon.console - console interrupt signals as control events."""

import signal
import threading

import pytest

from console_service.daemon.codes import ConsoleEvent
from console_service.daemon.console import ConsoleCtrlHandler

from conftest import wait_until


@pytest.fixture
def events():
    return []


@pytest.fixture
def handler(events):
    def callback(event):
        events.append(event)
        return event == ConsoleEvent.CTRL_C

    h = ConsoleCtrlHandler(callback)
    yield h
    h.unregister()


class TestRegistration:
    """Test installing and restoring signal handlers."""

    def test_register_on_main_thread(self, handler):
        previous = signal.getsignal(signal.SIGINT)
        handler.register()
        assert handler.registered
        assert signal.getsignal(signal.SIGINT) == handler._handle_signal

        handler.unregister()
        assert not handler.registered
        assert signal.getsignal(signal.SIGINT) == previous

    def test_register_twice_keeps_original_handlers(self, handler):
        previous = signal.getsignal(signal.SIGTERM)
        handler.register()
        handler.register()
        handler.unregister()
        assert signal.getsignal(signal.SIGTERM) == previous

    def test_register_off_main_thread_is_a_noop(self, handler):
        previous = signal.getsignal(signal.SIGINT)
        t = threading.Thread(target=handler.register)
        t.start()
        t.join()

        assert not handler.registered
        assert signal.getsignal(signal.SIGINT) == previous

    def test_context_manager(self, handler):
        with handler as h:
            assert h.registered
        assert not handler.registered

    def test_sigint_becomes_ctrl_c(self, handler, events):
        with handler:
            signal.raise_signal(signal.SIGINT)
        assert wait_until(lambda: events == [ConsoleEvent.CTRL_C])

    def test_sigterm_becomes_ctrl_shutdown(self, handler, events):
        with handler:
            signal.raise_signal(signal.SIGTERM)
        assert wait_until(lambda: events == [ConsoleEvent.CTRL_SHUTDOWN])

    def test_callback_runs_off_the_signalled_thread(self):
        """A callback that takes a lock the main thread holds must not deadlock."""
        lock = threading.Lock()
        callback_threads = []

        def callback(event):
            with lock:
                callback_threads.append(threading.current_thread())
            return True

        with ConsoleCtrlHandler(callback):
            with lock:
                signal.raise_signal(signal.SIGINT)
                # The handler has returned while the lock is still held
                assert callback_threads == []

        assert wait_until(lambda: len(callback_threads) == 1)
        assert callback_threads[0] is not threading.main_thread()


class TestHandle:
    def test_returns_callback_answer(self, handler, events):
        assert handler.handle(ConsoleEvent.CTRL_C) is True
        assert handler.handle(ConsoleEvent.CTRL_CLOSE) is False
        assert events == [ConsoleEvent.CTRL_C, ConsoleEvent.CTRL_CLOSE]

    def test_accepts_raw_event_numbers(self, handler, events):
        handler.handle(0)
        assert events == [ConsoleEvent.CTRL_C]

    def test_unknown_event_not_delivered(self, handler, events):
        assert handler.handle(99) is False
        assert events == []
