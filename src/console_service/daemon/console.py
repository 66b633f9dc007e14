"""Console control handling for debug mode.

When a service runs as a plain console program there is no SCM to send it
a STOP control. This module maps the console's own interrupt signals onto
console control events so the controller can treat them as STOP:

    SIGINT   -> CTRL_C
    SIGBREAK -> CTRL_BREAK     (Windows only)
    SIGTERM  -> CTRL_SHUTDOWN

As with a Windows console control handler, the callback is invoked on a
separate thread, never inside the signal handler itself.

Usage:
    handler = ConsoleCtrlHandler(controller.console_ctrl_handler)
    handler.register()
    try:
        ...
    finally:
        handler.unregister()
"""

import signal
import threading
from typing import Callable, Optional

from loguru import logger

from .codes import ConsoleEvent

_SIGNAL_EVENTS: dict[int, ConsoleEvent] = {
    signal.SIGINT: ConsoleEvent.CTRL_C,
    signal.SIGTERM: ConsoleEvent.CTRL_SHUTDOWN,
}
if hasattr(signal, 'SIGBREAK'):
    _SIGNAL_EVENTS[signal.SIGBREAK] = ConsoleEvent.CTRL_BREAK


class ConsoleCtrlHandler:
    """Route console interrupt signals to a control-event callback.

    Args:
        callback: Receives a ConsoleEvent, returns True if it handled it.
    """

    def __init__(self, callback: Callable[[ConsoleEvent], bool]):
        self._callback = callback
        self._previous: dict[int, object] = {}
        self._registered = False

    @property
    def registered(self) -> bool:
        return self._registered

    def register(self) -> None:
        """Install signal handlers.

        signal.signal() raises ValueError outside the main thread; the
        handler then stays unregistered and events can only be delivered
        through ``handle()``.
        """
        if self._registered:
            return

        try:
            for signum in _SIGNAL_EVENTS:
                self._previous[signum] = signal.signal(signum, self._handle_signal)
            self._registered = True
        except ValueError:
            # "signal only works in main thread"
            self._restore()
            logger.debug("Console control handler not installed: not on the main thread")

    def unregister(self) -> None:
        """Restore the handlers that were in place before ``register()``."""
        if not self._registered:
            return
        self._restore()
        self._registered = False

    def _restore(self) -> None:
        for signum, previous in self._previous.items():
            try:
                signal.signal(signum, previous)
            except (ValueError, TypeError):
                pass
        self._previous.clear()

    def handle(self, event: int) -> bool:
        """Deliver a console event to the callback."""
        try:
            event = ConsoleEvent(event)
        except ValueError:
            return False
        return bool(self._callback(event))

    def _handle_signal(self, signum: int, frame) -> None:
        # Signal handlers run on the main thread between bytecodes, possibly
        # while it holds a non-reentrant lock. The callback runs elsewhere.
        threading.Thread(
            target=self.handle,
            args=(_SIGNAL_EVENTS[signum],),
            name="console-ctrl",
            daemon=True,
        ).start()

    def __enter__(self) -> "ConsoleCtrlHandler":
        self.register()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.unregister()
