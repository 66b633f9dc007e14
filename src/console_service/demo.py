"""Heartbeat service: a small ServiceController that can be paused.

Writes a heartbeat record every ``interval`` seconds from a worker thread.
Accepts PAUSE/CONTINUE (heartbeats stop while paused) and SHUTDOWN
(treated as STOP).

    console-service run heartbeat --debug
"""

import threading
from typing import Optional

from .daemon.codes import ServiceAccept, ServiceState
from .daemon.controller import ServiceController


class HeartbeatService(ServiceController):

    accepted_controls = ServiceAccept.PAUSE_CONTINUE | ServiceAccept.SHUTDOWN

    def __init__(self, name: str, interval: float = 5.0, **kwargs):
        super().__init__(name, **kwargs)
        self.interval = interval
        self.beats = 0
        self._resumed = threading.Event()
        self._worker: Optional[threading.Thread] = None

    def run(self) -> int:
        self._resumed.set()
        self._worker = threading.Thread(
            target=self._beat, name=f"{self.name}-heartbeat", daemon=True
        )
        self._worker.start()
        self.log.info("Heartbeat every {:g}s", self.interval)

        rc = super().run()

        self._resumed.set()
        self._worker.join(timeout=max(self.interval, 1.0) * 2)
        self.log.info("Stopped after {} heartbeats", self.beats)
        return rc

    def _beat(self) -> None:
        while not self.quit_event.wait(self.interval):
            if not self._resumed.is_set():
                continue
            self.beats += 1
            self.log.info("heartbeat {}", self.beats)

    def on_pause(self) -> None:
        self.set_state(ServiceState.PAUSE_PENDING)
        self._resumed.clear()
        self.set_state(ServiceState.PAUSED)

    def on_continue(self) -> None:
        self.set_state(ServiceState.CONTINUE_PENDING)
        self._resumed.set()
        self.set_state(ServiceState.RUNNING)

    def on_shutdown(self) -> None:
        self.on_stop()
