"""Service lifecycle controller.

ServiceController wraps the Windows service init/control/exit sequence and
lets the same program run as a console process for debugging. Derive from
it and override ``run()``: do the service's initialisation, call
``super().run()`` (which reports RUNNING and blocks until stopped), then do
the de-initialisation and return the exit code::

    class MyService(ServiceController):
        def run(self):
            self.worker = Worker()
            self.worker.start()     # > 30s of setup belongs on a worker thread
            rc = super().run()
            self.worker.join()
            return rc

    with MyService("myservice") as service:
        sys.exit(service.start())

Started by the SCM, ``start()`` hands control to the service dispatcher.
Started with ``/debug`` (or ``-debug``) on the command line, it runs the
service in the foreground and Ctrl+C, Ctrl+Break or console shutdown act
as a STOP control.

Only STOP is accepted by default. Widen ``accepted_controls`` to receive
more controls; it is ignored while START_PENDING, where nothing is accepted.

There can be only one live controller per process: the dispatcher finds
it through ``get_active_controller()``.
"""

import sys
import threading
from pathlib import Path
from typing import Any, Optional, Sequence

from loguru import logger as _loguru

from ..config import get_settings
from ..log import ConsoleLogSink, FileLogSink, Logger, LogWriter, TeeLogSink
from .codes import (
    ERROR_EXCEPTION_IN_SERVICE,
    ERROR_FAILED_SERVICE_CONTROLLER_CONNECT,
    NO_ERROR,
    STOP_CONSOLE_EVENTS,
    ConsoleEvent,
    ControlCode,
    ServiceAccept,
    ServiceState,
    ServiceStatus,
    control_name,
)
from .console import ConsoleCtrlHandler
from .dispatcher import ServiceDispatcher, get_default_dispatcher
from .paths import get_log_file_path

CONSOLE_HINT = "Press Ctrl+C or Ctrl+Break to quit..."
PENDING_WAIT_HINT_MS = 5000

# Controls whose callbacks answer with a status code
_STATUS_CONTROLS = frozenset({
    ControlCode.PRESHUTDOWN,
    ControlCode.DEVICEEVENT,
    ControlCode.HARDWAREPROFILECHANGE,
    ControlCode.SESSIONCHANGE,
    ControlCode.POWEREVENT,
})

_active_controller: Optional["ServiceController"] = None
_slot_lock = threading.Lock()


class ControllerExistsError(RuntimeError):
    """Raised when a second controller is created while one is still live."""


def get_active_controller() -> Optional["ServiceController"]:
    """Return the live controller, if any."""
    return _active_controller


def is_debug_argument(arg: str) -> bool:
    """True for ``/debug`` or ``-debug`` in any letter case."""
    return len(arg) > 1 and arg[0] in '/-' and arg[1:].lower() == 'debug'


def _status_code(rc: Optional[int]) -> int:
    return NO_ERROR if rc is None else int(rc)


class ServiceController:
    """Owns the service state and maps control requests to callbacks.

    Args:
        name: Service identity, used to register with the SCM and to name
            the default log file.
        logger: Logger to write to. By default a Logger over a rolling
            FileLogSink at ``get_log_filename(name)`` is created and owned.
        dispatcher: Service dispatcher. Defaults to the platform one.
    """

    accepted_controls = ServiceAccept(0)
    log_tag = 'service'

    def __init__(
        self,
        name: str,
        logger: Optional[Logger] = None,
        dispatcher: Optional[ServiceDispatcher] = None,
    ):
        global _active_controller
        with _slot_lock:
            if _active_controller is not None:
                raise ControllerExistsError(
                    f"Controller {_active_controller.name!r} is still live; "
                    "only one ServiceController may exist per process"
                )
            _active_controller = self

        try:
            self._name = name
            self._dispatcher = dispatcher
            self._status_handle: Any = None
            self._debug_mode = False

            self._state = ServiceState.STOPPED
            self._controls = ServiceAccept(0)
            self._win32_exit_code = NO_ERROR
            self._service_specific_exit_code = 0
            self._checkpoint = 0
            self._state_lock = threading.RLock()
            self._quit = threading.Event()

            self._log_filename = Path(self.get_log_filename(name))
            self._echo: Optional[TeeLogSink] = None
            self._owns_logger = logger is None
            if logger is None:
                logger = self._create_logger()
            self._logger = logger
            self.log = LogWriter(self.log_tag, logger)
        except BaseException:
            self._release()
            raise

    # ------------------------------------------------------------------
    # Accessors
    # ------------------------------------------------------------------

    @property
    def name(self) -> str:
        return self._name

    @property
    def state(self) -> ServiceState:
        return self._state

    @property
    def controls_accepted(self) -> ServiceAccept:
        return self._controls

    @property
    def checkpoint(self) -> int:
        return self._checkpoint

    @property
    def win32_exit_code(self) -> int:
        return self._win32_exit_code

    @property
    def quit_event(self) -> threading.Event:
        return self._quit

    @property
    def log_filename(self) -> Path:
        return self._log_filename

    @property
    def status(self) -> ServiceStatus:
        with self._state_lock:
            return self._make_status()

    def is_debug_mode(self) -> bool:
        """Was ``/debug`` given on the command line?"""
        return self._debug_mode

    def get_logger(self) -> Logger:
        return self._logger

    def get_log_filename(self, name: str) -> Path:
        """Full path of the log file. Override to log somewhere else."""
        return get_log_file_path(name)

    # ------------------------------------------------------------------
    # Startup
    # ------------------------------------------------------------------

    def start(self, argv: Optional[Sequence[str]] = None) -> int:
        """Run the service to completion.

        Args:
            argv: Command line to scan for the debug flag (default: sys.argv).

        Returns:
            The exit code of ``run()``, or the Win32 error code if the
            service dispatcher could not be started.
        """
        args = list(sys.argv if argv is None else argv)
        self._debug_mode = any(is_debug_argument(arg) for arg in args)

        if self._debug_mode:
            self.log.info("Starting {} as a console program", self._name)
            try:
                self.service_main(args)
            except Exception as e:
                _loguru.exception(f"Service {self._name} failed: {e}")
                self._win32_exit_code = ERROR_EXCEPTION_IN_SERVICE
            return self._win32_exit_code

        if self._dispatcher is None:
            self._dispatcher = get_default_dispatcher()
        if self._dispatcher is None:
            _loguru.error(
                f"No service control dispatcher on {sys.platform}; "
                f"use /debug to run {self._name} as a console program"
            )
            self._win32_exit_code = ERROR_FAILED_SERVICE_CONTROLLER_CONNECT
            return self._win32_exit_code

        try:
            rc = self._dispatcher.run(self._name, self.service_main)
        except Exception as e:
            _loguru.exception(f"Service dispatcher failed for {self._name}: {e}")
            rc = ERROR_FAILED_SERVICE_CONTROLLER_CONNECT
        if rc != NO_ERROR:
            self.log.error("Service dispatcher for {} failed with error {}", self._name, rc)
            self._win32_exit_code = rc
        return self._win32_exit_code

    def service_main(self, args: Optional[Sequence[str]] = None) -> None:
        """Entry sequence, called by the dispatcher or directly in debug mode."""
        self._state = ServiceState.START_PENDING
        console: Optional[ConsoleCtrlHandler] = None

        if self._debug_mode:
            self._attach_console_echo()
            console = ConsoleCtrlHandler(self.console_ctrl_handler)
            console.register()
            print(CONSOLE_HINT, flush=True)
        else:
            handle = self._dispatcher.register_control_handler(
                self._name, self.service_control_handler
            )
            if handle is None:
                # No status handle, so nothing can be reported to the SCM
                self.log.error("Control handler for {} not installed", self._name)
                return
            self._status_handle = handle

        try:
            self.set_state(ServiceState.START_PENDING)

            self._win32_exit_code = NO_ERROR
            self._service_specific_exit_code = 0

            # When run() returns, the service has stopped.
            try:
                self._win32_exit_code = _status_code(self.run())
            except Exception as e:
                self.log.error("run() raised {}: {}", type(e).__name__, e)
                _loguru.exception(f"Service {self._name} run() failed")
                self._win32_exit_code = ERROR_EXCEPTION_IN_SERVICE

            self.set_state(ServiceState.STOPPED)
        finally:
            if console is not None:
                console.unregister()

    def run(self) -> int:
        """Service body. Override to add initialisation and cleanup.

        Reports RUNNING, then blocks until a STOP control (or a console
        interrupt in debug mode) sets the quit event.

        Returns:
            Exit code reported to the SCM.
        """
        self.set_state(ServiceState.RUNNING)
        self._quit.wait()
        return NO_ERROR

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def set_state(self, state: ServiceState) -> None:
        """Change the service state and report it to the SCM.

        Safe to call from worker threads; calls are serialised.
        """
        state = ServiceState(state)
        with self._state_lock:
            self._state = state
            if state == ServiceState.START_PENDING:
                self._controls = ServiceAccept(0)
            else:
                self._controls = ServiceAccept.STOP | self.accepted_controls
            if state.is_pending:
                self._checkpoint += 1

            status = self._make_status()
            if not self._debug_mode and self._status_handle is not None:
                self._dispatcher.report_status(self._status_handle, status)

        self.log.debug("State {} (accepts {:#x})", state.name, int(status.controls_accepted))

    def _make_status(self) -> ServiceStatus:
        return ServiceStatus(
            current_state=self._state,
            controls_accepted=self._controls,
            win32_exit_code=self._win32_exit_code,
            service_specific_exit_code=self._service_specific_exit_code,
            checkpoint=self._checkpoint,
            wait_hint=PENDING_WAIT_HINT_MS if self._state.is_pending else 0,
        )

    # ------------------------------------------------------------------
    # Control dispatch
    # ------------------------------------------------------------------

    def service_control_handler(self, control: int, event_type: int = 0, data: Any = None) -> int:
        """Route one control request to its callback.

        Returns:
            NO_ERROR, or the status returned by the callback for controls
            that carry one.
        """
        self.log.verbose("Control {} (event type {})", control_name(control), event_type)

        try:
            if control == ControlCode.STOP:
                self.on_stop()
            elif control == ControlCode.PAUSE:
                self.on_pause()
            elif control == ControlCode.CONTINUE:
                self.on_continue()
            elif control == ControlCode.INTERROGATE:
                self.on_interrogate()
            elif control == ControlCode.PRESHUTDOWN:
                return _status_code(self.on_pre_shutdown(data))
            elif control == ControlCode.SHUTDOWN:
                self.on_shutdown()
            elif control == ControlCode.DEVICEEVENT:
                return _status_code(self.on_device_event(event_type, data))
            elif control == ControlCode.HARDWAREPROFILECHANGE:
                return _status_code(self.on_hardware_profile_change(event_type))
            elif control == ControlCode.SESSIONCHANGE:
                return _status_code(self.on_session_change(event_type, data))
            elif control == ControlCode.POWEREVENT:
                return _status_code(self.on_power_event(event_type, data))
            else:
                self.on_unknown_request(control)
        except Exception as e:
            self.log.error("Handler for {} raised {}: {}", control_name(control), type(e).__name__, e)
            _loguru.exception(f"Control handler for {control_name(control)} failed")
            if control in _STATUS_CONTROLS:
                return ERROR_EXCEPTION_IN_SERVICE
        return NO_ERROR

    def console_ctrl_handler(self, event: ConsoleEvent) -> bool:
        """Treat Ctrl+C, Ctrl+Break and console shutdown as a STOP control."""
        if event not in STOP_CONSOLE_EVENTS:
            return False
        self.log.info("Console event {}, stopping", ConsoleEvent(event).name)
        try:
            self.on_stop()
        except Exception as e:
            self.log.error("on_stop() raised {}: {}", type(e).__name__, e)
            _loguru.exception("Console stop handler failed")
        return True

    # ------------------------------------------------------------------
    # Lifecycle callbacks
    # ------------------------------------------------------------------

    def on_stop(self) -> None:
        """Report STOP_PENDING and release ``run()``. Repeated stops are ignored.

        An override must still end up setting the quit event.
        """
        with self._state_lock:
            if self._quit.is_set():
                return
            self.set_state(ServiceState.STOP_PENDING)
            self._quit.set()

    def on_pause(self) -> None:
        pass

    def on_continue(self) -> None:
        pass

    def on_interrogate(self) -> None:
        pass

    def on_pre_shutdown(self, data: Any) -> int:
        return NO_ERROR

    def on_shutdown(self) -> None:
        pass

    def on_device_event(self, event_type: int, data: Any) -> int:
        return NO_ERROR

    def on_hardware_profile_change(self, event_type: int) -> int:
        return NO_ERROR

    def on_session_change(self, event_type: int, data: Any) -> int:
        return NO_ERROR

    def on_power_event(self, event_type: int, data: Any) -> int:
        return NO_ERROR

    def on_unknown_request(self, control: int) -> None:
        pass

    # ------------------------------------------------------------------
    # Resources
    # ------------------------------------------------------------------

    def _create_logger(self) -> Logger:
        settings = get_settings()
        file_sink = FileLogSink(self._log_filename, rollover=settings.log.rollover)
        self._echo = TeeLogSink(file_sink)
        return Logger(self._echo, level=settings.log.level)

    def _attach_console_echo(self) -> None:
        if self._echo is None or not get_settings().log.echo_console:
            return
        if not any(isinstance(sink, ConsoleLogSink) for sink in self._echo.sinks):
            self._echo.add(ConsoleLogSink())

    def _release(self) -> None:
        global _active_controller
        with _slot_lock:
            if _active_controller is self:
                _active_controller = None

    def close(self) -> None:
        """Give up the process-wide slot and close an owned logger."""
        self._release()
        if self._owns_logger:
            self._logger.close()

    def __enter__(self) -> "ServiceController":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
