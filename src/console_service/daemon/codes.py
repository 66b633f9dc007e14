"""Service states, control codes and status records.

Values match the Win32 service API so they can be handed to pywin32
unchanged, but nothing here imports pywin32: the state machine runs (and is
tested) on any platform.
"""

from dataclasses import dataclass
from enum import IntEnum, IntFlag

NO_ERROR = 0
ERROR_FAILED_SERVICE_CONTROLLER_CONNECT = 1063
ERROR_EXCEPTION_IN_SERVICE = 1064

SERVICE_WIN32_OWN_PROCESS = 0x10


class ServiceState(IntEnum):
    STOPPED = 1
    START_PENDING = 2
    STOP_PENDING = 3
    RUNNING = 4
    CONTINUE_PENDING = 5
    PAUSE_PENDING = 6
    PAUSED = 7

    @property
    def is_pending(self) -> bool:
        return self in _PENDING_STATES


_PENDING_STATES = frozenset({
    ServiceState.START_PENDING,
    ServiceState.STOP_PENDING,
    ServiceState.CONTINUE_PENDING,
    ServiceState.PAUSE_PENDING,
})


class ControlCode(IntEnum):
    """Control requests the SCM delivers to a service's handler."""

    STOP = 1
    PAUSE = 2
    CONTINUE = 3
    INTERROGATE = 4
    SHUTDOWN = 5
    DEVICEEVENT = 11
    HARDWAREPROFILECHANGE = 12
    POWEREVENT = 13
    SESSIONCHANGE = 14
    PRESHUTDOWN = 15


class ServiceAccept(IntFlag):
    """Controls a service tells the SCM it is willing to receive."""

    STOP = 0x1
    PAUSE_CONTINUE = 0x2
    SHUTDOWN = 0x4
    PARAMCHANGE = 0x8
    NETBINDCHANGE = 0x10
    HARDWAREPROFILECHANGE = 0x20
    POWEREVENT = 0x40
    SESSIONCHANGE = 0x80
    PRESHUTDOWN = 0x100


class ConsoleEvent(IntEnum):
    """Console control events (CTRL_*_EVENT)."""

    CTRL_C = 0
    CTRL_BREAK = 1
    CTRL_CLOSE = 2
    CTRL_LOGOFF = 5
    CTRL_SHUTDOWN = 6


# Console events treated exactly like a STOP control in debug mode
STOP_CONSOLE_EVENTS = frozenset({
    ConsoleEvent.CTRL_C,
    ConsoleEvent.CTRL_BREAK,
    ConsoleEvent.CTRL_SHUTDOWN,
})


def control_name(control: int) -> str:
    """Readable name for a control code, including unknown ones."""
    try:
        return ControlCode(control).name
    except ValueError:
        return f"UNKNOWN({control})"


@dataclass(frozen=True)
class ServiceStatus:
    """One SERVICE_STATUS report."""

    current_state: ServiceState
    controls_accepted: ServiceAccept
    win32_exit_code: int = NO_ERROR
    service_specific_exit_code: int = 0
    checkpoint: int = 0
    wait_hint: int = 0
    service_type: int = SERVICE_WIN32_OWN_PROCESS

    def as_tuple(self) -> tuple[int, int, int, int, int, int, int]:
        """Tuple in the order ``win32service.SetServiceStatus`` expects."""
        return (
            int(self.service_type),
            int(self.current_state),
            int(self.controls_accepted),
            int(self.win32_exit_code),
            int(self.service_specific_exit_code),
            int(self.checkpoint),
            int(self.wait_hint),
        )
