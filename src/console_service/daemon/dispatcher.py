"""Service control dispatcher interface.

The controller never talks to the SCM directly. It goes through a
dispatcher with three duties:

1. ``run``: connect the process to the SCM and block while the SCM calls
   ``service_main`` on its own thread. Returns NO_ERROR or the Win32 error
   code of a failed connection.
2. ``register_control_handler``: register the callback that receives
   control requests. Returns a status handle, or None on failure.
3. ``report_status``: push a ServiceStatus to the SCM.

On Windows the pywin32 binding in ``windows.scm`` is used. Tests provide
their own dispatcher.
"""

import sys
from typing import Any, Callable, Optional, Protocol

from loguru import logger

from .codes import ServiceStatus

ServiceMain = Callable[[list[str]], None]
ControlHandler = Callable[[int, int, Any], int]


class ServiceDispatcher(Protocol):
    def run(self, name: str, service_main: ServiceMain) -> int:
        ...

    def register_control_handler(self, name: str, handler: ControlHandler) -> Optional[Any]:
        ...

    def report_status(self, handle: Any, status: ServiceStatus) -> None:
        ...


def get_default_dispatcher() -> Optional[ServiceDispatcher]:
    """Return the platform dispatcher, or None where services are unsupported."""
    if sys.platform != 'win32':
        return None
    try:
        from .windows.scm import Win32ServiceDispatcher
    except ImportError as e:
        logger.error(f"Service dispatcher unavailable: {e}")
        return None
    return Win32ServiceDispatcher()
