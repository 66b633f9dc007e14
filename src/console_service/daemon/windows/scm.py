"""pywin32 binding of the service control dispatcher.

servicemanager hosts a single class per process: when the SCM starts the
service it instantiates that class with the service arguments and calls its
``SvcRun()`` on an SCM-owned thread. The host class built here only
forwards that call to the controller's ``service_main``; registering the
control handler and reporting status are left to the controller, which does
them through this dispatcher.

Usage:
    Called by ServiceController.start() when not in debug mode.
"""

import sys

# Platform check - must happen before pywin32 imports
if sys.platform != 'win32':
    raise ImportError(
        "scm module is only available on Windows. "
        f"Current platform: {sys.platform}"
    )

# pywin32 availability check
try:
    import pywintypes
    import servicemanager
    import win32service
except ImportError as e:
    raise ImportError(
        "pywin32 is required for Windows service functionality. "
        "Install with: pip install pywin32"
    ) from e

from typing import Any, Optional

from loguru import logger

from ..codes import NO_ERROR, ServiceStatus
from ..dispatcher import ControlHandler, ServiceMain


class _ServiceHost:
    """Object servicemanager instantiates when the SCM starts the service."""

    _svc_name_ = ''
    _service_main: Optional[ServiceMain] = None

    def __init__(self, args):
        self.args = list(args) if args else [self._svc_name_]

    def SvcRun(self):
        type(self)._service_main(self.args)


class Win32ServiceDispatcher:
    """Dispatcher backed by servicemanager and win32service."""

    def run(self, name: str, service_main: ServiceMain) -> int:
        """Connect to the SCM and block until the service has stopped.

        Returns:
            NO_ERROR, or the Win32 error code if the SCM could not be reached
            (1063 when the process was not started by the SCM).
        """
        host = type(
            'ServiceHost',
            (_ServiceHost,),
            {'_svc_name_': name, '_service_main': staticmethod(service_main)},
        )
        try:
            servicemanager.Initialize(name, None)
            servicemanager.PrepareToHostSingle(host)
            servicemanager.StartServiceCtrlDispatcher()
        except pywintypes.error as e:
            logger.error(f"StartServiceCtrlDispatcher failed for {name}: {e}")
            return e.winerror
        return NO_ERROR

    def register_control_handler(self, name: str, handler: ControlHandler) -> Optional[Any]:
        try:
            return servicemanager.RegisterServiceCtrlHandler(name, handler, True)
        except pywintypes.error as e:
            logger.error(f"RegisterServiceCtrlHandler failed for {name}: {e}")
            return None

    def report_status(self, handle: Any, status: ServiceStatus) -> None:
        try:
            win32service.SetServiceStatus(handle, status.as_tuple())
        except pywintypes.error as e:
            logger.warning(f"SetServiceStatus({status.current_state.name}) failed: {e}")
