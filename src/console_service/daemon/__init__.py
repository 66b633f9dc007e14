"""Service lifecycle infrastructure for console-service.

This package provides:
- The ServiceController state machine and its lifecycle callbacks
- Service states, control codes and status records
- Console control handling for debug mode
- The service dispatcher interface (pywin32 binding on Windows)
- Log file path helpers
- Loguru setup for framework diagnostics
"""

from .codes import (
    ERROR_EXCEPTION_IN_SERVICE,
    ERROR_FAILED_SERVICE_CONTROLLER_CONNECT,
    NO_ERROR,
    ConsoleEvent,
    ControlCode,
    ServiceAccept,
    ServiceState,
    ServiceStatus,
)
from .console import ConsoleCtrlHandler
from .controller import (
    ControllerExistsError,
    ServiceController,
    get_active_controller,
    is_debug_argument,
)
from .dispatcher import ServiceDispatcher, get_default_dispatcher
from .logging_setup import setup_logging
from .paths import APP_NAME, get_log_dir, get_log_file_path, get_temp_dir

__all__ = [
    # Codes
    'ERROR_EXCEPTION_IN_SERVICE',
    'ERROR_FAILED_SERVICE_CONTROLLER_CONNECT',
    'NO_ERROR',
    'ConsoleEvent',
    'ControlCode',
    'ServiceAccept',
    'ServiceState',
    'ServiceStatus',
    # Controller
    'ConsoleCtrlHandler',
    'ControllerExistsError',
    'ServiceController',
    'get_active_controller',
    'is_debug_argument',
    # Dispatcher
    'ServiceDispatcher',
    'get_default_dispatcher',
    # Logging
    'setup_logging',
    # Paths
    'APP_NAME',
    'get_log_dir',
    'get_log_file_path',
    'get_temp_dir',
]
