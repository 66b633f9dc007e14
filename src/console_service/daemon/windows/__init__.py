"""Windows-specific service dispatcher (requires pywin32).

Importing ``console_service.daemon.windows.scm`` on another platform raises
ImportError; use ``console_service.daemon.dispatcher.get_default_dispatcher``
to get the dispatcher for the current platform instead.
"""
