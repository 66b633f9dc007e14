"""Tests for daemon.dispatcher and the pywin32 binding in daemon.windows.scm.

The pywin32 modules are replaced by fakes so the binding can be exercised
on any platform.
"""

import importlib
import sys
import types
from unittest.mock import MagicMock

import pytest

from console_service.daemon import dispatcher as dispatcher_module
from console_service.daemon.codes import NO_ERROR, ServiceAccept, ServiceState, ServiceStatus

SCM_MODULE = 'console_service.daemon.windows.scm'


class FakeWinError(Exception):
    """Shape of pywintypes.error."""

    def __init__(self, winerror, funcname, strerror):
        super().__init__(winerror, funcname, strerror)
        self.winerror = winerror


@pytest.fixture
def fake_pywin32(monkeypatch):
    """Install fake pywin32 modules and import scm against them."""
    pywintypes = types.ModuleType('pywintypes')
    pywintypes.error = FakeWinError
    servicemanager = MagicMock(name='servicemanager')
    win32service = MagicMock(name='win32service')

    monkeypatch.setattr(sys, 'platform', 'win32')
    monkeypatch.setitem(sys.modules, 'pywintypes', pywintypes)
    monkeypatch.setitem(sys.modules, 'servicemanager', servicemanager)
    monkeypatch.setitem(sys.modules, 'win32service', win32service)
    monkeypatch.delitem(sys.modules, SCM_MODULE, raising=False)

    scm = importlib.import_module(SCM_MODULE)
    yield types.SimpleNamespace(
        scm=scm, servicemanager=servicemanager, win32service=win32service
    )
    sys.modules.pop(SCM_MODULE, None)


class TestGetDefaultDispatcher:
    def test_none_off_windows(self, monkeypatch):
        monkeypatch.setattr(sys, 'platform', 'linux')
        assert dispatcher_module.get_default_dispatcher() is None

    def test_none_without_pywin32(self, monkeypatch):
        monkeypatch.setattr(sys, 'platform', 'win32')
        monkeypatch.setitem(sys.modules, 'servicemanager', None)
        monkeypatch.delitem(sys.modules, SCM_MODULE, raising=False)
        assert dispatcher_module.get_default_dispatcher() is None

    def test_win32_dispatcher_with_pywin32(self, fake_pywin32):
        result = dispatcher_module.get_default_dispatcher()
        assert isinstance(result, fake_pywin32.scm.Win32ServiceDispatcher)


class TestScmImportGuard:
    @pytest.mark.skipif(sys.platform == 'win32', reason="Non-Windows guard")
    def test_import_fails_off_windows(self):
        sys.modules.pop(SCM_MODULE, None)
        with pytest.raises(ImportError, match="only available on Windows"):
            importlib.import_module(SCM_MODULE)


class TestWin32ServiceDispatcher:
    """Test the binding against fake pywin32 modules."""

    def test_run_hosts_service_main(self, fake_pywin32):
        calls = []
        sm = fake_pywin32.servicemanager

        def start_dispatcher():
            # What servicemanager does once the SCM starts the service
            host_cls = sm.PrepareToHostSingle.call_args.args[0]
            host_cls(['demo', '/arg']).SvcRun()

        sm.StartServiceCtrlDispatcher.side_effect = start_dispatcher

        rc = fake_pywin32.scm.Win32ServiceDispatcher().run('demo', calls.append)

        assert rc == NO_ERROR
        sm.Initialize.assert_called_once_with('demo', None)
        assert calls == [['demo', '/arg']]

    def test_run_returns_connect_error(self, fake_pywin32):
        sm = fake_pywin32.servicemanager
        sm.StartServiceCtrlDispatcher.side_effect = FakeWinError(
            1063, 'StartServiceCtrlDispatcher', 'The service process could not connect'
        )
        assert fake_pywin32.scm.Win32ServiceDispatcher().run('demo', print) == 1063

    def test_register_control_handler(self, fake_pywin32):
        sm = fake_pywin32.servicemanager
        sm.RegisterServiceCtrlHandler.return_value = 'handle'
        handler = MagicMock()

        result = fake_pywin32.scm.Win32ServiceDispatcher().register_control_handler('demo', handler)

        assert result == 'handle'
        sm.RegisterServiceCtrlHandler.assert_called_once_with('demo', handler, True)

    def test_register_failure_returns_none(self, fake_pywin32):
        sm = fake_pywin32.servicemanager
        sm.RegisterServiceCtrlHandler.side_effect = FakeWinError(5, 'Register', 'Access denied')
        assert fake_pywin32.scm.Win32ServiceDispatcher().register_control_handler('demo', print) is None

    def test_report_status_passes_tuple(self, fake_pywin32):
        status = ServiceStatus(
            current_state=ServiceState.START_PENDING,
            controls_accepted=ServiceAccept(0),
            checkpoint=1,
            wait_hint=5000,
        )
        fake_pywin32.scm.Win32ServiceDispatcher().report_status('handle', status)
        fake_pywin32.win32service.SetServiceStatus.assert_called_once_with(
            'handle', status.as_tuple()
        )

    def test_report_status_failure_is_logged_not_raised(self, fake_pywin32):
        fake_pywin32.win32service.SetServiceStatus.side_effect = FakeWinError(6, 'Set', 'bad handle')
        status = ServiceStatus(ServiceState.RUNNING, ServiceAccept.STOP)
        fake_pywin32.scm.Win32ServiceDispatcher().report_status('handle', status)
