"""Tests for the service-manager backends."""

import subprocess
import unittest
from unittest.mock import patch

from agentdeploy.models import ServiceState
from agentdeploy.result import ErrorKind
from agentdeploy.service import (
    SystemdServiceManager,
    WindowsServiceManager,
    service_manager_for,
)

SC_RUNNING = """
SERVICE_NAME: EndpointAgent
        TYPE               : 10  WIN32_OWN_PROCESS
        STATE              : 4  RUNNING
                                (STOPPABLE, NOT_PAUSABLE, ACCEPTS_SHUTDOWN)
        WIN32_EXIT_CODE    : 0  (0x0)
"""

SC_STOPPED = SC_RUNNING.replace("4  RUNNING", "1  STOPPED")

SC_MISSING = "[SC] EnumQueryServicesStatus:OpenService FAILED 1060:\n\nThe specified service does not exist as an installed service.\n"


def _proc(returncode=0, stdout="", stderr=""):
    return subprocess.CompletedProcess(args=[], returncode=returncode, stdout=stdout, stderr=stderr)


class TestWindowsServiceManager(unittest.TestCase):
    def setUp(self):
        self.manager = WindowsServiceManager()

    @patch("agentdeploy.service.subprocess.run")
    def test_running(self, mock_run):
        mock_run.return_value = _proc(stdout=SC_RUNNING)
        self.assertIs(self.manager.inspect("EndpointAgent"), ServiceState.RUNNING)
        self.assertEqual(mock_run.call_args[0][0], ["sc.exe", "query", "EndpointAgent"])

    @patch("agentdeploy.service.subprocess.run")
    def test_stopped(self, mock_run):
        mock_run.return_value = _proc(stdout=SC_STOPPED)
        self.assertIs(self.manager.inspect("EndpointAgent"), ServiceState.NOT_RUNNING)

    @patch("agentdeploy.service.subprocess.run")
    def test_missing_service_is_absent(self, mock_run):
        mock_run.return_value = _proc(returncode=1060, stdout=SC_MISSING)
        result = self.manager.query("EndpointAgent")
        self.assertIs(result.error, ErrorKind.SERVICE_QUERY_FAILED)
        self.assertIs(self.manager.inspect("EndpointAgent"), ServiceState.ABSENT)

    @patch("agentdeploy.service.subprocess.run", side_effect=FileNotFoundError("sc.exe"))
    def test_manager_unavailable_is_absent(self, _):
        self.assertIs(self.manager.inspect("EndpointAgent"), ServiceState.ABSENT)

    @patch("agentdeploy.service.subprocess.run")
    def test_start_success(self, mock_run):
        mock_run.return_value = _proc(stdout="The service was started successfully.")
        self.assertTrue(self.manager.start("EndpointAgent").ok)
        self.assertEqual(mock_run.call_args[0][0], ["net.exe", "start", "EndpointAgent"])

    @patch("agentdeploy.service.subprocess.run")
    def test_start_failure(self, mock_run):
        mock_run.return_value = _proc(returncode=2, stderr="System error 1058 has occurred.")
        result = self.manager.start("EndpointAgent")
        self.assertIs(result.error, ErrorKind.SERVICE_START_FAILED)
        self.assertIn("1058", result.detail)

    @patch("agentdeploy.service.subprocess.run", side_effect=PermissionError("denied"))
    def test_start_launch_error(self, _):
        self.assertIs(self.manager.start("EndpointAgent").error, ErrorKind.SERVICE_START_FAILED)


class TestSystemdServiceManager(unittest.TestCase):
    def setUp(self):
        self.manager = SystemdServiceManager()

    @patch("agentdeploy.service.subprocess.run")
    def test_active(self, mock_run):
        mock_run.return_value = _proc(stdout="LoadState=loaded\nActiveState=active\n")
        self.assertIs(self.manager.inspect("agent"), ServiceState.RUNNING)

    @patch("agentdeploy.service.subprocess.run")
    def test_inactive(self, mock_run):
        mock_run.return_value = _proc(stdout="LoadState=loaded\nActiveState=inactive\n")
        self.assertIs(self.manager.inspect("agent"), ServiceState.NOT_RUNNING)

    @patch("agentdeploy.service.subprocess.run")
    def test_not_found(self, mock_run):
        mock_run.return_value = _proc(stdout="LoadState=not-found\nActiveState=inactive\n")
        self.assertIs(self.manager.inspect("agent"), ServiceState.ABSENT)

    @patch("agentdeploy.service.subprocess.run")
    def test_start(self, mock_run):
        mock_run.return_value = _proc()
        self.assertTrue(self.manager.start("agent").ok)
        self.assertEqual(mock_run.call_args[0][0], ["systemctl", "start", "agent"])

    @patch("agentdeploy.service.subprocess.run")
    def test_start_failure(self, mock_run):
        mock_run.return_value = _proc(returncode=5, stderr="Unit agent.service failed.")
        self.assertIs(self.manager.start("agent").error, ErrorKind.SERVICE_START_FAILED)


class TestServiceManagerFor(unittest.TestCase):
    def test_known(self):
        self.assertIsInstance(service_manager_for("windows"), WindowsServiceManager)
        self.assertIsInstance(service_manager_for("systemd"), SystemdServiceManager)

    def test_unknown(self):
        with self.assertRaises(ValueError):
            service_manager_for("launchd")


if __name__ == "__main__":
    unittest.main()
