"""
Agent service inspection and start-up through the OS service manager.

Two backends are provided: :class:`WindowsServiceManager` (``sc.exe`` /
``net start``) and :class:`SystemdServiceManager` (``systemctl``).  Both
expose the same two operations:

- :meth:`ServiceManager.inspect`: ``ServiceState`` for a service name.
  A failed query (unknown service, manager unreachable) is reported as
  ``ServiceState.ABSENT``, never as an error.
- :meth:`ServiceManager.start`: a :class:`~agentdeploy.result.Result`.
"""

from __future__ import annotations

import logging
import re
import subprocess

from .models import ServiceState
from .result import ErrorKind, Result

logger = logging.getLogger("agentdeploy.service")


def _run(cmd: list[str]) -> subprocess.CompletedProcess:
    logger.debug("exec: %s", subprocess.list2cmdline(cmd))
    return subprocess.run(cmd, capture_output=True, text=True, check=False)


def _output(proc: subprocess.CompletedProcess) -> str:
    return ((proc.stdout or "") + (proc.stderr or "")).strip()


class ServiceManager:
    """Base class; subclasses implement :meth:`query` and :meth:`start`."""

    def query(self, name: str) -> Result:
        """Return ``Result.success(ServiceState)`` or a ``SERVICE_QUERY_FAILED`` failure."""
        raise NotImplementedError

    def start(self, name: str) -> Result:
        """Start *name* and block until the manager reports the outcome."""
        raise NotImplementedError

    def inspect(self, name: str) -> ServiceState:
        result = self.query(name)
        if not result.ok:
            logger.debug("Service '%s' treated as absent (%s)", name, result.describe())
            return ServiceState.ABSENT
        return result.value


class WindowsServiceManager(ServiceManager):
    """Windows Service Control Manager via ``sc.exe`` and ``net.exe``."""

    _STATE_RE = re.compile(r"STATE\s*:\s*\d+\s+(\w+)")

    def query(self, name: str) -> Result:
        try:
            proc = _run(["sc.exe", "query", name])
        except OSError as e:
            return Result.failure(ErrorKind.SERVICE_QUERY_FAILED, str(e))
        if proc.returncode != 0:
            # 1060 = ERROR_SERVICE_DOES_NOT_EXIST
            return Result.failure(
                ErrorKind.SERVICE_QUERY_FAILED,
                f"sc.exe exited {proc.returncode}: {_output(proc)}",
            )
        match = self._STATE_RE.search(proc.stdout or "")
        if match is None:
            return Result.failure(ErrorKind.SERVICE_QUERY_FAILED, "no STATE in sc.exe output")
        if match.group(1).upper() == "RUNNING":
            return Result.success(ServiceState.RUNNING)
        return Result.success(ServiceState.NOT_RUNNING)

    def start(self, name: str) -> Result:
        # net start waits for the service to reach RUNNING; sc start does not.
        try:
            proc = _run(["net.exe", "start", name])
        except OSError as e:
            return Result.failure(ErrorKind.SERVICE_START_FAILED, str(e))
        if proc.returncode != 0:
            return Result.failure(
                ErrorKind.SERVICE_START_FAILED,
                f"net start exited {proc.returncode}: {_output(proc)}",
            )
        return Result.success()


class SystemdServiceManager(ServiceManager):
    """systemd units via ``systemctl``."""

    def query(self, name: str) -> Result:
        try:
            proc = _run(["systemctl", "show", "--property=LoadState,ActiveState", name])
        except OSError as e:
            return Result.failure(ErrorKind.SERVICE_QUERY_FAILED, str(e))
        if proc.returncode != 0:
            return Result.failure(
                ErrorKind.SERVICE_QUERY_FAILED,
                f"systemctl exited {proc.returncode}: {_output(proc)}",
            )
        props = dict(
            line.split("=", 1) for line in (proc.stdout or "").splitlines() if "=" in line
        )
        if props.get("LoadState", "not-found") in ("not-found", "masked"):
            return Result.failure(
                ErrorKind.SERVICE_QUERY_FAILED,
                f"unit {name} LoadState={props.get('LoadState', '')}",
            )
        if props.get("ActiveState") == "active":
            return Result.success(ServiceState.RUNNING)
        return Result.success(ServiceState.NOT_RUNNING)

    def start(self, name: str) -> Result:
        try:
            proc = _run(["systemctl", "start", name])
        except OSError as e:
            return Result.failure(ErrorKind.SERVICE_START_FAILED, str(e))
        if proc.returncode != 0:
            return Result.failure(
                ErrorKind.SERVICE_START_FAILED,
                f"systemctl start exited {proc.returncode}: {_output(proc)}",
            )
        return Result.success()


def service_manager_for(kind: str) -> ServiceManager:
    """Return the backend for ``"windows"`` or ``"systemd"``."""
    if kind == "windows":
        return WindowsServiceManager()
    if kind == "systemd":
        return SystemdServiceManager()
    raise ValueError(f"unknown service manager {kind!r}")
