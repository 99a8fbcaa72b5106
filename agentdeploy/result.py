"""
Result values returned by the provisioning steps.

Steps on the critical path report failure by returning a :class:`Result`
with an :class:`ErrorKind` instead of raising, so each call site in the
orchestrator shows which failures it handles.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any


class ErrorKind(enum.Enum):
    SERVICE_QUERY_FAILED    = "service query failed"
    SERVICE_START_FAILED    = "service start failed"
    DOWNLOAD_FAILED         = "download failed"
    INSTALL_LAUNCH_FAILED   = "installer could not be launched"
    INSTALL_TIMED_OUT       = "installer timed out"
    INSTALLER_NON_SUCCESS   = "installer reported failure"
    GROUP_ASSIGNMENT_FAILED = "group assignment failed"


@dataclass(frozen=True)
class Result:
    """Outcome of one step: ``error`` is ``None`` on success."""
    value:  Any              = None
    error:  ErrorKind | None = None
    detail: str              = ""

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def success(cls, value: Any = None) -> "Result":
        return cls(value=value)

    @classmethod
    def failure(cls, kind: ErrorKind, detail: str = "", value: Any = None) -> "Result":
        return cls(value=value, error=kind, detail=detail)

    def describe(self) -> str:
        if self.ok:
            return "ok"
        return f"{self.error.value}: {self.detail}" if self.detail else self.error.value
