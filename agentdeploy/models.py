"""
Value types shared by the provisioning steps.

None of these outlive a single run; they exist so the orchestrator can
branch on named states instead of raw strings and integers.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass

# 8-4-4-4-12 hex grouping, dashes optional, optionally wrapped in {} or ().
_ACCESS_KEY_RE = re.compile(
    r"^[{(]?[0-9a-fA-F]{8}-?[0-9a-fA-F]{4}-?[0-9a-fA-F]{4}-?"
    r"[0-9a-fA-F]{4}-?[0-9a-fA-F]{12}[)}]?$"
)

# Installer exit codes that mean the product is installed.
MSI_SUCCESS               = 0
MSI_SUCCESS_REBOOT_INIT   = 1641
MSI_SUCCESS_REBOOT_NEEDED = 3010

SUCCESS_CODES = frozenset({MSI_SUCCESS, MSI_SUCCESS_REBOOT_INIT, MSI_SUCCESS_REBOOT_NEEDED})


@dataclass(frozen=True)
class AccessKey:
    """Organization credential handed to the installer as ``ACCESSKEY=``."""
    value: str

    @classmethod
    def parse(cls, raw: str) -> "AccessKey":
        """
        Validate the GUID-like shape of *raw* and wrap it.

        The key is otherwise opaque: no normalisation of braces, case or
        dashes is attempted.

        :raises ValueError: If *raw* does not look like a GUID.
        """
        candidate = (raw or "").strip()
        if not _ACCESS_KEY_RE.match(candidate):
            raise ValueError(f"access key {raw!r} is not GUID-shaped")
        return cls(candidate)

    def __str__(self) -> str:
        return self.value

    def __repr__(self) -> str:
        return "AccessKey(****)"


@dataclass(frozen=True)
class GroupPath:
    """Console group the device is moved into after install."""
    root:   str
    group:  str = ""
    parent: str = ""

    @property
    def wanted(self) -> bool:
        """A path is only assigned when a group name is given."""
        return bool(self.group)

    def __str__(self) -> str:
        if not self.group:
            return self.root
        if self.parent:
            return f"{self.root}/{self.parent}/{self.group}"
        return f"{self.root}/{self.group}"


class ServiceState(enum.Enum):
    ABSENT      = "absent"
    RUNNING     = "running"
    NOT_RUNNING = "not-running"


class InstallOutcome(enum.Enum):
    SUCCESS = "success"
    FAILURE = "failure"

    @classmethod
    def classify(cls, exit_code: int) -> "InstallOutcome":
        return cls.SUCCESS if exit_code in SUCCESS_CODES else cls.FAILURE
