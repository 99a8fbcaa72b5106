"""
Silent installer invocation.

Runs ``msiexec /i <package> /qn /norestart ACCESSKEY=<key>`` and blocks
until it exits.  The returned :class:`~agentdeploy.result.Result` carries
the exit code as ``value`` whenever the process actually ran; classifying
that code is left to the caller (see :class:`~agentdeploy.models.InstallOutcome`).
"""

from __future__ import annotations

import logging
import subprocess

from .models import AccessKey
from .result import ErrorKind, Result

logger = logging.getLogger("agentdeploy.installer")

MSIEXEC = "msiexec.exe"


def build_install_command(
    installer_path: str,
    access_key:     AccessKey,
    *,
    log_path:       str | None = None,
) -> list[str]:
    cmd = [MSIEXEC, "/i", installer_path, "/qn", "/norestart", f"ACCESSKEY={access_key.value}"]
    if log_path:
        cmd += ["/l*v", log_path]
    return cmd


def redact(cmd: list[str], access_key: AccessKey) -> str:
    """Command line for logging, with the access key masked."""
    return subprocess.list2cmdline(cmd).replace(access_key.value, "****")


def install_agent(
    installer_path: str,
    access_key:     AccessKey,
    *,
    log_path:       str | None   = None,
    timeout:        float | None = None,
) -> Result:
    """
    Install the agent unattended and wait for the installer to exit.

    :returns: ``Result.success(exit_code)`` when the installer ran to
              completion (whatever its exit code), otherwise an
              ``INSTALL_LAUNCH_FAILED`` or ``INSTALL_TIMED_OUT`` failure.
    """
    cmd = build_install_command(installer_path, access_key, log_path=log_path)
    logger.debug("exec: %s", redact(cmd, access_key))
    try:
        proc = subprocess.run(cmd, check=False, timeout=timeout)
    except subprocess.TimeoutExpired:
        # run() has already killed the child
        return Result.failure(
            ErrorKind.INSTALL_TIMED_OUT,
            f"installer still running after {timeout:g}s; killed",
        )
    except OSError as e:
        return Result.failure(ErrorKind.INSTALL_LAUNCH_FAILED, str(e))
    return Result.success(proc.returncode)
