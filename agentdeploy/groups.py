"""
Post-install group assignment.

Moves the device into a console group with the installed agent's own CLI:

1. ``<agent> --setgrp "<path>"``, blocking.
2. ``<agent> --deregister``, dispatched detached and never awaited, so
   the agent drops its provisional identity and re-registers under the
   new group on its next check-in.

Failures are logged and returned; they never change the run's exit code.
"""

from __future__ import annotations

import logging
import os
import subprocess

from .models import GroupPath
from .result import ErrorKind, Result
from .runlog import CONSOLE

logger = logging.getLogger("agentdeploy.groups")


def _detach_kwargs() -> dict:
    if os.name == "nt":
        flags = getattr(subprocess, "DETACHED_PROCESS", 0) | getattr(
            subprocess, "CREATE_NEW_PROCESS_GROUP", 0
        )
        return {"creationflags": flags}
    return {"start_new_session": True}  # detach from parent process group


class GroupAssigner:
    """Runs the agent CLI at *agent_binary* to place the device in a group."""

    def __init__(self, agent_binary: str) -> None:
        self._agent_binary = agent_binary

    def assign(self, path: GroupPath) -> list[Result]:
        """
        Set the group to *path*, then fire off a deregister.

        The deregister is dispatched whatever the set-group outcome was.
        Returns the results of both dispatches, in order.
        """
        results = [self.set_group(str(path)), self.deregister()]
        for result in results:
            if not result.ok:
                logger.error("Group assignment: %s", result.describe(), extra=CONSOLE)
        return results

    def set_group(self, full_path: str) -> Result:
        cmd = [self._agent_binary, "--setgrp", full_path]
        logger.debug("exec: %s", subprocess.list2cmdline(cmd))
        try:
            proc = subprocess.run(cmd, capture_output=True, text=True, check=False)
        except OSError as e:
            return Result.failure(ErrorKind.GROUP_ASSIGNMENT_FAILED, f"--setgrp: {e}")
        if proc.returncode != 0:
            output = ((proc.stdout or "") + (proc.stderr or "")).strip()
            return Result.failure(
                ErrorKind.GROUP_ASSIGNMENT_FAILED,
                f"--setgrp exited {proc.returncode}: {output}",
                value=proc.returncode,
            )
        logger.info("Device assigned to group '%s'", full_path, extra=CONSOLE)
        return Result.success(proc.returncode)

    def deregister(self) -> Result:
        """
        Dispatch ``--deregister`` and return immediately.

        The child is intentionally left unawaited; only a launch failure is
        reported.
        """
        cmd = [self._agent_binary, "--deregister"]
        logger.debug("exec (detached): %s", subprocess.list2cmdline(cmd))
        try:
            subprocess.Popen(
                cmd,
                stdin=subprocess.DEVNULL,
                stdout=subprocess.DEVNULL,
                stderr=subprocess.DEVNULL,
                **_detach_kwargs(),
            )
        except OSError as e:
            return Result.failure(ErrorKind.GROUP_ASSIGNMENT_FAILED, f"--deregister: {e}")
        logger.info("Deregister dispatched; agent will re-register under the new group")
        return Result.success()
