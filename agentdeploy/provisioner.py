"""
Provisioning orchestrator.

Checks the agent service and either stops early (running, or started),
or downloads and silently installs the agent, then optionally moves the
device into a console group.  Every step runs once, in sequence.

Collaborators are passed in so the flow can run against fakes::

    provisioner = Provisioner(
        Config.load(),
        service_manager = WindowsServiceManager(),
        downloader      = download,
        installer       = install_agent,
        group_assigner  = GroupAssigner(agent_binary),
    )
    exit_code = provisioner.run(AccessKey.parse(key), GroupPath("Default Group", "Eng"))
"""

from __future__ import annotations

import logging
from typing import Callable

from .config    import Config
from .download  import download
from .groups    import GroupAssigner
from .installer import install_agent
from .models    import (
    MSI_SUCCESS_REBOOT_INIT,
    MSI_SUCCESS_REBOOT_NEEDED,
    AccessKey,
    GroupPath,
    InstallOutcome,
    ServiceState,
)
from .result    import ErrorKind, Result
from .runlog    import CONSOLE
from .service   import ServiceManager, service_manager_for

logger = logging.getLogger("agentdeploy")

EXIT_OK      = 0
EXIT_FAILURE = 1


class Provisioner:
    """Runs one provisioning pass and returns the process exit code."""

    def __init__(
        self,
        config:          Config,
        *,
        service_manager: ServiceManager | None         = None,
        downloader:      Callable[..., Result]         = download,
        installer:       Callable[..., Result]         = install_agent,
        group_assigner:  GroupAssigner | None          = None,
    ) -> None:
        self._config          = config
        self._service_manager = service_manager or service_manager_for(config.effective_service_manager)
        self._downloader      = downloader
        self._installer       = installer
        self._group_assigner  = group_assigner or GroupAssigner(config.agent_binary)

    def run(self, access_key: AccessKey, group_path: GroupPath) -> int:
        cfg = self._config

        # ── Step 1: Is the agent already here? ───────────────────────────────
        state = self._service_manager.inspect(cfg.service_name)
        if state is ServiceState.RUNNING:
            logger.info("Agent service '%s' is installed and running", cfg.service_name, extra=CONSOLE)
            return EXIT_OK
        if state is ServiceState.NOT_RUNNING:
            return self._start_existing()
        logger.info("Agent service '%s' not found; installing", cfg.service_name, extra=CONSOLE)

        # ── Step 2: Download the installer ───────────────────────────────────
        logger.info("Downloading installer from %s", cfg.installer_url, extra=CONSOLE)
        fetched = self._downloader(cfg.installer_url, cfg.installer_path, timeout=cfg.download_timeout)
        if not fetched.ok:
            logger.error("Installer download failed: %s", fetched.describe(), extra=CONSOLE)
            return EXIT_FAILURE
        logger.info("Installer saved to %s", cfg.installer_path)

        # ── Step 3: Silent install ───────────────────────────────────────────
        logger.info("Running installer", extra=CONSOLE)
        installed = self._installer(
            cfg.installer_path, access_key,
            log_path=cfg.installer_log_path, timeout=cfg.install_timeout,
        )
        if not installed.ok:
            logger.error("Agent install failed: %s", installed.describe(), extra=CONSOLE)
            return EXIT_FAILURE

        exit_code = installed.value
        if InstallOutcome.classify(exit_code) is InstallOutcome.FAILURE:
            logger.error(
                "Agent install failed: %s (exit code %d)",
                ErrorKind.INSTALLER_NON_SUCCESS.value, exit_code, extra=CONSOLE,
            )
            return EXIT_FAILURE
        logger.info("Agent installed (installer exit code %d)", exit_code, extra=CONSOLE)
        if exit_code == MSI_SUCCESS_REBOOT_INIT:
            logger.warning("Installer initiated a reboot", extra=CONSOLE)
        elif exit_code == MSI_SUCCESS_REBOOT_NEEDED:
            logger.warning("A reboot is required to complete the installation", extra=CONSOLE)

        # ── Step 4: Optional group assignment ────────────────────────────────
        if group_path.wanted:
            logger.info("Assigning device to group '%s'", group_path, extra=CONSOLE)
            self._group_assigner.assign(group_path)
        elif group_path.parent:
            logger.warning(
                "Parent group '%s' given without a group name; skipping group assignment",
                group_path.parent, extra=CONSOLE,
            )
        return EXIT_OK

    def _start_existing(self) -> int:
        name = self._config.service_name
        logger.info("Agent service '%s' is installed but not running; starting it", name, extra=CONSOLE)
        started = self._service_manager.start(name)
        if not started.ok:
            logger.error(
                "Could not start agent service '%s' (%s). Start it manually or "
                "uninstall the agent and run this again.",
                name, started.describe(), extra=CONSOLE,
            )
            return EXIT_FAILURE
        logger.info("Agent service '%s' started", name, extra=CONSOLE)
        return EXIT_OK


def provision(
    access_key:        str,
    group_name:        str            = "",
    parent_group_name: str            = "",
    *,
    config:            Config | None  = None,
) -> int:
    """
    Validate *access_key*, then run a :class:`Provisioner` with default collaborators.

    Logging handlers are the caller's concern (see :class:`~agentdeploy.runlog.RunLog`).

    :raises ValueError: If *access_key* is not GUID-shaped.
    """
    key = AccessKey.parse(access_key)
    cfg = config or Config.load()
    path = GroupPath(cfg.root_group, group_name or "", parent_group_name or "")
    return Provisioner(cfg).run(key, path)
