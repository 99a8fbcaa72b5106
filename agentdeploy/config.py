"""
Run configuration.

Every path and URL the provisioning steps touch lives on one frozen
:class:`Config` built at startup.  Each field resolves as: explicit value,
then ``AGENTDEPLOY_*`` environment variable, then the built-in default.
"""

from __future__ import annotations

import os
import tempfile
from dataclasses import dataclass

# Default paths; can be overridden by environment variables or CLI flags
DEFAULT_INSTALLER_URL = "https://download.endpoint-agent.com/windows/latest/AgentInstaller.msi"
DEFAULT_AGENT_BIN     = r"C:\Program Files\Endpoint Agent\agent.exe"
DEFAULT_SERVICE_NAME  = "EndpointAgent"
DEFAULT_ROOT_GROUP    = "Default Group"

SERVICE_MANAGERS = ("auto", "windows", "systemd")


def _resolve(explicit: str | None, env_var: str, default: str | None) -> str | None:
    if explicit:
        return explicit
    from_env = os.environ.get(env_var, "").strip()
    if from_env:
        return from_env
    return default


def _resolve_seconds(explicit: float | str | None, env_var: str) -> float | None:
    raw = _resolve(None if explicit is None else str(explicit), env_var, None)
    if raw is None or raw == "":
        return None
    try:
        seconds = float(raw)
    except ValueError:
        raise ValueError(f"{env_var}: expected seconds, got {raw!r}") from None
    if seconds <= 0:
        raise ValueError(f"{env_var}: timeout must be positive, got {raw!r}")
    return seconds


@dataclass(frozen=True)
class Config:
    installer_url:      str
    installer_path:     str
    log_path:           str
    agent_binary:       str
    service_name:       str
    root_group:         str
    service_manager:    str          = "auto"
    installer_log_path: str | None   = None
    download_timeout:   float | None = None
    install_timeout:    float | None = None

    @classmethod
    def load(
        cls,
        *,
        installer_url:      str | None          = None,
        installer_path:     str | None          = None,
        log_path:           str | None          = None,
        agent_binary:       str | None          = None,
        service_name:       str | None          = None,
        root_group:         str | None          = None,
        service_manager:    str | None          = None,
        installer_log_path: str | None          = None,
        download_timeout:   float | str | None  = None,
        install_timeout:    float | str | None  = None,
    ) -> "Config":
        """
        Build a config from explicit values, the environment and defaults.

        :raises ValueError: On an unknown service manager or a malformed timeout.
        """
        tmp = tempfile.gettempdir()
        manager = _resolve(service_manager, "AGENTDEPLOY_SERVICE_MANAGER", "auto").lower()
        if manager not in SERVICE_MANAGERS:
            raise ValueError(
                f"unknown service manager {manager!r}; expected one of {', '.join(SERVICE_MANAGERS)}"
            )
        return cls(
            installer_url      = _resolve(installer_url,  "AGENTDEPLOY_INSTALLER_URL",  DEFAULT_INSTALLER_URL),
            installer_path     = _resolve(installer_path, "AGENTDEPLOY_INSTALLER_PATH",
                                          os.path.join(tmp, "AgentInstaller.msi")),
            log_path           = _resolve(log_path,       "AGENTDEPLOY_LOG_FILE",
                                          os.path.join(tmp, "agentdeploy.log")),
            agent_binary       = _resolve(agent_binary,   "AGENTDEPLOY_AGENT_BIN",      DEFAULT_AGENT_BIN),
            service_name       = _resolve(service_name,   "AGENTDEPLOY_SERVICE_NAME",   DEFAULT_SERVICE_NAME),
            root_group         = _resolve(root_group,     "AGENTDEPLOY_ROOT_GROUP",     DEFAULT_ROOT_GROUP),
            service_manager    = manager,
            installer_log_path = _resolve(installer_log_path, "AGENTDEPLOY_INSTALLER_LOG", None),
            download_timeout   = _resolve_seconds(download_timeout, "AGENTDEPLOY_DOWNLOAD_TIMEOUT"),
            install_timeout    = _resolve_seconds(install_timeout,  "AGENTDEPLOY_INSTALL_TIMEOUT"),
        )

    @property
    def effective_service_manager(self) -> str:
        if self.service_manager != "auto":
            return self.service_manager
        return "windows" if os.name == "nt" else "systemd"
