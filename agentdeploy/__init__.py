"""
agentdeploy: install and enrol the endpoint-management agent.

Command-line usage::

    agentdeploy --access-key aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee \\
                --parent-group-name IT --group-name Engineering

Library usage::

    import agentdeploy
    from agentdeploy.runlog import RunLog

    with RunLog("/tmp/agentdeploy.log"):
        exit_code = agentdeploy.provision(
            "aaaaaaaa-bbbb-cccc-dddd-eeeeeeeeeeee",
            group_name        = "Engineering",
            parent_group_name = "IT",
        )

The run stops early if the agent service is already running (or can be
started).  Otherwise the latest installer is downloaded, installed
silently, and the device is moved to ``Default Group/IT/Engineering``.
"""

from __future__ import annotations

__version__ = "1.0.0"

from .config      import Config                                 # noqa: F401,E402
from .models      import AccessKey, GroupPath, ServiceState     # noqa: F401,E402
from .provisioner import Provisioner, provision                 # noqa: F401,E402
from .result      import ErrorKind, Result                      # noqa: F401,E402

__all__ = [
    "AccessKey",
    "Config",
    "ErrorKind",
    "GroupPath",
    "Provisioner",
    "Result",
    "ServiceState",
    "provision",
]
