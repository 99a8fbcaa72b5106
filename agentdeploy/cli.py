"""
Command-line entry point.

    agentdeploy --access-key 0123abcd-... [--group-name Eng] [--parent-group-name IT]

The PowerShell-style spellings ``-AccessKey``, ``-GroupName`` and
``-ParentGroupName`` are accepted too.  Exit status: 0 when the agent is
running afterwards, 1 when it is not, 2 for usage errors.
"""

from __future__ import annotations

import argparse
import logging
import sys

from . import __version__
from .config import Config, SERVICE_MANAGERS
from .models import AccessKey, GroupPath
from .provisioner import Provisioner
from .runlog import RunLog


def _access_key(raw: str) -> AccessKey:
    try:
        return AccessKey.parse(raw)
    except ValueError as e:
        raise argparse.ArgumentTypeError(str(e)) from None


def build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="agentdeploy",
        description="Install the endpoint agent if needed and place the device in a console group.",
        allow_abbrev=False,
    )
    p.add_argument("--access-key", "-AccessKey", dest="access_key", required=True, type=_access_key,
                   metavar="KEY", help="organization access key (GUID)")
    p.add_argument("--group-name", "-GroupName", dest="group_name", default="",
                   help="group to move the device into after install")
    p.add_argument("--parent-group-name", "-ParentGroupName", dest="parent_group_name", default="",
                   help="parent of --group-name, directly under the root group")

    cfg = p.add_argument_group("configuration (defaults from AGENTDEPLOY_* environment variables)")
    cfg.add_argument("--installer-url")
    cfg.add_argument("--installer-path", help="where to save the downloaded installer")
    cfg.add_argument("--installer-log", dest="installer_log_path", help="write a verbose msiexec log here")
    cfg.add_argument("--log-file", dest="log_path")
    cfg.add_argument("--agent-bin", dest="agent_binary")
    cfg.add_argument("--service-name")
    cfg.add_argument("--root-group")
    cfg.add_argument("--service-manager", choices=SERVICE_MANAGERS)
    cfg.add_argument("--download-timeout", type=float, metavar="SECONDS")
    cfg.add_argument("--install-timeout", type=float, metavar="SECONDS")

    out = p.add_mutually_exclusive_group()
    out.add_argument("-v", "--verbose", action="store_true", help="also log command lines to the log file")
    out.add_argument("-q", "--quiet", action="store_true", help="log to the file only")
    p.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    return p


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        config = Config.load(
            installer_url      = args.installer_url,
            installer_path     = args.installer_path,
            log_path           = args.log_path,
            agent_binary       = args.agent_binary,
            service_name       = args.service_name,
            root_group         = args.root_group,
            service_manager    = args.service_manager,
            installer_log_path = args.installer_log_path,
            download_timeout   = args.download_timeout,
            install_timeout    = args.install_timeout,
        )
    except ValueError as e:
        parser.error(str(e))

    group_path = GroupPath(config.root_group, args.group_name.strip(), args.parent_group_name.strip())
    level = logging.DEBUG if args.verbose else logging.INFO

    with RunLog(config.log_path, level=level, echo=not args.quiet) as run_log:
        run_log.log(f"agentdeploy {__version__} starting (log: {config.log_path})")
        return Provisioner(config).run(args.access_key, group_path)


if __name__ == "__main__":
    sys.exit(main())
