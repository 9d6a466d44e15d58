"""
hvstorage CLI - Main entry point.

Usage:
    hvstorage                                    # Local cluster, default results file
    hvstorage --cluster-name Cluster01
    hvstorage -ClusterName Cluster01 -ResultsFilePath C:\\Reports\\disks.csv
    hvstorage --transport ssh --ssh-user admin --cluster-name Cluster01
    hvstorage --init-config
"""

import argparse
import getpass
import logging
import os
import sys
from pathlib import Path
from typing import List, Optional

from hvstorage import __version__
from hvstorage.core.config import TRANSPORTS, Config, get_config
from hvstorage.core.errors import ConfigurationError
from hvstorage.core.models import RunConfig
from hvstorage.core.privilege import is_running_elevated
from hvstorage.core.report import run_report
from hvstorage.core.sink import always_yes
from hvstorage.hyperv.backend import ClusterBackend, HyperVClusterBackend
from hvstorage.hyperv.powershell import LocalPowerShellRunner


logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"

_handlers: List[logging.Handler] = []


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="hvstorage",
        description="Report storage controller and path of every VM disk in a Hyper-V cluster",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  # Local cluster, results in the temp directory
  hvstorage

  # Named cluster, explicit results file, no overwrite prompt
  hvstorage --cluster-name Cluster01 --results-file-path C:\\Reports\\disks.csv --yes

  # Query nodes over SSH (OpenSSH on Windows Server)
  hvstorage --transport ssh --ssh-user CORP\\admin --cluster-name Cluster01

  # Write a default config file to ~/.hvstorage/config.yaml
  hvstorage --init-config
""",
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"%(prog)s {__version__}",
    )

    parser.add_argument(
        "--cluster-name", "-ClusterName",
        dest="cluster_name",
        default="",
        help="Cluster to query (default: the cluster this host belongs to)",
    )

    parser.add_argument(
        "--results-file-path", "-ResultsFilePath",
        dest="results_file_path",
        default=None,
        help="CSV destination (default: <temp>/ps_HyperV_GetVMStorageLocationResults.csv)",
    )

    parser.add_argument(
        "--yes", "-y",
        action="store_true",
        help="Overwrite an existing results file without asking",
    )

    parser.add_argument(
        "--transport",
        choices=TRANSPORTS,
        help="How to query the cluster (default: from config, else local)",
    )

    parser.add_argument(
        "--ssh-user",
        help="SSH username for --transport ssh",
    )

    parser.add_argument(
        "--ssh-key",
        help="SSH private key file for --transport ssh",
    )

    parser.add_argument(
        "--config",
        help="Config file (default: ~/.hvstorage/config.yaml or $HVSTORAGE_CONFIG)",
    )

    parser.add_argument(
        "--init-config",
        action="store_true",
        help="Write a default config file and exit",
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Debug logging to stderr",
    )

    return parser


def configure_logging(config: Config, verbose: bool = False):
    """Set up the root logger from the logging section of the config."""
    level = logging.DEBUG if verbose else getattr(logging, config.logging.level, logging.WARNING)

    root = logging.getLogger()
    root.setLevel(level)

    # Repeated main() calls in one process replace, not stack, our handlers
    for handler in _handlers:
        root.removeHandler(handler)
        handler.close()
    _handlers.clear()

    console = logging.StreamHandler(sys.stderr)
    _handlers.append(console)

    if config.logging.file:
        config.logging.file.parent.mkdir(parents=True, exist_ok=True)
        _handlers.append(logging.FileHandler(config.logging.file, encoding="utf-8"))

    for handler in _handlers:
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root.addHandler(handler)


def _ssh_credentials(config: Config, args):
    from hvstorage.ssh.client import SSHCredentials

    username = args.ssh_user or config.ssh.username
    if not username:
        raise ConfigurationError(
            "SSH transport requires a username: use --ssh-user or set ssh.username in the config"
        )

    key_file = args.ssh_key or (str(config.ssh.key_file) if config.ssh.key_file else None)
    password = os.environ.get("HVSTORAGE_SSH_PASS")
    if not password and not key_file:
        password = getpass.getpass(f"SSH password for {username}: ")

    return SSHCredentials(username=username, password=password or None, key_file=key_file)


def build_backend(config: Config, args, cluster_name: str = "") -> ClusterBackend:
    """Cluster backend for the selected transport."""
    transport = args.transport or config.transport

    if transport == "ssh":
        from hvstorage.ssh.runner import SSHPowerShellRunner

        runner = SSHPowerShellRunner(
            credentials=_ssh_credentials(config, args),
            default_host=config.ssh.cluster_host or cluster_name or None,
            port=config.ssh.port,
            timeout=config.ssh.timeout,
            command_timeout=config.powershell.timeout,
        )
    else:
        runner = LocalPowerShellRunner(
            executable=config.powershell.executable,
            timeout=config.powershell.timeout,
        )

    logger.debug(f"Using {transport} transport")
    return HyperVClusterBackend(runner)


def main(argv: Optional[List[str]] = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = get_config(reload=True, config_path=Path(args.config) if args.config else None)
    except (ValueError, OSError) as e:
        print(f"Error: {e}")
        return 1

    configure_logging(config, args.verbose)

    if args.init_config:
        if config.save_default_config():
            print(f"Wrote default config to {config.config_file}")
        else:
            print(f"Config already exists: {config.config_file}")
        return 0

    results_file_path = args.results_file_path
    if results_file_path is None:
        results_file_path = str(config.results_file)

    run_config = RunConfig(
        cluster_name=args.cluster_name or "",
        results_file_path=results_file_path,
    )

    return run_report(
        run_config,
        backend_factory=lambda: build_backend(config, args, run_config.cluster_name),
        confirm=always_yes if args.yes else None,
        elevated_check=is_running_elevated,
    )


if __name__ == "__main__":
    sys.exit(main())
