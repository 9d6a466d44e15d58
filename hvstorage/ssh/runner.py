"""
PowerShell over SSH.

Path: hvstorage/ssh/runner.py

One connection per call: the report touches each node exactly once and
in sequence, so there is nothing to pool.
"""

import logging
import socket
from typing import Optional

import paramiko

from hvstorage.hyperv.powershell import (
    DEFAULT_EXECUTABLE,
    PowerShellError,
    PowerShellRunner,
    build_arguments,
)
from hvstorage.ssh.client import (
    SSHClient,
    SSHClientOptions,
    SSHCredentials,
    categorize_ssh_error,
)


logger = logging.getLogger(__name__)


class SSHPowerShellRunner(PowerShellRunner):
    """
    Runs scripts on the target host through its OpenSSH server.

    Cluster-level scripts (host=None) go to default_host; VM queries go
    to the node itself.
    """

    remote_nodes = True

    def __init__(
        self,
        credentials: SSHCredentials,
        default_host: Optional[str] = None,
        port: int = 22,
        timeout: int = 30,
        command_timeout: int = 120,
        executable: str = DEFAULT_EXECUTABLE,
        client_factory=SSHClient,
    ):
        self.credentials = credentials
        self.default_host = default_host
        self.port = port
        self.timeout = timeout
        self.command_timeout = command_timeout
        self.executable = executable
        self.client_factory = client_factory

    def build_command(self, script: str) -> str:
        return " ".join([self.executable] + build_arguments(script))

    def run(self, script: str, host: Optional[str] = None) -> str:
        target = host or self.default_host
        if not target:
            raise PowerShellError(
                "No host to run cluster commands on. "
                "Set ssh.cluster_host in the config or pass --cluster-name."
            )

        options = SSHClientOptions(
            host=target,
            credentials=self.credentials,
            port=self.port,
            timeout=self.timeout,
            command_timeout=self.command_timeout,
        )
        logger.debug(f"Running PowerShell on {target} over SSH: {script}")

        try:
            client = self.client_factory(options)
            with client:
                result = client.execute(self.build_command(script))
        except (paramiko.SSHException, socket.error, OSError, ValueError) as e:
            category = categorize_ssh_error(e)
            raise PowerShellError(f"SSH {category.value}: {e}", host=target)

        logger.debug(repr(result))

        if not result.success:
            error = (result.stderr or result.stdout).strip()
            raise PowerShellError(
                error or f"PowerShell exited with status {result.exit_status}",
                host=target,
                exit_status=result.exit_status,
            )

        return result.stdout
