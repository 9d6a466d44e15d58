"""SSH transport - client and PowerShell runner."""

from hvstorage.ssh.client import SSHClient, SSHClientOptions, SSHCredentials, CommandResult
from hvstorage.ssh.runner import SSHPowerShellRunner

__all__ = [
    "SSHClient",
    "SSHClientOptions",
    "SSHCredentials",
    "CommandResult",
    "SSHPowerShellRunner",
]
