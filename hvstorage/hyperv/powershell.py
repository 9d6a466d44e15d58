"""
PowerShell scripts and the local PowerShell runner.

Path: hvstorage/hyperv/powershell.py

Scripts emit JSON (ConvertTo-Json) so output parsing does not depend on
console formatting. They are passed as -EncodedCommand to avoid shell
quoting of cluster and node names.
"""

import base64
import json
import logging
import subprocess
import time
from typing import Any, List, Optional

from hvstorage.core.errors import BackendError


logger = logging.getLogger(__name__)

DEFAULT_EXECUTABLE = "powershell.exe"
DEFAULT_TIMEOUT = 120


class PowerShellError(BackendError):
    """PowerShell could not be run or the script failed."""

    def __init__(self, message: str, host: Optional[str] = None, exit_status: Optional[int] = None):
        self.host = host
        self.exit_status = exit_status
        super().__init__(message)


# =============================================================================
# Script building
# =============================================================================

def quote(value: str) -> str:
    """Single-quote a PowerShell string literal."""
    return "'" + value.replace("'", "''") + "'"


def encode_command(script: str) -> str:
    """Base64 of the UTF-16LE script, as -EncodedCommand expects."""
    return base64.b64encode(script.encode("utf-16-le")).decode("ascii")


def build_arguments(script: str) -> List[str]:
    return ["-NoProfile", "-NonInteractive", "-EncodedCommand", encode_command(script)]


def local_cluster_script() -> str:
    return "$ErrorActionPreference = 'Stop'; (Get-Cluster).Name | ConvertTo-Json -Compress"


def cluster_name_script(cluster_name: str) -> str:
    return (
        "$ErrorActionPreference = 'Stop'; "
        f"(Get-Cluster -Name {quote(cluster_name)}).Name | ConvertTo-Json -Compress"
    )


def cluster_nodes_script(cluster_name: str) -> str:
    return (
        "$ErrorActionPreference = 'Stop'; "
        "ConvertTo-Json -Compress -InputObject @("
        f"Get-ClusterNode -Cluster {quote(cluster_name)} | ForEach-Object {{ $_.Name }})"
    )


def node_vms_script(node_name: Optional[str] = None) -> str:
    """VMs and hard disks; without node_name the local host is queried."""
    target = f" -ComputerName {quote(node_name)}" if node_name else ""
    return (
        "$ErrorActionPreference = 'Stop'; "
        "ConvertTo-Json -Depth 4 -Compress -InputObject @("
        f"Get-VM{target} | ForEach-Object {{ "
        "[pscustomobject]@{ Name = $_.Name; Disks = @("
        "Get-VMHardDiskDrive -VM $_ | ForEach-Object { "
        "[pscustomobject]@{ ControllerType = [string]$_.ControllerType; Path = [string]$_.Path } }) } })"
    )


# =============================================================================
# Output parsing
# =============================================================================

def parse_json(output: str, what: str) -> Any:
    text = output.strip()
    if not text:
        return None
    try:
        return json.loads(text)
    except ValueError as e:
        raise PowerShellError(f"Unparseable {what} output: {e}")


def as_list(value: Any) -> List[Any]:
    """ConvertTo-Json collapses a one-item pipeline to a bare object."""
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]


# =============================================================================
# Runners
# =============================================================================

class PowerShellRunner:
    """
    Runs a PowerShell script and returns its stdout.

    remote_nodes tells the backend whether list_vms connects to the node
    itself (True) or must pass -ComputerName from the management host.
    """

    remote_nodes = False

    def run(self, script: str, host: Optional[str] = None) -> str:
        raise NotImplementedError

    def close(self):
        pass


class LocalPowerShellRunner(PowerShellRunner):
    """Runs scripts with the local powershell.exe; host is ignored."""

    def __init__(self, executable: str = DEFAULT_EXECUTABLE, timeout: int = DEFAULT_TIMEOUT):
        self.executable = executable
        self.timeout = timeout

    def run(self, script: str, host: Optional[str] = None) -> str:
        logger.debug(f"Running local PowerShell: {script}")
        start = time.time()

        try:
            completed = subprocess.run(
                [self.executable] + build_arguments(script),
                capture_output=True,
                encoding="utf-8",
                errors="replace",
                timeout=self.timeout,
            )
        except FileNotFoundError:
            raise PowerShellError(f"PowerShell executable not found: {self.executable}")
        except subprocess.TimeoutExpired:
            raise PowerShellError(f"PowerShell timed out after {self.timeout}s")
        except OSError as e:
            raise PowerShellError(f"Unable to start PowerShell: {e}")

        logger.debug(
            f"PowerShell exited {completed.returncode} in {(time.time() - start) * 1000:.0f}ms"
        )

        if completed.returncode != 0:
            error = (completed.stderr or completed.stdout or "").strip()
            raise PowerShellError(
                error or f"PowerShell exited with status {completed.returncode}",
                exit_status=completed.returncode,
            )

        return completed.stdout
