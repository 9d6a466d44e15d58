"""Hyper-V cluster backend and PowerShell runners."""

from hvstorage.hyperv.backend import ClusterBackend, HyperVClusterBackend
from hvstorage.hyperv.powershell import LocalPowerShellRunner, PowerShellError, PowerShellRunner

__all__ = [
    "ClusterBackend",
    "HyperVClusterBackend",
    "LocalPowerShellRunner",
    "PowerShellError",
    "PowerShellRunner",
]
