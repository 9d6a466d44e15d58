"""
Cluster backends.

Path: hvstorage/hyperv/backend.py

ClusterBackend is what the inventory collector consumes. The Hyper-V
implementation runs FailoverClusters / Hyper-V cmdlets through a
PowerShellRunner, locally or over SSH.
"""

import logging
from typing import List

from hvstorage.core.errors import BackendError, NodeQueryError
from hvstorage.core.models import VirtualDisk, VirtualMachine
from hvstorage.hyperv import powershell
from hvstorage.hyperv.powershell import PowerShellRunner


logger = logging.getLogger(__name__)


class ClusterBackend:
    """Cluster membership and hypervisor queries. All raise BackendError."""

    def resolve_local_cluster_name(self) -> str:
        raise NotImplementedError

    def validate_cluster_reachable(self, name: str) -> bool:
        raise NotImplementedError

    def list_cluster_nodes(self, cluster_name: str) -> List[str]:
        raise NotImplementedError

    def list_vms(self, node_name: str) -> List[VirtualMachine]:
        raise NotImplementedError

    def close(self):
        pass


class HyperVClusterBackend(ClusterBackend):
    """Hyper-V failover cluster backend."""

    def __init__(self, runner: PowerShellRunner):
        self.runner = runner

    def resolve_local_cluster_name(self) -> str:
        output = self.runner.run(powershell.local_cluster_script())
        name = powershell.parse_json(output, "Get-Cluster")
        if not isinstance(name, str):
            raise BackendError(f"Unexpected Get-Cluster output: {output.strip()!r}")
        return name

    def validate_cluster_reachable(self, name: str) -> bool:
        output = self.runner.run(powershell.cluster_name_script(name))
        found = powershell.parse_json(output, "Get-Cluster")
        logger.debug(f"Get-Cluster -Name {name} returned {found!r}")
        return bool(found)

    def list_cluster_nodes(self, cluster_name: str) -> List[str]:
        output = self.runner.run(powershell.cluster_nodes_script(cluster_name))
        nodes = powershell.as_list(powershell.parse_json(output, "Get-ClusterNode"))
        return [str(node) for node in nodes]

    def list_vms(self, node_name: str) -> List[VirtualMachine]:
        if self.runner.remote_nodes:
            script = powershell.node_vms_script()
        else:
            script = powershell.node_vms_script(node_name)

        try:
            output = self.runner.run(script, host=node_name)
            raw_vms = powershell.as_list(powershell.parse_json(output, "Get-VM"))
            return [self._parse_vm(raw) for raw in raw_vms]
        except NodeQueryError:
            raise
        except BackendError as e:
            raise NodeQueryError(node_name, str(e))

    @staticmethod
    def _parse_vm(raw) -> VirtualMachine:
        if not isinstance(raw, dict) or "Name" not in raw:
            raise BackendError(f"Unexpected VM record: {raw!r}")

        disks = []
        for disk in powershell.as_list(raw.get("Disks")):
            if not isinstance(disk, dict):
                raise BackendError(f"Unexpected disk record: {disk!r}")
            disks.append(VirtualDisk(
                controller_type=str(disk.get("ControllerType") or ""),
                path=str(disk.get("Path") or ""),
            ))
        return VirtualMachine(name=str(raw["Name"]), disks=disks)

    def close(self):
        self.runner.close()
