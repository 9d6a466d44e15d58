"""
Inventory collector - cluster node / VM / disk walk.

Path: hvstorage/core/collector.py

Resolves the target cluster, then queries each node's hypervisor in
cluster enumeration order. A node that cannot be queried contributes
one placeholder row; it never aborts the run.
"""

import logging
import time
from typing import Callable, List, Optional

from hvstorage.core.errors import BackendError, ClusterUnresolvableError
from hvstorage.core.models import (
    VOLUME_ID_UNKNOWN,
    ClusterNodeRef,
    DiskAttachmentRecord,
    NodeQueryResult,
    ResultSet,
    VirtualMachine,
)
from hvstorage.hyperv.backend import ClusterBackend


logger = logging.getLogger(__name__)

# ...\ClusterStorage\Volume<N>\... puts N at this 0-based offset
VOLUME_ID_OFFSET = 24
VOLUME_ID_LENGTH = 1


def derive_volume_id(path: str) -> Optional[str]:
    """
    Extract the cluster shared volume id from a disk path.

    C:\\ClusterStorage\\Volume3\\VM1\\disk.vhdx -> "3"

    Returns None when the path is too short to hold the id.
    """
    end = VOLUME_ID_OFFSET + VOLUME_ID_LENGTH
    if not path or len(path) < end:
        return None
    return path[VOLUME_ID_OFFSET:end]


def build_records(vm: VirtualMachine) -> List[DiskAttachmentRecord]:
    """One record per attached hard disk, in hypervisor order."""
    records = []
    for disk in vm.disks:
        volume_id = derive_volume_id(disk.path)
        records.append(DiskAttachmentRecord(
            vm_name=vm.name,
            controller_type=disk.controller_type,
            cluster_volume_id=volume_id if volume_id is not None else VOLUME_ID_UNKNOWN,
            path=disk.path,
        ))
    return records


class InventoryCollector:
    """
    Collects disk attachment rows for every VM in a cluster.

    Usage:
        collector = InventoryCollector(backend, progress=print)
        results = collector.collect("Cluster01")
        for line in results.lines():
            print(line)
    """

    def __init__(
        self,
        backend: ClusterBackend,
        progress: Optional[Callable[[str], None]] = None,
    ):
        self.backend = backend
        self.progress = progress or (lambda message: None)

    def resolve_cluster(self, cluster_name: str) -> str:
        """Return the cluster to query, or raise ClusterUnresolvableError."""
        if not cluster_name:
            try:
                resolved = self.backend.resolve_local_cluster_name()
            except BackendError as e:
                raise ClusterUnresolvableError("", str(e))
            if not resolved:
                raise ClusterUnresolvableError("", "no cluster name returned")
            logger.info(f"Resolved local cluster: {resolved}")
            return resolved

        try:
            reachable = self.backend.validate_cluster_reachable(cluster_name)
        except BackendError as e:
            raise ClusterUnresolvableError(cluster_name, str(e))
        if not reachable:
            raise ClusterUnresolvableError(cluster_name)
        return cluster_name

    def list_nodes(self, cluster_name: str) -> List[ClusterNodeRef]:
        try:
            names = self.backend.list_cluster_nodes(cluster_name)
        except BackendError as e:
            raise ClusterUnresolvableError(cluster_name, str(e))
        logger.info(f"Cluster {cluster_name} has {len(names)} nodes")
        return [ClusterNodeRef(name=name) for name in names]

    def query_node(self, node: ClusterNodeRef) -> NodeQueryResult:
        """Query one node; failures come back as an unsuccessful result."""
        start = time.time()
        try:
            vms = self.backend.list_vms(node.name)
        except BackendError as e:
            logger.warning(f"Unable to query node {node.name}: {e}")
            return NodeQueryResult(node=node, error=str(e))

        logger.debug(
            f"Node {node.name}: {len(vms)} VMs ({(time.time() - start) * 1000:.0f}ms)"
        )
        return NodeQueryResult(node=node, vms=vms)

    def collect(self, cluster_name: str = "") -> ResultSet:
        """
        Walk the cluster and build the result set.

        Args:
            cluster_name: Target cluster, empty for the local cluster.

        Returns:
            ResultSet with one row per disk, or a placeholder row per
            node that could not be queried.

        Raises:
            ClusterUnresolvableError: cluster lookup or node listing failed.
        """
        resolved = self.resolve_cluster(cluster_name)
        nodes = self.list_nodes(resolved)
        results = ResultSet(cluster_name=resolved)

        for node in nodes:
            self.progress(f"Checking cluster node {node.name}...")
            outcome = self.query_node(node)

            if not outcome.success:
                results.add_placeholder(node.name)
                continue

            for vm in outcome.vms:
                for record in build_records(vm):
                    results.add_record(record)

        logger.info(
            f"Collected {len(results)} rows from {len(nodes)} nodes "
            f"({len(results.failed_nodes)} failed)"
        )
        return results
