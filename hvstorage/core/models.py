"""
Report data models.

Dataclasses for a single run: the run configuration, what the
hypervisor reports per node, and the rows that end up in the CSV.
Nothing here outlives the process.
"""

from dataclasses import dataclass, field
from typing import List, Optional


RESULTS_HEADER = "VMName,ControllerType,ClusterStorageDiskId,Path"
PLACEHOLDER_ROW = "Unable to retrieve data for cluster node {node}"
VOLUME_ID_UNKNOWN = "n/a"


@dataclass(frozen=True)
class RunConfig:
    """Command-line input for one run."""

    cluster_name: str
    results_file_path: str


@dataclass(frozen=True)
class ClusterNodeRef:
    name: str


@dataclass
class VirtualDisk:
    """Hard disk attachment as reported by the hypervisor."""

    controller_type: str
    path: str


@dataclass
class VirtualMachine:
    name: str
    disks: List[VirtualDisk] = field(default_factory=list)


@dataclass
class DiskAttachmentRecord:
    """One CSV row."""

    vm_name: str
    controller_type: str
    cluster_volume_id: str
    path: str

    def to_row(self) -> str:
        # No quoting: a comma inside a field shifts the columns of that row.
        return ",".join([self.vm_name, self.controller_type, self.cluster_volume_id, self.path])


@dataclass
class NodeQueryResult:
    """Outcome of querying one node: VMs on success, a reason on failure."""

    node: ClusterNodeRef
    vms: List[VirtualMachine] = field(default_factory=list)
    error: Optional[str] = None

    @property
    def success(self) -> bool:
        return self.error is None

    def __repr__(self) -> str:
        if self.success:
            return f"NodeQueryResult(node={self.node.name}, success=True, vms={len(self.vms)})"
        return f"NodeQueryResult(node={self.node.name}, success=False, error={self.error!r})"


@dataclass
class ResultSet:
    """Header plus rows in node, VM, disk enumeration order."""

    cluster_name: str = ""
    rows: List[str] = field(default_factory=list)
    failed_nodes: List[str] = field(default_factory=list)

    header = RESULTS_HEADER

    def add_record(self, record: DiskAttachmentRecord):
        self.rows.append(record.to_row())

    def add_placeholder(self, node_name: str):
        self.rows.append(PLACEHOLDER_ROW.format(node=node_name))
        self.failed_nodes.append(node_name)

    def lines(self) -> List[str]:
        return [self.header] + list(self.rows)

    def __len__(self) -> int:
        return len(self.rows)
