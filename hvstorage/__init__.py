"""
hvstorage - Hyper-V cluster VM storage location report.

Usage:
    hvstorage
    hvstorage --cluster-name Cluster01 --results-file-path C:\\Reports\\disks.csv
"""

__version__ = "1.0.0"

from hvstorage.core.config import Config, get_config
from hvstorage.core.models import RunConfig, ResultSet, DiskAttachmentRecord
from hvstorage.core.collector import InventoryCollector, derive_volume_id
from hvstorage.core.privilege import is_running_elevated
from hvstorage.core.sink import prepare_sink, write_results
from hvstorage.core.report import run_report
from hvstorage.hyperv.backend import ClusterBackend, HyperVClusterBackend

__all__ = [
    # Version
    "__version__",
    # Config
    "Config",
    "get_config",
    "RunConfig",
    # Report
    "ResultSet",
    "DiskAttachmentRecord",
    "InventoryCollector",
    "derive_volume_id",
    "is_running_elevated",
    "prepare_sink",
    "write_results",
    "run_report",
    # Backends
    "ClusterBackend",
    "HyperVClusterBackend",
]
