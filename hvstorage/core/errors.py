"""
Error taxonomy for hvstorage.

Path: hvstorage/core/errors.py

Every error that ends a stage of the report carries the process exit
code the CLI returns for it. NodeQueryError is the only non-fatal one:
the collector turns it into a placeholder row and moves on.
"""

from typing import Optional


class HvStorageError(Exception):
    """Base class for all report errors."""

    exit_code = 1


class NotElevatedError(HvStorageError):
    """Process is not running with administrative rights."""

    exit_code = 3

    def __init__(self, message: Optional[str] = None):
        super().__init__(message or (
            "You do not have Administrator rights to run this script.\n"
            "Please re-run it from an elevated (Run as Administrator) console."
        ))


# =============================================================================
# Output sink
# =============================================================================

class SinkError(HvStorageError):
    """Results file could not be prepared."""


class EmptyOutputPathError(SinkError):
    exit_code = 4

    def __init__(self):
        super().__init__("Results file path is empty. Specify --results-file-path.")


class UserDeclinedOverwriteError(SinkError):
    exit_code = 5

    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Existing file {path} was not overwritten. Nothing to do.")


class FileCreateError(SinkError):
    exit_code = 6

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to create results file {path}: {reason}")


class FileAppendUnavailableError(SinkError):
    exit_code = 7

    def __init__(self, path: str, reason: str):
        self.path = path
        self.reason = reason
        super().__init__(f"Unable to open results file {path} for append: {reason}")


# =============================================================================
# Cluster / backend
# =============================================================================

class ClusterUnresolvableError(HvStorageError):
    """Target cluster could not be resolved or reached."""

    exit_code = 8

    def __init__(self, cluster_name: str, reason: Optional[str] = None):
        self.cluster_name = cluster_name
        self.reason = reason
        target = f"cluster {cluster_name}" if cluster_name else "the local cluster"
        message = f"Unable to connect to {target}"
        if reason:
            message += f": {reason}"
        super().__init__(message)


class BackendError(HvStorageError):
    """A cluster or hypervisor management call failed."""


class NodeQueryError(BackendError):
    """Hypervisor query for a single node failed (non-fatal)."""

    def __init__(self, node_name: str, reason: str):
        self.node_name = node_name
        self.reason = reason
        super().__init__(f"{node_name}: {reason}")


class ConfigurationError(HvStorageError):
    """Settings are missing or inconsistent."""
