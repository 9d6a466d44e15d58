"""
Report workflow.

Path: hvstorage/core/report.py

Runs the stages in order: privilege guard, output sink, inventory
collection, single write of the results. The first failing stage ends
the run with its message and exit code.
"""

import logging
from typing import Callable, Optional

from hvstorage.core.collector import InventoryCollector
from hvstorage.core.errors import HvStorageError, NotElevatedError
from hvstorage.core.models import RunConfig
from hvstorage.core.privilege import is_running_elevated
from hvstorage.core.sink import ConfirmCallback, prepare_sink, write_results
from hvstorage.hyperv.backend import ClusterBackend


logger = logging.getLogger(__name__)


def run_report(
    run_config: RunConfig,
    backend_factory: Callable[[], ClusterBackend],
    confirm: Optional[ConfirmCallback] = None,
    elevated_check: Callable[[], bool] = is_running_elevated,
    output: Callable[[str], None] = print,
) -> int:
    """
    Produce the VM storage report.

    Args:
        run_config: Cluster and results file for this run.
        backend_factory: Builds the cluster backend; only called once the
            guard and sink have passed.
        confirm: Overwrite confirmation (default: interactive prompt).
        elevated_check: Privilege guard.
        output: Sink for operator-facing messages.

    Returns:
        Process exit code, 0 on success.
    """
    try:
        if not elevated_check():
            raise NotElevatedError()

        path = prepare_sink(run_config.results_file_path, allow_append=False, confirm=confirm)

        backend = backend_factory()
        try:
            collector = InventoryCollector(backend, progress=output)
            results = collector.collect(run_config.cluster_name)
        finally:
            backend.close()

        write_results(path, results)

    except HvStorageError as e:
        logger.debug(f"Report aborted: {type(e).__name__}")
        output(str(e))
        return e.exit_code

    if results.failed_nodes:
        output(f"Unable to retrieve data from {len(results.failed_nodes)} node(s): "
               f"{', '.join(results.failed_nodes)}")
    output(f"Script complete. Results saved to {path}")
    return 0
