"""
Privilege guard.

Windows: IsUserAnAdmin via ctypes (true only in an elevated token).
POSIX: effective uid 0. Anything that prevents a definite answer is
treated as "not elevated".
"""

import ctypes
import logging
import os


logger = logging.getLogger(__name__)


def _is_admin() -> bool:
    if os.name == "nt":
        shell32 = ctypes.WinDLL("shell32", use_last_error=True)
        return bool(shell32.IsUserAnAdmin())
    return os.geteuid() == 0


def is_running_elevated() -> bool:
    """Return True if the current process has administrative rights."""
    try:
        elevated = _is_admin()
    except Exception as e:
        logger.debug(f"Elevation check failed, assuming not elevated: {e}")
        return False

    logger.debug(f"Running elevated: {elevated}")
    return elevated
