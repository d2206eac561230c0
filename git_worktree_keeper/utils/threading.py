"""Job pool sizing, aware of free-threaded (no-GIL) interpreters."""

import os
import platform
import sys
from typing import Any, Dict, Optional

# Jobs mostly wait on git child processes, so a small pool is enough
GIL_WORKER_CAP = 8
FREE_THREADING_WORKER_CAP = 16


def is_free_threading_enabled() -> bool:
    """True on a 3.13+ free-threaded build running with the GIL disabled."""
    gil_check = getattr(sys, "_is_gil_enabled", None)
    return gil_check is not None and not gil_check()


def get_python_threading_mode() -> str:
    """Human-readable threading mode, shown by ``--debug``."""
    if not hasattr(sys, "_is_gil_enabled"):
        return "GIL-enabled (Python < 3.13)"
    return "free-threading" if is_free_threading_enabled() else "GIL-enabled"


def get_optimal_worker_count(user_specified: Optional[int] = None) -> int:
    """Size of the runner's job pool.

    Each pipeline keeps at most one job in flight, so extra workers only
    help when several repositories are being worked on at once.

    Args:
        user_specified: Explicit size from ``--workers`` or Config.workers

    Returns:
        Number of pool threads
    """
    if user_specified is not None and user_specified > 0:
        return user_specified

    cpus = os.cpu_count() or 1
    if is_free_threading_enabled():
        return min(FREE_THREADING_WORKER_CAP, cpus * 2)
    return min(GIL_WORKER_CAP, cpus + 2)


def get_threading_info() -> Dict[str, Any]:
    """Snapshot of the interpreter's threading setup for debug output."""
    return {
        "mode": get_python_threading_mode(),
        "free_threading": is_free_threading_enabled(),
        "cpu_count": os.cpu_count() or 1,
        "optimal_workers": get_optimal_worker_count(),
        "python_version": platform.python_version(),
    }
