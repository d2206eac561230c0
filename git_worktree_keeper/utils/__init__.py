"""Utility functions for git-worktree-keeper.

This package provides utility modules:
- paths: Worktree path resolution
- scheduling: Handing job completions back to the caller's thread
- threading: Job pool sizing for Python 3.13+ free-threading support
"""

from .paths import resolve_absolute_path, relative_to
from .scheduling import Scheduler, CallbackQueue, AsyncioScheduler
from .threading import (
    is_free_threading_enabled,
    get_python_threading_mode,
    get_optimal_worker_count,
    get_threading_info,
)

__all__ = [
    # Paths
    "resolve_absolute_path",
    "relative_to",
    # Scheduling
    "Scheduler",
    "CallbackQueue",
    "AsyncioScheduler",
    # Threading
    "is_free_threading_enabled",
    "get_python_threading_mode",
    "get_optimal_worker_count",
    "get_threading_info",
]
