"""
git-worktree-keeper - Git worktree orchestration
"""

from .__version__ import __version__
from .config import Config
from .core import WorktreeCoordinator
from .models import ChangeEvent, OperationKind, Success, SoftFailure, HardFailure

__all__ = [
    "WorktreeCoordinator",
    "Config",
    "ChangeEvent",
    "OperationKind",
    "Success",
    "SoftFailure",
    "HardFailure",
    "__version__",
]
