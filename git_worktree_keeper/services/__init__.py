"""Services for git-worktree-keeper."""

from .process_runner import ProcessRunner, ProcessOutcome
from .repository_inspector import RepositoryInspector
from .pipeline_builder import PipelineBuilder
from .worktree_registry import WorktreeRegistry
from .workspace import Workspace
from .progress import ProgressReporter

__all__ = [
    "ProcessRunner",
    "ProcessOutcome",
    "RepositoryInspector",
    "PipelineBuilder",
    "WorktreeRegistry",
    "Workspace",
    "ProgressReporter",
]
