"""Data models for git-worktree-keeper."""

from .worktree import WorktreeRef, WorktreeInfo, RepositoryContext
from .operation import (
    OperationKind,
    CreateRequest,
    SwitchRequest,
    DeleteRequest,
    OperationRequest,
    InspectorFindings,
    ChangeEvent,
)
from .pipeline import (
    PipelineState,
    JobNode,
    Pipeline,
    Success,
    SoftFailure,
    HardFailure,
    PipelineResult,
)

__all__ = [
    "WorktreeRef",
    "WorktreeInfo",
    "RepositoryContext",
    "OperationKind",
    "CreateRequest",
    "SwitchRequest",
    "DeleteRequest",
    "OperationRequest",
    "InspectorFindings",
    "ChangeEvent",
    "PipelineState",
    "JobNode",
    "Pipeline",
    "Success",
    "SoftFailure",
    "HardFailure",
    "PipelineResult",
]
