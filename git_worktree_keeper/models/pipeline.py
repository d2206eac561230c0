"""Job graph and pipeline result models."""
from enum import Enum
from dataclasses import dataclass, field
from typing import List, Optional, Union

from git_worktree_keeper.exceptions import StepFailedError, WorktreeKeeperError
from git_worktree_keeper.models.operation import OperationRequest
from git_worktree_keeper.models.worktree import RepositoryContext


class PipelineState(Enum):
    """Lifecycle of one operation."""
    IDLE = "idle"
    PRECONDITION_CHECK = "precondition-check"
    PIPELINE_EXECUTING = "pipeline-executing"
    SUCCESS = "success"
    SOFT_FAILURE = "soft-failure"
    HARD_FAILURE = "hard-failure"

    @property
    def is_terminal(self) -> bool:
        return self in (PipelineState.SUCCESS, PipelineState.SOFT_FAILURE, PipelineState.HARD_FAILURE)


@dataclass(eq=False)
class JobNode:
    """A single external command in a pipeline.

    ``on_success`` / ``on_failure`` point at the next node; None ends the
    pipeline. A failing required node ends the pipeline as a hard failure
    regardless of its ``on_failure`` edge.
    """
    name: str
    args: List[str]
    cwd: str
    status_message: str
    required: bool = True
    on_success: Optional["JobNode"] = None
    on_failure: Optional["JobNode"] = None
    soft_failure_message: Optional[str] = None

    def then(self, node: "JobNode", on_failure: bool = False) -> "JobNode":
        """Chain ``node`` after this one; with ``on_failure`` it also follows a failure."""
        self.on_success = node
        if on_failure:
            self.on_failure = node
        return node

    def __repr__(self) -> str:
        kind = "required" if self.required else "optional"
        return f"JobNode({self.name!r}, {' '.join(self.args)!r}, cwd={self.cwd!r}, {kind})"


@dataclass
class Pipeline:
    """An ordered, conditionally branching job graph for one operation."""
    request: OperationRequest
    context: RepositoryContext
    worktree_path: str  # Resolved once, reused by every step
    entry: Optional[JobNode]
    nodes: List[JobNode] = field(default_factory=list)

    def node(self, name: str) -> Optional[JobNode]:
        return next((n for n in self.nodes if n.name == name), None)

    @property
    def step_names(self) -> List[str]:
        return [n.name for n in self.nodes]


@dataclass(frozen=True)
class Success:
    """Every step succeeded."""
    ok = True
    state = PipelineState.SUCCESS

    def raise_for_failure(self) -> None:
        return None


@dataclass(frozen=True)
class SoftFailure:
    """The pipeline reached its end but one or more optional steps failed."""
    last_error: StepFailedError
    errors: List[StepFailedError] = field(default_factory=list)

    ok = True
    state = PipelineState.SOFT_FAILURE

    def raise_for_failure(self) -> None:
        return None


@dataclass(frozen=True)
class HardFailure:
    """A required step failed; nothing after it ran."""
    error: WorktreeKeeperError
    failed_step: str

    ok = False
    state = PipelineState.HARD_FAILURE

    def raise_for_failure(self) -> None:
        raise self.error


PipelineResult = Union[Success, SoftFailure, HardFailure]
