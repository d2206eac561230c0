"""Operation request and change event models."""
from enum import Enum
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional, Union


class OperationKind(Enum):
    """Kind of worktree operation."""
    CREATE = "create"
    SWITCH = "switch"
    DELETE = "delete"


@dataclass(frozen=True)
class CreateRequest:
    """Create a worktree at ``path`` for ``branch``, optionally tracking ``upstream``."""
    path: str
    branch: str
    upstream: Optional[str] = None

    kind = OperationKind.CREATE


@dataclass(frozen=True)
class SwitchRequest:
    """Make the worktree at ``path`` the active one."""
    path: str

    kind = OperationKind.SWITCH


@dataclass(frozen=True)
class DeleteRequest:
    """Remove the worktree at ``path``."""
    path: str
    force: bool = False
    on_success: Optional[Callable[[], None]] = field(default=None, compare=False)
    on_failure: Optional[Callable[[Exception], None]] = field(default=None, compare=False)

    kind = OperationKind.DELETE


OperationRequest = Union[CreateRequest, SwitchRequest, DeleteRequest]


@dataclass(frozen=True)
class InspectorFindings:
    """Repository facts gathered before a pipeline is built."""
    worktree_exists: bool
    branch_exists: bool = False
    upstream: Optional[str] = None


@dataclass(frozen=True)
class ChangeEvent:
    """Notification broadcast after a create, switch or delete completes."""
    operation: OperationKind
    path: str
    branch: Optional[str] = None
    upstream: Optional[str] = None
    previous_path: Optional[str] = None

    def metadata(self) -> Dict[str, Any]:
        """Event payload keyed the way change listeners historically received it."""
        if self.operation == OperationKind.CREATE:
            return {"path": self.path, "branch": self.branch, "upstream": self.upstream}
        if self.operation == OperationKind.SWITCH:
            return {"path": self.path, "prev_path": self.previous_path}
        return {"path": self.path}
