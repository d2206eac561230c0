"""Worktree and repository context data models."""

from dataclasses import dataclass, replace
from typing import Optional

from git_worktree_keeper.utils.paths import resolve_absolute_path


@dataclass(frozen=True)
class WorktreeRef:
    """A worktree path as requested, plus the root it resolves against."""

    path: str
    root: Optional[str]

    @property
    def absolute_path(self) -> str:
        return resolve_absolute_path(self.path, self.root)


@dataclass
class WorktreeInfo:
    """Information about a git worktree."""

    path: str
    branch_name: str
    commit_sha: str
    is_main: bool  # Is this the main working tree?
    is_orphaned: bool  # Directory missing?
    is_bare: bool = False
    is_detached: bool = False

    def __str__(self) -> str:
        """String representation of worktree."""
        status = "orphaned" if self.is_orphaned else "active"
        main_marker = " (main)" if self.is_main else ""
        if self.is_bare:
            label = "(bare)"
        elif self.is_detached:
            label = f"(detached {self.commit_sha[:7]})"
        else:
            label = self.branch_name
        return f"{label} @ {self.path}{main_marker} [{status}]"


@dataclass(frozen=True)
class RepositoryContext:
    """Snapshot of where we are in the repository.

    Recomputed at the start of every operation and never mutated while a
    pipeline runs; switching produces a new snapshot via ``with_current``.
    """

    root: str  # Absolute path to the repository's common directory
    current_worktree_path: Optional[str]
    is_inside_worktree: bool

    def resolve(self, path: str) -> str:
        """Resolve a worktree path against this context's root."""
        return resolve_absolute_path(path, self.root)

    def ref(self, path: str) -> WorktreeRef:
        return WorktreeRef(path=path, root=self.root)

    def with_current(self, current_worktree_path: str) -> "RepositoryContext":
        return replace(self, current_worktree_path=current_worktree_path)
