"""Read-only view of the worktrees git currently knows about."""

import os
from typing import List, Optional

from git_worktree_keeper.models.worktree import RepositoryContext, WorktreeInfo
from git_worktree_keeper.services.repository_inspector import RepositoryInspector


class WorktreeRegistry:
    """Derived list of worktrees, recomputed on every call and never stored."""

    def __init__(self, inspector: RepositoryInspector):
        self.inspector = inspector

    def list(self, context: RepositoryContext) -> List[WorktreeInfo]:
        return self.inspector.list_worktrees(context.root)

    def find(self, path: str, context: RepositoryContext) -> Optional[WorktreeInfo]:
        """Find the worktree registered at ``path`` (relative to the root or absolute)."""
        target = os.path.realpath(context.resolve(path))
        return next(
            (wt for wt in self.list(context) if os.path.realpath(wt.path) == target),
            None,
        )

    def branches(self, context: RepositoryContext) -> set[str]:
        """Branch names currently checked out in any worktree."""
        return {wt.branch_name for wt in self.list(context) if wt.branch_name}

    def orphaned(self, context: RepositoryContext) -> List[WorktreeInfo]:
        """Registered worktrees whose directory no longer exists."""
        return [wt for wt in self.list(context) if wt.is_orphaned]
