"""Operation coordination for git-worktree-keeper."""

from .coordinator import WorktreeCoordinator, PipelineRun, Subscription, STEP_COUNTS

__all__ = ["WorktreeCoordinator", "PipelineRun", "Subscription", "STEP_COUNTS"]
