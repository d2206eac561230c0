"""Custom exceptions for git-worktree-keeper"""

from typing import Optional, Sequence


class WorktreeKeeperError(Exception):
    """Base exception for all git-worktree-keeper errors."""
    pass


class GitOperationError(WorktreeKeeperError):
    """Exception raised for errors in Git operations."""

    def __init__(self, operation: str, path: Optional[str] = None, message: Optional[str] = None):
        self.operation = operation
        self.path = path
        self.message = message

        error_msg = f"Git operation '{operation}' failed"
        if path:
            error_msg += f" for worktree '{path}'"
        if message:
            error_msg += f": {message}"

        super().__init__(error_msg)


class PreconditionError(WorktreeKeeperError):
    """Exception raised when the repository root or current worktree cannot be established."""

    def __init__(self, message: str, cwd: Optional[str] = None, stderr: Optional[str] = None):
        self.cwd = cwd
        self.stderr = stderr

        error_msg = message
        if cwd:
            error_msg += f" (cwd: {cwd})"
        if stderr:
            error_msg += f": {stderr}"

        super().__init__(error_msg)


class StepFailedError(GitOperationError):
    """Exception raised when a pipeline step exits non-zero."""

    def __init__(
        self,
        operation: str,
        path: Optional[str],
        command: Sequence[str],
        cwd: Optional[str],
        stderr: Optional[str] = None,
        exit_code: Optional[int] = None,
    ):
        self.command = list(command)
        self.cwd = cwd
        self.stderr = (stderr or "").strip()
        self.exit_code = exit_code
        super().__init__(operation, path, self.stderr or None)

    def describe(self) -> str:
        details = self.stderr if self.stderr else "(no error details available)"
        return (
            f"{self.operation}: Operation failed.\n"
            f"  Path: {self.path or 'unknown'}\n"
            f"  Command: {' '.join(self.command)}\n"
            f"  Working directory: {self.cwd or 'unknown'}\n"
            f"  Error: {details}"
        )

    def __str__(self) -> str:
        return self.describe()


class WorktreeExistsError(GitOperationError):
    """Exception raised when creating a worktree that is already registered."""

    def __init__(self, path: str):
        super().__init__("create_worktree", path, "Worktree already exists")

