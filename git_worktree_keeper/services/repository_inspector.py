"""Repository inspection service for git-worktree-keeper.

Every query here runs synchronously: these are the precondition checks
the coordinator needs before it can build a pipeline.
"""

import os
from pathlib import PurePath
from typing import Dict, Any, List, Optional

from git_worktree_keeper.exceptions import PreconditionError
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.operation import CreateRequest, InspectorFindings, OperationRequest
from git_worktree_keeper.models.worktree import RepositoryContext, WorktreeInfo
from git_worktree_keeper.services.process_runner import ProcessRunner

logger = get_logger(__name__)

GIT_DIR_SEGMENT = ".git"
LINKED_WORKTREE_MARKER = f"{os.sep}worktrees{os.sep}"


class RepositoryInspector:
    """Queries repository state through the process runner."""

    def __init__(self, runner: ProcessRunner):
        self.runner = runner

    def detect_context(self, cwd: str) -> RepositoryContext:
        """Work out the repository root and the active worktree for ``cwd``.

        Args:
            cwd: Directory to inspect

        Returns:
            A complete RepositoryContext

        Raises:
            PreconditionError: If any query fails; no partial context is returned
        """
        inside = self.runner.run(["rev-parse", "--is-inside-work-tree"], cwd)
        if not inside.ok:
            raise PreconditionError("Error in determining if we are in a worktree", cwd, inside.stderr)
        is_inside = inside.stdout.strip() == "true"

        git_dir = self.runner.run(["rev-parse", "--absolute-git-dir"], cwd)
        if not git_dir.ok:
            raise PreconditionError("Error in determining the git root dir", cwd, git_dir.stderr)
        root = self._root_from_git_dir(git_dir.stdout.strip(), cwd, is_inside)
        logger.debug(f"git directory is: {root}")

        toplevel = self.runner.run(["rev-parse", "--show-toplevel"], cwd)
        if toplevel.ok:
            current = toplevel.stdout.strip()
            logger.debug(f"git toplevel is: {current}")
        else:
            # No toplevel in a bare repository; its directory stands in for one
            bare = self.runner.run(["rev-parse", "--is-bare-repository"], cwd)
            if not bare.ok:
                raise PreconditionError("Error in determining the git toplevel", cwd, bare.stderr)
            current = cwd if bare.stdout.strip() == "true" else None

        return RepositoryContext(root=root, current_worktree_path=current, is_inside_worktree=is_inside)

    @staticmethod
    def _root_from_git_dir(git_dir: str, cwd: str, is_inside: bool) -> str:
        if not is_inside:
            return cwd if git_dir == "." else git_dir

        parts = PurePath(git_dir).parts
        if GIT_DIR_SEGMENT in parts:
            if git_dir == GIT_DIR_SEGMENT:
                return cwd
            # /repo/.git or /repo/.git/worktrees/<name> -> /repo
            return str(PurePath(*parts[:parts.index(GIT_DIR_SEGMENT)]))

        if LINKED_WORKTREE_MARKER in git_dir:
            # Linked worktree of a bare repository: /repo.git/worktrees/<name>
            return git_dir[:git_dir.rindex(LINKED_WORKTREE_MARKER)]

        return git_dir

    def worktree_exists(self, path: str, context: RepositoryContext) -> bool:
        """Check whether git lists a worktree at ``path``."""
        listing = self.runner.run(["worktree", "list"], context.root)
        if not listing.ok:
            logger.warning(f"Could not list worktrees: {listing.stderr}")
            return False

        target = path if os.path.isabs(path) else context.resolve(path)
        # Hack kept for older listing formats that marked checkouts as [heads/<path>]
        legacy_marker = f"[heads/{path}]"
        for line in listing.stdout_lines:
            tokens = line.split()
            if not tokens:
                continue
            listed = tokens[0]
            if listed == target or os.path.realpath(listed) == os.path.realpath(target):
                return True
            if legacy_marker in line:
                return True
        return False

    def branch_exists(self, name: str, root: str) -> bool:
        """Check whether a local branch called ``name`` exists."""
        listing = self.runner.run(["branch"], root)
        if not listing.ok:
            logger.warning(f"Could not list branches: {listing.stderr}")
            return False

        for line in listing.stdout_lines:
            # "* " marks the current branch, "+ " one checked out in another worktree
            candidate = line[2:].strip() if line[:1] in ("*", "+") else line.strip()
            if candidate == name:
                return True
        return False

    def remote_exists(self, name: str, root: str) -> bool:
        """Check whether a remote called ``name`` is configured."""
        listing = self.runner.run(["remote", "show"], root)
        if not listing.ok:
            logger.warning(f"Could not list remotes: {listing.stderr}")
            return False
        found = any(line.strip() == name for line in listing.stdout_lines)
        logger.debug(f"found remote {name}: {found}")
        return found

    def list_worktrees(self, root: str) -> List[WorktreeInfo]:
        """Get detailed information about all worktrees.

        Returns:
            List of WorktreeInfo objects, main worktree first; empty if git fails
        """
        listing = self.runner.run(["worktree", "list", "--porcelain"], root)
        if not listing.ok:
            logger.debug(f"Could not list worktrees: {listing.stderr}")
            return []

        # Porcelain format, one blank-line separated block per worktree:
        # worktree /path/to/worktree
        # HEAD commit_sha
        # branch refs/heads/branch-name  (or "detached" / "bare")
        worktree_list: List[WorktreeInfo] = []
        current: Dict[str, Any] = {}
        for line in listing.stdout_lines + [""]:
            line = line.strip()
            if not line:
                if current.get("path"):
                    worktree_list.append(self._to_info(current, is_main=not worktree_list))
                current = {}
                continue

            key, _, value = line.partition(" ")
            if key == "worktree":
                current["path"] = value
            elif key == "HEAD":
                current["HEAD"] = value
            elif key == "branch":
                current["branch"] = value[len("refs/heads/"):] if value.startswith("refs/heads/") else ""
            elif key in ("detached", "bare"):
                current[key] = True

        logger.debug(f"Found {len(worktree_list)} worktrees")
        return worktree_list

    @staticmethod
    def _to_info(entry: Dict[str, Any], is_main: bool) -> WorktreeInfo:
        path = entry["path"]
        return WorktreeInfo(
            path=path,
            branch_name=entry.get("branch", ""),
            commit_sha=entry.get("HEAD", ""),
            is_main=is_main,
            is_orphaned=not os.path.exists(path),
            is_bare=entry.get("bare", False),
            is_detached=entry.get("detached", False),
        )

    def gather(
        self,
        request: OperationRequest,
        context: RepositoryContext,
        default_remote: Optional[str] = None,
    ) -> InspectorFindings:
        """Collect the facts the pipeline builder needs for ``request``."""
        exists = self.worktree_exists(request.path, context)
        if not isinstance(request, CreateRequest):
            return InspectorFindings(worktree_exists=exists)

        branch_found = self.branch_exists(request.branch, context.root)
        upstream = request.upstream
        if upstream is None and default_remote and self.remote_exists(default_remote, context.root):
            upstream = default_remote
        return InspectorFindings(worktree_exists=exists, branch_exists=branch_found, upstream=upstream)
