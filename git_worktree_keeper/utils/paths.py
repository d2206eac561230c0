"""Path helpers shared by the inspector, builder and workspace."""

import os
from typing import Optional


def resolve_absolute_path(path: str, root: Optional[str]) -> str:
    """Resolve a worktree path against the repository root.

    Absolute paths are returned untouched so that repeated resolution is a
    no-op. Relative paths are joined onto ``root`` and normalized.

    Args:
        path: Worktree path, relative to the root or absolute
        root: Absolute repository root

    Returns:
        Absolute path to the worktree

    Raises:
        ValueError: If ``path`` is relative and no root is known
    """
    if os.path.isabs(path):
        return path
    if not root:
        raise ValueError(f"Cannot resolve relative path '{path}' without a repository root")
    return os.path.abspath(os.path.join(root, path))


def relative_to(base: str, target: str) -> Optional[str]:
    """Return ``target`` relative to ``base``, or None if it is not inside ``base``."""
    base_path = os.path.abspath(base)
    target_path = os.path.abspath(target)
    prefix = base_path.rstrip(os.sep) + os.sep
    if not target_path.startswith(prefix):
        return None
    return target_path[len(prefix):]
