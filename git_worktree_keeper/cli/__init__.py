"""Command-line interface for git-worktree-keeper."""

from .main import main

__all__ = ["main"]
