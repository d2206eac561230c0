"""Command-line argument parsing for git-worktree-keeper."""

import argparse
from pathlib import Path
from typing import Optional, Sequence

from git_worktree_keeper.__version__ import __version__


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="git-worktree-keeper",
        description="Create, switch and delete git worktrees",
        epilog="Set WORKTREE_KEEPER_LOG=debug|info|warning|error to override the log level.",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Show verbose output")
    parser.add_argument("--version", action="version", version=f"git-worktree-keeper {__version__}")
    parser.add_argument(
        "--debug", action="store_true", help="Show debug information for troubleshooting"
    )
    parser.add_argument("--git", default="git", metavar="EXECUTABLE", help="Git executable to run")
    parser.add_argument(
        "--remote", default="origin", help="Remote used as upstream when none is given (default: origin)"
    )
    parser.add_argument(
        "--workers",
        type=int,
        metavar="N",
        help="Size of the job pool (default: auto-detect based on CPU and threading mode)",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        metavar="FILE",
        help="Also write a debug log of every step and git command to FILE",
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    create = subparsers.add_parser("create", help="Create a worktree and switch to it")
    create.add_argument("path", help="Worktree path, relative to the repository root or absolute")
    create.add_argument("branch", help="Branch to check out (created if it does not exist)")
    create.add_argument("upstream", nargs="?", help="Remote to track (default: --remote if it exists)")
    create.add_argument(
        "--autopush",
        action="store_true",
        help="Push the new branch to the upstream and rebase after creating it",
    )

    switch = subparsers.add_parser("switch", help="Switch to a worktree and print its path")
    switch.add_argument("path", help="Worktree path, relative to the repository root or absolute")

    delete = subparsers.add_parser("delete", help="Remove a worktree")
    delete.add_argument("path", help="Worktree path, relative to the repository root or absolute")
    delete.add_argument("--force", action="store_true", help="Remove even if the worktree is dirty or locked")
    delete.add_argument("--confirm", action="store_true", help="Ask before deleting")

    subparsers.add_parser("list", help="List worktrees")

    return parser


def parse_args(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments."""
    return build_parser().parse_args(argv)
