"""Command-line interface for git-worktree-keeper"""

import argparse
import os
import sys
from concurrent.futures import Future
from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from git_worktree_keeper.cli.args import parse_args
from git_worktree_keeper.config import Config
from git_worktree_keeper.core import WorktreeCoordinator
from git_worktree_keeper.exceptions import WorktreeKeeperError
from git_worktree_keeper.logging_config import setup_logging
from git_worktree_keeper.models.pipeline import PipelineResult, SoftFailure
from git_worktree_keeper.services.progress import ProgressReporter
from git_worktree_keeper.utils.scheduling import CallbackQueue
from git_worktree_keeper.utils.threading import get_threading_info

# Progress goes to stderr so stdout stays usable, e.g. cd "$(git-worktree-keeper switch feat)"
console = Console(stderr=True)


def _wait(scheduler: CallbackQueue, future: "Future[PipelineResult]") -> PipelineResult:
    scheduler.run_until(future.done)
    return future.result()


def _report(result: PipelineResult) -> int:
    if not result.ok:
        return 1
    if isinstance(result, SoftFailure):
        console.print(f"[yellow]Finished with {len(result.errors)} skipped step(s)[/yellow]")
    return 0


def _create(coordinator: WorktreeCoordinator, scheduler: CallbackQueue, args: argparse.Namespace) -> int:
    result = _wait(scheduler, coordinator.create_worktree(args.path, args.branch, args.upstream))
    code = _report(result)
    if code == 0:
        print(coordinator.get_current_worktree_path())
    return code


def _switch(coordinator: WorktreeCoordinator, scheduler: CallbackQueue, args: argparse.Namespace) -> int:
    result = _wait(scheduler, coordinator.switch_worktree(args.path))
    code = _report(result)
    if code == 0:
        print(coordinator.get_current_worktree_path())
    return code


def _delete(coordinator: WorktreeCoordinator, scheduler: CallbackQueue, args: argparse.Namespace) -> int:
    if coordinator.config.confirm_deletions:
        if not Confirm.ask(f"Delete worktree [bold]{args.path}[/bold]?", console=console):
            console.print("[yellow]Deletion cancelled[/yellow]")
            return 1

    future = coordinator.delete_worktree(
        args.path,
        force=args.force,
        on_success=lambda: console.print(f"[green]Deleted worktree {args.path}[/green]"),
        on_failure=lambda e: console.print(f"[red]Could not delete worktree {args.path}[/red]"),
    )
    return _report(_wait(scheduler, future))


def _list(coordinator: WorktreeCoordinator, scheduler: CallbackQueue, args: argparse.Namespace) -> int:
    worktrees = coordinator.list_worktrees()
    current = coordinator.get_context().current_worktree_path
    table = Table()
    for label in ("", "Path", "Branch", "Commit", "Status"):
        table.add_column(label)

    for wt in worktrees:
        is_current = current is not None and os.path.realpath(wt.path) == os.path.realpath(current)
        if wt.is_bare:
            branch = "(bare)"
        elif wt.is_detached:
            branch = "(detached)"
        else:
            branch = wt.branch_name
        status = "[red]orphaned[/red]" if wt.is_orphaned else "active"
        if wt.is_main:
            status += " (main)"
        table.add_row("@" if is_current else "", wt.path, branch, wt.commit_sha[:7], status)

    Console().print(table)
    return 0


COMMANDS = {
    "create": _create,
    "switch": _switch,
    "delete": _delete,
    "list": _list,
}


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Main entry point for the application."""
    parsed_args = parse_args(argv)
    try:
        setup_logging(verbose=parsed_args.verbose, debug=parsed_args.debug, log_file=parsed_args.log_file)

        config = Config(
            autopush=getattr(parsed_args, "autopush", False),
            confirm_deletions=getattr(parsed_args, "confirm", False),
            default_remote=parsed_args.remote,
            git_executable=parsed_args.git,
            workers=parsed_args.workers,
            verbose=parsed_args.verbose,
            debug=parsed_args.debug,
        )

        if parsed_args.debug:
            threading_info = get_threading_info()
            console.print("[yellow]Threading Information:[/yellow]")
            console.print(f"  Python version: {threading_info['python_version']}")
            console.print(f"  Threading mode: {threading_info['mode']}")
            console.print(f"  Optimal workers: {threading_info['optimal_workers']}")
            console.print("[yellow]Configuration:[/yellow]")
            for key, value in config.to_dict().items():
                console.print(f"  {key}: {value}")

        scheduler = CallbackQueue()
        reporter = ProgressReporter(console=console)
        with WorktreeCoordinator(config, reporter=reporter, scheduler=scheduler) as coordinator:
            return COMMANDS[parsed_args.command](coordinator, scheduler, parsed_args)
    except KeyboardInterrupt:
        console.print("\n[yellow]Operation cancelled by user[/yellow]")
        return 1
    except (WorktreeKeeperError, ValueError) as e:
        console.print(f"[red]Error: {e}[/red]")
        if parsed_args.debug:
            console.print_exception()
        return 1


if __name__ == "__main__":
    sys.exit(main())
