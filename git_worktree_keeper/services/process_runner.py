"""Process runner for git commands.

Commands run through GitPython's ``Git.execute`` so stdout/stderr capture
and decoding match the rest of the GitPython stack. A non-zero exit is
never raised; it comes back as a failed ``ProcessOutcome`` and the caller
decides what it means.
"""

import os
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, List, Optional, Sequence

import git

from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.utils.threading import get_optimal_worker_count

logger = get_logger(__name__)

EXIT_COMMAND_NOT_FOUND = 127
EXIT_BAD_CWD = 2


@dataclass(frozen=True)
class ProcessOutcome:
    """Result of one finished child process."""

    command: List[str]
    cwd: str
    exit_code: int
    stdout: str
    stderr: str

    @property
    def ok(self) -> bool:
        return self.exit_code == 0

    @property
    def stdout_lines(self) -> List[str]:
        return self.stdout.splitlines() if self.stdout else []

    @property
    def command_line(self) -> str:
        return " ".join(self.command)


class ProcessRunner:
    """Runs version-control commands synchronously or on a job pool."""

    def __init__(self, executable: str = "git", max_workers: Optional[int] = None):
        """Initialize the runner.

        Args:
            executable: Version-control executable every command is run with
            max_workers: Job pool size (None = auto-detect)
        """
        self.executable = executable
        self._executor = ThreadPoolExecutor(
            max_workers=get_optimal_worker_count(max_workers),
            thread_name_prefix="worktree-job",
        )

    def command_for(self, args: Sequence[str]) -> List[str]:
        return [self.executable, *args]

    def run(self, args: Sequence[str], cwd: str) -> ProcessOutcome:
        """Run a command and block until it exits."""
        return self._execute(self.command_for(args), cwd)

    def run_command(self, command: Sequence[str], cwd: str) -> ProcessOutcome:
        """Run an arbitrary command (not prefixed with the executable) and block."""
        return self._execute(list(command), cwd)

    def start(
        self,
        args: Sequence[str],
        cwd: str,
        on_success: Callable[[ProcessOutcome], None],
        on_failure: Callable[[ProcessOutcome], None],
        on_start: Optional[Callable[[], None]] = None,
    ) -> "Future[ProcessOutcome]":
        """Schedule a command on the job pool and return immediately.

        ``on_start`` runs here, before the child is spawned. Exactly one of
        ``on_success`` / ``on_failure`` runs once the child exits, on a pool
        thread.
        """
        command = self.command_for(args)
        if on_start is not None:
            on_start()

        def job() -> ProcessOutcome:
            outcome = self._execute(command, cwd)
            callback = on_success if outcome.ok else on_failure
            try:
                callback(outcome)
            except Exception:
                logger.exception(f"Completion callback for '{outcome.command_line}' raised")
                raise
            return outcome

        return self._executor.submit(job)

    def _execute(self, command: List[str], cwd: str) -> ProcessOutcome:
        # GitPython silently falls back to the process cwd for a missing directory
        if not os.path.isdir(cwd):
            logger.debug(f"Not running {' '.join(command)}: {cwd} is not a directory")
            return ProcessOutcome(command, cwd, EXIT_BAD_CWD, "", f"working directory does not exist: {cwd}")

        logger.debug(f"Running '{' '.join(command)}' in {cwd}")
        try:
            status, stdout, stderr = git.Git(cwd).execute(
                command,
                with_extended_output=True,
                with_exceptions=False,
            )
        except git.exc.GitCommandNotFound as e:
            logger.error(f"Could not run {command[0]}: {e}")
            return ProcessOutcome(command, cwd, EXIT_COMMAND_NOT_FOUND, "", str(e))

        outcome = ProcessOutcome(command, cwd, status, stdout or "", (stderr or "").strip())
        if not outcome.ok:
            logger.debug(f"'{outcome.command_line}' exited {status}: {outcome.stderr}")
        return outcome

    def shutdown(self, wait: bool = True) -> None:
        self._executor.shutdown(wait=wait)

    def __enter__(self) -> "ProcessRunner":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()
