"""The caller's workspace: active directory, navigation history, active file."""

import os
import shlex
from typing import List, Optional

from git_worktree_keeper.config import Config
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.operation import ChangeEvent, OperationKind
from git_worktree_keeper.services.process_runner import ProcessRunner
from git_worktree_keeper.utils.paths import relative_to

logger = get_logger(__name__)

CHDIR_COMMAND = "cd"


class Workspace:
    """Where the caller is working, and how to move it into another worktree.

    With ``directory_change_command == "cd"`` the process working directory
    is changed. Any other value is run as an external command with the
    target path appended, and the workspace only tracks the new directory.
    """

    def __init__(self, config: Config, runner: ProcessRunner, cwd: Optional[str] = None):
        self.config = config
        self.runner = runner
        self._cwd = cwd
        self.history: List[str] = []  # Directories visited before each switch
        self.active_file: Optional[str] = None

    def cwd(self) -> str:
        return self._cwd or os.getcwd()

    def change_directory(self, path: str) -> bool:
        """Move the workspace to ``path``.

        Returns:
            True if the directory changed, False if ``path`` does not exist
        """
        if not os.path.isdir(path):
            return False

        previous = self.cwd()
        command = self.config.directory_change_command
        logger.debug(f"Changing to directory {path}")
        if command == CHDIR_COMMAND:
            os.chdir(path)
        else:
            outcome = self.runner.run_command([*shlex.split(command), path], previous)
            if not outcome.ok:
                logger.warning(f"'{outcome.command_line}' failed: {outcome.stderr or 'no error details available'}")

        self.history.append(previous)
        self._cwd = path
        return True

    def clear_history(self) -> None:
        logger.debug("Clearing navigation history")
        self.history.clear()

    def follow(self, previous_path: Optional[str]) -> bool:
        """Point the active file at the same relative file in the current worktree.

        Returns:
            True if the active file already lives in, or was moved into, the
            current worktree
        """
        if previous_path is None or not self.active_file:
            return False

        cwd = self.cwd()
        name = os.path.abspath(self.active_file)
        if relative_to(cwd, name) is not None:
            return True

        local_name = relative_to(previous_path, name)
        if local_name is None:
            return False

        final_path = os.path.join(cwd, local_name)
        if not os.path.exists(final_path):
            return False

        self.active_file = final_path
        return True

    def run_fallback(self) -> bool:
        """Run the configured fallback command in the current directory."""
        command = self.config.update_on_change_fallback
        if not command:
            return False
        outcome = self.runner.run_command(shlex.split(command), self.cwd())
        if not outcome.ok:
            logger.warning(f"Fallback command '{command}' failed: {outcome.stderr or 'no error details available'}")
        return outcome.ok

    def handle_change(self, event: ChangeEvent) -> bool:
        """React to a worktree change.

        Returns:
            True if the workspace followed the switch into the new worktree
        """
        if not self.config.update_on_change or event.operation != OperationKind.SWITCH:
            return False
        if self.follow(event.previous_path):
            return True
        logger.debug("Could not follow the active file into the new worktree, running the fallback command")
        self.run_fallback()
        return False
