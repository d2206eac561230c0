"""Progress reporting for worktree operations."""
from threading import Lock
from typing import Optional

from rich.console import Console
from rich.markup import escape

from git_worktree_keeper.logging_config import get_logger

logger = get_logger(__name__)


class ProgressReporter:
    """Reports "step started / step failed" events as numbered status lines.

    Messages always go to the log. When a console is given they are also
    printed, which is what the CLI does; library callers usually leave it out.
    """

    def __init__(self, console: Optional[Console] = None):
        self.console = console
        self.count = 0
        self.idx = 0
        self._lock = Lock()

    def reset(self, count: int) -> None:
        """Start counting steps for a new operation."""
        with self._lock:
            self.count = count
            self.idx = 0

    def _format(self, msg: str) -> str:
        return f"{self.idx} / {self.count}: {msg}"

    def next_status(self, msg: str) -> None:
        """Report that the next step has started."""
        with self._lock:
            self.idx += 1
            fmt_msg = self._format(msg)
        logger.info(fmt_msg)
        self._print(fmt_msg)

    def status(self, msg: str) -> None:
        """Report a message without advancing the step counter."""
        with self._lock:
            fmt_msg = self._format(msg)
        logger.info(fmt_msg)
        self._print(fmt_msg)

    def warning(self, msg: str) -> None:
        """Report a soft failure."""
        logger.warning(msg)
        self._print(msg, style="yellow")

    def error(self, msg: str) -> None:
        """Report a failure. Never raises; halting is the coordinator's call."""
        logger.error(msg)
        self._print(msg, style="red")

    def _print(self, msg: str, style: Optional[str] = None) -> None:
        if self.console is None:
            return
        text = escape(msg)
        self.console.print(f"[{style}]{text}[/{style}]" if style else text)
