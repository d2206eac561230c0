"""Logging configuration for git-worktree-keeper"""
import copy
import logging
import os
import sys
from pathlib import Path
from typing import Optional

PACKAGE_PREFIX = "git_worktree_keeper."
LOG_LEVEL_ENV = "WORKTREE_KEEPER_LOG"

DEBUG_FORMAT = "%(asctime)s - %(name)s - %(threadName)s - %(levelname)s - %(message)s"
PLAIN_FORMAT = "[%(name)s] %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

_ENV_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "warning": logging.WARNING,
    "error": logging.ERROR,
    "critical": logging.CRITICAL,
}


class ColoredFormatter(logging.Formatter):
    """Formatter that colors the level name when stderr is a terminal.

    Pipeline steps log from worker threads while other handlers may see the
    same record, so the record is copied rather than recolored in place.
    """

    LEVEL_COLORS = {
        logging.DEBUG: "\033[36m",
        logging.INFO: "\033[32m",
        logging.WARNING: "\033[33m",
        logging.ERROR: "\033[31m",
        logging.CRITICAL: "\033[35m",
    }
    RESET = "\033[0m"

    def format(self, record: logging.LogRecord) -> str:
        color = self.LEVEL_COLORS.get(record.levelno)
        if color is None or not sys.stderr.isatty():
            return super().format(record)
        colored = copy.copy(record)
        colored.levelname = f"{color}{record.levelname}{self.RESET}"
        return super().format(colored)


def level_from_env() -> Optional[int]:
    """Return the log level named by WORKTREE_KEEPER_LOG, if it names a valid one."""
    value = os.environ.get(LOG_LEVEL_ENV, "").strip().lower()
    return _ENV_LEVELS.get(value)


def _console_level(verbose: bool, debug: bool) -> int:
    env_level = level_from_env()
    if env_level is not None:
        return env_level
    if debug:
        return logging.DEBUG
    return logging.INFO if verbose else logging.WARNING


def setup_logging(verbose: bool = False, debug: bool = False, log_file: Optional[Path] = None) -> None:
    """
    Configure the root logger for the command-line tool.

    Library callers are left alone; only the CLI calls this.

    Args:
        verbose: Show progress lines (INFO)
        debug: Show DEBUG messages with timestamps and thread names
        log_file: Optional file that receives every message, rewritten each run
    """
    level = _console_level(verbose, debug)

    root_logger = logging.getLogger()
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
    root_logger.setLevel(logging.DEBUG if log_file is not None else level)

    if log_file is not None:
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = logging.FileHandler(log_file, mode="w")
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(logging.Formatter(DEBUG_FORMAT, datefmt=DATE_FORMAT))
        root_logger.addHandler(file_handler)

    console_handler = logging.StreamHandler(sys.stderr)
    console_handler.setLevel(level)
    if debug:
        console_handler.setFormatter(ColoredFormatter(DEBUG_FORMAT, datefmt=DATE_FORMAT))
    else:
        console_handler.setFormatter(ColoredFormatter(PLAIN_FORMAT))
    root_logger.addHandler(console_handler)

    # GitPython logs every command it spawns
    logging.getLogger("git").setLevel(logging.DEBUG if debug else logging.WARNING)


def get_logger(name: str) -> logging.Logger:
    """Logger for a module, named without the package and ``services.`` prefixes.

    ``git_worktree_keeper.services.workspace`` logs as ``workspace`` and
    ``git_worktree_keeper.core.coordinator`` as ``core.coordinator``.
    """
    if name.startswith(PACKAGE_PREFIX):
        name = name[len(PACKAGE_PREFIX):]
    if name.startswith("services."):
        name = name[len("services."):]
    return logging.getLogger(name)
