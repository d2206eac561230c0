"""Configuration handling for git-worktree-keeper"""

from dataclasses import dataclass, fields
from typing import Optional


@dataclass
class Config:
    """Configuration for git-worktree-keeper with validation."""

    # Switching
    directory_change_command: str = "cd"  # "cd" changes the process cwd, anything else is run with the path
    update_on_change: bool = True
    update_on_change_fallback: Optional[str] = None  # Run in the new worktree when following fails
    clear_history_on_change: bool = True

    # Deletion (consumed by the CLI / UI layer)
    confirm_deletions: bool = False

    # Creation
    autopush: bool = False
    default_remote: str = "origin"

    # Execution
    git_executable: str = "git"
    workers: Optional[int] = None  # Size of the job pool (None = auto-detect)
    verbose: bool = False
    debug: bool = False

    def __post_init__(self):
        """Validate configuration after initialization."""
        self._validate_directory_change_command()
        self._validate_update_on_change_fallback()
        self._validate_default_remote()
        self._validate_git_executable()
        self._validate_workers()

    def _validate_directory_change_command(self):
        """Validate directory_change_command is not empty."""
        if not self.directory_change_command or not self.directory_change_command.strip():
            raise ValueError("directory_change_command cannot be empty")
        self.directory_change_command = self.directory_change_command.strip()

    def _validate_update_on_change_fallback(self):
        """Normalize an empty fallback command to None."""
        if self.update_on_change_fallback is not None and not self.update_on_change_fallback.strip():
            self.update_on_change_fallback = None

    def _validate_default_remote(self):
        """Validate default_remote is not empty."""
        if not self.default_remote or not self.default_remote.strip():
            raise ValueError("default_remote cannot be empty")
        self.default_remote = self.default_remote.strip()

    def _validate_git_executable(self):
        """Validate git_executable is not empty."""
        if not self.git_executable or not self.git_executable.strip():
            raise ValueError("git_executable cannot be empty")

    def _validate_workers(self):
        """Validate workers is positive when given."""
        if self.workers is not None and self.workers <= 0:
            raise ValueError(f"workers must be positive, got {self.workers}")

    def to_dict(self) -> dict:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    def get(self, key: str, default=None):
        """Get config value by key."""
        return getattr(self, key, default)

    @classmethod
    def from_dict(cls, config_dict: dict) -> "Config":
        """Create Config from dictionary, ignoring unknown keys."""
        known_fields = {f.name for f in fields(cls)}
        filtered = {k: v for k, v in config_dict.items() if k in known_fields}
        return cls(**filtered)
