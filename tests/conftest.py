"""Pytest fixtures for git-worktree-keeper tests"""
import tempfile
from pathlib import Path
from threading import Event, Lock
from typing import Dict, List, Tuple

import git
import pytest

from git_worktree_keeper.config import Config
from git_worktree_keeper.core import WorktreeCoordinator
from git_worktree_keeper.services.process_runner import ProcessOutcome, ProcessRunner
from git_worktree_keeper.services.progress import ProgressReporter
from git_worktree_keeper.services.workspace import Workspace
from git_worktree_keeper.utils.scheduling import CallbackQueue


class ScriptedRunner(ProcessRunner):
    """ProcessRunner that answers from a script instead of spawning git.

    Responses are keyed by the argument tuple. A key with several queued
    responses hands them out in order and keeps repeating the last one.
    Unscripted commands succeed with empty output. A held command blocks
    on its pool thread until its gate is set.
    """

    def __init__(self):
        super().__init__("git", max_workers=2)
        self.calls: List[Tuple[List[str], str]] = []
        self.responses: Dict[Tuple[str, ...], List[Tuple[int, str, str]]] = {}
        self.gates: Dict[Tuple[str, ...], Event] = {}
        self._calls_lock = Lock()

    def respond(self, *args: str, exit_code: int = 0, stdout: str = "", stderr: str = "") -> None:
        self.responses.setdefault(tuple(args), []).append((exit_code, stdout, stderr))

    def hold(self, *args: str) -> Event:
        """Block the command until the returned event is set."""
        gate = Event()
        self.gates[tuple(args)] = gate
        return gate

    def _execute(self, command, cwd):
        args = tuple(command[1:]) if command and command[0] == self.executable else tuple(command)
        with self._calls_lock:
            self.calls.append((list(args), cwd))
            gate = self.gates.get(args)
        if gate is not None:
            gate.wait(timeout=30)
        with self._calls_lock:
            queued = self.responses.get(args)
            if queued:
                exit_code, stdout, stderr = queued.pop(0) if len(queued) > 1 else queued[0]
            else:
                exit_code, stdout, stderr = 0, "", ""
        return ProcessOutcome(list(command), cwd, exit_code, stdout, stderr)

    @property
    def commands(self) -> List[str]:
        return [" ".join(args) for args, _ in self.calls]

    def cwd_of(self, command: str) -> str:
        return next(cwd for args, cwd in self.calls if " ".join(args) == command)

    def pipeline_commands(self) -> List[str]:
        """Commands issued by pipeline steps, without the inspector's queries."""
        queries = {"worktree list", "branch", "remote show", "worktree list --porcelain"}
        return [c for c in self.commands if not c.startswith("rev-parse") and c not in queries]


@pytest.fixture
def temp_dir():
    """Create a temporary directory for testing."""
    with tempfile.TemporaryDirectory() as tmpdir:
        yield Path(tmpdir).resolve()


@pytest.fixture
def mock_config():
    """Create a mock configuration dictionary."""
    return {
        'verbose': False,
        'debug': False,
        'autopush': False,
        'update_on_change': True,
        'clear_history_on_change': True,
        'confirm_deletions': False,
        'default_remote': 'origin',
        'workers': 2,
    }


@pytest.fixture
def git_repo(temp_dir):
    """Create a real Git repository with one commit on main and no remotes."""
    repo_path = temp_dir / "test_repo"
    repo_path.mkdir()

    repo = git.Repo.init(repo_path)

    with repo.config_writer() as writer:
        writer.set_value("user", "name", "Test User")
        writer.set_value("user", "email", "test@example.com")

    (repo_path / "README.md").write_text("# Test Repository\n")
    repo.index.add(["README.md"])
    repo.index.commit("Initial commit")
    # Whatever init.defaultBranch says, tests expect main
    repo.git.branch('-M', 'main')

    yield repo

    repo.close()


@pytest.fixture
def git_repo_with_origin(git_repo, temp_dir):
    """Real repository whose origin is a local bare repository holding main."""
    upstream_path = temp_dir / "upstream.git"
    upstream = git.Repo.init(upstream_path, bare=True)
    git_repo.create_remote('origin', str(upstream_path))
    git_repo.git.push('origin', 'main')

    yield git_repo

    upstream.close()


@pytest.fixture
def runner():
    """A real process runner, shut down after the test."""
    runner = ProcessRunner(max_workers=2)
    yield runner
    runner.shutdown()


@pytest.fixture
def scheduler():
    return CallbackQueue()


@pytest.fixture
def fake_root(temp_dir):
    """Directory layout a scripted repository pretends to live in."""
    root = temp_dir / "repo"
    (root / ".git").mkdir(parents=True)
    return root


@pytest.fixture
def scripted_runner(fake_root):
    """ScriptedRunner describing a non-bare repository at fake_root on main with origin."""
    runner = ScriptedRunner()
    runner.respond("rev-parse", "--is-inside-work-tree", stdout="true")
    runner.respond("rev-parse", "--absolute-git-dir", stdout=str(fake_root / ".git"))
    runner.respond("rev-parse", "--show-toplevel", stdout=str(fake_root))
    runner.respond("worktree", "list", stdout=f"{fake_root}  abc1234 [main]")
    runner.respond("branch", stdout="* main\n  develop")
    runner.respond("remote", "show", stdout="origin")
    yield runner
    runner.shutdown()


@pytest.fixture
def make_coordinator(mock_config, scheduler, monkeypatch):
    """Factory for a coordinator whose workspace starts in ``cwd``.

    The process cwd is restored by monkeypatch after the test, since
    switching runs os.chdir.
    """
    def factory(runner, cwd, reporter=None, **overrides):
        monkeypatch.chdir(cwd)
        config = Config.from_dict({**mock_config, **overrides})
        return WorktreeCoordinator(
            config,
            runner=runner,
            reporter=reporter or ProgressReporter(),
            scheduler=scheduler,
            workspace=Workspace(config, runner),
        )

    return factory


def wait_for(scheduler, future, timeout=15):
    """Drain the scheduler until ``future`` resolves and return its result."""
    assert scheduler.run_until(future.done, timeout=timeout), "operation did not complete"
    return future.result()
