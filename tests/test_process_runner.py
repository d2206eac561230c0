"""Tests for ProcessRunner"""
import threading

import pytest

from git_worktree_keeper.services.process_runner import (
    EXIT_BAD_CWD,
    EXIT_COMMAND_NOT_FOUND,
    ProcessOutcome,
    ProcessRunner,
)


class TestSynchronousRun:
    """Test blocking command execution."""

    def test_run_success(self, git_repo, runner):
        """Test a successful command returns its output."""
        outcome = runner.run(["rev-parse", "--abbrev-ref", "HEAD"], git_repo.working_dir)
        assert outcome.ok
        assert outcome.exit_code == 0
        assert outcome.stdout.strip() == "main"
        assert outcome.command == ["git", "rev-parse", "--abbrev-ref", "HEAD"]
        assert outcome.cwd == git_repo.working_dir

    def test_run_nonzero_exit_does_not_raise(self, temp_dir, runner):
        """Test a failing command is reported, not raised."""
        outcome = runner.run(["rev-parse", "--show-toplevel"], str(temp_dir))
        assert not outcome.ok
        assert outcome.exit_code != 0
        assert "not a git repository" in outcome.stderr

    def test_missing_working_directory(self, temp_dir, runner):
        """Test a missing cwd fails without spawning anything."""
        missing = str(temp_dir / "does-not-exist")
        outcome = runner.run(["status"], missing)
        assert outcome.exit_code == EXIT_BAD_CWD
        assert missing in outcome.stderr

    def test_missing_executable(self, temp_dir):
        """Test an executable that cannot be found maps to exit code 127."""
        with ProcessRunner("definitely-not-a-real-vcs-binary", max_workers=1) as missing:
            outcome = missing.run(["status"], str(temp_dir))
        assert outcome.exit_code == EXIT_COMMAND_NOT_FOUND
        assert not outcome.ok

    def test_run_command_is_not_prefixed(self, git_repo, runner):
        """Test run_command runs the argv as given."""
        outcome = runner.run_command(["git", "--version"], git_repo.working_dir)
        assert outcome.ok
        assert outcome.stdout.startswith("git version")


class TestAsynchronousStart:
    """Test job pool execution and callbacks."""

    def test_start_calls_on_success_on_worker_thread(self, git_repo, runner):
        """Test on_start fires first and on_success fires on a pool thread."""
        order = []
        done = threading.Event()
        caller = threading.current_thread()
        seen = {}

        def on_success(outcome):
            seen["thread"] = threading.current_thread()
            seen["outcome"] = outcome
            order.append("success")
            done.set()

        def on_failure(outcome):
            order.append("failure")
            done.set()

        future = runner.start(
            ["status", "--short"],
            git_repo.working_dir,
            on_success=on_success,
            on_failure=on_failure,
            on_start=lambda: order.append("start"),
        )

        assert order[0] == "start"
        assert done.wait(timeout=10)
        assert future.result(timeout=10).ok
        assert order == ["start", "success"]
        assert seen["thread"] is not caller
        assert seen["thread"].name.startswith("worktree-job")

    def test_start_calls_on_failure_once(self, temp_dir, runner):
        """Test a failing job calls only on_failure, exactly once."""
        on_success_calls = []
        on_failure_calls = []

        future = runner.start(
            ["rev-parse", "--show-toplevel"],
            str(temp_dir),
            on_success=on_success_calls.append,
            on_failure=on_failure_calls.append,
        )
        outcome = future.result(timeout=10)

        assert not outcome.ok
        assert on_success_calls == []
        assert on_failure_calls == [outcome]

    def test_callback_exception_surfaces_on_future(self, git_repo, runner):
        """Test a raising completion callback is re-raised through the future."""
        def broken(outcome):
            raise RuntimeError("callback bug")

        future = runner.start(["status"], git_repo.working_dir, on_success=broken, on_failure=broken)
        with pytest.raises(RuntimeError, match="callback bug"):
            future.result(timeout=10)

    def test_start_after_shutdown_raises(self, git_repo):
        """Test the pool refuses new jobs once shut down."""
        runner = ProcessRunner(max_workers=1)
        runner.shutdown()
        with pytest.raises(RuntimeError):
            runner.start(["status"], git_repo.working_dir, on_success=print, on_failure=print)


class TestProcessOutcome:
    """Test ProcessOutcome helpers."""

    def test_stdout_lines(self):
        outcome = ProcessOutcome(["git", "branch"], "/repo", 0, "* main\n  develop\n", "")
        assert outcome.stdout_lines == ["* main", "  develop"]
        assert outcome.command_line == "git branch"

    def test_empty_stdout_has_no_lines(self):
        outcome = ProcessOutcome(["git", "branch"], "/repo", 1, "", "fatal")
        assert outcome.stdout_lines == []
        assert not outcome.ok
