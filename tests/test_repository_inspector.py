"""Tests for RepositoryInspector against real repositories"""
import os

import git
import pytest

from git_worktree_keeper.exceptions import PreconditionError
from git_worktree_keeper.models.operation import CreateRequest, DeleteRequest, SwitchRequest
from git_worktree_keeper.services.repository_inspector import RepositoryInspector


@pytest.fixture
def inspector(runner):
    return RepositoryInspector(runner)


@pytest.fixture
def linked_worktree(git_repo, temp_dir):
    """A linked worktree 'feat' on branch feature-x inside the main checkout."""
    git_repo.git.worktree('add', '-b', 'feature-x', 'feat')
    return os.path.join(git_repo.working_dir, 'feat')


class TestDetectContext:
    """Test repository root and current worktree detection."""

    def test_main_worktree(self, git_repo, inspector):
        """Test detection from the main checkout."""
        context = inspector.detect_context(git_repo.working_dir)
        assert context.root == git_repo.working_dir
        assert context.current_worktree_path == git_repo.working_dir
        assert context.is_inside_worktree is True

    def test_subdirectory(self, git_repo, inspector):
        """Test detection from a nested directory still finds the root."""
        nested = os.path.join(git_repo.working_dir, 'src', 'pkg')
        os.makedirs(nested)
        context = inspector.detect_context(nested)
        assert context.root == git_repo.working_dir
        assert context.current_worktree_path == git_repo.working_dir

    def test_linked_worktree(self, git_repo, linked_worktree, inspector):
        """Test a linked worktree reports the main repository as root."""
        context = inspector.detect_context(linked_worktree)
        assert context.root == git_repo.working_dir
        assert context.current_worktree_path == linked_worktree

    def test_bare_repository(self, temp_dir, inspector):
        """Test a bare repository uses its own directory for root and current path."""
        bare_path = temp_dir / "bare.git"
        git.Repo.init(bare_path, bare=True).close()
        context = inspector.detect_context(str(bare_path))
        assert context.root == str(bare_path)
        assert context.current_worktree_path == str(bare_path)
        assert context.is_inside_worktree is False

    def test_outside_repository(self, temp_dir, inspector):
        """Test detection outside any repository raises PreconditionError."""
        outside = temp_dir / "plain"
        outside.mkdir()
        with pytest.raises(PreconditionError) as exc_info:
            inspector.detect_context(str(outside))
        assert exc_info.value.cwd == str(outside)
        assert "not a git repository" in exc_info.value.stderr


class TestRootFromGitDir:
    """Test root derivation from the absolute git directory."""

    @pytest.mark.parametrize("git_dir,expected", [
        ("/repo/.git", "/repo"),
        ("/repo/.git/worktrees/feat", "/repo"),
        ("/srv/repo.git/worktrees/feat", "/srv/repo.git"),
        ("/srv/repo.git", "/srv/repo.git"),
    ])
    def test_inside_worktree(self, git_dir, expected):
        assert RepositoryInspector._root_from_git_dir(git_dir, "/cwd", True) == expected

    def test_bare_git_dir_only(self):
        assert RepositoryInspector._root_from_git_dir(".git", "/cwd", True) == "/cwd"

    def test_outside_worktree(self):
        assert RepositoryInspector._root_from_git_dir(".", "/srv/repo.git", False) == "/srv/repo.git"
        assert RepositoryInspector._root_from_git_dir("/srv/repo.git", "/elsewhere", False) == "/srv/repo.git"


class TestExistenceQueries:
    """Test worktree, branch and remote existence checks."""

    def test_worktree_exists_relative_and_absolute(self, git_repo, linked_worktree, inspector):
        context = inspector.detect_context(git_repo.working_dir)
        assert inspector.worktree_exists('feat', context) is True
        assert inspector.worktree_exists(linked_worktree, context) is True
        assert inspector.worktree_exists('other', context) is False

    def test_main_worktree_is_listed(self, git_repo, inspector):
        context = inspector.detect_context(git_repo.working_dir)
        assert inspector.worktree_exists(git_repo.working_dir, context) is True

    def test_legacy_heads_marker(self, scripted_runner, fake_root):
        """Test the legacy [heads/<path>] listing form still counts as existing."""
        scripted_runner.responses[("worktree", "list")] = [
            (0, f"{fake_root}  abc1234 [main]\n/elsewhere/x  def5678 [heads/feat]", "")
        ]
        inspector = RepositoryInspector(scripted_runner)
        context = inspector.detect_context(str(fake_root))
        assert inspector.worktree_exists('feat', context) is True

    def test_branch_exists(self, git_repo, inspector):
        git_repo.git.branch('develop')
        assert inspector.branch_exists('main', git_repo.working_dir) is True
        assert inspector.branch_exists('develop', git_repo.working_dir) is True
        assert inspector.branch_exists('dev', git_repo.working_dir) is False

    def test_branch_checked_out_elsewhere(self, git_repo, linked_worktree, inspector):
        """Test branches marked '+' (checked out in another worktree) are found."""
        assert inspector.branch_exists('feature-x', git_repo.working_dir) is True

    def test_remote_exists(self, git_repo_with_origin, inspector):
        root = git_repo_with_origin.working_dir
        assert inspector.remote_exists('origin', root) is True
        assert inspector.remote_exists('upstream', root) is False

    def test_no_remotes(self, git_repo, inspector):
        assert inspector.remote_exists('origin', git_repo.working_dir) is False


class TestListWorktrees:
    """Test porcelain listing."""

    def test_lists_main_and_linked(self, git_repo, linked_worktree, inspector):
        worktrees = inspector.list_worktrees(git_repo.working_dir)
        assert len(worktrees) == 2

        main, feat = worktrees
        assert main.is_main is True
        assert main.branch_name == 'main'
        assert main.path == git_repo.working_dir
        assert feat.is_main is False
        assert feat.branch_name == 'feature-x'
        assert feat.path == linked_worktree
        assert feat.is_orphaned is False
        assert len(feat.commit_sha) == 40

    def test_detached_and_orphaned(self, git_repo, temp_dir, inspector):
        """Test detached heads and missing directories are flagged."""
        gone = str(temp_dir / "gone")
        git_repo.git.worktree('add', '--detach', gone)
        os.rename(gone, gone + "-moved")

        worktrees = inspector.list_worktrees(git_repo.working_dir)
        detached = next(wt for wt in worktrees if wt.path == gone)
        assert detached.is_detached is True
        assert detached.branch_name == ''
        assert detached.is_orphaned is True

    def test_outside_repository_is_empty(self, temp_dir, inspector):
        assert inspector.list_worktrees(str(temp_dir)) == []


class TestGather:
    """Test findings collected per request type."""

    def test_create_with_explicit_upstream(self, git_repo, inspector):
        context = inspector.detect_context(git_repo.working_dir)
        findings = inspector.gather(CreateRequest('feat', 'main', 'upstream'), context, 'origin')
        assert findings.worktree_exists is False
        assert findings.branch_exists is True
        assert findings.upstream == 'upstream'

    def test_create_defaults_to_existing_remote(self, git_repo_with_origin, inspector):
        context = inspector.detect_context(git_repo_with_origin.working_dir)
        findings = inspector.gather(CreateRequest('feat', 'feature-x'), context, 'origin')
        assert findings.branch_exists is False
        assert findings.upstream == 'origin'

    def test_create_without_remote(self, git_repo, inspector):
        context = inspector.detect_context(git_repo.working_dir)
        findings = inspector.gather(CreateRequest('feat', 'feature-x'), context, 'origin')
        assert findings.upstream is None

    def test_switch_and_delete(self, git_repo, linked_worktree, inspector):
        context = inspector.detect_context(git_repo.working_dir)
        assert inspector.gather(SwitchRequest('feat'), context).worktree_exists is True
        assert inspector.gather(DeleteRequest('nope'), context).worktree_exists is False
