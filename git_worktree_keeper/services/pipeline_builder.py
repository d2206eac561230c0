"""Builds the job graph for a worktree operation.

Create with an upstream is the interesting case:

    add_worktree --ok--> fetch --ok--> set_upstream --any--> [push --any-->] rebase --any--> end
         |                 |
       fail              fail
         v                 v
     hard failure      hard failure

``set_upstream``, ``push`` and ``rebase`` are optional: their failures are
logged and the pipeline carries on to the same next step.
"""

from typing import List

from git_worktree_keeper.config import Config
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.operation import (
    CreateRequest,
    DeleteRequest,
    InspectorFindings,
    OperationRequest,
    SwitchRequest,
)
from git_worktree_keeper.models.pipeline import JobNode, Pipeline
from git_worktree_keeper.models.worktree import RepositoryContext

logger = get_logger(__name__)

REBASE_FAILED_MESSAGE = "Rebase failed, but that's ok."


def _describe(executable: str, args: List[str]) -> str:
    return " ".join([executable, *args])


class PipelineBuilder:
    """Turns an operation request plus inspector findings into a job graph."""

    def __init__(self, config: Config):
        self.config = config
        self.executable = config.git_executable

    def build(
        self,
        request: OperationRequest,
        context: RepositoryContext,
        findings: InspectorFindings,
    ) -> Pipeline:
        """Build a fresh pipeline for one run of ``request``."""
        worktree_path = context.resolve(request.path)
        if isinstance(request, CreateRequest):
            nodes = self._create_nodes(request, context, findings, worktree_path)
        elif isinstance(request, SwitchRequest):
            nodes = []
        elif isinstance(request, DeleteRequest):
            nodes = self._delete_nodes(request, context)
        else:
            raise TypeError(f"Unsupported operation request: {request!r}")

        pipeline = Pipeline(
            request=request,
            context=context,
            worktree_path=worktree_path,
            entry=nodes[0] if nodes else None,
            nodes=nodes,
        )
        logger.debug(f"Built {request.kind.value} pipeline: {pipeline.step_names}")
        return pipeline

    def add_worktree_args(self, request: CreateRequest, branch_exists: bool) -> List[str]:
        if branch_exists:
            return ["worktree", "add", request.path, request.branch]
        return ["worktree", "add", "-b", request.branch, request.path]

    def _create_nodes(
        self,
        request: CreateRequest,
        context: RepositoryContext,
        findings: InspectorFindings,
        worktree_path: str,
    ) -> List[JobNode]:
        add_args = self.add_worktree_args(request, findings.branch_exists)
        add = JobNode(
            name="add_worktree",
            args=add_args,
            cwd=context.root,
            status_message=_describe(self.executable, add_args),
        )
        upstream = findings.upstream
        if upstream is None:
            return [add]

        fetch = JobNode(
            name="fetch",
            args=["fetch", "--all"],
            cwd=worktree_path,
            status_message=f"{self.executable} fetch --all (This may take a moment)",
        )

        set_upstream_args = ["branch", f"--set-upstream-to={upstream}/{request.branch}"]
        set_upstream = JobNode(
            name="set_upstream",
            args=set_upstream_args,
            cwd=worktree_path,
            status_message=_describe(self.executable, set_upstream_args),
            required=False,
        )

        rebase = JobNode(
            name="rebase",
            args=["rebase"],
            cwd=worktree_path,
            status_message=f"{self.executable} rebase",
            required=False,
            soft_failure_message=REBASE_FAILED_MESSAGE,
        )

        nodes = [add, fetch, set_upstream]
        add.then(fetch)
        fetch.then(set_upstream)

        if self.config.autopush:
            push_args = ["push", "--set-upstream", upstream, request.branch, request.path]
            push = JobNode(
                name="push",
                args=push_args,
                cwd=worktree_path,
                status_message=_describe(self.executable, push_args),
                required=False,
            )
            set_upstream.then(push, on_failure=True)
            push.then(rebase, on_failure=True)
            nodes.append(push)
        else:
            set_upstream.then(rebase, on_failure=True)

        nodes.append(rebase)
        return nodes

    def _delete_nodes(self, request: DeleteRequest, context: RepositoryContext) -> List[JobNode]:
        args = ["worktree", "remove", request.path]
        if request.force:
            args.append("--force")
        return [
            JobNode(
                name="remove_worktree",
                args=args,
                cwd=context.root,
                status_message=_describe(self.executable, args),
            )
        ]
