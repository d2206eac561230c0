"""Core functionality for git-worktree-keeper"""

import os
from concurrent.futures import Future
from dataclasses import dataclass, field
from threading import Lock
from typing import Callable, Dict, List, Optional, Union

from git_worktree_keeper.config import Config
from git_worktree_keeper.exceptions import (
    GitOperationError,
    PreconditionError,
    StepFailedError,
    WorktreeExistsError,
    WorktreeKeeperError,
)
from git_worktree_keeper.logging_config import get_logger
from git_worktree_keeper.models.operation import (
    ChangeEvent,
    CreateRequest,
    DeleteRequest,
    InspectorFindings,
    OperationKind,
    OperationRequest,
    SwitchRequest,
)
from git_worktree_keeper.models.pipeline import (
    HardFailure,
    JobNode,
    Pipeline,
    PipelineResult,
    PipelineState,
    SoftFailure,
    Success,
)
from git_worktree_keeper.models.worktree import RepositoryContext, WorktreeInfo
from git_worktree_keeper.services.pipeline_builder import PipelineBuilder
from git_worktree_keeper.services.process_runner import ProcessOutcome, ProcessRunner
from git_worktree_keeper.services.progress import ProgressReporter
from git_worktree_keeper.services.repository_inspector import RepositoryInspector
from git_worktree_keeper.services.workspace import Workspace
from git_worktree_keeper.services.worktree_registry import WorktreeRegistry
from git_worktree_keeper.utils.paths import resolve_absolute_path
from git_worktree_keeper.utils.scheduling import CallbackQueue, Scheduler

logger = get_logger(__name__)

ChangeListener = Callable[[ChangeEvent], None]

# Steps reported per operation, including precondition checks and callbacks
STEP_COUNTS = {
    OperationKind.CREATE: 8,
    OperationKind.SWITCH: 2,
    OperationKind.DELETE: 2,
}


@dataclass(eq=False)
class PipelineRun:
    """Book-keeping for one operation from precondition check to result."""

    request: OperationRequest
    future: "Future[PipelineResult]" = field(default_factory=Future)
    state: PipelineState = PipelineState.IDLE
    pipeline: Optional[Pipeline] = None
    findings: Optional[InspectorFindings] = None
    lock: Optional[Lock] = None
    soft_errors: List[StepFailedError] = field(default_factory=list)
    completed_steps: List[str] = field(default_factory=list)

    @property
    def operation_name(self) -> str:
        return f"{self.request.kind.value}_worktree"

    def transition(self, state: PipelineState) -> None:
        logger.debug(f"{self.operation_name} {self.request.path}: {self.state.value} -> {state.value}")
        self.state = state

    def release(self) -> None:
        if self.lock is not None:
            self.lock.release()
            self.lock = None


class Subscription:
    """Handle returned by ``on_change``; call ``unsubscribe`` to stop listening."""

    def __init__(self, coordinator: "WorktreeCoordinator", listener: ChangeListener):
        self._coordinator = coordinator
        self.listener = listener

    def unsubscribe(self) -> None:
        self._coordinator._remove_listener(self.listener)


class WorktreeCoordinator:
    """Runs create/switch/delete worktree operations as job pipelines."""

    def __init__(
        self,
        config: Union[Config, dict, None] = None,
        runner: Optional[ProcessRunner] = None,
        reporter: Optional[ProgressReporter] = None,
        workspace: Optional[Workspace] = None,
        scheduler: Optional[Scheduler] = None,
        inspector: Optional[RepositoryInspector] = None,
        builder: Optional[PipelineBuilder] = None,
    ):
        """Initialize the coordinator.

        Args:
            config: Configuration dict or Config object
            runner: Process runner shared by every collaborator
            reporter: Receives step started / step failed messages
            workspace: Directory switching collaborator
            scheduler: Caller's execution context for completions (default: a CallbackQueue)
            inspector: Repository inspector
            builder: Pipeline builder
        """
        if isinstance(config, dict):
            config = Config.from_dict(config)
        self.config = config or Config()
        self.runner = runner or ProcessRunner(self.config.git_executable, self.config.workers)
        self.reporter = reporter or ProgressReporter()
        self.scheduler = scheduler or CallbackQueue()
        self.workspace = workspace or Workspace(self.config, self.runner)
        self.inspector = inspector or RepositoryInspector(self.runner)
        self.builder = builder or PipelineBuilder(self.config)
        self.registry = WorktreeRegistry(self.inspector)

        self._context: Optional[RepositoryContext] = None
        self._listeners: List[ChangeListener] = []
        self._listeners_lock = Lock()
        self._root_locks: Dict[str, Lock] = {}
        self._root_locks_lock = Lock()

    # Caller-facing operations

    def create_worktree(self, path: str, branch: str, upstream: Optional[str] = None) -> "Future[PipelineResult]":
        """Create a worktree at ``path`` for ``branch`` and switch to it.

        ``upstream`` defaults to the configured default remote when that
        remote exists. Raises PreconditionError if the repository cannot be
        inspected; every other failure is delivered through the future.
        """
        return self.submit(CreateRequest(path=path, branch=branch, upstream=upstream))

    def switch_worktree(self, path: str) -> "Future[PipelineResult]":
        """Make the worktree at ``path`` the active one."""
        return self.submit(SwitchRequest(path=path))

    def delete_worktree(
        self,
        path: str,
        force: bool = False,
        on_success: Optional[Callable[[], None]] = None,
        on_failure: Optional[Callable[[Exception], None]] = None,
    ) -> "Future[PipelineResult]":
        """Remove the worktree at ``path``.

        ``on_success`` runs after the delete change event. ``on_failure``
        runs before the failure is reported.
        """
        return self.submit(DeleteRequest(path=path, force=force, on_success=on_success, on_failure=on_failure))

    def on_change(self, listener: ChangeListener) -> Subscription:
        """Register a listener called with every ChangeEvent, in registration order."""
        with self._listeners_lock:
            self._listeners.append(listener)
        return Subscription(self, listener)

    def reset(self) -> None:
        """Drop every registered change listener."""
        with self._listeners_lock:
            self._listeners = []

    def get_root(self) -> Optional[str]:
        return self._context.root if self._context else None

    def get_current_worktree_path(self) -> Optional[str]:
        return self._context.current_worktree_path if self._context else None

    def get_context(self) -> Optional[RepositoryContext]:
        return self._context

    def resolve_absolute_path(self, path: str) -> str:
        """Resolve ``path`` against the repository root; absolute paths pass through."""
        if os.path.isabs(path):
            return path
        context = self._context or self.refresh_context()
        return resolve_absolute_path(path, context.root)

    def refresh_context(self) -> RepositoryContext:
        """Re-derive the repository context from the workspace directory.

        Raises:
            PreconditionError: If the root or current worktree cannot be determined
        """
        try:
            context = self.inspector.detect_context(self.workspace.cwd())
        except PreconditionError as e:
            self._context = None
            logger.error(str(e))
            raise
        self._context = context
        return context

    def list_worktrees(self) -> List[WorktreeInfo]:
        """Worktrees git currently knows about, main worktree first."""
        context = self._context or self.refresh_context()
        return self.registry.list(context)

    def shutdown(self, wait: bool = True) -> None:
        self.runner.shutdown(wait=wait)

    def __enter__(self) -> "WorktreeCoordinator":
        return self

    def __exit__(self, *exc_info) -> None:
        self.shutdown()

    # Pipeline execution

    def submit(self, request: OperationRequest) -> "Future[PipelineResult]":
        """Check preconditions, build the pipeline for ``request`` and start it."""
        run = PipelineRun(request=request)
        run.future.set_running_or_notify_cancel()  # No cancellation once started
        self.reporter.reset(STEP_COUNTS[request.kind])

        run.transition(PipelineState.PRECONDITION_CHECK)
        context = self.refresh_context()
        run.lock = self._lock_for(context.root)
        run.lock.acquire()
        try:
            self.reporter.next_status(f"Checking for worktree {request.path}")
            run.findings = self.inspector.gather(request, context, self.config.default_remote)
            run.pipeline = self.builder.build(request, context, run.findings)
            proceed = self._check_findings(run)
        except BaseException:
            run.release()
            raise

        if not proceed:
            return run.future

        run.transition(PipelineState.PIPELINE_EXECUTING)
        self._advance(run, run.pipeline.entry)
        return run.future

    def _check_findings(self, run: PipelineRun) -> bool:
        request = run.request
        findings = run.findings
        if isinstance(request, CreateRequest):
            if findings.worktree_exists:
                self._fail(run, WorktreeExistsError(request.path), "check_worktree")
                return False
            self.reporter.status(f"found branch {request.branch}: {findings.branch_exists}")
            self.reporter.status(f"upstream: {findings.upstream or 'none'}")
        elif not findings.worktree_exists:
            # Reported only: the directory change / removal is still attempted
            if isinstance(request, SwitchRequest):
                self.reporter.error(f"worktree does not exist, please create it first {request.path}")
            else:
                self.reporter.error(f"Worktree {request.path} does not exist")
        return True

    def _lock_for(self, root: str) -> Lock:
        with self._root_locks_lock:
            return self._root_locks.setdefault(root, Lock())

    def _advance(self, run: PipelineRun, node: Optional[JobNode]) -> None:
        if node is None:
            self._finish(run)
            return
        try:
            self.runner.start(
                node.args,
                node.cwd,
                on_success=self._guarded(run, node, self._on_step_success),
                on_failure=self._guarded(run, node, self._on_step_failure),
                on_start=lambda: self.reporter.next_status(node.status_message),
            )
        except Exception as e:
            # Job pool shut down, or reporting the step failed before it was queued
            self._abort(run, e, node.name)

    def _guarded(
        self,
        run: PipelineRun,
        node: JobNode,
        handler: Callable[[PipelineRun, JobNode, ProcessOutcome], None],
    ) -> Callable[[ProcessOutcome], None]:
        def callback(outcome: ProcessOutcome) -> None:
            try:
                handler(run, node, outcome)
            except Exception as e:
                logger.exception(f"{run.operation_name} {run.request.path}: step {node.name} could not be handled")
                self._abort(run, e, node.name)
        return callback

    def _abort(self, run: PipelineRun, error: Exception, failed_step: str) -> None:
        """Turn an unexpected exception into a hard failure so the root lock is released."""
        if run.state.is_terminal:
            return
        self._fail(run, GitOperationError(run.operation_name, run.request.path, str(error)), failed_step)

    def _on_step_success(self, run: PipelineRun, node: JobNode, outcome: ProcessOutcome) -> None:
        run.completed_steps.append(node.name)
        self._advance(run, node.on_success)

    def _on_step_failure(self, run: PipelineRun, node: JobNode, outcome: ProcessOutcome) -> None:
        error = StepFailedError(
            operation=run.operation_name,
            path=run.pipeline.worktree_path,
            command=outcome.command,
            cwd=outcome.cwd,
            stderr=outcome.stderr,
            exit_code=outcome.exit_code,
        )
        if node.required:
            self._fail(run, error, node.name)
            return

        run.soft_errors.append(error)
        if node.soft_failure_message:
            self.reporter.status(node.soft_failure_message)
        self.reporter.warning(str(error))
        self._advance(run, node.on_failure)

    def _finish(self, run: PipelineRun) -> None:
        if run.soft_errors:
            result: PipelineResult = SoftFailure(last_error=run.soft_errors[-1], errors=list(run.soft_errors))
        else:
            result = Success()
        run.transition(result.state)
        run.release()
        self.scheduler.post(self._complete, run, result)

    def _fail(self, run: PipelineRun, error: WorktreeKeeperError, failed_step: str) -> None:
        run.transition(PipelineState.HARD_FAILURE)
        run.release()
        self.scheduler.post(self._complete_failure, run, HardFailure(error=error, failed_step=failed_step))

    # Completion, always on the caller's scheduler

    def _complete(self, run: PipelineRun, result: PipelineResult) -> None:
        request = run.request
        if isinstance(request, CreateRequest):
            self._complete_create(run, request, result)
        elif isinstance(request, SwitchRequest):
            self._complete_switch(run, request, result)
        else:
            self._complete_delete(run, request, result)

    def _complete_create(self, run: PipelineRun, request: CreateRequest, result: PipelineResult) -> None:
        switch: Optional["Future[PipelineResult]"] = None
        try:
            self._emit(ChangeEvent(
                operation=OperationKind.CREATE,
                path=request.path,
                branch=request.branch,
                upstream=run.findings.upstream,
            ))
            switch = self.switch_worktree(request.path)
        except WorktreeKeeperError as e:
            self.reporter.error(f"Could not switch to {request.path}: {e}")
        finally:
            if switch is None:
                run.future.set_result(result)
        if switch is not None:
            switch.add_done_callback(lambda _: run.future.set_result(result))

    def _complete_switch(self, run: PipelineRun, request: SwitchRequest, result: PipelineResult) -> None:
        context = run.pipeline.context
        worktree_path = run.pipeline.worktree_path
        previous_path = context.current_worktree_path
        try:
            if self.workspace.change_directory(worktree_path):
                self._context = context.with_current(worktree_path)
            else:
                self.reporter.error(f"Could not change to directory: {worktree_path}")

            if self.config.clear_history_on_change:
                self.workspace.clear_history()

            self._emit(ChangeEvent(
                operation=OperationKind.SWITCH,
                path=request.path,
                previous_path=previous_path,
            ))
        finally:
            run.future.set_result(result)

    def _complete_delete(self, run: PipelineRun, request: DeleteRequest, result: PipelineResult) -> None:
        try:
            self._emit(ChangeEvent(operation=OperationKind.DELETE, path=request.path))
            if request.on_success is not None:
                request.on_success()
        finally:
            run.future.set_result(result)

    def _complete_failure(self, run: PipelineRun, result: HardFailure) -> None:
        request = run.request
        try:
            # The caller hears about it before the failure is surfaced
            if isinstance(request, DeleteRequest) and request.on_failure is not None:
                request.on_failure(result.error)
            self.reporter.error(str(result.error))
        finally:
            run.future.set_result(result)

    def _emit(self, event: ChangeEvent) -> None:
        self.reporter.next_status(f"Running post {event.operation.value} callbacks")
        followed = self.workspace.handle_change(event)
        if event.operation == OperationKind.SWITCH:
            logger.debug(f"Workspace followed switch to {event.path}: {followed}")

        with self._listeners_lock:
            listeners = list(self._listeners)
        for listener in listeners:
            try:
                listener(event)
            except Exception:
                logger.exception(f"Change listener {listener!r} failed for {event.operation.value} {event.path}")

    def _remove_listener(self, listener: ChangeListener) -> None:
        with self._listeners_lock:
            if listener in self._listeners:
                self._listeners.remove(listener)
