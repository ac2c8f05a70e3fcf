"""Workflow orchestrator: submits tasks and drives them through their graphs.

Each task runs on its own worker thread. Steps inside one task run strictly
in order; different tasks never wait on each other's executor calls.
"""

from __future__ import annotations

import logging
import threading
from concurrent.futures import Future, ThreadPoolExecutor
from concurrent.futures import TimeoutError as FutureTimeoutError
from datetime import timedelta
from typing import Any
from uuid import uuid4

from task_orchestrator.config.settings import Settings, get_settings
from task_orchestrator.errors import UnknownTaskTypeError
from task_orchestrator.executors import StepExecutor, build_step_executor
from task_orchestrator.graph.context import StageContext, allowed_sources
from task_orchestrator.graph.state import initial_state
from task_orchestrator.graph.workflow import WorkflowDefinition, build_graph, default_workflows
from task_orchestrator.storage.models import ACTIVE_TASK_STATUSES, Task, TaskType, utc_now
from task_orchestrator.storage.registry import TaskRegistry

logger = logging.getLogger(__name__)


def generate_task_id() -> str:
    return f"task_{uuid4().hex}"


class WorkflowOrchestrator:
    """Own the registry, the workflow graphs and the worker pool for task runs."""

    def __init__(
        self,
        *,
        registry: TaskRegistry | None = None,
        executor: StepExecutor | None = None,
        workflows: dict[str, WorkflowDefinition] | None = None,
        settings: Settings | None = None,
    ) -> None:
        self.settings = settings or get_settings()
        self.registry = registry or TaskRegistry()
        self.executor = executor or build_step_executor(self.settings)
        self._workflows: dict[str, WorkflowDefinition] = {}
        self._graphs: dict[str, Any] = {}
        self._lock = threading.Lock()
        self._futures: dict[str, Future[Task | None]] = {}
        self._pool = ThreadPoolExecutor(
            max_workers=self.settings.max_concurrent_tasks,
            thread_name_prefix="task-run",
        )
        self._watchdog_stop = threading.Event()
        self._watchdog_thread: threading.Thread | None = None
        for task_type, definition in (workflows or default_workflows()).items():
            self.register_workflow(task_type, definition)

    @property
    def task_types(self) -> list[str]:
        return sorted(self._workflows)

    def register_workflow(self, task_type: str, definition: WorkflowDefinition) -> None:
        ctx = StageContext(
            registry=self.registry,
            executor=self.executor,
            decomposition=definition.decomposition,
        )
        graph = build_graph(definition, ctx)
        with self._lock:
            self._workflows[task_type] = definition
            self._graphs[task_type] = graph

    def get_workflow(self, task_type: str) -> WorkflowDefinition:
        definition = self._workflows.get(task_type)
        if definition is None:
            raise UnknownTaskTypeError(task_type)
        return definition

    def create_task(self, request: str, task_type: TaskType, task_id: str | None = None) -> Task:
        """Register a task whose steps come from the workflow's decomposition policy."""
        definition = self.get_workflow(task_type)
        steps = definition.decomposition.decompose(request)
        return self.registry.create_task(task_id or generate_task_id(), task_type, request, steps)

    def submit(self, request: str, task_type: TaskType, task_id: str | None = None) -> str:
        """Create a task and start it in the background; returns its id at once."""
        task = self.create_task(request, task_type, task_id=task_id)
        future = self._pool.submit(self._run_guarded, task.task_id)
        with self._lock:
            self._futures[task.task_id] = future
        logger.info(
            "task_run event=submitted task_id=%s task_type=%s", task.task_id, task.task_type
        )
        return task.task_id

    def run(self, task_id: str) -> Task | None:
        """Drive an existing task through its workflow on the calling thread."""
        task = self.registry.get_task(task_id)
        if task is None:
            return None
        graph = self._graphs.get(task.task_type)
        if graph is None:
            raise UnknownTaskTypeError(task.task_type)

        logger.info("task_run event=start task_id=%s task_type=%s", task_id, task.task_type)
        graph.invoke(initial_state(task_id, task.task_type))
        final = self.registry.get_task(task_id)
        logger.info(
            "task_run event=finished task_id=%s status=%s",
            task_id,
            final.status if final else "removed",
        )
        return final

    def wait(self, task_id: str, timeout: float | None = None) -> Task | None:
        with self._lock:
            future = self._futures.get(task_id)
        if future is not None:
            try:
                future.result(timeout=timeout)
            except FutureTimeoutError:
                logger.debug("task_run event=wait_timeout task_id=%s", task_id)
        return self.registry.get_task(task_id)

    def fail_stalled_tasks(self, max_idle_s: float | None = None) -> list[str]:
        """Fail active tasks that have not changed for ``max_idle_s`` seconds."""
        limit = self.settings.stalled_task_timeout_s if max_idle_s is None else max_idle_s
        cutoff = utc_now() - timedelta(seconds=limit)
        failed: list[str] = []
        for task in self.registry.get_all_tasks():
            if task.status not in ACTIVE_TASK_STATUSES or task.timestamp > cutoff:
                continue
            changed = self.registry.fail_stalled_task(
                task.task_id,
                cutoff=cutoff,
                reason=f"Timed out after {limit:.0f}s without progress",
                context={"error": "stalled", "failed_stage": "watchdog"},
            )
            if not changed:
                continue
            logger.warning("task_run event=stalled task_id=%s", task.task_id)
            failed.append(task.task_id)
        return failed

    def start_watchdog(self, interval_s: float | None = None) -> None:
        if self._watchdog_thread is not None and self._watchdog_thread.is_alive():
            return
        interval = self.settings.watchdog_interval_s if interval_s is None else interval_s
        self._watchdog_stop.clear()
        self._watchdog_thread = threading.Thread(
            target=self._watchdog_loop,
            args=(interval,),
            name="task-watchdog",
            daemon=True,
        )
        self._watchdog_thread.start()

    def shutdown(self, wait: bool = True) -> None:
        self._watchdog_stop.set()
        if self._watchdog_thread is not None:
            self._watchdog_thread.join(timeout=1.0)
            self._watchdog_thread = None
        self._pool.shutdown(wait=wait)

    def _watchdog_loop(self, interval_s: float) -> None:
        while not self._watchdog_stop.wait(interval_s):
            try:
                self.fail_stalled_tasks()
            except Exception:  # noqa: BLE001
                logger.exception("task_run event=watchdog_error")

    def _run_guarded(self, task_id: str) -> Task | None:
        try:
            return self.run(task_id)
        except Exception as exc:  # noqa: BLE001
            logger.exception("task_run event=crashed task_id=%s", task_id)
            self.registry.update_context(task_id, {"error": str(exc)})
            self.registry.update_task_status_if(
                task_id, "failed", expected=allowed_sources("failed")
            )
            return self.registry.get_task(task_id)
