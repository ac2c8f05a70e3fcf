from __future__ import annotations

import threading
from collections.abc import Iterator

import pytest

from task_orchestrator.config.settings import Settings
from task_orchestrator.executors import StepRequest
from task_orchestrator.orchestrator import WorkflowOrchestrator
from task_orchestrator.storage.registry import TaskRegistry
from task_orchestrator.storage.todos import TodoLedger


class RecordingExecutor:
    """Test double that records calls and can fail selected steps."""

    def __init__(self, fail_on: set[str] | None = None) -> None:
        self.fail_on = fail_on or set()
        self.calls: list[StepRequest] = []
        self._lock = threading.Lock()

    def execute(self, request: StepRequest) -> str:
        with self._lock:
            self.calls.append(request)
        if request.step_id in self.fail_on:
            raise RuntimeError(f"boom in {request.step_id}")
        return f"done: {request.description}"

    @property
    def step_ids(self) -> list[str]:
        return [call.step_id for call in self.calls]


@pytest.fixture
def settings() -> Settings:
    return Settings(
        executor_mode="echo",
        max_concurrent_tasks=4,
        step_timeout_s=5.0,
        stalled_task_timeout_s=60.0,
        watchdog_interval_s=60.0,
    )


@pytest.fixture
def registry() -> TaskRegistry:
    return TaskRegistry()


@pytest.fixture
def ledger() -> TodoLedger:
    return TodoLedger()


@pytest.fixture
def executor() -> RecordingExecutor:
    return RecordingExecutor()


@pytest.fixture
def orchestrator(
    registry: TaskRegistry, executor: RecordingExecutor, settings: Settings
) -> Iterator[WorkflowOrchestrator]:
    instance = WorkflowOrchestrator(registry=registry, executor=executor, settings=settings)
    yield instance
    instance.shutdown(wait=True)
