"""In-process task registry: the single owner of all Task state.

Every read returns a deep copy, so callers only ever see snapshots. Every
write happens under the owning task's lock together with its timestamp bump.
"""

from __future__ import annotations

import logging
import threading
from collections import Counter
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any

from task_orchestrator.errors import (
    DuplicateTaskError,
    IllegalTransitionError,
    InvalidStepSpecError,
)
from task_orchestrator.storage.models import (
    ACTIVE_TASK_STATUSES,
    TERMINAL_STATUSES,
    Step,
    StepSpec,
    StepStatus,
    Task,
    TaskStatus,
    TaskType,
    utc_now,
)

logger = logging.getLogger(__name__)


@dataclass
class _Entry:
    task: Task
    lock: threading.RLock = field(default_factory=threading.RLock)


class TaskRegistry:
    """Thread-safe in-memory store for Task records."""

    def __init__(self) -> None:
        # Guards the id -> entry map only; per-task work runs under the entry lock.
        self._lock = threading.Lock()
        self._entries: dict[str, _Entry] = {}

    def create_task(
        self,
        task_id: str,
        task_type: TaskType,
        description: str,
        step_specs: Iterable[StepSpec | Mapping[str, Any]],
    ) -> Task:
        steps = _build_steps(step_specs)
        now = utc_now()
        task = Task(
            task_id=task_id,
            task_type=task_type,
            description=description,
            status="pending",
            steps=steps,
            context={},
            created_at=now,
            timestamp=now,
        )
        with self._lock:
            if task_id in self._entries:
                raise DuplicateTaskError(task_id)
            self._entries[task_id] = _Entry(task=task)
        logger.info(
            "registry event=task_created task_id=%s task_type=%s steps=%d",
            task_id,
            task_type,
            len(steps),
        )
        return task.model_copy(deep=True)

    def update_task_status(self, task_id: str, status: TaskStatus) -> None:
        entry = self._entry(task_id)
        if entry is None:
            logger.debug("registry event=update_miss task_id=%s", task_id)
            return
        with entry.lock:
            entry.task.status = status
            entry.task.timestamp = utc_now()

    def update_task_status_if(
        self,
        task_id: str,
        status: TaskStatus,
        *,
        expected: Collection[str],
    ) -> bool:
        """Set ``status`` only while the current status is in ``expected``."""
        entry = self._entry(task_id)
        if entry is None:
            return False
        with entry.lock:
            if entry.task.status not in expected:
                return False
            entry.task.status = status
            entry.task.timestamp = utc_now()
            return True

    def update_step_status(
        self,
        task_id: str,
        step_id: str,
        status: StepStatus,
        result: str | None = None,
        *,
        expected_task_status: Collection[str] | None = None,
    ) -> bool:
        """Apply a step update; returns False when nothing was written.

        With ``expected_task_status`` the update only happens while the owning
        task's status is in that collection.
        """
        entry = self._entry(task_id)
        if entry is None:
            logger.debug("registry event=update_miss task_id=%s step_id=%s", task_id, step_id)
            return False
        with entry.lock:
            step = entry.task.get_step(step_id)
            if step is None:
                logger.debug("registry event=step_miss task_id=%s step_id=%s", task_id, step_id)
                return False
            if expected_task_status is not None and entry.task.status not in expected_task_status:
                return False
            now = utc_now()
            step.status = status
            if result is not None:
                step.result = result
            if status == "running" and step.start_time is None:
                step.start_time = now
            if status in TERMINAL_STATUSES:
                if step.end_time is None:
                    step.end_time = now
            else:
                step.end_time = None
            entry.task.timestamp = now
            return True

    def update_context(self, task_id: str, values: Mapping[str, Any]) -> None:
        entry = self._entry(task_id)
        if entry is None:
            return
        with entry.lock:
            entry.task.context.update(values)
            entry.task.timestamp = utc_now()

    def replace_steps(
        self,
        task_id: str,
        step_specs: Iterable[StepSpec | Mapping[str, Any]],
    ) -> None:
        entry = self._entry(task_id)
        if entry is None:
            return
        steps = _build_steps(step_specs)
        with entry.lock:
            started = [step.id for step in entry.task.steps if step.status != "pending"]
            if started:
                raise IllegalTransitionError(
                    f"Cannot replace steps of task {task_id}; already started: {started}"
                )
            entry.task.steps = steps
            entry.task.timestamp = utc_now()

    def fail_stalled_task(
        self,
        task_id: str,
        *,
        cutoff: datetime,
        reason: str,
        context: Mapping[str, Any] | None = None,
    ) -> bool:
        """Fail an active task idle since ``cutoff`` together with its running steps.

        The idle check and every write happen under one lock hold, so a task
        that made progress after the caller looked at it is left alone.
        """
        entry = self._entry(task_id)
        if entry is None:
            return False
        with entry.lock:
            task = entry.task
            if task.status not in ACTIVE_TASK_STATUSES or task.timestamp > cutoff:
                return False
            now = utc_now()
            for step in task.steps:
                if step.status == "running":
                    step.status = "failed"
                    step.result = reason
                    step.end_time = now
            if context:
                task.context.update(context)
            task.status = "failed"
            task.timestamp = now
            return True

    def get_task(self, task_id: str) -> Task | None:
        entry = self._entry(task_id)
        if entry is None:
            return None
        with entry.lock:
            return entry.task.model_copy(deep=True)

    def get_all_tasks(self) -> list[Task]:
        with self._lock:
            entries = list(self._entries.values())
        snapshots: list[Task] = []
        for entry in entries:
            with entry.lock:
                snapshots.append(entry.task.model_copy(deep=True))
        return snapshots

    def get_active_tasks_count(self) -> int:
        return sum(1 for task in self.get_all_tasks() if task.status in ACTIVE_TASK_STATUSES)

    def count_by_status(self) -> dict[str, int]:
        counts = Counter(task.status for task in self.get_all_tasks())
        return {
            status: counts.get(status, 0)
            for status in ("pending", "running", "completed", "failed")
        }

    def remove_task(self, task_id: str) -> bool:
        with self._lock:
            removed = self._entries.pop(task_id, None)
        if removed is not None:
            logger.info("registry event=task_removed task_id=%s", task_id)
        return removed is not None

    def _entry(self, task_id: str) -> _Entry | None:
        with self._lock:
            return self._entries.get(task_id)


def _build_steps(step_specs: Iterable[StepSpec | Mapping[str, Any]]) -> list[Step]:
    specs = [
        spec if isinstance(spec, StepSpec) else StepSpec.model_validate(dict(spec))
        for spec in step_specs
    ]
    if not specs:
        raise InvalidStepSpecError("A task needs at least one step")
    seen: set[str] = set()
    for spec in specs:
        if spec.id in seen:
            raise InvalidStepSpecError(f"Duplicate step id: {spec.id}")
        seen.add(spec.id)
    return [Step(id=spec.id, description=spec.description) for spec in specs]
