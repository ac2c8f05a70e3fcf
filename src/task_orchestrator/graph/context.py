"""Shared helpers that stages use to drive a task through the registry."""

from __future__ import annotations

import logging
from dataclasses import dataclass

from task_orchestrator.errors import OrchestrationError
from task_orchestrator.executors.base import StepExecutor, StepRequest
from task_orchestrator.graph.decomposition import DecompositionPolicy
from task_orchestrator.storage.models import ACTIVE_TASK_STATUSES, Task, TaskStatus
from task_orchestrator.storage.registry import TaskRegistry

logger = logging.getLogger(__name__)

# Legal task transitions; completed and failed are terminal.
ALLOWED_TRANSITIONS: dict[str, frozenset[str]] = {
    "pending": frozenset({"running", "failed"}),
    "running": frozenset({"completed", "failed"}),
    "completed": frozenset(),
    "failed": frozenset(),
}


class TaskAborted(OrchestrationError):
    """The task left the stage loop's control (missing or already terminal)."""


def allowed_sources(status: TaskStatus) -> frozenset[str]:
    return frozenset(
        source for source, targets in ALLOWED_TRANSITIONS.items() if status in targets
    )


@dataclass(frozen=True)
class StageContext:
    registry: TaskRegistry
    executor: StepExecutor
    decomposition: DecompositionPolicy

    def require_task(self, task_id: str) -> Task:
        task = self.registry.get_task(task_id)
        if task is None:
            raise TaskAborted(f"Task {task_id} is not registered")
        if task.is_terminal:
            raise TaskAborted(f"Task {task_id} is already {task.status}")
        return task

    def transition(self, task_id: str, status: TaskStatus) -> bool:
        changed = self.registry.update_task_status_if(
            task_id, status, expected=allowed_sources(status)
        )
        if changed:
            logger.info("task_run event=status task_id=%s status=%s", task_id, status)
        else:
            logger.warning(
                "task_run event=illegal_transition task_id=%s target=%s", task_id, status
            )
        return changed

    def begin(self, task_id: str) -> Task:
        """Align the task's steps with the decomposition and mark it running."""
        task = self.require_task(task_id)
        planned = self.decomposition.decompose(task.description)
        if [step.id for step in task.steps] != [spec.id for spec in planned]:
            self.registry.replace_steps(task_id, planned)
        if not self.transition(task_id, "running"):
            raise TaskAborted(f"Task {task_id} could not start")
        return self.require_task(task_id)

    def run_step(self, task_id: str, step_id: str) -> str:
        task = self.require_task(task_id)
        step = task.get_step(step_id)
        if step is None:
            raise OrchestrationError(f"Task {task_id} has no step {step_id}")

        if not self.registry.update_step_status(
            task_id, step_id, "running", expected_task_status=ACTIVE_TASK_STATUSES
        ):
            raise TaskAborted(f"Task {task_id} is no longer active")
        logger.info("task_run event=step_start task_id=%s step_id=%s", task_id, step_id)
        request = StepRequest(
            task_id=task_id,
            task_type=task.task_type,
            step_id=step_id,
            description=step.description,
            request=task.description,
            context=dict(task.context),
        )
        try:
            output = self.executor.execute(request)
        except Exception as exc:
            reason = str(exc) or exc.__class__.__name__
            recorded = self.registry.update_step_status(
                task_id, step_id, "failed", reason, expected_task_status=ACTIVE_TASK_STATUSES
            )
            if not recorded:
                raise TaskAborted(f"Task {task_id} ended while step {step_id} ran") from exc
            logger.warning(
                "task_run event=step_failed task_id=%s step_id=%s error=%s",
                task_id,
                step_id,
                reason,
            )
            raise

        # The watchdog may have failed the task while the executor was busy.
        if not self.registry.update_step_status(
            task_id, step_id, "completed", output, expected_task_status=ACTIVE_TASK_STATUSES
        ):
            raise TaskAborted(f"Task {task_id} ended while step {step_id} ran")
        logger.info("task_run event=step_completed task_id=%s step_id=%s", task_id, step_id)
        return output
