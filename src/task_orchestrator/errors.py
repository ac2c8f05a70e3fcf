"""Exception types raised by the orchestration core."""

from __future__ import annotations


class OrchestrationError(Exception):
    """Base class for orchestration failures."""


class DuplicateTaskError(OrchestrationError, ValueError):
    def __init__(self, task_id: str) -> None:
        super().__init__(f"Task {task_id} already exists")
        self.task_id = task_id


class InvalidStepSpecError(OrchestrationError, ValueError):
    pass


class UnknownTaskTypeError(OrchestrationError, ValueError):
    def __init__(self, task_type: str) -> None:
        super().__init__(f"No workflow registered for task type: {task_type}")
        self.task_type = task_type


class IllegalTransitionError(OrchestrationError, ValueError):
    pass


class StepExecutionError(OrchestrationError, RuntimeError):
    """Raised by step executors when a step cannot produce a result."""
