"""Task, step and to-do models shared by the registry, ledger and API."""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

TaskType = Literal["planning", "development", "analysis"]
TaskStatus = Literal["pending", "running", "completed", "failed"]
StepStatus = Literal["pending", "running", "completed", "failed"]
TodoStatus = Literal["todo", "in_progress", "done"]
TodoPriority = Literal["low", "medium", "high"]

ACTIVE_TASK_STATUSES: frozenset[str] = frozenset({"pending", "running"})
TERMINAL_STATUSES: frozenset[str] = frozenset({"completed", "failed"})


def utc_now() -> datetime:
    return datetime.now(UTC)


class StepSpec(BaseModel):
    """Input shape for one step when a task is created."""

    id: str = Field(min_length=1)
    description: str


class Step(BaseModel):
    """Atomic unit of work inside a task."""

    id: str
    description: str
    status: StepStatus = "pending"
    result: str | None = None
    start_time: datetime | None = None
    end_time: datetime | None = None


class Task(BaseModel):
    """Aggregate of ordered steps plus lifecycle metadata."""

    task_id: str
    # One of the TaskType values unless extra workflows are registered.
    task_type: str
    description: str
    status: TaskStatus = "pending"
    # Insertion order is execution order.
    steps: list[Step] = Field(default_factory=list)
    # Stages add keys here; nothing ever clears it.
    context: dict[str, Any] = Field(default_factory=dict)
    created_at: datetime = Field(default_factory=utc_now)
    timestamp: datetime = Field(default_factory=utc_now)

    def get_step(self, step_id: str) -> Step | None:
        for step in self.steps:
            if step.id == step_id:
                return step
        return None

    @property
    def is_terminal(self) -> bool:
        return self.status in TERMINAL_STATUSES


class TodoItem(BaseModel):
    """Human-facing to-do, optionally linked to a task by id."""

    id: str
    title: str
    description: str
    status: TodoStatus = "todo"
    priority: TodoPriority = "medium"
    created_at: datetime = Field(default_factory=utc_now)
    updated_at: datetime = Field(default_factory=utc_now)
    # Weak reference: the task may not exist.
    task_id: str | None = None
