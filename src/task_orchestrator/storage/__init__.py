"""Task registry, to-do ledger and their models."""

from task_orchestrator.storage.models import Step, StepSpec, Task, TodoItem
from task_orchestrator.storage.registry import TaskRegistry
from task_orchestrator.storage.todos import TodoLedger

__all__ = [
    "Step",
    "StepSpec",
    "Task",
    "TaskRegistry",
    "TodoItem",
    "TodoLedger",
]
