"""Task and workflow orchestration core."""

from task_orchestrator.orchestrator import WorkflowOrchestrator
from task_orchestrator.storage import TaskRegistry, TodoLedger

__all__ = ["TaskRegistry", "TodoLedger", "WorkflowOrchestrator"]
