"""Development stages. Each executing stage records a context marker."""

from __future__ import annotations

from task_orchestrator.graph.context import StageContext, TaskAborted
from task_orchestrator.graph.state import WorkflowState


def setup_environment(ctx: StageContext, state: WorkflowState) -> WorkflowState:
    task_id = state["task_id"]
    ctx.begin(task_id)
    ctx.run_step(task_id, "setup_environment")
    ctx.registry.update_context(task_id, {"environmentReady": True})
    return {}


def generate_code(ctx: StageContext, state: WorkflowState) -> WorkflowState:
    task_id = state["task_id"]
    ctx.run_step(task_id, "generate_code")
    ctx.registry.update_context(task_id, {"codeGenerated": True})
    return {}


def run_tests(ctx: StageContext, state: WorkflowState) -> WorkflowState:
    task_id = state["task_id"]
    ctx.run_step(task_id, "run_tests")
    ctx.registry.update_context(task_id, {"testsCompleted": True})
    return {}


def finalize(ctx: StageContext, state: WorkflowState) -> WorkflowState:
    task_id = state["task_id"]
    ctx.require_task(task_id)
    if not ctx.transition(task_id, "completed"):
        raise TaskAborted(f"Task {task_id} could not complete")
    return {}
