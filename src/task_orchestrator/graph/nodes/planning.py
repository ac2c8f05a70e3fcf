"""Planning stages: decompose the request, then run each step in order."""

from __future__ import annotations

from task_orchestrator.graph.context import StageContext, TaskAborted
from task_orchestrator.graph.state import WorkflowState


def analyze_request(ctx: StageContext, state: WorkflowState) -> WorkflowState:
    ctx.begin(state["task_id"])
    return {}


def execute_planning(ctx: StageContext, state: WorkflowState) -> WorkflowState:
    task_id = state["task_id"]
    task = ctx.require_task(task_id)
    for step in task.steps:
        ctx.run_step(task_id, step.id)

    if not ctx.transition(task_id, "completed"):
        raise TaskAborted(f"Task {task_id} could not complete")
    return {}
