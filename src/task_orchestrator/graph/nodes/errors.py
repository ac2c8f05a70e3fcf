"""Error stage: terminal failure for any stage that raised."""

from __future__ import annotations

import logging

from task_orchestrator.graph.context import StageContext
from task_orchestrator.graph.state import WorkflowState

logger = logging.getLogger(__name__)


def handle_errors(ctx: StageContext, state: WorkflowState) -> WorkflowState:
    task_id = state["task_id"]
    error = state.get("error") or "unknown error"
    failed_stage = state.get("failed_stage")
    logger.error(
        "task_run event=failed task_id=%s stage=%s error=%s", task_id, failed_stage, error
    )
    ctx.registry.update_context(task_id, {"error": error, "failed_stage": failed_stage})
    ctx.transition(task_id, "failed")
    return {"last_stage": "handle_errors"}
