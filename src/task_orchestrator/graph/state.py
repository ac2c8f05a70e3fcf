"""Typed state contract for LangGraph workflows."""

from typing import TypedDict


class WorkflowState(TypedDict, total=False):
    task_id: str
    task_type: str
    error: str | None
    failed_stage: str | None
    aborted: bool
    last_stage: str | None


def initial_state(task_id: str, task_type: str) -> WorkflowState:
    return {
        "task_id": task_id,
        "task_type": task_type,
        "error": None,
        "failed_stage": None,
        "aborted": False,
        "last_stage": None,
    }
