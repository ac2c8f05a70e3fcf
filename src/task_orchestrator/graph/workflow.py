"""Declarative workflow definitions compiled into LangGraph graphs."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass

from langgraph.graph import END, StateGraph

from task_orchestrator.graph.context import StageContext, TaskAborted
from task_orchestrator.graph.decomposition import (
    DecompositionPolicy,
    development_policy,
    planning_policy,
)
from task_orchestrator.graph.nodes import development, planning
from task_orchestrator.graph.nodes.errors import handle_errors
from task_orchestrator.graph.state import WorkflowState

logger = logging.getLogger(__name__)

ERROR_STAGE = "handle_errors"

StageFn = Callable[[StageContext, WorkflowState], WorkflowState]


@dataclass(frozen=True)
class Stage:
    name: str
    run: StageFn


@dataclass(frozen=True)
class WorkflowDefinition:
    """Ordered stages for one task type plus the policy that derives its steps."""

    name: str
    stages: tuple[Stage, ...]
    decomposition: DecompositionPolicy

    def __post_init__(self) -> None:
        names = [stage.name for stage in self.stages]
        if not names:
            raise ValueError(f"Workflow {self.name} has no stages")
        if len(set(names)) != len(names):
            raise ValueError(f"Workflow {self.name} has duplicate stage names: {names}")
        if ERROR_STAGE in names:
            raise ValueError(f"Stage name {ERROR_STAGE!r} is reserved")

    @property
    def stage_names(self) -> list[str]:
        return [stage.name for stage in self.stages]


def build_graph(definition: WorkflowDefinition, ctx: StageContext):
    """Compile a definition: stages run in order, any failure routes to the error stage."""
    graph = StateGraph(WorkflowState)

    for stage in definition.stages:
        graph.add_node(stage.name, _stage_node(stage, ctx))
    graph.add_node(ERROR_STAGE, _error_node(ctx))

    graph.set_entry_point(definition.stages[0].name)
    for index, stage in enumerate(definition.stages):
        is_last = index == len(definition.stages) - 1
        next_stage = END if is_last else definition.stages[index + 1].name
        graph.add_conditional_edges(
            stage.name,
            _route_after_stage,
            {"next": next_stage, "error": ERROR_STAGE, "abort": END},
        )
    graph.add_edge(ERROR_STAGE, END)

    return graph.compile()


def _stage_node(stage: Stage, ctx: StageContext) -> Callable[[WorkflowState], WorkflowState]:
    def node(state: WorkflowState) -> WorkflowState:
        return _run_stage(stage, ctx, state)

    return node


def _error_node(ctx: StageContext) -> Callable[[WorkflowState], WorkflowState]:
    def node(state: WorkflowState) -> WorkflowState:
        return handle_errors(ctx, state)

    return node


def _run_stage(stage: Stage, ctx: StageContext, state: WorkflowState) -> WorkflowState:
    task_id = state.get("task_id", "")
    logger.debug("task_run event=stage_start task_id=%s stage=%s", task_id, stage.name)
    try:
        update = stage.run(ctx, state)
    except TaskAborted as exc:
        logger.warning(
            "task_run event=aborted task_id=%s stage=%s reason=%s", task_id, stage.name, exc
        )
        return {"aborted": True, "last_stage": stage.name}
    except Exception as exc:  # noqa: BLE001
        return {"error": str(exc) or exc.__class__.__name__, "failed_stage": stage.name}
    return {**(update or {}), "last_stage": stage.name}


def _route_after_stage(state: WorkflowState) -> str:
    if state.get("error"):
        return "error"
    if state.get("aborted"):
        return "abort"
    return "next"


def planning_workflow(name: str = "planning") -> WorkflowDefinition:
    return WorkflowDefinition(
        name=name,
        stages=(
            Stage("analyze_request", planning.analyze_request),
            Stage("execute_planning", planning.execute_planning),
        ),
        decomposition=planning_policy(),
    )


def development_workflow() -> WorkflowDefinition:
    return WorkflowDefinition(
        name="development",
        stages=(
            Stage("setup_environment", development.setup_environment),
            Stage("generate_code", development.generate_code),
            Stage("run_tests", development.run_tests),
            Stage("finalize", development.finalize),
        ),
        decomposition=development_policy(),
    )


def default_workflows() -> dict[str, WorkflowDefinition]:
    # Analysis requests follow the planning stages.
    return {
        "planning": planning_workflow(),
        "development": development_workflow(),
        "analysis": planning_workflow(name="analysis"),
    }
