"""FastAPI app entrypoint: submit tasks, poll status, manage to-dos.

Serve with `uvicorn --factory task_orchestrator.api.main:create_app`.
"""

from __future__ import annotations

from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from pydantic import BaseModel, Field

from task_orchestrator.config.settings import Settings, configure_logging, get_settings
from task_orchestrator.errors import DuplicateTaskError, UnknownTaskTypeError
from task_orchestrator.orchestrator import WorkflowOrchestrator
from task_orchestrator.storage.models import (
    StepStatus,
    Task,
    TaskStatus,
    TodoItem,
    TodoPriority,
    TodoStatus,
)
from task_orchestrator.storage.todos import TodoLedger

FEATURES = [
    "Task management with LangGraph workflows",
    "Todo list integration",
    "Long-running task orchestration",
    "Step-by-step execution tracking",
    "CLI tool integration workflows",
]


class CreateTaskRequest(BaseModel):
    task_type: str = "planning"
    description: str = Field(min_length=1)
    task_id: str | None = None


class CreateTaskResponse(BaseModel):
    task_id: str
    todo_id: str
    status: TaskStatus


class TaskListResponse(BaseModel):
    tasks: list[Task]
    active_count: int


class UpdateTaskStatusRequest(BaseModel):
    status: TaskStatus


class UpdateStepStatusRequest(BaseModel):
    status: StepStatus
    result: str | None = None


class CreateTodoRequest(BaseModel):
    title: str = Field(min_length=1)
    description: str = ""
    priority: TodoPriority = "medium"
    task_id: str | None = None


class CreateTodoResponse(BaseModel):
    todo_id: str


class UpdateTodoStatusRequest(BaseModel):
    status: TodoStatus


def create_app(
    *,
    orchestrator: WorkflowOrchestrator | None = None,
    ledger: TodoLedger | None = None,
    settings_override: Settings | None = None,
) -> FastAPI:
    settings = settings_override or get_settings()
    configure_logging(settings.log_level)
    orchestrator = orchestrator or WorkflowOrchestrator(settings=settings)
    ledger = ledger or TodoLedger()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        app.state.orchestrator.start_watchdog()
        yield
        app.state.orchestrator.shutdown(wait=False)

    app = FastAPI(title=settings.app_name, lifespan=lifespan)
    app.state.settings = settings
    app.state.orchestrator = orchestrator
    app.state.ledger = ledger

    def _orchestrator(request: Request) -> WorkflowOrchestrator:
        return request.app.state.orchestrator

    def _ledger(request: Request) -> TodoLedger:
        return request.app.state.ledger

    @app.get("/health")
    def health() -> dict[str, str]:
        return {"status": "ok", "service": settings.app_name}

    @app.get("/")
    def overview(request: Request) -> dict:
        registry = _orchestrator(request).registry
        todos = _ledger(request)
        return {
            "description": "Task orchestration API",
            "features": FEATURES,
            "task_types": _orchestrator(request).task_types,
            "statistics": {
                "active_tasks": registry.get_active_tasks_count(),
                "tasks_by_status": registry.count_by_status(),
                "total_todos": len(todos.get_todos()),
                "pending_todos": len(todos.get_todos("todo")),
                "in_progress_todos": len(todos.get_todos("in_progress")),
                "completed_todos": len(todos.get_todos("done")),
            },
        }

    @app.post("/tasks", response_model=CreateTaskResponse)
    def create_task(payload: CreateTaskRequest, request: Request) -> CreateTaskResponse:
        orchestrator = _orchestrator(request)
        try:
            task_id = orchestrator.submit(
                payload.description, payload.task_type, task_id=payload.task_id
            )
        except UnknownTaskTypeError as exc:
            raise HTTPException(status_code=400, detail=str(exc)) from exc
        except DuplicateTaskError as exc:
            raise HTTPException(status_code=409, detail=str(exc)) from exc

        todo_id = _ledger(request).add_todo(
            f"Complete {payload.task_type} task",
            payload.description,
            "high",
            task_id,
        )
        task = orchestrator.registry.get_task(task_id)
        return CreateTaskResponse(
            task_id=task_id,
            todo_id=todo_id,
            status=task.status if task else "pending",
        )

    @app.get("/tasks", response_model=TaskListResponse)
    def list_tasks(request: Request) -> TaskListResponse:
        registry = _orchestrator(request).registry
        return TaskListResponse(
            tasks=registry.get_all_tasks(),
            active_count=registry.get_active_tasks_count(),
        )

    @app.get("/tasks/{task_id}", response_model=Task)
    def get_task(task_id: str, request: Request) -> Task:
        task = _orchestrator(request).registry.get_task(task_id)
        if task is None:
            raise HTTPException(status_code=404, detail="Task not found")
        return task

    @app.put("/tasks/{task_id}/status")
    def update_task_status(
        task_id: str, payload: UpdateTaskStatusRequest, request: Request
    ) -> dict[str, bool]:
        _orchestrator(request).registry.update_task_status(task_id, payload.status)
        return {"success": True}

    @app.put("/tasks/{task_id}/steps/{step_id}")
    def update_step_status(
        task_id: str, step_id: str, payload: UpdateStepStatusRequest, request: Request
    ) -> dict[str, bool]:
        _orchestrator(request).registry.update_step_status(
            task_id, step_id, payload.status, payload.result
        )
        return {"success": True}

    @app.get("/tasks/{task_id}/todos", response_model=list[TodoItem])
    def todos_by_task(task_id: str, request: Request) -> list[TodoItem]:
        return _ledger(request).get_todos_by_task(task_id)

    @app.post("/todos", response_model=CreateTodoResponse)
    def create_todo(payload: CreateTodoRequest, request: Request) -> CreateTodoResponse:
        todo_id = _ledger(request).add_todo(
            payload.title, payload.description, payload.priority, payload.task_id
        )
        return CreateTodoResponse(todo_id=todo_id)

    @app.get("/todos", response_model=list[TodoItem])
    def list_todos(request: Request, status: TodoStatus | None = None) -> list[TodoItem]:
        return _ledger(request).get_todos(status)

    @app.put("/todos/{todo_id}/status")
    def update_todo_status(
        todo_id: str, payload: UpdateTodoStatusRequest, request: Request
    ) -> dict[str, bool]:
        _ledger(request).update_todo_status(todo_id, payload.status)
        return {"success": True}

    return app

