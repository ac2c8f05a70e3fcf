"""Flat to-do tracker, loosely linked to tasks by id."""

from __future__ import annotations

import logging
import threading
from uuid import uuid4

from task_orchestrator.storage.models import TodoItem, TodoPriority, TodoStatus, utc_now

logger = logging.getLogger(__name__)


def generate_todo_id() -> str:
    return f"todo_{uuid4().hex}"


class TodoLedger:
    """Thread-safe list of to-do items. Task links are never validated."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._todos: list[TodoItem] = []

    def add_todo(
        self,
        title: str,
        description: str,
        priority: TodoPriority = "medium",
        task_id: str | None = None,
    ) -> str:
        now = utc_now()
        item = TodoItem(
            id=generate_todo_id(),
            title=title,
            description=description,
            status="todo",
            priority=priority,
            created_at=now,
            updated_at=now,
            task_id=task_id,
        )
        with self._lock:
            self._todos.append(item)
        logger.debug("todos event=added todo_id=%s task_id=%s", item.id, task_id)
        return item.id

    def update_todo_status(self, todo_id: str, status: TodoStatus) -> None:
        with self._lock:
            for item in self._todos:
                if item.id == todo_id:
                    item.status = status
                    item.updated_at = utc_now()
                    return
        logger.debug("todos event=update_miss todo_id=%s", todo_id)

    def get_todo(self, todo_id: str) -> TodoItem | None:
        with self._lock:
            for item in self._todos:
                if item.id == todo_id:
                    return item.model_copy()
        return None

    def get_todos(self, status: TodoStatus | None = None) -> list[TodoItem]:
        with self._lock:
            return [
                item.model_copy()
                for item in self._todos
                if status is None or item.status == status
            ]

    def get_todos_by_task(self, task_id: str) -> list[TodoItem]:
        with self._lock:
            return [item.model_copy() for item in self._todos if item.task_id == task_id]
