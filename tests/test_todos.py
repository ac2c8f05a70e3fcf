from __future__ import annotations

from concurrent.futures import ThreadPoolExecutor

from task_orchestrator.storage.todos import TodoLedger


def test_add_todo_defaults(ledger: TodoLedger) -> None:
    todo_id = ledger.add_todo("Write docs", "Document the API")

    item = ledger.get_todo(todo_id)
    assert item is not None
    assert todo_id.startswith("todo_")
    assert item.status == "todo"
    assert item.priority == "medium"
    assert item.task_id is None
    assert item.created_at == item.updated_at


def test_add_todo_ids_unique_under_concurrency(ledger: TodoLedger) -> None:
    with ThreadPoolExecutor(max_workers=16) as pool:
        ids = list(pool.map(lambda n: ledger.add_todo(f"item {n}", "desc"), range(1000)))

    assert len(set(ids)) == 1000
    assert len(ledger.get_todos()) == 1000


def test_update_todo_status(ledger: TodoLedger) -> None:
    todo_id = ledger.add_todo("Review", "Review plan", "high")
    created = ledger.get_todo(todo_id)

    ledger.update_todo_status(todo_id, "in_progress")

    updated = ledger.get_todo(todo_id)
    assert updated.status == "in_progress"
    assert updated.updated_at >= created.updated_at


def test_update_unknown_todo_is_noop(ledger: TodoLedger) -> None:
    ledger.add_todo("Keep", "unchanged")
    before = ledger.get_todos()

    ledger.update_todo_status("todo_missing", "done")

    assert ledger.get_todos() == before


def test_get_todos_filters_by_status(ledger: TodoLedger) -> None:
    first = ledger.add_todo("a", "a")
    ledger.add_todo("b", "b")
    third = ledger.add_todo("c", "c")
    ledger.update_todo_status(first, "done")
    ledger.update_todo_status(third, "in_progress")

    assert [item.id for item in ledger.get_todos("done")] == [first]
    assert [item.id for item in ledger.get_todos("in_progress")] == [third]
    assert len(ledger.get_todos("todo")) == 1
    assert len(ledger.get_todos()) == 3


def test_get_todos_by_task_uses_weak_reference(ledger: TodoLedger) -> None:
    linked = ledger.add_todo("Complete planning task", "plan", "high", "task_1")
    ledger.add_todo("Other", "other", "low", "task_2")
    ledger.add_todo("Unlinked", "none")

    assert [item.id for item in ledger.get_todos_by_task("task_1")] == [linked]
    assert ledger.get_todos_by_task("task_unrelated") == []


def test_todo_reads_are_copies(ledger: TodoLedger) -> None:
    todo_id = ledger.add_todo("a", "a")
    ledger.get_todos()[0].status = "done"

    assert ledger.get_todo(todo_id).status == "todo"
