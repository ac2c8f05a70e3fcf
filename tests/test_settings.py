from __future__ import annotations

import pytest
from pydantic import ValidationError

from task_orchestrator.config.settings import Settings


def test_settings_read_prefixed_environment(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("TASK_ORCHESTRATOR_MAX_CONCURRENT_TASKS", "8")
    monkeypatch.setenv("TASK_ORCHESTRATOR_EXECUTOR_MODE", "command")
    monkeypatch.setenv("TASK_ORCHESTRATOR_STEP_MAX_RETRIES", "2")

    settings = Settings()

    assert settings.max_concurrent_tasks == 8
    assert settings.executor_mode == "command"
    assert settings.step_max_retries == 2


def test_settings_reject_out_of_range_values() -> None:
    with pytest.raises(ValidationError):
        Settings(max_concurrent_tasks=0)
    with pytest.raises(ValidationError):
        Settings(step_max_retries=-1)
