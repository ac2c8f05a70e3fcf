from __future__ import annotations

import sys
import time

import pytest

from task_orchestrator.config.settings import Settings
from task_orchestrator.errors import StepExecutionError
from task_orchestrator.executors import (
    CommandStepExecutor,
    EchoStepExecutor,
    GuardedStepExecutor,
    StepRequest,
    build_step_executor,
)


def _request(**overrides) -> StepRequest:
    values = {
        "task_id": "t1",
        "task_type": "planning",
        "step_id": "analyze",
        "description": "Analyze requirements",
        "request": "Build an API",
    }
    values.update(overrides)
    return StepRequest(**values)


class FlakyExecutor:
    def __init__(self, failures: int) -> None:
        self.failures = failures
        self.attempts = 0

    def execute(self, request: StepRequest) -> str:
        self.attempts += 1
        if self.attempts <= self.failures:
            raise RuntimeError(f"attempt {self.attempts} failed")
        return "recovered"


class SlowExecutor:
    def __init__(self) -> None:
        self.finished = False

    def execute(self, request: StepRequest) -> str:
        time.sleep(0.2)
        self.finished = True
        return "too slow"


def test_echo_executor_reports_completion() -> None:
    assert EchoStepExecutor().execute(_request()) == "Completed: Analyze requirements"


def test_guard_retries_until_success() -> None:
    inner = FlakyExecutor(failures=2)
    guard = GuardedStepExecutor(inner, timeout_s=1.0, max_retries=2)

    assert guard.execute(_request()) == "recovered"
    assert inner.attempts == 3


def test_guard_raises_after_retry_budget() -> None:
    inner = FlakyExecutor(failures=5)
    guard = GuardedStepExecutor(inner, timeout_s=1.0, max_retries=1)

    with pytest.raises(StepExecutionError, match="attempt 2 failed"):
        guard.execute(_request())
    assert inner.attempts == 2


def test_guard_times_out_slow_executor() -> None:
    guard = GuardedStepExecutor(SlowExecutor(), timeout_s=0.01, max_retries=0)

    with pytest.raises(StepExecutionError, match="timed out"):
        guard.execute(_request())


def test_guard_timeout_waits_for_inner_call_to_return() -> None:
    inner = SlowExecutor()
    guard = GuardedStepExecutor(inner, timeout_s=0.01, max_retries=0)

    with pytest.raises(StepExecutionError, match="timed out"):
        guard.execute(_request())
    assert inner.finished is True


def test_command_executor_returns_stdout() -> None:
    template = f'"{sys.executable}" -c "import sys; print(sys.argv[1])" "{{prompt}}"'
    executor = CommandStepExecutor(command_template=template, timeout_s=10)

    output = executor.execute(_request(description='Say "hi"', request=""))

    assert output == "Say 'hi'"


def test_command_executor_includes_request_in_prompt() -> None:
    executor = CommandStepExecutor(command_template='tool -p "{prompt}" --id {step_id}')

    argv = executor.build_command(_request())

    assert argv == ["tool", "-p", "Analyze requirements: Build an API", "--id", "analyze"]


def test_command_executor_raises_on_nonzero_exit() -> None:
    template = f'"{sys.executable}" -c "import sys; sys.exit(3)"'
    executor = CommandStepExecutor(command_template=template, timeout_s=10)

    with pytest.raises(StepExecutionError, match="code 3"):
        executor.execute(_request())


def test_command_executor_raises_on_missing_program() -> None:
    executor = CommandStepExecutor(command_template="no-such-binary-for-tests {prompt}")

    with pytest.raises(StepExecutionError, match="Command not found"):
        executor.execute(_request())


def test_command_executor_requires_template() -> None:
    with pytest.raises(ValueError):
        CommandStepExecutor(command_template="  ")


def test_build_step_executor_modes() -> None:
    echo = build_step_executor(Settings(executor_mode="echo", step_max_retries=2))
    assert isinstance(echo, GuardedStepExecutor)
    assert isinstance(echo.inner, EchoStepExecutor)
    assert echo.max_retries == 2

    command = build_step_executor(Settings(executor_mode="command", command_template="x {prompt}"))
    assert isinstance(command.inner, CommandStepExecutor)

    with pytest.raises(ValueError, match="Unsupported executor mode"):
        build_step_executor(Settings(executor_mode="quantum"))
