"""Step execution backends."""

from __future__ import annotations

from task_orchestrator.config.settings import Settings
from task_orchestrator.executors.base import StepExecutor, StepRequest
from task_orchestrator.executors.command import CommandStepExecutor
from task_orchestrator.executors.echo import EchoStepExecutor
from task_orchestrator.executors.guard import GuardedStepExecutor

EXECUTOR_MODES = ("echo", "command")


def build_step_executor(settings: Settings) -> GuardedStepExecutor:
    mode = settings.executor_mode.lower().strip()
    inner: StepExecutor
    if mode == "echo":
        inner = EchoStepExecutor(delay_s=settings.echo_delay_s)
    elif mode == "command":
        inner = CommandStepExecutor(
            command_template=settings.command_template,
            timeout_s=settings.step_timeout_s,
        )
    else:
        raise ValueError(f"Unsupported executor mode: {settings.executor_mode}")
    return GuardedStepExecutor(
        inner,
        timeout_s=settings.step_timeout_s,
        max_retries=settings.step_max_retries,
        backoff_s=settings.step_retry_backoff_s,
    )


__all__ = [
    "EXECUTOR_MODES",
    "CommandStepExecutor",
    "EchoStepExecutor",
    "GuardedStepExecutor",
    "StepExecutor",
    "StepRequest",
    "build_step_executor",
]
