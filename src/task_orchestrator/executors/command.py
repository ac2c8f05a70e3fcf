"""Executor that shells out to a command-line assistant per step."""

from __future__ import annotations

import logging
import shlex
import subprocess

from task_orchestrator.errors import StepExecutionError
from task_orchestrator.executors.base import StepRequest

logger = logging.getLogger(__name__)


class CommandStepExecutor:
    """Render a command template for each step and return its stdout.

    The template may reference ``{prompt}``, ``{step_id}``, ``{task_id}`` and
    ``{task_type}``. The prompt combines the step description with the
    original request so the tool sees both.
    """

    def __init__(self, *, command_template: str, timeout_s: float | None = None) -> None:
        if not command_template.strip():
            raise ValueError("command_template is required")
        self.command_template = command_template
        self.timeout_s = timeout_s

    def build_command(self, request: StepRequest) -> list[str]:
        prompt = request.description
        if request.request:
            prompt = f"{request.description}: {request.request}"
        rendered = self.command_template.format(
            prompt=prompt.replace('"', "'"),
            step_id=request.step_id,
            task_id=request.task_id,
            task_type=request.task_type,
        )
        return shlex.split(rendered)

    def execute(self, request: StepRequest) -> str:
        argv = self.build_command(request)
        logger.info(
            "step_exec event=command_start task_id=%s step_id=%s program=%s",
            request.task_id,
            request.step_id,
            argv[0] if argv else "",
        )
        try:
            completed = subprocess.run(
                argv,
                capture_output=True,
                text=True,
                timeout=self.timeout_s,
                check=False,
            )
        except FileNotFoundError as exc:
            raise StepExecutionError(f"Command not found: {argv[0]}") from exc
        except subprocess.TimeoutExpired as exc:
            raise StepExecutionError(
                f"Command timed out after {self.timeout_s:.2f}s for step '{request.step_id}'"
            ) from exc

        if completed.returncode != 0:
            stderr = completed.stderr.strip()
            raise StepExecutionError(
                f"Command exited with code {completed.returncode}: {stderr or 'no stderr'}"
            )
        return completed.stdout.strip()
