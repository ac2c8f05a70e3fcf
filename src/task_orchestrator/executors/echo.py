"""Simulated executor that reports each step as done."""

from __future__ import annotations

import time

from task_orchestrator.executors.base import StepRequest


class EchoStepExecutor:
    def __init__(self, *, delay_s: float = 0.0) -> None:
        self.delay_s = delay_s

    def execute(self, request: StepRequest) -> str:
        if self.delay_s > 0:
            time.sleep(self.delay_s)
        return f"Completed: {request.description}"
