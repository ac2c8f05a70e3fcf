"""Step executor contract consumed by workflow stages."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Protocol


@dataclass(slots=True)
class StepRequest:
    """Inputs for one step execution."""

    task_id: str
    task_type: str
    step_id: str
    description: str
    request: str = ""
    context: dict[str, Any] = field(default_factory=dict)


class StepExecutor(Protocol):
    """Protocol implemented by step execution backends."""

    def execute(self, request: StepRequest) -> str:
        """Run one step and return its result text; raise on failure."""
