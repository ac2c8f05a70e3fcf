"""Task decomposition policies: request text in, ordered step specs out."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Protocol

from task_orchestrator.storage.models import StepSpec


class DecompositionPolicy(Protocol):
    def decompose(self, request: str) -> list[StepSpec]: ...


@dataclass(frozen=True)
class KeywordRule:
    """Append ``steps`` when ``trigger`` occurs in the request (case-insensitive)."""

    trigger: str
    steps: tuple[StepSpec, ...]


class KeywordDecompositionPolicy:
    """Fixed base steps, extended by keyword rules in declaration order."""

    def __init__(self, base_steps: Sequence[StepSpec], rules: Sequence[KeywordRule] = ()) -> None:
        self.base_steps = tuple(base_steps)
        self.rules = tuple(rules)

    def decompose(self, request: str) -> list[StepSpec]:
        text = request.lower()
        steps = [spec.model_copy() for spec in self.base_steps]
        for rule in self.rules:
            if rule.trigger.lower() in text:
                steps.extend(spec.model_copy() for spec in rule.steps)
        return steps


class StaticDecompositionPolicy:
    """Same steps for every request."""

    def __init__(self, steps: Sequence[StepSpec]) -> None:
        self.steps = tuple(steps)

    def decompose(self, request: str) -> list[StepSpec]:
        return [spec.model_copy() for spec in self.steps]


PLANNING_BASE_STEPS: tuple[StepSpec, ...] = (
    StepSpec(id="analyze", description="Analyze requirements"),
    StepSpec(id="design", description="Create architectural design"),
    StepSpec(id="plan", description="Generate implementation plan"),
    StepSpec(id="validate", description="Validate plan feasibility"),
)

# Order matters: component-triggered steps come before api-triggered ones.
PLANNING_RULES: tuple[KeywordRule, ...] = (
    KeywordRule(
        trigger="component",
        steps=(
            StepSpec(id="ui_design", description="Design UI components"),
            StepSpec(id="state_management", description="Plan state management"),
        ),
    ),
    KeywordRule(
        trigger="api",
        steps=(
            StepSpec(id="api_design", description="Design API endpoints"),
            StepSpec(id="data_model", description="Define data models"),
        ),
    ),
)

DEVELOPMENT_STEPS: tuple[StepSpec, ...] = (
    StepSpec(id="setup_environment", description="Set up development environment"),
    StepSpec(id="generate_code", description="Generate code"),
    StepSpec(id="run_tests", description="Run tests"),
)


def planning_policy() -> KeywordDecompositionPolicy:
    return KeywordDecompositionPolicy(PLANNING_BASE_STEPS, PLANNING_RULES)


def development_policy() -> StaticDecompositionPolicy:
    return StaticDecompositionPolicy(DEVELOPMENT_STEPS)
