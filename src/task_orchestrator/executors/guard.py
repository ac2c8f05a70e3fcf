"""Timeout and retry wrapper around any step executor."""

from __future__ import annotations

import logging
import time
from concurrent.futures import ThreadPoolExecutor, TimeoutError

from task_orchestrator.errors import StepExecutionError
from task_orchestrator.executors.base import StepExecutor, StepRequest

logger = logging.getLogger(__name__)


class GuardedStepExecutor:
    """Execute a step with a per-attempt timeout and bounded retries.

    The last failure is re-raised as ``StepExecutionError`` once the retry
    budget is spent. A timed-out attempt is reported only after the inner call
    returns, so the inner executor must enforce its own deadline (as
    ``CommandStepExecutor`` does with its subprocess timeout).
    """

    def __init__(
        self,
        inner: StepExecutor,
        *,
        timeout_s: float = 300.0,
        max_retries: int = 0,
        backoff_s: float = 0.0,
    ) -> None:
        self.inner = inner
        self.timeout_s = timeout_s
        self.max_retries = max_retries
        self.backoff_s = backoff_s

    def execute(self, request: StepRequest) -> str:
        started_at = time.perf_counter()
        final_error: Exception | None = None

        for attempt in range(self.max_retries + 1):
            try:
                output = self._execute_once(request)
            except Exception as exc:  # noqa: BLE001
                final_error = exc
                logger.warning(
                    "step_exec event=attempt_failed task_id=%s step_id=%s attempt=%d error=%s",
                    request.task_id,
                    request.step_id,
                    attempt + 1,
                    exc,
                )
                if attempt < self.max_retries and self.backoff_s > 0:
                    time.sleep(self.backoff_s)
                continue
            logger.debug(
                "step_exec event=ok task_id=%s step_id=%s attempts=%d duration_ms=%.2f",
                request.task_id,
                request.step_id,
                attempt + 1,
                _duration_ms(started_at),
            )
            return output

        if isinstance(final_error, StepExecutionError):
            raise final_error
        raise StepExecutionError(str(final_error)) from final_error

    def _execute_once(self, request: StepRequest) -> str:
        # Leaving the pool waits for the inner call, so a step never outlives its attempt.
        with ThreadPoolExecutor(max_workers=1) as pool:
            future = pool.submit(self.inner.execute, request)
            try:
                return str(future.result(timeout=self.timeout_s))
            except TimeoutError as exc:
                raise StepExecutionError(
                    f"Step '{request.step_id}' timed out after {self.timeout_s:.2f}s"
                ) from exc


def _duration_ms(started_at: float) -> float:
    return round((time.perf_counter() - started_at) * 1000.0, 2)
