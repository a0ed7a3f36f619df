"""Sequential step execution.

Each step goes Pending → Running → Success | Failed and produces exactly one
StepResult. A step fails when:

- its name is not registered (kind `invalid_step`; nothing is invoked),
- its action returns `Err(StepFailure)` (kind `step_execution_error`),
- its action raises (kind `step_execution_error`, exception kept).

`iter_steps` is the lazy per-step loop; `run` consumes it and stops at the
first failure, so later steps are never invoked.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Iterator
from dataclasses import dataclass
from datetime import datetime

from modbuild.core.context import BuildInfo
from modbuild.core.result import Err
from modbuild.core.step_result import StepError, StepOutcome, StepResult
from modbuild.output.sinks import LogSink, NullProgress, NullStepLog, ProgressSink
from modbuild.services.steps.registry import StepRegistry

__all__ = ["PlannedStep", "StepRunner"]

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class PlannedStep:
    name: str
    registered: bool


class StepRunner:
    def __init__(
        self,
        registry: StepRegistry,
        *,
        progress: ProgressSink | None = None,
        log: LogSink | None = None,
        quiet: bool = False,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._registry = registry
        self._progress = progress or NullProgress()
        self._log = log or NullStepLog()
        self._quiet = quiet
        self._clock = clock

    def describe(self, steps: Iterable[str]) -> list[PlannedStep]:
        """The steps a run would execute, without invoking any of them."""
        return [PlannedStep(name=name, registered=name in self._registry) for name in steps]

    def execute(self, name: str, info: BuildInfo) -> StepResult:
        """Run a single step and record its outcome."""
        self._progress.report(info.activity, f"Executing {name}")
        start = self._clock()

        error: StepError | None = None
        action = self._registry.lookup(name)
        if action is None:
            error = StepError(kind="invalid_step", message=f"Invalid step: {name}")
        else:
            try:
                outcome = action()
            except Exception as e:  # noqa: BLE001
                logger.debug("step %s raised", name, exc_info=True)
                error = StepError(
                    kind="step_execution_error",
                    message=str(e) or type(e).__name__,
                    detail=type(e).__qualname__,
                    exception=e,
                )
            else:
                if isinstance(outcome, Err):
                    error = StepError(
                        kind="step_execution_error",
                        message=outcome.error.message,
                        detail=outcome.error.detail,
                    )

        result = StepResult(
            name=name,
            outcome=StepOutcome.SUCCESS if error is None else StepOutcome.FAILED,
            start_time=start,
            duration=self._clock() - start,
            error=error,
        )
        if not self._quiet:
            self._log.write_step(result)
        return result

    def iter_steps(self, steps: Iterable[str], info: BuildInfo) -> Iterator[StepResult]:
        for name in steps:
            yield self.execute(name, info)

    def run(
        self,
        steps: Iterable[str],
        info: BuildInfo,
        on_result: Callable[[StepResult], None] | None = None,
    ) -> list[StepResult]:
        """Execute steps in order, stopping after the first failure.

        on_result, when given, sees every result as soon as it is final.
        """
        results: list[StepResult] = []
        for result in self.iter_steps(steps, info):
            results.append(result)
            if on_result is not None:
                on_result(result)
            if not result.succeeded:
                break
        return results
