"""Top-level build driver.

    raw steps → expand presets → BuildInfo (version resolved once)
              → run steps inside the module root → BuildReport
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from modbuild.core.config import BuildOptions
from modbuild.core.context import BuildInfo, VersionSource, create_build_info
from modbuild.core.errors import ErrorCode
from modbuild.core.step_result import StepResult
from modbuild.core.version import ReleaseType
from modbuild.output.sinks import LogSink, ProgressSink
from modbuild.platform.files import working_directory
from modbuild.services.runner import PlannedStep, StepRunner
from modbuild.services.steps.registry import StepRegistry, expand

__all__ = ["BuildOrchestrator", "BuildReport", "RegistryFactory"]

logger = logging.getLogger(__name__)

type RegistryFactory = Callable[[BuildInfo], StepRegistry]


@dataclass(frozen=True, slots=True)
class BuildReport:
    """Outcome of one invocation.

    `plan` is only filled in describe-only mode, `results` only otherwise.
    """

    info: BuildInfo
    results: tuple[StepResult, ...] = ()
    plan: tuple[PlannedStep, ...] = ()
    describe_only: bool = False

    @property
    def failure(self) -> StepResult | None:
        """The first failed step; its error is the cause of the run failing."""
        return next((r for r in self.results if not r.succeeded), None)

    @property
    def exit_status(self) -> int:
        if self.failure is None:
            return int(ErrorCode.OK)
        return int(ErrorCode.FAILURE)


class BuildOrchestrator:
    def __init__(
        self,
        *,
        versions: VersionSource,
        registry_factory: RegistryFactory,
        progress: ProgressSink | None = None,
        log: LogSink | None = None,
        quiet: bool = False,
    ) -> None:
        self._versions = versions
        self._registry_factory = registry_factory
        self._progress = progress
        self._log = log
        self._quiet = quiet

    def run_build(
        self,
        raw_steps: Iterable[str],
        release_type: ReleaseType,
        options: BuildOptions,
        *,
        cwd: Path | None = None,
        describe_only: bool = False,
        on_result: Callable[[StepResult], None] | None = None,
    ) -> BuildReport:
        steps = expand(raw_steps)
        info = create_build_info(
            cwd=cwd or Path.cwd(),
            steps=steps,
            release_type=release_type,
            options=options,
            versions=self._versions,
        )
        logger.debug("build info: %s", info)

        runner = StepRunner(
            self._registry_factory(info),
            progress=self._progress,
            log=self._log,
            quiet=self._quiet,
        )

        if describe_only:
            return BuildReport(info=info, plan=tuple(runner.describe(info.steps)), describe_only=True)

        with working_directory(info.module_root):
            results = runner.run(info.steps, info, on_result=on_result)

        report = BuildReport(info=info, results=tuple(results))
        if report.failure is not None:
            skipped = len(info.steps) - len(results)
            logger.debug("halted at %s, %d step(s) not run", report.failure.name, skipped)
        return report
