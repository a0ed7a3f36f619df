"""Human-readable rendering of build info and results."""

from __future__ import annotations

import json
import traceback

from modbuild.core.step_result import StepResult
from modbuild.output.console import ConsoleProtocol, Style
from modbuild.services.orchestrator import BuildReport

__all__ = ["format_json_record", "print_build_info", "print_summary"]

_INFO_FIELDS = (
    ("Module", "module_name"),
    ("Version", "version"),
    ("Release type", "release_type"),
    ("Project root", "project_root"),
    ("Source", "source_dir"),
    ("Package", "package_dir"),
    ("Output", "output_dir"),
    ("Release manifest", "release_manifest_path"),
    ("Release module", "release_module_path"),
)


def format_json_record(payload: dict[str, object]) -> str:
    return json.dumps(payload, sort_keys=True)


def print_build_info(report: BuildReport, console: ConsoleProtocol) -> None:
    """Describe-only output: resolved info and the would-be steps."""
    data = report.info.as_dict()
    console.header(report.info.activity)
    width = max(len(label) for label, _ in _INFO_FIELDS)
    for label, key in _INFO_FIELDS:
        console.print(f"{label:<{width}}  {data[key]}")

    console.header("Steps")
    for planned in report.plan:
        if planned.registered:
            console.print(f"  {planned.name}")
        else:
            console.print(f"  {planned.name} (invalid step)", Style.WARNING)


def _print_failure(result: StepResult, console: ConsoleProtocol, verbose: bool) -> None:
    error = result.error
    if error is None:
        return
    console.error(f"{result.name}: {error.message}")
    if error.detail:
        console.print(error.detail, Style.DIM)
    if verbose and error.exception is not None:
        console.print("".join(traceback.format_exception(error.exception)).rstrip(), Style.DIM)


def print_summary(report: BuildReport, console: ConsoleProtocol, *, verbose: bool = False) -> None:
    """Success or failure banner, with the cause of the first failure."""
    failure = report.failure
    if failure is None:
        console.success(f"Build succeeded: {report.info.module_name} {report.info.version}")
        return

    console.print(f"Build FAILED: {report.info.module_name} {report.info.version}", Style.ERROR)
    _print_failure(failure, console, verbose)
    not_run = len(report.info.steps) - len(report.results)
    if not_run:
        console.print(f"{not_run} step(s) not run", Style.DIM)
