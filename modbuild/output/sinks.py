"""Progress and per-step log sinks used by the step runner."""

from __future__ import annotations

from typing import Protocol

from modbuild.core.step_result import StepResult
from modbuild.output.console import ConsoleProtocol, Style

__all__ = [
    "ConsoleProgress",
    "ConsoleStepLog",
    "LogSink",
    "NullProgress",
    "NullStepLog",
    "ProgressSink",
    "format_step_line",
]


class ProgressSink(Protocol):
    def report(self, activity: str, status: str) -> None: ...


class LogSink(Protocol):
    def write_step(self, result: StepResult) -> None: ...


class NullProgress:
    """Progress sink for quiet and headless runs."""

    def report(self, activity: str, status: str) -> None:
        del activity, status


class NullStepLog:
    def write_step(self, result: StepResult) -> None:
        del result


class ConsoleProgress:
    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console
        self._last_activity: str | None = None

    def report(self, activity: str, status: str) -> None:
        if activity != self._last_activity:
            self._console.header(activity)
            self._last_activity = activity
        self._console.print(status, Style.DIM)


def format_step_line(result: StepResult) -> str:
    """One-line summary: name, outcome, start time and duration."""
    seconds = result.duration.total_seconds()
    return (
        f"{result.name:<20} {result.outcome!s:<8} "
        f"{result.start_time:%H:%M:%S} {seconds:8.2f}s"
    )


class ConsoleStepLog:
    def __init__(self, console: ConsoleProtocol) -> None:
        self._console = console

    def write_step(self, result: StepResult) -> None:
        style = Style.SUCCESS if result.succeeded else Style.ERROR
        self._console.print(format_step_line(result), style)
