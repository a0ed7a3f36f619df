"""Companion .NET solution: build and `dotnet test`."""

from __future__ import annotations

import re
from pathlib import Path
from typing import Protocol

from modbuild.core.result import Err, Ok, Result
from modbuild.platform.process import run, run_silent
from modbuild.services.testing import TestConfig, TestRunError, TestSummary

__all__ = ["Compiler", "DotnetCompiler", "DotnetTestRunner", "find_solution"]

_FAILED_RE = re.compile(r"Failed:\s*(\d+)")


class Compiler(Protocol):
    def build(self, solution_path: Path, output_dir: Path) -> int: ...


def find_solution(root: Path) -> Path | None:
    """First `*.sln` directly under root, by name."""
    solutions = sorted(root.glob("*.sln"))
    return solutions[0] if solutions else None


class DotnetCompiler:
    def __init__(self, configuration: str = "Release") -> None:
        self._configuration = configuration

    def build(self, solution_path: Path, output_dir: Path) -> int:
        """Build the solution into output_dir; returns the tool's exit code."""
        result = run_silent(
            [
                "dotnet",
                "build",
                str(solution_path),
                "--configuration",
                self._configuration,
                "--output",
                str(output_dir),
                "--nologo",
            ],
            cwd=solution_path.parent,
        )
        match result:
            case Ok(_):
                return 0
            case Err(e):
                return e.returncode


class DotnetTestRunner:
    """Runs `dotnet test` and counts failures from its summary lines.

    Coverage is not measured for .NET tests; the ratio is always 1.0.
    """

    def __init__(self, configuration: str = "Release") -> None:
        self._configuration = configuration

    def run_unit_tests(self, config: TestConfig) -> Result[TestSummary, TestRunError]:
        result = run(
            [
                "dotnet",
                "test",
                str(config.test_path),
                "--configuration",
                self._configuration,
                "--results-directory",
                str(config.output_dir),
                "--logger",
                "trx",
                "--nologo",
            ],
            cwd=config.test_path.parent,
        )
        match result:
            case Ok(stdout):
                return Ok(TestSummary(failed_count=_count_failed(stdout)))
            case Err(e):
                output = e.stdout + e.stderr
                if _FAILED_RE.search(output) is None:
                    return Err(TestRunError(message=str(e), detail=e.stderr.strip() or None))
                failed = _count_failed(output)
                # Nonzero exit without a reported failure still fails the run.
                return Ok(TestSummary(failed_count=max(failed, 1)))


def _count_failed(output: str) -> int:
    return sum(int(m.group(1)) for m in _FAILED_RE.finditer(output))
