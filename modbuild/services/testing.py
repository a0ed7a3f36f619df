"""Unit test runner contract shared by the .NET and Pester runners."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Protocol

from modbuild.core.result import Result

__all__ = ["TestConfig", "TestRunError", "TestRunner", "TestSummary"]


@dataclass(frozen=True, slots=True)
class TestConfig:
    """What to test and where to put the results.

    Attributes:
        test_path: Test project/solution (dotnet) or test directory (Pester)
        output_dir: Directory receiving result and coverage files
        coverage_paths: Files to measure coverage on; empty disables coverage
    """

    __test__ = False

    test_path: Path
    output_dir: Path
    coverage_paths: tuple[Path, ...] = ()


@dataclass(frozen=True, slots=True)
class TestSummary:
    __test__ = False

    failed_count: int
    coverage_ratio: float = 1.0
    missed_items: tuple[str, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class TestRunError:
    """The test tool could not run or its results could not be read."""

    __test__ = False

    message: str
    detail: str | None = None


class TestRunner(Protocol):
    def run_unit_tests(self, config: TestConfig) -> Result[TestSummary, TestRunError]: ...
