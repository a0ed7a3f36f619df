"""Atomic build steps of a PowerShell module with a companion .NET solution.

Each step is a method of BuildSteps, bound to one BuildInfo and its tools,
and returns `Ok(None)` or `Err(StepFailure)`. Steps that do not apply (no
solution, no tests) succeed with an informational message.
"""

from __future__ import annotations

import shutil
from dataclasses import dataclass, field
from pathlib import Path

from modbuild.core.context import BuildInfo
from modbuild.core.result import Err, Ok, Result
from modbuild.core.step_result import StepFailure
from modbuild.output.console import ConsoleProtocol, Style
from modbuild.platform.files import atomic_write_text, empty_directory
from modbuild.services.dotnet import Compiler, DotnetCompiler, DotnetTestRunner, find_solution
from modbuild.services.manifest import ManifestStore, Psd1ManifestStore, parse_list
from modbuild.services.powershell import PesterTestRunner, PowerShell
from modbuild.services.steps.registry import Action, StepRegistry
from modbuild.services.testing import TestConfig, TestRunner
from modbuild.services.version_resolver import MANIFEST_VERSION_FIELD

__all__ = ["BuildSteps", "MERGE_FOLDERS", "Toolchain", "create_registry"]

# Merged into the release module in this order.
MERGE_FOLDERS = ("Classes", "Private", "Public")
TESTS_FOLDER = "Tests"
_SCRIPT_SUFFIXES = (".ps1", ".psm1")

type StepReturn = Result[None, StepFailure]


def _default_vs_tests() -> TestRunner:
    return DotnetTestRunner()


def _default_ps_tests() -> TestRunner:
    return PesterTestRunner()


@dataclass(frozen=True, slots=True)
class Toolchain:
    """External tools the steps drive."""

    shell: PowerShell = field(default_factory=PowerShell)
    manifests: ManifestStore = field(default_factory=Psd1ManifestStore)
    compiler: Compiler = field(default_factory=DotnetCompiler)
    vs_tests: TestRunner = field(default_factory=_default_vs_tests)
    ps_tests: TestRunner = field(default_factory=_default_ps_tests)


class BuildSteps:
    def __init__(self, info: BuildInfo, console: ConsoleProtocol, tools: Toolchain) -> None:
        self.info = info
        self._console = console
        self._tools = tools

    def actions(self) -> dict[str, Action]:
        return {
            "Setup": self.setup,
            "Clean": self.clean,
            "TestSyntax": self.test_syntax,
            "Merge": self.merge,
            "ImportDependencies": self.import_dependencies,
            "BuildVSSolution": self.build_vs_solution,
            "UpdateMetadata": self.update_metadata,
            "VSUnitTest": self.vs_unit_test,
            "PSUnitTest": self.ps_unit_test,
            "UpdateVersion": self.update_version,
        }

    # -- Build ---------------------------------------------------------------

    def setup(self) -> StepReturn:
        self.info.package_dir.mkdir(parents=True, exist_ok=True)
        self.info.output_dir.mkdir(parents=True, exist_ok=True)
        return Ok(None)

    def clean(self) -> StepReturn:
        removed = empty_directory(self.info.package_dir) + empty_directory(self.info.output_dir)
        self._console.print(f"Removed {removed} entries", Style.DIM)
        return Ok(None)

    def test_syntax(self) -> StepReturn:
        if not self.info.source_dir.is_dir():
            return Err(StepFailure(f"Source directory not found: {self.info.source_dir}"))

        files = sorted(
            p for p in self.info.source_dir.rglob("*") if p.suffix.lower() in _SCRIPT_SUFFIXES
        )
        result = self._tools.shell.parse_errors(files, cwd=self.info.source_dir)
        if isinstance(result, Err):
            return Err(StepFailure(str(result.error), detail=result.error.stderr.strip() or None))

        errors = result.value
        if errors:
            return Err(StepFailure(f"{len(errors)} syntax error(s)", detail="\n".join(errors)))
        self._console.print(f"Checked {len(files)} files", Style.DIM)
        return Ok(None)

    def merge(self) -> StepReturn:
        info = self.info
        if not info.source_manifest_path.is_file():
            return Err(StepFailure(f"Source manifest not found: {info.source_manifest_path}"))

        chunks: list[str] = []
        for folder in MERGE_FOLDERS:
            for script in sorted((info.source_dir / folder).glob("*.ps1")):
                rel = script.relative_to(info.source_dir).as_posix()
                body = script.read_text(encoding="utf-8-sig").rstrip()
                chunks.append(f"#region {rel}\n{body}\n#endregion {rel}\n")

        atomic_write_text(info.release_module_path, "\n".join(chunks))
        shutil.copyfile(info.source_manifest_path, info.release_manifest_path)
        self._copy_resources()
        return Ok(None)

    def _copy_resources(self) -> None:
        """Copy everything that is not merged or the source manifest/module."""
        info = self.info
        skipped = {
            *(f.casefold() for f in MERGE_FOLDERS),
            TESTS_FOLDER.casefold(),
            info.manifest_name.casefold(),
            info.release_module_path.name.casefold(),
        }
        for entry in sorted(info.source_dir.iterdir()):
            if entry.name.casefold() in skipped:
                continue
            target = info.package_dir / entry.name
            if entry.is_dir():
                shutil.copytree(entry, target, dirs_exist_ok=True)
            else:
                shutil.copyfile(entry, target)

    def import_dependencies(self) -> StepReturn:
        raw = self._tools.manifests.read_field(self.info.source_manifest_path, "RequiredModules")
        modules = parse_list(raw) if raw else []
        if not modules:
            self._console.print("No required modules", Style.DIM)
            return Ok(None)

        destination = self.info.package_dir.parent
        destination.mkdir(parents=True, exist_ok=True)
        for name in modules:
            self._console.print(f"Saving {name}", Style.DIM)
            result = self._tools.shell.save_module(name, destination)
            if isinstance(result, Err):
                return Err(
                    StepFailure(
                        f"Failed to save module {name}",
                        detail=result.error.stderr.strip() or None,
                    )
                )
        return Ok(None)

    def build_vs_solution(self) -> StepReturn:
        solution = find_solution(self.info.module_root)
        if solution is None:
            self._console.print("No solution found, skipping", Style.DIM)
            return Ok(None)

        code = self._tools.compiler.build(solution, self.info.package_dir / "lib")
        if code != 0:
            return Err(StepFailure(f"Build of {solution.name} failed (exit {code})"))
        return Ok(None)

    def update_metadata(self) -> StepReturn:
        manifest = self.info.release_manifest_path
        if not manifest.is_file():
            return Err(StepFailure(f"Release manifest not found: {manifest} (run Merge first)"))

        store = self._tools.manifests
        written = store.write_field(manifest, MANIFEST_VERSION_FIELD, str(self.info.version))
        if isinstance(written, Err):
            return Err(StepFailure(written.error.message))

        functions = sorted(p.stem for p in (self.info.source_dir / "Public").glob("*.ps1"))
        store.enable_field(manifest, "FunctionsToExport")
        written = store.write_field(manifest, "FunctionsToExport", functions)
        if isinstance(written, Err):
            return Err(StepFailure(written.error.message))
        return Ok(None)

    # -- Test ----------------------------------------------------------------

    def vs_unit_test(self) -> StepReturn:
        solution = find_solution(self.info.module_root)
        if solution is None:
            self._console.print("No solution found, skipping", Style.DIM)
            return Ok(None)

        config = TestConfig(test_path=solution, output_dir=self.info.output_dir / "dotnet")
        result = self._tools.vs_tests.run_unit_tests(config)
        if isinstance(result, Err):
            return Err(StepFailure(result.error.message, detail=result.error.detail))
        if result.value.failed_count > 0:
            return Err(StepFailure(f"{result.value.failed_count} .NET test(s) failed"))
        return Ok(None)

    def ps_unit_test(self) -> StepReturn:
        tests_dir = self.info.module_root / TESTS_FOLDER
        if not tests_dir.is_dir():
            self._console.print(f"No {TESTS_FOLDER} directory, skipping", Style.DIM)
            return Ok(None)

        coverage: tuple[Path, ...] = ()
        if self.info.release_module_path.is_file():
            coverage = (self.info.release_module_path,)
        config = TestConfig(
            test_path=tests_dir, output_dir=self.info.output_dir, coverage_paths=coverage
        )
        result = self._tools.ps_tests.run_unit_tests(config)
        if isinstance(result, Err):
            return Err(StepFailure(result.error.message, detail=result.error.detail))

        summary = result.value
        if summary.failed_count > 0:
            return Err(StepFailure(f"{summary.failed_count} Pester test(s) failed"))

        threshold = self.info.options.code_coverage_threshold
        if coverage and summary.coverage_ratio < threshold:
            return Err(
                StepFailure(
                    f"Code coverage {summary.coverage_ratio:.1%} is below {threshold:.1%}",
                    detail="\n".join(summary.missed_items) or None,
                )
            )
        if coverage:
            self._console.print(f"Code coverage {summary.coverage_ratio:.1%}", Style.DIM)
        return Ok(None)

    # -- Release -------------------------------------------------------------

    def update_version(self) -> StepReturn:
        manifest = self.info.source_manifest_path
        if not manifest.is_file():
            return Err(StepFailure(f"Source manifest not found: {manifest}"))
        written = self._tools.manifests.write_field(
            manifest, MANIFEST_VERSION_FIELD, str(self.info.version)
        )
        if isinstance(written, Err):
            return Err(StepFailure(written.error.message))
        self._console.print(f"{self.info.module_name} is now {self.info.version}", Style.DIM)
        return Ok(None)


def create_registry(
    info: BuildInfo, console: ConsoleProtocol, tools: Toolchain | None = None
) -> StepRegistry:
    """Registry of every atomic step bound to info."""
    return StepRegistry(BuildSteps(info, console, tools or Toolchain()).actions())
