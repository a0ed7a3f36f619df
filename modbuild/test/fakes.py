"""Test doubles shared across the test suite."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path

from modbuild.core.config import BuildOptions
from modbuild.core.context import BuildInfo, create_build_info
from modbuild.core.result import Ok, Result
from modbuild.core.version import ReleaseType, SemanticVersion
from modbuild.platform.process import ProcessError
from modbuild.services.testing import TestConfig, TestRunError, TestSummary

SAMPLE_MANIFEST = """\
@{
    RootModule = 'MyModule.psm1'
    ModuleVersion = '1.4.2'
    GUID = 'b1a6f0d2-6c2b-4c57-9a55-2f0e0c3f8f1e'
    Author = 'Build Team'
    # FunctionsToExport = @()
    RequiredModules = @(
        'PSFramework',
        @{ ModuleName = 'Pester'; ModuleVersion = '5.5.0' }
    )
}
"""


def make_module(root: Path, name: str = "MyModule", *, manifest: str | None = SAMPLE_MANIFEST) -> Path:
    """Create `<root>/repo/<name>/build` with a source tree; returns the build dir."""
    repo = root / "repo"
    (repo / ".git").mkdir(parents=True, exist_ok=True)
    module_root = repo / name
    source = module_root / "Source"
    for folder in ("Classes", "Private", "Public"):
        (source / folder).mkdir(parents=True, exist_ok=True)
    if manifest is not None:
        (source / f"{name}.psd1").write_text(manifest, encoding="utf-8")
    build_dir = module_root / "build"
    build_dir.mkdir(parents=True, exist_ok=True)
    return build_dir


@dataclass
class FakeSourceControl:
    tag: str | None = None
    error: Exception | None = None
    calls: int = 0

    def latest_tag(self) -> str | None:
        self.calls += 1
        if self.error is not None:
            raise self.error
        return self.tag


@dataclass
class FixedVersions:
    """VersionSource returning a fixed version and counting calls."""

    version: SemanticVersion = field(default_factory=lambda: SemanticVersion(1, 2, 3, 0))
    calls: int = 0

    def resolve(
        self, release_type: ReleaseType, source_dir: Path, manifest_name: str
    ) -> SemanticVersion:
        self.calls += 1
        return self.version


def make_info(
    build_dir: Path,
    *,
    steps: tuple[str, ...] = (),
    options: BuildOptions | None = None,
    version: SemanticVersion | None = None,
) -> BuildInfo:
    return create_build_info(
        cwd=build_dir,
        steps=steps,
        release_type=ReleaseType.BUILD,
        options=options or BuildOptions(),
        versions=FixedVersions(version or SemanticVersion(1, 2, 3, 0)),
    )


@dataclass
class FakeShell:
    parse_result: Result[list[str], ProcessError] = field(default_factory=lambda: Ok([]))
    saved: list[tuple[str, Path]] = field(default_factory=list)
    parsed: list[Path] = field(default_factory=list)

    def parse_errors(self, files: list[Path], cwd: Path) -> Result[list[str], ProcessError]:
        self.parsed.extend(files)
        return self.parse_result

    def save_module(self, name: str, destination: Path) -> Result[str, ProcessError]:
        self.saved.append((name, destination))
        return Ok("")


@dataclass
class FakeCompiler:
    exit_code: int = 0
    builds: list[tuple[Path, Path]] = field(default_factory=list)

    def build(self, solution_path: Path, output_dir: Path) -> int:
        self.builds.append((solution_path, output_dir))
        return self.exit_code


@dataclass
class FakeTestRunner:
    result: Result[TestSummary, TestRunError] = field(
        default_factory=lambda: Ok(TestSummary(failed_count=0))
    )
    configs: list[TestConfig] = field(default_factory=list)

    def run_unit_tests(self, config: TestConfig) -> Result[TestSummary, TestRunError]:
        self.configs.append(config)
        return self.result
