"""Build info: the resolved, immutable configuration of one build run.

Layout, with the build scripts in a directory inside the module root:

    <project_root>/            repository root (.git)
      <module>/                module root, parent of the working directory
        build/                 working directory
        Source/<module>.psd1   source manifest (fallback version)
        Package/<module>/      package_dir
        Output/                output_dir

With `use_common_build_directory` the package and output directories move to
`<project_root>/build/Package/<module>` and `<project_root>/build/Output/<module>`
so several modules of one repository share a single build tree.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Protocol

from .config import BuildOptions
from .version import ReleaseType, SemanticVersion

__all__ = ["BuildInfo", "VersionSource", "create_build_info", "find_project_root"]


class VersionSource(Protocol):
    """Anything that can resolve the version of a module."""

    def resolve(
        self, release_type: ReleaseType, source_dir: Path, manifest_name: str
    ) -> SemanticVersion: ...


@dataclass(frozen=True, slots=True)
class BuildInfo:
    """Resolved configuration for one build run.

    Every path is derived at construction time and never changes afterwards.
    """

    module_name: str
    steps: tuple[str, ...]
    release_type: ReleaseType
    version: SemanticVersion
    project_root: Path
    module_root: Path
    source_dir: Path
    package_dir: Path
    output_dir: Path
    options: BuildOptions

    @property
    def manifest_name(self) -> str:
        return f"{self.module_name}.psd1"

    @property
    def source_manifest_path(self) -> Path:
        """Manifest in the source tree; holds the fallback ModuleVersion."""
        return self.source_dir / self.manifest_name

    @property
    def release_manifest_path(self) -> Path:
        return self.package_dir / self.manifest_name

    @property
    def release_module_path(self) -> Path:
        return self.package_dir / f"{self.module_name}.psm1"

    @property
    def activity(self) -> str:
        """Progress activity line for this run."""
        return f"Building {self.module_name} ({self.version})"

    def as_dict(self) -> dict[str, object]:
        """Plain representation for describe mode and JSON output."""
        return {
            "module_name": self.module_name,
            "steps": list(self.steps),
            "release_type": str(self.release_type),
            "version": str(self.version),
            "project_root": str(self.project_root),
            "module_root": str(self.module_root),
            "source_dir": str(self.source_dir),
            "package_dir": str(self.package_dir),
            "output_dir": str(self.output_dir),
            "source_manifest_path": str(self.source_manifest_path),
            "release_manifest_path": str(self.release_manifest_path),
            "release_module_path": str(self.release_module_path),
            "options": {
                "use_common_build_directory": self.options.use_common_build_directory,
                "code_coverage_threshold": self.options.code_coverage_threshold,
                "source_dir": self.options.source_dir,
            },
        }


def find_project_root(start: Path) -> Path:
    """Return the nearest directory at or above start holding `.git`.

    Falls back to start when no repository is found.
    """
    for candidate in (start, *start.parents):
        if (candidate / ".git").exists():
            return candidate
    return start


def create_build_info(
    *,
    cwd: Path,
    steps: list[str] | tuple[str, ...],
    release_type: ReleaseType,
    options: BuildOptions,
    versions: VersionSource,
) -> BuildInfo:
    """Construct the BuildInfo for a run, resolving the version exactly once."""
    cwd = cwd.resolve()
    module_root = cwd.parent
    module_name = module_root.name
    project_root = find_project_root(module_root)
    source_dir = module_root / options.source_dir

    if options.use_common_build_directory:
        build_root = project_root / "build"
        package_dir = build_root / "Package" / module_name
        output_dir = build_root / "Output" / module_name
    else:
        package_dir = module_root / "Package" / module_name
        output_dir = module_root / "Output"

    version = versions.resolve(release_type, source_dir, f"{module_name}.psd1")

    return BuildInfo(
        module_name=module_name,
        steps=tuple(steps),
        release_type=release_type,
        version=version,
        project_root=project_root,
        module_root=module_root,
        source_dir=source_dir,
        package_dir=package_dir,
        output_dir=output_dir,
        options=options,
    )
