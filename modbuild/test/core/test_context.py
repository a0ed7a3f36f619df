"""Tests for modbuild.core.context."""

from __future__ import annotations

import dataclasses
from pathlib import Path

import pytest

from modbuild.core.config import BuildOptions
from modbuild.core.context import create_build_info, find_project_root
from modbuild.core.version import ReleaseType, SemanticVersion
from modbuild.test.fakes import FixedVersions, make_module


class TestFindProjectRoot:
    def test_nearest_git_ancestor(self, tmp_path: Path) -> None:
        (tmp_path / ".git").mkdir()
        nested = tmp_path / "a" / "b"
        nested.mkdir(parents=True)
        assert find_project_root(nested) == tmp_path

    def test_falls_back_to_start(self, tmp_path: Path) -> None:
        # tmp_path is not inside a repository on CI runners.
        start = tmp_path / "lonely"
        start.mkdir()
        root = find_project_root(start)
        assert root == start or (root / ".git").exists()


class TestCreateBuildInfo:
    def test_default_layout(self, tmp_path: Path) -> None:
        build_dir = make_module(tmp_path)
        versions = FixedVersions(SemanticVersion(2, 0, 1, 0))

        info = create_build_info(
            cwd=build_dir,
            steps=["Setup", "Clean"],
            release_type=ReleaseType.MINOR,
            options=BuildOptions(),
            versions=versions,
        )

        module_root = (tmp_path / "repo" / "MyModule").resolve()
        assert info.module_name == "MyModule"
        assert info.steps == ("Setup", "Clean")
        assert info.release_type is ReleaseType.MINOR
        assert info.version == SemanticVersion(2, 0, 1, 0)
        assert info.project_root == (tmp_path / "repo").resolve()
        assert info.module_root == module_root
        assert info.source_dir == module_root / "Source"
        assert info.package_dir == module_root / "Package" / "MyModule"
        assert info.output_dir == module_root / "Output"
        assert info.release_manifest_path == module_root / "Package" / "MyModule" / "MyModule.psd1"
        assert info.release_module_path == module_root / "Package" / "MyModule" / "MyModule.psm1"
        assert info.source_manifest_path == module_root / "Source" / "MyModule.psd1"

    def test_common_build_directory(self, tmp_path: Path) -> None:
        build_dir = make_module(tmp_path)
        info = create_build_info(
            cwd=build_dir,
            steps=[],
            release_type=ReleaseType.BUILD,
            options=BuildOptions(use_common_build_directory=True),
            versions=FixedVersions(),
        )

        repo = (tmp_path / "repo").resolve()
        assert info.package_dir == repo / "build" / "Package" / "MyModule"
        assert info.output_dir == repo / "build" / "Output" / "MyModule"
        assert info.release_manifest_path.parent == info.package_dir

    def test_custom_source_dir(self, tmp_path: Path) -> None:
        build_dir = make_module(tmp_path)
        info = create_build_info(
            cwd=build_dir,
            steps=[],
            release_type=ReleaseType.BUILD,
            options=BuildOptions(source_dir="src"),
            versions=FixedVersions(),
        )
        assert info.source_dir.name == "src"

    def test_version_resolved_exactly_once(self, tmp_path: Path) -> None:
        build_dir = make_module(tmp_path)
        versions = FixedVersions()
        info = create_build_info(
            cwd=build_dir,
            steps=["Setup"],
            release_type=ReleaseType.BUILD,
            options=BuildOptions(),
            versions=versions,
        )
        _ = (info.version, info.version, info.activity)
        assert versions.calls == 1

    def test_immutable(self, tmp_path: Path) -> None:
        info = create_build_info(
            cwd=make_module(tmp_path),
            steps=[],
            release_type=ReleaseType.BUILD,
            options=BuildOptions(),
            versions=FixedVersions(),
        )
        with pytest.raises(dataclasses.FrozenInstanceError):
            info.module_name = "Other"  # type: ignore[misc]

    def test_deterministic(self, tmp_path: Path) -> None:
        build_dir = make_module(tmp_path)
        kwargs = dict(
            cwd=build_dir,
            steps=["Setup"],
            release_type=ReleaseType.BUILD,
            options=BuildOptions(),
        )
        first = create_build_info(versions=FixedVersions(), **kwargs)  # type: ignore[arg-type]
        second = create_build_info(versions=FixedVersions(), **kwargs)  # type: ignore[arg-type]
        assert first == second

    def test_as_dict_and_activity(self, tmp_path: Path) -> None:
        info = create_build_info(
            cwd=make_module(tmp_path),
            steps=["Setup"],
            release_type=ReleaseType.BUILD,
            options=BuildOptions(),
            versions=FixedVersions(SemanticVersion(1, 2, 3, 0)),
        )
        data = info.as_dict()
        assert data["version"] == "1.2.3.0"
        assert data["release_type"] == "Build"
        assert data["steps"] == ["Setup"]
        assert info.activity == "Building MyModule (1.2.3.0)"
