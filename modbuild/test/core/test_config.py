"""Tests for modbuild.core.config."""

from __future__ import annotations

from pathlib import Path

import pytest

from modbuild.core.config import BuildOptions, load_options, load_options_or_default
from modbuild.core.result import Err, Ok


class TestBuildOptions:
    def test_defaults(self) -> None:
        options = BuildOptions()
        assert options.use_common_build_directory is False
        assert options.code_coverage_threshold == 0.0
        assert options.source_dir == "Source"

    @pytest.mark.parametrize("threshold", [-0.1, 1.5])
    def test_threshold_out_of_range(self, threshold: float) -> None:
        with pytest.raises(ValueError, match="code_coverage_threshold"):
            BuildOptions(code_coverage_threshold=threshold)

    def test_from_dict(self) -> None:
        options = BuildOptions.from_dict(
            {
                "options": {
                    "use_common_build_directory": True,
                    "code_coverage_threshold": 1,
                    "source_dir": "src",
                }
            }
        )
        assert options == BuildOptions(
            use_common_build_directory=True, code_coverage_threshold=1.0, source_dir="src"
        )

    def test_from_dict_ignores_wrong_types(self) -> None:
        options = BuildOptions.from_dict(
            {"options": {"use_common_build_directory": "yes", "code_coverage_threshold": True}}
        )
        assert options == BuildOptions()

    def test_with_overrides(self) -> None:
        base = BuildOptions(code_coverage_threshold=0.5)
        assert base.with_overrides() == base
        updated = base.with_overrides(use_common_build_directory=True, code_coverage_threshold=0.9)
        assert updated.use_common_build_directory is True
        assert updated.code_coverage_threshold == 0.9
        assert base.code_coverage_threshold == 0.5


class TestLoadOptions:
    def test_valid_file(self, tmp_path: Path) -> None:
        path = tmp_path / "build.toml"
        path.write_text("[options]\ncode_coverage_threshold = 0.75\n", encoding="utf-8")
        result = load_options(path)
        assert isinstance(result, Ok)
        assert result.value.code_coverage_threshold == 0.75

    def test_invalid_toml(self, tmp_path: Path) -> None:
        path = tmp_path / "build.toml"
        path.write_text("[options\n", encoding="utf-8")
        result = load_options(path)
        assert isinstance(result, Err)
        assert "Invalid TOML" in result.error.message

    def test_threshold_out_of_range_is_config_error(self, tmp_path: Path) -> None:
        path = tmp_path / "build.toml"
        path.write_text("[options]\ncode_coverage_threshold = 2\n", encoding="utf-8")
        result = load_options(path)
        assert isinstance(result, Err)
        assert result.error.path == path

    def test_missing_file_is_error(self, tmp_path: Path) -> None:
        assert isinstance(load_options(tmp_path / "build.toml"), Err)

    def test_or_default_on_missing_file(self, tmp_path: Path) -> None:
        assert load_options_or_default(tmp_path / "build.toml") == Ok(BuildOptions())
