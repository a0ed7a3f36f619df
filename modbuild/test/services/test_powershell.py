"""Tests for modbuild.services.powershell."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from modbuild.core.result import Err, Ok, Result
from modbuild.platform.process import ProcessError
from modbuild.services import powershell as ps_mod
from modbuild.services.powershell import (
    SUMMARY_FILE_NAME,
    PesterTestRunner,
    PowerShell,
    ps_quote,
    read_summary,
)
from modbuild.services.testing import TestConfig, TestSummary


def test_ps_quote_escapes_single_quotes() -> None:
    assert ps_quote("O'Brien") == "'O''Brien'"
    assert ps_quote(Path("a b")) == "'a b'"


class TestPowerShell:
    def test_run_script_command_line(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        seen: list[list[str]] = []

        def fake_run(cmd: list[str], cwd: Path, env: dict[str, str] | None = None, *, timeout: float | None = None):
            seen.append(cmd)
            return Ok("")

        monkeypatch.setattr(ps_mod, "run", fake_run)
        PowerShell().run_script("Get-Date", tmp_path)
        assert seen == [["pwsh", "-NoLogo", "-NoProfile", "-NonInteractive", "-Command", "Get-Date"]]

    def test_parse_errors_splits_lines(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(ps_mod, "run", lambda cmd, cwd, **_: Ok("a.ps1:1: oops\n\nb.ps1:2: bad\n"))
        result = PowerShell().parse_errors([tmp_path / "a.ps1"], tmp_path)
        assert result == Ok(["a.ps1:1: oops", "b.ps1:2: bad"])

    def test_parse_errors_without_files_runs_nothing(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        def fail(*args: object, **kwargs: object) -> None:
            raise AssertionError("pwsh must not run")

        monkeypatch.setattr(ps_mod, "run", fail)
        assert PowerShell().parse_errors([], tmp_path) == Ok([])

    def test_save_module_script(self, tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
        scripts: list[str] = []
        shell = PowerShell()
        monkeypatch.setattr(shell, "run_script", lambda script, cwd: scripts.append(script) or Ok(""))
        shell.save_module("PSFramework", tmp_path)
        assert scripts[0].startswith("Save-Module -Name 'PSFramework' -Path ")
        assert "-ErrorAction Stop" in scripts[0]


class SummaryWritingShell(PowerShell):
    def __init__(self, payload: object | None) -> None:
        super().__init__()
        self.payload = payload
        self.scripts: list[str] = []

    def run_script(self, script: str, cwd: Path) -> Result[str, ProcessError]:
        self.scripts.append(script)
        if self.payload is not None:
            (cwd / SUMMARY_FILE_NAME).write_text(json.dumps(self.payload), encoding="utf-8")
        return Ok("")


class TestPesterTestRunner:
    def test_script_enables_coverage_only_with_paths(self, tmp_path: Path) -> None:
        runner = PesterTestRunner()
        plain = runner.build_script(TestConfig(test_path=tmp_path / "Tests", output_dir=tmp_path))
        assert "CodeCoverage.Enabled" not in plain
        assert f"$c.Run.Path = '{tmp_path / 'Tests'}'" in plain

        covered = runner.build_script(
            TestConfig(
                test_path=tmp_path / "Tests",
                output_dir=tmp_path,
                coverage_paths=(tmp_path / "Mod.psm1",),
            )
        )
        assert "$c.CodeCoverage.Enabled = $true" in covered
        assert f"@('{tmp_path / 'Mod.psm1'}')" in covered

    def test_reads_summary(self, tmp_path: Path) -> None:
        shell = SummaryWritingShell({"FailedCount": 0, "CoveragePercent": 87.5, "Missed": ["x:1 Foo"]})
        config = TestConfig(
            test_path=tmp_path / "Tests", output_dir=tmp_path / "out", coverage_paths=(tmp_path / "M.psm1",)
        )
        result = PesterTestRunner(shell).run_unit_tests(config)
        assert result == Ok(TestSummary(failed_count=0, coverage_ratio=0.875, missed_items=("x:1 Foo",)))

    def test_shell_failure(self, tmp_path: Path) -> None:
        class BrokenShell(PowerShell):
            def run_script(self, script: str, cwd: Path) -> Result[str, ProcessError]:
                return Err(ProcessError(("pwsh",), -1, "", "pwsh not found"))

        config = TestConfig(test_path=tmp_path, output_dir=tmp_path / "out")
        result = PesterTestRunner(BrokenShell()).run_unit_tests(config)
        assert isinstance(result, Err)
        assert result.error.detail == "pwsh not found"


class TestReadSummary:
    def _write(self, tmp_path: Path, payload: object) -> Path:
        path = tmp_path / SUMMARY_FILE_NAME
        path.write_text(json.dumps(payload), encoding="utf-8")
        return path

    def test_coverage_ignored_when_disabled(self, tmp_path: Path) -> None:
        path = self._write(tmp_path, {"FailedCount": 3, "CoveragePercent": 10})
        assert read_summary(path, coverage=False) == Ok(TestSummary(failed_count=3))

    def test_single_missed_item_as_string(self, tmp_path: Path) -> None:
        path = self._write(tmp_path, {"FailedCount": 0, "CoveragePercent": 100, "Missed": "a:1 X"})
        result = read_summary(path, coverage=True)
        assert isinstance(result, Ok)
        assert result.value.missed_items == ("a:1 X",)
        assert result.value.coverage_ratio == 1.0

    def test_missing_file(self, tmp_path: Path) -> None:
        assert isinstance(read_summary(tmp_path / SUMMARY_FILE_NAME, coverage=True), Err)

    def test_invalid_json(self, tmp_path: Path) -> None:
        path = tmp_path / SUMMARY_FILE_NAME
        path.write_text("{not json", encoding="utf-8")
        assert isinstance(read_summary(path, coverage=True), Err)

    def test_missing_failed_count(self, tmp_path: Path) -> None:
        path = self._write(tmp_path, {"CoveragePercent": 50})
        result = read_summary(path, coverage=True)
        assert isinstance(result, Err)
        assert "FailedCount" in result.error.message
