"""PowerShell host: syntax checks, module downloads and Pester runs.

Scripts are passed to `pwsh -Command`; every interpolated value goes through
ps_quote so paths with quotes or spaces stay literal.
"""

from __future__ import annotations

import json
from pathlib import Path

from modbuild.core.result import Err, Ok, Result
from modbuild.platform.process import ProcessError, run
from modbuild.services.testing import TestConfig, TestRunError, TestSummary

__all__ = ["PesterTestRunner", "PowerShell", "SUMMARY_FILE_NAME", "ps_quote", "read_summary"]

SUMMARY_FILE_NAME = "pester-summary.json"


def ps_quote(value: str | Path) -> str:
    """Single-quoted PowerShell string literal."""
    return "'" + str(value).replace("'", "''") + "'"


def _ps_array(values: list[Path] | tuple[Path, ...]) -> str:
    return "@(" + ", ".join(ps_quote(v) for v in values) + ")"


class PowerShell:
    def __init__(self, executable: str = "pwsh") -> None:
        self.executable = executable

    def run_script(self, script: str, cwd: Path) -> Result[str, ProcessError]:
        return run(
            [self.executable, "-NoLogo", "-NoProfile", "-NonInteractive", "-Command", script],
            cwd=cwd,
        )

    def parse_errors(self, files: list[Path], cwd: Path) -> Result[list[str], ProcessError]:
        """Parse files with the PowerShell parser.

        Returns one `path:line: message` entry per parse error.
        """
        if not files:
            return Ok([])
        script = (
            f"foreach ($f in {_ps_array(files)}) {{"
            " $tokens = $null; $errors = $null;"
            " [System.Management.Automation.Language.Parser]::ParseFile("
            "$f, [ref]$tokens, [ref]$errors) | Out-Null;"
            " foreach ($e in $errors) {"
            " '{0}:{1}: {2}' -f $f, $e.Extent.StartLineNumber, $e.Message } }"
        )
        result = self.run_script(script, cwd)
        if isinstance(result, Err):
            return result
        return Ok([line for line in result.value.splitlines() if line.strip()])

    def save_module(self, name: str, destination: Path) -> Result[str, ProcessError]:
        """Download a module from the gallery into destination."""
        script = (
            f"Save-Module -Name {ps_quote(name)} -Path {ps_quote(destination)}"
            " -Force -ErrorAction Stop"
        )
        return self.run_script(script, destination)


class PesterTestRunner:
    """Runs Pester 5 and reads back a JSON summary written by the script."""

    def __init__(self, shell: PowerShell | None = None) -> None:
        self._shell = shell or PowerShell()

    def build_script(self, config: TestConfig) -> str:
        summary = config.output_dir / SUMMARY_FILE_NAME
        lines = [
            "$c = New-PesterConfiguration",
            f"$c.Run.Path = {ps_quote(config.test_path)}",
            "$c.Run.PassThru = $true",
            "$c.Output.Verbosity = 'Detailed'",
            "$c.TestResult.Enabled = $true",
            f"$c.TestResult.OutputPath = {ps_quote(config.output_dir / 'testResults.xml')}",
        ]
        if config.coverage_paths:
            lines += [
                "$c.CodeCoverage.Enabled = $true",
                f"$c.CodeCoverage.Path = {_ps_array(config.coverage_paths)}",
                f"$c.CodeCoverage.OutputPath = {ps_quote(config.output_dir / 'coverage.xml')}",
            ]
        lines += [
            "$r = Invoke-Pester -Configuration $c",
            "$missed = @($r.CodeCoverage.CommandsMissed"
            " | ForEach-Object { '{0}:{1} {2}' -f $_.File, $_.Line, $_.Command })",
            "[ordered]@{ FailedCount = $r.FailedCount;"
            " CoveragePercent = $r.CodeCoverage.CoveragePercent;"
            " Missed = $missed } | ConvertTo-Json -Compress"
            f" | Set-Content -Path {ps_quote(summary)} -Encoding utf8",
        ]
        return "\n".join(lines)

    def run_unit_tests(self, config: TestConfig) -> Result[TestSummary, TestRunError]:
        config.output_dir.mkdir(parents=True, exist_ok=True)
        result = self._shell.run_script(self.build_script(config), config.output_dir)
        if isinstance(result, Err):
            return Err(TestRunError(message=str(result.error), detail=result.error.stderr or None))
        return read_summary(config.output_dir / SUMMARY_FILE_NAME, coverage=bool(config.coverage_paths))


def read_summary(path: Path, *, coverage: bool) -> Result[TestSummary, TestRunError]:
    """Read the summary JSON written by the Pester script."""
    try:
        data: object = json.loads(path.read_text(encoding="utf-8-sig"))
    except FileNotFoundError:
        return Err(TestRunError(message=f"Pester summary not found: {path}"))
    except (OSError, json.JSONDecodeError) as e:
        return Err(TestRunError(message=f"Invalid Pester summary: {e}"))

    if not isinstance(data, dict):
        return Err(TestRunError(message="Pester summary must be a JSON object"))

    failed = data.get("FailedCount")
    if not isinstance(failed, int):
        return Err(TestRunError(message="Pester summary has no FailedCount"))

    ratio = 1.0
    percent = data.get("CoveragePercent")
    if coverage and isinstance(percent, (int, float)):
        ratio = max(0.0, min(1.0, float(percent) / 100.0))

    missed_raw = data.get("Missed")
    if isinstance(missed_raw, str):
        missed: tuple[str, ...] = (missed_raw,)
    elif isinstance(missed_raw, list):
        missed = tuple(str(m) for m in missed_raw)
    else:
        missed = ()

    return Ok(TestSummary(failed_count=failed, coverage_ratio=ratio, missed_items=missed))
