from __future__ import annotations

import logging
from pathlib import Path

import typer

from modbuild import __version__
from modbuild.cli.log_setup import configure_logging
from modbuild.cli.render import format_json_record, print_build_info, print_summary
from modbuild.core.config import CONFIG_FILE_NAME, load_options_or_default
from modbuild.core.errors import ErrorCode
from modbuild.core.result import Err
from modbuild.core.step_result import StepResult
from modbuild.core.version import ReleaseType
from modbuild.git.repository import GitSourceControl
from modbuild.output.console import ConsoleProtocol, RichConsole
from modbuild.output.sinks import ConsoleProgress, ConsoleStepLog, NullProgress
from modbuild.services.manifest import Psd1ManifestStore
from modbuild.services.orchestrator import BuildOrchestrator
from modbuild.services.steps.build_steps import create_registry
from modbuild.services.version_resolver import VersionResolver

logger = logging.getLogger(__name__)

DEFAULT_STEPS = ["Build", "Test"]

app = typer.Typer(
    add_completion=False,
    no_args_is_help=False,
    rich_markup_mode="rich",
)


def _make_orchestrator(
    console: ConsoleProtocol, *, cwd: Path, quiet: bool
) -> BuildOrchestrator:
    manifests = Psd1ManifestStore()
    return BuildOrchestrator(
        versions=VersionResolver(GitSourceControl(cwd), manifests),
        registry_factory=lambda info: create_registry(info, console),
        progress=NullProgress() if quiet else ConsoleProgress(console),
        log=ConsoleStepLog(console),
        quiet=quiet,
    )


def _emit_record(result: StepResult) -> None:
    typer.echo(format_json_record(result.as_dict()))


@app.command()
def build(
    steps: list[str] | None = typer.Argument(
        None,
        help="Steps or presets (Build, Test, Release). Default: Build Test",
        show_default=False,
    ),
    release_type: ReleaseType = typer.Option(
        ReleaseType.BUILD,
        "--release-type",
        "-r",
        case_sensitive=False,
        help="Version component to increment",
    ),
    passthru: bool = typer.Option(
        False, "--passthru", help="Print each step result as a JSON line on stdout"
    ),
    describe: bool = typer.Option(
        False, "--describe", help="Print the resolved build info without running any step"
    ),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Suppress per-step console lines"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Debug logging and tracebacks"),
    common_build_dir: bool | None = typer.Option(
        None,
        "--common-build-dir/--no-common-build-dir",
        help="Put package and output under <repo>/build",
        show_default=False,
    ),
    coverage_threshold: float | None = typer.Option(
        None,
        "--coverage-threshold",
        min=0.0,
        max=1.0,
        help="Minimum Pester code coverage ratio",
        show_default=False,
    ),
    path: Path | None = typer.Option(
        None,
        "--path",
        help="Build directory inside the module root (default: current directory)",
        show_default=False,
    ),
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
) -> None:
    """Build, test and release a PowerShell module."""
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=int(ErrorCode.OK))

    configure_logging(verbose=verbose)
    # Keep stdout for JSON records in pass-through mode.
    console = RichConsole(stderr=passthru)

    try:
        cwd = (path or Path.cwd()).expanduser().resolve()
    except OSError as e:
        console.error(f"invalid --path: {e}")
        raise typer.Exit(code=int(ErrorCode.FAILURE))
    if not cwd.is_dir():
        console.error(f"not a directory: {cwd}")
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    options_result = load_options_or_default(cwd.parent / CONFIG_FILE_NAME)
    if isinstance(options_result, Err):
        console.error(options_result.error.message)
        raise typer.Exit(code=int(ErrorCode.FAILURE))
    options = options_result.value.with_overrides(
        use_common_build_directory=common_build_dir,
        code_coverage_threshold=coverage_threshold,
    )

    orchestrator = _make_orchestrator(console, cwd=cwd, quiet=quiet)
    try:
        report = orchestrator.run_build(
            steps or DEFAULT_STEPS,
            release_type,
            options,
            cwd=cwd,
            describe_only=describe,
            on_result=_emit_record if passthru else None,
        )
    except Exception as e:  # noqa: BLE001
        logger.debug("unexpected error", exc_info=True)
        console.error(f"Build FAILED: {e}")
        raise typer.Exit(code=int(ErrorCode.FAILURE))

    if report.describe_only:
        if passthru:
            typer.echo(format_json_record(report.info.as_dict()))
        else:
            print_build_info(report, console)
        raise typer.Exit(code=int(ErrorCode.OK))

    print_summary(report, console, verbose=verbose)
    raise typer.Exit(code=report.exit_status)


def main() -> None:
    app()
