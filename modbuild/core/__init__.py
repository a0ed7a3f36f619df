"""Core domain types: results, versions, options and build info."""

from .config import BuildOptions, ConfigError, load_options, load_options_or_default
from .context import BuildInfo, VersionSource, create_build_info, find_project_root
from .errors import ErrorCode
from .result import Err, Ok, Result
from .step_result import StepError, StepFailure, StepOutcome, StepResult
from .version import DEFAULT_VERSION, ReleaseType, SemanticVersion, parse_version

__all__ = [
    # config
    "BuildOptions",
    "ConfigError",
    "load_options",
    "load_options_or_default",
    # context
    "BuildInfo",
    "VersionSource",
    "create_build_info",
    "find_project_root",
    # errors
    "ErrorCode",
    # result
    "Err",
    "Ok",
    "Result",
    # step results
    "StepError",
    "StepFailure",
    "StepOutcome",
    "StepResult",
    # version
    "DEFAULT_VERSION",
    "ReleaseType",
    "SemanticVersion",
    "parse_version",
]
