"""Build options loaded from an optional `build.toml`.

Example:

    [options]
    use_common_build_directory = true
    code_coverage_threshold = 0.8
    source_dir = "Source"
"""

from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, replace
from pathlib import Path

from .result import Err, Ok, Result
from .structured import StrDict, as_str_dict, get_bool, get_float, get_str, get_table

__all__ = [
    "BuildOptions",
    "ConfigError",
    "CONFIG_FILE_NAME",
    "DEFAULT_COVERAGE_THRESHOLD",
    "DEFAULT_SOURCE_DIR",
    "load_options",
    "load_options_or_default",
]

CONFIG_FILE_NAME = "build.toml"
DEFAULT_COVERAGE_THRESHOLD = 0.0
DEFAULT_SOURCE_DIR = "Source"


@dataclass(frozen=True, slots=True)
class ConfigError:
    """Error when build.toml cannot be loaded or is invalid."""

    message: str
    path: Path | None = None


@dataclass(frozen=True, slots=True)
class BuildOptions:
    """Options that shape derived paths and test gates."""

    use_common_build_directory: bool = False
    code_coverage_threshold: float = DEFAULT_COVERAGE_THRESHOLD
    source_dir: str = DEFAULT_SOURCE_DIR

    def __post_init__(self) -> None:
        if not 0.0 <= self.code_coverage_threshold <= 1.0:
            raise ValueError(
                f"code_coverage_threshold must be within [0, 1], got {self.code_coverage_threshold}"
            )

    @classmethod
    def from_dict(cls, data: Mapping[str, object]) -> BuildOptions:
        """Create options from a parsed TOML mapping."""
        options: StrDict = get_table(data, "options") or {}
        use_common = get_bool(options, "use_common_build_directory")
        threshold = get_float(options, "code_coverage_threshold")
        return cls(
            use_common_build_directory=use_common if use_common is not None else False,
            code_coverage_threshold=(
                threshold if threshold is not None else DEFAULT_COVERAGE_THRESHOLD
            ),
            source_dir=get_str(options, "source_dir") or DEFAULT_SOURCE_DIR,
        )

    def with_overrides(
        self,
        *,
        use_common_build_directory: bool | None = None,
        code_coverage_threshold: float | None = None,
    ) -> BuildOptions:
        """Return a copy with command-line overrides applied."""
        options = self
        if use_common_build_directory is not None:
            options = replace(options, use_common_build_directory=use_common_build_directory)
        if code_coverage_threshold is not None:
            options = replace(options, code_coverage_threshold=code_coverage_threshold)
        return options


def _parse_toml(path: Path) -> Result[StrDict, ConfigError]:
    import tomllib

    try:
        data_obj: object = tomllib.loads(path.read_bytes().decode("utf-8"))
    except FileNotFoundError:
        return Err(ConfigError(f"Config file not found: {path}", path=path))
    except PermissionError:
        return Err(ConfigError(f"Permission denied reading: {path}", path=path))
    except tomllib.TOMLDecodeError as e:
        return Err(ConfigError(f"Invalid TOML syntax: {e}", path=path))
    except UnicodeDecodeError as e:
        return Err(ConfigError(f"Error reading config: {e}", path=path))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(ConfigError("Config root must be a TOML table", path=path))
    return Ok(data)


def load_options(path: Path) -> Result[BuildOptions, ConfigError]:
    """Load build options from a TOML file.

    Args:
        path: Path to build.toml

    Returns:
        Ok(BuildOptions) on success, Err(ConfigError) on failure
    """
    result = _parse_toml(path)
    if isinstance(result, Err):
        return result

    try:
        return Ok(BuildOptions.from_dict(result.value))
    except (TypeError, ValueError) as e:
        return Err(ConfigError(f"Invalid build options: {e}", path=path))


def load_options_or_default(path: Path) -> Result[BuildOptions, ConfigError]:
    """Like load_options, but a missing file yields the defaults."""
    if not path.exists():
        return Ok(BuildOptions())
    return load_options(path)
