"""Result type for explicit error handling.

Build steps and collaborators return `Ok(value)` or `Err(error)` instead of
raising, so the step runner can tell a failed step from a crashed one.

Usage:
    def read_version(path: Path) -> Result[str, ManifestError]:
        if not path.exists():
            return Err(ManifestError("manifest not found", path=path))
        return Ok("1.2.3")

    match read_version(path):
        case Ok(version):
            print(version)
        case Err(error):
            print(error.message)
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class Ok[T]:
    """A successful result.

    Attributes:
        value: The success value.
    """

    value: T

    def __repr__(self) -> str:
        return f"Ok({self.value!r})"


@dataclass(frozen=True, slots=True)
class Err[E]:
    """A failed result.

    Attributes:
        error: The error value.
    """

    error: E

    def __repr__(self) -> str:
        return f"Err({self.error!r})"


type Result[T, E] = Ok[T] | Err[E]
