"""Platform helpers: subprocesses and filesystem."""

from .files import atomic_write_text, empty_directory, working_directory
from .process import ProcessError, run, run_silent

__all__ = [
    "ProcessError",
    "atomic_write_text",
    "empty_directory",
    "run",
    "run_silent",
    "working_directory",
]
