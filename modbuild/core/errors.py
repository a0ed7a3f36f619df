"""Process exit codes.

The exit status is the only machine-readable success signal of a build run.
"""

from enum import IntEnum

__all__ = ["ErrorCode"]


class ErrorCode(IntEnum):
    """Exit codes for the CLI.

    - 0: every executed step succeeded
    - 1: a step failed, or an unexpected error escaped
    - 2: invalid command line usage
    """

    OK = 0
    FAILURE = 1
    USAGE = 2

    def __str__(self) -> str:
        return self.name.lower()

    @property
    def is_success(self) -> bool:
        return self == ErrorCode.OK
