"""Git repository queries used for versioning.

Usage:
    repo = Repository(Path("/path/to/repo"))

    match repo.describe_latest_tag():
        case Ok(tag):
            print(f"Latest tag: {tag}")
        case Err(e):
            print(f"No tag: {e.message}")
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path

from modbuild.core.result import Err, Ok, Result
from modbuild.platform.process import ProcessError
from modbuild.platform.process import run as run_process

_GIT_TIMEOUT_SECONDS = 30.0

__all__ = ["GitError", "GitSourceControl", "Repository"]


@dataclass(frozen=True, slots=True)
class GitError:
    """Error from a git operation.

    Attributes:
        command: The git command that failed
        message: Error message
        returncode: Process return code
    """

    command: str
    message: str
    returncode: int = 1


class Repository:
    """Read-only view of a git repository.

    Attributes:
        path: Any directory inside the working tree
    """

    def __init__(self, path: Path) -> None:
        self.path = path

    def describe_latest_tag(self) -> Result[str, GitError]:
        """Return the most recent tag reachable from HEAD.

        Runs `git describe --tags --abbrev=0`.
        """
        result = self._run(["describe", "--tags", "--abbrev=0"])
        match result:
            case Err(e):
                return Err(
                    GitError(
                        command="describe",
                        message=e.stderr.strip() or "git describe failed",
                        returncode=e.returncode,
                    )
                )
            case Ok(stdout):
                tag = stdout.strip()
                if not tag:
                    return Err(GitError(command="describe", message="no tag found"))
                return Ok(tag)

    def _run(self, args: list[str]) -> Result[str, ProcessError]:
        return run_process(
            ["git", "-C", str(self.path), *args], cwd=self.path, timeout=_GIT_TIMEOUT_SECONDS
        )


class GitSourceControl:
    """SourceControl backed by git.

    Any failure (git missing, not a repository, no tags) reads as "no tag".
    """

    def __init__(self, path: Path) -> None:
        self._repo = Repository(path)

    def latest_tag(self) -> str | None:
        match self._repo.describe_latest_tag():
            case Ok(tag):
                return tag
            case Err(_):
                return None
