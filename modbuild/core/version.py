"""Four-part module versions and the release increment policy."""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

__all__ = ["DEFAULT_VERSION", "ReleaseType", "SemanticVersion", "parse_version"]


class ReleaseType(StrEnum):
    """Which version component a release increments."""

    BUILD = "Build"
    MINOR = "Minor"
    MAJOR = "Major"


# Two to four components, like System.Version.
_VERSION_RE = re.compile(r"^(\d+)\.(\d+)(?:\.(\d+))?(?:\.(\d+))?$")


@dataclass(frozen=True, slots=True, order=True)
class SemanticVersion:
    major: int
    minor: int
    patch: int = 0
    revision: int = 0

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}.{self.revision}"

    def increment(self, release_type: ReleaseType) -> SemanticVersion:
        """Apply the increment policy. Revision always resets to 0."""
        match release_type:
            case ReleaseType.MAJOR:
                return SemanticVersion(self.major + 1, 0, 0, 0)
            case ReleaseType.MINOR:
                return SemanticVersion(self.major, self.minor + 1, 0, 0)
            case ReleaseType.BUILD:
                return SemanticVersion(self.major, self.minor, self.patch + 1, 0)
            case _:
                raise AssertionError(f"unexpected release type: {release_type}")


DEFAULT_VERSION = SemanticVersion(1, 0, 0, 0)


def parse_version(text: str) -> SemanticVersion | None:
    """Parse `1.2`, `1.2.3` or `1.2.3.4`, with an optional leading `v`.

    Returns None for anything else (prerelease suffixes, git describe
    suffixes, empty strings).
    """
    s = text.strip()
    if s[:1] in ("v", "V"):
        s = s[1:]
    m = _VERSION_RE.match(s)
    if m is None:
        return None
    parts = [int(g) if g is not None else 0 for g in m.groups()]
    return SemanticVersion(*parts)
