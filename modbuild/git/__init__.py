"""Git operations.

Usage:
    from modbuild.git import GitSourceControl

    tag = GitSourceControl(Path(".")).latest_tag()
"""

from modbuild.git.repository import GitError, GitSourceControl, Repository

__all__ = [
    "GitError",
    "GitSourceControl",
    "Repository",
]
