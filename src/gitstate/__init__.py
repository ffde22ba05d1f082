"""gitstate: an in-process object model of a Git working copy.

Example:
    >>> from gitstate import Repository, RevSpecifier
    >>> with Repository.open() as repo:
    ...     repo.index.refresh()
    ...     commits = repo.history().walk(RevSpecifier(path="README.md"))
"""

from gitstate.exceptions import GitStateError
from gitstate.repository import (
    ChangedFile,
    Commit,
    CommitFileRevision,
    HistoryWalker,
    Repository,
    RevisionStorage,
    RevSpecifier,
    StagingArea,
)

__all__ = [
    "ChangedFile",
    "Commit",
    "CommitFileRevision",
    "GitStateError",
    "HistoryWalker",
    "Repository",
    "RevSpecifier",
    "RevisionStorage",
    "StagingArea",
]
