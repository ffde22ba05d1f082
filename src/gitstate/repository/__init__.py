"""Repository state engine.

This package provides the object model of a working copy: the repository
handle, its staging area, immutable commits, the history walker and
historical file revisions.

Classes:
    Repository: Handle on one working copy, bound to a backend.
    StagingArea: Reconciled working tree and index state.
    ChangedFile: One path with pending changes.
    Commit: Immutable commit with lazily read content.
    HistoryWalker: Topologically ordered history traversal.
    RevSpecifier: Start revision, range and path filter of a walk.
    CommitFileRevision: A file's content at a commit.
    RevisionStorage: Read-only bytes of a file revision.

Example:
    >>> from gitstate.repository import Repository, RevSpecifier
    >>> with Repository.open() as repo:
    ...     repo.index.refresh()
    ...     history = repo.history().walk(RevSpecifier(path="README.md"))
"""

from gitstate.repository._commit import SHORT_SHA_LENGTH, Commit
from gitstate.repository._file_revision import CommitFileRevision, RevisionStorage
from gitstate.repository._index import ChangedFile, StagingArea, merge_change_records
from gitstate.repository._repository import Repository
from gitstate.repository._rev_list import CancelToken, HistoryWalker, RevSpecifier

__all__ = [
    "SHORT_SHA_LENGTH",
    "CancelToken",
    "ChangedFile",
    "Commit",
    "CommitFileRevision",
    "HistoryWalker",
    "RevSpecifier",
    "Repository",
    "RevisionStorage",
    "StagingArea",
    "merge_change_records",
]
