"""Version control backends.

This package provides the adapter boundary between the state engine and the
raw repository format.

Classes:
    VersionControlBackend: Runtime-checkable protocol every backend satisfies.
    DulwichBackend: On-disk backend implemented with dulwich.
    FakeBackend: In-memory backend for tests.

Models:
    ChangeKind: Kind of a working tree or index change.
    ChangeRecord: One raw change reported by a backend.
    CommitMetadata: Metadata of a single commit.
    PathBatchResult: Per-path outcome of stage and unstage calls.

Example:
    >>> from gitstate.backend import DulwichBackend
    >>> backend = DulwichBackend.init(Path("/tmp/demo"))
    >>> backend.list_changes()
    []
"""

from gitstate.backend._dulwich import DulwichBackend
from gitstate.backend._fake import FakeBackend, FakeCommit
from gitstate.backend._models import (
    ChangeKind,
    ChangeRecord,
    CommitMetadata,
    PathBatchResult,
)
from gitstate.backend._protocol import VersionControlBackend

__all__ = [
    "ChangeKind",
    "ChangeRecord",
    "CommitMetadata",
    "DulwichBackend",
    "FakeBackend",
    "FakeCommit",
    "PathBatchResult",
    "VersionControlBackend",
]
