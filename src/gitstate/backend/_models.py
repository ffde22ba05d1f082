# ruff: noqa: TC003  # datetime needed at runtime for dataclass fields
"""Version control backend records.

This module defines the typed records the backend adapter translates raw
repository state into.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import StrEnum


class ChangeKind(StrEnum):
    """Kind of change recorded for a path.

    Unstaged kinds describe the working tree relative to the index; staged
    kinds describe the index relative to HEAD.
    """

    ADDED = "added"
    MODIFIED = "modified"
    DELETED = "deleted"
    UNTRACKED = "untracked"
    STAGED_ADDED = "staged-added"
    STAGED_MODIFIED = "staged-modified"
    STAGED_DELETED = "staged-deleted"
    CONFLICTED = "conflicted"

    @property
    def is_staged(self) -> bool:
        """Whether this kind describes an index change."""
        return self in _STAGED_KINDS


_STAGED_KINDS = frozenset(
    {ChangeKind.STAGED_ADDED, ChangeKind.STAGED_MODIFIED, ChangeKind.STAGED_DELETED}
)


@dataclass(frozen=True, slots=True)
class ChangeRecord:
    """One raw change reported by the backend.

    A path may be reported more than once (for example staged and then
    modified again in the working tree).

    Attributes:
        path: Repository-relative POSIX path.
        kind: Kind of change.
        staged: True if the change is recorded in the index.
    """

    path: str
    kind: ChangeKind
    staged: bool


@dataclass(frozen=True, slots=True)
class CommitMetadata:
    """Metadata of a single commit.

    Attributes:
        sha: Full 40-character commit SHA hex string.
        author_name: Author name from commit.
        author_email: Author email from commit.
        timestamp: Author timestamp with the author's timezone.
        message: Complete commit message (subject + body).
        parents: SHA hex strings of parent commits, in recorded order.
    """

    sha: str
    author_name: str
    author_email: str
    timestamp: datetime
    message: str
    parents: tuple[str, ...]

    @property
    def subject(self) -> str:
        """First line of the commit message."""
        lines = self.message.splitlines()
        return lines[0] if lines else ""


@dataclass(frozen=True, slots=True)
class PathBatchResult:
    """Per-path outcome of a stage or unstage call.

    Attributes:
        succeeded: Paths the backend accepted, in request order.
        failed: Mapping of rejected path to reason.
    """

    succeeded: tuple[str, ...] = ()
    failed: dict[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        """True when no path was rejected."""
        return not self.failed
