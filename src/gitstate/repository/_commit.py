"""Commit snapshots.

This module provides the immutable Commit value handed out by the repository
handle, the staging area and the history walker.
"""

import threading
from datetime import datetime
from pathlib import Path
from typing import TYPE_CHECKING, Final, Self, override

from gitstate.backend._models import CommitMetadata
from gitstate.repository._file_revision import CommitFileRevision

if TYPE_CHECKING:
    from gitstate.repository._repository import Repository

# Abbreviated SHA length used for display
SHORT_SHA_LENGTH: Final = 7

_MISSING: Final = object()


class Commit:
    """An immutable commit of a repository.

    The revision is resolved and the metadata read exactly once, at
    construction. Tree content is never loaded eagerly: read_path fetches a
    single path on demand and caches the result on the instance.

    Two commits with the same SHA are interchangeable and compare equal.

    Attributes:
        sha: Full commit SHA (the content identifier).
        author: Author name.
        author_email: Author email.
        timestamp: Author timestamp (timezone-aware).
        subject: First line of the commit message.
        comment: Complete commit message.
        parents: Parent SHAs in recorded order.

    Example:
        >>> commit = Commit(repository, "HEAD")
        >>> commit.subject
        'Add README'
        >>> commit.read_path("README.md")
        b'# Demo\\n'
    """

    __slots__: Final = ("_content_cache", "_lock", "_metadata", "_repository")
    _repository: "Repository"
    _metadata: CommitMetadata
    _content_cache: dict[str, bytes | None]
    _lock: threading.Lock

    def __init__(self, repository: "Repository", rev: str = "HEAD") -> None:
        """Resolve a revision and read its metadata.

        Args:
            repository: The repository the commit belongs to.
            rev: Revision expression (SHA, abbreviated SHA, ref name, HEAD).

        Raises:
            UnresolvedReferenceError: If rev does not name a commit.
        """
        backend = repository.backend
        sha = backend.resolve_reference(rev)
        self._bind(repository, backend.read_commit_metadata(sha))

    @classmethod
    def from_metadata(cls, repository: "Repository", metadata: CommitMetadata) -> Self:
        """Build a commit from metadata that was already read.

        Args:
            repository: The repository the commit belongs to.
            metadata: Metadata fetched from the backend.

        Returns:
            A commit that issues no further metadata reads.
        """
        commit = cls.__new__(cls)
        commit._bind(repository, metadata)
        return commit

    def _bind(self, repository: "Repository", metadata: CommitMetadata) -> None:
        self._repository = repository
        self._metadata = metadata
        self._content_cache = {}
        self._lock = threading.Lock()

    # =========================================================================
    # Metadata
    # =========================================================================

    @property
    def repository(self) -> "Repository":
        """The repository the commit belongs to."""
        return self._repository

    @property
    def metadata(self) -> CommitMetadata:
        """The raw metadata record."""
        return self._metadata

    @property
    def sha(self) -> str:
        """Full commit SHA."""
        return self._metadata.sha

    @property
    def short_sha(self) -> str:
        """Abbreviated commit SHA for display."""
        return self._metadata.sha[:SHORT_SHA_LENGTH]

    @property
    def author(self) -> str:
        """Author name."""
        return self._metadata.author_name

    @property
    def author_email(self) -> str:
        """Author email."""
        return self._metadata.author_email

    @property
    def timestamp(self) -> datetime:
        """Author timestamp."""
        return self._metadata.timestamp

    @property
    def subject(self) -> str:
        """First line of the commit message."""
        return self._metadata.subject

    @property
    def comment(self) -> str:
        """Complete commit message."""
        return self._metadata.message

    @property
    def parents(self) -> tuple[str, ...]:
        """Parent SHAs: none for a root commit, two or more for a merge."""
        return self._metadata.parents

    @property
    def is_root(self) -> bool:
        """Whether the commit has no parents."""
        return not self._metadata.parents

    @property
    def is_merge(self) -> bool:
        """Whether the commit has more than one parent."""
        return len(self._metadata.parents) > 1

    # =========================================================================
    # Content
    # =========================================================================

    def read_path(self, path: str) -> bytes | None:
        """Read the content of a file at this commit.

        The first read of each path goes to the backend; later reads return
        the cached result.

        Args:
            path: Repository-relative path.

        Returns:
            The file bytes, or None if the path does not exist at this commit.
        """
        with self._lock:
            cached = self._content_cache.get(path, _MISSING)
            if cached is _MISSING:
                cached = self._repository.backend.read_path_at(self.sha, path)
                self._content_cache[path] = cached
            return cached  # pyright: ignore[reportReturnType]

    def file_revision(self, path: str | Path) -> CommitFileRevision:
        """Get the revision of a file at this commit.

        Args:
            path: Repository-relative or absolute path inside the repository.

        Returns:
            A lazily resolved file revision.
        """
        return CommitFileRevision(self, path)

    # =========================================================================
    # Identity
    # =========================================================================

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Commit):
            return NotImplemented
        return self.sha == other.sha

    @override
    def __hash__(self) -> int:
        return hash(self.sha)

    @override
    def __repr__(self) -> str:
        return f"Commit(sha={self.short_sha!r}, subject={self.subject!r})"
