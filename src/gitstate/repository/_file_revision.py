"""Historical file revisions.

This module provides CommitFileRevision, the content of one path as of one
commit, and RevisionStorage, the read-only byte payload behind it.
"""

import threading
from dataclasses import dataclass, field
from enum import Enum, auto
from io import BytesIO
from pathlib import Path, PurePosixPath
from typing import TYPE_CHECKING, Final, Self, override
from urllib.parse import quote

from gitstate.exceptions import ContentUnavailableError
from gitstate.utils._git import normalize_repo_path

if TYPE_CHECKING:
    from datetime import datetime

    from gitstate.repository._commit import Commit


@dataclass(frozen=True, slots=True)
class RevisionStorage:
    """Read-only content of a file revision.

    Attributes:
        name: Final path component.
        full_path: Where the file lives in the working tree.
        content: The file bytes.
    """

    name: str
    full_path: Path
    content: bytes = field(repr=False)

    @property
    def size(self) -> int:
        """Content length in bytes."""
        return len(self.content)

    @property
    def read_only(self) -> bool:
        """Historical content can never be written."""
        return True

    def get_contents(self) -> BytesIO:
        """Open a fresh byte stream over the content."""
        return BytesIO(self.content)


class _Resolution(Enum):
    UNRESOLVED = auto()
    PRESENT = auto()
    ABSENT = auto()


class CommitFileRevision:
    """The content of one path at one commit.

    Metadata mirrors the bound commit. Whether the path exists, and its
    bytes, are fetched on first use and memoized: the revision moves once
    from unresolved to present or absent and never changes afterwards.

    Revisions compare equal when they name the same path at the same commit.

    Example:
        >>> revision = repository.file_revision("README.md", "HEAD~1")
        >>> revision.exists()
        True
        >>> revision.get_contents()
        b'# Demo\\n'
    """

    __slots__: Final = ("_commit", "_lock", "_path", "_state", "_storage")
    _commit: "Commit"
    _path: str
    _lock: threading.Lock
    _state: _Resolution
    _storage: RevisionStorage | None

    def __init__(self, commit: "Commit", path: str | Path) -> None:
        """Bind a path to a commit without touching the backend.

        Args:
            commit: The commit to read from.
            path: Repository-relative or absolute path inside the repository.

        Raises:
            ValueError: If the path is empty or outside the repository.
        """
        self._commit = commit
        self._path = normalize_repo_path(path, commit.repository.root)
        self._lock = threading.Lock()
        self._state = _Resolution.UNRESOLVED
        self._storage = None

    def _resolve(self) -> RevisionStorage | None:
        with self._lock:
            if self._state is _Resolution.UNRESOLVED:
                content = self._commit.read_path(self._path)
                if content is None:
                    self._state = _Resolution.ABSENT
                else:
                    self._storage = RevisionStorage(
                        name=self.name,
                        full_path=self.full_path,
                        content=content,
                    )
                    self._state = _Resolution.PRESENT
            return self._storage

    # =========================================================================
    # Location
    # =========================================================================

    @property
    def commit(self) -> "Commit":
        """The commit this revision reads from."""
        return self._commit

    @property
    def path(self) -> str:
        """Repository-relative path."""
        return self._path

    @property
    def name(self) -> str:
        """Final path component."""
        return PurePosixPath(self._path).name

    @property
    def full_path(self) -> Path:
        """Location of the file in the working tree."""
        return self._commit.repository.root / self._path

    @property
    def uri(self) -> str:
        """Revision URI of the form ``git:<path>?commit=<sha>``.

        The path is percent-encoded, so the URL path of the URI decodes back
        to the repository-relative path.
        """
        return f"git:{quote(self._path)}?commit={self._commit.sha}"

    # =========================================================================
    # Metadata
    # =========================================================================

    @property
    def content_identifier(self) -> str:
        """SHA of the bound commit."""
        return self._commit.sha

    @property
    def author(self) -> str:
        return self._commit.author

    @property
    def author_email(self) -> str:
        return self._commit.author_email

    @property
    def comment(self) -> str:
        return self._commit.comment

    @property
    def timestamp(self) -> "datetime":  # noqa: UP037
        return self._commit.timestamp

    def is_property_missing(self) -> bool:
        """Report whether any metadata still needs fetching (never)."""
        return False

    def with_all_properties(self, *_args: object, **_kwargs: object) -> Self:
        """Return a revision with every property populated (this one)."""
        return self

    # =========================================================================
    # Content
    # =========================================================================

    def exists(self) -> bool:
        """Whether the path exists at the commit."""
        return self._resolve() is not None

    def get_storage(self) -> RevisionStorage:
        """Get the content of the revision.

        Returns:
            The cached RevisionStorage.

        Raises:
            ContentUnavailableError: If the path does not exist at the commit.
        """
        storage = self._resolve()
        if storage is None:
            msg = f"{self._path} does not exist at commit {self._commit.short_sha}"
            raise ContentUnavailableError(msg, path=self._path, sha=self._commit.sha)
        return storage

    def get_contents(self) -> bytes:
        """Get the file bytes.

        Raises:
            ContentUnavailableError: If the path does not exist at the commit.
        """
        return self.get_storage().content

    # =========================================================================
    # Identity
    # =========================================================================

    @override
    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CommitFileRevision):
            return NotImplemented
        return (self.content_identifier, self._path) == (
            other.content_identifier,
            other._path,
        )

    @override
    def __hash__(self) -> int:
        return hash((self.content_identifier, self._path))

    @override
    def __repr__(self) -> str:
        return f"CommitFileRevision(path={self._path!r}, commit={self._commit.short_sha!r})"
