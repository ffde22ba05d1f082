"""Version control backend protocol.

This module defines the runtime-checkable Protocol that every backend
satisfies. The state engine only talks to repositories through it, which
keeps the dulwich object model out of the staging, history and content
code and lets tests substitute an in-memory fake.
"""

from collections.abc import Sequence
from pathlib import Path
from typing import Protocol, runtime_checkable

from gitstate.backend._models import ChangeRecord, CommitMetadata, PathBatchResult
from gitstate.utils._author import AuthorInfo


@runtime_checkable
class VersionControlBackend(Protocol):
    """Protocol for the backend of a single repository.

    Every operation is synchronous. Failures to reach the repository at all
    surface as BackendUnavailableError; the other error types are listed
    per method.

    Example:
        >>> def head_subject(backend: VersionControlBackend) -> str:
        ...     sha = backend.resolve_reference("HEAD")
        ...     return backend.read_commit_metadata(sha).subject
    """

    @property
    def root(self) -> Path:
        """Root directory of the working tree.

        Returns:
            The absolute path to the repository root directory.
        """
        ...

    def close(self) -> None:
        """Release file handles held by the backend."""
        ...

    def resolve_reference(self, expr: str) -> str:
        """Resolve a revision expression to a commit SHA.

        Args:
            expr: A SHA (full or abbreviated), a ref name or "HEAD".

        Returns:
            The full 40-character commit SHA.

        Raises:
            UnresolvedReferenceError: If the expression does not name a commit.
        """
        ...

    def list_changes(self) -> list[ChangeRecord]:
        """List working tree and index changes.

        Returns:
            Raw change records. A path may appear once per surface it
            changed on.
        """
        ...

    def stage(self, paths: Sequence[str]) -> PathBatchResult:
        """Stage paths into the index.

        Each path is processed independently; a rejected path never
        prevents the others from being staged.

        Args:
            paths: Repository-relative paths.

        Returns:
            Per-path outcome.
        """
        ...

    def unstage(self, paths: Sequence[str]) -> PathBatchResult:
        """Reset index entries for paths back to HEAD.

        Args:
            paths: Repository-relative paths.

        Returns:
            Per-path outcome.
        """
        ...

    def commit(self, message: str, *, author: AuthorInfo | None = None) -> str:
        """Commit the current index and advance HEAD.

        Args:
            message: Full commit message.
            author: Identity for author and committer. Backends fall back
                to their own identity resolution when None.

        Returns:
            The new commit SHA.

        Raises:
            NothingToCommitError: If the index matches HEAD.
            CommitFailedError: If the index has conflicts or HEAD moved
                during the commit.
        """
        ...

    def read_commit_metadata(self, sha: str) -> CommitMetadata:
        """Read metadata of one commit.

        Args:
            sha: Full commit SHA.

        Returns:
            The commit metadata.

        Raises:
            UnresolvedReferenceError: If the SHA is not a commit.
        """
        ...

    def read_path_at(self, sha: str, path: str) -> bytes | None:
        """Read file content at a commit.

        Args:
            sha: Full commit SHA.
            path: Repository-relative path.

        Returns:
            The blob bytes, or None if the path is absent at that commit.
        """
        ...

    def diff_path_across_parents(
        self, sha: str, parents: Sequence[str], path: str
    ) -> bool:
        """Check whether a commit changed a path relative to all parents.

        Args:
            sha: Full commit SHA.
            parents: Parent SHAs of the commit.
            path: Repository-relative path.

        Returns:
            True if the path's content at the commit differs from its
            content at every parent. A root commit is compared against
            an absent path.
        """
        ...
