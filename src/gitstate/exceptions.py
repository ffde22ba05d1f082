"""gitstate exceptions."""

from collections.abc import Iterable, Mapping
from enum import StrEnum
from pathlib import Path
from typing import Any


class GitStateError(Exception):
    """Base exception for gitstate errors."""


# =============================================================================
# Configuration Exceptions
# =============================================================================


class ConfigError(GitStateError):
    """Base exception for configuration errors."""


class ConfigLoadError(ConfigError):
    """Raised when configuration cannot be loaded or parsed."""

    def __init__(
        self,
        message: str,
        *,
        path: Path | None = None,
        line: int | None = None,
        column: int | None = None,
    ) -> None:
        """Initialize with error message and optional location context."""
        super().__init__(message)
        self.path: Path | None = path
        self.line: int | None = line
        self.column: int | None = column


class ConfigValidationError(ConfigError):
    """Raised when configuration fails validation."""

    def __init__(
        self,
        message: str,
        *,
        key: str,
        value: Any,  # pyright: ignore[reportAny,reportExplicitAny]
        expected: str | None = None,
        source: str | None = None,
    ) -> None:
        """Initialize with error message and validation context."""
        super().__init__(message)
        self.key: str = key
        self.value: Any = value  # pyright: ignore[reportExplicitAny]
        self.expected: str | None = expected
        self.source: str | None = source


# =============================================================================
# Repository Exceptions
# =============================================================================


class RepositoryError(GitStateError):
    """Base exception for repository state errors."""


class NotARepositoryError(RepositoryError):
    """Raised when no .git is found at or above a directory.

    Attributes:
        path: The directory that was searched.
    """

    def __init__(self, message: str, *, path: Path | None = None) -> None:
        """Initialize with error message and path context.

        Args:
            message: Human-readable error message.
            path: The directory that was searched for .git.
        """
        super().__init__(message)
        self.path: Path | None = path


class BackendUnavailableError(RepositoryError):
    """Raised when the version control backend cannot be reached at all.

    Attributes:
        operation: Name of the backend operation that failed.
        cause: The underlying I/O or process error.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        cause: Exception | None = None,
    ) -> None:
        """Initialize with error message and backend context.

        Args:
            message: Human-readable error message.
            operation: Name of the backend operation that failed.
            cause: The underlying exception that caused this error.
        """
        super().__init__(message)
        self.operation: str = operation
        self.cause: Exception | None = cause


class UnresolvedReferenceError(RepositoryError, KeyError):
    """Raised when a revision expression cannot be resolved to a commit.

    Attributes:
        ref: The expression that failed to resolve.
    """

    def __init__(self, message: str, *, ref: str | None = None) -> None:
        """Initialize with error message and reference context.

        Args:
            message: Human-readable error message.
            ref: The revision expression that failed to resolve.
        """
        super().__init__(message)
        self.ref: str | None = ref

    def __str__(self) -> str:
        # KeyError.__str__ would repr() the message
        return str(self.args[0]) if self.args else ""


class PathOperationError(RepositoryError):
    """Base exception for batch operations that fail on individual paths.

    Attributes:
        failures: Mapping of repository-relative path to rejection reason.
        succeeded: Paths that were processed successfully before the
            failure was reported.
    """

    def __init__(
        self,
        message: str,
        *,
        failures: Mapping[str, str],
        succeeded: Iterable[str] = (),
    ) -> None:
        """Initialize with error message and per-path outcome.

        Args:
            message: Human-readable error message.
            failures: Mapping of rejected path to reason.
            succeeded: Paths that were processed successfully.
        """
        super().__init__(message)
        self.failures: dict[str, str] = dict(failures)
        self.succeeded: tuple[str, ...] = tuple(succeeded)


class StageFailedError(PathOperationError):
    """Raised when the backend rejects one or more paths during staging."""


class UnstageFailedError(PathOperationError):
    """Raised when the backend rejects one or more paths during unstaging."""


class NothingToCommitError(RepositoryError):
    """Raised when a commit is requested with an empty staged set.

    Attributes:
        head: HEAD at the time of the call, None for an empty repository.
    """

    def __init__(self, message: str, *, head: str | None = None) -> None:
        """Initialize with error message and HEAD context.

        Args:
            message: Human-readable error message.
            head: The unchanged HEAD commit SHA, if any.
        """
        super().__init__(message)
        self.head: str | None = head


class CommitFailureReason(StrEnum):
    """Reasons a commit can be refused after the staged set was accepted."""

    UNRESOLVED_CONFLICTS = "unresolved-conflicts"
    CONCURRENT_UPDATE = "concurrent-update"


class CommitFailedError(RepositoryError):
    """Raised when a commit cannot be created.

    Attributes:
        reason: Why the commit was refused.
        details: Additional details (conflicted paths, commit SHAs).
    """

    def __init__(
        self,
        message: str,
        *,
        reason: CommitFailureReason,
        details: str | None = None,
    ) -> None:
        """Initialize with error message and failure context.

        Args:
            message: Human-readable error message.
            reason: Why the commit was refused.
            details: Additional details about the failure.
        """
        super().__init__(message)
        self.reason: CommitFailureReason = reason
        self.details: str | None = details


class ContentUnavailableError(RepositoryError):
    """Raised when file content is requested for a path absent at a commit.

    Attributes:
        path: Repository-relative path that was requested.
        sha: The commit SHA that was searched.
    """

    def __init__(
        self,
        message: str,
        *,
        path: str | None = None,
        sha: str | None = None,
    ) -> None:
        """Initialize with error message and content context.

        Args:
            message: Human-readable error message.
            path: Repository-relative path that was requested.
            sha: The commit SHA that was searched.
        """
        super().__init__(message)
        self.path: str | None = path
        self.sha: str | None = sha
