"""Staging area.

This module provides StagingArea, which reconciles the working tree and the
index into a snapshot of changed files, stages and unstages them, and
commits the index.
"""

import threading
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING, Final

from gitstate.backend._models import ChangeKind, ChangeRecord, PathBatchResult
from gitstate.exceptions import (
    CommitFailedError,
    NothingToCommitError,
    StageFailedError,
    UnstageFailedError,
)
from gitstate.repository._commit import Commit

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from gitstate.repository._repository import Repository
    from gitstate.utils._author import AuthorInfo


@dataclass(frozen=True, slots=True)
class ChangedFile:
    """One path with pending changes.

    Attributes:
        path: Repository-relative POSIX path. Unique within a snapshot.
        kind: The change that determines the file's state.
        staged: True if the change is recorded in the index.
        has_unstaged_changes: True if the working tree was edited again
            after the change was staged.
    """

    path: str
    kind: ChangeKind
    staged: bool
    has_unstaged_changes: bool = False

    @property
    def is_conflicted(self) -> bool:
        """Whether the path carries unresolved merge conflicts."""
        return self.kind is ChangeKind.CONFLICTED


def merge_change_records(records: Iterable[ChangeRecord]) -> list[ChangedFile]:
    """Fold raw backend records into one ChangedFile per path.

    A conflicted record wins over everything else. A staged record wins over
    an unstaged one and marks the file as having unstaged changes. Files
    keep the position of the first record reported for their path.

    Args:
        records: Records as reported by the backend.

    Returns:
        The reconciled snapshot.
    """
    merged: dict[str, ChangedFile] = {}
    for record in records:
        current = merged.get(record.path)
        if current is None:
            merged[record.path] = ChangedFile(
                path=record.path, kind=record.kind, staged=record.staged
            )
        elif current.is_conflicted:
            continue
        elif record.kind is ChangeKind.CONFLICTED:
            merged[record.path] = ChangedFile(
                path=record.path, kind=ChangeKind.CONFLICTED, staged=False
            )
        elif current.staged and not record.staged:
            merged[record.path] = replace(current, has_unstaged_changes=True)
        elif record.staged and not current.staged:
            merged[record.path] = ChangedFile(
                path=record.path,
                kind=record.kind,
                staged=True,
                has_unstaged_changes=True,
            )
    return list(merged.values())


def _paths_of(selection: Iterable[ChangedFile | str]) -> list[str]:
    return [item.path if isinstance(item, ChangedFile) else item for item in selection]


class StagingArea:
    """Working tree and index state of one repository.

    The snapshot is only recomputed by refresh(); staging and unstaging do
    not refresh implicitly. All operations of one staging area are
    serialized through an internal re-entrant lock.

    Example:
        >>> index = repository.index
        >>> index.refresh()
        >>> index.stage_files(index.changed_files())
        >>> commit = index.commit("Add docs")
    """

    __slots__: Final = ("_lock", "_logger", "_repository", "_snapshot")
    _repository: "Repository"
    _snapshot: list[ChangedFile]
    _lock: threading.RLock
    _logger: "FilteringBoundLogger"  # noqa: UP037

    def __init__(
        self,
        repository: "Repository",
        *,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> None:
        """Initialize with an empty snapshot.

        Args:
            repository: The repository whose index this is.
            logger: Logger for staging events. Defaults to the repository's.
        """
        self._repository = repository
        self._snapshot = []
        self._lock = threading.RLock()
        self._logger = logger if logger is not None else repository.logger

    # =========================================================================
    # Snapshot
    # =========================================================================

    def refresh(self) -> list[ChangedFile]:
        """Recompute the snapshot from the backend.

        Returns:
            The new snapshot.

        Raises:
            BackendUnavailableError: If the backend cannot be reached.
        """
        with self._lock:
            records = self._repository.backend.list_changes()
            self._snapshot = merge_change_records(records)
            self._logger.debug(
                "index_refreshed",
                records=len(records),
                changed=len(self._snapshot),
                staged=sum(1 for f in self._snapshot if f.staged),
            )
            return list(self._snapshot)

    def changed_files(self) -> list[ChangedFile]:
        """Return the last snapshot (empty before the first refresh)."""
        with self._lock:
            return list(self._snapshot)

    # =========================================================================
    # Staging
    # =========================================================================

    def stage_files(self, selection: Iterable[ChangedFile | str]) -> tuple[str, ...]:
        """Stage files, one backend call per file.

        Every file is attempted even when earlier ones fail, and files that
        were staged stay staged.

        Args:
            selection: Changed files or repository-relative paths.

        Returns:
            The staged paths, in selection order.

        Raises:
            StageFailedError: If the backend rejected any path, after all
                paths were attempted.
        """
        with self._lock:
            succeeded, failures = self._apply_per_path(
                self._repository.backend.stage, _paths_of(selection)
            )
            if failures:
                self._logger.warning(
                    "stage_failed", failures=failures, succeeded=list(succeeded)
                )
                msg = f"Failed to stage {len(failures)} path(s): " + ", ".join(
                    sorted(failures)
                )
                raise StageFailedError(msg, failures=failures, succeeded=succeeded)
            self._logger.info("files_staged", paths=list(succeeded))
            return succeeded

    def unstage_files(self, selection: Iterable[ChangedFile | str]) -> tuple[str, ...]:
        """Reset files in the index to HEAD, one backend call per file.

        Newly added files become untracked again. The working tree is left
        untouched.

        Args:
            selection: Changed files or repository-relative paths.

        Returns:
            The unstaged paths, in selection order.

        Raises:
            UnstageFailedError: If the backend rejected any path, after all
                paths were attempted.
        """
        with self._lock:
            succeeded, failures = self._apply_per_path(
                self._repository.backend.unstage, _paths_of(selection)
            )
            if failures:
                self._logger.warning(
                    "unstage_failed", failures=failures, succeeded=list(succeeded)
                )
                msg = f"Failed to unstage {len(failures)} path(s): " + ", ".join(
                    sorted(failures)
                )
                raise UnstageFailedError(msg, failures=failures, succeeded=succeeded)
            self._logger.info("files_unstaged", paths=list(succeeded))
            return succeeded

    @staticmethod
    def _apply_per_path(
        operation: Callable[[Sequence[str]], PathBatchResult], paths: list[str]
    ) -> tuple[tuple[str, ...], dict[str, str]]:
        succeeded: list[str] = []
        failures: dict[str, str] = {}
        for path in paths:
            result = operation([path])
            succeeded.extend(result.succeeded)
            failures.update(result.failed)
        return tuple(succeeded), failures

    # =========================================================================
    # Commit
    # =========================================================================

    def commit(self, message: str, *, author: "AuthorInfo | None" = None) -> Commit:  # noqa: UP037
        """Commit the staged changes.

        The backend judges emptiness against its current index, not against
        the last snapshot.

        Args:
            message: Commit message. Must contain non-whitespace text.
            author: Identity for author and committer. Defaults to the
                backend's identity resolution.

        Returns:
            The new commit. Its first parent is the previous HEAD.

        Raises:
            ValueError: If the message is empty.
            NothingToCommitError: If nothing is staged. HEAD is unchanged.
            CommitFailedError: If conflicts are unresolved or HEAD moved
                concurrently.
        """
        if not message.strip():
            msg = "Commit message must not be empty"
            raise ValueError(msg)

        with self._lock:
            try:
                sha = self._repository.backend.commit(message, author=author)
            except NothingToCommitError as e:
                self._logger.info("nothing_to_commit", head=e.head)
                raise
            except CommitFailedError as e:
                self._logger.warning(
                    "commit_failed", reason=e.reason.value, details=e.details
                )
                raise

            commit = Commit(self._repository, sha)
            self._logger.info(
                "commit_created",
                sha=commit.sha,
                parents=list(commit.parents),
                subject=commit.subject,
            )
            return commit
