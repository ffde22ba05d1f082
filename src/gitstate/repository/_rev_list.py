"""Commit history traversal.

This module provides HistoryWalker, which lists the commits reachable from a
revision in topological order, optionally restricted to commits that changed
one path.
"""

import threading
from dataclasses import dataclass
from typing import TYPE_CHECKING, Final, Protocol, runtime_checkable

from gitstate.exceptions import UnresolvedReferenceError
from gitstate.repository._commit import Commit
from gitstate.utils._git import normalize_repo_path

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

    from gitstate.backend._models import CommitMetadata
    from gitstate.repository._repository import Repository

RANGE_SEPARATOR: Final = ".."


@runtime_checkable
class CancelToken(Protocol):
    """Anything that reports cancellation, such as threading.Event."""

    def is_set(self) -> bool: ...


@dataclass(frozen=True, slots=True)
class RevSpecifier:
    """What a history walk starts from and what it keeps.

    Attributes:
        ref: A revision expression, or a range "A..B" meaning commits
            reachable from B but not from A. An empty side means HEAD.
        path: Only keep commits that changed this path.

    Example:
        >>> RevSpecifier("v1.0..main", path="src/app.py").split_range()
        ('v1.0', 'main')
    """

    ref: str = "HEAD"
    path: str | None = None

    def split_range(self) -> tuple[str | None, str]:
        """Split the ref into (excluded, included) expressions.

        Returns:
            The excluded side (None when ref is not a range) and the
            included side.
        """
        if RANGE_SEPARATOR not in self.ref:
            return None, self.ref or "HEAD"
        excluded, _, included = self.ref.partition(RANGE_SEPARATOR)
        return excluded or "HEAD", included or "HEAD"


class HistoryWalker:
    """Topologically ordered history of a repository.

    A walk runs in two phases over an explicit stack. The first collects
    every commit reachable from the start and counts its children within
    the walk. The second emits a commit only after all of its children,
    following parents in the order the backend reports them, so the first
    parent's line of history comes first. The result is materialized
    before walk() returns and is identical for identical inputs.

    Example:
        >>> walker = repository.history()
        >>> commits = walker.walk(RevSpecifier(path="README.md"), limit=10)
        >>> [c.subject for c in commits]
        ['Update README', 'Add README']
    """

    __slots__: Final = ("_commits", "_complete", "_lock", "_logger", "_repository")
    _repository: "Repository"
    _commits: list[Commit]
    _complete: bool
    _lock: threading.Lock
    _logger: "FilteringBoundLogger"  # noqa: UP037

    def __init__(
        self,
        repository: "Repository",
        *,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> None:
        """Initialize an empty walker.

        Args:
            repository: The repository to walk.
            logger: Logger for walk events. Defaults to the repository's.
        """
        self._repository = repository
        self._commits = []
        self._complete = True
        self._lock = threading.Lock()
        self._logger = logger if logger is not None else repository.logger

    @property
    def commits(self) -> list[Commit]:
        """Result of the last walk (empty before the first walk)."""
        with self._lock:
            return list(self._commits)

    def get_commits(self) -> list[Commit]:
        """Return the result of the last walk."""
        return self.commits

    @property
    def complete(self) -> bool:
        """False when the last walk was cancelled before finishing."""
        with self._lock:
            return self._complete

    def walk(
        self,
        spec: RevSpecifier | None = None,
        limit: int = -1,
        *,
        cancel: CancelToken | None = None,
    ) -> list[Commit]:
        """Walk the history described by spec.

        Args:
            spec: Start revision, optional range and optional path filter.
                Defaults to the whole history of HEAD.
            limit: Maximum number of commits to return. Negative means
                unbounded.
            cancel: Checked before each commit is visited. Once set, the
                walk stops and returns what it has emitted so far.

        Returns:
            Commits in topological order, newest first.

        Raises:
            UnresolvedReferenceError: If a revision other than HEAD of an
                empty repository cannot be resolved.
            ValueError: If the path filter is outside the repository.
        """
        spec = spec if spec is not None else RevSpecifier()
        path = (
            normalize_repo_path(spec.path, self._repository.root)
            if spec.path is not None
            else None
        )
        excluded_ref, included_ref = spec.split_range()

        start = self._resolve_start(included_ref)
        excluded = (
            self._reachable(self._resolve_start(excluded_ref))
            if excluded_ref is not None
            else set[str]()
        )

        commits, complete = self._traverse(start, excluded, path, limit, cancel)

        with self._lock:
            self._commits = commits
            self._complete = complete

        self._logger.debug(
            "history_walked",
            ref=spec.ref,
            path=path,
            limit=limit,
            count=len(commits),
            complete=complete,
        )
        if not complete:
            self._logger.info("history_walk_cancelled", ref=spec.ref, count=len(commits))
        return list(commits)

    def _resolve_start(self, expr: str) -> str | None:
        """Resolve a walk endpoint; HEAD of an empty repository is None."""
        try:
            return self._repository.backend.resolve_reference(expr)
        except UnresolvedReferenceError:
            if expr == "HEAD":
                return None
            raise

    def _reachable(self, start: str | None) -> set[str]:
        """Collect every commit reachable from start, start included."""
        seen: set[str] = set()
        stack = [start] if start is not None else []
        backend = self._repository.backend
        while stack:
            sha = stack.pop()
            if sha in seen:
                continue
            seen.add(sha)
            stack.extend(backend.read_commit_metadata(sha).parents)
        return seen

    def _traverse(
        self,
        start: str | None,
        excluded: set[str],
        path: str | None,
        limit: int,
        cancel: CancelToken | None,
    ) -> tuple[list[Commit], bool]:
        """Run both walk phases.

        Returns:
            The emitted commits and whether the walk ran to completion.
        """
        if start is None or start in excluded or limit == 0:
            return [], True

        backend = self._repository.backend

        # Phase 1: collect metadata and in-walk child counts
        metadata: dict[str, CommitMetadata] = {}
        children: dict[str, int] = {}
        stack = [start]
        while stack:
            if cancel is not None and cancel.is_set():
                return [], False
            sha = stack.pop()
            if sha in metadata:
                continue
            info = backend.read_commit_metadata(sha)
            metadata[sha] = info
            for parent in info.parents:
                if parent in excluded:
                    continue
                children[parent] = children.get(parent, 0) + 1
                if parent not in metadata:
                    stack.append(parent)

        # Phase 2: emit each commit once all of its children are emitted
        emitted: list[Commit] = []
        ready = [start]
        while ready:
            if cancel is not None and cancel.is_set():
                return emitted, False
            sha = ready.pop()
            info = metadata[sha]
            if path is None or backend.diff_path_across_parents(sha, info.parents, path):
                emitted.append(Commit.from_metadata(self._repository, info))
                if len(emitted) == limit:
                    break
            # Reversed so the first parent is popped next
            for parent in reversed(info.parents):
                if parent in excluded:
                    continue
                children[parent] -= 1
                if children[parent] == 0:
                    ready.append(parent)

        return emitted, True
