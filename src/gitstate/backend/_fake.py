# ruff: noqa: TC003  # Path and datetime needed at runtime for dataclass fields
"""Fake backend for testing.

This module provides a FakeBackend class that implements VersionControlBackend
in memory, for tests that exercise the state engine without an on-disk
repository.
"""

import hashlib
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from pathlib import Path

from gitstate.backend._models import (
    ChangeKind,
    ChangeRecord,
    CommitMetadata,
    PathBatchResult,
)
from gitstate.exceptions import (
    BackendUnavailableError,
    CommitFailedError,
    CommitFailureReason,
    NothingToCommitError,
    UnresolvedReferenceError,
)
from gitstate.utils._author import DEFAULT_AUTHOR_EMAIL, DEFAULT_AUTHOR_NAME, AuthorInfo
from gitstate.utils._git import split_ancestry

type FileTree = dict[str, bytes]

_EPOCH = datetime(2024, 1, 1, tzinfo=UTC)


@dataclass(frozen=True, slots=True)
class FakeCommit:
    """A commit stored by FakeBackend.

    Attributes:
        metadata: The commit metadata.
        tree: Full snapshot of files at this commit, path to content.
    """

    metadata: CommitMetadata
    tree: Mapping[str, bytes]


@dataclass(slots=True)
class FakeBackend:
    """In-memory version control backend for testing.

    Implements VersionControlBackend without touching the filesystem. The
    fake keeps plain dictionaries for the working tree, the index and the
    commit store that tests can inspect or manipulate directly:

    - working_tree and index map repository-relative paths to content
    - commits maps SHAs to FakeCommit snapshots
    - refs maps extra ref names (branches, tags) to SHAs
    - conflicts, ignored and rejections shape how paths behave

    Example:
        >>> backend = FakeBackend()
        >>> first = backend.add_commit("Initial", {"a.txt": "one"})
        >>> backend.write_file("a.txt", "two")
        >>> backend.stage(["a.txt"]).ok
        True
        >>> second = backend.commit("Update a")
        >>> backend.read_commit_metadata(second).parents == (first,)
        True
    """

    root: Path = field(default_factory=lambda: Path("/fake/project"))
    working_tree: FileTree = field(default_factory=dict)
    index: FileTree = field(default_factory=dict)
    commits: dict[str, FakeCommit] = field(default_factory=dict)
    refs: dict[str, str] = field(default_factory=dict)
    head: str | None = None
    conflicts: set[str] = field(default_factory=set)
    ignored: set[str] = field(default_factory=set)
    rejections: dict[str, str] = field(default_factory=dict)
    extra_changes: list[ChangeRecord] = field(default_factory=list)
    author: AuthorInfo | None = None
    unavailable: bool = False
    closed: bool = False
    before_commit: Callable[["FakeBackend"], None] | None = None
    stage_calls: list[tuple[str, ...]] = field(default_factory=list)
    unstage_calls: list[tuple[str, ...]] = field(default_factory=list)
    metadata_reads: list[str] = field(default_factory=list)
    content_reads: list[tuple[str, str]] = field(default_factory=list)
    _commit_counter: int = field(default=0)

    # =========================================================================
    # Test Setup Helpers
    # =========================================================================

    def write_file(self, path: str, content: bytes | str) -> None:
        """Create or overwrite a working tree file."""
        self.working_tree[path] = _to_bytes(content)

    def delete_file(self, path: str) -> None:
        """Remove a working tree file, if present."""
        _ = self.working_tree.pop(path, None)

    def add_commit(
        self,
        message: str,
        files: Mapping[str, bytes | str | None] | None = None,
        *,
        parents: Sequence[str] | None = None,
        author: AuthorInfo | None = None,
        timestamp: datetime | None = None,
        move_head: bool = True,
    ) -> str:
        """Record a commit directly, bypassing the index.

        The new tree starts from the first parent's tree and applies files,
        where a None value deletes the path. With move_head (the default),
        HEAD, the index and the working tree are reset to the new tree, as
        after a checkout.

        Args:
            message: Full commit message.
            files: Changes relative to the first parent.
            parents: Parent SHAs. Defaults to the current HEAD (or none).
                Pass two or more to build a merge.
            author: Author identity. Defaults to the fake's author.
            timestamp: Author timestamp. Defaults to a monotonic clock.
            move_head: Whether HEAD follows the new commit.

        Returns:
            The new commit SHA.
        """
        if parents is None:
            parents = (self.head,) if self.head else ()
        for parent in parents:
            _ = self._lookup(parent)

        tree: FileTree = dict(self.commits[parents[0]].tree) if parents else {}
        for path, content in (files or {}).items():
            if content is None:
                _ = tree.pop(path, None)
            else:
                tree[path] = _to_bytes(content)

        sha = self._store_commit(message, tree, tuple(parents), author, timestamp)
        if move_head:
            self.head = sha
            self.index = dict(tree)
            self.working_tree = dict(tree)
        return sha

    def set_ref(self, name: str, sha: str) -> None:
        """Point a named ref at a commit."""
        self.refs[name] = self._lookup(sha).metadata.sha

    def set_conflict(self, path: str, content: bytes | str = b"<<<<<<<\n") -> None:
        """Mark a path as carrying unresolved merge conflicts."""
        self.conflicts.add(path)
        self.working_tree[path] = _to_bytes(content)

    # =========================================================================
    # VersionControlBackend Methods
    # =========================================================================

    def close(self) -> None:
        """Mark the backend closed (nothing to release)."""
        self.closed = True

    def resolve_reference(self, expr: str) -> str:
        """Resolve HEAD, ref names, full or abbreviated SHAs.

        A trailing "~N" or "^" walks first parents, as in git.

        Raises:
            UnresolvedReferenceError: If the expression names no commit.
        """
        self._check_available("resolve_reference")
        base, generations = split_ancestry(expr)

        if base == "HEAD":
            if self.head is None:
                msg = "HEAD does not point to a commit"
                raise UnresolvedReferenceError(msg, ref=expr)
            sha = self.head
        elif base in self.refs:
            sha = self.refs[base]
        elif base in self.commits:
            sha = base
        else:
            sha = self._resolve_prefix(base, expr)

        for _ in range(generations):
            parents = self.commits[sha].metadata.parents
            if not parents:
                msg = f"Commit {sha} has no parent: {expr}"
                raise UnresolvedReferenceError(msg, ref=expr)
            sha = parents[0]
        return sha

    def list_changes(self) -> list[ChangeRecord]:
        """List staged changes, then unstaged, untracked and conflicted paths."""
        self._check_available("list_changes")
        head_tree = self._head_tree()
        records: list[ChangeRecord] = []

        for path in sorted(self.index.keys() | head_tree.keys()):
            if path in self.conflicts:
                continue
            if path not in head_tree:
                kind = ChangeKind.STAGED_ADDED
            elif path not in self.index:
                kind = ChangeKind.STAGED_DELETED
            elif self.index[path] != head_tree[path]:
                kind = ChangeKind.STAGED_MODIFIED
            else:
                continue
            records.append(ChangeRecord(path=path, kind=kind, staged=True))

        for path in sorted(self.index):
            if path in self.conflicts:
                continue
            if path not in self.working_tree:
                records.append(
                    ChangeRecord(path=path, kind=ChangeKind.DELETED, staged=False)
                )
            elif self.working_tree[path] != self.index[path]:
                records.append(
                    ChangeRecord(path=path, kind=ChangeKind.MODIFIED, staged=False)
                )

        records.extend(
            ChangeRecord(path=path, kind=ChangeKind.UNTRACKED, staged=False)
            for path in sorted(self.working_tree)
            if path not in self.index
            and path not in self.ignored
            and path not in self.conflicts
        )
        records.extend(
            ChangeRecord(path=path, kind=ChangeKind.CONFLICTED, staged=False)
            for path in sorted(self.conflicts)
        )
        records.extend(self.extra_changes)
        return records

    def stage(self, paths: Sequence[str]) -> PathBatchResult:
        """Copy working tree content into the index, or record deletions.

        Staging a conflicted path marks the conflict resolved.
        """
        self._check_available("stage")
        self.stage_calls.append(tuple(paths))
        succeeded: list[str] = []
        failed: dict[str, str] = {}

        for path in paths:
            if path in self.rejections:
                failed[path] = self.rejections[path]
            elif path in self.ignored:
                failed[path] = "path is ignored"
            elif path in self.working_tree:
                self.index[path] = self.working_tree[path]
                self.conflicts.discard(path)
                succeeded.append(path)
            elif path in self.index:
                del self.index[path]
                succeeded.append(path)
            else:
                failed[path] = "path does not exist in working tree or index"

        return PathBatchResult(succeeded=tuple(succeeded), failed=failed)

    def unstage(self, paths: Sequence[str]) -> PathBatchResult:
        """Reset index entries to HEAD; paths absent from HEAD leave the index."""
        self._check_available("unstage")
        self.unstage_calls.append(tuple(paths))
        head_tree = self._head_tree()
        succeeded: list[str] = []
        failed: dict[str, str] = {}

        for path in paths:
            if path in self.rejections:
                failed[path] = self.rejections[path]
            elif path in head_tree:
                self.index[path] = head_tree[path]
                succeeded.append(path)
            elif path in self.index:
                del self.index[path]
                succeeded.append(path)
            else:
                failed[path] = "path is not staged"

        return PathBatchResult(succeeded=tuple(succeeded), failed=failed)

    def commit(self, message: str, *, author: AuthorInfo | None = None) -> str:
        """Commit the index.

        The before_commit hook runs after validation and before HEAD is
        compared and swapped, so tests can move HEAD to simulate a
        concurrent writer.

        Raises:
            CommitFailedError: On conflicts or when HEAD moved.
            NothingToCommitError: If the index matches HEAD.
        """
        self._check_available("commit")
        if self.conflicts:
            msg = f"Cannot commit with {len(self.conflicts)} unresolved conflict(s)"
            raise CommitFailedError(
                msg,
                reason=CommitFailureReason.UNRESOLVED_CONFLICTS,
                details=", ".join(sorted(self.conflicts)),
            )

        head_before = self.head
        if self.index == self._head_tree():
            msg = "Nothing to commit: the index matches HEAD"
            raise NothingToCommitError(msg, head=head_before)

        if self.before_commit is not None:
            self.before_commit(self)

        if self.head != head_before:
            msg = (
                f"HEAD changed during commit: expected {head_before}, "
                f"found {self.head}"
            )
            raise CommitFailedError(msg, reason=CommitFailureReason.CONCURRENT_UPDATE)

        parents = (head_before,) if head_before else ()
        sha = self._store_commit(message, dict(self.index), parents, author, None)
        self.head = sha
        return sha

    def read_commit_metadata(self, sha: str) -> CommitMetadata:
        """Return the stored metadata of a commit."""
        self._check_available("read_commit_metadata")
        self.metadata_reads.append(sha)
        return self._lookup(sha).metadata

    def read_path_at(self, sha: str, path: str) -> bytes | None:
        """Return the content of a path at a commit, or None."""
        self._check_available("read_path_at")
        self.content_reads.append((sha, path))
        return self._lookup(sha).tree.get(path)

    def diff_path_across_parents(
        self, sha: str, parents: Sequence[str], path: str
    ) -> bool:
        """Check whether a path differs from every parent."""
        self._check_available("diff_path_across_parents")
        content = self._lookup(sha).tree.get(path)
        if not parents:
            return content is not None
        return all(self._lookup(p).tree.get(path) != content for p in parents)

    # =========================================================================
    # Internals
    # =========================================================================

    def _check_available(self, operation: str) -> None:
        if self.unavailable:
            msg = f"Backend operation '{operation}' failed: backend unavailable"
            raise BackendUnavailableError(msg, operation=operation)

    def _lookup(self, sha: str) -> FakeCommit:
        try:
            return self.commits[sha]
        except KeyError as e:
            msg = f"Commit not found: {sha}"
            raise UnresolvedReferenceError(msg, ref=sha) from e

    def _head_tree(self) -> Mapping[str, bytes]:
        return self.commits[self.head].tree if self.head else {}

    def _resolve_prefix(self, prefix: str, expr: str) -> str:
        matches = [sha for sha in self.commits if sha.startswith(prefix.lower())]
        if len(prefix) < 4 or not matches:  # noqa: PLR2004
            msg = f"Unknown revision: {expr}"
            raise UnresolvedReferenceError(msg, ref=expr)
        if len(matches) > 1:
            msg = f"Ambiguous SHA prefix: {prefix} (matches {len(matches)} commits)"
            raise UnresolvedReferenceError(msg, ref=expr)
        return matches[0]

    def _store_commit(
        self,
        message: str,
        tree: FileTree,
        parents: tuple[str, ...],
        author: AuthorInfo | None,
        timestamp: datetime | None,
    ) -> str:
        self._commit_counter += 1
        identity = author or self.author
        digest = hashlib.sha1(  # noqa: S324
            f"{self._commit_counter}\0{message}\0{' '.join(parents)}".encode()
        )
        sha = digest.hexdigest()
        self.commits[sha] = FakeCommit(
            metadata=CommitMetadata(
                sha=sha,
                author_name=(identity.name if identity else None)
                or DEFAULT_AUTHOR_NAME,
                author_email=(identity.email if identity else None)
                or DEFAULT_AUTHOR_EMAIL,
                timestamp=timestamp
                or _EPOCH + timedelta(minutes=self._commit_counter),
                message=message,
                parents=parents,
            ),
            tree=tree,
        )
        return sha


def _to_bytes(content: bytes | str) -> bytes:
    return content.encode() if isinstance(content, str) else content
