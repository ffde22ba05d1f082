"""Dulwich-backed version control backend.

This module provides the production backend. It reads and writes the
on-disk repository with dulwich, so no git executable is required.
"""

import stat
import time
from collections.abc import Iterator, Sequence
from contextlib import contextmanager
from pathlib import Path
from typing import Final, Self, cast

from dulwich import porcelain
from dulwich.errors import NotCommitError, NotGitRepository, NotTreeError
from dulwich.index import IndexEntry, commit_tree
from dulwich.object_store import tree_lookup_path
from dulwich.objects import Blob, Commit, S_ISGITLINK
from dulwich.objectspec import parse_commit
from dulwich.repo import Repo

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
    NotARepositoryError,
    NothingToCommitError,
    UnresolvedReferenceError,
)
from gitstate.utils._author import AuthorInfo, get_author_info
from gitstate.utils._git import (
    decode_bytes,
    normalize_repo_path,
    parse_author_line,
    split_ancestry,
)

# Git SHA length in hexadecimal characters
_SHA_HEX_LENGTH: Final = 40

# Minimum length for abbreviated SHA resolution
_MIN_SHA_ABBREV_LENGTH: Final = 4

_HEX_DIGITS: Final = frozenset("0123456789abcdef")

type _PathEntry = tuple[int, bytes]


@contextmanager
def _backend_call(operation: str) -> Iterator[None]:
    """Translate I/O failures of a backend operation.

    Args:
        operation: Name of the operation, recorded on the error.

    Raises:
        BackendUnavailableError: If the operation raised OSError.
    """
    try:
        yield
    except OSError as e:
        msg = f"Backend operation '{operation}' failed: {e}"
        raise BackendUnavailableError(msg, operation=operation, cause=e) from e


class DulwichBackend:
    """Version control backend for one on-disk repository.

    Implements VersionControlBackend on top of dulwich's Repo, porcelain
    and object store APIs.

    Attributes:
        root: The resolved path to the repository root.

    Example:
        >>> backend = DulwichBackend(Path("/path/to/repo"))
        >>> sha = backend.resolve_reference("HEAD")
        >>> backend.read_path_at(sha, "README.md")
    """

    __slots__: Final = ("_author", "_repo", "_root")
    _root: Path
    _repo: Repo
    _author: AuthorInfo | None

    def __init__(self, root: Path, *, author: AuthorInfo | None = None) -> None:
        """Open the repository at root.

        Args:
            root: The repository root (the directory containing .git).
            author: Identity used for commits when the caller passes none.
                Missing fields fall back to the repository's git config.

        Raises:
            NotARepositoryError: If root holds no git metadata.
            BackendUnavailableError: If the repository cannot be read.
        """
        self._root = root.resolve()
        self._author = author
        try:
            self._repo = Repo(str(self._root))
        except NotGitRepository as e:
            msg = f"Not a Git repository: {root}"
            raise NotARepositoryError(msg, path=root) from e
        except OSError as e:
            msg = f"Cannot open repository at {root}: {e}"
            raise BackendUnavailableError(msg, operation="open", cause=e) from e

    @classmethod
    def init(cls, root: Path, *, author: AuthorInfo | None = None) -> Self:
        """Initialize a repository at root if needed and open it.

        Initialization is idempotent: existing git metadata is left alone.

        Args:
            root: Directory for the repository. Created if missing.
            author: Default commit identity (see __init__).

        Returns:
            A backend bound to the repository.
        """
        with _backend_call("init"):
            root.mkdir(parents=True, exist_ok=True)
            if not (root / ".git").exists():
                Repo.init(str(root)).close()
        return cls(root, author=author)

    @property
    def root(self) -> Path:
        """Get the resolved root path of the repository."""
        return self._root

    def close(self) -> None:
        """Release file handles held by the dulwich Repo."""
        self._repo.close()

    # =========================================================================
    # References
    # =========================================================================

    def resolve_reference(self, expr: str) -> str:
        """Resolve a revision expression to a commit SHA.

        Ref names and "HEAD" are handled by dulwich's objectspec;
        abbreviated SHAs fall back to a prefix scan of the object store.
        Trailing "~N" and "^" suffixes then walk first parents.

        Args:
            expr: Revision expression.

        Returns:
            The full 40-character commit SHA.

        Raises:
            UnresolvedReferenceError: If the expression does not name a commit.
        """
        base, generations = split_ancestry(expr)
        if not base:
            msg = "Empty revision expression"
            raise UnresolvedReferenceError(msg, ref=expr)

        with _backend_call("resolve_reference"):
            try:
                sha = decode_bytes(parse_commit(self._repo, base.encode()).id)
            except (KeyError, ValueError, NotCommitError):
                sha = decode_bytes(self._resolve_abbreviated_sha(base))

            for _ in range(generations):
                parents = self._lookup_commit(sha).parents
                if not parents:
                    msg = f"Commit {sha} has no parent: {expr}"
                    raise UnresolvedReferenceError(msg, ref=expr)
                sha = decode_bytes(parents[0])
        return sha

    def _resolve_abbreviated_sha(self, sha: str) -> bytes:
        """Resolve abbreviated SHA to full SHA bytes.

        Args:
            sha: Commit SHA as hex string (4-40 characters).

        Returns:
            Full hex SHA as bytes.

        Raises:
            UnresolvedReferenceError: If SHA is not found, is ambiguous, is
                too short or is not hexadecimal.
        """
        sha_lower = sha.lower()
        if (
            len(sha_lower) < _MIN_SHA_ABBREV_LENGTH
            or len(sha_lower) > _SHA_HEX_LENGTH
            or not set(sha_lower) <= _HEX_DIGITS
        ):
            msg = f"Unknown revision: {sha}"
            raise UnresolvedReferenceError(msg, ref=sha)

        matches: list[bytes] = []
        for obj_sha in self._repo.object_store:
            if decode_bytes(obj_sha).startswith(sha_lower):
                try:
                    obj = self._repo[obj_sha]
                except KeyError:
                    continue
                if isinstance(obj, Commit):
                    matches.append(obj_sha)

        if not matches:
            msg = f"Commit not found: {sha}"
            raise UnresolvedReferenceError(msg, ref=sha)

        if len(matches) > 1:
            msg = f"Ambiguous SHA prefix: {sha} (matches {len(matches)} commits)"
            raise UnresolvedReferenceError(msg, ref=sha)

        return matches[0]

    def _head_sha(self) -> str | None:
        """Get current HEAD SHA.

        Returns:
            The HEAD commit SHA as a hex string, or None if no commits exist.
        """
        try:
            return decode_bytes(self._repo.head())
        except KeyError:
            return None

    def _lookup_commit(self, sha: str) -> Commit:
        """Fetch a commit object by SHA.

        Raises:
            UnresolvedReferenceError: If the SHA is unknown or not a commit.
        """
        try:
            obj = self._repo[sha.encode("ascii")]
        except (KeyError, ValueError, UnicodeEncodeError) as e:
            msg = f"Commit not found: {sha}"
            raise UnresolvedReferenceError(msg, ref=sha) from e
        if not isinstance(obj, Commit):
            msg = f"Not a commit: {sha}"
            raise UnresolvedReferenceError(msg, ref=sha)
        return obj

    # =========================================================================
    # Status
    # =========================================================================

    def list_changes(self) -> list[ChangeRecord]:
        """List working tree and index changes.

        Returns:
            Staged records first (added, deleted, modified), then unstaged
            edits, untracked files and conflicted paths.
        """
        with _backend_call("list_changes"):
            raw = porcelain.status(self._repo, untracked_files="all")
            conflicted = self._conflicted_paths()

        records: list[ChangeRecord] = []

        staged_dict = raw.staged  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        for change_type, kind in (
            ("add", ChangeKind.STAGED_ADDED),
            ("delete", ChangeKind.STAGED_DELETED),
            ("modify", ChangeKind.STAGED_MODIFIED),
        ):
            files: list[bytes] = staged_dict.get(change_type, [])  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
            records.extend(
                ChangeRecord(path=decode_bytes(f), kind=kind, staged=True)  # pyright: ignore[reportUnknownArgumentType]
                for f in files  # pyright: ignore[reportUnknownVariableType]
            )

        for f in raw.unstaged:  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
            path = decode_bytes(f)  # pyright: ignore[reportUnknownArgumentType]
            full_path = self._root / path
            kind = (
                ChangeKind.MODIFIED
                if full_path.exists() or full_path.is_symlink()
                else ChangeKind.DELETED
            )
            records.append(ChangeRecord(path=path, kind=kind, staged=False))

        records.extend(
            ChangeRecord(path=decode_bytes(f), kind=ChangeKind.UNTRACKED, staged=False)  # pyright: ignore[reportUnknownArgumentType]
            for f in raw.untracked  # pyright: ignore[reportUnknownMemberType,reportUnknownVariableType]
        )
        records.extend(
            ChangeRecord(path=path, kind=ChangeKind.CONFLICTED, staged=False)
            for path in conflicted
        )
        return records

    def _conflicted_paths(self) -> list[str]:
        """List index paths that carry merge conflict stages."""
        index = self._repo.open_index()
        return [
            decode_bytes(path)
            for path, entry in index.items()
            # Conflicted entries have no single sha/mode
            if not isinstance(entry, IndexEntry)
        ]

    # =========================================================================
    # Staging
    # =========================================================================

    def stage(self, paths: Sequence[str]) -> PathBatchResult:
        """Stage paths into the index.

        Existing files are added with porcelain.add. Tracked files missing
        from the working tree are removed from the index, recording the
        deletion.

        Args:
            paths: Repository-relative paths.

        Returns:
            Per-path outcome.
        """
        succeeded: list[str] = []
        failed: dict[str, str] = {}

        for path in paths:
            try:
                relative_path = normalize_repo_path(path, self._root)
            except ValueError as e:
                failed[path] = str(e)
                continue

            full_path = self._root / relative_path
            with _backend_call("stage"):
                if full_path.exists() or full_path.is_symlink():
                    _, ignored = porcelain.add(self._repo, paths=[str(full_path)])
                    if ignored:
                        failed[path] = "path is ignored"
                        continue
                elif not self._remove_from_index(relative_path):
                    failed[path] = "path does not exist in working tree or index"
                    continue
            succeeded.append(path)

        return PathBatchResult(succeeded=tuple(succeeded), failed=failed)

    def _remove_from_index(self, relative_path: str) -> bool:
        """Remove a path from the index.

        Returns:
            True if the path was tracked and has been removed.
        """
        index = self._repo.open_index()
        path_bytes = relative_path.encode("utf-8")
        if path_bytes not in index:
            return False
        del index[path_bytes]
        index.write()
        return True

    def unstage(self, paths: Sequence[str]) -> PathBatchResult:
        """Reset index entries for paths back to HEAD.

        For files in the HEAD tree the index entry is rebuilt from the tree;
        files absent from HEAD are removed from the index (unstaging a newly
        added file). Working tree files are never touched.

        Args:
            paths: Repository-relative paths.

        Returns:
            Per-path outcome.
        """
        succeeded: list[str] = []
        failed: dict[str, str] = {}

        with _backend_call("unstage"):
            head_sha = self._head_sha()
            tree_sha = self._lookup_commit(head_sha).tree if head_sha else None

        for path in paths:
            try:
                relative_path = normalize_repo_path(path, self._root)
            except ValueError as e:
                failed[path] = str(e)
                continue

            with _backend_call("unstage"):
                if self._reset_index_entry(tree_sha, relative_path):
                    succeeded.append(path)
                else:
                    failed[path] = "path is not staged"

        return PathBatchResult(succeeded=tuple(succeeded), failed=failed)

    def _reset_index_entry(self, tree_sha: bytes | None, relative_path: str) -> bool:
        """Update the index entry of one path from a tree.

        Args:
            tree_sha: The HEAD tree SHA, or None for an unborn branch.
            relative_path: Repository-relative path.

        Returns:
            False if the path is neither in the tree nor in the index.
        """
        index = self._repo.open_index()
        path_bytes = relative_path.encode("utf-8")

        entry = self._tree_entry(tree_sha, relative_path) if tree_sha else None
        if entry is None:
            # Not in HEAD: drop the entry so the file is untracked again
            if path_bytes not in index:
                return False
            del index[path_bytes]
            index.write()
            return True

        mode, blob_sha = entry
        blob = self._repo[blob_sha]
        blob_data: bytes = getattr(blob, "data", b"")
        target_file = self._root / relative_path
        try:
            stat_info = target_file.lstat()
        except FileNotFoundError:
            stat_info = None

        # ctime/mtime are tuples of (seconds, nanoseconds)
        index[path_bytes] = IndexEntry(
            ctime=(
                (int(stat_info.st_ctime), stat_info.st_ctime_ns % 1_000_000_000)
                if stat_info
                else (0, 0)
            ),
            mtime=(
                (int(stat_info.st_mtime), stat_info.st_mtime_ns % 1_000_000_000)
                if stat_info
                else (0, 0)
            ),
            dev=stat_info.st_dev if stat_info else 0,
            ino=stat_info.st_ino if stat_info else 0,
            mode=mode,
            uid=stat_info.st_uid if stat_info else 0,
            gid=stat_info.st_gid if stat_info else 0,
            size=len(blob_data),
            sha=blob_sha,
            flags=0,
        )
        index.write()
        return True

    # =========================================================================
    # Commit
    # =========================================================================

    def commit(self, message: str, *, author: AuthorInfo | None = None) -> str:
        """Commit the current index and advance HEAD.

        The commit object is written with the HEAD read at the start as its
        parent, then HEAD is advanced with a compare-and-swap against that
        same value. A lost race leaves HEAD where the winner put it and the
        new commit unreferenced.

        Args:
            message: Full commit message.
            author: Identity for author and committer.

        Returns:
            The new commit SHA.

        Raises:
            CommitFailedError: If the index has conflicts or HEAD moved.
            NothingToCommitError: If the index matches HEAD.
        """
        with _backend_call("commit"):
            conflicted = self._conflicted_paths()
            if conflicted:
                msg = f"Cannot commit with {len(conflicted)} unresolved conflict(s)"
                raise CommitFailedError(
                    msg,
                    reason=CommitFailureReason.UNRESOLVED_CONFLICTS,
                    details=", ".join(sorted(conflicted)),
                )

            head_before = self._head_sha()
            tree_id = self._staged_tree(head_before)
            if tree_id is None:
                msg = "Nothing to commit: the index matches HEAD"
                raise NothingToCommitError(msg, head=head_before)

            identity = (
                author
                if author is not None
                else get_author_info(
                    self._repo.get_config_stack(), fallback=self._author
                )
            ).identity()

            commit = Commit()
            commit.tree = tree_id
            commit.parents = [head_before.encode("ascii")] if head_before else []
            commit.author = commit.committer = identity
            commit.author_time = commit.commit_time = int(time.time())
            commit.author_timezone = commit.commit_timezone = (
                time.localtime().tm_gmtoff
            )
            commit.encoding = b"UTF-8"
            commit.message = message.encode()
            self._repo.object_store.add_object(commit)

            reflog_message = b"commit: " + message.encode().split(b"\n", 1)[0]
            if head_before is None:
                advanced = self._repo.refs.add_if_new(
                    b"HEAD", commit.id, message=reflog_message
                )
            else:
                advanced = self._repo.refs.set_if_equals(
                    b"HEAD",
                    head_before.encode("ascii"),
                    commit.id,
                    message=reflog_message,
                )

        commit_sha = decode_bytes(commit.id)
        if not advanced:
            msg = (
                f"Concurrent modification detected: HEAD moved from "
                f"{head_before or 'an unborn branch'} during commit"
            )
            raise CommitFailedError(
                msg,
                reason=CommitFailureReason.CONCURRENT_UPDATE,
                details=f"Unreferenced commit SHA: {commit_sha}",
            )
        return commit_sha

    def _staged_tree(self, head_sha: str | None) -> bytes | None:
        """Write the index as a tree.

        Returns:
            The tree SHA, or None when the index matches the HEAD tree.
        """
        index = self._repo.open_index()
        blobs: list[tuple[bytes, bytes, int]] = [
            (path, entry.sha, entry.mode)
            for path, entry in index.items()
            if isinstance(entry, IndexEntry)
        ]
        if head_sha is None and not blobs:
            return None
        index_tree = commit_tree(self._repo.object_store, blobs)
        if head_sha is not None and index_tree == self._lookup_commit(head_sha).tree:
            return None
        return index_tree

    # =========================================================================
    # History and Content
    # =========================================================================

    def read_commit_metadata(self, sha: str) -> CommitMetadata:
        """Read metadata of one commit.

        Args:
            sha: Full commit SHA.

        Returns:
            The commit metadata.
        """
        with _backend_call("read_commit_metadata"):
            commit = self._lookup_commit(sha)

        # Explicit casts, dulwich stubs are incomplete
        author_name, author_email, timestamp = parse_author_line(
            cast("bytes", commit.author),
            cast("int", commit.author_time),
            cast("int", commit.author_timezone),
        )
        return CommitMetadata(
            sha=decode_bytes(commit.id),
            author_name=author_name,
            author_email=author_email,
            timestamp=timestamp,
            message=cast("bytes", commit.message).decode("utf-8", errors="replace"),
            parents=tuple(decode_bytes(p) for p in commit.parents),
        )

    def read_path_at(self, sha: str, path: str) -> bytes | None:
        """Read file content at a commit.

        Args:
            sha: Full commit SHA.
            path: Repository-relative path.

        Returns:
            The blob bytes, or None if no file exists at the path.
        """
        with _backend_call("read_path_at"):
            entry = self._path_entry(sha, path)
            if entry is None:
                return None
            blob = self._repo[entry[1]]
        if not isinstance(blob, Blob):
            return None
        return blob.data

    def diff_path_across_parents(
        self, sha: str, parents: Sequence[str], path: str
    ) -> bool:
        """Check whether a commit changed a path relative to all parents.

        Compares (mode, blob SHA) of the path at the commit with each parent.

        Args:
            sha: Full commit SHA.
            parents: Parent SHAs of the commit.
            path: Repository-relative path.

        Returns:
            True if the path differs from every parent.
        """
        with _backend_call("diff_path_across_parents"):
            entry = self._path_entry(sha, path)
            if not parents:
                return entry is not None
            return all(self._path_entry(parent, path) != entry for parent in parents)

    def _path_entry(self, sha: str, path: str) -> _PathEntry | None:
        """Look up the file entry of a path at a commit."""
        return self._tree_entry(self._lookup_commit(sha).tree, path)

    def _tree_entry(self, tree_sha: bytes, path: str) -> _PathEntry | None:
        """Look up the file entry of a path inside a tree.

        Args:
            tree_sha: Root tree SHA.
            path: Repository-relative path.

        Returns:
            (mode, blob SHA), or None for missing paths, directories and
            submodules.
        """
        try:
            mode, blob_sha = tree_lookup_path(
                self._repo.__getitem__, tree_sha, path.encode("utf-8")
            )
        except (KeyError, NotTreeError):
            return None
        if stat.S_ISDIR(mode) or S_ISGITLINK(mode):
            return None
        return (mode, blob_sha)
