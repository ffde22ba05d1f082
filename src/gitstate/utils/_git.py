"""Common git utility functions.

This module provides shared helper functions used by the backends,
including repository discovery, path normalization, and byte/string
conversion.
"""

import re
from datetime import datetime, timedelta, timezone
from pathlib import Path, PurePosixPath

from gitstate.exceptions import NotARepositoryError

_ANCESTRY_SUFFIX = re.compile(r"(?:\^|~(?P<count>\d*))$")


def decode_bytes(value: bytes | str) -> str:
    """Decode bytes to str if needed.

    Args:
        value: A bytes or str value.

    Returns:
        The value as a string.
    """
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value


def find_repo_root(working_dir: Path) -> Path:
    """Discover the repository root at or above a directory.

    Walks up the directory tree from working_dir until a .git directory
    or file is found. Git worktrees use a .git file pointing to the
    main repository, so both cases are handled.

    Args:
        working_dir: The directory to start discovery from.

    Returns:
        The resolved path to the repository root.

    Raises:
        NotARepositoryError: If no .git is found in working_dir or any
            of its ancestors.
    """
    current = working_dir.resolve()

    while True:
        if (current / ".git").exists():
            return current

        parent = current.parent
        if parent == current:
            msg = f"Not inside a Git repository: {working_dir}"
            raise NotARepositoryError(msg, path=working_dir)
        current = parent


def normalize_repo_path(path: str | Path, root: Path) -> str:
    """Convert a path to a repository-relative POSIX string.

    Absolute paths are made relative to root; relative paths are taken as
    already relative to root.

    Args:
        path: Absolute path or repository-relative path.
        root: Resolved repository root.

    Returns:
        Repository-relative path with forward slashes.

    Raises:
        ValueError: If the path is outside the repository or empty.
    """
    candidate = Path(path)
    if candidate.is_absolute():
        resolved = candidate.resolve()
        if not resolved.is_relative_to(root):
            msg = f"Path is outside repository: {path}"
            raise ValueError(msg)
        candidate = resolved.relative_to(root)

    relative = PurePosixPath(candidate.as_posix())
    if relative.is_absolute() or ".." in relative.parts or str(relative) in {"", "."}:
        msg = f"Not a repository-relative file path: {path}"
        raise ValueError(msg)
    return str(relative)


def split_ancestry(expr: str) -> tuple[str, int]:
    """Split trailing first-parent suffixes off a revision expression.

    "REF~N" walks N first parents, a bare "~" or "^" walks one, and the
    suffixes may repeat ("HEAD~2^^" walks four).

    Args:
        expr: Revision expression.

    Returns:
        The base expression and the number of first parents to walk.
    """
    generations = 0
    while True:
        match = _ANCESTRY_SUFFIX.search(expr)
        if match is None or match.start() == 0:
            return expr, generations
        count = match.group("count")
        generations += int(count) if count else 1
        expr = expr[: match.start()]


def parse_author_line(
    author: bytes, author_time: int, author_tz: int
) -> tuple[str, str, datetime]:
    """Parse author line into name, email, and datetime.

    Args:
        author: Author bytes in "Name <email>" format.
        author_time: Unix timestamp.
        author_tz: Timezone offset in seconds east of UTC, as dulwich parses it.

    Returns:
        Tuple of (name, email, datetime with correct timezone).
    """
    author_str = author.decode("utf-8", errors="replace")
    if "<" in author_str and author_str.endswith(">"):
        name_part = author_str.rsplit("<", 1)[0].strip()
        email_part = author_str.rsplit("<", 1)[1].rstrip(">")
    else:
        name_part = author_str
        email_part = ""

    tz = timezone(timedelta(seconds=author_tz))
    dt = datetime.fromtimestamp(author_time, tz=tz)

    return (name_part, email_part, dt)
