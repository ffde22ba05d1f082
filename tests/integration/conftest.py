from collections.abc import Callable, Iterator, Mapping, Sequence
from pathlib import Path
from unittest.mock import MagicMock

import pytest
from dulwich.index import commit_tree
from dulwich.objects import Blob, Commit
from dulwich.repo import Repo
from rich.console import Console

from gitstate.cli import create_app
from gitstate.config import Config
from gitstate.repository import Repository


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if Path(item.path).is_relative_to(Path(__file__).parent):
            item.add_marker(pytest.mark.integration)


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    return (tmp_path / "project").resolve()


@pytest.fixture
def repository(project_root: Path, logger: MagicMock) -> Iterator[Repository]:
    """A freshly initialized on-disk repository."""
    repo = Repository.create(project_root, config=Config(), logger=logger)
    yield repo
    repo.close()


@pytest.fixture
def write_file(project_root: Path) -> Callable[[str, str | bytes], Path]:
    def _write(relative: str, content: str | bytes) -> Path:
        path = project_root / relative
        path.parent.mkdir(parents=True, exist_ok=True)
        if isinstance(content, bytes):
            _ = path.write_bytes(content)
        else:
            _ = path.write_text(content)
        return path

    return _write


@pytest.fixture
def raw_commit(project_root: Path) -> Callable[..., str]:
    """Write a commit object directly, for shapes porcelain cannot build.

    Returns a callable taking a full file snapshot, parent SHAs and a
    message. With move_head the current branch is pointed at the result.
    """

    def _commit(
        files: Mapping[str, bytes],
        parents: Sequence[str],
        message: str,
        *,
        move_head: bool = True,
    ) -> str:
        with Repo(str(project_root)) as repo:
            entries: list[tuple[bytes, bytes, int]] = []
            for path, content in sorted(files.items()):
                blob = Blob.from_string(content)
                repo.object_store.add_object(blob)
                entries.append((path.encode(), blob.id, 0o100644))
            commit = Commit()
            commit.tree = commit_tree(repo.object_store, entries)
            commit.parents = [p.encode("ascii") for p in parents]
            commit.author = commit.committer = b"Raw <raw@example.com>"
            commit.author_time = commit.commit_time = 1_700_000_000 + len(
                list(repo.object_store)
            )
            commit.author_timezone = commit.commit_timezone = 0
            commit.encoding = b"UTF-8"
            commit.message = message.encode()
            repo.object_store.add_object(commit)
            if move_head:
                repo.refs[b"HEAD"] = commit.id
            return commit.id.decode("ascii")

    return _commit


@pytest.fixture
def cli_with_exit_code(
    console: Console, monkeypatch: pytest.MonkeyPatch
) -> Callable[..., int]:
    """Run the CLI through its meta app and return the exit code."""
    monkeypatch.setenv("COLUMNS", "400")
    app = create_app(console=console, error_console=console)

    def _run(*args: str) -> int:
        try:
            app.meta(list(args))
        except SystemExit as e:
            if e.code is None:
                return 0
            return e.code if isinstance(e.code, int) else 1
        else:
            return 0

    return _run
