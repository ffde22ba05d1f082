from datetime import UTC, datetime

import pytest

from gitstate.backend import FakeBackend
from gitstate.exceptions import UnresolvedReferenceError
from gitstate.repository import SHORT_SHA_LENGTH, Commit, Repository
from gitstate.utils import AuthorInfo


class TestConstruction:
    def test_resolves_head(self, fake_repo: Repository, fake_backend: FakeBackend) -> None:
        sha = fake_backend.add_commit(
            "Add README\n\nWith a body",
            {"README.md": "# Demo\n"},
            author=AuthorInfo("Ada", "ada@example.com"),
            timestamp=datetime(2024, 3, 1, 12, 30, tzinfo=UTC),
        )

        commit = Commit(fake_repo)

        assert commit.sha == sha
        assert commit.short_sha == sha[:SHORT_SHA_LENGTH]
        assert commit.author == "Ada"
        assert commit.author_email == "ada@example.com"
        assert commit.timestamp == datetime(2024, 3, 1, 12, 30, tzinfo=UTC)
        assert commit.subject == "Add README"
        assert commit.comment == "Add README\n\nWith a body"
        assert commit.repository is fake_repo

    def test_resolves_abbreviated_sha(
        self, fake_repo: Repository, fake_backend: FakeBackend
    ) -> None:
        sha = fake_backend.add_commit("one", {"a.txt": "1"})

        assert Commit(fake_repo, sha[:8]).sha == sha

    def test_unknown_revision(self, fake_repo: Repository, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})

        with pytest.raises(UnresolvedReferenceError):
            _ = Commit(fake_repo, "no-such-branch")

    def test_head_of_empty_repository(self, fake_repo: Repository) -> None:
        with pytest.raises(UnresolvedReferenceError):
            _ = Commit(fake_repo)

    def test_reads_metadata_once(
        self, fake_repo: Repository, fake_backend: FakeBackend
    ) -> None:
        sha = fake_backend.add_commit("one", {"a.txt": "1"})

        commit = Commit(fake_repo, sha)
        _ = (commit.author, commit.subject, commit.timestamp, commit.parents)

        assert fake_backend.metadata_reads == [sha]

    def test_from_metadata_reads_nothing(
        self, fake_repo: Repository, fake_backend: FakeBackend
    ) -> None:
        sha = fake_backend.add_commit("one", {"a.txt": "1"})
        metadata = fake_backend.commits[sha].metadata

        commit = Commit.from_metadata(fake_repo, metadata)

        assert commit.sha == sha
        assert commit.metadata is metadata
        assert fake_backend.metadata_reads == []


class TestShape:
    def test_root_commit(self, fake_repo: Repository, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})

        commit = Commit(fake_repo)

        assert commit.is_root
        assert not commit.is_merge
        assert commit.parents == ()

    def test_merge_commit(self, fake_repo: Repository, fake_backend: FakeBackend) -> None:
        base = fake_backend.add_commit("base", {"a.txt": "0"})
        left = fake_backend.add_commit("left", {"a.txt": "1"})
        right = fake_backend.add_commit(
            "right", {"b.txt": "2"}, parents=[base], move_head=False
        )
        fake_backend.add_commit("merge", parents=[left, right])

        commit = Commit(fake_repo)

        assert commit.is_merge
        assert commit.parents == (left, right)


class TestReadPath:
    def test_reads_content(self, fake_repo: Repository, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"docs/a.txt": "hello"})

        commit = Commit(fake_repo)

        assert commit.read_path("docs/a.txt") == b"hello"
        assert commit.read_path("docs/missing.txt") is None

    def test_caches_hits_and_misses(
        self, fake_repo: Repository, fake_backend: FakeBackend
    ) -> None:
        sha = fake_backend.add_commit("one", {"a.txt": "1"})
        commit = Commit(fake_repo)

        for _ in range(3):
            _ = commit.read_path("a.txt")
            _ = commit.read_path("b.txt")

        assert fake_backend.content_reads == [(sha, "a.txt"), (sha, "b.txt")]

    def test_content_is_frozen_at_commit(
        self, fake_repo: Repository, fake_backend: FakeBackend
    ) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})
        commit = Commit(fake_repo)
        fake_backend.add_commit("two", {"a.txt": "2"})

        assert commit.read_path("a.txt") == b"1"


class TestIdentity:
    def test_equal_by_sha(self, fake_repo: Repository, fake_backend: FakeBackend) -> None:
        sha = fake_backend.add_commit("one", {"a.txt": "1"})

        first = Commit(fake_repo, "HEAD")
        second = Commit(fake_repo, sha)

        assert first == second
        assert hash(first) == hash(second)
        assert len({first, second}) == 1

    def test_different_commits_differ(
        self, fake_repo: Repository, fake_backend: FakeBackend
    ) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})
        fake_backend.add_commit("two", {"a.txt": "2"})

        assert Commit(fake_repo, "HEAD") != Commit(fake_repo, "HEAD~1")

    def test_not_equal_to_other_types(
        self, fake_repo: Repository, fake_backend: FakeBackend
    ) -> None:
        sha = fake_backend.add_commit("one", {"a.txt": "1"})

        assert Commit(fake_repo) != sha

    def test_repr(self, fake_repo: Repository, fake_backend: FakeBackend) -> None:
        sha = fake_backend.add_commit("Add a", {"a.txt": "1"})

        assert repr(Commit(fake_repo)) == f"Commit(sha={sha[:7]!r}, subject='Add a')"
