from datetime import UTC, datetime

import pytest

from gitstate.backend import (
    ChangeKind,
    ChangeRecord,
    CommitMetadata,
    FakeBackend,
    PathBatchResult,
    VersionControlBackend,
)
from gitstate.exceptions import (
    BackendUnavailableError,
    CommitFailedError,
    CommitFailureReason,
    NothingToCommitError,
    UnresolvedReferenceError,
)
from gitstate.utils import AuthorInfo


def _metadata(message: str, parents: tuple[str, ...] = ()) -> CommitMetadata:
    return CommitMetadata(
        sha="a" * 40,
        author_name="Ada",
        author_email="ada@example.com",
        timestamp=datetime(2024, 5, 1, tzinfo=UTC),
        message=message,
        parents=parents,
    )


class TestChangeKind:
    @pytest.mark.parametrize(
        ("kind", "expected"),
        [
            (ChangeKind.STAGED_ADDED, True),
            (ChangeKind.STAGED_MODIFIED, True),
            (ChangeKind.STAGED_DELETED, True),
            (ChangeKind.ADDED, False),
            (ChangeKind.MODIFIED, False),
            (ChangeKind.DELETED, False),
            (ChangeKind.UNTRACKED, False),
            (ChangeKind.CONFLICTED, False),
        ],
    )
    def test_is_staged(self, kind: ChangeKind, expected: bool) -> None:
        assert kind.is_staged is expected


class TestCommitMetadata:
    def test_subject_is_first_line(self) -> None:
        assert _metadata("Fix parser\n\nLong body").subject == "Fix parser"

    def test_subject_of_empty_message(self) -> None:
        assert _metadata("").subject == ""


class TestPathBatchResult:
    def test_ok_without_failures(self) -> None:
        assert PathBatchResult(succeeded=("a",)).ok

    def test_not_ok_with_failures(self) -> None:
        assert not PathBatchResult(failed={"a": "nope"}).ok


class TestFakeBackendProtocol:
    def test_satisfies_protocol(self, fake_backend: FakeBackend) -> None:
        assert isinstance(fake_backend, VersionControlBackend)


class TestFakeBackendReferences:
    def test_head_of_empty_repository_is_unresolved(
        self, fake_backend: FakeBackend
    ) -> None:
        with pytest.raises(UnresolvedReferenceError):
            fake_backend.resolve_reference("HEAD")

    def test_resolves_head_refs_and_prefixes(self, fake_backend: FakeBackend) -> None:
        first = fake_backend.add_commit("one", {"a.txt": "1"})
        second = fake_backend.add_commit("two", {"a.txt": "2"})
        fake_backend.set_ref("main", second)

        assert fake_backend.resolve_reference("HEAD") == second
        assert fake_backend.resolve_reference("main") == second
        assert fake_backend.resolve_reference(first) == first
        assert fake_backend.resolve_reference(first[:10]) == first

    def test_ancestry_suffixes(self, fake_backend: FakeBackend) -> None:
        first = fake_backend.add_commit("one", {"a.txt": "1"})
        second = fake_backend.add_commit("two", {"a.txt": "2"})
        fake_backend.add_commit("three", {"a.txt": "3"})

        assert fake_backend.resolve_reference("HEAD~2") == first
        assert fake_backend.resolve_reference("HEAD^") == second

    def test_walking_past_root_fails(self, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})

        with pytest.raises(UnresolvedReferenceError):
            fake_backend.resolve_reference("HEAD~1")

    @pytest.mark.parametrize("expr", ["nope", "abc", "0" * 40])
    def test_unknown_expression(self, fake_backend: FakeBackend, expr: str) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})

        with pytest.raises(UnresolvedReferenceError) as exc_info:
            fake_backend.resolve_reference(expr)

        assert exc_info.value.ref == expr


class TestFakeBackendChanges:
    def test_clean_tree_has_no_changes(self, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})

        assert fake_backend.list_changes() == []

    def test_reports_each_kind(self, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"keep.txt": "k", "gone.txt": "g"})
        fake_backend.write_file("keep.txt", "edited")
        fake_backend.delete_file("gone.txt")
        fake_backend.write_file("new.txt", "n")
        fake_backend.write_file("ignored.log", "x")
        fake_backend.ignored.add("ignored.log")

        changes = fake_backend.list_changes()

        assert changes == [
            ChangeRecord("gone.txt", ChangeKind.DELETED, staged=False),
            ChangeRecord("keep.txt", ChangeKind.MODIFIED, staged=False),
            ChangeRecord("new.txt", ChangeKind.UNTRACKED, staged=False),
        ]

    def test_staged_and_then_edited_is_reported_twice(
        self, fake_backend: FakeBackend
    ) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})
        fake_backend.write_file("a.txt", "2")
        _ = fake_backend.stage(["a.txt"])
        fake_backend.write_file("a.txt", "3")

        assert fake_backend.list_changes() == [
            ChangeRecord("a.txt", ChangeKind.STAGED_MODIFIED, staged=True),
            ChangeRecord("a.txt", ChangeKind.MODIFIED, staged=False),
        ]

    def test_conflicts_are_reported_once(self, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})
        fake_backend.set_conflict("a.txt")

        assert fake_backend.list_changes() == [
            ChangeRecord("a.txt", ChangeKind.CONFLICTED, staged=False)
        ]


class TestFakeBackendStaging:
    def test_stage_new_file(self, fake_backend: FakeBackend) -> None:
        fake_backend.write_file("a.txt", "1")

        result = fake_backend.stage(["a.txt"])

        assert result == PathBatchResult(succeeded=("a.txt",))
        assert fake_backend.index == {"a.txt": b"1"}
        assert fake_backend.stage_calls == [("a.txt",)]

    def test_stage_deletion(self, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})
        fake_backend.delete_file("a.txt")

        assert fake_backend.stage(["a.txt"]).ok
        assert "a.txt" not in fake_backend.index

    def test_stage_failures(self, fake_backend: FakeBackend) -> None:
        fake_backend.write_file("a.log", "x")
        fake_backend.ignored.add("a.log")
        fake_backend.write_file("b.txt", "x")
        fake_backend.rejections["b.txt"] = "permission denied"

        result = fake_backend.stage(["a.log", "b.txt", "missing.txt"])

        assert result.succeeded == ()
        assert result.failed == {
            "a.log": "path is ignored",
            "b.txt": "permission denied",
            "missing.txt": "path does not exist in working tree or index",
        }

    def test_stage_resolves_conflict(self, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})
        fake_backend.set_conflict("a.txt", "merged")

        assert fake_backend.stage(["a.txt"]).ok
        assert fake_backend.conflicts == set()
        assert fake_backend.index["a.txt"] == b"merged"

    def test_unstage_restores_head_content(self, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})
        fake_backend.write_file("a.txt", "2")
        _ = fake_backend.stage(["a.txt"])

        assert fake_backend.unstage(["a.txt"]).ok
        assert fake_backend.index["a.txt"] == b"1"
        assert fake_backend.working_tree["a.txt"] == b"2"

    def test_unstage_new_file_untracks_it(self, fake_backend: FakeBackend) -> None:
        fake_backend.write_file("a.txt", "1")
        _ = fake_backend.stage(["a.txt"])

        assert fake_backend.unstage(["a.txt"]).ok
        assert fake_backend.index == {}
        assert fake_backend.list_changes() == [
            ChangeRecord("a.txt", ChangeKind.UNTRACKED, staged=False)
        ]

    def test_unstage_unknown_path(self, fake_backend: FakeBackend) -> None:
        result = fake_backend.unstage(["a.txt"])

        assert result.failed == {"a.txt": "path is not staged"}


class TestFakeBackendCommit:
    def test_commit_advances_head(self, fake_backend: FakeBackend) -> None:
        first = fake_backend.add_commit("one", {"a.txt": "1"})
        fake_backend.write_file("a.txt", "2")
        _ = fake_backend.stage(["a.txt"])

        sha = fake_backend.commit("two", author=AuthorInfo("Ada", "ada@example.com"))

        metadata = fake_backend.read_commit_metadata(sha)
        assert fake_backend.head == sha
        assert metadata.parents == (first,)
        assert (metadata.author_name, metadata.author_email) == (
            "Ada",
            "ada@example.com",
        )
        assert fake_backend.read_path_at(sha, "a.txt") == b"2"

    def test_first_commit_has_no_parents(self, fake_backend: FakeBackend) -> None:
        fake_backend.write_file("a.txt", "1")
        _ = fake_backend.stage(["a.txt"])

        sha = fake_backend.commit("root")

        assert fake_backend.read_commit_metadata(sha).parents == ()

    def test_nothing_to_commit(self, fake_backend: FakeBackend) -> None:
        head = fake_backend.add_commit("one", {"a.txt": "1"})

        with pytest.raises(NothingToCommitError) as exc_info:
            fake_backend.commit("empty")

        assert exc_info.value.head == head
        assert fake_backend.head == head

    def test_conflicts_block_commit(self, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1", "b.txt": "1"})
        fake_backend.set_conflict("b.txt")
        fake_backend.set_conflict("a.txt")

        with pytest.raises(CommitFailedError) as exc_info:
            fake_backend.commit("merge")

        assert exc_info.value.reason is CommitFailureReason.UNRESOLVED_CONFLICTS
        assert exc_info.value.details == "a.txt, b.txt"

    def test_concurrent_head_move(self, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})
        fake_backend.write_file("a.txt", "2")
        _ = fake_backend.stage(["a.txt"])

        def race(backend: FakeBackend) -> None:
            backend.head = backend.add_commit("other", {"b.txt": "b"}, move_head=False)

        fake_backend.before_commit = race

        with pytest.raises(CommitFailedError) as exc_info:
            fake_backend.commit("two")

        assert exc_info.value.reason is CommitFailureReason.CONCURRENT_UPDATE


class TestFakeBackendHistory:
    def test_diff_path_across_parents(self, fake_backend: FakeBackend) -> None:
        first = fake_backend.add_commit("one", {"a.txt": "1", "b.txt": "1"})
        second = fake_backend.add_commit("two", {"a.txt": "2"})

        assert fake_backend.diff_path_across_parents(first, (), "a.txt")
        assert not fake_backend.diff_path_across_parents(first, (), "c.txt")
        assert fake_backend.diff_path_across_parents(second, (first,), "a.txt")
        assert not fake_backend.diff_path_across_parents(second, (first,), "b.txt")

    def test_merge_counts_only_when_differing_from_every_parent(
        self, fake_backend: FakeBackend
    ) -> None:
        base = fake_backend.add_commit("base", {"a.txt": "0"})
        left = fake_backend.add_commit("left", {"a.txt": "L"})
        right = fake_backend.add_commit(
            "right", {"b.txt": "R"}, parents=[base], move_head=False
        )
        merge = fake_backend.add_commit("merge", parents=[left, right])

        assert not fake_backend.diff_path_across_parents(merge, (left, right), "a.txt")

    def test_read_path_at_missing(self, fake_backend: FakeBackend) -> None:
        sha = fake_backend.add_commit("one", {"a.txt": "1"})

        assert fake_backend.read_path_at(sha, "b.txt") is None

    def test_add_commit_deletes_with_none(self, fake_backend: FakeBackend) -> None:
        fake_backend.add_commit("one", {"a.txt": "1"})
        sha = fake_backend.add_commit("two", {"a.txt": None})

        assert fake_backend.read_path_at(sha, "a.txt") is None


class TestFakeBackendAvailability:
    def test_unavailable_backend_raises(self, fake_backend: FakeBackend) -> None:
        fake_backend.unavailable = True

        with pytest.raises(BackendUnavailableError) as exc_info:
            fake_backend.list_changes()

        assert exc_info.value.operation == "list_changes"

    def test_close(self, fake_backend: FakeBackend) -> None:
        fake_backend.close()

        assert fake_backend.closed
