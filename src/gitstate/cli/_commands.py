# pyright: reportUnusedCallResult=false, reportUnusedFunction=false
# ruff: noqa: D415, TC003
"""gitstate commands."""

from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Annotated, Final

from cyclopts import App, Parameter
from rich.console import Console
from rich.markup import escape

from gitstate.backend import ChangeKind
from gitstate.exceptions import GitStateError, NothingToCommitError
from gitstate.repository import ChangedFile, Repository, RevSpecifier

from ._context import CLIContext
from ._shared import ExitCode, exit_with_error

_KIND_LABELS: Final[dict[ChangeKind, tuple[str, str]]] = {
    ChangeKind.STAGED_ADDED: ("new file", "green"),
    ChangeKind.STAGED_MODIFIED: ("modified", "green"),
    ChangeKind.STAGED_DELETED: ("deleted", "green"),
    ChangeKind.ADDED: ("added", "yellow"),
    ChangeKind.MODIFIED: ("modified", "yellow"),
    ChangeKind.DELETED: ("deleted", "yellow"),
    ChangeKind.UNTRACKED: ("untracked", "cyan"),
    ChangeKind.CONFLICTED: ("conflict", "red"),
}


@contextmanager
def _handle_errors() -> Iterator[None]:
    """Turn library errors into CLI exit codes."""
    try:
        yield
    except GitStateError as e:
        exit_with_error(str(e), ExitCode.ERROR)
    except ValueError as e:
        exit_with_error(str(e), ExitCode.USAGE_ERROR)


def _open() -> Repository:
    return CLIContext.get_current().open_repository()


def _absolute(path: str) -> Path:
    """Resolve a command-line path against the --repo directory."""
    return (CLIContext.get_current().repo_path / path).absolute()


def _print_group(console: Console, title: str, files: list[ChangedFile]) -> None:
    if not files:
        return
    console.print(f"[bold]{title}:[/bold]")
    for changed in files:
        label, style = _KIND_LABELS[changed.kind]
        suffix = " [dim](modified since staged)[/dim]" if changed.has_unstaged_changes else ""
        console.print(
            f"  [{style}]{label:<10} {escape(changed.path)}[/{style}]{suffix}",
            highlight=False,
        )


def register_commands(app: App) -> None:
    """Register all gitstate commands on an app.

    Args:
        app: The application to register commands on.
    """

    @app.command(name="init")
    def _init(
        path: Annotated[
            Path | None, Parameter(help="Directory to initialize (default: --repo)")
        ] = None,
    ) -> None:
        """Create a repository, or reopen an existing one"""
        console = Console()
        ctx = CLIContext.get_current()
        target = path if path is not None else ctx.repo_path

        with _handle_errors(), Repository.create(
            target, config=ctx.config, logger=ctx.logger
        ) as repo:
            console.print(
                f"Initialized repository in {escape(str(repo.root))}", highlight=False
            )

    @app.command(name="status")
    def _status() -> None:
        """Show staged, unstaged, untracked and conflicted files"""
        console = Console()

        with _handle_errors(), _open() as repo:
            snapshot = repo.index.refresh()

        if not snapshot:
            console.print("[dim]Nothing to commit, working tree clean[/dim]")
            return

        conflicted = [f for f in snapshot if f.is_conflicted]
        staged = [f for f in snapshot if f.staged]
        unstaged = [
            f
            for f in snapshot
            if not f.staged and not f.is_conflicted and f.kind is not ChangeKind.UNTRACKED
        ]
        untracked = [f for f in snapshot if f.kind is ChangeKind.UNTRACKED]

        _print_group(console, "Unmerged paths", conflicted)
        _print_group(console, "Changes to be committed", staged)
        _print_group(console, "Changes not staged for commit", unstaged)
        _print_group(console, "Untracked files", untracked)

    @app.command(name="stage")
    def _stage(
        paths: Annotated[tuple[str, ...], Parameter(help="Files to stage")],
    ) -> None:
        """Stage files for the next commit"""
        console = Console()

        with _handle_errors(), _open() as repo:
            staged = repo.index.stage_files([str(_absolute(p)) for p in paths])

        console.print(f"[green]Staged {len(staged)} file(s)[/green]")

    @app.command(name="unstage")
    def _unstage(
        paths: Annotated[tuple[str, ...], Parameter(help="Files to unstage")],
    ) -> None:
        """Reset files in the index to HEAD, keeping the working tree"""
        console = Console()

        with _handle_errors(), _open() as repo:
            unstaged = repo.index.unstage_files([str(_absolute(p)) for p in paths])

        console.print(f"[green]Unstaged {len(unstaged)} file(s)[/green]")

    @app.command(name="commit")
    def _commit(
        message: Annotated[
            str,
            Parameter(name=["--message", "-m"], help="Commit message"),
        ],
    ) -> None:
        """Commit the staged changes"""
        console = Console()

        with _handle_errors(), _open() as repo:
            try:
                commit = repo.index.commit(message)
            except NothingToCommitError:
                console.print("[dim]Nothing to commit[/dim]")
                raise SystemExit(ExitCode.ERROR) from None

        console.print(
            f"[{commit.short_sha}] {commit.subject}", highlight=False, markup=False
        )

    @app.command(name="log")
    def _log(
        path: Annotated[
            str | None, Parameter(help="Only list commits that changed this file")
        ] = None,
        limit: Annotated[
            int | None,
            Parameter(
                name=["--limit", "-n"],
                help="Maximum number of commits (default: history.default_limit)",
            ),
        ] = None,
        rev: Annotated[
            str, Parameter(name="--rev", help="Start revision or A..B range")
        ] = "HEAD",
    ) -> None:
        """List commits in topological order"""
        console = Console()
        ctx = CLIContext.get_current()
        effective_limit = limit if limit is not None else ctx.config.history.default_limit
        spec = RevSpecifier(
            rev, path=str(_absolute(path)) if path is not None else None
        )

        with _handle_errors(), _open() as repo:
            commits = repo.history().walk(spec, effective_limit)

        for commit in commits:
            console.print(
                f"[yellow]{commit.short_sha}[/yellow] "
                f"[dim]{commit.timestamp:%Y-%m-%d %H:%M}[/dim] "
                f"{escape(commit.subject)} [dim]<{escape(commit.author)}>[/dim]",
                highlight=False,
            )

    @app.command(name="show")
    def _show(
        path: Annotated[str, Parameter(help="File to print")],
        rev: Annotated[str, Parameter(name="--rev", help="Revision")] = "HEAD",
    ) -> None:
        """Print a file as of a revision"""
        console = Console()

        with _handle_errors(), _open() as repo:
            content = repo.file_revision(_absolute(path), rev).get_contents()

        console.out(content.decode("utf-8", errors="replace"), end="", highlight=False)

    @app.command(name="config")
    def _config() -> None:
        """Print the merged configuration as TOML"""
        console = Console()
        console.out(CLIContext.get_current().config.to_toml(), end="", highlight=False)
