"""Repository handle.

This module provides the Repository class, the entry point that binds a
working copy to a backend and hands out its staging area, commits, history
walkers and file revisions.
"""

from collections.abc import Callable
from pathlib import Path
from types import TracebackType
from typing import TYPE_CHECKING, Final, Self, override

from gitstate.backend._dulwich import DulwichBackend
from gitstate.backend._protocol import VersionControlBackend
from gitstate.config import Config
from gitstate.repository._commit import Commit
from gitstate.repository._file_revision import CommitFileRevision
from gitstate.repository._index import StagingArea
from gitstate.repository._rev_list import HistoryWalker
from gitstate.utils._git import find_repo_root
from gitstate.utils._logging import create_logger, get_default_logger

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger


class Repository:
    """Handle on one working copy.

    A repository owns exactly one StagingArea. All reads and writes go
    through the bound VersionControlBackend; the production backend is
    DulwichBackend, tests usually inject a FakeBackend.

    The class implements the context manager protocol. Leaving the with
    block closes the backend.

    Attributes:
        root: The resolved path to the repository root directory.

    Example:
        >>> with Repository.open(Path.cwd()) as repo:
        ...     repo.index.refresh()
        ...     head = repo.get_commit()
    """

    __slots__: Final = ("_backend", "_config", "_index", "_logger", "_root")
    _root: Path
    _backend: VersionControlBackend
    _config: Config
    _index: StagingArea
    _logger: "FilteringBoundLogger"  # noqa: UP037

    def __init__(
        self,
        root: Path,
        backend: VersionControlBackend,
        *,
        config: Config | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> None:
        """Bind a repository root to a backend.

        Args:
            root: The repository root directory.
            backend: Backend bound to the same root.
            config: Configuration. Defaults to built-in defaults.
            logger: Logger shared by the staging area and walkers. Defaults
                to a text logger on stderr.
        """
        self._root = root.resolve()
        self._backend = backend
        self._config = config if config is not None else Config()
        self._logger = (
            logger if logger is not None else get_default_logger("repository")
        ).bind(root=str(self._root))
        self._index = StagingArea(self)

    @classmethod
    def open(
        cls,
        path: Path | None = None,
        *,
        config: Config | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> Self:
        """Open the repository containing a directory.

        Args:
            path: Any directory inside the working copy. Defaults to the
                current working directory.
            config: Configuration. Defaults to Config.load() for the
                discovered root.
            logger: Logger. Defaults to one built from the logging section
                of the configuration.

        Returns:
            A repository backed by DulwichBackend.

        Raises:
            NotARepositoryError: If no .git exists at or above path.
            ConfigError: If configuration files are invalid.
        """
        root = find_repo_root(path if path is not None else Path.cwd())
        return cls._with_dulwich(root, DulwichBackend, config, logger)

    @classmethod
    def create(
        cls,
        path: Path,
        *,
        config: Config | None = None,
        logger: "FilteringBoundLogger | None" = None,  # noqa: UP037
    ) -> Self:
        """Initialize a repository at path, or open the existing one.

        Args:
            path: Directory for the repository. Created if missing.
            config: Configuration. Defaults to Config.load() for path.
            logger: Logger (see open()).

        Returns:
            A repository backed by DulwichBackend.
        """
        return cls._with_dulwich(path, DulwichBackend.init, config, logger)

    @classmethod
    def _with_dulwich(
        cls,
        root: Path,
        factory: Callable[..., DulwichBackend],
        config: Config | None,
        logger: "FilteringBoundLogger | None",  # noqa: UP037
    ) -> Self:
        if config is None:
            config = Config.load(project_root=root)
        if logger is None:
            logger = create_logger(
                level=config.logging.level.value,
                log_format=config.logging.format.value,
                log_file=config.logging.file,
                component="repository",
            )
        backend = factory(root, author=config.author.to_author_info())
        return cls(backend.root, backend, config=config, logger=logger)

    # =========================================================================
    # Context Manager Protocol
    # =========================================================================

    def __enter__(self) -> Self:
        """Enter the context manager.

        Returns:
            The repository instance.
        """
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        """Exit the context manager and close the backend.

        Args:
            exc_type: Exception type if an exception was raised.
            exc_val: Exception value if an exception was raised.
            exc_tb: Exception traceback if an exception was raised.
        """
        self.close()

    def close(self) -> None:
        """Release resources held by the backend."""
        self._backend.close()

    # =========================================================================
    # Properties
    # =========================================================================

    @property
    def working_directory(self) -> Path:
        """Get the resolved root path of the working copy."""
        return self._root

    @property
    def root(self) -> Path:
        """Alias of working_directory."""
        return self._root

    @property
    def index(self) -> StagingArea:
        """The staging area of this repository."""
        return self._index

    @property
    def backend(self) -> VersionControlBackend:
        return self._backend

    @property
    def config(self) -> Config:
        return self._config

    @property
    def logger(self) -> "FilteringBoundLogger":  # noqa: UP037
        return self._logger

    # =========================================================================
    # Factories
    # =========================================================================

    def get_commit(self, rev: str = "HEAD") -> Commit:
        """Resolve a revision to a commit.

        Args:
            rev: Revision expression.

        Returns:
            The commit.

        Raises:
            UnresolvedReferenceError: If rev does not name a commit.
        """
        return Commit(self, rev)

    def history(self) -> HistoryWalker:
        """Create a history walker for this repository."""
        return HistoryWalker(self)

    def file_revision(self, path: str | Path, rev: str = "HEAD") -> CommitFileRevision:
        """Get a file as of a revision.

        Args:
            path: Repository-relative or absolute path inside the repository.
            rev: Revision expression.

        Returns:
            A lazily resolved file revision.

        Raises:
            UnresolvedReferenceError: If rev does not name a commit.
            ValueError: If path is outside the repository.
        """
        return Commit(self, rev).file_revision(path)

    @override
    def __repr__(self) -> str:
        return f"Repository(root={str(self._root)!r})"
