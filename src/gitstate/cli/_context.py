# ruff: noqa: TC003  # Path needed at runtime for dataclass field
"""CLI context for global state management.

This module provides thread-safe context management for global CLI options
and loaded configuration. The CLIContext is set once at CLI startup and made
available to all commands via contextvars.
"""

import contextvars
from dataclasses import dataclass, field
from pathlib import Path
from typing import TYPE_CHECKING

from gitstate.config import Config
from gitstate.exceptions import NotARepositoryError
from gitstate.repository import Repository
from gitstate.utils._git import find_repo_root

if TYPE_CHECKING:
    from structlog.typing import FilteringBoundLogger

_current_cli_context: contextvars.ContextVar["CLIContext | None"] = (
    contextvars.ContextVar("cli_context", default=None)
)


@dataclass(frozen=True, slots=True)
class CLIContext:
    """Global CLI context with configuration and options.

    Attributes:
        config: Loaded configuration object.
        repo_path: Directory the repository is discovered from.
        logger: Structured logger passed to the repository.
    """

    config: Config = field(repr=False)
    repo_path: Path = field(default_factory=Path.cwd)
    logger: "FilteringBoundLogger | None" = field(default=None, repr=False)  # noqa: UP037

    @classmethod
    def get_current(cls) -> "CLIContext":  # noqa: UP037
        """Get the active CLIContext, or a default one if none is set."""
        ctx = _current_cli_context.get()
        if ctx is not None:
            return ctx
        return cls(config=Config())

    @classmethod
    def set_current(cls, ctx: "CLIContext") -> None:  # noqa: UP037
        """Set the active CLIContext."""
        _ = _current_cli_context.set(ctx)

    @classmethod
    def reset(cls) -> None:
        """Reset to the default context."""
        _ = _current_cli_context.set(None)

    def open_repository(self) -> Repository:
        """Open the repository containing repo_path.

        Raises:
            NotARepositoryError: If repo_path is not inside a repository.
        """
        return Repository.open(self.repo_path, config=self.config, logger=self.logger)


def load_config(*, config_path: Path | None, repo_path: Path) -> Config:
    """Load configuration for a CLI invocation.

    An explicit file replaces the user and project files; environment
    variables still apply. Without one, the project file of the repository
    containing repo_path is used when there is one.

    Args:
        config_path: Explicit path to a config file (--config flag).
        repo_path: Directory the repository is discovered from (--repo flag).

    Returns:
        The merged configuration.

    Raises:
        FileNotFoundError: If config_path does not exist.
        ConfigError: If a config source is invalid.
    """
    if config_path is not None:
        return Config.from_file(config_path, include_env=True)
    try:
        project_root: Path | None = find_repo_root(repo_path)
    except NotARepositoryError:
        project_root = None
    return Config.load(project_root=project_root)
