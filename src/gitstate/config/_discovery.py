"""Configuration source discovery.

This module locates the configuration files that contribute to a merged
configuration and reports them in precedence order.
"""

from dataclasses import dataclass
from enum import StrEnum
from pathlib import Path
from typing import Any, Final

import platformdirs

from gitstate.config._defaults import DEFAULT_CONFIG

PROJECT_CONFIG_NAME: Final = ".gitstate.toml"


class ConfigSourceName(StrEnum):
    """Where a layer of configuration comes from, highest precedence first."""

    ENV = "env"
    PROJECT = "project"
    USER = "user"
    DEFAULT = "default"


@dataclass(frozen=True, slots=True)
class ConfigSource:
    """One layer of configuration as reported by `Config.sources`.

    Attributes:
        name: Which layer this is.
        path: The TOML file backing a PROJECT or USER layer, else None.
        exists: False for a file layer whose file is absent. ENV and DEFAULT
            always exist, even when ENV contributes no values.
        values: Values read from the layer; empty until the layer is loaded.
    """

    name: ConfigSourceName
    path: Path | None
    exists: bool
    values: dict[str, Any]  # pyright: ignore[reportExplicitAny]


def get_user_config_path() -> Path:
    r"""Get platform-specific user config file path.

    - Linux: ``$XDG_CONFIG_HOME/gitstate/config.toml`` (``~/.config`` by default)
    - macOS: ``~/Library/Application Support/gitstate/config.toml``
    - Windows: ``%APPDATA%\gitstate\config.toml``

    The path is returned regardless of whether the file exists.

    Returns:
        Path to the user config file for the current platform.
    """
    return platformdirs.user_config_path("gitstate") / "config.toml"


def get_project_config_path(project_root: Path) -> Path:
    """Get the project config file path for a repository root."""
    return project_root / PROJECT_CONFIG_NAME


def _file_exists(path: Path) -> bool:
    """Check if a file exists, treating permission errors as absence."""
    try:
        return path.is_file()
    except OSError:
        return False


def discover_sources(
    project_root: Path | None = None,
    *,
    include_env: bool = True,
) -> list[ConfigSource]:
    """Discover all configuration sources.

    File-based sources are checked for existence but not read.

    Args:
        project_root: Repository root. The project source is omitted when None.
        include_env: Include environment variables as a source.

    Returns:
        List of ConfigSource objects in precedence order (highest first).
        Sources that don't exist are still included with exists=False.
    """
    sources: list[ConfigSource] = []

    if include_env:
        sources.append(
            ConfigSource(
                name=ConfigSourceName.ENV,
                path=None,
                exists=True,  # Actual values parsed during loading phase
                values={},
            )
        )

    if project_root is not None:
        project_path = get_project_config_path(project_root)
        sources.append(
            ConfigSource(
                name=ConfigSourceName.PROJECT,
                path=project_path,
                exists=_file_exists(project_path),
                values={},
            )
        )

    user_path = get_user_config_path()
    sources.append(
        ConfigSource(
            name=ConfigSourceName.USER,
            path=user_path,
            exists=_file_exists(user_path),
            values={},
        )
    )

    sources.append(
        ConfigSource(
            name=ConfigSourceName.DEFAULT,
            path=None,
            exists=True,
            values=DEFAULT_CONFIG,
        )
    )

    return sources
