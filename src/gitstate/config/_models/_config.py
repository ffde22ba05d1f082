# pyright: reportExplicitAny=false, reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Configuration container with typed access.

This module provides the main Config class that serves as the primary
interface for accessing gitstate configuration values.
"""

from pathlib import Path
from typing import Any, ClassVar, Self

import tomli_w
from pydantic import BaseModel, ConfigDict, PrivateAttr

from gitstate.config._defaults import DEFAULT_CONFIG
from gitstate.config._loader import copy_value, deep_merge, parse_env_vars, read_toml_file
from gitstate.config._discovery import ConfigSource, ConfigSourceName, discover_sources
from gitstate.config._models._sections import AuthorConfig, HistoryConfig, LoggingConfig


class Config(BaseModel):
    """Configuration container with typed access.

    This class provides immutable, type-safe access to gitstate
    configuration. Use factory methods to create instances rather than the
    constructor.

    Example:
        >>> config = Config.load(project_root=Path("/path/to/repo"))
        >>> config.history.default_limit
        -1
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True)

    _data: dict[str, Any] = PrivateAttr(default_factory=dict)
    _sources: tuple[ConfigSource, ...] = PrivateAttr(default=())
    _logging: LoggingConfig = PrivateAttr(default_factory=LoggingConfig)
    _author: AuthorConfig = PrivateAttr(default_factory=AuthorConfig)
    _history: HistoryConfig = PrivateAttr(default_factory=HistoryConfig)

    def __init__(
        self,
        *,
        _data: dict[str, Any] | None = None,
        _sources: tuple[ConfigSource, ...] = (),
    ) -> None:
        """Initialize configuration container.

        This constructor is intended for internal use. Use factory methods
        like from_dict(), from_file(), or load() to create Config instances.

        Args:
            _data: The complete merged and validated configuration dictionary.
            _sources: Sources that contributed to this configuration.
        """
        # Deferred import to avoid circular dependency
        from gitstate.config._validation import ConfigSchema  # noqa: PLC0415

        super().__init__()
        self._data = _data if _data is not None else copy_value(DEFAULT_CONFIG)
        self._sources = _sources
        schema = ConfigSchema.model_validate(self._data)
        self._logging = schema.logging
        self._author = schema.author
        self._history = schema.history

    @classmethod
    def from_dict(cls, data: dict[str, Any], *, validate: bool = True) -> Self:
        """Create configuration from a dictionary.

        Args:
            data: Dictionary of configuration values.
            validate: Whether to validate the configuration.

        Returns:
            Configuration object from the dictionary merged over defaults.

        Raises:
            ConfigValidationError: If validation fails (when validate=True).
        """
        from gitstate.config._validation import (  # noqa: PLC0415
            raise_if_validation_errors,
            validate_config,
        )

        merged = deep_merge(DEFAULT_CONFIG, data)
        if validate:
            raise_if_validation_errors(validate_config(merged))
        return cls(_data=merged)

    @classmethod
    def from_file(cls, path: Path, *, include_env: bool = False) -> Self:
        """Load configuration from a specific file.

        Args:
            path: Path to the TOML config file.
            include_env: Whether environment variables override the file.

        Returns:
            Configuration object from the specified file (and environment).

        Raises:
            FileNotFoundError: If the file does not exist.
            ConfigLoadError: If the file cannot be parsed.
            ConfigValidationError: If validation fails.
        """
        from gitstate.config._validation import (  # noqa: PLC0415
            raise_if_validation_errors,
            validate_config,
        )

        data = read_toml_file(path)
        raise_if_validation_errors(validate_config(data, source=str(path)))
        sources = [
            ConfigSource(
                name=ConfigSourceName.PROJECT, path=path, exists=True, values=data
            )
        ]
        merged = deep_merge(DEFAULT_CONFIG, data)

        if include_env:
            env_values = parse_env_vars()
            raise_if_validation_errors(
                validate_config(env_values, source=ConfigSourceName.ENV.value)
            )
            sources.insert(
                0,
                ConfigSource(
                    name=ConfigSourceName.ENV,
                    path=None,
                    exists=True,
                    values=env_values,
                ),
            )
            merged = deep_merge(merged, env_values)

        return cls(_data=merged, _sources=tuple(sources))

    @classmethod
    def load(
        cls,
        *,
        project_root: Path | None = None,
        include_env: bool = True,
    ) -> Self:
        """Load merged configuration from all sources.

        Sources are merged in precedence order: defaults, then the user
        file, then the project file, then environment variables.

        Args:
            project_root: Repository root holding `.gitstate.toml`. The
                project source is skipped when None.
            include_env: Include GITSTATE_SECTION__KEY environment variables.

        Returns:
            Merged configuration object.

        Raises:
            ConfigLoadError: If config files cannot be parsed.
            ConfigValidationError: If a source fails validation.
        """
        from gitstate.config._validation import (  # noqa: PLC0415
            raise_if_validation_errors,
            validate_config,
        )

        sources = discover_sources(project_root, include_env=include_env)

        # Sources are discovered highest-to-lowest, so reverse for merging
        merged: dict[str, Any] = {}
        loaded_sources: list[ConfigSource] = []

        for source in reversed(sources):
            values: dict[str, Any] = {}
            if source.name == ConfigSourceName.DEFAULT:
                values = source.values
            elif source.name == ConfigSourceName.ENV:
                values = parse_env_vars()
            elif source.path and source.exists:
                values = read_toml_file(source.path)

            raise_if_validation_errors(
                validate_config(values, source=source.name.value)
            )
            loaded_sources.append(
                ConfigSource(
                    name=source.name,
                    path=source.path,
                    exists=source.exists,
                    values=values,
                )
            )
            if values:
                merged = deep_merge(merged, values)

        return cls(_data=merged, _sources=tuple(reversed(loaded_sources)))

    @property
    def sources(self) -> list[ConfigSource]:
        """Return the sources that contributed to this configuration.

        Returns:
            List of ConfigSource objects in precedence order (highest first).
        """
        return list(self._sources)

    @property
    def logging(self) -> LoggingConfig:
        """Return the logging configuration section."""
        return self._logging

    @property
    def author(self) -> AuthorConfig:
        """Return the author configuration section."""
        return self._author

    @property
    def history(self) -> HistoryConfig:
        """Return the history configuration section."""
        return self._history

    def get(self, key: str, default: Any = None) -> Any:
        """Get a configuration value by dotted key path.

        Args:
            key: Dotted key path (e.g., "logging.level").
            default: Value returned when the key is missing.

        Returns:
            The configuration value, or default.

        Examples:
            >>> config.get("logging.level")
            'warning'
            >>> config.get("nonexistent", "fallback")
            'fallback'
        """
        current: Any = self._data
        for part in key.split("."):
            if not isinstance(current, dict) or part not in current:
                return default
            current = current[part]
        return current

    def to_dict(self) -> dict[str, Any]:
        """Return a deep copy of the merged configuration dictionary."""
        return copy_value(self._data)

    def to_toml(self) -> str:
        """Render the merged configuration as a TOML document."""
        return tomli_w.dumps(self.to_dict())
