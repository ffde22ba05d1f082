"""gitstate configuration.

This module provides the public API for gitstate configuration management,
including loading, validation, and typed access to configuration values.

Example:
    >>> from gitstate.config import Config
    >>> config = Config.load()
    >>> config.logging.level
    <LogLevel.WARNING: 'warning'>
"""

from gitstate.exceptions import (
    ConfigError,
    ConfigLoadError,
    ConfigValidationError,
)

from ._defaults import DEFAULT_CONFIG
from ._discovery import (
    PROJECT_CONFIG_NAME,
    ConfigSource,
    ConfigSourceName,
    discover_sources,
    get_project_config_path,
    get_user_config_path,
)
from ._models import (
    AuthorConfig,
    Config,
    HistoryConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
)
from ._validation import ValidationIssue, validate_config

__all__ = [
    "DEFAULT_CONFIG",
    "PROJECT_CONFIG_NAME",
    "AuthorConfig",
    "Config",
    "ConfigError",
    "ConfigLoadError",
    "ConfigSource",
    "ConfigSourceName",
    "ConfigValidationError",
    "HistoryConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
    "ValidationIssue",
    "discover_sources",
    "get_project_config_path",
    "get_user_config_path",
    "validate_config",
]
