"""Configuration models.

This module provides Pydantic models for gitstate configuration sections
and the main Config container class.
"""

from gitstate.config._models._config import Config
from gitstate.config._models._sections import (
    AuthorConfig,
    HistoryConfig,
    LogFormat,
    LoggingConfig,
    LogLevel,
)

__all__ = [
    "AuthorConfig",
    "Config",
    "HistoryConfig",
    "LogFormat",
    "LogLevel",
    "LoggingConfig",
]
