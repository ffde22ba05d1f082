"""Configuration section models.

This module provides the Pydantic models for the logging, author and
history sections.
"""

from enum import StrEnum
from typing import ClassVar

from pydantic import BaseModel, ConfigDict, Field

from gitstate.utils._author import AuthorInfo


class LogLevel(StrEnum):
    """Threshold for gitstate's own log output, most verbose first."""

    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"


class LogFormat(StrEnum):
    """Rendering of log lines: structlog JSON or console text."""

    JSON = "json"
    TEXT = "text"


class LoggingConfig(BaseModel):
    """Logging configuration section.

    Attributes:
        level: Log level threshold.
        format: Log output format.
        file: Path to log file (empty logs to stderr).
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    level: LogLevel = LogLevel.WARNING
    format: LogFormat = LogFormat.TEXT
    file: str = ""


class AuthorConfig(BaseModel):
    """Commit identity configured for gitstate.

    Empty values defer to the repository's git config.

    Attributes:
        name: Author and committer name.
        email: Author and committer email.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    name: str = ""
    email: str = ""

    def to_author_info(self) -> AuthorInfo:
        """Convert to an AuthorInfo, mapping empty values to None."""
        return AuthorInfo(name=self.name or None, email=self.email or None)


class HistoryConfig(BaseModel):
    """History walking configuration section.

    Attributes:
        default_limit: Maximum number of commits listed by `gitstate log`
            when no limit is given. Negative means unbounded.
    """

    model_config: ClassVar[ConfigDict] = ConfigDict(frozen=True, extra="ignore")

    default_limit: int = Field(default=-1, ge=-1)
