# pyright: reportExplicitAny=false, reportAny=false
"""Configuration validation.

This module validates merged configuration dictionaries against the section
models and converts Pydantic errors into ConfigValidationError.
"""

from dataclasses import dataclass
from typing import Any, ClassVar

from pydantic import BaseModel, ConfigDict, ValidationError
from pydantic_core import ErrorDetails

from gitstate.config._models._sections import AuthorConfig, HistoryConfig, LoggingConfig
from gitstate.exceptions import ConfigValidationError


class ConfigSchema(BaseModel):
    """Schema of a complete configuration. Unknown keys are ignored."""

    model_config: ClassVar[ConfigDict] = ConfigDict(extra="ignore")

    logging: LoggingConfig = LoggingConfig()
    author: AuthorConfig = AuthorConfig()
    history: HistoryConfig = HistoryConfig()


@dataclass(frozen=True, slots=True)
class ValidationIssue:
    """A single configuration validation problem.

    Attributes:
        key: Dotted key path of the offending value.
        message: Validation message.
        expected: Description of the expected value, if known.
        actual: The offending value.
        source: Source the value came from, if known.
    """

    key: str
    message: str
    expected: str | None
    actual: Any
    source: str | None


def _pydantic_error_to_issue(
    error: ErrorDetails,
    source: str | None,
) -> ValidationIssue:
    """Convert a Pydantic error dict to a ValidationIssue.

    Args:
        error: A single error dict from ValidationError.errors().
        source: The source name, or None for merged config.

    Returns:
        A ValidationIssue representing the validation error.
    """
    key = ".".join(str(part) for part in error.get("loc", ()))
    ctx = error.get("ctx")
    expected: str | None = None
    if ctx is not None:
        if "expected" in ctx:
            expected = str(ctx["expected"])
        elif "ge" in ctx:
            expected = f">= {ctx['ge']}"

    return ValidationIssue(
        key=key,
        message=str(error.get("msg", "Validation error")),
        expected=expected,
        actual=error.get("input"),
        source=source,
    )


def validate_config(
    config: dict[str, Any],
    *,
    source: str | None = None,
) -> list[ValidationIssue]:
    """Validate a configuration dictionary.

    Args:
        config: The configuration dictionary to validate.
        source: Source name recorded on each issue.

    Returns:
        List of ValidationIssue objects. Empty list indicates valid config.
    """
    try:
        _ = ConfigSchema.model_validate(config)
    except ValidationError as e:
        return [_pydantic_error_to_issue(err, source=source) for err in e.errors()]
    else:
        return []


def raise_if_validation_errors(
    issues: list[ValidationIssue],
    source: str | None = None,
) -> None:
    """Raise ConfigValidationError for the first issue, if any.

    Args:
        issues: List of ValidationIssue objects to check.
        source: Optional source string used in the exception instead of
            the issue's own source.

    Raises:
        ConfigValidationError: If issues is not empty.
    """
    if issues:
        issue = issues[0]
        msg = f"Invalid configuration value for '{issue.key}': {issue.message}"
        raise ConfigValidationError(
            msg,
            key=issue.key,
            value=issue.actual,
            expected=issue.expected or issue.message,
            source=source or issue.source,
        )
