# pyright: reportAny=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""Reading and layering of gitstate configuration sources.

Files are TOML tables of ``[section]`` with scalar keys. Environment
variables address the same keys as ``GITSTATE_<SECTION>__<KEY>``.
"""

import os
import tomllib
from pathlib import Path
from typing import Any, Final

from gitstate.config._defaults import DEFAULT_CONFIG
from gitstate.exceptions import ConfigLoadError

ENV_PREFIX: Final = "GITSTATE_"
_ENV_SEPARATOR: Final = "__"


def read_toml_file(path: Path) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Read one configuration file.

    Raises:
        FileNotFoundError: If the file does not exist.
        ConfigLoadError: If the file is not valid TOML. The error carries
            the file path and, when known, the line and column.
    """
    try:
        with path.open("rb") as f:
            return tomllib.load(f)
    except tomllib.TOMLDecodeError as e:
        msg = f"Failed to parse TOML file: {e}"
        raise ConfigLoadError(
            msg,
            path=path,
            line=getattr(e, "lineno", None),
            column=getattr(e, "colno", None),
        ) from e


def deep_merge(
    base: dict[str, Any],  # pyright: ignore[reportExplicitAny]
    override: dict[str, Any],  # pyright: ignore[reportExplicitAny]
) -> dict[str, Any]:  # pyright: ignore[reportExplicitAny]
    """Layer `override` on top of `base` and return a fresh dictionary.

    Tables present on both sides merge key by key. Any other value from
    `override` replaces the one in `base`, lists included. Neither argument
    is modified and the result shares no mutable values with them.
    """
    result: dict[str, Any] = {}  # pyright: ignore[reportExplicitAny]

    for key in base.keys() | override.keys():
        if key not in override:
            result[key] = copy_value(base[key])
        elif key in base and isinstance(base[key], dict) and isinstance(override[key], dict):
            result[key] = deep_merge(base[key], override[key])
        else:
            result[key] = copy_value(override[key])

    return result


def copy_value(value: Any) -> Any:  # pyright: ignore[reportExplicitAny]
    """Copy nested tables and lists; scalars are returned unchanged."""
    if isinstance(value, dict):
        return {k: copy_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [copy_value(item) for item in value]
    return value


def parse_env_vars(
    prefix: str = ENV_PREFIX,
) -> dict[str, dict[str, Any]]:  # pyright: ignore[reportExplicitAny]
    """Collect configuration overrides from the environment.

    ``GITSTATE_HISTORY__DEFAULT_LIMIT=20`` becomes
    ``{"history": {"default_limit": 20}}``. The name is split at the first
    double underscore into section and key, both lowercased. Variables
    without the separator, such as ``GITSTATE_DEBUG``, are not configuration
    and are skipped.

    Values for keys whose built-in default is an integer are converted to
    ``int`` when they parse as one. Everything else stays a string, so an
    author name of ``1234`` is not turned into a number. Values that fail
    conversion are kept as given and reported by validation.

    Args:
        prefix: Environment variable prefix.

    Returns:
        Overrides grouped by section.
    """
    result: dict[str, dict[str, Any]] = {}  # pyright: ignore[reportExplicitAny]

    for name, raw in os.environ.items():
        if not name.startswith(prefix):
            continue
        section, sep, key = name[len(prefix) :].lower().partition(_ENV_SEPARATOR)
        if not sep or not section or not key:
            continue
        result.setdefault(section, {})[key] = _coerce_env_value(section, key, raw)

    return result


def _coerce_env_value(section: str, key: str, raw: str) -> Any:  # pyright: ignore[reportExplicitAny]
    defaults = DEFAULT_CONFIG.get(section)
    default = defaults.get(key) if isinstance(defaults, dict) else None
    if isinstance(default, int) and not isinstance(default, bool):
        try:
            return int(raw.strip())
        except ValueError:
            return raw
    return raw
