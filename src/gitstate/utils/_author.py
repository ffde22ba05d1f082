"""Author information resolution utilities."""

import os
from dataclasses import dataclass
from typing import Final

from dulwich.config import Config as GitConfig

DEFAULT_AUTHOR_NAME: Final = "gitstate"
DEFAULT_AUTHOR_EMAIL: Final = "gitstate@localhost"


@dataclass(slots=True, frozen=True)
class AuthorInfo:
    """Resolved author information.

    Attributes:
        name: Author name, or None if not found.
        email: Author email, or None if not found.
    """

    name: str | None
    email: str | None

    def identity(self) -> bytes:
        """Format as a git identity line, filling gaps with defaults.

        Returns:
            Identity as bytes in "Name <email>" format.
        """
        name = self.name or DEFAULT_AUTHOR_NAME
        email = self.email or DEFAULT_AUTHOR_EMAIL
        return f"{name} <{email}>".encode()


def get_author_info(
    config: GitConfig | None = None,
    *,
    fallback: AuthorInfo | None = None,
) -> AuthorInfo:
    """Resolve author info from environment variables or git config.

    Resolution order:
    1. Environment variables (GITSTATE_AUTHOR_NAME, GITSTATE_AUTHOR_EMAIL)
    2. The fallback identity (usually from gitstate configuration)
    3. Git config (user.name, user.email)

    Args:
        config: Git configuration stack of the repository, if available.
        fallback: Identity configured for gitstate itself.

    Returns:
        AuthorInfo with resolved name and email (either may be None).
    """
    name = (
        os.environ.get("GITSTATE_AUTHOR_NAME")
        or (fallback.name if fallback else None)
        or _git_config(config, b"name")
    )
    email = (
        os.environ.get("GITSTATE_AUTHOR_EMAIL")
        or (fallback.email if fallback else None)
        or _git_config(config, b"email")
    )

    return AuthorInfo(name=name, email=email)


def _git_config(config: GitConfig | None, key: bytes) -> str | None:
    """Read a value from the [user] section of git config.

    Args:
        config: Git configuration, or None.
        key: Key inside the user section (e.g., b"name").

    Returns:
        The config value, or None if not set.
    """
    if config is None:
        return None
    try:
        value = config.get((b"user",), key)
    except KeyError:
        return None
    return value.decode("utf-8", errors="replace").strip() or None
