"""Shared utilities for gitstate."""

from ._author import AuthorInfo, get_author_info
from ._git import (
    decode_bytes,
    find_repo_root,
    normalize_repo_path,
    parse_author_line,
    split_ancestry,
)
from ._logging import LogFormatType, create_logger, get_default_logger

__all__ = [
    "AuthorInfo",
    "LogFormatType",
    "create_logger",
    "decode_bytes",
    "find_repo_root",
    "get_author_info",
    "get_default_logger",
    "normalize_repo_path",
    "parse_author_line",
    "split_ancestry",
]
