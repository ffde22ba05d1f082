"""Command-line interface for gitstate."""

from ._app import app, create_app, main
from ._context import CLIContext, load_config
from ._shared import ExitCode

__all__ = ["CLIContext", "ExitCode", "app", "create_app", "load_config", "main"]
