"""The command-line interface for gitstate."""
# ruff: noqa: TC003  # Path needed at runtime for cyclopts parameter parsing

from pathlib import Path
from typing import Annotated

from cyclopts import App, Parameter
from rich.console import Console

from gitstate.exceptions import ConfigError
from gitstate.utils import create_logger

from ._commands import register_commands
from ._context import CLIContext, load_config
from ._shared import ExitCode, exit_with_error

_HELP = "Inspect and change the state of a Git working copy."


def create_app(
    console: Console | None = None,
    error_console: Console | None = None,
    *,
    exit_on_error: bool = True,
) -> App:
    """Build the CLI application.

    Global options are parsed by the meta app (``app.meta``), which loads
    configuration, sets the CLIContext and dispatches to the command.

    Args:
        console: Console for regular output.
        error_console: Console for parse errors.
        exit_on_error: Whether parse errors exit the process.

    Returns:
        The application. Invoke ``app.meta(tokens)`` to run it.
    """
    if console is None:
        console = Console()
    if error_console is None:
        error_console = Console(stderr=True)
    app = App(
        name="gitstate",
        help=_HELP,
        help_on_error=True,
        console=console,
        error_console=error_console,
        exit_on_error=exit_on_error,
    )

    @app.meta.default
    def _default(  # pyright: ignore[reportUnusedFunction]
        *tokens: Annotated[str, Parameter(show=False, allow_leading_hyphen=True)],
        repo: Annotated[
            Path | None,
            Parameter(name="--repo", help="Directory inside the repository"),
        ] = None,
        config: Annotated[
            Path | None, Parameter(name="--config", help="Path to config file")
        ] = None,
    ) -> None:
        """Launch gitstate with global options.

        Args:
            tokens: Command tokens to pass to subcommands.
            repo: Directory the repository is discovered from.
            config: Explicit path to config file.
        """
        repo_path = repo if repo is not None else Path.cwd()
        try:
            loaded_config = load_config(config_path=config, repo_path=repo_path)
        except (ConfigError, FileNotFoundError) as e:
            exit_with_error(str(e), ExitCode.ERROR, console=error_console)

        logger = create_logger(
            level=loaded_config.logging.level.value,
            log_format=loaded_config.logging.format.value,
            log_file=loaded_config.logging.file,
            component="cli",
        )
        CLIContext.set_current(
            CLIContext(config=loaded_config, repo_path=repo_path, logger=logger)
        )

        try:
            app(tokens)
        finally:
            CLIContext.reset()

    register_commands(app)
    return app


app = create_app()


def main() -> None:
    """Default entrypoint for the `gitstate` CLI."""
    app.meta()


if __name__ == "__main__":
    main()
