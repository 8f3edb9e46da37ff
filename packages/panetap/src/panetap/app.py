"""panetap Typer application - position-first pane management.

Main application entry point. Global options are handled by the root
callback; each action registers itself on ``app`` from its module in
``panetap.commands``, keyed by the ``Action`` enum.
"""

from dataclasses import dataclass
from pathlib import Path
from typing import List, Optional, Tuple
import logging
import sys

import click
import typer
from rich.console import Console
from typer.core import TyperGroup

from .config import Config, load_config
from .errors import ExitCode, InvalidActionError, PanetapError, format_error, format_warning
from .types import APP_NAME, Action


@dataclass
class PanetapState:
    """Application state shared by every action.

    Attributes:
        config: Resolved configuration.
        console: Rich console for normal output.
        err_console: Rich console for diagnostics.
    """

    config: Config
    console: Console
    err_console: Console

    def warn(self, message: str) -> None:
        """Print a warning; never changes the exit status."""
        typer.echo(format_warning(message), err=True)


class ActionGroup(TyperGroup):
    """Command group that only knows the actions in ``Action``."""

    def resolve_command(self, ctx: click.Context, args: List[str]):
        if args and not args[0].startswith("-") and Action.parse(args[0]) is None:
            raise InvalidActionError(f"unknown action: {args[0]}")
        return super().resolve_command(ctx, args)

    def list_commands(self, ctx: click.Context) -> List[str]:
        return [action.value for action in Action if action.value in self.commands]


def make_consoles(when: str) -> Tuple[Console, Console]:
    """Build stdout/stderr consoles for a --color setting."""
    mode = when.lower()
    if mode in ("on", "yes", "always"):
        options = {"force_terminal": True}
    elif mode in ("off", "no", "never"):
        options = {"color_system": None}
    elif mode == "auto":
        options = {}
    else:
        raise typer.BadParameter(f"invalid color mode: {when}", param_hint="'--color'")

    console = Console(highlight=False, emoji=False, soft_wrap=True, **options)
    err_console = Console(stderr=True, highlight=False, emoji=False, soft_wrap=True, **options)
    return console, err_console


# Must be created before command imports for decorator registration
app = typer.Typer(
    name=APP_NAME,
    cls=ActionGroup,
    help="tmux pane manager for auxiliary panes beside your working pane",
    add_completion=False,
    rich_markup_mode=None,
    pretty_exceptions_enable=False,
    context_settings={"help_option_names": ["-h", "--help"]},
)


@app.callback(invoke_without_command=True)
def root(
    ctx: typer.Context,
    config_file: Optional[Path] = typer.Option(
        None, "--config-file", metavar="FILE", help="use the specified configuration file"
    ),
    color: str = typer.Option(
        "auto", "-c", "--color", metavar="WHEN", envvar="PANETAP_COLOR", help='when to use color ("auto", "always", "never")'
    ),
    verbose: bool = typer.Option(False, "-v", "--verbose", help="log debug information to stderr"),
):
    """tmux pane manager for auxiliary panes beside your working pane.

    Actions: run, kill, list, capture, flush, help. Run
    'panetap help <action>' for action-specific help.
    """
    if verbose:
        logging.getLogger(APP_NAME).setLevel(logging.DEBUG)

    console, err_console = make_consoles(color)
    state = PanetapState(config=load_config(config_file), console=console, err_console=err_console)
    ctx.obj = state

    for message in state.config.warnings:
        state.warn(message)

    if ctx.invoked_subcommand is None:
        raise InvalidActionError(f"no action specified (run '{APP_NAME} --help' for usage)")


def main(argv: Optional[List[str]] = None) -> int:
    """Parse argv, dispatch the action and return a process exit code.

    This is the only place exceptions become exit codes.
    """
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        result = app(args=args, prog_name=APP_NAME, standalone_mode=False)
    except click.UsageError as e:
        typer.echo(format_error(e.format_message()), err=True)
        return ExitCode.INVALID_OPTION
    except PanetapError as e:
        typer.echo(format_error(str(e)), err=True)
        return e.exit_code
    except click.Abort:
        typer.echo(format_error("aborted"), err=True)
        return ExitCode.ERROR

    if isinstance(result, int):
        return result
    return ExitCode.SUCCESS


# Command imports trigger @app.command decorator registration
from .commands import run  # noqa: E402, F401
from .commands import kill  # noqa: E402, F401
from .commands import ls  # noqa: E402, F401
from .commands import capture  # noqa: E402, F401
from .commands import flush  # noqa: E402, F401
from .commands import help as _help  # noqa: E402, F401
