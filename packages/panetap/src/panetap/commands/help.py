"""Help command - show help for panetap or for one action."""

from typing import Optional
import os

import click
import typer

from ..app import app
from ..errors import InvalidActionError
from ..types import Action
from ._helpers import get_state, housekeep


@app.command(Action.HELP.value)
def help_(
    ctx: typer.Context,
    action: Optional[str] = typer.Argument(None, metavar="ACTION", help="action to describe"),
):
    """Display help for the specified action, or for panetap if none is given.

    Housekeeping runs first when inside tmux; outside it help still works.
    """
    if os.environ.get("TMUX"):
        housekeep(get_state(ctx))

    root = ctx.find_root()
    group = root.command

    if action is None:
        typer.echo(group.get_help(root))
        return

    parsed = Action.parse(action)
    if parsed is None:
        raise InvalidActionError(f"no help found for action: {action}")

    command = group.get_command(root, parsed.value)
    with click.Context(command, info_name=parsed.value, parent=root) as sub_ctx:
        typer.echo(command.get_help(sub_ctx))
