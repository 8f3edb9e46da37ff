"""Kill command - close the pane at a position."""

from typing import Optional

import typer
from rich.markup import escape

from ..app import app
from ..tmux import kill_pane
from ..types import Action, Position
from ._helpers import get_state, locate_pane, prepare


@app.command(Action.KILL.value)
def kill(
    ctx: typer.Context,
    position: Optional[str] = typer.Argument(None, metavar="POSITION", help="position of pane to close"),
):
    """Close the pane at a position.

    Having nothing at the position is not an error.
    """
    state = get_state(ctx)
    target = Position.parse(position)
    store = prepare(state)

    located = locate_pane(state, target, store)
    if located is None:
        state.console.print(f"no pane at position '{target.value}'")
        return

    kill_pane(located.pane_id)
    store.remove(target)

    state.console.print(f"killed pane [cyan]{escape(located.pane_id)}[/cyan] at position '{target.value}'")
