"""Capture command - print what the pane at a position shows."""

from typing import Optional

import typer

from ..app import app
from ..tmux import capture_visible
from ..types import Action, Position
from ._helpers import get_state, prepare, require_pane


@app.command(Action.CAPTURE.value)
def capture(
    ctx: typer.Context,
    position: Optional[str] = typer.Argument(None, metavar="POSITION", help="position of pane to capture"),
):
    """Capture and output current pane contents."""
    state = get_state(ctx)
    target = Position.parse(position)
    store = prepare(state)

    located = require_pane(state, target, store)
    # Raw passthrough; pane content is not markup
    typer.echo(capture_visible(located.pane_id), nl=False)
