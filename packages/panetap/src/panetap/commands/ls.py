"""List command - show tracked panes and their status."""

import typer
from rich.markup import escape

from ..app import app
from ..markers import MarkerError
from ..tmux import live_pane_ids
from ..types import Action
from ._helpers import get_state, prepare


@app.command(Action.LIST.value)
def ls(ctx: typer.Context):
    """Show all tracked panes and their status."""
    state = get_state(ctx)
    store = prepare(state)
    console = state.console

    live = live_pane_ids()
    found = False

    for position, _ in store.markers():
        try:
            marker = store.read(position)
        except MarkerError as e:
            state.warn(str(e))
            continue

        status = "[green]active[/green]" if marker.pane_id in live else "[yellow]stale[/yellow]"
        console.print(f"[cyan]{position.value}[/cyan]: {escape(marker.pane_id)} ({status})")
        if marker.title:
            console.print(f"  title: {escape(marker.title)}")
        if marker.command:
            console.print(f"  command: {escape(marker.command)}")
        console.print()
        found = True

    if not found:
        console.print("no active panes")
