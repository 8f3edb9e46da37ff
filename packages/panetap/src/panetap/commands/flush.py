"""Flush command - make the recorder in a pane write its transcript out."""

from typing import Optional
import logging
import os
import signal

import typer

from ..app import app
from ..errors import ExecutionError
from ..process.tree import find_descendants, get_process_tree
from ..script import RECORDER
from ..tmux import get_pane_pid
from ..types import Action, Position
from ._helpers import get_state, prepare, require_pane

logger = logging.getLogger(__name__)


@app.command(Action.FLUSH.value)
def flush(
    ctx: typer.Context,
    position: Optional[str] = typer.Argument(None, metavar="POSITION", help="position of pane to flush"),
):
    """Force-flush logs for the pane at a position.

    Sends SIGUSR1 to the script recorder running in the pane.
    """
    state = get_state(ctx)
    target = Position.parse(position)
    store = prepare(state)

    located = require_pane(state, target, store)
    pane_pid = get_pane_pid(located.pane_id)

    # The recorder runs below the generated script, usually inside a subshell
    recorders = find_descendants(get_process_tree(pane_pid), RECORDER)
    if not recorders:
        raise ExecutionError("no script process found in pane")

    recorder = recorders[0]
    logger.debug(f"Signalling {RECORDER} pid {recorder.pid} in pane {located.pane_id}")
    try:
        os.kill(recorder.pid, signal.SIGUSR1)
    except OSError as e:
        raise ExecutionError(f"failed to send flush signal: {e}") from e

    state.console.print(f"flushed logs for pane at '{target.value}'")
