"""Shared helper functions for commands.

PUBLIC API:
  - get_state: Application state from a Typer context
  - housekeep: Run housekeeping only
  - prepare: Check preconditions, create directories, run housekeeping
  - locate_pane: Locate a pane and warn when tracking is degraded
  - require_pane: Like locate_pane, but a missing pane is an error
"""

from typing import Optional

import typer

from ..app import PanetapState
from ..config import ensure_directories
from ..errors import ExecutionError
from ..housekeeping import run_housekeeping
from ..locator import Located, locate
from ..markers import MarkerStore
from ..tmux import check_session
from ..types import Position

__all__ = ["get_state", "housekeep", "prepare", "locate_pane", "require_pane"]


def get_state(ctx: typer.Context) -> PanetapState:
    """Get the state set up by the root callback."""
    state = ctx.find_object(PanetapState)
    if state is None:
        raise RuntimeError("panetap state missing - commands must run through the panetap app")
    return state


def housekeep(state: PanetapState) -> MarkerStore:
    """Run housekeeping against the configured directories. Never raises."""
    store = MarkerStore(state.config.marker_dir)
    run_housekeeping(store, state.config.logs, state.config.log_retention_days)
    return store


def prepare(state: PanetapState) -> MarkerStore:
    """Run the steps every pane action needs before it starts.

    Verifies the tmux session, creates the marker and log directories and
    runs housekeeping.

    Returns:
        Marker store for the configured marker directory

    Raises:
        PreconditionError: If tmux is unusable or directories cannot be created
    """
    check_session()
    ensure_directories(state.config)
    return housekeep(state)


def locate_pane(state: PanetapState, position: Position, store: MarkerStore) -> Optional[Located]:
    """Locate the pane at position, warning if only its title matched."""
    located = locate(position, store)
    if located is not None and located.degraded:
        state.warn(f"marker file missing, but found pane {located.pane_id} by title '{position.pane_title}'")
    return located


def require_pane(state: PanetapState, position: Position, store: MarkerStore) -> Located:
    """Locate the pane at position.

    Raises:
        ExecutionError: If there is no pane at position
    """
    located = locate_pane(state, position, store)
    if located is None:
        raise ExecutionError(f"no pane at position '{position.value}'")
    return located
