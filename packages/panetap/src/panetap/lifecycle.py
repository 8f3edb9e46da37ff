"""Pane lifecycle - create or respawn the pane at a position.

Existing panes are found through their marker only. The title fallback is
deliberately not used here: respawning whatever pane happens to carry the
title could take over a pane panetap does not own.

PUBLIC API:
  - PaneOutcome: Result of applying a script to a position
  - apply: Respawn the live pane at a position or split a new one
"""

from dataclasses import dataclass
import logging

from .locator import locate, resolve_invoking_pane
from .markers import Marker, MarkerStore
from .script import RunPaths
from .tmux import respawn_pane, set_pane_title, split_pane
from .types import PaneID, Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class PaneOutcome:
    """What apply did."""

    pane_id: PaneID
    position: Position
    respawned: bool
    marker: Marker

    @property
    def verb(self) -> str:
        return "respawned" if self.respawned else "opened"


def apply(
    position: Position,
    paths: RunPaths,
    store: MarkerStore,
    *,
    full: bool = False,
    title: str = "",
    command: str = "",
    recorded: bool = True,
) -> PaneOutcome:
    """Show the script at paths.script in the pane at position.

    Args:
        position: Target position
        paths: Artifacts of this run (script must already be written)
        store: Marker store to consult and update
        full: Split along the full window edge when creating
        title: Title recorded in the marker
        command: Human-readable command recorded in the marker
        recorded: Whether a transcript is written to paths.log

    Returns:
        PaneOutcome with the pane ID and whether it was respawned

    Raises:
        NoTTYError: If the invoking pane cannot be resolved
        TmuxError: If tmux fails to split or respawn
    """
    source = resolve_invoking_pane()
    script = str(paths.script)

    existing = locate(position, store, use_title=False)
    if existing is not None:
        logger.debug(f"Respawning {existing.pane_id} at {position.value}")
        respawn_pane(existing.pane_id, script)
        pane_id = existing.pane_id
        respawned = True
    else:
        logger.debug(f"Splitting {source} for {position.value} (full={full})")
        pane_id = split_pane(source, position.split_flag, script, full=full)
        respawned = False

    set_pane_title(pane_id, position.pane_title)

    marker = Marker(
        pane_id=pane_id,
        title=title,
        command=command,
        log_file=str(paths.log) if recorded else "",
        script_file=script,
    )
    store.write(position, marker)

    return PaneOutcome(pane_id=pane_id, position=position, respawned=respawned, marker=marker)
