"""Pane location - resolve positions and the invoking pane to pane IDs.

PUBLIC API:
  - Located: A found pane and how it was found
  - locate: Resolve a position to a live pane (marker first, title fallback)
  - resolve_invoking_pane: Find the pane panetap was started from
"""

from dataclasses import dataclass
from typing import Optional
import logging
import os

from .errors import NoTTYError
from .markers import MarkerError, MarkerNotFoundError, MarkerStore
from .process.tree import find_controlling_tty
from .tmux import get_current_pane, get_current_window, list_panes, pane_exists, tty_device
from .types import FoundVia, PaneID, Position

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Located:
    """A live pane at a position."""

    pane_id: PaneID
    via: FoundVia

    @property
    def degraded(self) -> bool:
        """True when the marker was lost and the title convention was used."""
        return self.via == "title"


def locate(position: Position, store: MarkerStore, *, use_title: bool = True) -> Optional[Located]:
    """Resolve a position to a live pane.

    Tries the marker first. A marker whose pane is gone is deleted on the
    spot. If no trusted marker remains and use_title is set, the invoking
    window is searched for a pane titled ``panetap:<position>``.

    Args:
        position: Position to resolve
        store: Marker store
        use_title: Allow the title fallback

    Returns:
        Located pane, or None if nothing is at the position
    """
    try:
        marker = store.read(position)
    except MarkerNotFoundError:
        marker = None
    except MarkerError as e:
        logger.debug(f"Ignoring unreadable marker for {position.value}: {e}")
        marker = None

    if marker is not None:
        if pane_exists(marker.pane_id):
            return Located(marker.pane_id, "marker")
        logger.debug(f"Removing stale marker for {position.value} (pane {marker.pane_id} is gone)")
        store.remove(position)

    if not use_title:
        return None

    window = get_current_window()
    if window is None:
        return None

    for pane in list_panes(window=window):
        if pane.pane_title == position.pane_title:
            return Located(pane.pane_id, "title")

    return None


def resolve_invoking_pane() -> PaneID:
    """Find the tmux pane this process was started from.

    Uses $TMUX_PANE when set. Otherwise walks the parent-process chain to
    the first process with a controlling terminal and matches that device
    against the tty of every live pane.

    Raises:
        NoTTYError: If no pane can be matched
    """
    pane_id = get_current_pane()
    if pane_id:
        return pane_id

    tty_nr = find_controlling_tty(os.getpid())
    if tty_nr is None:
        raise NoTTYError("could not determine current tty")

    for pane in list_panes(all=True):
        if tty_device(pane.pane_tty) == tty_nr:
            logger.debug(f"Matched tty of {pane.pane_tty} to pane {pane.pane_id}")
            return pane.pane_id

    raise NoTTYError(f"could not find tmux pane for tty device {tty_nr}")
