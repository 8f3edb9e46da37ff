"""Pure tmux operations - the multiplexer boundary.

PUBLIC API:
  - run_tmux: Run tmux command and return result
  - check_session: Verify a responsive tmux session
  - get_current_pane: Invoking pane from the environment
  - get_current_window: Window of the invoking pane
  - PaneInfo: Pane details
  - list_panes: List panes with filtering
  - live_pane_ids: IDs of every live pane
  - pane_exists: Check if a pane is live
  - get_pane_pid: Get pane process PID
  - split_pane: Create a new pane
  - respawn_pane: Replace a pane's process
  - set_pane_title: Set a pane's title
  - kill_pane: Kill a pane
  - capture_visible: Capture visible content
  - tty_device: Device number of a tty path
  - TmuxError: Base tmux exception
  - PaneNotFoundError: Pane not found exception
"""

from .core import run_tmux, check_session, get_current_pane, get_current_window

from .pane import (
    PaneInfo,
    list_panes,
    live_pane_ids,
    pane_exists,
    get_pane_pid,
    split_pane,
    respawn_pane,
    set_pane_title,
    kill_pane,
    capture_visible,
    tty_device,
)

from .exceptions import TmuxError, PaneNotFoundError

__all__ = [
    "run_tmux",
    "check_session",
    "get_current_pane",
    "get_current_window",
    "PaneInfo",
    "list_panes",
    "live_pane_ids",
    "pane_exists",
    "get_pane_pid",
    "split_pane",
    "respawn_pane",
    "set_pane_title",
    "kill_pane",
    "capture_visible",
    "tty_device",
    "TmuxError",
    "PaneNotFoundError",
]
