"""Core tmux operations - shared utilities for all tmux modules.

PUBLIC API:
  - run_tmux: Execute tmux command and return result
  - check_session: Verify we run inside a responsive tmux session
  - get_current_pane: Get the invoking pane ID from the environment
  - get_current_window: Get the window ID of the invoking pane
"""

import os
import subprocess
from typing import List, Optional, Tuple

from ..errors import PreconditionError
from ..types import PaneID, WindowID


def run_tmux(args: List[str]) -> Tuple[int, str, str]:
    """Run tmux command, return (returncode, stdout, stderr)."""
    cmd = ["tmux"] + args
    try:
        result = subprocess.run(cmd, capture_output=True, text=True)
    except FileNotFoundError:
        return 127, "", "tmux: command not found"
    return result.returncode, result.stdout, result.stderr


def check_session() -> None:
    """Verify we are running inside a tmux session that answers.

    Raises:
        PreconditionError: If $TMUX is unset or the server does not respond
    """
    if not os.environ.get("TMUX"):
        raise PreconditionError("not running inside a tmux session")

    code, _, _ = run_tmux(["display-message", "-p", "#{session_id}"])
    if code != 0:
        raise PreconditionError("tmux session not responding")


def get_current_pane() -> Optional[PaneID]:
    """Get current tmux pane ID from $TMUX_PANE if set."""
    pane_id = os.environ.get("TMUX_PANE", "").strip()
    return pane_id or None


def get_current_window() -> Optional[WindowID]:
    """Get the window ID of the invoking pane.

    Targets $TMUX_PANE when known so the answer is the window we were
    started from, not whichever window the client is looking at.
    """
    args = ["display-message", "-p"]
    pane_id = get_current_pane()
    if pane_id:
        args.extend(["-t", pane_id])
    args.append("#{window_id}")

    code, stdout, _ = run_tmux(args)
    if code == 0 and stdout.strip():
        return stdout.strip()
    return None
