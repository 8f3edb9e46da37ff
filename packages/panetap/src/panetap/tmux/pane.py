"""Pane operations - all pane-related tmux primitives panetap issues."""

from typing import List, Optional, Sequence, Set
from dataclasses import dataclass
import logging
import os

from .core import run_tmux
from .exceptions import PaneNotFoundError, TmuxError
from ..types import PaneID

logger = logging.getLogger(__name__)

# Title goes last: it is the only field that may contain the separator
_PANE_FORMAT = "\t".join(["#{pane_id}", "#{window_id}", "#{pane_pid}", "#{pane_tty}", "#{pane_title}"])


@dataclass
class PaneInfo:
    """Information about a tmux pane."""

    pane_id: PaneID  # %42
    window_id: str  # @3
    pane_title: str
    pane_pid: int
    pane_tty: str  # /dev/pts/7


def _tmux_checked(args: Sequence[str], action: str) -> str:
    """Run tmux and return stdout, raising TmuxError('failed to <action>: ...') on failure."""
    code, stdout, stderr = run_tmux(list(args))
    if code != 0:
        detail = stderr.strip()
        raise TmuxError(f"failed to {action}: {detail}" if detail else f"failed to {action}")
    return stdout


def _parse_pane_line(line: str) -> Optional[PaneInfo]:
    parts = line.split("\t", 4)
    if len(parts) != 5:
        return None
    pane_id, window_id, pid, tty, title = parts
    try:
        return PaneInfo(pane_id=pane_id, window_id=window_id, pane_title=title, pane_pid=int(pid), pane_tty=tty)
    except ValueError:
        return None


def list_panes(all: bool = True, window: Optional[str] = None) -> List[PaneInfo]:
    """List tmux panes in one window, or across the server when no window is given.

    Returns an empty list when tmux cannot answer.
    """
    cmd = ["list-panes"]
    if window:
        cmd += ["-t", window]
    elif all:
        cmd.append("-a")
    cmd += ["-F", _PANE_FORMAT]

    code, stdout, _ = run_tmux(cmd)
    if code != 0:
        return []

    panes = []
    for line in filter(None, stdout.splitlines()):
        pane = _parse_pane_line(line)
        if pane is None:
            logger.debug(f"Skipping unparsable pane line: {line!r}")
            continue
        panes.append(pane)
    return panes


def live_pane_ids() -> Set[PaneID]:
    """Get the IDs of every pane on the server.

    Raises:
        TmuxError: If tmux cannot list panes (an empty answer would make
            every marker look stale)
    """
    stdout = _tmux_checked(["list-panes", "-a", "-F", "#{pane_id}"], "list panes")
    return {line.strip() for line in stdout.splitlines() if line.strip()}


def pane_exists(pane_id: Optional[PaneID]) -> bool:
    """Check if pane ID exists in tmux."""
    return bool(pane_id) and pane_id in live_pane_ids()


def get_pane_pid(pane_id: PaneID) -> int:
    """Get the PID of the shell tmux started in a pane."""
    code, stdout, stderr = run_tmux(["display-message", "-p", "-t", pane_id, "#{pane_pid}"])
    if code != 0:
        raise PaneNotFoundError(f"failed to get pane PID: {stderr.strip()}")
    value = stdout.strip()
    if not value.isdigit():
        raise TmuxError(f"failed to parse PID: invalid format '{value}'")
    return int(value)


def split_pane(source: PaneID, flag: str, command: str, full: bool = False) -> PaneID:
    """Split a new pane off source running command.

    Args:
        source: Pane to split relative to
        flag: Orientation flag ("-h" or "-v")
        command: Command the new pane runs
        full: Span the full window width/height instead of the source pane

    Returns:
        ID of the new pane

    Raises:
        TmuxError: If tmux refuses the split
    """
    args = ["split-window", flag] + (["-f"] if full else [])
    args += ["-t", source, "-P", "-F", "#{pane_id}", command]

    pane_id = _tmux_checked(args, "create pane").strip()
    if not pane_id:
        raise TmuxError("failed to create pane")
    return pane_id


def respawn_pane(pane_id: PaneID, command: str) -> None:
    """Replace the process running in a pane, keeping the pane itself."""
    _tmux_checked(["respawn-pane", "-k", "-t", pane_id, command], "respawn pane")


def set_pane_title(pane_id: PaneID, title: str) -> bool:
    """Set a pane's display title."""
    code, _, stderr = run_tmux(["select-pane", "-t", pane_id, "-T", title])
    if code != 0:
        logger.warning(f"Could not set title of {pane_id}: {stderr.strip()}")
    return code == 0


def kill_pane(pane_id: PaneID) -> None:
    """Kill a pane and everything running in it."""
    _tmux_checked(["kill-pane", "-t", pane_id], "kill pane")


def capture_visible(pane_id: PaneID) -> str:
    """Capture the visible screen of a pane.

    tmux pads the capture with blank rows up to the pane height; those are
    dropped while blank lines inside the content are kept.
    """
    text = _tmux_checked(["capture-pane", "-p", "-t", pane_id], "capture pane").rstrip()
    return text + "\n" if text else ""


def tty_device(path: str) -> Optional[int]:
    """Get the device number of a tty path, or None if it cannot be stat'ed."""
    try:
        return os.stat(path).st_rdev
    except OSError:
        return None
