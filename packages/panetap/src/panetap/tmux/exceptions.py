"""Tmux-specific exceptions.

PUBLIC API:
  - TmuxError: Base exception for all tmux operations
  - PaneNotFoundError: Pane not found exception
"""

from ..errors import ExecutionError


class TmuxError(ExecutionError):
    """Base exception for all tmux operations."""

    pass


class PaneNotFoundError(TmuxError):
    """Raised when a tmux pane cannot be found."""

    pass
