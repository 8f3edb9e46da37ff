"""Type definitions for panetap - position-first architecture.

Every pane panetap manages lives at a named position beside the pane the
user is working in. Positions are the only addressing scheme callers see.
"""

from enum import Enum
from typing import Literal, Optional, TypeAlias


# tmux-native identifiers
PaneID: TypeAlias = str  # e.g., "%42" - tmux native pane ID
WindowID: TypeAlias = str  # e.g., "@3"

# How a pane was found: marker file (trusted) or title convention (degraded)
FoundVia: TypeAlias = Literal["marker", "title"]

APP_NAME = "panetap"


class Position(str, Enum):
    """Logical slot for an auxiliary pane."""

    SIDE = "side"
    BELOW = "below"

    @property
    def split_flag(self) -> str:
        """tmux split-window orientation flag for this position."""
        return "-h" if self is Position.SIDE else "-v"

    @property
    def pane_title(self) -> str:
        """Title convention used for fallback discovery."""
        return f"{APP_NAME}:{self.value}"

    @classmethod
    def parse(cls, value: Optional[str]) -> "Position":
        """Parse a position argument.

        Raises:
            ValidationError: If the value is missing or not a known position
        """
        from .errors import ValidationError

        if not value:
            raise ValidationError("position is required (side or below)")
        try:
            return cls(value)
        except ValueError:
            raise ValidationError(f"position must be 'side' or 'below', got: {value}") from None


class Action(str, Enum):
    """Closed set of top-level actions."""

    RUN = "run"
    KILL = "kill"
    LIST = "list"
    CAPTURE = "capture"
    FLUSH = "flush"
    HELP = "help"

    @classmethod
    def parse(cls, value: str) -> Optional["Action"]:
        """Return the action named by value, or None if unknown."""
        try:
            return cls(value)
        except ValueError:
            return None
