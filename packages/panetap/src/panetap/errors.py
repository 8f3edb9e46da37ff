"""Error taxonomy and exit codes for panetap.

Library code raises these exceptions; only the top-level dispatcher in
``panetap.app`` turns them into process exit codes.

PUBLIC API:
  - ExitCode: Process exit codes
  - PanetapError: Base exception for all panetap failures
  - InvalidActionError: Unknown or missing action
  - PreconditionError: Environment not usable (no session, missing tool)
  - MissingDependencyError: Required external tool not on PATH
  - NoTTYError: Invoking pane could not be resolved
  - ValidationError: Arguments are well-formed but unacceptable
  - ExecutionError: A multiplexer or process operation failed
  - format_error: One-line error message
  - format_warning: One-line warning message
"""

from enum import IntEnum


class ExitCode(IntEnum):
    SUCCESS = 0
    ERROR = 1
    INVALID_OPTION = 2
    INVALID_ACTION = 3


class PanetapError(Exception):
    """Base exception for all panetap failures."""

    exit_code: ExitCode = ExitCode.ERROR


class InvalidActionError(PanetapError):
    """Raised when the action is unknown or missing."""

    exit_code = ExitCode.INVALID_ACTION


class PreconditionError(PanetapError):
    """Raised when the environment cannot support the action."""

    pass


class MissingDependencyError(PreconditionError):
    """Raised when a required external tool is not installed."""

    def __init__(self, tool: str, hint: str = ""):
        self.tool = tool
        self.hint = hint
        super().__init__(f"{tool} not found - {hint}" if hint else f"{tool} not found")


class NoTTYError(PreconditionError):
    """Raised when the invoking pane cannot be determined."""

    pass


class ValidationError(PanetapError):
    """Raised when arguments are rejected before any mutation."""

    pass


class ExecutionError(PanetapError):
    """Raised when a pane or process operation fails at runtime."""

    pass


def format_error(message: str) -> str:
    """Format a one-line error message."""
    return f"error: {message}"


def format_warning(message: str) -> str:
    """Format a one-line warning message."""
    return f"warning: {message}"
