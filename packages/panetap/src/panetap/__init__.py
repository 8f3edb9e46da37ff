"""Position-first tmux pane manager.

Opens auxiliary panes beside the pane you work in, showing command output,
followed logs, block-run scripts or files. Panes are tracked across
invocations by marker files, with the pane title as a fallback.

PUBLIC API:
  - app: Typer application with panetap commands
  - main: Run the CLI and return an exit code
"""

from .app import app, main

__version__ = "0.1.0"
__all__ = ["app", "main"]
