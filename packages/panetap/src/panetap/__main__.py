"""tmux pane manager for auxiliary panes.

Entry point for the panetap command line.
"""

import sys
import logging
from .app import main as run_app

logging.basicConfig(
    level=logging.WARNING, format="%(asctime)s - %(name)s - %(levelname)s - %(message)s", datefmt="%H:%M:%S"
)


def main() -> int:
    """Run panetap with sys.argv and return its exit code."""
    return run_app(sys.argv[1:])


if __name__ == "__main__":
    sys.exit(main())
