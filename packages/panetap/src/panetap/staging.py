"""Command staging - turn exactly one content source into a shell command.

PUBLIC API:
  - RunRequest: Everything a ``run`` invocation asked for
  - StagedCommand: Raw display string and built executable string
  - prepare_request: Resolve stdin and mode defaults, then validate
  - validate_request: Check a normalized request
  - stage_command: Build the executable command for a request
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import List, Optional, TextIO
import shlex
import shutil
import stat
import sys

from .errors import MissingDependencyError, ValidationError
from .types import Position

FOLLOW_TOOL = "tail"
BLOCK_TOOL = "block-run"
BLOCK_TOOL_HINT = "install from https://github.com/shitchell/block-run"
HIGHLIGHT_TOOL = "lessfilter"
VIEWER = "less"

STDIN_SENTINEL = "-"


@dataclass(frozen=True)
class RunRequest:
    """Parsed ``run`` arguments.

    Attributes:
        position: Where the pane goes.
        command: Raw shell command (``-`` reads it from stdin).
        follow: Files to follow continuously.
        blocks: Script to run through block-run.
        view: File to open in the viewer.
        title: Header shown at the top of the pane.
        page: Pipe output through the pager; None means "not given".
        interactive: Leave stdin attached to the pane's user.
        pipefail: Propagate failures through pipelines.
        full: Split along the full window edge.
    """

    position: Position
    command: Optional[str] = None
    follow: List[Path] = field(default_factory=list)
    blocks: Optional[Path] = None
    view: Optional[Path] = None
    title: str = ""
    page: Optional[bool] = None
    interactive: bool = False
    pipefail: bool = True
    full: bool = False

    @property
    def source_count(self) -> int:
        """Number of content sources given."""
        return sum([bool(self.command), bool(self.follow), self.blocks is not None, self.view is not None])


@dataclass(frozen=True)
class StagedCommand:
    """A content source rendered into a command.

    Attributes:
        raw: Human-readable description (stored in the marker).
        built: Executable shell command.
        follows: The command tails files and runs until interrupted.
    """

    raw: str
    built: str
    follows: bool = False


def prepare_request(request: RunRequest, stdin: Optional[TextIO] = None) -> RunRequest:
    """Resolve stdin and mode defaults, then validate.

    - ``--command -`` slurps stdin, which must not be a terminal.
    - ``--run-in-blocks`` pages unless paging was set explicitly.
    - ``--view`` forces interactive mode; the viewer needs the keyboard.

    Raises:
        ValidationError: If the request is not acceptable
        MissingDependencyError: If block-run is needed but not installed
    """
    stdin = sys.stdin if stdin is None else stdin

    if request.command == STDIN_SENTINEL:
        if stdin.isatty():
            raise ValidationError("--command - requires input from stdin (use heredoc or pipe)")
        content = stdin.read()
        if content.endswith("\n"):
            content = content[:-1]
        request = replace(request, command=content)

    page = request.page
    if page is None:
        page = request.blocks is not None
    request = replace(request, page=page)

    if request.view is not None:
        request = replace(request, interactive=True)

    validate_request(request)
    return request


def _is_followable(path: Path) -> bool:
    try:
        mode = path.stat().st_mode
    except OSError:
        return False
    return stat.S_ISREG(mode) or stat.S_ISFIFO(mode)


def validate_request(request: RunRequest) -> None:
    """Validate a normalized request before anything is written."""
    if request.source_count != 1:
        raise ValidationError("exactly one content source required (--command, --follow, --run-in-blocks, or --view)")

    for path in request.follow:
        if not _is_followable(path):
            raise ValidationError(f"file not found: {path}")

    if request.blocks is not None:
        if not request.blocks.is_file():
            raise ValidationError(f"script not found: {request.blocks}")
        if shutil.which(BLOCK_TOOL) is None:
            raise MissingDependencyError(BLOCK_TOOL, BLOCK_TOOL_HINT)

    if request.view is not None and not request.view.exists():
        raise ValidationError(f"file not found: {request.view}")

    if request.view is not None and request.page:
        raise ValidationError("--view and --page are mutually exclusive (--view uses less internally)")

    if request.interactive and request.page:
        raise ValidationError("--interactive and --page are mutually exclusive")


def stage_command(request: RunRequest) -> StagedCommand:
    """Build the executable command for a validated request."""
    if request.command:
        return StagedCommand(raw=request.command, built=request.command)

    if request.follow:
        files = [str(path) for path in request.follow]
        quoted = " ".join(shlex.quote(f) for f in files)
        return StagedCommand(raw=" ".join(files), built=f"{FOLLOW_TOOL} -f {quoted}", follows=True)

    if request.blocks is not None:
        script = str(request.blocks)
        return StagedCommand(raw=script, built=f"{BLOCK_TOOL} {shlex.quote(script)}")

    if request.view is not None:
        view = str(request.view)
        if shutil.which(HIGHLIGHT_TOOL):
            built = f"{HIGHLIGHT_TOOL} {shlex.quote(view)} | {VIEWER} -R"
        else:
            built = f"{VIEWER} {shlex.quote(view)}"
        return StagedCommand(raw=view, built=built)

    raise ValidationError("exactly one content source required (--command, --follow, --run-in-blocks, or --view)")
