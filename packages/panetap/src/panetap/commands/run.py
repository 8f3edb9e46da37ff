"""Run command - stage a content source and show it in the pane at a position.

Pipeline: RunRequest -> StagedCommand -> generated script -> pane.
"""

from pathlib import Path
from typing import List, Optional
import logging
import shutil

import typer
from click.core import ParameterSource
from rich.markup import escape

from ..app import app
from ..lifecycle import apply
from ..script import RECORDER, ScriptBuilder, build_paths, write_script
from ..staging import RunRequest, prepare_request, stage_command
from ..types import Action, Position
from ._helpers import get_state, prepare

logger = logging.getLogger(__name__)

EXAMPLES = """\b
Examples:
  panetap run side --title "SQL JOINs" --command './demo.sql'
  panetap run below --follow /var/log/nginx/access.log
  panetap run side --page --command 'docker images'
  panetap run side --view ~/.bashrc
  panetap run side --command - <<'EOF'
  echo "Hello!"
  EOF
"""


def _given(ctx: typer.Context, name: str) -> bool:
    return ctx.get_parameter_source(name) not in (None, ParameterSource.DEFAULT)


@app.command(Action.RUN.value, epilog=EXAMPLES)
def run(
    ctx: typer.Context,
    position: Optional[str] = typer.Argument(None, metavar="POSITION", help="where to open the pane (side or below)"),
    command: Optional[str] = typer.Option(
        None, "--command", metavar="CMD", help="run arbitrary command (use '-' to read from stdin)"
    ),
    follow: Optional[List[Path]] = typer.Option(
        None, "--follow", metavar="FILE", help="shorthand for tail -f <file> (repeatable)"
    ),
    blocks: Optional[Path] = typer.Option(
        None, "--run-in-blocks", metavar="SCRIPT", help="run script via block-run (notebook-style)"
    ),
    view: Optional[Path] = typer.Option(
        None, "--view", metavar="FILE", help="view file in less (uses lessfilter if available)"
    ),
    title: str = typer.Option("", "--title", help="label shown at top of pane"),
    page: Optional[bool] = typer.Option(
        None, "--page/--no-page", help="pipe through less -R (default only for --run-in-blocks)"
    ),
    interactive: bool = typer.Option(False, "--interactive", help="enable stdin for interactive commands"),
    pipefail: bool = typer.Option(True, "--pipefail/--no-pipefail", help="propagate pipeline failures"),
    full: Optional[bool] = typer.Option(
        None, "--full/--no-full", help="pane spans full window width/height instead of the current pane"
    ),
):
    """Create or replace the pane at a position.

    Exactly one content source is required: --command, --follow,
    --run-in-blocks or --view.
    """
    state = get_state(ctx)
    target = Position.parse(position)
    store = prepare(state)

    # Unset tri-state flags fall back to mode and config defaults
    if not _given(ctx, "page"):
        page = None
    if not _given(ctx, "full"):
        full = None

    request = prepare_request(
        RunRequest(
            position=target,
            command=command,
            follow=list(follow or []),
            blocks=blocks,
            view=view,
            title=title,
            page=page,
            interactive=interactive,
            pipefail=pipefail,
            full=state.config.create_full_panes if full is None else full,
        )
    )
    staged = stage_command(request)
    paths = build_paths(state.config.logs, staged.raw)

    record = not request.interactive
    if record and shutil.which(RECORDER) is None:
        state.warn(f"{RECORDER} not found - running without a transcript")
        record = False

    builder = ScriptBuilder(
        staged,
        paths,
        title=request.title,
        page=bool(request.page),
        interactive=request.interactive,
        pipefail=request.pipefail,
        record=record,
        size_limit=state.config.log_size_limit,
    )
    write_script(paths.script, builder.render())
    logger.debug(f"Wrote {paths.script}")

    outcome = apply(
        target,
        paths,
        store,
        full=request.full,
        title=request.title,
        command=staged.raw,
        recorded=record,
    )

    console = state.console
    console.print(f"{outcome.verb} pane [cyan]{escape(outcome.pane_id)}[/cyan] at position '{target.value}'")
    if record:
        console.print(f"log: {escape(str(paths.log))}")
    console.print(f"script: {escape(str(paths.script))}")
