"""Script generation - the executable each pane runs.

A generated script is self-contained: it carries its own colour constants,
an exit trap that reports the exit code, optional paging and the
press-q-to-quit loop. It runs in a fresh process and sees nothing of the
invoking panetap process.

PUBLIC API:
  - RunPaths: Script, transcript and timing paths sharing one stem
  - build_paths: Derive RunPaths for a run
  - ScriptBuilder: Assemble the script text
  - write_script: Write a script and make it executable
"""

from dataclasses import dataclass
from datetime import datetime
from pathlib import Path
from typing import List, Optional
import os
import re
import shlex

from .staging import StagedCommand

RECORDER = "script"
PAGER = "less -R"

_SLUG_PATTERN = re.compile(r"[^A-Za-z0-9]+")
SLUG_LENGTH = 50

# Embedded so the script does not depend on the caller's environment
COLOR_CONSTANTS = [
    "S_DIM=$'\\e[2m'",
    "S_RESET=$'\\e[0m'",
    "C_CYAN=$'\\e[36m'",
]


@dataclass(frozen=True)
class RunPaths:
    """Artifacts of one run, all named ``<stem>.*`` in the log directory."""

    stem: str
    script: Path
    log: Path
    timing: Path


def slugify(raw: str) -> str:
    """Reduce a command to a filename-safe slug."""
    slug = _SLUG_PATTERN.sub("_", raw)[:SLUG_LENGTH]
    return slug or "unknown"


def build_paths(log_dir: Path, raw: str, now: Optional[datetime] = None) -> RunPaths:
    """Build log, timing and script paths sharing a timestamp and slug."""
    now = now or datetime.now()
    stem = f"{now.strftime('%Y%m%dT%H%M%S%f')}-{slugify(raw)}"
    log_dir = Path(log_dir)
    return RunPaths(
        stem=stem,
        script=log_dir / f"{stem}.sh",
        log=log_dir / f"{stem}.script.log",
        timing=log_dir / f"{stem}.timing",
    )


class ScriptBuilder:
    """Bash script builder for pane content.

    Attributes:
        staged: Command to run.
        paths: Where the transcript and timing files go.
        title: Header shown above the output.
        page: Pipe output through the pager.
        interactive: Leave stdin attached and skip the recorder.
        pipefail: Emit ``set -o pipefail``.
        record: Wrap the command in the recorder.
        size_limit: Recorder output cap.
    """

    def __init__(
        self,
        staged: StagedCommand,
        paths: RunPaths,
        title: str = "",
        page: bool = False,
        interactive: bool = False,
        pipefail: bool = True,
        record: bool = True,
        size_limit: str = "5M",
    ):
        self.staged = staged
        self.paths = paths
        self.title = title
        self.page = page
        self.interactive = interactive
        self.pipefail = pipefail
        self.record = record and not interactive
        self.size_limit = size_limit
        self._script_lines: List[str] = []

    def _add_line(self, line: str) -> "ScriptBuilder":
        """Add a line to the script."""
        self._script_lines.append(line)
        return self

    def wrapped_command(self) -> str:
        """The built command, wrapped in the recorder unless interactive."""
        if not self.record:
            return self.staged.built

        # -q quiet, -e return child's exit code, -f flush after each write
        parts = [
            RECORDER,
            "-qef",
            "-c",
            shlex.quote(self.staged.built),
            "-T",
            shlex.quote(str(self.paths.timing)),
            "-o",
            shlex.quote(self.size_limit),
            shlex.quote(str(self.paths.log)),
        ]
        # Keep the recorder from reading keystrokes meant for the user
        return " ".join(parts) + " </dev/null"

    def _title_echo(self) -> str:
        return 'echo "${C_CYAN}=== "' + shlex.quote(self.title) + '" ===${S_RESET}"'

    def _header(self) -> List[str]:
        """Header commands shown before the output."""
        lines = []
        if self.title:
            lines.extend([self._title_echo(), "echo"])
        if self.page:
            lines.extend(['echo "${S_DIM}(scroll: arrows/mouse, q to quit)${S_RESET}"', "echo"])
        elif self.staged.follows:
            lines.extend(['echo "${S_DIM}(Ctrl+C to stop, then q to quit)${S_RESET}"', "echo"])
        return lines

    def _exit_trap(self) -> None:
        self._add_line('__exit_code=""')
        self._add_line("trap '__on_exit' EXIT")
        self._add_line("")
        self._add_line("__on_exit() {")
        # Killed before the command finished: report the shell's own status
        self._add_line("    local __status=$?")
        self._add_line('    [[ -n "${__exit_code}" ]] || __exit_code=${__status}')
        self._add_line("    echo")
        self._add_line('    echo "${S_DIM}(exit code: ${__exit_code})${S_RESET}"')
        if not self.page:
            self._add_line('    echo "${S_DIM}Press ${C_CYAN}q${S_RESET}${S_DIM} to exit${S_RESET}"')
            self._add_line('    while IFS= read -rsn1 __key; do [[ "${__key}" == "q" ]] && break; done')
        self._add_line("}")
        self._add_line("")

    def render(self) -> str:
        """Assemble the complete script text."""
        self._script_lines = []
        self._add_line("#!/usr/bin/env bash")

        if self.pipefail:
            self._add_line("set -o pipefail")

        for constant in COLOR_CONSTANTS:
            self._add_line(constant)

        self._exit_trap()

        # The command keeps lines of its own: a trailing comment or a heredoc
        # terminator must not swallow the closing brace or parenthesis
        command = self.wrapped_command()
        if self.page:
            # The pager takes over the screen, so the header must flow through it
            self._add_line("{")
            for line in self._header():
                self._add_line(line)
            self._add_line(command)
            self._add_line("} | " + PAGER)
        else:
            for line in self._header():
                self._add_line(line)
            self._add_line("(")
            self._add_line(command)
            self._add_line(")")

        # First pipeline stage: the pager must not mask the command's status
        self._add_line("__exit_code=${PIPESTATUS[0]}")

        return "\n".join(self._script_lines) + "\n"


def write_script(path: Path, text: str) -> Path:
    """Write a script file readable and executable only by the owner."""
    path = Path(path)
    path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8")
    os.chmod(path, 0o700)
    return path
