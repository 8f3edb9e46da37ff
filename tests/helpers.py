"""Test support: a fake tmux server and an isolated panetap environment."""

from contextlib import redirect_stderr, redirect_stdout
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, NamedTuple, Optional, Set, Tuple
from unittest import mock
import io
import os
import subprocess
import tempfile
import unittest

from panetap.app import main
from panetap.markers import MarkerStore
from panetap.tmux import core


@dataclass
class FakePane:
    pane_id: str
    window_id: str
    title: str = ""
    pid: int = 1000
    tty: str = "/dev/pts/0"
    command: str = ""
    content: str = ""


# Per tmux command: (boolean flags, flags taking a value)
_GRAMMAR = {
    "display-message": ("p", "t"),
    "list-panes": ("a", "tF"),
    "split-window": ("hvfP", "tF"),
    "respawn-pane": ("k", "t"),
    "select-pane": ("", "tT"),
    "kill-pane": ("", "t"),
    "capture-pane": ("p", "t"),
}


def _parse(name: str, args: List[str]) -> Tuple[Set[str], Dict[str, str], List[str]]:
    bool_flags, value_flags = _GRAMMAR[name]
    flags: Set[str] = set()
    options: Dict[str, str] = {}
    positional: List[str] = []
    i = 0
    while i < len(args):
        arg = args[i]
        if arg.startswith("-") and len(arg) == 2 and arg[1] in value_flags:
            options[arg[1]] = args[i + 1]
            i += 2
            continue
        if arg.startswith("-") and len(arg) == 2 and arg[1] in bool_flags:
            flags.add(arg[1])
        else:
            positional.append(arg)
        i += 1
    return flags, options, positional


class FakeTmux:
    """In-memory tmux server answering the subset of commands panetap issues."""

    def __init__(self):
        self.panes: Dict[str, FakePane] = {}
        self.calls: List[List[str]] = []
        self.fail: Set[str] = set()
        self.current: Optional[str] = None
        self._next_id = 0

    def add_pane(self, title: str = "", window_id: str = "@1", content: str = "") -> str:
        pane_id = f"%{self._next_id}"
        self.panes[pane_id] = FakePane(
            pane_id=pane_id,
            window_id=window_id,
            title=title,
            pid=1000 + self._next_id,
            tty=f"/dev/pts/{self._next_id}",
            content=content,
        )
        self._next_id += 1
        return pane_id

    def calls_to(self, name: str) -> List[List[str]]:
        return [call for call in self.calls if call[0] == name]

    def run(self, cmd, **kwargs) -> subprocess.CompletedProcess:
        assert cmd[0] == "tmux"
        args = list(cmd[1:])
        self.calls.append(args)
        name = args[0]
        if name in self.fail:
            return self._result(cmd, 1, "", f"{name} failed")
        flags, options, positional = _parse(name, args[1:])
        handler = getattr(self, "_" + name.replace("-", "_"))
        code, out, err = handler(flags, options, positional)
        return self._result(cmd, code, out, err)

    @staticmethod
    def _result(cmd, code: int, out: str, err: str) -> subprocess.CompletedProcess:
        return subprocess.CompletedProcess(cmd, code, stdout=out, stderr=err)

    @staticmethod
    def _render(fmt: str, pane: FakePane) -> str:
        values = {
            "#{pane_id}": pane.pane_id,
            "#{window_id}": pane.window_id,
            "#{pane_title}": pane.title,
            "#{pane_pid}": str(pane.pid),
            "#{pane_tty}": pane.tty,
            "#{session_id}": "$0",
        }
        for token, value in values.items():
            fmt = fmt.replace(token, value)
        return fmt

    def _display_message(self, flags, options, positional):
        target = options.get("t", self.current)
        pane = self.panes.get(target or "")
        if pane is None:
            return 1, "", f"can't find pane: {target}"
        return 0, self._render(positional[0], pane) + "\n", ""

    def _list_panes(self, flags, options, positional):
        fmt = options.get("F", "#{pane_id}")
        if "a" in flags:
            panes = list(self.panes.values())
        else:
            target = options.get("t", "")
            panes = [p for p in self.panes.values() if p.window_id == target or p.pane_id == target]
            if not panes:
                return 1, "", f"can't find window: {target}"
        return 0, "".join(self._render(fmt, p) + "\n" for p in panes), ""

    def _split_window(self, flags, options, positional):
        source = self.panes.get(options.get("t", ""))
        if source is None:
            return 1, "", "can't find pane"
        pane_id = self.add_pane(window_id=source.window_id)
        self.panes[pane_id].command = positional[-1] if positional else ""
        out = self._render(options.get("F", "#{pane_id}"), self.panes[pane_id]) + "\n" if "P" in flags else ""
        return 0, out, ""

    def _respawn_pane(self, flags, options, positional):
        pane = self.panes.get(options.get("t", ""))
        if pane is None:
            return 1, "", "can't find pane"
        pane.command = positional[-1] if positional else ""
        return 0, "", ""

    def _select_pane(self, flags, options, positional):
        pane = self.panes.get(options.get("t", ""))
        if pane is None:
            return 1, "", "can't find pane"
        if "T" in options:
            pane.title = options["T"]
        return 0, "", ""

    def _kill_pane(self, flags, options, positional):
        if self.panes.pop(options.get("t", ""), None) is None:
            return 1, "", "can't find pane"
        return 0, "", ""

    def _capture_pane(self, flags, options, positional):
        pane = self.panes.get(options.get("t", ""))
        if pane is None:
            return 1, "", "can't find pane"
        return 0, pane.content + "\n\n\n", ""


class CliResult(NamedTuple):
    code: int
    out: str
    err: str


class PanetapTestCase(unittest.TestCase):
    """Base case: temp directories, a fake tmux server with one pane (%0)
    that panetap is invoked from, and a controllable set of installed tools.
    """

    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.tmp = Path(tmp.name)
        self.marker_dir = self.tmp / "markers"
        self.log_dir = self.tmp / "logs"
        self.config_file = self.tmp / "panetap.conf"

        self.tmux = FakeTmux()
        self.tmux.current = self.tmux.add_pane(title="shell")
        self.tools = {"script", "tail", "less"}

        self.patch(
            mock.patch.dict(
                os.environ,
                {
                    "TMUX": "/tmp/tmux-1000/default,4242,0",
                    "TMUX_PANE": self.tmux.current,
                    "PANETAP_MARKER_DIR": str(self.marker_dir),
                    "PANETAP_LOG_DIR": str(self.log_dir),
                    "PANETAP_CONFIG_FILE": str(self.config_file),
                    "PANETAP_COLOR": "never",
                },
            )
        )
        self.patch(mock.patch.object(core.subprocess, "run", self.tmux.run))
        self.patch(mock.patch("shutil.which", self._which))

    def patch(self, patcher):
        """Start a patcher and stop it when the test ends."""
        started = patcher.start()
        self.addCleanup(patcher.stop)
        return started

    def _which(self, name, *args, **kwargs):
        return f"/usr/bin/{name}" if name in self.tools else None

    def store(self) -> MarkerStore:
        return MarkerStore(self.marker_dir)

    def write_file(self, name: str, text: str = "") -> Path:
        path = self.tmp / name
        path.write_text(text)
        return path

    def cli(self, *args: str) -> CliResult:
        """Run panetap with args, capturing stdout and stderr."""
        out, err = io.StringIO(), io.StringIO()
        with redirect_stdout(out), redirect_stderr(err):
            code = main(list(args))
        return CliResult(int(code), out.getvalue(), err.getvalue())
