import io
import os
import tempfile
import unittest
from pathlib import Path
from unittest import mock

from panetap.errors import MissingDependencyError, ValidationError
from panetap.staging import RunRequest, prepare_request, stage_command
from panetap.types import Position


class _Stdin(io.StringIO):
    def __init__(self, text: str = "", tty: bool = False):
        super().__init__(text)
        self._tty = tty

    def isatty(self) -> bool:
        return self._tty


class TestStaging(unittest.TestCase):
    def setUp(self) -> None:
        tmp = tempfile.TemporaryDirectory()
        self.addCleanup(tmp.cleanup)
        self.dir = Path(tmp.name)
        self.log = self.dir / "app.log"
        self.log.write_text("started\n")
        self.script = self.dir / "demo.sh"
        self.script.write_text("echo hi\n")

        self.tools = {"tail", "less"}
        patcher = mock.patch("shutil.which", lambda name: f"/usr/bin/{name}" if name in self.tools else None)
        patcher.start()
        self.addCleanup(patcher.stop)

    def prepare(self, stdin=None, **kwargs) -> RunRequest:
        position = kwargs.pop("position", Position.SIDE)
        return prepare_request(RunRequest(position, **kwargs), stdin=stdin or _Stdin())

    def test_command_is_staged_verbatim(self) -> None:
        request = self.prepare(command="ls -la | grep x")
        staged = stage_command(request)

        self.assertEqual(staged.raw, "ls -la | grep x")
        self.assertEqual(staged.built, "ls -la | grep x")
        self.assertFalse(staged.follows)
        self.assertIs(request.page, False)

    def test_command_from_stdin(self) -> None:
        request = self.prepare(command="-", stdin=_Stdin("echo 'hi'\necho there\n"))
        self.assertEqual(request.command, "echo 'hi'\necho there")

    def test_command_from_terminal_stdin_rejected(self) -> None:
        with self.assertRaisesRegex(ValidationError, "requires input from stdin"):
            self.prepare(command="-", stdin=_Stdin(tty=True))

    def test_follow_quotes_each_file(self) -> None:
        spaced = self.dir / "b c.log"
        spaced.write_text("")

        staged = stage_command(self.prepare(position=Position.BELOW, follow=[self.log, spaced]))

        self.assertEqual(staged.raw, f"{self.log} {spaced}")
        self.assertEqual(staged.built, f"tail -f {self.log} '{spaced}'")
        self.assertTrue(staged.follows)

    def test_follow_accepts_fifo(self) -> None:
        fifo = self.dir / "pipe"
        os.mkfifo(fifo)

        self.assertTrue(stage_command(self.prepare(follow=[fifo])).follows)

    def test_follow_rejects_non_files(self) -> None:
        for path in (self.dir / "missing.log", self.dir):
            with self.subTest(path=path):
                with self.assertRaisesRegex(ValidationError, "file not found"):
                    self.prepare(follow=[path])

    def test_blocks_pages_by_default(self) -> None:
        self.tools.add("block-run")

        request = self.prepare(blocks=self.script)

        self.assertIs(request.page, True)
        self.assertEqual(stage_command(request).built, f"block-run {self.script}")

    def test_blocks_explicit_no_page_wins(self) -> None:
        self.tools.add("block-run")
        self.assertIs(self.prepare(blocks=self.script, page=False).page, False)

    def test_blocks_requires_block_run(self) -> None:
        with self.assertRaises(MissingDependencyError) as cm:
            self.prepare(blocks=self.script)
        self.assertTrue(str(cm.exception).startswith("block-run not found - install from"))

    def test_blocks_missing_script(self) -> None:
        self.tools.add("block-run")
        with self.assertRaisesRegex(ValidationError, "script not found"):
            self.prepare(blocks=self.dir / "nope.sh")

    def test_view_forces_interactive(self) -> None:
        request = self.prepare(view=self.log)

        self.assertTrue(request.interactive)
        self.assertEqual(stage_command(request).built, f"less {self.log}")

    def test_view_uses_lessfilter_when_installed(self) -> None:
        self.tools.add("lessfilter")
        self.assertEqual(stage_command(self.prepare(view=self.log)).built, f"lessfilter {self.log} | less -R")

    def test_view_missing_file(self) -> None:
        with self.assertRaisesRegex(ValidationError, "file not found"):
            self.prepare(view=self.dir / "nope")

    def test_exactly_one_source(self) -> None:
        cases = [
            {},
            {"command": ""},
            {"command": "ls", "follow": [self.log]},
            {"command": "ls", "view": self.log},
            {"follow": [self.log], "view": self.log},
        ]
        for kwargs in cases:
            with self.subTest(kwargs=kwargs):
                with self.assertRaisesRegex(ValidationError, "exactly one content source"):
                    self.prepare(**kwargs)

    def test_view_and_page_exclusive(self) -> None:
        with self.assertRaisesRegex(ValidationError, "--view and --page are mutually exclusive"):
            self.prepare(view=self.log, page=True)

    def test_interactive_and_page_exclusive(self) -> None:
        with self.assertRaisesRegex(ValidationError, "--interactive and --page are mutually exclusive"):
            self.prepare(command="top", interactive=True, page=True)


if __name__ == "__main__":
    unittest.main()
