"""Marker files - persisted pane identity, one file per position.

A marker binds a position to the tmux pane currently showing it, plus the
metadata ``list`` displays and housekeeping needs. Markers are the only
state panetap keeps between invocations.

File format is one ``key=base64(value)`` line per field. Keys are restricted
identifiers; values round-trip arbitrary text (quotes, newlines, control
characters) without any shell-specific escaping.

PUBLIC API:
  - Marker: Immutable marker record
  - MarkerStore: Read/write/remove markers in a directory
  - MarkerError: Base marker exception
  - MarkerNotFoundError: No marker for position
  - MarkerCorruptError: Marker content is invalid
  - MarkerTamperedError: Marker not owned by the current user
  - encode_fields: Serialize a field map
  - decode_fields: Parse a serialized field map
"""

from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Dict, Iterator, Mapping, Tuple
import base64
import binascii
import os
import re
import tempfile

from .errors import PanetapError
from .types import PaneID, Position

_KEY_PATTERN = re.compile(r"^[a-z_][a-z0-9_]*$")
MARKER_SUFFIX = ".marker"


class MarkerError(PanetapError):
    """Base exception for marker operations."""

    pass


class MarkerNotFoundError(MarkerError):
    """Raised when no marker exists for a position."""

    pass


class MarkerCorruptError(MarkerError):
    """Raised when a marker file cannot be parsed safely."""

    pass


class MarkerTamperedError(MarkerError):
    """Raised when a marker file is owned by another user."""

    pass


@dataclass(frozen=True)
class Marker:
    """Identity record for the pane at a position."""

    pane_id: PaneID
    title: str = ""
    command: str = ""
    log_file: str = ""
    script_file: str = ""

    def to_fields(self) -> Dict[str, str]:
        return asdict(self)

    @classmethod
    def from_fields(cls, fields: Mapping[str, str]) -> "Marker":
        """Build a marker from a decoded field map.

        Unknown keys are ignored so older or newer markers still load.

        Raises:
            MarkerCorruptError: If pane_id is missing
        """
        if not fields.get("pane_id"):
            raise MarkerCorruptError("marker has no pane_id")
        return cls(
            pane_id=fields["pane_id"],
            title=fields.get("title", ""),
            command=fields.get("command", ""),
            log_file=fields.get("log_file", ""),
            script_file=fields.get("script_file", ""),
        )


def encode_fields(fields: Mapping[str, str]) -> str:
    """Serialize a field map to ``key=base64(value)`` lines.

    Raises:
        MarkerCorruptError: If a key is not a restricted identifier
    """
    lines = []
    for key, value in fields.items():
        if not _KEY_PATTERN.match(key):
            raise MarkerCorruptError(f"invalid marker key: {key!r}")
        encoded = base64.b64encode(value.encode("utf-8")).decode("ascii")
        lines.append(f"{key}={encoded}\n")
    return "".join(lines)


def decode_fields(text: str) -> Dict[str, str]:
    """Parse ``key=base64(value)`` lines back into a field map.

    Raises:
        MarkerCorruptError: On any invalid key, line or value
    """
    fields: Dict[str, str] = {}
    for line in text.splitlines():
        if not line:
            continue
        key, sep, value = line.partition("=")
        if not sep:
            raise MarkerCorruptError(f"invalid marker line: {line!r}")
        if not _KEY_PATTERN.match(key):
            raise MarkerCorruptError(f"invalid marker key: {key!r}")
        try:
            fields[key] = base64.b64decode(value, validate=True).decode("utf-8")
        except (binascii.Error, UnicodeDecodeError) as e:
            raise MarkerCorruptError(f"invalid value for marker key {key!r}: {e}") from e
    return fields


class MarkerStore:
    """Marker files in a directory, one per position.

    Every call returns a fresh Marker; the store keeps no state besides the
    directory it manages.
    """

    def __init__(self, directory: Path):
        self.directory = Path(directory)

    def path(self, position: Position) -> Path:
        return self.directory / f"{position.value}{MARKER_SUFFIX}"

    def write(self, position: Position, marker: Marker) -> Path:
        """Atomically replace the marker for position."""
        return self.write_fields(position, marker.to_fields())

    def write_fields(self, position: Position, fields: Mapping[str, str]) -> Path:
        """Atomically write a raw field map for position.

        The content goes to a temporary file in the same directory which is
        then renamed into place, so readers see the old or the new marker,
        never a mix.
        """
        content = encode_fields(fields)
        target = self.path(position)
        self.directory.mkdir(mode=0o700, parents=True, exist_ok=True)

        fd, tmp = tempfile.mkstemp(prefix=target.name + ".", dir=str(self.directory))
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(content)
            os.replace(tmp, target)
        finally:
            if os.path.exists(tmp):
                os.unlink(tmp)
        return target

    def read(self, position: Position) -> Marker:
        """Read the marker for position.

        Raises:
            MarkerNotFoundError: If there is no marker
            MarkerTamperedError: If the file belongs to another user
            MarkerCorruptError: If the content is invalid
        """
        return Marker.from_fields(self.read_fields(position))

    def read_fields(self, position: Position) -> Dict[str, str]:
        """Read the raw field map for position (same errors as read)."""
        path = self.path(position)
        try:
            st = path.stat()
        except FileNotFoundError:
            raise MarkerNotFoundError(f"no marker for position '{position.value}'") from None

        if st.st_uid != os.geteuid():
            raise MarkerTamperedError(f"marker file not owned by current user: {path}")

        try:
            text = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raise MarkerNotFoundError(f"no marker for position '{position.value}'") from None
        except UnicodeDecodeError as e:
            raise MarkerCorruptError(f"marker file is not text: {path}") from e

        return decode_fields(text)

    def remove(self, position: Position) -> None:
        """Remove the marker for position if it exists."""
        try:
            self.path(position).unlink()
        except FileNotFoundError:
            pass

    def markers(self) -> Iterator[Tuple[Position, Path]]:
        """Iterate (position, path) for every marker file present."""
        if not self.directory.is_dir():
            return
        for path in sorted(self.directory.glob(f"*{MARKER_SUFFIX}")):
            try:
                position = Position(path.name[: -len(MARKER_SUFFIX)])
            except ValueError:
                continue
            yield position, path

    def temp_files(self) -> Iterator[Path]:
        """Iterate temporary files left behind by interrupted writes."""
        if not self.directory.is_dir():
            return
        yield from sorted(self.directory.glob(f"*{MARKER_SUFFIX}.*"))
