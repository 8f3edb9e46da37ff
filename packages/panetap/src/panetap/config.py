"""Configuration management for panetap.

Defaults are overridden by PANETAP_* environment variables, which are in
turn overridden by a KEY=value config file. Command-line flags win over all
of them and are applied by the commands themselves.

Config file format (``~/.panetap.conf`` unless told otherwise)::

    # comments and blank lines are ignored
    LOG_SIZE_LIMIT=10M
    LOG_RETENTION_DAYS=7
    CREATE_FULL_PANES=true

Each malformed line is rejected on its own; the rest of the file still loads.
"""

from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Callable, Dict, Mapping, Optional, Tuple
import getpass
import logging
import os
import re

from .errors import PreconditionError

logger = logging.getLogger(__name__)

ENV_PREFIX = "PANETAP_"
DEFAULT_CONFIG_FILE = Path("~/.panetap.conf")

_KEY_PATTERN = re.compile(r"^[A-Z_][A-Z0-9_]*$")
_SIZE_PATTERN = re.compile(r"^\d+[KMG]?$")
_TRUE = frozenset(["true", "yes", "on", "1"])
_FALSE = frozenset(["false", "no", "off", "0"])


def _default_marker_dir(environ: Optional[Mapping[str, str]] = None) -> Path:
    """Per-user runtime directory for marker files."""
    environ = os.environ if environ is None else environ
    runtime_dir = environ.get("XDG_RUNTIME_DIR")
    if runtime_dir:
        return Path(runtime_dir) / "panetap"
    return Path(f"/tmp/panetap.{getpass.getuser()}")


def _parse_bool(value: str) -> bool:
    lowered = value.lower()
    if lowered in _TRUE:
        return True
    if lowered in _FALSE:
        return False
    raise ValueError(f"expected true or false, got: {value}")


def _parse_size(value: str) -> str:
    if not _SIZE_PATTERN.match(value):
        raise ValueError(f"expected a size like 5M, got: {value}")
    return value


def _parse_days(value: str) -> float:
    days = float(value)
    if days < 0:
        raise ValueError(f"expected a non-negative number of days, got: {value}")
    return days


def _parse_path(value: str) -> Path:
    if not value:
        raise ValueError("expected a path")
    return Path(value).expanduser()


# Config key -> (Config attribute, value parser)
_KEYS: Dict[str, Tuple[str, Callable[[str], object]]] = {
    "MARKER_DIR": ("marker_dir", _parse_path),
    "LOG_DIR": ("log_dir", _parse_path),
    "LOG_SIZE_LIMIT": ("log_size_limit", _parse_size),
    "LOG_RETENTION_DAYS": ("log_retention_days", _parse_days),
    "CREATE_FULL_PANES": ("create_full_panes", _parse_bool),
}


@dataclass(frozen=True)
class Config:
    """Resolved panetap settings.

    Attributes:
        marker_dir: Directory holding one marker file per position.
        log_dir: Directory holding transcripts, timing files and scripts.
        log_size_limit: Recorder output cap passed to ``script -o``.
        log_retention_days: Age after which unreferenced logs are pruned.
        create_full_panes: Default for ``--full``.
        config_file: File the settings were read from, if any.
        warnings: Messages for rejected config lines.
    """

    marker_dir: Path = field(default_factory=_default_marker_dir)
    log_dir: Optional[Path] = None
    log_size_limit: str = "5M"
    log_retention_days: float = 3
    create_full_panes: bool = False
    config_file: Optional[Path] = None
    warnings: Tuple[str, ...] = ()

    @property
    def logs(self) -> Path:
        """Log directory, defaulting to a subdirectory of the marker directory."""
        return self.log_dir if self.log_dir is not None else self.marker_dir / "logs"


def _strip_quotes(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in "\"'":
        return value[1:-1]
    return value


def parse_config_lines(lines, source: str = "config") -> Tuple[Dict[str, object], list[str]]:
    """Parse KEY=value lines.

    Args:
        lines: Iterable of raw lines
        source: Label used in rejection messages

    Returns:
        (values keyed by Config attribute, rejection messages)
    """
    values: Dict[str, object] = {}
    rejected: list[str] = []

    for lineno, raw in enumerate(lines, 1):
        line = raw.strip()
        if not line or line.startswith("#"):
            continue

        key, sep, value = line.partition("=")
        key = key.strip()
        if not sep:
            rejected.append(f"{source}:{lineno}: expected KEY=value, got: {line}")
            continue
        if not _KEY_PATTERN.match(key):
            rejected.append(f"{source}:{lineno}: invalid config key: {key}")
            continue
        if key not in _KEYS:
            rejected.append(f"{source}:{lineno}: unknown config key: {key}")
            continue

        attr, parse = _KEYS[key]
        try:
            values[attr] = parse(_strip_quotes(value.strip()))
        except ValueError as e:
            rejected.append(f"{source}:{lineno}: invalid value for {key}: {e}")

    return values, rejected


def _from_environ(environ: Mapping[str, str]) -> Tuple[Dict[str, object], list[str]]:
    values: Dict[str, object] = {}
    rejected: list[str] = []

    for key, (attr, parse) in _KEYS.items():
        raw = environ.get(ENV_PREFIX + key)
        if raw is None:
            continue
        try:
            values[attr] = parse(raw.strip())
        except ValueError as e:
            rejected.append(f"{ENV_PREFIX}{key}: {e}")

    return values, rejected


def resolve_config_file(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Path:
    """Pick the config file: explicit path, $PANETAP_CONFIG_FILE, or the default."""
    environ = os.environ if environ is None else environ
    if path is not None:
        return Path(path).expanduser()
    env_path = environ.get(ENV_PREFIX + "CONFIG_FILE")
    if env_path:
        return Path(env_path).expanduser()
    return DEFAULT_CONFIG_FILE.expanduser()


def load_config(path: Optional[Path] = None, environ: Optional[Mapping[str, str]] = None) -> Config:
    """Load configuration from environment and config file.

    A missing config file is not an error. An unreadable one is reported
    as a warning and ignored.
    """
    environ = os.environ if environ is None else environ
    config = Config(marker_dir=_default_marker_dir(environ))

    env_values, warnings = _from_environ(environ)
    config = replace(config, **env_values)

    config_file = resolve_config_file(path, environ)
    if config_file.is_file():
        try:
            with open(config_file, "r", encoding="utf-8") as f:
                file_values, rejected = parse_config_lines(f, source=str(config_file))
        except (OSError, UnicodeDecodeError) as e:
            warnings.append(f"could not read config file {config_file}: {e}")
        else:
            warnings.extend(rejected)
            config = replace(config, config_file=config_file, **file_values)

    for message in warnings:
        logger.debug(f"Config rejected: {message}")

    return replace(config, warnings=tuple(warnings))


def ensure_directories(config: Config) -> None:
    """Create marker and log directories, private to the current user.

    Raises:
        PreconditionError: If either directory cannot be created
    """
    try:
        config.marker_dir.mkdir(mode=0o700, parents=True, exist_ok=True)
        config.logs.mkdir(mode=0o700, parents=True, exist_ok=True)
    except OSError as e:
        raise PreconditionError(f"failed to create directories: {e}") from e
