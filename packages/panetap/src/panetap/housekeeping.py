"""Housekeeping - best-effort cleanup run before every action.

Nothing here is required for correctness. Every error is logged at debug
level and swallowed so cleanup never blocks the action the user asked for.
"""

from pathlib import Path
from typing import Optional, Set
import logging
import time

from .markers import MarkerError, MarkerStore
from .tmux import live_pane_ids

logger = logging.getLogger(__name__)

SECONDS_PER_DAY = 86400
TEMP_FILE_MAX_AGE = 60

_ARTIFACT_SUFFIXES = (".script.log", ".timing", ".sh")


def _stem_of(path: str) -> Optional[str]:
    name = Path(path).name
    for suffix in _ARTIFACT_SUFFIXES:
        if name.endswith(suffix):
            return name[: -len(suffix)]
    return name or None


def reap_stale_markers(store: MarkerStore) -> int:
    """Remove markers whose pane no longer exists.

    Returns:
        Number of markers removed
    """
    live = live_pane_ids()
    removed = 0

    for position, path in store.markers():
        try:
            marker = store.read(position)
        except MarkerError as e:
            logger.debug(f"Skipping unreadable marker {path}: {e}")
            continue

        if marker.pane_id not in live:
            try:
                store.remove(position)
                removed += 1
                logger.debug(f"Reaped stale marker {path} (pane {marker.pane_id})")
            except OSError as e:
                logger.debug(f"Could not remove {path}: {e}")

    return removed


def reap_temp_files(store: MarkerStore, max_age: float = TEMP_FILE_MAX_AGE, now: Optional[float] = None) -> int:
    """Remove marker temp files older than max_age seconds.

    Younger files may belong to a write still in progress and are kept.

    Returns:
        Number of files removed
    """
    cutoff = (time.time() if now is None else now) - max_age
    removed = 0

    for path in store.temp_files():
        try:
            if path.stat().st_mtime >= cutoff:
                continue
            path.unlink()
            removed += 1
            logger.debug(f"Removed leftover marker temp file {path}")
        except OSError as e:
            logger.debug(f"Could not remove {path}: {e}")

    return removed


def protected_stems(store: MarkerStore) -> Set[str]:
    """Artifact stems referenced by every readable marker."""
    stems: Set[str] = set()
    for position, path in store.markers():
        try:
            marker = store.read(position)
        except MarkerError as e:
            logger.debug(f"Skipping unreadable marker {path}: {e}")
            continue
        for artifact in (marker.log_file, marker.script_file):
            stem = _stem_of(artifact) if artifact else None
            if stem:
                stems.add(stem)
    return stems


def prune_logs(store: MarkerStore, log_dir: Path, retention_days: float, now: Optional[float] = None) -> int:
    """Delete run artifacts older than the retention window.

    Files sharing a stem with a current marker's log or script are kept
    regardless of age.

    Returns:
        Number of files deleted
    """
    log_dir = Path(log_dir)
    if not log_dir.is_dir():
        return 0

    cutoff = (time.time() if now is None else now) - retention_days * SECONDS_PER_DAY
    keep = protected_stems(store)
    deleted = 0

    for path in log_dir.rglob("*"):
        try:
            if not path.is_file() or path.stat().st_mtime >= cutoff:
                continue
            if _stem_of(path.name) in keep:
                continue
            path.unlink()
            deleted += 1
        except OSError as e:
            logger.debug(f"Could not prune {path}: {e}")

    return deleted


def run_housekeeping(store: MarkerStore, log_dir: Path, retention_days: float) -> None:
    """Reap stale markers and temp files, then prune expired logs. Never raises."""
    try:
        reap_temp_files(store)
    except Exception as e:
        logger.debug(f"Temp file reaping failed: {e}")

    try:
        reaped = reap_stale_markers(store)
        if reaped:
            logger.debug(f"Reaped {reaped} stale marker(s)")
    except Exception as e:
        logger.debug(f"Stale marker reaping failed: {e}")

    try:
        pruned = prune_logs(store, log_dir, retention_days)
        if pruned:
            logger.debug(f"Pruned {pruned} old log file(s)")
    except Exception as e:
        logger.debug(f"Log pruning failed: {e}")
