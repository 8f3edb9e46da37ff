"""Process tree analysis using /proc filesystem.

Only what panetap needs: finding the recorder running below a pane's
shell, and walking up from our own process to its controlling terminal.

PUBLIC API:
  - ProcessNode: Tree node with process information (dataclass)
  - read_stat: Parse /proc/<pid>/stat into a ProcessNode
  - scan_processes: Read every process from /proc
  - get_process_tree: Build the tree below a root PID
  - find_descendants: Find processes by name below a tree root
  - find_controlling_tty: Walk the parent chain to the first process with a tty
"""

import logging
import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set

logger = logging.getLogger(__name__)

PROC = "/proc"


@dataclass
class ProcessNode:
    """Tree node with process information.

    Attributes:
        pid: Process ID.
        name: Process name (comm).
        ppid: Parent process ID.
        tty_nr: Device number of the controlling terminal (0 if none).
        children: List of child ProcessNodes.
    """

    pid: int
    name: str
    ppid: int
    tty_nr: int = 0
    children: List["ProcessNode"] = field(default_factory=list)

    @property
    def has_tty(self) -> bool:
        return self.tty_nr != 0


def read_stat(pid: int) -> Optional[ProcessNode]:
    """Read one process from /proc/<pid>/stat.

    The comm field sits in parentheses and may itself contain spaces or
    parentheses, so fields are split after the last ``)``.

    Returns:
        ProcessNode without children, or None if the process is gone or the
        stat line is malformed.
    """
    try:
        with open(f"{PROC}/{pid}/stat", "r", encoding="utf-8", errors="replace") as f:
            data = f.read()
    except OSError as e:
        logger.debug(f"Could not read stat for PID {pid}: {e}")
        return None

    left, right = data.find("("), data.rfind(")")
    if left == -1 or right < left:
        return None

    # state ppid pgrp session tty_nr ...
    fields = data[right + 1 :].split()
    try:
        return ProcessNode(pid=pid, name=data[left + 1 : right], ppid=int(fields[1]), tty_nr=int(fields[4]))
    except (IndexError, ValueError):
        logger.debug(f"Malformed stat for PID {pid}: {data!r}")
        return None


def scan_processes() -> Dict[int, ProcessNode]:
    """Read every process currently listed in /proc."""
    processes: Dict[int, ProcessNode] = {}
    try:
        entries = os.listdir(PROC)
    except OSError as e:
        logger.error(f"Error scanning {PROC}: {e}")
        return processes

    for entry in entries:
        if entry.isdigit():
            node = read_stat(int(entry))
            if node is not None:
                processes[node.pid] = node
    return processes


def get_process_tree(root_pid: int, processes: Optional[Dict[int, ProcessNode]] = None) -> Optional[ProcessNode]:
    """Build the process tree below root_pid.

    Args:
        root_pid: PID to use as tree root.
        processes: Pre-scanned processes; /proc is scanned when omitted.

    Returns:
        Root ProcessNode with children attached, or None if it doesn't exist.
    """
    processes = scan_processes() if processes is None else processes
    if root_pid not in processes:
        return None

    by_parent: Dict[int, List[ProcessNode]] = {}
    for node in processes.values():
        by_parent.setdefault(node.ppid, []).append(node)

    root = processes[root_pid]
    seen: Set[int] = {root_pid}
    pending = [root]
    while pending:
        node = pending.pop()
        for child in sorted(by_parent.get(node.pid, []), key=lambda n: n.pid):
            if child.pid in seen:
                continue
            seen.add(child.pid)
            node.children.append(child)
            pending.append(child)
    return root


def find_descendants(tree: Optional[ProcessNode], name: str) -> List[ProcessNode]:
    """Find every process called name in the tree, root included.

    Returns:
        Matching nodes in depth-first order.
    """
    if not tree:
        return []

    found = []
    stack = [tree]
    while stack:
        node = stack.pop()
        if node.name == name:
            found.append(node)
        stack.extend(reversed(node.children))
    return found


def find_controlling_tty(pid: int) -> Optional[int]:
    """Walk the parent chain from pid to the first process with a tty.

    Returns:
        Device number of the controlling terminal, or None.
    """
    visited: Set[int] = set()
    while pid > 1 and pid not in visited:
        visited.add(pid)
        node = read_stat(pid)
        if node is None:
            return None
        if node.has_tty:
            return node.tty_nr
        pid = node.ppid
    return None
