"""Process introspection via /proc.

PUBLIC API:
  - ProcessNode: Tree node with process information
  - get_process_tree: Build process tree from a root PID
  - find_descendants: Find processes by name in a tree
  - find_controlling_tty: Controlling terminal of a process chain
"""

from .tree import ProcessNode, get_process_tree, find_descendants, find_controlling_tty

__all__ = ["ProcessNode", "get_process_tree", "find_descendants", "find_controlling_tty"]
