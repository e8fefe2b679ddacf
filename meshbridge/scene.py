"""In-memory scene tree holding the last command blobs for each path."""

from __future__ import annotations

from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field
from typing import Any


@dataclass(eq=False)
class TreeNode:
    """A node in the scene tree; children are created on demand."""

    children: dict[str, TreeNode] = field(default_factory=dict)
    object: Any = None
    transform: Any = None
    properties: list[Any] = field(default_factory=list)
    animation: Any = None

    def child(self, key: str) -> TreeNode:
        """Return the named child, creating it if missing."""
        node = self.children.get(key)
        if node is None:
            node = TreeNode()
            self.children[key] = node
        return node

    def get_path(self, path: Iterable[str] | None) -> TreeNode:
        """Walk the path, creating nodes as needed, and return its end."""
        node = self
        for key in path or ():
            node = node.child(key)
        return node

    def find_path(self, path: Iterable[str] | None) -> TreeNode | None:
        """Walk the path without creating nodes; None if it is missing."""
        node = self
        for key in path or ():
            node = node.children.get(key)
            if node is None:
                return None
        return node

    def walk(self) -> Iterator[TreeNode]:
        """Yield this node and every descendant, depth first."""
        yield self
        for child in list(self.children.values()):
            yield from child.walk()