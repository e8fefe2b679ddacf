"""High-level handle on a path in the viewer's scene tree."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from typing import Any, Protocol


class MeshcatClient(Protocol):
    """Sends scene commands to a viewer."""

    def set_object(self, path: list[str], obj: Any) -> None: ...

    def set_transform(self, path: list[str], transform: Sequence[Sequence[float]]) -> None: ...

    def set_property(self, path: list[str], property: str, value: Any) -> None: ...

    def delete(self, path: list[str]) -> None: ...

    def open(self) -> None: ...


@dataclass(frozen=True)
class Visualizer:
    """A client bound to one path in the scene tree."""

    conn: MeshcatClient
    path: tuple[str, ...] = ()

    def at(self, child: str) -> Visualizer:
        """Return a visualizer for a child of this path."""
        return Visualizer(self.conn, (*self.path, child))

    def at_path(self, *args: str) -> Visualizer:
        """Return a visualizer for a sub-path of this path."""
        return Visualizer(self.conn, (*self.path, *args))

    def set_object(self, obj: Any) -> None:
        self.conn.set_object(list(self.path), obj)

    def set_transform(self, transform: Sequence[Sequence[float]]) -> None:
        self.conn.set_transform(list(self.path), transform)

    def set_property(self, property: str, value: Any) -> None:
        self.conn.set_property(list(self.path), property, value)

    def delete(self) -> None:
        self.conn.delete(list(self.path))

    def open(self) -> None:
        self.conn.open()

    def __str__(self) -> str:
        return f"/scene/[{' '.join(self.path)}]"