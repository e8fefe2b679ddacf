"""Scene elements, the lowering context and typed-array packing."""

from __future__ import annotations

import struct
import uuid as _uuid
from abc import ABC, abstractmethod
from collections.abc import Sequence
from dataclasses import dataclass, field
from typing import Any, TypeVar

T = TypeVar("T")


def generate_uuid() -> str:
    """Return a random RFC 4122 version 4 UUID string."""
    return str(_uuid.uuid4())


@dataclass
class LowerContext:
    """Collects assets referenced while lowering an object payload."""

    geometries: list[dict[str, Any]] = field(default_factory=list)
    materials: list[dict[str, Any]] = field(default_factory=list)
    textures: list[dict[str, Any]] = field(default_factory=list)
    images: list[dict[str, Any]] = field(default_factory=list)


@dataclass(eq=False)
class SceneElement:
    """Anything with an identity in the scene."""

    uuid: str = field(default="", kw_only=True)

    def __post_init__(self) -> None:
        if not self.uuid:
            self.uuid = generate_uuid()


@dataclass(eq=False)
class ReferenceElement(SceneElement, ABC):
    """An element that an object refers to by UUID."""

    @abstractmethod
    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        """Return the JSON-ready payload for this element."""

    @abstractmethod
    def add_to_context(self, ctx: LowerContext, payload: dict[str, Any]) -> None:
        """Record the lowered payload in the matching list of the context."""


def lower_in_object(element: ReferenceElement, ctx: LowerContext) -> str:
    """Lower an element into the context and return its UUID."""
    payload = element.lower(ctx)
    element.add_to_context(ctx, payload)
    return element.uuid


@dataclass(eq=False)
class Geometry(ReferenceElement):
    """Base for geometries."""

    def intrinsic_transform(self) -> list[list[float]]:
        """Return the 4x4 transform baked into the geometry."""
        return [[1.0 if i == j else 0.0 for j in range(4)] for i in range(4)]

    def add_to_context(self, ctx: LowerContext, payload: dict[str, Any]) -> None:
        ctx.geometries.append(payload)


@dataclass(eq=False)
class Material(ReferenceElement):
    """Base for materials."""

    def add_to_context(self, ctx: LowerContext, payload: dict[str, Any]) -> None:
        ctx.materials.append(payload)


@dataclass(eq=False)
class Texture(ReferenceElement):
    """Base for textures."""

    def add_to_context(self, ctx: LowerContext, payload: dict[str, Any]) -> None:
        ctx.textures.append(payload)


@dataclass(eq=False)
class Image(ReferenceElement):
    """Base for images."""

    def add_to_context(self, ctx: LowerContext, payload: dict[str, Any]) -> None:
        ctx.images.append(payload)


def item_size_2d(rows: Sequence[Sequence[Any]]) -> int:
    """Return the row count of a non-empty rectangular 2-D array."""
    if not rows:
        raise ValueError("array must not be empty")
    width = len(rows[0])
    if any(len(row) != width for row in rows):
        raise ValueError("array rows must have equal length")
    return len(rows)


def transpose(rows: Sequence[Sequence[T]]) -> list[list[T]]:
    """Swap rows and columns."""
    return [list(column) for column in zip(*rows)]


def _column_major(rows: Sequence[Sequence[Any]]) -> list[Any]:
    return [value for column in zip(*rows) for value in column]


def _pack(rows: Sequence[Sequence[Any]], code: str, array_type: str) -> dict[str, Any]:
    size = item_size_2d(rows)
    values = _column_major(rows)
    return {
        "itemSize": size,
        "type": array_type,
        "array": struct.pack(f"<{len(values)}{code}", *values),
        "normalized": False,
    }


def pack_float32_array_2d(rows: Sequence[Sequence[float]]) -> dict[str, Any]:
    """Pack a 2-D array as little-endian float32, column major."""
    return _pack(rows, "f", "Float32Array")


def pack_uint32_array_2d(rows: Sequence[Sequence[int]]) -> dict[str, Any]:
    """Pack a 2-D array as little-endian uint32, column major."""
    return _pack(rows, "I", "Uint32Array")