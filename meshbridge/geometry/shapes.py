"""Geometries: primitive shapes, mesh files and buffer geometries."""

from __future__ import annotations

from dataclasses import dataclass, field
from os import PathLike
from pathlib import Path
from typing import IO, Any

from .base import (
    Geometry,
    LowerContext,
    item_size_2d,
    pack_float32_array_2d,
    pack_uint32_array_2d,
    transpose,
)


@dataclass(eq=False)
class Box(Geometry):
    """An axis-aligned box given by its three edge lengths."""

    lengths: tuple[float, float, float]

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        width, height, depth = self.lengths
        return {
            "uuid": self.uuid,
            "type": "BoxGeometry",
            "width": width,
            "height": height,
            "depth": depth,
        }


@dataclass(eq=False)
class Cylinder(Geometry):
    """A cylinder; top and bottom radii default to ``radius`` unless both are given."""

    height: float
    radius: float = 1.0
    radius_top: float | None = None
    radius_bottom: float | None = None
    radial_segments: int = 50

    def __post_init__(self) -> None:
        super().__post_init__()
        if self.radius_top is None or self.radius_bottom is None:
            self.radius_top = self.radius
            self.radius_bottom = self.radius

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "type": "CylinderGeometry",
            "radiusTop": self.radius_top,
            "radiusBottom": self.radius_bottom,
            "height": self.height,
            "radialSegments": self.radial_segments,
        }


@dataclass(eq=False)
class Sphere(Geometry):
    """A sphere of the given radius."""

    radius: float

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "type": "SphereGeometry",
            "radius": self.radius,
            "widthSegments": 20,
            "heightSegments": 20,
        }


@dataclass(eq=False)
class Ellipsoid(Sphere):
    """A unit sphere scaled along each axis by its intrinsic transform."""

    radius: float = field(default=1.0, init=False)
    radii: tuple[float, float, float] = (1.0, 1.0, 1.0)

    def intrinsic_transform(self) -> list[list[float]]:
        rx, ry, rz = self.radii
        return [
            [rx, 0.0, 0.0, 0.0],
            [0.0, ry, 0.0, 0.0],
            [0.0, 0.0, rz, 0.0],
            [0.0, 0.0, 0.0, 1.0],
        ]


@dataclass(eq=False)
class Plane(Geometry):
    """A flat rectangle."""

    width: float = 1.0
    height: float = 1.0
    width_segments: int = 1
    height_segments: int = 1

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "type": "PlaneGeometry",
            "width": self.width,
            "height": self.height,
            "widthSegments": self.width_segments,
            "heightSegments": self.height_segments,
        }


@dataclass(eq=False)
class MeshGeometry(Geometry):
    """A mesh file passed through to the viewer as-is."""

    contents: Any
    mesh_format: str

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        return {
            "type": "_meshfile_geometry",
            "uuid": self.uuid,
            "format": self.mesh_format,
            "data": self.contents,
        }


def _read_text_file(path: str | PathLike[str]) -> str:
    return Path(path).read_bytes().decode("utf-8", errors="replace")


def _read_text(reader: IO[Any] | None) -> str:
    data = reader.read() if reader is not None else ""
    if isinstance(data, bytes):
        data = data.decode("utf-8", errors="replace")
    return data


@dataclass(eq=False)
class DaeMeshGeometry(MeshGeometry):
    """A COLLADA mesh."""

    mesh_format: str = field(default="dae", init=False)

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> DaeMeshGeometry:
        """Read the mesh from a file."""
        return cls(_read_text_file(path))

    @classmethod
    def from_reader(cls, reader: IO[Any] | None) -> DaeMeshGeometry:
        """Read the mesh from a file-like object; None gives empty contents."""
        return cls(_read_text(reader))


@dataclass(eq=False)
class ObjMeshGeometry(MeshGeometry):
    """A Wavefront OBJ mesh."""

    mesh_format: str = field(default="obj", init=False)

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> ObjMeshGeometry:
        """Read the mesh from a file."""
        return cls(_read_text_file(path))

    @classmethod
    def from_reader(cls, reader: IO[Any] | None) -> ObjMeshGeometry:
        """Read the mesh from a file-like object; None gives empty contents."""
        return cls(_read_text(reader))


@dataclass(eq=False)
class StlMeshGeometry(MeshGeometry):
    """An STL mesh, kept as raw bytes."""

    mesh_format: str = field(default="stl", init=False)

    @classmethod
    def from_file(cls, path: str | PathLike[str]) -> StlMeshGeometry:
        """Read the mesh from a file."""
        return cls(Path(path).read_bytes())

    @classmethod
    def from_reader(cls, reader: IO[Any] | None) -> StlMeshGeometry:
        """Read the mesh from a file-like object; None gives empty contents."""
        data = reader.read() if reader is not None else b""
        if isinstance(data, str):
            data = data.encode("utf-8")
        return cls(bytes(data))


def _check_color_shape(color: list[list[float]], reference: list[list[Any]], name: str) -> None:
    if len(color) != len(reference) or any(
        len(c) != len(r) for c, r in zip(color, reference)
    ):
        raise ValueError(f"color must match {name} shape")


@dataclass(eq=False)
class PointsGeometry(Geometry):
    """A buffer geometry of points; ``position`` holds one row per coordinate."""

    position: list[list[float]]
    color: list[list[float]] | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.position:
            raise ValueError("position must not be empty")
        item_size_2d(self.position)
        if self.color is not None:
            _check_color_shape(self.color, self.position, "position")

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        attributes = {"position": pack_float32_array_2d(self.position)}
        if self.color is not None:
            attributes["color"] = pack_float32_array_2d(self.color)
        return {
            "uuid": self.uuid,
            "type": "BufferGeometry",
            "data": {"attributes": attributes},
        }


@dataclass(eq=False)
class TriangularMeshGeometry(Geometry):
    """An indexed triangle mesh from Nx3 vertices and Mx3 faces."""

    vertices: list[list[float]]
    faces: list[list[int]]
    color: list[list[float]] | None = None

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.vertices:
            raise ValueError("vertices must not be empty")
        if any(len(row) != 3 for row in self.vertices):
            raise ValueError("vertices must be Nx3")
        if not self.faces:
            raise ValueError("faces must not be empty")
        if any(len(row) != 3 for row in self.faces):
            raise ValueError("faces must be Mx3")
        if self.color is not None:
            _check_color_shape(self.color, self.vertices, "vertices")

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        attributes = {"position": pack_float32_array_2d(transpose(self.vertices))}
        if self.color is not None:
            attributes["color"] = pack_float32_array_2d(transpose(self.color))
        return {
            "uuid": self.uuid,
            "type": "BufferGeometry",
            "data": {
                "attributes": attributes,
                "index": pack_uint32_array_2d(transpose(self.faces)),
            },
        }