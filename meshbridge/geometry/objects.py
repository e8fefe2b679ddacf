"""Scene objects that bind a geometry to a material, and cameras."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .base import Geometry, LowerContext, Material, SceneElement, lower_in_object
from .materials import LineBasicMaterial, MeshPhongMaterial, PointsMaterial, TextTexture
from .shapes import Plane, PointsGeometry


@dataclass(eq=False)
class SceneObject(SceneElement):
    """An object of a three.js type built from a geometry and a material."""

    object_type: str
    geometry: Geometry
    material: Material

    def lower(self) -> dict[str, Any]:
        """Return the full object payload, including referenced assets."""
        ctx = LowerContext()
        geometry_uuid = lower_in_object(self.geometry, ctx)
        material_uuid = lower_in_object(self.material, ctx)
        matrix = [value for row in self.geometry.intrinsic_transform() for value in row]
        data: dict[str, Any] = {
            "metadata": {"version": 4.5, "type": "Object"},
            "geometries": ctx.geometries,
            "materials": ctx.materials,
            "object": {
                "uuid": self.uuid,
                "type": self.object_type,
                "geometry": geometry_uuid,
                "material": material_uuid,
                "matrix": matrix,
            },
        }
        if ctx.textures:
            data["textures"] = ctx.textures
        if ctx.images:
            data["images"] = ctx.images
        return data


def line(geometry: Geometry, material: Material) -> SceneObject:
    return SceneObject("Line", geometry, material)


def line_loop(geometry: Geometry, material: Material) -> SceneObject:
    return SceneObject("LineLoop", geometry, material)


def line_segments(geometry: Geometry, material: Material) -> SceneObject:
    return SceneObject("LineSegments", geometry, material)


def mesh(geometry: Geometry, material: Material) -> SceneObject:
    return SceneObject("Mesh", geometry, material)


def points(geometry: Geometry, material: Material) -> SceneObject:
    return SceneObject("Points", geometry, material)


def point_cloud(
    position: list[list[float]],
    color: list[list[float]] | None = None,
    *,
    size: float = 0.001,
    material_color: int = 0xFFFFFF,
) -> SceneObject:
    """Build a Points object; raises ValueError on malformed arrays."""
    geometry = PointsGeometry(position, color)
    return points(geometry, PointsMaterial(size=size, color=material_color))


def scene_text(
    text: str,
    width: float = 10,
    height: float = 10,
    font_size: int = 100,
    font_face: str = "sans-serif",
) -> SceneObject:
    """A plane showing text; zero or empty arguments fall back to defaults."""
    plane = Plane(width or 10, height or 10, 1, 1)
    material = MeshPhongMaterial(
        map=TextTexture(text=text, font_size=font_size, font_face=font_face),
        transparent=True,
    )
    material.properties["needsUpdate"] = True
    return mesh(plane, material)


def triad(scale: float = 1.0) -> SceneObject:
    """Three coloured axis lines of the given length."""
    scale = scale or 1.0
    position = [
        [0, scale, 0, 0, 0, 0],
        [0, 0, 0, scale, 0, 0],
        [0, 0, 0, 0, 0, scale],
    ]
    color = [
        [1, 1, 0, 0.6, 0, 0],
        [0, 0.6, 1, 1, 0, 0.6],
        [0, 0, 0, 0, 1, 1],
    ]
    geometry = PointsGeometry(position, color)
    return line_segments(geometry, LineBasicMaterial(vertex_colors=True))


@dataclass(eq=False)
class OrthographicCamera(SceneElement):
    """An orthographic camera."""

    left: float
    right: float
    top: float
    bottom: float
    near: float
    far: float
    zoom: float = 1.0

    def lower(self) -> dict[str, Any]:
        return {
            "object": {
                "uuid": self.uuid,
                "type": "OrthographicCamera",
                "left": self.left,
                "right": self.right,
                "top": self.top,
                "bottom": self.bottom,
                "near": self.near,
                "far": self.far,
                "zoom": self.zoom,
            }
        }


@dataclass(eq=False)
class PerspectiveCamera(SceneElement):
    """A perspective camera with three.js defaults."""

    fov: float = 50
    aspect: float = 1
    near: float = 0.1
    far: float = 2000
    zoom: float = 1
    film_gauge: float = 35
    film_offset: float = 0
    focus: float = 10

    def lower(self) -> dict[str, Any]:
        return {
            "object": {
                "uuid": self.uuid,
                "type": "PerspectiveCamera",
                "aspect": self.aspect,
                "far": self.far,
                "filmGauge": self.film_gauge,
                "filmOffset": self.film_offset,
                "focus": self.focus,
                "fov": self.fov,
                "near": self.near,
                "zoom": self.zoom,
            }
        }