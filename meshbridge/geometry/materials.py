"""Materials, textures and images."""

from __future__ import annotations

import base64
from dataclasses import dataclass, field
from typing import Any

from .base import Image, LowerContext, Material, Texture, lower_in_object


@dataclass(eq=False)
class GenericMaterial(Material):
    """A three.js material described by its type name and common settings."""

    material_type: str = ""
    color: int = 0xFFFFFF
    reflectivity: float = 0.5
    map: Texture | None = None
    side: int = 2
    transparent: bool | None = None
    opacity: float = 1.0
    linewidth: float = 1.0
    wireframe: bool = False
    wireframe_linewidth: float = 1.0
    vertex_colors: bool = False
    properties: dict[str, Any] = field(default_factory=dict)

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        transparent = self.opacity != 1.0 if self.transparent is None else self.transparent
        data: dict[str, Any] = {
            "uuid": self.uuid,
            "type": self.material_type,
            "color": self.color,
            "reflectivity": self.reflectivity,
            "side": self.side,
            "transparent": transparent,
            "opacity": self.opacity,
            "linewidth": self.linewidth,
            "wireframe": self.wireframe,
            "wireframeLinewidth": self.wireframe_linewidth,
            "vertexColors": 2 if self.vertex_colors else 0,
        }
        data.update(self.properties)
        if self.map is not None:
            data["map"] = lower_in_object(self.map, ctx)
        return data


@dataclass(eq=False)
class LineBasicMaterial(GenericMaterial):
    material_type: str = field(default="LineBasicMaterial", init=False)


@dataclass(eq=False)
class MeshBasicMaterial(GenericMaterial):
    material_type: str = field(default="MeshBasicMaterial", init=False)


@dataclass(eq=False)
class MeshLambertMaterial(GenericMaterial):
    material_type: str = field(default="MeshLambertMaterial", init=False)


@dataclass(eq=False)
class MeshPhongMaterial(GenericMaterial):
    material_type: str = field(default="MeshPhongMaterial", init=False)


@dataclass(eq=False)
class MeshToonMaterial(GenericMaterial):
    material_type: str = field(default="MeshToonMaterial", init=False)


@dataclass(eq=False)
class PointsMaterial(Material):
    """Material for point clouds; always uses vertex colours."""

    size: float = 0.001
    color: int = 0xFFFFFF

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "type": "PointsMaterial",
            "color": self.color,
            "size": self.size,
            "vertexColors": 2,
        }


@dataclass(eq=False)
class GenericTexture(Texture):
    """A texture given as free-form properties; an image property is lowered."""

    properties: dict[str, Any] = field(default_factory=dict)

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        data: dict[str, Any] = {"uuid": self.uuid, **self.properties}
        image = data.get("image")
        if isinstance(image, Image):
            data["image"] = lower_in_object(image, ctx)
        return data


@dataclass(eq=False)
class ImageTexture(Texture):
    """A texture backed by an image."""

    image: Image | None = None
    wrap: tuple[int, int] = (1001, 1001)
    repeat: tuple[int, int] = (1, 1)
    properties: dict[str, Any] = field(default_factory=dict)

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        data: dict[str, Any] = {
            "uuid": self.uuid,
            "wrap": list(self.wrap),
            "repeat": list(self.repeat),
        }
        if self.image is not None:
            data["image"] = lower_in_object(self.image, ctx)
        data.update(self.properties)
        return data


@dataclass(eq=False)
class PngImage(Image):
    """A PNG image embedded as a data URL."""

    data: bytes = b""

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        encoded = base64.b64encode(self.data).decode("ascii")
        return {"uuid": self.uuid, "url": "data:image/png;base64," + encoded}


@dataclass(eq=False)
class TextTexture(Texture):
    """A texture rendered from text by the viewer."""

    text: str = ""
    font_size: int = 100
    font_face: str = "sans-serif"

    def __post_init__(self) -> None:
        super().__post_init__()
        if not self.font_size:
            self.font_size = 100
        if not self.font_face:
            self.font_face = "sans-serif"

    def lower(self, ctx: LowerContext) -> dict[str, Any]:
        return {
            "uuid": self.uuid,
            "type": "_text",
            "text": self.text,
            "font_size": self.font_size,
            "font_face": self.font_face,
        }