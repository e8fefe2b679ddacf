import base64

import pytest

from meshbridge.geometry.base import LowerContext
from meshbridge.geometry.materials import (
    GenericTexture,
    ImageTexture,
    LineBasicMaterial,
    MeshBasicMaterial,
    MeshLambertMaterial,
    MeshPhongMaterial,
    MeshToonMaterial,
    PngImage,
    PointsMaterial,
    TextTexture,
)


def test_generic_material_transparency_default_behavior():
    mat = MeshPhongMaterial()
    mat.opacity = 0.5
    assert mat.lower(LowerContext())["transparent"] is True

    mat.transparent = False
    assert mat.lower(LowerContext())["transparent"] is False


def test_opaque_material_is_not_transparent_by_default():
    assert MeshPhongMaterial().lower(LowerContext())["transparent"] is False


def test_generic_material_properties_pass_through():
    m = MeshBasicMaterial()
    m.properties["needsUpdate"] = True
    m.properties["custom"] = "x"
    lowered = m.lower(LowerContext())
    assert lowered["needsUpdate"] is True
    assert lowered["custom"] == "x"


def test_generic_material_defaults():
    lowered = MeshPhongMaterial().lower(LowerContext())
    assert lowered["color"] == 0xFFFFFF
    assert lowered["reflectivity"] == 0.5
    assert lowered["side"] == 2
    assert lowered["vertexColors"] == 0
    assert "map" not in lowered


def test_vertex_colors_enum():
    mat = LineBasicMaterial()
    mat.vertex_colors = True
    assert mat.lower(LowerContext())["vertexColors"] == 2


@pytest.mark.parametrize(
    "cls, name",
    [
        (LineBasicMaterial, "LineBasicMaterial"),
        (MeshBasicMaterial, "MeshBasicMaterial"),
        (MeshLambertMaterial, "MeshLambertMaterial"),
        (MeshPhongMaterial, "MeshPhongMaterial"),
        (MeshToonMaterial, "MeshToonMaterial"),
    ],
)
def test_material_type_names(cls, name):
    assert cls().lower(LowerContext())["type"] == name


def test_material_map_lowers_texture_into_context():
    mat = MeshPhongMaterial()
    tex = TextTexture("hi")
    mat.map = tex
    ctx = LowerContext()
    lowered = mat.lower(ctx)
    assert lowered["map"] == tex.uuid
    assert len(ctx.textures) == 1
    assert ctx.textures[0]["uuid"] == tex.uuid


def test_points_material_defaults_and_lower():
    lowered = PointsMaterial().lower(LowerContext())
    assert lowered["type"] == "PointsMaterial"
    assert lowered["color"] == 0xFFFFFF
    assert lowered["size"] == 0.001
    assert lowered["vertexColors"] == 2


def test_generic_texture_lowers_image_property_reference():
    img = PngImage(b"\x0a")
    gt = GenericTexture({"image": img, "foo": "bar"})
    ctx = LowerContext()
    lowered = gt.lower(ctx)
    assert lowered["foo"] == "bar"
    assert lowered["image"] == img.uuid
    assert len(ctx.images) == 1


def test_image_texture_lowers_image_and_defaults():
    img = PngImage(b"\x01\x02\x03")
    tex = ImageTexture(img)
    ctx = LowerContext()
    lowered = tex.lower(ctx)
    assert lowered["wrap"] == [1001, 1001]
    assert lowered["repeat"] == [1, 1]
    assert lowered["image"] == ctx.images[0]["uuid"] == img.uuid


def test_png_image_lower_data_url():
    data = bytes([0x89, 0x50, 0x4E, 0x47])
    url = PngImage(data).lower(LowerContext())["url"]
    prefix = "data:image/png;base64,"
    assert url.startswith(prefix)
    assert base64.b64decode(url[len(prefix):]) == data


def test_text_texture_lower_defaults():
    lowered = TextTexture("hi", 0, "").lower(LowerContext())
    assert lowered["type"] == "_text"
    assert lowered["text"] == "hi"
    assert lowered["font_size"] == 100
    assert lowered["font_face"] == "sans-serif"