import io
import struct

import pytest

from meshbridge.geometry.base import LowerContext
from meshbridge.geometry.shapes import (
    Box,
    Cylinder,
    DaeMeshGeometry,
    Ellipsoid,
    MeshGeometry,
    ObjMeshGeometry,
    Plane,
    PointsGeometry,
    Sphere,
    StlMeshGeometry,
    TriangularMeshGeometry,
)


def test_box_lower_shape():
    m = Box((1, 2, 3)).lower(LowerContext())
    assert m["type"] == "BoxGeometry"
    assert (m["width"], m["height"], m["depth"]) == (1.0, 2.0, 3.0)


def test_cylinder_defaults_and_overrides():
    m1 = Cylinder(1.5, 0.2).lower(LowerContext())
    assert m1["radiusTop"] == 0.2
    assert m1["radiusBottom"] == 0.2
    assert m1["radialSegments"] == 50

    m2 = Cylinder(1.5, 0.2, 0.3, 0.1).lower(LowerContext())
    assert m2["radiusTop"] == 0.3
    assert m2["radiusBottom"] == 0.1


def test_cylinder_one_override_ignored():
    m = Cylinder(1.0, 0.5, radius_top=0.9).lower(LowerContext())
    assert m["radiusTop"] == 0.5
    assert m["radiusBottom"] == 0.5


def test_sphere_lower():
    m = Sphere(0.4).lower(LowerContext())
    assert m["type"] == "SphereGeometry"
    assert m["radius"] == 0.4
    assert m["widthSegments"] == 20


def test_ellipsoid_intrinsic_transform():
    e = Ellipsoid(radii=(2, 3, 4))
    m = e.intrinsic_transform()
    assert m[0][0] == 2 and m[1][1] == 3 and m[2][2] == 4 and m[3][3] == 1
    assert e.lower(LowerContext())["radius"] == 1.0


def test_plane_lower():
    m = Plane(2, 3, 4, 5).lower(LowerContext())
    assert m["type"] == "PlaneGeometry"
    assert (m["width"], m["height"], m["widthSegments"], m["heightSegments"]) == (2, 3, 4, 5)


def test_mesh_geometry_lower_schema():
    lowered = MeshGeometry("v 0 0 0", "obj").lower(LowerContext())
    assert lowered["type"] == "_meshfile_geometry"
    assert lowered["format"] == "obj"
    assert lowered["data"] == "v 0 0 0"


def test_dae_from_reader():
    dae = DaeMeshGeometry.from_reader(io.StringIO("<COLLADA />"))
    assert dae.mesh_format == "dae"
    assert dae.contents == "<COLLADA />"


def test_obj_from_reader():
    obj = ObjMeshGeometry.from_reader(io.StringIO("o cube"))
    assert obj.mesh_format == "obj"
    assert obj.contents == "o cube"


def test_obj_from_file(tmp_path):
    path = tmp_path / "mesh.obj"
    path.write_text("o cube")
    assert ObjMeshGeometry.from_file(path).contents == "o cube"


def test_stl_from_reader():
    want = bytes([1, 2, 3, 4])
    stl = StlMeshGeometry.from_reader(io.BytesIO(want))
    assert stl.contents == want
    assert stl.lower(LowerContext())["format"] == "stl"


def test_stl_from_file(tmp_path):
    want = bytes([1, 2, 3, 4])
    path = tmp_path / "mesh.stl"
    path.write_bytes(want)
    assert StlMeshGeometry.from_file(path).contents == want


def test_stl_from_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        StlMeshGeometry.from_file(tmp_path / "absent.stl")


def test_points_geometry_validation():
    with pytest.raises(ValueError):
        PointsGeometry([])
    with pytest.raises(ValueError):
        PointsGeometry([[0, 1], [2, 3]], [[0, 1]])
    with pytest.raises(ValueError):
        PointsGeometry([[0, 1], [2]])


def test_points_geometry_lower():
    g = PointsGeometry([[0, 1, 2], [3, 4, 5], [6, 7, 8]])
    lowered = g.lower(LowerContext())
    assert lowered["type"] == "BufferGeometry"
    pos = lowered["data"]["attributes"]["position"]
    assert pos["itemSize"] == 3
    assert pos["type"] == "Float32Array"
    assert struct.unpack("<9f", pos["array"]) == (0, 3, 6, 1, 4, 7, 2, 5, 8)
    assert "color" not in lowered["data"]["attributes"]


def test_triangular_mesh_validation():
    with pytest.raises(ValueError):
        TriangularMeshGeometry([[0, 1]], [[0, 1, 2]])
    with pytest.raises(ValueError):
        TriangularMeshGeometry([[0, 1, 2]], [[0, 1]])
    with pytest.raises(ValueError):
        TriangularMeshGeometry([[0, 1, 2], [3, 4, 5]], [[0, 1, 1]], [[1, 0, 0]])
    with pytest.raises(ValueError):
        TriangularMeshGeometry([], [[0, 1, 2]])
    with pytest.raises(ValueError):
        TriangularMeshGeometry([[0, 1, 2]], [])


def test_triangular_mesh_lower_includes_attributes_and_index():
    g = TriangularMeshGeometry([[0, 0, 0], [1, 0, 0], [0, 1, 0]], [[0, 1, 2]])
    lowered = g.lower(LowerContext())
    assert lowered["type"] == "BufferGeometry"
    pos = lowered["data"]["attributes"]["position"]
    assert pos["itemSize"] == 3
    assert struct.unpack("<9f", pos["array"]) == (0, 0, 0, 1, 0, 0, 0, 1, 0)
    index = lowered["data"]["index"]
    assert index["type"] == "Uint32Array"
    assert index["itemSize"] == 3
    assert struct.unpack("<3I", index["array"]) == (0, 1, 2)