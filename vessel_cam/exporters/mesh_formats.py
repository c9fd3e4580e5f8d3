"""Text mesh formats: Wavefront OBJ, ASCII STL and ASCII PLY.

Each writer is a pure function ``Mesh -> str``.  Coordinates are written
with 4 decimals; output is deterministic, so identical meshes always
serialise to identical bytes.  Negative zero is written as ``0.0000``.

Positions are float64 throughout.  A float32 pipeline can round the
4th decimal differently, so files may differ from such exporters in the
last digit.

Index bases differ per format:
    OBJ faces are 1-based; PLY faces are 0-based with a leading vertex
    count; STL has no indices and repeats the corner coordinates.
"""

from __future__ import annotations

from io import StringIO

from vessel_cam.geometry.mesh import Mesh

SOLID_NAME = "vessel"


def _xyz(x: float, y: float, z: float) -> str:
    # round first so values like -1e-15 and -0.0 both print as 0.0000
    x, y, z = (round(c, 4) + 0.0 for c in (x, y, z))
    return f"{x:.4f} {y:.4f} {z:.4f}"


def mesh_to_obj(mesh: Mesh) -> str:
    """Serialise *mesh* as Wavefront OBJ."""
    buf = StringIO()
    buf.write("# CeramicFlow AI Export\n")
    buf.write(f"# Vertices: {mesh.vertex_count}\n")
    buf.write(f"# Faces: {mesh.face_count}\n")
    buf.write(f"o {SOLID_NAME}\n")

    for x, y, z in mesh.vertices.tolist():
        buf.write(f"v {_xyz(x, y, z)}\n")
    for a, b, c in mesh.indices.tolist():
        buf.write(f"f {a + 1} {b + 1} {c + 1}\n")
    return buf.getvalue()


def mesh_to_stl(mesh: Mesh) -> str:
    """Serialise *mesh* as ASCII STL with per-facet unit normals.

    Normals come from ``Mesh.face_normals()``; degenerate facets get a
    zero normal rather than NaN.
    """
    buf = StringIO()
    buf.write(f"solid {SOLID_NAME}\n")

    normals = mesh.face_normals().tolist()
    triangles = mesh.triangles().tolist()
    for (nx, ny, nz), (v1, v2, v3) in zip(normals, triangles):
        buf.write(f"facet normal {_xyz(nx, ny, nz)}\n")
        buf.write("  outer loop\n")
        buf.write(f"    vertex {_xyz(*v1)}\n")
        buf.write(f"    vertex {_xyz(*v2)}\n")
        buf.write(f"    vertex {_xyz(*v3)}\n")
        buf.write("  endloop\n")
        buf.write("endfacet\n")

    buf.write(f"endsolid {SOLID_NAME}\n")
    return buf.getvalue()


def mesh_to_ply(mesh: Mesh) -> str:
    """Serialise *mesh* as ASCII PLY 1.0."""
    buf = StringIO()
    buf.write("ply\n")
    buf.write("format ascii 1.0\n")
    buf.write(f"element vertex {mesh.vertex_count}\n")
    buf.write("property float x\n")
    buf.write("property float y\n")
    buf.write("property float z\n")
    buf.write(f"element face {mesh.face_count}\n")
    buf.write("property list uchar int vertex_index\n")
    buf.write("end_header\n")

    for x, y, z in mesh.vertices.tolist():
        buf.write(f"{_xyz(x, y, z)}\n")
    for a, b, c in mesh.indices.tolist():
        buf.write(f"3 {a} {b} {c}\n")
    return buf.getvalue()
