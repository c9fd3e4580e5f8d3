"""Triangle mesh builder for vessels.

Two topologies, selected by ``wall_thickness``:

Vase mode (``wall_thickness <= 0``)
    One open surface: a ``(layers + 1) x (segments + 1)`` grid, two
    triangles per cell, no caps.

Solid (``wall_thickness > 0``)
    Outer shell, inner shell, rim and floor::

        [outer grid][inner grid][outer apex (0,0,0)][inner apex (0,wall,0)]

    The inner shell starts at the floor (``y = wall``) and reaches the
    same top height as the outer shell, with its radius reduced by
    ``wall``.  Its triangles are wound in reverse so their normals face
    the cavity.  The rim joins the top rows of both grids; two fans close
    the bottom.  Every triangle is wound so its normal points out of the
    clay, which makes the solid consistently oriented.

Vertex order is generation order (grid rows bottom to top, ``u`` from 0
to 1 within a row, seam vertex duplicated).  Triangles of each grid cell
are emitted as consecutive pairs.

Index width
-----------
Indices are ``uint16`` while every vertex is addressable with 16 bits
(up to 65 536 vertices, the legacy viewer buffer), otherwise ``uint32``.
Meshes beyond ``2**32`` vertices raise ``MeshError``.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from vessel_cam.configs.loader import VesselParams
from vessel_cam.geometry.surface import evaluate_grid, parametric_grid
from vessel_cam.geometry.texture import TextureData

logger = logging.getLogger(__name__)

UINT16_VERTEX_LIMIT = int(np.iinfo(np.uint16).max) + 1
UINT32_VERTEX_LIMIT = int(np.iinfo(np.uint32).max) + 1


class MeshError(ValueError):
    """Raised when a mesh cannot be built or is internally inconsistent."""

    pass


# ---------------------------------------------------------------------------
# Mesh value type
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class Mesh:
    """Immutable indexed triangle mesh.

    Parameters
    ----------
    vertices : np.ndarray
        ``(N, 3)`` float64 positions (mm).
    indices : np.ndarray
        ``(M, 3)`` unsigned vertex indices, one row per triangle.
    """

    vertices: np.ndarray
    indices: np.ndarray

    def __post_init__(self) -> None:
        vertices = np.array(self.vertices, dtype=np.float64)
        indices = np.array(self.indices)
        if vertices.ndim != 2 or vertices.shape[1] != 3:
            raise MeshError(f"vertices must have shape (N, 3), got {vertices.shape}")
        if indices.ndim != 2 or indices.shape[1] != 3:
            raise MeshError(f"indices must have shape (M, 3), got {indices.shape}")
        if indices.size:
            if indices.min() < 0 or indices.max() >= len(vertices):
                raise MeshError(
                    f"triangle index out of range [0, {len(vertices)})"
                )
        indices = indices.astype(index_dtype(len(vertices)), copy=False)

        vertices.flags.writeable = False
        indices.flags.writeable = False
        object.__setattr__(self, "vertices", vertices)
        object.__setattr__(self, "indices", indices)

    @property
    def vertex_count(self) -> int:
        return int(self.vertices.shape[0])

    @property
    def face_count(self) -> int:
        return int(self.indices.shape[0])

    @property
    def vertex_buffer(self) -> np.ndarray:
        """Flat ``x0 y0 z0 x1 ...`` view for GPU upload."""
        return self.vertices.reshape(-1)

    @property
    def index_buffer(self) -> np.ndarray:
        """Flat triangle index view for GPU upload."""
        return self.indices.reshape(-1)

    def triangles(self) -> np.ndarray:
        """Corner positions, shape ``(M, 3, 3)``."""
        return self.vertices[self.indices.astype(np.intp)]

    def face_normals(self) -> np.ndarray:
        """Unit face normals, shape ``(M, 3)``.

        ``cross(v2 - v1, v3 - v1)`` normalised.  Degenerate triangles
        (zero-length cross product) keep the raw zero vector instead of
        dividing by zero, so no NaN is ever produced.
        """
        tri = self.triangles()
        n = np.cross(tri[:, 1] - tri[:, 0], tri[:, 2] - tri[:, 0])
        length = np.linalg.norm(n, axis=1)
        length[length == 0] = 1.0
        return n / length[:, None]


def index_dtype(vertex_count: int) -> np.dtype:
    """Smallest supported unsigned index type that addresses *vertex_count*."""
    if vertex_count <= UINT16_VERTEX_LIMIT:
        return np.dtype(np.uint16)
    if vertex_count <= UINT32_VERTEX_LIMIT:
        return np.dtype(np.uint32)
    raise MeshError(
        f"{vertex_count} vertices exceed the 32-bit index limit "
        f"({UINT32_VERTEX_LIMIT})"
    )


def expected_counts(params: VesselParams) -> tuple[int, int]:
    """Vertex and triangle counts ``build_mesh`` will produce for *params*."""
    rows, cols = params.layers + 1, params.segments + 1
    cells = params.layers * params.segments
    if not params.is_solid:
        return rows * cols, 2 * cells
    # outer + inner shells, rim, two floor fans
    return 2 * rows * cols + 2, 4 * cells + 4 * params.segments


# ---------------------------------------------------------------------------
# Stitching helpers
# ---------------------------------------------------------------------------


def _grid_corners(layers: int, segments: int, offset: int = 0):
    """Corner indices ``a, b, c, d`` for every grid cell, row-major.

    ``a`` is bottom-left, ``b`` bottom-right, ``c`` top-left and ``d``
    top-right.
    """
    row = segments + 1
    y = np.arange(layers, dtype=np.int64)[:, None]
    x = np.arange(segments, dtype=np.int64)[None, :]
    a = (offset + y * row + x).reshape(-1)
    b = a + 1
    c = a + row
    d = c + 1
    return a, b, c, d


def _pairs(first: tuple, second: tuple) -> np.ndarray:
    """Interleave two triangle lists so each cell's pair stays adjacent."""
    t1 = np.stack(first, axis=1)
    t2 = np.stack(second, axis=1)
    return np.stack([t1, t2], axis=1).reshape(-1, 3)


def _grid_vertices(
    params: VesselParams,
    texture: Optional[TextureData],
    radius_offset: float = 0.0,
    height_offset: float = 0.0,
    height_scale: float = 1.0,
) -> np.ndarray:
    u, v = parametric_grid(params.layers, params.segments)
    p = evaluate_grid(
        params, u, v, radius_offset, height_offset, height_scale, texture
    )
    return np.stack([p.x, p.y, p.z], axis=-1).reshape(-1, 3)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def build_mesh(
    params: VesselParams,
    texture: Optional[TextureData] = None,
) -> Mesh:
    """Triangulate the vessel described by *params*.

    Parameters
    ----------
    params : VesselParams
        Validated shape parameters.
    texture : TextureData, optional
        Radial displacement map.

    Returns
    -------
    Mesh
        Open surface in vase mode, closed solid otherwise.

    Raises
    ------
    MeshError
        If the vertex count exceeds the 32-bit index range.
    """
    n_vertices, n_faces = expected_counts(params)
    dtype = index_dtype(n_vertices)
    logger.debug(
        "Building %s mesh: %d vertices, %d triangles, %s indices",
        "solid" if params.is_solid else "vase",
        n_vertices, n_faces, dtype.name,
    )

    layers, segments = params.layers, params.segments
    outer = _grid_vertices(params, texture)

    if not params.is_solid:
        a, b, c, d = _grid_corners(layers, segments)
        faces = _pairs((a, c, b), (b, c, d))
        return Mesh(vertices=outer, indices=faces.astype(dtype))

    wall = params.wall_thickness
    inner = _grid_vertices(
        params,
        texture,
        radius_offset=-wall,
        height_offset=wall,
        height_scale=(params.height - wall) / params.height,
    )

    row = segments + 1
    inner_offset = (layers + 1) * row
    apex_outer = 2 * inner_offset
    apex_inner = apex_outer + 1

    vertices = np.concatenate(
        [outer, inner, np.array([[0.0, 0.0, 0.0], [0.0, wall, 0.0]])]
    )

    a, b, c, d = _grid_corners(layers, segments)
    outer_faces = _pairs((a, c, b), (b, c, d))

    a, b, c, d = _grid_corners(layers, segments, inner_offset)
    inner_faces = _pairs((b, d, a), (a, d, c))

    x = np.arange(segments, dtype=np.int64)
    o0 = layers * row + x
    i0 = inner_offset + layers * row + x
    rim_faces = _pairs((o0, i0, o0 + 1), (i0, i0 + 1, o0 + 1))

    # rim faces up, outer floor faces down, cavity floor faces up
    outer_floor = np.stack(
        [np.full_like(x, apex_outer), x, x + 1], axis=1
    )
    inner_floor = np.stack(
        [np.full_like(x, apex_inner), inner_offset + x + 1, inner_offset + x],
        axis=1,
    )

    faces = np.concatenate(
        [outer_faces, inner_faces, rim_faces, outer_floor, inner_floor]
    )
    return Mesh(vertices=vertices, indices=faces.astype(dtype))
