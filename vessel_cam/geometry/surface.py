"""Parametric vessel surface.

Maps normalised parametric coordinates ``(u, v)`` to a point on the
vessel wall.  ``u`` is the angular coordinate and wraps every integer;
``v`` is the height fraction in ``[0, 1]``.

Radius model::

    r = base_radius
        + sin((theta + twist * v) * noise_frequency)
          * cos(v * height * noise_frequency * 0.5)
          * noise_scale * (1 - 0.5 * (v - 0.5)**2)
        + texture(u, v) * texture_influence
        + radius_offset

The quadratic taper damps the waves towards rim and base.  The result is
clamped to ``MIN_RADIUS`` so extreme noise or texture settings can never
invert the wall.

Axes follow the viewer convention: ``y`` is up, the vessel axis is the
``y`` axis, and the base sits at ``y = 0``.

Inner and outer shells must sample noise at the same ``v``; only the
geometric height (``height_offset``, ``height_scale``) and the radius
(``radius_offset``) differ between them.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Optional

import numpy as np

from vessel_cam.configs.loader import VesselParams
from vessel_cam.geometry.texture import TextureData

MIN_RADIUS = 0.1
"""Smallest radius the evaluator will return (mm)."""


@dataclass(frozen=True)
class SurfacePoint:
    """Cartesian position plus the evaluated radius.

    Fields are floats for ``evaluate_surface`` and equally shaped arrays
    for ``evaluate_grid``.
    """

    x: float
    y: float
    z: float
    r: float


def evaluate_grid(
    params: VesselParams,
    u,
    v,
    radius_offset: float = 0.0,
    height_offset: float = 0.0,
    height_scale: float = 1.0,
    texture: Optional[TextureData] = None,
) -> SurfacePoint:
    """Evaluate the surface over broadcastable arrays of ``u`` and ``v``.

    Parameters
    ----------
    params : VesselParams
        Shape parameters.
    u, v : array_like
        Parametric coordinates; broadcast against each other.
    radius_offset : float
        Added to the radius before clamping (negative for inner shells).
    height_offset : float
        Added to the geometric height.
    height_scale : float
        Multiplies ``v * height`` before the offset is added.
    texture : TextureData, optional
        Displacement map; ignored when ``params.texture_influence == 0``.

    Returns
    -------
    SurfacePoint
        Arrays of the broadcast shape.
    """
    u = np.asarray(u, dtype=np.float64)
    v = np.asarray(v, dtype=np.float64)

    y = v * params.height * height_scale + height_offset
    theta = u * (2.0 * math.pi)
    twist_phase = v * params.twist

    wave = (
        np.sin((theta + twist_phase) * params.noise_frequency)
        * np.cos(v * params.height * params.noise_frequency * 0.5)
    )
    taper = 1.0 - 0.5 * (v - 0.5) ** 2
    r = params.base_radius + wave * params.noise_scale * taper

    if texture is not None and params.texture_influence > 0:
        r = r + texture.sample(u, v) * params.texture_influence

    r = np.maximum(r + radius_offset, MIN_RADIUS)

    x = r * np.cos(theta)
    z = r * np.sin(theta)
    x, y, z, r = np.broadcast_arrays(x, y, z, r)
    return SurfacePoint(x=x, y=y, z=z, r=r)


def evaluate_surface(
    params: VesselParams,
    u: float,
    v: float,
    radius_offset: float = 0.0,
    height_offset: float = 0.0,
    height_scale: float = 1.0,
    texture: Optional[TextureData] = None,
) -> SurfacePoint:
    """Evaluate a single surface point.

    Same model as ``evaluate_grid``; returns plain floats.  Pure and
    deterministic: identical inputs always produce identical output.
    """
    p = evaluate_grid(
        params, u, v, radius_offset, height_offset, height_scale, texture
    )
    return SurfacePoint(x=float(p.x), y=float(p.y), z=float(p.z), r=float(p.r))


def parametric_grid(layers: int, segments: int) -> tuple[np.ndarray, np.ndarray]:
    """Return ``(u, v)`` arrays of shape ``(layers + 1, segments + 1)``.

    Row ``i`` holds ``v = i / layers``; column ``j`` holds
    ``u = j / segments``.  The seam column ``u = 1`` duplicates ``u = 0``.
    """
    v = np.arange(layers + 1, dtype=np.float64) / layers
    u = np.arange(segments + 1, dtype=np.float64) / segments
    vv, uu = np.meshgrid(v, u, indexing="ij")
    return uu, vv
