"""Print-simulation playback helpers for the viewport.

The viewport animates a print by clipping the finished mesh at the
current nozzle height and drawing the active layer.  Everything it needs
is derived from a single ``progress`` fraction in ``[0, 1]``; the core
never clips geometry itself.
"""

from __future__ import annotations

import math
from typing import Optional

import numpy as np

from vessel_cam.configs.loader import VesselParams
from vessel_cam.geometry.surface import SurfacePoint, evaluate_grid, evaluate_surface
from vessel_cam.geometry.texture import TextureData

PLAYBACK_DONE = 0.995
PLAYBACK_START = 0.005


def _clamp_progress(progress: float) -> float:
    return min(max(float(progress), 0.0), 1.0)


def is_playback_visible(progress: float) -> bool:
    """True while the nozzle overlay should be drawn."""
    return PLAYBACK_START < progress < PLAYBACK_DONE


def clip_plane_height(params: VesselParams, progress: float) -> float:
    """Height (mm above the base) below which the mesh is shown.

    Returns ``math.inf`` once playback is effectively complete so the
    whole vessel is visible.
    """
    progress = _clamp_progress(progress)
    if progress >= PLAYBACK_DONE:
        return math.inf
    return params.height * progress


def current_layer(params: VesselParams, progress: float) -> int:
    """Index of the layer being printed at *progress*."""
    layer = math.floor(_clamp_progress(progress) * params.layers)
    return min(layer, params.layers - 1)


def nozzle_position(
    params: VesselParams,
    progress: float,
    texture: Optional[TextureData] = None,
) -> SurfacePoint:
    """Nozzle position on the spiral path at *progress*.

    The nozzle completes one revolution per layer, so ``u`` runs to
    ``layers`` while ``v`` runs to 1.
    """
    progress = _clamp_progress(progress)
    return evaluate_surface(
        params, progress * params.layers, progress, texture=texture
    )


def active_layer_rings(
    params: VesselParams,
    progress: float,
    texture: Optional[TextureData] = None,
    max_segments: int = 128,
) -> tuple[np.ndarray, Optional[np.ndarray]]:
    """Outer and inner ring polylines at the current print height.

    Parameters
    ----------
    params : VesselParams
        Shape parameters.
    progress : float
        Playback fraction in ``[0, 1]``.
    texture : TextureData, optional
        Displacement map.
    max_segments : int
        Angular resolution cap, default 128.

    Returns
    -------
    tuple[np.ndarray, np.ndarray | None]
        ``(outer, inner)`` arrays of shape ``(n + 1, 3)``.  ``inner`` is
        ``None`` in vase mode.  The inner ring is the outer ring offset
        inwards by ``wall_thickness`` with its ``y`` taken from the outer
        ring, so the highlighted layer top is flat.
    """
    progress = _clamp_progress(progress)
    segs = min(params.segments, max_segments)
    u = np.arange(segs + 1, dtype=np.float64) / segs

    p_out = evaluate_grid(params, u, progress, texture=texture)
    outer = np.stack([p_out.x, p_out.y, p_out.z], axis=-1)
    if not params.is_solid:
        return outer, None

    p_in = evaluate_grid(
        params, u, progress, radius_offset=-params.wall_thickness, texture=texture
    )
    inner = np.stack([p_in.x, p_out.y, p_in.z], axis=-1)
    return outer, inner
