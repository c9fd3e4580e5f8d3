"""
Procedural vessel geometry.

Surface evaluation, texture displacement, mesh building, print statistics
and viewport playback helpers.  All functions are pure: they take an
immutable ``VesselParams`` (and optional ``TextureData``) and return
freshly allocated results.
"""

from vessel_cam.geometry.mesh import Mesh, MeshError, build_mesh, expected_counts
from vessel_cam.geometry.playback import (
    active_layer_rings,
    clip_plane_height,
    current_layer,
    is_playback_visible,
    nozzle_position,
)
from vessel_cam.geometry.stats import PrintStats, estimate_print_stats, filament_area
from vessel_cam.geometry.surface import (
    MIN_RADIUS,
    SurfacePoint,
    evaluate_grid,
    evaluate_surface,
)
from vessel_cam.geometry.texture import TextureData, TextureError, load_texture

__all__ = [
    "MIN_RADIUS",
    "Mesh",
    "MeshError",
    "PrintStats",
    "SurfacePoint",
    "TextureData",
    "TextureError",
    "active_layer_rings",
    "build_mesh",
    "clip_plane_height",
    "current_layer",
    "estimate_print_stats",
    "evaluate_grid",
    "evaluate_surface",
    "expected_counts",
    "filament_area",
    "is_playback_visible",
    "load_texture",
    "nozzle_position",
]
