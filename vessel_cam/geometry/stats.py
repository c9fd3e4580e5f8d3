"""Print statistics estimation.

Approximates the extrusion path as a stack of horizontal rings: for each
layer the radius is sampled at four evenly spaced angles and averaged
(smoothing over the surface waves), and the ring circumference
``2*pi*r_avg`` is summed.  From that path length::

    volume          = path_length * nozzle_diameter * layer_height   (mm^3)
    filament_length = volume / (pi * (filament_diameter / 2)**2)     (mm)
    filament_weight = volume * CLAY_DENSITY_G_MM3                    (g)
    estimated_time  = path_length / print_speed                      (min)

A second, coarser walk (at most ``MAX_SAMPLES_PER_LAYER`` points per ring)
accumulates point-to-point distance over the same surface.  It is reported
as ``sampled_path_length`` for comparison only and does not feed any other
figure.

These are estimates.  The G-code toolpath samples the surface on a
continuous helix and will differ slightly; both converge as ``layers`` and
``segments`` grow.
"""

from __future__ import annotations

import logging
import math
from dataclasses import asdict, dataclass
from typing import Any, Optional

import numpy as np

from vessel_cam.configs.loader import VesselParams
from vessel_cam.geometry.surface import evaluate_grid
from vessel_cam.geometry.texture import TextureData

logger = logging.getLogger(__name__)

CLAY_DENSITY_G_MM3 = 0.0017
"""Wet clay density (1.7 g/cm^3)."""

RING_SAMPLES = 4
"""Angular samples averaged per layer for the ring radius."""

MAX_SAMPLES_PER_LAYER = 20
"""Resolution cap of the coarse point-to-point walk."""


@dataclass(frozen=True)
class PrintStats:
    """Derived, read-only print summary.

    Attributes
    ----------
    estimated_time : float
        Print time in minutes.
    filament_length : float
        Filament (clay rod) feed length in metres.
    filament_weight : float
        Extruded clay weight in grams.
    layer_height : float
        Layer height in mm.
    total_layers : int
        Number of layers.
    path_length : float
        Ring-sum toolpath length in mm (basis of all other figures).
    sampled_path_length : float
        Coarse point-to-point walk length in mm.
    """

    estimated_time: float
    filament_length: float
    filament_weight: float
    layer_height: float
    total_layers: int
    path_length: float
    sampled_path_length: float

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


def filament_area(filament_diameter: float) -> float:
    """Cross-section area of the feed filament (mm^2)."""
    return math.pi * (filament_diameter / 2.0) ** 2


def ring_path_length(
    params: VesselParams,
    texture: Optional[TextureData] = None,
) -> float:
    """Sum of per-layer ring circumferences (mm).

    Layers ``0 .. layers-1`` are sampled at ``v = i / layers``.
    """
    v = np.arange(params.layers, dtype=np.float64)[:, None] / params.layers
    u = np.arange(RING_SAMPLES, dtype=np.float64)[None, :] / RING_SAMPLES
    r = evaluate_grid(params, u, v, texture=texture).r
    avg_r = r.mean(axis=1)
    return float(np.sum(2.0 * math.pi * avg_r))


def sampled_path_length(
    params: VesselParams,
    texture: Optional[TextureData] = None,
) -> float:
    """Coarse point-to-point walk over ``layers + 1`` rings (mm).

    Each ring is sampled at ``min(segments, 20) + 1`` angles including
    the seam; the walk starts at ``(u, v) = (0, 0)``.
    """
    steps = min(params.segments, MAX_SAMPLES_PER_LAYER)
    v = np.arange(params.layers + 1, dtype=np.float64)[:, None] / params.layers
    u = np.arange(steps + 1, dtype=np.float64)[None, :] / steps
    p = evaluate_grid(params, u, v, texture=texture)
    pts = np.stack([p.x, p.y, p.z], axis=-1).reshape(-1, 3)

    start = evaluate_grid(params, 0.0, 0.0, texture=texture)
    start_pt = np.array([[float(start.x), float(start.y), float(start.z)]])
    path = np.concatenate([start_pt, pts])
    return float(np.linalg.norm(np.diff(path, axis=0), axis=1).sum())


def estimate_print_stats(
    params: VesselParams,
    texture: Optional[TextureData] = None,
) -> PrintStats:
    """Estimate time, filament usage and weight for *params*.

    Parameters
    ----------
    params : VesselParams
        Validated shape and printer parameters.
    texture : TextureData, optional
        Displacement map (changes the ring radii).

    Returns
    -------
    PrintStats
        Fresh summary; nothing is cached between calls.
    """
    layer_height = params.layer_height
    path_length = ring_path_length(params, texture)
    coarse = sampled_path_length(params, texture)

    printer = params.printer
    volume = path_length * printer.nozzle_diameter * layer_height
    filament_mm = volume / filament_area(printer.filament_diameter)

    stats = PrintStats(
        estimated_time=path_length / printer.print_speed,
        filament_length=filament_mm / 1000.0,
        filament_weight=volume * CLAY_DENSITY_G_MM3,
        layer_height=layer_height,
        total_layers=params.layers,
        path_length=path_length,
        sampled_path_length=coarse,
    )
    logger.debug(
        "Print stats: %.1f min, %.2f m filament, %.1f g",
        stats.estimated_time, stats.filament_length, stats.filament_weight,
    )
    return stats
