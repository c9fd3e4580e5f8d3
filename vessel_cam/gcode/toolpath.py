"""Continuous spiral toolpath for vase-mode clay printing.

The whole vessel is printed as one helix, with no per-layer seams or
restarts.  Over ``layers * segments`` steps the height fraction rises
linearly from 0 to 1 while the angular coordinate advances one full turn
every ``segments`` steps::

    v = i / (layers * segments)
    u = i / segments            # exceeds 1; the surface wraps it

Machine axes:
    The mesh is Y-up; printers are Z-up.  Mesh ``y`` becomes machine
    ``Z`` and mesh ``z`` becomes machine ``Y``.

Extrusion:
    The bead is modelled as a rectangle ``nozzle_diameter`` wide and one
    layer tall, so the filament fed per mm of travel is::

        e_per_mm = nozzle_diameter * layer_height / filament_area

    ``E`` is absolute (``M82``) and accumulates 3-D travel distance, so
    it never decreases.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Optional

import numpy as np

from vessel_cam.configs.loader import VesselParams
from vessel_cam.geometry.stats import filament_area
from vessel_cam.geometry.surface import evaluate_grid, evaluate_surface
from vessel_cam.geometry.texture import TextureData

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class ToolpathMove:
    """Linear extrusion move in absolute machine coordinates.

    Parameters
    ----------
    x, y, z : float
        Target position in mm (machine frame, Z up).
    e : float
        Cumulative extruder position in mm of filament.
    """

    x: float
    y: float
    z: float
    e: float


@dataclass(frozen=True)
class Toolpath:
    """An ordered spiral toolpath.

    ``start`` is the travel target before extrusion begins (``e == 0``);
    ``moves`` are the extruding steps in print order.
    """

    start: ToolpathMove
    moves: tuple[ToolpathMove, ...]
    layer_height: float
    e_per_mm: float
    path_length: float

    @property
    def total_extrusion(self) -> float:
        """Final cumulative ``E`` value (mm of filament)."""
        return self.moves[-1].e if self.moves else 0.0


def extrusion_per_mm(params: VesselParams) -> float:
    """Filament length fed per mm of toolpath travel."""
    printer = params.printer
    return (
        printer.nozzle_diameter * params.layer_height
        / filament_area(printer.filament_diameter)
    )


def build_spiral_toolpath(
    params: VesselParams,
    texture: Optional[TextureData] = None,
) -> Toolpath:
    """Sample the outer surface along a continuous helix.

    Parameters
    ----------
    params : VesselParams
        Validated shape and printer parameters.  ``wall_thickness`` is
        ignored: vase mode prints a single bead.
    texture : TextureData, optional
        Displacement map.

    Returns
    -------
    Toolpath
        ``layers * segments`` moves with monotonically non-decreasing ``E``.
    """
    layer_height = params.layer_height
    e_per_mm = extrusion_per_mm(params)
    total_steps = params.layers * params.segments

    origin = evaluate_surface(params, 0.0, 0.0, texture=texture)
    start = ToolpathMove(x=origin.x, y=origin.z, z=layer_height, e=0.0)

    i = np.arange(1, total_steps + 1, dtype=np.float64)
    p = evaluate_grid(params, i / params.segments, i / total_steps, texture=texture)

    machine = np.stack([p.x, p.z, p.y], axis=-1)
    previous = np.vstack([[start.x, start.y, start.z], machine[:-1]])
    distances = np.linalg.norm(machine - previous, axis=1)
    extrusion = np.cumsum(distances * e_per_mm)

    moves = tuple(
        ToolpathMove(x=float(mx), y=float(my), z=float(mz), e=float(e))
        for (mx, my, mz), e in zip(machine, extrusion)
    )
    logger.debug(
        "Spiral toolpath: %d moves, %.1f mm travel, E=%.4f",
        len(moves), float(distances.sum()), moves[-1].e,
    )
    return Toolpath(
        start=start,
        moves=moves,
        layer_height=layer_height,
        e_per_mm=e_per_mm,
        path_length=float(distances.sum()),
    )
