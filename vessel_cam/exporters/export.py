"""Format dispatch and atomic file export.

Usage::

    from vessel_cam.exporters import export_vessel, write_export
    text = export_vessel(params, fmt="stl")
    path = write_export("out/vessel.gcode", params, texture)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Optional, Union

from vessel_cam.configs.loader import VesselParams
from vessel_cam.exporters.mesh_formats import mesh_to_obj, mesh_to_ply, mesh_to_stl
from vessel_cam.gcode.generator import generate_gcode
from vessel_cam.geometry.mesh import Mesh, build_mesh
from vessel_cam.geometry.texture import TextureData
from vessel_cam.utils.fs import atomic_write_text

logger = logging.getLogger(__name__)

FILE_EXTENSIONS: dict[str, str] = {
    "obj": ".obj",
    "stl": ".stl",
    "ply": ".ply",
    "gcode": ".gcode",
}

_MESH_WRITERS: dict[str, Callable[[Mesh], str]] = {
    "obj": mesh_to_obj,
    "stl": mesh_to_stl,
    "ply": mesh_to_ply,
}


def export_vessel(
    params: VesselParams,
    texture: Optional[TextureData] = None,
    fmt: Optional[str] = None,
) -> str:
    """Render the vessel in *fmt* (default ``params.export_format``).

    Raises
    ------
    ValueError
        If *fmt* is not one of ``FILE_EXTENSIONS``.
    """
    fmt = (fmt or params.export_format).lower()
    if fmt == "gcode":
        return generate_gcode(params, texture)
    try:
        writer = _MESH_WRITERS[fmt]
    except KeyError:
        raise ValueError(
            f"Unknown export format '{fmt}'. Expected one of {list(FILE_EXTENSIONS)}"
        ) from None
    return writer(build_mesh(params, texture))


def format_for_path(path: Union[str, Path]) -> Optional[str]:
    """Export format implied by the file suffix, or ``None``."""
    suffix = Path(path).suffix.lower()
    for fmt, ext in FILE_EXTENSIONS.items():
        if ext == suffix:
            return fmt
    return None


def write_export(
    path: Union[str, Path],
    params: VesselParams,
    texture: Optional[TextureData] = None,
    fmt: Optional[str] = None,
) -> Path:
    """Render and atomically write the vessel to *path*.

    The format is *fmt* if given, else the one implied by the suffix of
    *path*, else ``params.export_format``.

    Returns
    -------
    Path
        The written file.
    """
    path = Path(path)
    fmt = fmt or format_for_path(path) or params.export_format
    text = export_vessel(params, texture, fmt)
    atomic_write_text(path, text)
    logger.info("Wrote %s (%s, %d bytes)", path, fmt, len(text))
    return path
