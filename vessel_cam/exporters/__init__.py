"""Mesh file serializers and export dispatch."""

from vessel_cam.exporters.export import (
    FILE_EXTENSIONS,
    export_vessel,
    format_for_path,
    write_export,
)
from vessel_cam.exporters.mesh_formats import mesh_to_obj, mesh_to_ply, mesh_to_stl

__all__ = [
    "FILE_EXTENSIONS",
    "export_vessel",
    "format_for_path",
    "mesh_to_obj",
    "mesh_to_ply",
    "mesh_to_stl",
    "write_export",
]
