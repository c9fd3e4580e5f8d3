"""
G-code generation module.

Builds the continuous spiral toolpath and renders it as G-code with a
printer-specific preamble.
"""

from vessel_cam.gcode.generator import GCodeGenerator, generate_gcode
from vessel_cam.gcode.profiles import (
    PROFILES,
    GCodeError,
    MarlinProfile,
    PotterbotProfile,
    PrinterProfile,
    WaspProfile,
    get_profile,
)
from vessel_cam.gcode.toolpath import (
    Toolpath,
    ToolpathMove,
    build_spiral_toolpath,
    extrusion_per_mm,
)

__all__ = [
    "GCodeError",
    "GCodeGenerator",
    "MarlinProfile",
    "PROFILES",
    "PotterbotProfile",
    "PrinterProfile",
    "Toolpath",
    "ToolpathMove",
    "WaspProfile",
    "build_spiral_toolpath",
    "extrusion_per_mm",
    "generate_gcode",
    "get_profile",
]
