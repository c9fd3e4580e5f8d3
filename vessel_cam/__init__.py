"""
Vessel CAM Package.

Procedural geometry and CAM engine for clay/paste extrusion printing.
Turns a small set of shape parameters into a triangle mesh (OBJ, STL, PLY)
or a continuous spiral G-code toolpath.

Subpackages:
    configs: Vessel parameter schema and YAML loading
    geometry: Surface evaluation, textures, meshing, print statistics
    gcode: Spiral toolpath, printer profiles, G-code generation
    exporters: Mesh file formats and export dispatch
    utils: Atomic file I/O and logging setup
    scripts: Command-line entrypoints
"""

__version__ = "0.1.0"

__all__ = ["configs", "geometry", "gcode", "exporters", "utils", "scripts"]
