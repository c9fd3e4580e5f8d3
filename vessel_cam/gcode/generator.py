"""G-code generator: spiral toolpath to G-code text.

Output layout::

    ; comment header (printer, nozzle, layer height, speed)
    G21 / G90 / M82          ; mm, absolute XYZ, absolute E
    <profile preamble>       ; homing and lift, per printer
    ; Start Loop
    G0 X Y Z F               ; travel to the first layer
    G1 X Y Z E               ; one line per spiral step
    ; Footer
    retract, lift above the vessel, home XY, M30

Number formats:
    XYZ use 3 decimals, ``E`` 4 decimals, the safety lift 2 decimals.
    Feed rates are written exactly as configured (mm/min).
"""

from __future__ import annotations

import logging
from io import StringIO
from typing import Optional

from vessel_cam.configs.loader import VesselParams
from vessel_cam.gcode.profiles import GCodeError, PrinterProfile, fmt_number, get_profile
from vessel_cam.gcode.toolpath import Toolpath, ToolpathMove, build_spiral_toolpath
from vessel_cam.geometry.texture import TextureData

logger = logging.getLogger(__name__)

RETRACT_MM = 2.0
RETRACT_FEED_MM_MIN = 2400
SAFE_LIFT_MM = 20.0

__all__ = ["GCodeError", "GCodeGenerator", "generate_gcode"]


class GCodeGenerator:
    """Convert a spiral ``Toolpath`` to G-code.

    Parameters
    ----------
    params : VesselParams
        Validated parameters; selects the printer profile and supplies
        speed, nozzle and height for header and footer.

    Raises
    ------
    GCodeError
        If ``params.printer.type`` names no registered profile.
    """

    def __init__(self, params: VesselParams) -> None:
        self._params = params
        self._profile: PrinterProfile = get_profile(params.printer.type)

    @property
    def profile(self) -> PrinterProfile:
        return self._profile

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def generate(self, toolpath: Toolpath) -> str:
        """Generate the complete program for *toolpath*.

        Parameters
        ----------
        toolpath : Toolpath
            Spiral built from the same parameters.

        Returns
        -------
        str
            Header, preamble, body and footer, newline terminated.
        """
        buf = StringIO()
        self._write_header(buf, toolpath.layer_height)
        self._write_start(buf, toolpath.start)
        for move in toolpath.moves:
            self._write_move(buf, move)
        self._write_footer(buf)
        logger.debug(
            "Generated %d G1 moves for profile %s",
            len(toolpath.moves), self._profile.name,
        )
        return buf.getvalue()

    # ------------------------------------------------------------------
    # Sections
    # ------------------------------------------------------------------

    def _write_header(self, buf: StringIO, layer_height: float) -> None:
        printer = self._params.printer
        buf.write("; CeramicFlow AI G-Code Export\n")
        buf.write(f"; Printer: {printer.type}\n")
        buf.write(f"; Nozzle: {fmt_number(printer.nozzle_diameter)}mm\n")
        buf.write(f"; Layer Height: {layer_height:.3f}mm\n")
        buf.write(f"; Speed: {fmt_number(printer.print_speed)} mm/min\n")
        buf.write("G21 ; Millimeters\n")
        buf.write("G90 ; Absolute positioning\n")
        buf.write("M82 ; Absolute extrusion mode\n")
        for line in self._profile.preamble(printer.print_speed):
            buf.write(f"{line}\n")

    def _write_start(self, buf: StringIO, start: ToolpathMove) -> None:
        speed = fmt_number(self._params.printer.print_speed)
        buf.write("\n; Start Loop\n")
        buf.write(
            f"G0 X{start.x:.3f} Y{start.y:.3f} Z{start.z:.3f} F{speed}\n"
        )

    def _write_move(self, buf: StringIO, move: ToolpathMove) -> None:
        buf.write(
            f"G1 X{move.x:.3f} Y{move.y:.3f} Z{move.z:.3f} E{move.e:.4f}\n"
        )

    def _write_footer(self, buf: StringIO) -> None:
        params = self._params
        speed = fmt_number(params.printer.print_speed)
        buf.write("\n; Footer\n")
        buf.write(f"G1 E-{fmt_number(RETRACT_MM)} F{RETRACT_FEED_MM_MIN} ; Retract\n")
        buf.write(
            f"G1 Z{params.height + SAFE_LIFT_MM:.2f} F{speed} ; Move up safety\n"
        )
        buf.write("G28 X0 Y0 ; Home X Y\n")
        buf.write("M30 ; End of program\n")


def generate_gcode(
    params: VesselParams,
    texture: Optional[TextureData] = None,
) -> str:
    """Build the spiral toolpath for *params* and render it as G-code."""
    generator = GCodeGenerator(params)
    return generator.generate(build_spiral_toolpath(params, texture))
