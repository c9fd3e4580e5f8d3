"""Printer profiles: machine-specific G-code preambles.

Each supported printer is an immutable, slotted dataclass with a unique
``name``.  A profile only contributes the setup commands emitted after
the common units/positioning header; the spiral body and the footer are
shared by all printers.

Extension
---------
Adding a printer means adding one subclass and listing it in
``_BUILTIN_PROFILES``; existing profiles are untouched.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import ClassVar


class GCodeError(Exception):
    """Raised when G-code generation fails due to invalid input."""

    pass


def fmt_number(value: float) -> str:
    """Full-precision plain rendering of a setting (``1200``, ``1.75``).

    Integral values drop the ``.0``; everything else uses the shortest
    round-tripping ``repr``, so no digits are lost.
    """
    value = float(value)
    if value.is_integer():
        return str(int(value))
    return repr(value)


# ---------------------------------------------------------------------------
# Base class
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class PrinterProfile(ABC):
    """Base class for all printer profiles."""

    name: ClassVar[str]

    @abstractmethod
    def preamble(self, print_speed: float) -> tuple[str, ...]:
        """Homing / lift / setup lines, each without trailing newline.

        Parameters
        ----------
        print_speed : float
            Configured print speed in mm/min (used as lift feed).
        """


# ---------------------------------------------------------------------------
# Profiles
# ---------------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class MarlinProfile(PrinterProfile):
    """Generic cartesian printer running Marlin firmware."""

    name: ClassVar[str] = "marlin"
    lift_mm: float = 5.0

    def preamble(self, print_speed: float) -> tuple[str, ...]:
        return (
            "G28 ; Home",
            f"G1 Z{fmt_number(self.lift_mm)} F{fmt_number(print_speed)} ; Lift nozzle",
        )


@dataclass(frozen=True, slots=True)
class WaspProfile(PrinterProfile):
    """WASP delta clay printer.

    Homes all three towers together and lowers the acceleration limit,
    since a heavy clay cartridge shakes at the delta's default accel.
    """

    name: ClassVar[str] = "wasp"
    lift_mm: float = 15.0
    accel_mm_s2: int = 500

    def preamble(self, print_speed: float) -> tuple[str, ...]:
        return (
            "G28 ; Home Delta",
            f"G1 Z{fmt_number(self.lift_mm)} F{fmt_number(print_speed)} ; Move up",
            f"M204 S{self.accel_mm_s2} ; Low acceleration for clay",
        )


@dataclass(frozen=True, slots=True)
class PotterbotProfile(PrinterProfile):
    """Potterbot ram extruder; the extruder position is zeroed after homing."""

    name: ClassVar[str] = "potterbot"
    lift_mm: float = 10.0

    def preamble(self, print_speed: float) -> tuple[str, ...]:
        return (
            "G28 ; Home",
            f"G1 Z{fmt_number(self.lift_mm)} ; Lift",
            "G92 E0 ; Reset Extruder",
        )


# ---------------------------------------------------------------------------
# Registry
# ---------------------------------------------------------------------------

_BUILTIN_PROFILES: tuple[PrinterProfile, ...] = (
    MarlinProfile(),
    WaspProfile(),
    PotterbotProfile(),
)

PROFILES: dict[str, PrinterProfile] = {p.name: p for p in _BUILTIN_PROFILES}


def get_profile(name: str) -> PrinterProfile:
    """Return the profile registered as *name* or raise ``GCodeError``."""
    try:
        return PROFILES[name]
    except KeyError:
        raise GCodeError(
            f"Unknown printer profile '{name}'. Available: {sorted(PROFILES)}"
        ) from None
