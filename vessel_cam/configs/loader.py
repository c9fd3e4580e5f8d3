"""Vessel parameter schema and loader.

Loads and validates ``vessel.yaml`` into an immutable ``VesselParams``
snapshot.  Every geometry, estimation and export operation takes one of
these snapshots; nothing reads global state.

All lengths are in **millimetres**.  ``printer.print_speed`` is in
**mm/min** (the G-code ``F`` unit), which is also the unit of
``PrintStats.estimated_time`` (minutes).

Validation is fail-fast: non-positive ``layers`` or ``segments`` would
otherwise surface as a division by zero deep inside a sampling loop.

Usage::

    from vessel_cam.configs.loader import load_params
    params = load_params()                      # default path
    params = load_params("/custom/vessel.yaml")  # explicit path
    taller = params.with_changes(height=220)
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Literal, Mapping

import yaml
from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from vessel_cam.utils.fs import load_yaml

logger = logging.getLogger(__name__)

ExportFormat = Literal["obj", "stl", "ply", "gcode"]
PrinterType = Literal["marlin", "wasp", "potterbot"]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------


class ConfigError(ValueError):
    """Raised when configuration validation fails."""

    pass


# ---------------------------------------------------------------------------
# Schema
# ---------------------------------------------------------------------------


class PrinterSettings(BaseModel):
    """Extruder and motion settings used by the toolpath and estimator."""

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    type: PrinterType = Field("marlin", description="Printer profile name")
    nozzle_diameter: float = Field(1.2, gt=0.0, description="Nozzle diameter (mm)")
    filament_diameter: float = Field(
        1.75, gt=0.0, description="Filament / clay cartridge diameter (mm)"
    )
    print_speed: float = Field(1200.0, gt=0.0, description="Print speed (mm/min)")


class VesselParams(BaseModel):
    """Immutable configuration snapshot describing one vessel.

    ``layers`` and ``segments`` bound the mesh resolution.  They are the
    denominators of the normalised parametric coordinates, hence the
    strict lower bounds.
    """

    model_config = ConfigDict(frozen=True, extra="forbid", allow_inf_nan=False)

    height: float = Field(150.0, gt=0.0, description="Vessel height (mm)")
    base_radius: float = Field(40.0, gt=0.0, description="Nominal radius (mm)")
    noise_scale: float = Field(10.0, description="Surface wave amplitude (mm)")
    noise_frequency: float = Field(5.0, description="Surface wave frequency")
    twist: float = Field(1.0, description="Angular shear from base to rim (rad)")
    layers: int = Field(150, ge=1, description="Vertical resolution")
    segments: int = Field(120, ge=3, description="Angular resolution")
    wall_thickness: float = Field(
        2.0, ge=0.0, description="Wall thickness (mm); 0 selects vase mode"
    )
    texture_influence: float = Field(
        10.0, ge=0.0, description="Maximum texture displacement (mm)"
    )
    printer: PrinterSettings = Field(default_factory=PrinterSettings)
    export_format: ExportFormat = "obj"

    @model_validator(mode='after')
    def validate_wall_fits_height(self) -> 'VesselParams':
        """Inner shell needs a positive height above the floor."""
        if self.wall_thickness >= self.height:
            raise ValueError(
                f"wall_thickness={self.wall_thickness} must be smaller than "
                f"height={self.height}"
            )
        return self

    @property
    def is_solid(self) -> bool:
        """True when the vessel is built as a closed double wall."""
        return self.wall_thickness > 0

    @property
    def layer_height(self) -> float:
        """Height of one layer (mm)."""
        return self.height / self.layers

    def with_changes(self, **changes: Any) -> 'VesselParams':
        """Return a validated copy with *changes* applied.

        Nested printer settings may be passed as a mapping under
        ``printer``; keys not given keep their current values.

        Raises
        ------
        ConfigError
            If the resulting parameter set is invalid.
        """
        data = self.model_dump()
        printer_changes = changes.pop("printer", None)
        if printer_changes is not None:
            if isinstance(printer_changes, PrinterSettings):
                printer_changes = printer_changes.model_dump()
            if not isinstance(printer_changes, Mapping):
                raise ConfigError(
                    f"printer changes must be a mapping, got "
                    f"{type(printer_changes).__name__}"
                )
            data["printer"] = {**data["printer"], **dict(printer_changes)}
        data.update(changes)
        return parse_params(data)


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def _format_validation_error(exc: ValidationError) -> str:
    """Flatten pydantic errors into ``loc: message`` lines."""
    lines = []
    for err in exc.errors():
        loc = ".".join(str(part) for part in err["loc"]) or "<root>"
        lines.append(f"{loc}: {err['msg']}")
    return "; ".join(lines)


def parse_params(data: Mapping[str, Any]) -> VesselParams:
    """Validate an in-memory mapping into ``VesselParams``.

    Parameters
    ----------
    data : Mapping[str, Any]
        Raw parameter values (for example the parsed YAML document).

    Returns
    -------
    VesselParams
        Frozen, validated parameters.

    Raises
    ------
    ConfigError
        If any field is missing, unknown, or out of range.
    """
    if not isinstance(data, Mapping):
        raise ConfigError(
            f"Vessel parameters must be a mapping, got {type(data).__name__}"
        )
    try:
        return VesselParams.model_validate(dict(data))
    except ValidationError as e:
        raise ConfigError(
            f"Invalid vessel parameters: {_format_validation_error(e)}"
        ) from e


def load_params(path: str | Path | None = None) -> VesselParams:
    """Load and validate vessel parameters from YAML.

    Parameters
    ----------
    path : str | Path | None
        Path to a ``vessel.yaml``.  ``None`` loads the default shipped
        alongside this module.

    Returns
    -------
    VesselParams
        Fully validated, frozen parameters.

    Raises
    ------
    ConfigError
        If any field fails validation, or the file is empty or not valid
        YAML.
    FileNotFoundError
        If *path* does not exist.
    """
    if path is None:
        path = Path(__file__).parent / "vessel.yaml"
    else:
        path = Path(path)

    if not path.exists():
        raise FileNotFoundError(f"Configuration file not found: {path}")

    logger.info("Loading vessel parameters from %s", path)
    try:
        data = load_yaml(path)
    except yaml.YAMLError as e:
        raise ConfigError(f"Malformed YAML in {path}: {e}") from e
    if data is None:
        raise ConfigError(f"Empty configuration file: {path}")

    params = parse_params(data)
    logger.debug(
        "Loaded params: height=%.1f layers=%d segments=%d wall=%.2f printer=%s",
        params.height,
        params.layers,
        params.segments,
        params.wall_thickness,
        params.printer.type,
    )
    return params
