"""Vessel parameter schema and YAML loading."""

from vessel_cam.configs.loader import (
    ConfigError,
    ExportFormat,
    PrinterSettings,
    PrinterType,
    VesselParams,
    load_params,
    parse_params,
)

__all__ = [
    "ConfigError",
    "ExportFormat",
    "PrinterSettings",
    "PrinterType",
    "VesselParams",
    "load_params",
    "parse_params",
]
