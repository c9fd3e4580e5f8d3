#!/usr/bin/env python3
"""
Export Vessel Script.

Generate a vessel from a parameter file and write it as a mesh or G-code.

Usage:
    vessel-cam --output out/vessel.stl
    vessel-cam --params my_vessel.yaml --format gcode --output out/vessel.gcode
    vessel-cam --set layers=200 --set printer.type=wasp --output wasp.gcode
    vessel-cam --texture bark.png --stats out/stats.yaml --output bark.obj

The output format is taken from ``--format``, else from the output file
suffix, else from ``export_format`` in the parameter file.
"""

from __future__ import annotations

import argparse
import logging
import sys
from typing import Any, Optional, Sequence

import yaml

from vessel_cam.configs.loader import ConfigError, load_params
from vessel_cam.exporters.export import FILE_EXTENSIONS, write_export
from vessel_cam.gcode.profiles import GCodeError
from vessel_cam.geometry.mesh import MeshError
from vessel_cam.geometry.stats import estimate_print_stats
from vessel_cam.geometry.texture import TextureError, load_texture
from vessel_cam.utils.fs import atomic_yaml_dump
from vessel_cam.utils.logging_config import (
    install_excepthook,
    push_context,
    setup_logging,
)

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_BAD_INPUT = 2


def parse_overrides(items: Sequence[str]) -> dict[str, Any]:
    """Turn ``key=value`` strings into a (nested) change mapping.

    Values are parsed as YAML scalars, so ``layers=200`` yields an int
    and ``printer.type=wasp`` a string under ``printer``.

    Raises
    ------
    ConfigError
        If an item has no ``=`` or an empty key.
    """
    changes: dict[str, Any] = {}
    for item in items:
        key, sep, raw = item.partition("=")
        key = key.strip()
        if not sep or not key:
            raise ConfigError(f"Override must look like key=value, got {item!r}")
        value = yaml.safe_load(raw) if raw.strip() else None

        target = changes
        *parents, leaf = key.split(".")
        for part in parents:
            target = target.setdefault(part, {})
            if not isinstance(target, dict):
                raise ConfigError(f"Override {item!r} conflicts with {part!r}")
        target[leaf] = value
    return changes


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Generate a vessel and export it as mesh or G-code",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=f"Formats: {', '.join(FILE_EXTENSIONS)}",
    )
    parser.add_argument(
        "--params",
        "-p",
        type=str,
        help="Vessel parameter file (YAML); defaults to the shipped vessel.yaml",
    )
    parser.add_argument(
        "--output",
        "-o",
        type=str,
        required=True,
        help="Output file path",
    )
    parser.add_argument(
        "--format",
        "-f",
        type=str,
        choices=list(FILE_EXTENSIONS),
        help="Export format (overrides suffix and parameter file)",
    )
    parser.add_argument(
        "--texture",
        "-t",
        type=str,
        help="Image used as luminance displacement map",
    )
    parser.add_argument(
        "--stats",
        type=str,
        help="Write estimated print statistics to this YAML file",
    )
    parser.add_argument(
        "--set",
        dest="overrides",
        action="append",
        default=[],
        metavar="KEY=VALUE",
        help="Override a parameter (repeatable; dotted keys for printer.*)",
    )
    parser.add_argument(
        "--log-level",
        default="INFO",
        type=str.upper,
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        help="Logging level",
    )
    parser.add_argument("--log-file", type=str, help="Also log to this file")
    parser.add_argument(
        "--json-logs",
        action="store_true",
        help="Write the log file as JSON lines",
    )
    return parser


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = build_parser().parse_args(argv)

    setup_logging(
        args.log_level,
        args.log_file,
        json=args.json_logs,
        quiet_libs=["PIL"],
        context={"app": "export"},
    )
    install_excepthook()

    try:
        params = load_params(args.params)
        if args.overrides:
            params = params.with_changes(**parse_overrides(args.overrides))
        texture = load_texture(args.texture) if args.texture else None
    except (ConfigError, TextureError, FileNotFoundError) as e:
        logger.error("Invalid input: %s", e)
        return EXIT_BAD_INPUT

    push_context(format=args.format or "auto")
    try:
        path = write_export(args.output, params, texture, args.format)
        if args.stats:
            stats = estimate_print_stats(params, texture)
            atomic_yaml_dump(stats.to_dict(), args.stats)
            logger.info(
                "Estimated %.1f min, %.2f m filament, %.1f g clay -> %s",
                stats.estimated_time,
                stats.filament_length,
                stats.filament_weight,
                args.stats,
            )
    except (MeshError, GCodeError) as e:
        logger.error("Export failed: %s", e)
        return EXIT_FAILURE
    except RuntimeError:
        logger.exception("Export failed")
        return EXIT_FAILURE

    logger.info("Export complete: %s", path)
    return EXIT_OK


if __name__ == "__main__":
    sys.exit(main())
