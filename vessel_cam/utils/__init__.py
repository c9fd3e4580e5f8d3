"""Cross-cutting utilities (lowest dependency layer).

This package provides shared primitives for:
    - Atomic I/O and YAML handling (fs)
    - Unified logging (logging_config)

No module in utils/ may import from upper layers (geometry, gcode, exporters).

Convenience imports:
    from vessel_cam.utils import fs
    from vessel_cam.utils.logging_config import setup_logging, get_logger
"""

from . import fs
from . import logging_config

from .logging_config import get_logger, pop_context, push_context, setup_logging

__all__ = [
    # Modules
    'fs',
    'logging_config',
    # Direct exports
    'setup_logging',
    'get_logger',
    'push_context',
    'pop_context',
]
