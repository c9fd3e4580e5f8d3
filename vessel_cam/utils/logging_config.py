"""Logging setup for the command-line entrypoints.

Library modules only call ``logging.getLogger(__name__)``.  Handlers are
attached to the root logger here, by whichever entrypoint runs, and a
second ``setup_logging()`` call replaces them instead of stacking more.

Records carry contextual fields pushed with ``push_context()`` (for
example ``app=export format=stl``).  They are stored in a ``ContextVar``
so concurrent exports do not see each other's fields.

Line formats::

    human  2026-10-19T13:45:12.345Z | INFO     | app=export format=stl | Wrote vessel.stl
    json   {"t": "2026-10-19T13:45:12.345000+00:00", "lvl": "INFO", ..., "format": "stl"}

Usage::

    from vessel_cam.utils.logging_config import push_context, setup_logging
    setup_logging("INFO", "logs/export.log", json=True, context={"app": "export"})
    push_context(format="gcode")
"""

import contextvars
import json
import logging
import logging.handlers
import os
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, List, Optional

_context: contextvars.ContextVar[Dict[str, Any]] = contextvars.ContextVar(
    "vessel_cam_log_context", default={}
)

_installed_handlers: List[logging.Handler] = []

_LEVEL_COLORS = {
    "DEBUG": "\033[36m",
    "INFO": "\033[32m",
    "WARNING": "\033[33m",
    "ERROR": "\033[31m",
    "CRITICAL": "\033[35m",
}
_RESET = "\033[0m"


def _resolve_level(level: str) -> int:
    value = logging.getLevelName(level.upper())
    if not isinstance(value, int):
        raise ValueError(f"Unknown log level: {level!r}")
    return value


class ContextFormatter(logging.Formatter):
    """Formats records as human-readable lines or JSON objects.

    Parameters
    ----------
    fmt_mode : str
        ``"human"`` or ``"json"``.
    use_color : bool
        Colour the level name; only honoured when stderr is a TTY.
    tz : str
        ``"UTC"`` or ``"local"`` timestamps.
    """

    def __init__(self, fmt_mode: str = "human", use_color: bool = True, tz: str = "UTC"):
        super().__init__()
        if fmt_mode not in ("human", "json"):
            raise ValueError(f"Unknown format mode: {fmt_mode!r}")
        self.fmt_mode = fmt_mode
        self.use_color = use_color and sys.stderr.isatty()
        self.tz = tz

    def _timestamp(self, record: logging.LogRecord) -> datetime:
        if self.tz == "UTC":
            return datetime.fromtimestamp(record.created, tz=timezone.utc)
        return datetime.fromtimestamp(record.created).astimezone()

    def format(self, record: logging.LogRecord) -> str:
        ts = self._timestamp(record)
        fields = _context.get()
        if self.fmt_mode == "json":
            return self._as_json(record, ts, fields)
        return self._as_text(record, ts, fields)

    def _as_json(self, record: logging.LogRecord, ts: datetime, fields: Dict[str, Any]) -> str:
        entry: Dict[str, Any] = {
            "t": ts.isoformat(),
            "lvl": record.levelname,
            "name": record.name,
            "pid": os.getpid(),
            "msg": record.getMessage(),
        }
        entry.update(fields)
        if record.exc_info:
            entry["exc"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)

    def _as_text(self, record: logging.LogRecord, ts: datetime, fields: Dict[str, Any]) -> str:
        stamp = ts.strftime("%Y-%m-%dT%H:%M:%S.") + f"{ts.microsecond // 1000:03d}"
        if self.tz == "UTC":
            stamp += "Z"

        level = f"{record.levelname:8s}"
        if self.use_color and record.levelname in _LEVEL_COLORS:
            level = f"{_LEVEL_COLORS[record.levelname]}{level}{_RESET}"

        columns = [stamp, level]
        if fields:
            columns.append(" ".join(f"{k}={v}" for k, v in fields.items()))
        columns.append(record.getMessage())

        line = " | ".join(columns)
        if record.exc_info:
            line = f"{line}\n{self.formatException(record.exc_info)}"
        return line


def _create_file_handler(
    log_file: str,
    rotate: Optional[Dict[str, Any]],
    json_format: bool,
    tz: str,
) -> logging.Handler:
    """File handler, optionally rotating by size or by time."""
    Path(log_file).parent.mkdir(parents=True, exist_ok=True)

    mode = (rotate or {}).get("mode")
    if rotate is None:
        handler: logging.Handler = logging.FileHandler(log_file, encoding="utf-8")
    elif mode in (None, "size"):
        handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=rotate.get("max_bytes", 10_000_000),
            backupCount=rotate.get("backup_count", 5),
            encoding="utf-8",
        )
    elif mode == "time":
        handler = logging.handlers.TimedRotatingFileHandler(
            log_file,
            when=rotate.get("when", "D"),
            interval=rotate.get("interval", 1),
            backupCount=rotate.get("backup_count", 7),
            encoding="utf-8",
        )
    else:
        raise ValueError(f"Unknown rotation mode: {mode!r} (use 'size' or 'time')")

    handler.setFormatter(
        ContextFormatter("json" if json_format else "human", use_color=False, tz=tz)
    )
    return handler


def setup_logging(
    log_level: str = "INFO",
    log_file: Optional[str] = None,
    *,
    json: bool = False,
    color: bool = True,
    to_stderr: bool = True,
    rotate: Optional[Dict[str, Any]] = None,
    tz: str = "UTC",
    capture_warnings: bool = True,
    quiet_libs: Optional[List[str]] = None,
    context: Optional[Dict[str, Any]] = None,
) -> Dict[str, Any]:
    """Install console and/or file handlers on the root logger.

    Parameters
    ----------
    log_level : str
        Root level name, e.g. ``"DEBUG"``.
    log_file : str, optional
        Also log to this file.
    json : bool
        JSON lines in the file handler (the console stays human-readable).
    color : bool
        Coloured console level names.
    to_stderr : bool
        Attach a console handler on stderr.
    rotate : dict, optional
        ``{"mode": "size", "max_bytes": ..., "backup_count": ...}`` or
        ``{"mode": "time", "when": "D", "interval": 1, "backup_count": ...}``.
    tz : str
        ``"UTC"`` or ``"local"``.
    capture_warnings : bool
        Route ``warnings`` to the ``py.warnings`` logger.
    quiet_libs : list[str], optional
        Loggers forced to WARNING (e.g. ``["PIL"]``).
    context : dict, optional
        Initial contextual fields.

    Returns
    -------
    dict
        ``{"handlers": [...]}``, the handlers now attached.

    Raises
    ------
    ValueError
        For an unknown level name or rotation mode.
    """
    level = _resolve_level(log_level)
    root = logging.getLogger()

    shutdown()
    root.setLevel(level)

    if to_stderr:
        console = logging.StreamHandler(sys.stderr)
        console.setFormatter(ContextFormatter("human", use_color=color, tz=tz))
        _installed_handlers.append(console)
    if log_file:
        _installed_handlers.append(_create_file_handler(log_file, rotate, json, tz))
    for handler in _installed_handlers:
        root.addHandler(handler)

    for name in quiet_libs or ():
        logging.getLogger(name).setLevel(logging.WARNING)
    if capture_warnings:
        route_warnings()
    if context:
        push_context(**context)

    return {"handlers": list(_installed_handlers)}


def get_logger(name: str) -> logging.Logger:
    """Shorthand for ``logging.getLogger(name)``."""
    return logging.getLogger(name)


def set_level(level: str) -> None:
    """Change the root level after setup."""
    logging.getLogger().setLevel(_resolve_level(level))


def push_context(**fields: Any) -> None:
    """Merge *fields* into the context attached to subsequent records."""
    _context.set({**_context.get(), **fields})


def pop_context(keys: Optional[List[str]] = None) -> None:
    """Drop the given context *keys*, or all context when *keys* is None."""
    if keys is None:
        _context.set({})
        return
    remaining = {k: v for k, v in _context.get().items() if k not in keys}
    _context.set(remaining)


def install_excepthook() -> None:
    """Log uncaught exceptions at CRITICAL before the interpreter exits."""
    def _hook(exc_type, exc_value, exc_tb):
        if issubclass(exc_type, KeyboardInterrupt):
            sys.__excepthook__(exc_type, exc_value, exc_tb)
            return
        logging.getLogger("vessel_cam").critical(
            "Uncaught exception", exc_info=(exc_type, exc_value, exc_tb)
        )

    sys.excepthook = _hook


def route_warnings() -> None:
    """Send ``warnings.warn`` output through logging."""
    logging.captureWarnings(True)


def shutdown() -> None:
    """Flush, detach and close the handlers installed by ``setup_logging``."""
    root = logging.getLogger()
    while _installed_handlers:
        handler = _installed_handlers.pop()
        handler.flush()
        root.removeHandler(handler)
        handler.close()
