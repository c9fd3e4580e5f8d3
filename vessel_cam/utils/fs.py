"""Atomic file output and YAML helpers.

Exports are picked up by slicers and printer hosts that watch a folder,
so a file must appear complete or not at all.  Every write goes to a
uniquely named sibling temp file, is fsynced, then moved over the target
with ``os.replace``.

Usage:
    from vessel_cam.utils import fs
    fs.atomic_write_text(out_dir / "vessel.gcode", gcode)
    fs.atomic_yaml_dump(stats.to_dict(), out_dir / "vessel_stats.yaml")
    params = fs.load_yaml("vessel.yaml")
"""

import os
import tempfile
from pathlib import Path
from typing import Any, Union

import yaml

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    """Create *p* (and parents) if missing; return it as a ``Path``."""
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


def atomic_write_bytes(path: PathLike, data: bytes) -> None:
    """Replace *path* with *data* in one rename.

    Parameters
    ----------
    path : str | Path
        Target file.  Missing parent directories are created.
    data : bytes
        Complete file contents.

    Raises
    ------
    RuntimeError
        If the temp file cannot be written or moved into place.  The temp
        file is removed and any previous *path* is left untouched.
    """
    path = Path(path)
    try:
        directory = ensure_dir(path.parent)
        fd, tmp_name = tempfile.mkstemp(
            dir=directory, prefix=f".{path.name}.", suffix=".tmp"
        )
    except OSError as e:
        raise RuntimeError(f"Cannot create a temp file for {path}: {e}") from e

    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, path)
    except OSError as e:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise RuntimeError(f"Failed to write {path} atomically: {e}") from e


def atomic_write_text(path: PathLike, text: str, encoding: str = "utf-8") -> None:
    """Text wrapper around ``atomic_write_bytes``."""
    atomic_write_bytes(path, text.encode(encoding))


def atomic_yaml_dump(obj: Any, path: PathLike) -> None:
    """Write *obj* as block-style YAML, keeping mapping order."""
    text = yaml.safe_dump(
        obj, default_flow_style=False, sort_keys=False, allow_unicode=True
    )
    atomic_write_text(path, text)


def load_yaml(path: PathLike) -> Any:
    """Parse a YAML file with ``yaml.safe_load``.

    Returns ``None`` for an empty document.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    yaml.YAMLError
        If the document is malformed; the message names the file.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")

    with path.open("r", encoding="utf-8") as f:
        try:
            return yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise yaml.YAMLError(f"{path}: {e}") from e
