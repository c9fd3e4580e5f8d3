"""Luminance textures used as radial displacement maps.

A ``TextureData`` is a row-major grid of 8-bit luminance samples.  It is
validated once at construction and is read-only afterwards, so a single
instance can be shared by any number of concurrent surface evaluations.

Coordinate frame:
    Raster images are stored top-down while the vessel height axis runs
    bottom-up, so ``v`` is inverted before lookup.  The horizontal axis
    wraps (the surface is closed around ``u``); the vertical axis clamps.

Ingestion:
    ``load_texture()`` decodes an image file, raw bytes or a base64
    ``data:`` URL with Pillow, downscales it so its longer side is at most
    512 px and converts it to Rec. 601 luma (PIL mode ``"L"``).
"""

from __future__ import annotations

import base64
import binascii
import io
import logging
import math
from dataclasses import dataclass
from pathlib import Path
from typing import Union

import numpy as np
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger(__name__)

MAX_TEXTURE_SIZE = 512
"""Longest texture side after ingestion downscaling (px)."""

TextureSource = Union[str, Path, bytes, Image.Image]


class TextureError(ValueError):
    """Raised when a luminance grid is malformed or an image cannot be decoded."""

    pass


# ---------------------------------------------------------------------------
# Data
# ---------------------------------------------------------------------------


@dataclass(frozen=True, eq=False)
class TextureData:
    """Row-major 8-bit luminance grid.

    Parameters
    ----------
    width, height : int
        Grid dimensions in samples.  Both must be positive.
    data : np.ndarray
        Flat ``uint8`` array of length ``width * height``.  Any 1-D
        sequence of integers in ``[0, 255]`` is accepted and copied.
    """

    width: int
    height: int
    data: np.ndarray

    def __post_init__(self) -> None:
        if self.width <= 0 or self.height <= 0:
            raise TextureError(
                f"Texture dimensions must be positive, got "
                f"{self.width}x{self.height}"
            )
        arr = np.asarray(self.data)
        if arr.ndim != 1:
            raise TextureError(
                f"Texture data must be a flat sequence, got shape {arr.shape}"
            )
        if arr.size != self.width * self.height:
            raise TextureError(
                f"Texture data length {arr.size} does not match "
                f"{self.width}x{self.height}={self.width * self.height}"
            )
        if arr.dtype != np.uint8:
            if arr.size and (arr.min() < 0 or arr.max() > 255):
                raise TextureError("Texture samples must be in [0, 255]")
            arr = arr.astype(np.uint8)
        else:
            arr = arr.copy()
        arr.flags.writeable = False
        object.__setattr__(self, "data", arr)

    @classmethod
    def from_array(cls, grid: np.ndarray) -> "TextureData":
        """Build from a 2-D ``(height, width)`` array."""
        grid = np.asarray(grid)
        if grid.ndim != 2:
            raise TextureError(
                f"Expected a 2-D luminance array, got shape {grid.shape}"
            )
        h, w = grid.shape
        return cls(width=int(w), height=int(h), data=grid.reshape(-1))

    def as_grid(self) -> np.ndarray:
        """Read-only ``(height, width)`` view of the samples."""
        return self.data.reshape(self.height, self.width)

    def sample(self, u, v):
        """Bilinearly sample normalised luminance in ``[0, 1]``.

        Parameters
        ----------
        u : float or np.ndarray
            Angular coordinate; any real value (wraps every integer).
        v : float or np.ndarray
            Height fraction in ``[0, 1]``.

        Returns
        -------
        float or np.ndarray
            Luminance / 255, broadcast over ``u`` and ``v``.
        """
        u_arr = np.asarray(u, dtype=np.float64)
        v_arr = np.asarray(v, dtype=np.float64)
        w, h = self.width, self.height

        tex_x = np.mod(u_arr * w, w)
        tex_y = np.mod((1.0 - v_arr) * h, h)

        # np.mod of a tiny negative can round up to exactly w (or h)
        x1 = np.minimum(np.floor(tex_x).astype(np.int64), w - 1)
        y1 = np.minimum(np.floor(tex_y).astype(np.int64), h - 1)
        x2 = (x1 + 1) % w
        y2 = np.where(y1 + 1 < h, y1 + 1, y1)

        dx = tex_x - x1
        dy = tex_y - y1

        data = self.data
        val11 = data[y1 * w + x1].astype(np.float64)
        val21 = data[y1 * w + x2].astype(np.float64)
        val12 = data[y2 * w + x1].astype(np.float64)
        val22 = data[y2 * w + x2].astype(np.float64)

        val = (
            (val11 * (1.0 - dx) + val21 * dx) * (1.0 - dy)
            + (val12 * (1.0 - dx) + val22 * dx) * dy
        ) / 255.0

        if val.ndim == 0:
            return float(val)
        return val


# ---------------------------------------------------------------------------
# Ingestion
# ---------------------------------------------------------------------------


def _open_image(source: TextureSource) -> Image.Image:
    if isinstance(source, Image.Image):
        return source
    if isinstance(source, bytes):
        return Image.open(io.BytesIO(source))
    if isinstance(source, str) and source.startswith("data:"):
        try:
            _, payload = source.split(",", 1)
            raw = base64.b64decode(payload, validate=True)
        except (ValueError, binascii.Error) as e:
            raise TextureError(f"Malformed data URL: {e}") from e
        return Image.open(io.BytesIO(raw))

    path = Path(source)
    if not path.exists():
        raise FileNotFoundError(f"Texture image not found: {path}")
    return Image.open(path)


def _fit_size(width: int, height: int, max_size: int) -> tuple[int, int]:
    """Scale so the longer side is at most *max_size*, keeping aspect."""
    w, h = float(width), float(height)
    if w > h:
        if w > max_size:
            h *= max_size / w
            w = max_size
    else:
        if h > max_size:
            w *= max_size / h
            h = max_size
    return max(1, math.floor(w)), max(1, math.floor(h))


def load_texture(
    source: TextureSource,
    max_size: int = MAX_TEXTURE_SIZE,
) -> TextureData:
    """Decode an image into a validated luminance ``TextureData``.

    Parameters
    ----------
    source : str | Path | bytes | PIL.Image.Image
        Image path, encoded image bytes, ``data:`` URL, or an open image.
    max_size : int
        Longest side after downscaling, default 512.

    Returns
    -------
    TextureData
        Row-major Rec. 601 luminance grid.

    Raises
    ------
    TextureError
        If the source cannot be decoded as an image, is truncated, or
        exceeds the decompression-bomb pixel limit.
    FileNotFoundError
        If a path source does not exist.
    """
    if max_size <= 0:
        raise TextureError(f"max_size must be positive, got {max_size}")

    try:
        img = _open_image(source)
        img.load()
    except FileNotFoundError:
        raise
    except UnidentifiedImageError as e:
        raise TextureError(f"Cannot decode texture image: {e}") from e
    except (OSError, Image.DecompressionBombError) as e:
        raise TextureError(f"Cannot read texture image: {e}") from e

    # Flatten alpha onto black so transparent pixels read as zero displacement
    if img.mode in ("RGBA", "LA", "P"):
        rgba = img.convert("RGBA")
        background = Image.new("RGBA", rgba.size, (0, 0, 0, 255))
        img = Image.alpha_composite(background, rgba)

    size = _fit_size(img.width, img.height, max_size)
    if size != img.size:
        img = img.resize(size, Image.Resampling.BILINEAR)

    luminance = np.asarray(img.convert("L"), dtype=np.uint8)
    logger.debug(
        "Loaded texture %dx%d (source %s)",
        luminance.shape[1], luminance.shape[0], type(source).__name__,
    )
    return TextureData.from_array(luminance)
