from __future__ import annotations

import io
from pathlib import Path
from typing import IO, Optional, Union

import numpy as np
from PIL import Image, UnidentifiedImageError  # type: ignore

from .errors import ImageNotReadableError, RasterEngineError
from .image import ORIENTATION_KEY, Raster

# Pillow formats whose frames are addressable with the `page` option
PAGED_FORMATS = frozenset({"TIFF", "MPO"})

_EXIF_ORIENTATION_TAG = 0x0112

Source = Union[str, Path, bytes, IO[bytes]]


def ensure_dir(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def _open(source: Source) -> Image.Image:
    if isinstance(source, bytes):
        return Image.open(io.BytesIO(source))
    if isinstance(source, (str, Path)):
        return Image.open(str(source))
    return Image.open(source)


def _to_raster(img: Image.Image) -> Raster:
    mode = img.mode
    if mode == "1":
        img, mode = img.convert("L"), "L"
    elif mode == "P":
        mode = "RGBA" if "transparency" in img.info else "RGB"
        img = img.convert(mode)
    elif mode in ("I;16", "I;16L", "I;16B", "I;16N", "I"):
        pixels = np.clip(np.asarray(img), 0, 65535).astype(np.uint16)
        return Raster(pixels=pixels, interpretation="grey16")
    elif mode not in ("L", "LA", "RGB", "RGBA"):
        mode = "RGBA" if "A" in mode or "transparency" in img.info else "RGB"
        img = img.convert(mode)

    interpretation = "b-w" if mode in ("L", "LA") else "srgb"
    return Raster(pixels=np.asarray(img, dtype=np.uint8).copy(), interpretation=interpretation)


def load_image(source: Source, page: Optional[int] = None) -> Raster:
    """Decode an image, keeping its EXIF orientation tag as metadata.

    ``page`` selects a frame of paged formats and is ignored for the rest.
    """
    try:
        img = _open(source)
        loader = img.format or "unknown"
        if page is not None and loader in PAGED_FORMATS:
            img.seek(page)
        img.load()
        orientation = img.getexif().get(_EXIF_ORIENTATION_TAG)
        raster = _to_raster(img)
    except (UnidentifiedImageError, OSError, EOFError, ValueError) as exc:
        raise ImageNotReadableError("Image not readable. Is it a valid image?") from exc

    raster.metadata["loader"] = loader
    if orientation is not None:
        raster.metadata[ORIENTATION_KEY] = int(orientation)
    return raster


def _to_pil(raster: Raster) -> Image.Image:
    if raster.interpretation == "grey16" and raster.bands == 1:
        return Image.fromarray(raster.cast("ushort").pixels[:, :, 0])

    pixels = raster.pixels
    if raster.integer_format() == "ushort":
        pixels = pixels.astype(np.float64) / 257
    pixels = Raster(pixels=pixels, interpretation=raster.interpretation).cast("uchar").pixels
    if raster.bands > 4:
        raise RasterEngineError(f"Cannot encode an image with {raster.bands} bands")
    if raster.bands == 1:
        return Image.fromarray(pixels[:, :, 0])
    return Image.fromarray(pixels)


def encode_image(raster: Raster, fmt: str = "png") -> bytes:
    img = _to_pil(raster)
    if fmt.lower() in ("jpg", "jpeg") and img.mode in ("LA", "RGBA"):
        img = img.convert(img.mode[:-1])
    buffer = io.BytesIO()
    img.save(buffer, format="JPEG" if fmt.lower() == "jpg" else fmt.upper())
    return buffer.getvalue()


def save_png(path: Path, raster: Raster) -> None:
    ensure_dir(path.parent)
    try:
        _to_pil(raster).save(str(path), format="PNG")
    except OSError as exc:
        raise RuntimeError(f"Failed to write image: {path}") from exc
