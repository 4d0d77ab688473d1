from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Sequence, Union

import numpy as np

from .errors import RasterEngineError

FORMATS: Dict[str, Any] = {
    "uchar": np.uint8,
    "ushort": np.uint16,
    "float": np.float32,
    "double": np.float64,
}

_INTEGER_RANGES = {
    "uchar": (0, 255),
    "ushort": (0, 65535),
}

ORIENTATION_KEY = "orientation"


def maximum_image_alpha(interpretation: str) -> int:
    """Largest alpha value for an interpretation: 16-bit spaces use 65535."""
    return 65535 if interpretation in ("rgb16", "grey16") else 255


def format_of(dtype: Any) -> str:
    dt = np.dtype(dtype)
    for name, candidate in FORMATS.items():
        if np.dtype(candidate) == dt:
            return name
    raise RasterEngineError(f"Unsupported pixel format: {dt}")


def _to_format(pixels: np.ndarray, fmt: str) -> np.ndarray:
    if fmt not in FORMATS:
        raise RasterEngineError(f"Unknown band format: {fmt}")
    if fmt in _INTEGER_RANGES:
        lo, hi = _INTEGER_RANGES[fmt]
        if np.issubdtype(pixels.dtype, np.floating):
            pixels = np.rint(pixels)
        return np.clip(pixels, lo, hi).astype(FORMATS[fmt])
    return pixels.astype(FORMATS[fmt])


@dataclass
class Raster:
    """A decoded image held as an (height, width, bands) numpy array.

    Operations never modify the receiver; each returns a new Raster carrying a
    copy of the metadata.
    """

    pixels: np.ndarray
    interpretation: str = "srgb"
    metadata: Dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if self.pixels.ndim == 2:
            self.pixels = self.pixels[:, :, np.newaxis]
        if self.pixels.ndim != 3 or 0 in self.pixels.shape:
            raise RasterEngineError(f"Invalid raster shape: {self.pixels.shape}")
        format_of(self.pixels.dtype)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])

    @property
    def bands(self) -> int:
        return int(self.pixels.shape[2])

    @property
    def format(self) -> str:
        return format_of(self.pixels.dtype)

    def has_alpha(self) -> bool:
        if self.bands == 2 and self.interpretation in ("b-w", "grey16"):
            return True
        if self.bands == 4 and self.interpretation != "cmyk":
            return True
        return self.bands == 5 and self.interpretation == "cmyk"

    def integer_format(self) -> str:
        """Unsigned integer format matching the interpretation's range."""
        return "ushort" if maximum_image_alpha(self.interpretation) == 65535 else "uchar"

    def _derive(self, pixels: np.ndarray, interpretation: Optional[str] = None) -> "Raster":
        return Raster(
            pixels=pixels,
            interpretation=interpretation or self.interpretation,
            metadata=dict(self.metadata),
        )

    # Metadata

    def get(self, name: str, default: Any = None) -> Any:
        return self.metadata.get(name, default)

    def remove(self, name: str) -> "Raster":
        out = self._derive(self.pixels)
        out.metadata.pop(name, None)
        return out

    # Band algebra

    def extract_band(self, index: int, n: int = 1) -> "Raster":
        if index < 0 or n < 1 or index + n > self.bands:
            raise RasterEngineError(
                f"Band range {index}..{index + n - 1} outside image with {self.bands} bands"
            )
        return self._derive(self.pixels[:, :, index:index + n].copy())

    def bandjoin(self, others: Sequence["Raster"]) -> "Raster":
        arrays = [self.pixels]
        for other in others:
            if (other.width, other.height) != (self.width, self.height):
                raise RasterEngineError(
                    f"bandjoin size mismatch: {other.width}x{other.height} vs {self.width}x{self.height}"
                )
            arrays.append(other.pixels)
        dtype = np.result_type(*arrays)
        return self._derive(np.concatenate([a.astype(dtype, copy=False) for a in arrays], axis=2))

    def cast(self, fmt: str) -> "Raster":
        return self._derive(_to_format(self.pixels, fmt))

    def new_from_image(self, values: Union[float, Sequence[float]]) -> "Raster":
        """Constant image with this image's size, format and interpretation."""
        vals = np.atleast_1d(np.asarray(values, dtype=np.float64))
        const = np.broadcast_to(vals, (self.height, self.width, vals.size))
        return Raster(
            pixels=_to_format(const, self.format),
            interpretation=self.interpretation,
        )

    # Alpha handling

    def premultiply(self, max_alpha: Optional[float] = None) -> "Raster":
        px = self.pixels.astype(np.float32)
        if self.bands < 2:
            return self._derive(px)
        max_alpha = float(max_alpha or maximum_image_alpha(self.interpretation))
        alpha = px[:, :, -1:]
        color = px[:, :, :-1] * (alpha / max_alpha)
        return self._derive(np.concatenate([color, alpha], axis=2))

    def unpremultiply(self, max_alpha: Optional[float] = None) -> "Raster":
        px = self.pixels.astype(np.float32)
        if self.bands < 2:
            return self._derive(px)
        max_alpha = float(max_alpha or maximum_image_alpha(self.interpretation))
        alpha = px[:, :, -1:]
        factor = np.divide(
            np.float32(max_alpha), alpha, out=np.zeros_like(alpha), where=alpha > 0
        )
        color = px[:, :, :-1] * factor
        return self._derive(np.concatenate([color, alpha], axis=2))

    def composite_over(self, overlay: "Raster", premultiplied: bool = False) -> "Raster":
        """Composite ``overlay`` over this image with the "over" blend mode.

        When ``premultiplied`` is true both operands must already carry
        premultiplied alpha and the result is left premultiplied (float).
        Otherwise operands are premultiplied here and the result is returned
        unpremultiplied in this image's format.
        """
        if (overlay.width, overlay.height) != (self.width, self.height):
            raise RasterEngineError("composite operands must have the same size")
        if overlay.bands != self.bands or not overlay.has_alpha():
            raise RasterEngineError(
                f"composite needs matching alpha-bearing operands, got {self.bands} and {overlay.bands} bands"
            )
        max_alpha = float(maximum_image_alpha(overlay.interpretation))
        base = self if premultiplied else self.premultiply(max_alpha)
        top = overlay if premultiplied else overlay.premultiply(max_alpha)
        base_px = base.pixels.astype(np.float32)
        top_px = top.pixels.astype(np.float32)

        coverage = top_px[:, :, -1:] / max_alpha
        out = overlay._derive(top_px + base_px * (1.0 - coverage))
        if premultiplied:
            return out
        return out.unpremultiply(max_alpha).cast(self.format)

    def flatten(self, background: Union[float, Sequence[float]]) -> "Raster":
        """Blend alpha out against a solid background and drop the alpha band."""
        if not self.has_alpha():
            return self._derive(self.pixels.copy())
        max_alpha = float(maximum_image_alpha(self.interpretation))
        px = self.pixels.astype(np.float64)
        alpha = px[:, :, -1:] / max_alpha
        color = px[:, :, :-1]

        bg = np.atleast_1d(np.asarray(background, dtype=np.float64))
        if bg.size == 1:
            bg = np.repeat(bg, color.shape[2])
        if bg.size != color.shape[2]:
            raise RasterEngineError(
                f"Background has {bg.size} values for {color.shape[2]} color bands"
            )
        out = color * alpha + bg * (1.0 - alpha)
        return self._derive(_to_format(out, self.format))

    # Geometry

    def copy_memory(self) -> "Raster":
        return self._derive(np.ascontiguousarray(self.pixels).copy())

    def rot(self, angle: int) -> "Raster":
        """Rotate clockwise by a multiple of 90 degrees."""
        if angle not in (0, 90, 180, 270):
            raise RasterEngineError(f"Unsupported rotation angle: {angle}")
        return self._derive(np.ascontiguousarray(np.rot90(self.pixels, k=-(angle // 90), axes=(0, 1))))

    def flipver(self) -> "Raster":
        return self._derive(self.pixels[::-1, :, :].copy())

    def fliphor(self) -> "Raster":
        return self._derive(self.pixels[:, ::-1, :].copy())

    def extract_area(self, left: int, top: int, width: int, height: int) -> "Raster":
        if (
            left < 0
            or top < 0
            or width <= 0
            or height <= 0
            or left + width > self.width
            or top + height > self.height
        ):
            raise RasterEngineError(
                f"Area {left},{top} {width}x{height} outside image {self.width}x{self.height}"
            )
        return self._derive(self.pixels[top:top + height, left:left + width, :].copy())
