from __future__ import annotations

from typing import Literal, Tuple

import cv2  # type: ignore
import numpy as np

from imageproxy.pipeline.geometry import EllipsePath, PolygonPath, VectorPath

from .image import Raster

PreserveAspect = Literal["none", "xMidYMid meet"]

# Fixed-point bits for sub-pixel vertex placement in cv2 drawing calls
_SHIFT = 4
_ONE = 1 << _SHIFT


def _view_transform(
    width: int,
    height: int,
    view_box: Tuple[float, float, float, float],
    preserve_aspect: PreserveAspect,
) -> Tuple[float, float, float, float]:
    """Map view box units to canvas pixels as an SVG viewport would."""
    vx, vy, vw, vh = view_box
    if preserve_aspect == "none":
        sx = width / vw
        sy = height / vh
        return sx, sy, -vx * sx, -vy * sy
    scale = min(width / vw, height / vh)
    tx = (width - vw * scale) / 2 - vx * scale
    ty = (height - vh * scale) / 2 - vy * scale
    return scale, scale, tx, ty


def rasterize(
    path: VectorPath,
    width: int,
    height: int,
    view_box: Tuple[float, float, float, float],
    preserve_aspect: PreserveAspect = "xMidYMid meet",
) -> Raster:
    """Render a filled shape into a black RGBA mask whose alpha is the coverage.

    A view box without area renders nothing, leaving the mask fully
    transparent. A polygon's lone ``move_to`` draws nothing either.
    """
    alpha = np.zeros((height, width), dtype=np.uint8)

    if view_box[2] > 0 and view_box[3] > 0:
        sx, sy, tx, ty = _view_transform(width, height, view_box, preserve_aspect)

        # cv2 addresses pixel centers; SVG user space addresses pixel corners
        def fixed(x: float, y: float) -> Tuple[int, int]:
            return int(round((x * sx + tx - 0.5) * _ONE)), int(round((y * sy + ty - 0.5) * _ONE))

        if isinstance(path, EllipsePath):
            center = fixed(path.cx, path.cy)
            axes = (int(round(path.rx * sx * _ONE)), int(round(path.ry * sy * _ONE)))
            cv2.ellipse(alpha, center, axes, 0, 0, 360, 255, thickness=-1, lineType=cv2.LINE_AA, shift=_SHIFT)
        elif isinstance(path, PolygonPath) and len(path.points) >= 3:
            pts = np.array([fixed(x, y) for x, y in path.points], dtype=np.int32)
            cv2.fillPoly(alpha, [pts], 255, lineType=cv2.LINE_AA, shift=_SHIFT)

    color = np.zeros((height, width, 3), dtype=np.uint8)
    return Raster(pixels=np.dstack([color, alpha]), interpretation="srgb")
