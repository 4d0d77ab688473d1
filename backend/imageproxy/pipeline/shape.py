from __future__ import annotations

from typing import Tuple

from imageproxy.raster.image import Raster
from imageproxy.raster.vector import rasterize

from .cutout import cutout
from .geometry import ShapeKind, generate
from .params import PipelineState, ShapeOptions
from .trim import resolve_trim


def apply_shape(image: Raster, options: ShapeOptions) -> Raster:
    """Mask ``image`` with the requested shape and optionally trim to it.

    No shape requested (or an unknown one) passes the image through.
    """
    shape = options.shape
    if shape is None:
        return image

    width = image.width
    height = image.height
    geometry = generate(shape, width, height)

    preserve_aspect = "none" if shape is ShapeKind.ELLIPSE else "xMidYMid meet"
    mask = rasterize(
        geometry.path,
        width,
        height,
        (geometry.x_min, geometry.y_min, geometry.mask_width, geometry.mask_height),
        preserve_aspect,
    )

    image = cutout(mask, image)

    # An ellipse always spans the whole canvas
    if options.trim and shape is not ShapeKind.ELLIPSE:
        trim = resolve_trim(width, height, geometry.mask_width, geometry.mask_height)
        if trim is not None:
            left, top, trim_width, trim_height = trim
            if trim_width < width or trim_height < height:
                image = image.extract_area(
                    left,
                    top,
                    min(trim_width, width - left),
                    min(trim_height, height - top),
                )

    return image


def shape_stage(image: Raster, state: PipelineState) -> Tuple[Raster, PipelineState]:
    return apply_shape(image, state.options.shape), state
