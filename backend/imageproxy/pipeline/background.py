from __future__ import annotations

from dataclasses import replace
from typing import List, Optional, Tuple, Union

from imageproxy.raster.image import Raster, maximum_image_alpha

from .color import Color
from .params import PipelineState

# Rec. 709 luma weights
LUMA_WEIGHTS = (0.2126, 0.7152, 0.0722)


def _scaled(color: Color, image: Raster) -> List[float]:
    """Color components in the image's numeric range (8-bit colors on 16-bit images)."""
    factor = maximum_image_alpha(image.interpretation) / 255
    return [component * factor for component in color.to_rgba()]


def apply_background(
    image: Raster,
    color: Optional[Color],
    state: PipelineState,
) -> Tuple[Raster, PipelineState]:
    """Put ``color`` behind ``image``.

    Colors with an alpha channel on images with more than two bands are
    alpha-composited and leave the image premultiplied. Every other case is
    flattened, which needs unpremultiplied input.
    """
    if color is None or not image.has_alpha() or color.is_transparent():
        return image, state

    r, g, b, a = _scaled(color, image)

    if image.bands > 2 and color.has_alpha_channel:
        background = image.new_from_image([r, g, b, a]).premultiply()

        if not state.is_premultiplied:
            image = image.premultiply()
            state = replace(state, is_premultiplied=True)

        image = background.composite_over(image, premultiplied=True)
        return image, state

    flat: Union[float, List[float]] = [r, g, b]
    if image.bands < 3:
        flat = LUMA_WEIGHTS[0] * r + LUMA_WEIGHTS[1] * g + LUMA_WEIGHTS[2] * b

    if state.is_premultiplied:
        image = image.unpremultiply().cast(image.integer_format())
        state = replace(state, is_premultiplied=False)

    return image.flatten(flat), state


def background_stage(image: Raster, state: PipelineState) -> Tuple[Raster, PipelineState]:
    return apply_background(image, state.options.background.color, state)
