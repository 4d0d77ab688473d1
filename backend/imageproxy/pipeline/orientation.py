from __future__ import annotations

from typing import Any, Dict, Optional, Tuple

from imageproxy.raster.image import ORIENTATION_KEY, Raster

from .params import OrientationOptions, PipelineState

# EXIF orientation -> (clockwise rotation, flip, flop) that restores display order
EXIF_TRANSFORMS: Dict[int, Tuple[int, bool, bool]] = {
    1: (0, False, False),
    2: (0, False, True),
    3: (180, False, False),
    4: (180, False, True),
    5: (270, True, False),
    6: (90, False, False),
    7: (90, True, False),
    8: (270, False, False),
}


def exif_orientation(image: Raster) -> int:
    value: Any = image.get(ORIENTATION_KEY)
    try:
        orientation = int(value)
    except (TypeError, ValueError):
        return 0
    return orientation if orientation in EXIF_TRANSFORMS else 0


def resolve(
    exif: Optional[int],
    requested: Optional[OrientationOptions] = None,
) -> Tuple[int, bool, bool]:
    """Combine the EXIF orientation with a requested angle and mirroring.

    Returns ``(rotation, flip, flop)`` with rotation in {0, 90, 180, 270}.
    """
    requested = requested or OrientationOptions()
    rotate, flip, flop = EXIF_TRANSFORMS.get(exif or 0, (0, False, False))
    rotation = (rotate + requested.angle) % 360
    return rotation, flip or requested.flip, flop or requested.flop


def apply_orientation(image: Raster, rotation: int, flip: bool, flop: bool) -> Raster:
    if rotation != 0:
        image = image.copy_memory().rot(rotation)

    # mirror about the horizontal axis
    if flip:
        image = image.flipver()

    # mirror about the vertical axis
    if flop:
        image = image.fliphor()

    # Remove EXIF orientation, if any
    if image.get(ORIENTATION_KEY) is not None:
        image = image.remove(ORIENTATION_KEY)

    return image


def resolve_and_apply(image: Raster, requested: Optional[OrientationOptions] = None) -> Raster:
    rotation, flip, flop = resolve(exif_orientation(image), requested)
    return apply_orientation(image, rotation, flip, flop)


def orientation_stage(image: Raster, state: PipelineState) -> Tuple[Raster, PipelineState]:
    return apply_orientation(image, state.rotation, state.flip, state.flop), state
