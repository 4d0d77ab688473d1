from __future__ import annotations

from typing import Optional, Tuple

from .geometry import round_half_away


def resolve_trim(
    width: int,
    height: int,
    mask_width: float,
    mask_height: float,
) -> Optional[Tuple[int, int, int, int]]:
    """Centered crop rectangle fitting the mask box scaled into the canvas.

    Returns ``(left, top, trim_width, trim_height)``, or None when the mask box
    has no area.
    """
    if mask_width <= 0 or mask_height <= 0:
        return None

    scale = min(width / mask_width, height / mask_height)
    trim_width = mask_width * scale
    trim_height = mask_height * scale
    left = int(round_half_away((width - trim_width) / 2))
    top = int(round_half_away((height - trim_height) / 2))

    return left, top, int(round_half_away(trim_width)), int(round_half_away(trim_height))
