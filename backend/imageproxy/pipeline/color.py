from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Optional, Tuple

from PIL import ImageColor  # type: ignore


@dataclass(frozen=True)
class Color:
    r: int
    g: int
    b: int
    a: int = 255
    has_alpha_channel: bool = False

    def is_transparent(self) -> bool:
        return self.a == 0

    def to_rgba(self) -> Tuple[int, int, int, int]:
        return self.r, self.g, self.b, self.a


TRANSPARENT = Color(0, 0, 0, 0, has_alpha_channel=True)


def _expand_short(digits: str) -> str:
    return "".join(ch * 2 for ch in digits)


def parse_color(value: Optional[str]) -> Optional[Color]:
    """Parse a color string; None when it is missing or malformed.

    Hex forms put alpha first: ``#RGB``, ``#ARGB``, ``#RRGGBB``,
    ``#AARRGGBB``; the ``#`` is optional. CSS color names and ``transparent``
    are accepted too.
    """
    if value is None:
        return None
    text = str(value).strip().lower()
    if not text:
        return None
    if text == "transparent":
        return TRANSPARENT

    # Pillow replaces colormap entries with RGB tuples once they are resolved
    named = ImageColor.colormap.get(text)
    if isinstance(named, tuple):
        return Color(*named[:3])
    if isinstance(named, str) and named.startswith("#"):
        text = named

    digits = text.lstrip("#")
    if not digits or any(ch not in string.hexdigits for ch in digits):
        return None

    if len(digits) in (3, 4):
        digits = _expand_short(digits)
    if len(digits) == 6:
        alpha = 255
        has_alpha = False
    elif len(digits) == 8:
        alpha = int(digits[0:2], 16)
        digits = digits[2:]
        has_alpha = True
    else:
        return None

    return Color(
        r=int(digits[0:2], 16),
        g=int(digits[2:4], 16),
        b=int(digits[4:6], 16),
        a=alpha,
        has_alpha_channel=has_alpha,
    )
