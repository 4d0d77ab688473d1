"""Raster engine adapter.

Modules:
- image: the `Raster` type and its band/compositing operations
- vector: rasterization of shape paths into alpha masks
- io: decode/encode through Pillow
- errors: engine failures
"""

from .errors import ImageNotReadableError, RasterEngineError
from .image import Raster, maximum_image_alpha

__all__ = [
    "ImageNotReadableError",
    "Raster",
    "RasterEngineError",
    "maximum_image_alpha",
]
