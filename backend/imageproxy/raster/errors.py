from __future__ import annotations


class RasterEngineError(RuntimeError):
    """Failure raised by the raster engine; never retried by the pipeline."""


class ImageNotReadableError(RasterEngineError):
    pass
