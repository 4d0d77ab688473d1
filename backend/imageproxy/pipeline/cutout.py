from __future__ import annotations

from imageproxy.raster.image import Raster, maximum_image_alpha


def cutout(mask: Raster, dst: Raster) -> Raster:
    """Use ``mask`` as the alpha of ``dst``, intersected with any alpha it had.

    Both alphas are normalized to [0, 1] and multiplied, then rescaled to the
    destination's alpha range, so a pixel is never more opaque than either
    input allows. The joined alpha is cast to the destination's format.
    """
    mask_has_alpha = mask.has_alpha()
    dst_has_alpha = dst.has_alpha()

    if mask_has_alpha:
        mask = mask.extract_band(mask.bands - 1)

    dst_alpha = dst.extract_band(dst.bands - 1)
    if dst_has_alpha:
        dst = dst.extract_band(0, n=dst.bands - 1)

    # one of the two may be 16-bit
    dst_max = maximum_image_alpha(dst.interpretation)
    mask_max = maximum_image_alpha(mask.interpretation)

    if dst_has_alpha:
        combined = (
            mask.pixels.astype("float64") / mask_max
            * (dst_alpha.pixels.astype("float64") / dst_max)
            * dst_max
        )
        mask = Raster(pixels=combined, interpretation=mask.interpretation)

    # Without destination alpha the mask is appended as is: the destination
    # contributes full opacity.
    return dst.bandjoin([mask.cast(dst.format)])
