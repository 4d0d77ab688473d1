import numpy as np

from imageproxy.pipeline.background import apply_background, background_stage
from imageproxy.pipeline.color import parse_color
from imageproxy.pipeline.params import ManipulationOptions, PipelineState
from imageproxy.raster.image import Raster


def _rgba():
    px = np.zeros((1, 2, 4), dtype=np.uint8)
    px[0, 0] = [0, 0, 0, 0]
    px[0, 1] = [10, 20, 30, 255]
    return Raster(pixels=px, interpretation="srgb")


def test_transparent_color_is_noop():
    image = _rgba()
    state = PipelineState()
    out, out_state = apply_background(image, parse_color("#00ff0000"), state)
    assert out is image
    assert out_state is state


def test_missing_color_or_alpha_is_noop():
    image = _rgba()
    state = PipelineState()
    assert apply_background(image, None, state)[0] is image

    rgb = Raster(pixels=np.zeros((2, 2, 3), dtype=np.uint8))
    assert apply_background(rgb, parse_color("red"), state)[0] is rgb


def test_flatten_opaque_color():
    out, state = apply_background(_rgba(), parse_color("#ff0000"), PipelineState())
    assert out.bands == 3
    assert out.format == "uchar"
    assert out.pixels[0, 0].tolist() == [255, 0, 0]
    assert out.pixels[0, 1].tolist() == [10, 20, 30]
    assert state.is_premultiplied is False


def test_flatten_greyscale_uses_luma():
    px = np.array([[[0, 0], [100, 255]]], dtype=np.uint8)
    grey = Raster(pixels=px, interpretation="b-w")
    out, _ = apply_background(grey, parse_color("#00ff00"), PipelineState())
    assert out.bands == 1
    assert out.pixels[0, 0, 0] == round(0.7152 * 255)
    assert out.pixels[0, 1, 0] == 100


def test_flatten_greyscale_with_alpha_color_still_flattens():
    px = np.array([[[0, 0]]], dtype=np.uint8)
    grey = Raster(pixels=px, interpretation="b-w")
    out, state = apply_background(grey, parse_color("#80ffffff"), PipelineState())
    assert out.bands == 1
    assert out.pixels[0, 0, 0] == 255
    assert state.is_premultiplied is False


def test_flatten_unpremultiplies_first():
    image = _rgba().premultiply()
    state = PipelineState(is_premultiplied=True)
    out, out_state = apply_background(image, parse_color("#0000ff"), state)
    assert out_state.is_premultiplied is False
    assert out.format == "uchar"
    assert out.pixels[0, 0].tolist() == [0, 0, 255]
    assert out.pixels[0, 1].tolist() == [10, 20, 30]


def test_flatten_16bit_scales_color():
    px = np.zeros((1, 1, 4), dtype=np.uint16)
    image = Raster(pixels=px, interpretation="rgb16")
    out, _ = apply_background(image, parse_color("#ffffff"), PipelineState())
    assert out.format == "ushort"
    assert out.pixels[0, 0].tolist() == [65535, 65535, 65535]


def test_composite_translucent_color_premultiplies():
    out, state = apply_background(_rgba(), parse_color("#80ff0000"), PipelineState())
    assert state.is_premultiplied is True
    assert out.bands == 4
    assert np.allclose(out.pixels[0, 0], [128, 0, 0, 128])
    assert np.allclose(out.pixels[0, 1], [10, 20, 30, 255])

    restored = out.unpremultiply().cast("uchar")
    assert restored.pixels[0, 0].tolist() == [255, 0, 0, 128]


def test_composite_does_not_premultiply_twice():
    image = _rgba().premultiply()
    state = PipelineState(is_premultiplied=True)
    out, out_state = apply_background(image, parse_color("#80ff0000"), state)
    assert out_state.is_premultiplied is True
    assert np.allclose(out.pixels[0, 1], [10, 20, 30, 255])


def test_stage_reads_typed_options():
    options = ManipulationOptions.from_params({"bg": "black"})
    out, _ = background_stage(_rgba(), PipelineState(options=options))
    assert out.bands == 3
    assert out.pixels[0, 0].tolist() == [0, 0, 0]
