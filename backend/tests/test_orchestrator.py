from dataclasses import replace

import numpy as np
import pytest

from imageproxy.core.config import Settings
from imageproxy.pipeline.geometry import ShapeKind
from imageproxy.pipeline.orchestrator import PipelineOrchestrator
from imageproxy.raster.errors import RasterEngineError
from imageproxy.raster.image import ORIENTATION_KEY, Raster


def _settings(**overrides):
    values = {"manipulators": ["orientation", "shape", "background"], "default_params": {}, "presets": {}}
    values.update(overrides)
    return Settings(**values)


def _rgba(width=40, height=40):
    px = np.zeros((height, width, 4), dtype=np.uint8)
    px[:, :, :3] = (10, 20, 30)
    px[:, :, 3] = 255
    return Raster(pixels=px)


def test_shape_and_translucent_background_end_to_end():
    orchestrator = PipelineOrchestrator(settings=_settings())
    out, state = orchestrator.run_with_state(_rgba(), {"shape": "circle", "bg": "#80ff0000"})

    assert state.is_premultiplied is False
    assert out.format == "uchar"
    assert out.bands == 4
    assert out.pixels[0, 0].tolist() == [255, 0, 0, 128]
    assert out.pixels[20, 20].tolist() == [10, 20, 30, 255]


def test_run_returns_image_only():
    out = PipelineOrchestrator(settings=_settings()).run(_rgba(), {"shape": "square", "bg": "white"})
    assert isinstance(out, Raster)
    assert out.bands == 3
    assert out.pixels[0, 0].tolist() == [255, 255, 255]


def test_no_params_is_pass_through():
    image = _rgba()
    out = PipelineOrchestrator(settings=_settings()).run(image, {})
    assert np.array_equal(out.pixels, image.pixels)


def test_unknown_shape_is_not_a_failure():
    image = _rgba()
    out = PipelineOrchestrator(settings=_settings()).run(image, {"shape": "octagon"})
    assert np.array_equal(out.pixels, image.pixels)


def test_exif_orientation_applied_and_removed():
    px = np.zeros((2, 3, 3), dtype=np.uint8)
    px[0, 0] = 255
    image = Raster(pixels=px, metadata={ORIENTATION_KEY: 6})

    out, state = PipelineOrchestrator(settings=_settings()).run_with_state(image, {})

    assert state.rotation == 90
    assert (out.width, out.height) == (2, 3)
    assert out.pixels[0, 1].tolist() == [255, 255, 255]
    assert ORIENTATION_KEY not in out.metadata


def test_unknown_stage_rejected():
    with pytest.raises(ValueError):
        PipelineOrchestrator(["orientation", "sharpen"], settings=_settings())


def test_stage_failure_propagates_and_aborts():
    calls = []

    def failing(image, state):
        raise RasterEngineError("boom")

    def later(image, state):
        calls.append("later")
        return image, state

    orchestrator = PipelineOrchestrator([failing, later], settings=_settings())
    with pytest.raises(RasterEngineError, match="boom"):
        orchestrator.run(_rgba(), {})
    assert calls == []


def test_premultiplied_output_is_always_restored():
    def premultiplying(image, state):
        params = dict(state.params, derived="1")
        return image.premultiply(), replace(state, is_premultiplied=True, params=params)

    def check(image, state):
        assert state.params["derived"] == "1"
        return image, state

    orchestrator = PipelineOrchestrator([premultiplying, check], settings=_settings())
    out, state = orchestrator.run_with_state(_rgba(), {})
    assert state.is_premultiplied is False
    assert state.params["derived"] == "1"
    assert out.format == "uchar"
    assert out.pixels[0, 0].tolist() == [10, 20, 30, 255]


def test_defaults_and_presets_from_settings():
    settings = _settings(default_params={"bg": "black"}, presets={"avatar": {"shape": "circle"}})
    orchestrator = PipelineOrchestrator(settings=settings)
    _, state = orchestrator.run_with_state(_rgba(), {"p": "avatar"})
    assert state.options.shape.shape is ShapeKind.CIRCLE
    assert state.params["bg"] == "black"


def test_stage_order_from_settings():
    orchestrator = PipelineOrchestrator(settings=_settings(manipulators=["background"]))
    assert [name for name, _ in orchestrator.stages] == ["background"]
    out = orchestrator.run(_rgba(), {"shape": "circle"})
    assert out.bands == 4
    assert np.all(out.pixels[:, :, 3] == 255)
