from imageproxy.pipeline.color import Color
from imageproxy.pipeline.geometry import ShapeKind
from imageproxy.pipeline.params import ManipulationOptions, resolve_params


def test_shape_options():
    options = ManipulationOptions.from_params({"shape": "star", "strim": ""})
    assert options.shape.shape is ShapeKind.STAR
    assert options.shape.trim is True

    assert ManipulationOptions.from_params({"shape": "octagon"}).shape.shape is None
    assert ManipulationOptions.from_params({}).shape.trim is False


def test_deprecated_circle_param():
    assert ManipulationOptions.from_params({"circle": ""}).shape.shape is ShapeKind.CIRCLE
    assert ManipulationOptions.from_params({"shape": "heart", "circle": ""}).shape.shape is ShapeKind.HEART


def test_background_option_falls_back_to_none():
    assert ManipulationOptions.from_params({"bg": "nope"}).background.color is None
    assert ManipulationOptions.from_params({"bg": "#80ff0000"}).background.color == Color(255, 0, 0, 128, True)


def test_orientation_options():
    options = ManipulationOptions.from_params({"or": "-90", "flip": "", "flop": None})
    assert options.orientation.angle == 270
    assert options.orientation.flip is True
    assert options.orientation.flop is True
    assert ManipulationOptions.from_params({"or": "33"}).orientation.angle == 0


def test_page_range():
    assert ManipulationOptions.from_params({"page": "3"}).load.page == 3
    assert ManipulationOptions.from_params({"page": "-1"}).load.page is None
    assert ManipulationOptions.from_params({"page": "100001"}).load.page is None
    assert ManipulationOptions.from_params({"page": "x"}).load.page is None
    assert ManipulationOptions.from_params({"page": "5"}, max_page=4).load.page is None


def test_resolve_params_precedence():
    defaults = {"bg": "white", "shape": "circle"}
    presets = {"star": {"shape": "star"}, "trim": {"strim": ""}}
    merged = resolve_params({"p": "star,missing,trim", "bg": "black"}, defaults, presets)
    assert merged["shape"] == "star"
    assert merged["bg"] == "black"
    assert "strim" in merged


def test_resolve_params_without_presets():
    assert resolve_params({"shape": "heart"}) == {"shape": "heart"}
    assert resolve_params({}, {"bg": "red"}) == {"bg": "red"}
