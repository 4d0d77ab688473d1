import pytest

from imageproxy.pipeline.color import Color, parse_color


@pytest.mark.parametrize(
    "value,expected",
    [
        ("#ff0000", Color(255, 0, 0, 255, False)),
        ("00ff00", Color(0, 255, 0, 255, False)),
        ("#abc", Color(0xAA, 0xBB, 0xCC, 255, False)),
        ("#8abc", Color(0xAA, 0xBB, 0xCC, 0x88, True)),
        ("#80FF0000", Color(255, 0, 0, 128, True)),
        ("#00ffffff", Color(255, 255, 255, 0, True)),
        ("transparent", Color(0, 0, 0, 0, True)),
    ],
)
def test_parse_color(value, expected):
    assert parse_color(value) == expected


def test_named_colors():
    assert parse_color("red").to_rgba() == (255, 0, 0, 255)
    assert parse_color("White").to_rgba() == (255, 255, 255, 255)
    assert not parse_color("black").has_alpha_channel


@pytest.mark.parametrize("value", [None, "", "zzz", "#12345", "#1234567890", "not-a-color"])
def test_invalid_colors_are_none(value):
    assert parse_color(value) is None


def test_transparency():
    assert parse_color("#0fff").is_transparent()
    assert not parse_color("#ffff").is_transparent()
