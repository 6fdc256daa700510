import pytest

from depth_heatmap.engine.colors import (
    HEATMAP_PALETTES, interpolate_color, parse_hex, to_hex,
)


def test_parse_and_format():
    assert parse_hex("#0a141e") == (10, 20, 30)
    assert to_hex(10, 20, 30) == "#0a141e"


@pytest.mark.parametrize("factor, expected", [
    (0.0, "#000000"),
    (0.5, "#808080"),
    (1.0, "#ffffff"),
    (-1.0, "#000000"),
    (2.0, "#ffffff"),
])
def test_interpolate_clamps(factor, expected):
    assert interpolate_color("#000000", "#ffffff", factor) == expected


def test_interpolate_per_channel():
    assert interpolate_color("#2e0704", "#ff0000", 0.4) == "#820402"


def test_palettes_cover_both_themes():
    assert set(HEATMAP_PALETTES) == {"color", "monochrome"}
    bid, ask = HEATMAP_PALETTES["monochrome"]
    assert bid == ask


def test_interpolate_rounds_half_up():
    # 2.5 and 252.5 both round up, not to the even neighbour
    assert interpolate_color("#000000", "#050505", 0.5) == "#030303"
    assert interpolate_color("#00d7ff", "#56fffa", 0.5) == "#2bebfd"
