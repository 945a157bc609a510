import numpy as np
import pytest

from models.hsl_color import HSLColor
from models.pixel import Pixel
from services.color_space_converter import ColorSpaceConverter
from services.transform_engine import TransformEngine
from tests.conftest import make_raster


@pytest.mark.parametrize("pixel, hue", [
    (Pixel(255, 0, 0), 0.0),
    (Pixel(255, 255, 0), 60.0),
    (Pixel(0, 255, 0), 120.0),
    (Pixel(0, 255, 255), 180.0),
    (Pixel(0, 0, 255), 240.0),
    (Pixel(255, 0, 255), 300.0),
])
def test_primary_and_secondary_hues(pixel, hue):
    hsl = ColorSpaceConverter.to_hsl(pixel)
    assert hsl.hue == pytest.approx(hue)
    assert hsl.saturation == pytest.approx(1.0)
    assert hsl.lightness == pytest.approx(0.5)


def test_gray_has_no_hue_or_saturation():
    hsl = ColorSpaceConverter.to_hsl(Pixel(128, 128, 128))
    assert hsl.hue == 0.0
    assert hsl.saturation == 0.0
    assert hsl.lightness == pytest.approx(128 / 255)


def test_hue_stays_below_360():
    # red max with blue > green lands just under 360
    hsl = ColorSpaceConverter.to_hsl(Pixel(255, 0, 1))
    assert 0.0 <= hsl.hue < 360.0
    assert hsl.hue > 359.0


@pytest.mark.parametrize("color, expected", [
    (HSLColor(0, 1, .5), Pixel(255, 0, 0)),
    (HSLColor(120, 1, .5), Pixel(0, 255, 0)),
    (HSLColor(240, 1, .5), Pixel(0, 0, 255)),
    (HSLColor(360, 1, .5), Pixel(255, 0, 0)),
    (HSLColor(200, .7, 0), Pixel(0, 0, 0)),
    (HSLColor(200, .7, 1), Pixel(255, 255, 255)),
    (HSLColor(10, 0, .5), Pixel(128, 128, 128)),
])
def test_to_rgb_known_values(color, expected):
    assert ColorSpaceConverter.to_rgb(color) == expected


def test_to_rgb_clamps_out_of_range_input():
    pixel = ColorSpaceConverter.to_rgb(HSLColor(0, 1, 1.5))
    assert all(0 <= c <= 255 for c in pixel.as_tuple())


def test_round_trip_within_one():
    rng = np.random.default_rng(0)
    samples = rng.integers(0, 256, size=(400, 3)).tolist()
    samples += [[v, v, v] for v in range(0, 256, 15)]
    for r, g, b in samples:
        back = ColorSpaceConverter.to_rgb(ColorSpaceConverter.to_hsl(Pixel(r, g, b)))
        assert abs(back.red - r) <= 1
        assert abs(back.green - g) <= 1
        assert abs(back.blue - b) <= 1


def test_scalar_and_array_forms_agree():
    rng = np.random.default_rng(1)
    rgb = rng.integers(0, 256, size=(4, 6, 3))
    hue, sat, light = ColorSpaceConverter.rgb_to_hsl(rgb)
    back = ColorSpaceConverter.hsl_to_rgb(hue, sat, light)

    for y in range(4):
        for x in range(6):
            pixel = Pixel(*map(int, rgb[y, x]))
            hsl = ColorSpaceConverter.to_hsl(pixel)
            assert hsl.hue == pytest.approx(hue[y, x])
            assert hsl.saturation == pytest.approx(sat[y, x])
            assert hsl.lightness == pytest.approx(light[y, x])
            assert ColorSpaceConverter.to_rgb(hsl).as_tuple() == tuple(back[y, x])


@pytest.mark.parametrize("setter, engine_op, value", [
    ("with_hue", "set_hue", 120.0),
    ("with_saturation", "set_saturation", 0.25),
    ("with_lightness", "set_lightness", 0.8),
])
def test_single_pixel_edit_matches_engine(setter, engine_op, value):
    pixel = Pixel(200, 50, 50)
    hsl = ColorSpaceConverter.to_hsl(pixel)
    edited = getattr(hsl, setter)(value)

    expected = getattr(TransformEngine(), engine_op)(make_raster([[pixel.as_tuple()]]), value)
    assert ColorSpaceConverter.to_rgb(edited).as_tuple() == tuple(expected.pixels[0, 0])


def test_with_methods_touch_one_component():
    hsl = HSLColor(10.0, 0.5, 0.4)
    assert hsl.with_hue(200.0) == HSLColor(200.0, 0.5, 0.4)
    assert hsl.with_saturation(0.1) == HSLColor(10.0, 0.1, 0.4)
    assert hsl.with_lightness(0.9) == HSLColor(10.0, 0.5, 0.9)
    assert hsl == HSLColor(10.0, 0.5, 0.4)
