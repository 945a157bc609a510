import numpy as np
import pytest

from services.transform_engine import TransformEngine
from tests.conftest import make_raster, solid

engine = TransformEngine()
WHITE = [255, 255, 255]
BLACK = [0, 0, 0]


def test_output_is_only_black_and_white(gradient_raster):
    out = engine.convert_to_bw(gradient_raster)
    flat = out.pixels.reshape(-1, 3).tolist()
    assert set(map(tuple, flat)) <= {(0, 0, 0), (255, 255, 255)}


def test_uniform_luminance_becomes_all_white():
    out = engine.convert_to_bw(solid(4, 3, (90, 40, 200)))
    assert (out.pixels == 255).all()


def test_single_pixel_is_white():
    assert engine.convert_to_bw(make_raster([[(0, 0, 0)]])).pixels.tolist() == [[WHITE]]


def test_luminance_formula():
    lum = TransformEngine.luminance(make_raster([[(10, 20, 30)]]))
    assert lum[0, 0] == pytest.approx(np.sqrt(.299 * 100 + .587 * 400 + .114 * 900))


def test_threshold_uses_element_at_middle_index():
    grays = [(v, v, v) for v in (40, 10, 30, 20)]
    raster = make_raster([grays])
    lum = TransformEngine.luminance(raster)

    # sorted: 10 20 30 40 -> index 4 // 2 == 2 -> the pixel with gray 30
    assert TransformEngine.bw_threshold(raster) == lum[0, 2]

    out = engine.convert_to_bw(raster)
    assert out.pixels[0].tolist() == [WHITE, BLACK, WHITE, BLACK]


def test_ties_at_threshold_are_white():
    raster = make_raster([[(0, 0, 0), (50, 50, 50), (50, 50, 50), (50, 50, 50)]])
    out = engine.convert_to_bw(raster)
    assert out.pixels[0].tolist() == [BLACK, WHITE, WHITE, WHITE]
