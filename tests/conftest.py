import numpy as np
import pytest

from models.raster import Raster
from repositories.raster_repository import RasterRepository


def make_raster(rows) -> Raster:
    """rows: list of rows, each a list of (r, g, b) tuples."""
    return Raster(np.array(rows, dtype=np.int32))


def solid(width: int, height: int, color) -> Raster:
    return RasterRepository.create_blank(width, height, color)


@pytest.fixture
def gradient_raster() -> Raster:
    """A 5x3 raster where every pixel is distinct."""
    rng = np.random.default_rng(7)
    return Raster(rng.integers(0, 256, size=(3, 5, 3)))


@pytest.fixture(autouse=True)
def no_overlay_env(monkeypatch):
    """Overlay defaults must come from each test, never from the host env."""
    monkeypatch.delenv("HALO_IMAGE_PATH", raising=False)
    monkeypatch.delenv("GRAIN_IMAGE_PATH", raising=False)
