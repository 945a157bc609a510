from __future__ import annotations
from dataclasses import dataclass
from pathlib import Path
import numpy as np

# Working dtype: wide enough to hold unclamped sepia / warm-shift results.
PIXEL_DTYPE = np.int32


@dataclass
class Raster:
    """
    Simple data object: RGB pixels (+ optional source path for bookkeeping).
    No codec logic outside repositories/raster_repository.py.
    """
    pixels: np.ndarray  # Shape (H, W, 3), dtype int32, RGB order.
    path: Path | None = None  # Source / destination of the image.
    original_pixels: np.ndarray | None = None  # Snapshot before the first pipeline modification

    def __post_init__(self):
        pixels = np.asarray(self.pixels)
        if pixels.ndim != 3 or pixels.shape[2] != 3:
            raise ValueError(f"Raster pixels must have shape (H, W, 3), got {pixels.shape}")
        if pixels.shape[0] < 1 or pixels.shape[1] < 1:
            raise ValueError(f"Raster must be at least 1x1, got {pixels.shape[1]}x{pixels.shape[0]}")
        self.pixels = pixels.astype(PIXEL_DTYPE, copy=False)
        if self.path is not None:
            self.path = Path(self.path)

    @property
    def width(self) -> int:
        return int(self.pixels.shape[1])

    @property
    def height(self) -> int:
        return int(self.pixels.shape[0])
