from __future__ import annotations

from pathlib import Path
from typing import Iterable, Iterator, List, Union
import logging

import numpy as np

from models.pixel import Pixel
from models.raster import Raster
from repositories.raster_repository import RasterRepository, RasterSource

logger = logging.getLogger(__name__)


class RasterService:
    """Codec and pixel-access helpers.  No transform logic here."""
    def __init__(self):
        self.raster_repository = RasterRepository()

    def load(self, source: RasterSource) -> Raster:
        """Load a single image (path, encoded bytes or file object) into a Raster."""
        raster = self.raster_repository.load(source)
        logger.info(f"Loaded {raster.width}x{raster.height} raster from {raster.path or 'buffer'}")
        return raster

    def save(self, raster: Raster, path: Union[str, Path] = None, fmt: str | None = None) -> Path:
        """
        Business-level method to save the raster; the format comes from *fmt*
        or from the extension of the target path.
        """
        saved = self.raster_repository.save(raster, path, fmt)
        logger.info(f"Saved {raster.width}x{raster.height} raster to {saved}")
        return saved

    def encode(self, raster: Raster, fmt: str = "png") -> bytes:
        return self.raster_repository.encode(raster, fmt)

    def stream_directory(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Raster]:
        """
        Yield rasters lazily instead of returning a gigantic list.
        """
        return self.raster_repository.iter_dir(folder, recursive=recursive, exts=exts)

    def load_directory(self, folder: Union[str, Path], *, recursive=False, exts=None) -> List[Raster]:
        return self.raster_repository.load_dir(folder, recursive=recursive, exts=exts)

    def get_pixel(self, raster: Raster, x: int, y: int) -> Pixel:
        return self.raster_repository.retrieve_pixel(raster, x, y)

    def set_pixel(self, raster: Raster, x: int, y: int, pixel: Pixel) -> None:
        self.raster_repository.store_pixel(raster, x, y, pixel)

    def preserve_original_state(self, raster: Raster) -> None:
        """
        Preserve the current raster state before processing pipeline.
        """
        self.raster_repository.save_original_pixels(raster)

    def apply_modification(self, raster: Raster, new_pixels: np.ndarray) -> None:
        """
        Apply a pipeline modification while preserving original for comparison.
        """
        self.raster_repository.update_pixels_preserve_original(raster, new_pixels)
