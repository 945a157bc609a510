from __future__ import annotations

from pathlib import Path
from typing import BinaryIO, Union, Iterable, List, Iterator
from io import BytesIO
import logging
import os

import numpy as np
import cv2
from PIL import Image as PILImage
from dotenv import load_dotenv

from models.errors import PixelIndexError
from models.pixel import Pixel
from models.raster import Raster

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)

DEFAULT_EXTS = ".png,.jpg,.jpeg,.bmp,.gif,.tif,.tiff,.webp"

RasterSource = Union[str, Path, bytes, bytearray, BinaryIO]


class RasterRepository:
    """
    Handles file I/O and pixel access for Raster entities.
    Decoding goes through OpenCV, encoding through Pillow.
    """
    def __init__(self):
        self.VALID_EXTS = {
            ext.strip().lower()
            for ext in os.getenv("VALID_IMAGE_EXTENSIONS", DEFAULT_EXTS).split(",")
            if ext.strip()
        }

    @staticmethod
    def create_blank(width: int, height: int, fill=(0, 0, 0)) -> Raster:
        pixels = np.empty((height, width, 3), dtype=np.int32)
        pixels[...] = fill
        return Raster(pixels)

    # ─── Pixel access ─────────────────────────────────────────────────
    @staticmethod
    def _check_bounds(raster: Raster, x: int, y: int) -> None:
        # Explicit check: numpy would silently wrap negative indices.
        if not (0 <= x < raster.width and 0 <= y < raster.height):
            raise PixelIndexError(x, y, raster.width, raster.height)

    def retrieve_pixel(self, raster: Raster, x: int, y: int) -> Pixel:
        self._check_bounds(raster, x, y)
        r, g, b = raster.pixels[y, x]
        return Pixel(int(r), int(g), int(b))

    def store_pixel(self, raster: Raster, x: int, y: int, pixel: Pixel) -> None:
        self._check_bounds(raster, x, y)
        raster.pixels[y, x] = pixel.as_tuple()

    @staticmethod
    def save_original_pixels(raster: Raster) -> None:
        """Save current pixels as original for before/after comparison"""
        if raster.original_pixels is None:
            raster.original_pixels = raster.pixels.copy()

    @staticmethod
    def update_pixels_preserve_original(raster: Raster, new_pixels: np.ndarray) -> None:
        """Update pixels while preserving original for comparison"""
        if raster.original_pixels is None:
            raster.original_pixels = raster.pixels.copy()
        raster.pixels = Raster(new_pixels).pixels

    # ─── Decoding ─────────────────────────────────────────────────────
    @staticmethod
    def _from_bgr(arr_bgr: np.ndarray, path: Path | None = None) -> Raster:
        # IMREAD_COLOR always yields 3 channels, alpha dropped.
        return Raster(pixels=arr_bgr[:, :, ::-1], path=path)

    @classmethod
    def decode(cls, data: Union[bytes, bytearray]) -> Raster:
        buffer = np.frombuffer(bytes(data), dtype=np.uint8)
        arr_bgr = cv2.imdecode(buffer, cv2.IMREAD_COLOR) if buffer.size else None
        if arr_bgr is None:
            raise ValueError("Image data is empty or could not be decoded")
        return cls._from_bgr(arr_bgr)

    @classmethod
    def load(cls, source: RasterSource) -> Raster:
        if isinstance(source, (bytes, bytearray)):
            return cls.decode(source)
        if hasattr(source, "read"):
            return cls.decode(source.read())

        path = Path(source)
        arr_bgr = cv2.imread(str(path), cv2.IMREAD_COLOR)
        if arr_bgr is None:
            raise FileNotFoundError(f"Image not found or unreadable: {path}")
        return cls._from_bgr(arr_bgr, path)

    # ─── Encoding ─────────────────────────────────────────────────────
    @staticmethod
    def resolve_format(path: Union[str, Path, None] = None, fmt: str | None = None) -> str:
        """
        Return the Pillow format name for an explicit *fmt* ("png", "jpg") or,
        failing that, for the extension of *path*.
        """
        registered = PILImage.registered_extensions()
        if fmt:
            key = fmt.strip().lower().lstrip(".")
            if f".{key}" in registered:
                return registered[f".{key}"]
            if key.upper() in PILImage.SAVE:
                return key.upper()
            raise ValueError(f"Unsupported image format: {fmt}")
        if path is None:
            raise ValueError("Either a path or an explicit format is required")
        suffix = Path(path).suffix.lower()
        if suffix not in registered:
            raise ValueError(f"Cannot infer image format from extension: {path}")
        return registered[suffix]

    @staticmethod
    def to_pil(raster: Raster) -> PILImage.Image:
        # Channels outside [0, 255] (sepia / warm overflow) are clipped here and only here.
        u8 = np.clip(raster.pixels, 0, 255).astype(np.uint8)
        return PILImage.fromarray(np.ascontiguousarray(u8))

    @classmethod
    def encode(cls, raster: Raster, fmt: str = "png") -> bytes:
        buffer = BytesIO()
        cls.to_pil(raster).save(buffer, format=cls.resolve_format(fmt=fmt))
        return buffer.getvalue()

    @classmethod
    def save(cls, raster: Raster, path: Union[str, Path] = None, fmt: str | None = None) -> Path:
        path = Path(path) if path is not None else raster.path
        if path is None:
            raise ValueError("Raster has no path to save to")
        pil_format = cls.resolve_format(path, fmt)
        path.parent.mkdir(parents=True, exist_ok=True)
        cls.to_pil(raster).save(path, format=pil_format)
        return path

    # ─── Directories ──────────────────────────────────────────────────
    def iter_dir(
        self,
        folder: Union[str, Path],
        *,
        recursive: bool = False,
        exts: Iterable[str] | None = None,
    ) -> Iterator[Raster]:
        """
        Yield Raster objects one at a time.  Nothing accumulates in memory.
        """
        folder = Path(folder)
        if not folder.is_dir():
            raise NotADirectoryError(folder)

        allowed = {e.lower() for e in (exts or self.VALID_EXTS)}
        pattern = "**/*" if recursive else "*"

        for p in sorted(folder.glob(pattern)):
            if p.suffix.lower() not in allowed:
                logger.debug(f"Skipping due to extension: {p}")
                continue
            if not p.is_file():
                continue
            try:
                raster = self.load(p)
            except FileNotFoundError as err:
                logger.warning(f"Skipping {p.name}: {err}")
                continue
            logger.debug(f"Loaded: {p}")
            yield raster

    def load_dir(
        self, folder: Union[str, Path], *, recursive=False, exts=None
    ) -> List[Raster]:
        """
        Helper that returns a list, but internally streams.
        """
        return list(self.iter_dir(folder, recursive=recursive, exts=exts))
