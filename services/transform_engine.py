from __future__ import annotations

import logging
import math

import numpy as np

from models.errors import InvalidAdjustmentError, ResourceUnavailableError
from models.overlay import OverlaySet
from models.raster import PIXEL_DTYPE, Raster
from services.color_space_converter import ColorSpaceConverter

logger = logging.getLogger(__name__)

SEPIA_MATRIX = (
    (.393, .769, .189),
    (.349, .686, .168),
    (.272, .534, .131),
)
LUMINANCE_WEIGHTS = (.299, .587, .114)

WARM_RED_GAIN = 1.2
WARM_BLUE_DIVISOR = 1.5
HALO_WEIGHT = .35
GRAIN_WEIGHT = .05

WHITE = 255
BLACK = 0


class TransformEngine:
    """
    Stateless catalog of pixel-level transforms.

    *   Every operation returns a **new** Raster; the input is never modified,
        so a failure leaves the caller's raster exactly as it was.
    *   Results are truncated toward zero and, for sepia and the warm shift,
        not clamped: channels above 255 are kept in the int32 buffer and only
        clipped by the codec on save.
    """

    # ─── Simple per-pixel filters ─────────────────────────────────
    def grayscale(self, raster: Raster) -> Raster:
        """Average of the three channels, integer division, on every channel."""
        pixels = raster.pixels
        avg = (pixels[..., 0] + pixels[..., 1] + pixels[..., 2]) // 3
        logger.debug(f"grayscale on {raster.width}x{raster.height}")
        return self._derive(raster, np.repeat(avg[..., None], 3, axis=2))

    def invert(self, raster: Raster) -> Raster:
        logger.debug(f"invert on {raster.width}x{raster.height}")
        return self._derive(raster, 255 - raster.pixels)

    def sepia(self, raster: Raster) -> Raster:
        """
        Fixed 3x3 matrix over (r, g, b). Bright pixels overflow 255 and are
        left that way.
        """
        r, g, b = self._channels(raster)
        out = np.empty_like(raster.pixels)
        for i, (wr, wg, wb) in enumerate(SEPIA_MATRIX):
            out[..., i] = np.trunc(wr * r + wg * g + wb * b)
        logger.debug(f"sepia on {raster.width}x{raster.height}")
        return self._derive(raster, out)

    def rotate(self, raster: Raster) -> Raster:
        """
        90 deg clockwise. Old (x, y) lands on new (height - 1 - y, x), so the
        result is height wide and width tall.
        """
        logger.debug(f"rotate on {raster.width}x{raster.height}")
        return self._derive(raster, np.rot90(raster.pixels, k=-1).copy())

    # ─── Black / white threshold ──────────────────────────────────
    @staticmethod
    def luminance(raster: Raster) -> np.ndarray:
        """sqrt(.299 r^2 + .587 g^2 + .114 b^2) per pixel, shape (H, W)."""
        r, g, b = TransformEngine._channels(raster)
        wr, wg, wb = LUMINANCE_WEIGHTS
        return np.sqrt(wr * r * r + wg * g * g + wb * b * b)

    @classmethod
    def bw_threshold(cls, raster: Raster) -> float:
        """
        Element at index count // 2 of the sorted luminances. For even counts
        this is the upper middle element, not the averaged median.
        """
        values = np.sort(cls.luminance(raster), axis=None)
        return float(values[values.size // 2])

    def convert_to_bw(self, raster: Raster) -> Raster:
        # Pass 1 must finish over the whole image before any pixel is decided.
        luminance = self.luminance(raster)
        middle = self.bw_threshold(raster)

        out = np.where((luminance >= middle)[..., None], WHITE, BLACK)
        out = np.broadcast_to(out, raster.pixels.shape)
        logger.debug(f"bw on {raster.width}x{raster.height}, threshold={middle:.3f}")
        return self._derive(raster, out)

    # ─── Composite filter ─────────────────────────────────────────
    def warm_shift(self, raster: Raster) -> Raster:
        r, g, b = self._channels(raster)
        out = np.stack(
            [np.trunc(r * WARM_RED_GAIN), g, np.trunc(b / WARM_BLUE_DIVISOR)],
            axis=-1,
        )
        return self._derive(raster, out)

    @staticmethod
    def sample_overlay(overlay: Raster, width: int, height: int) -> np.ndarray:
        """
        Nearest-neighbour lookup of *overlay* onto a width x height grid using
        independent per-axis scale factors; no interpolation.
        """
        scale_x = overlay.width / width
        scale_y = overlay.height / height
        xs = (np.arange(width) * scale_x).astype(np.int64)
        ys = (np.arange(height) * scale_y).astype(np.int64)
        return overlay.pixels[ys[:, None], xs[None, :]]

    def blend_overlay(self, raster: Raster, overlay: Raster, weight: float) -> Raster:
        """new = (1 - weight) * current + weight * overlay, truncated."""
        sampled = self.sample_overlay(overlay, raster.width, raster.height)
        current = raster.pixels.astype(np.float64)
        out = np.trunc((1 - weight) * current + weight * sampled.astype(np.float64))
        return self._derive(raster, out)

    def apply_filter(self, raster: Raster, overlays: OverlaySet | None) -> Raster:
        """
        Warm shift, then halo blend, then grain blend; each pass reads the
        output of the one before.
        """
        if overlays is None or overlays.halo is None or overlays.grain is None:
            raise ResourceUnavailableError("Composite filter needs both halo and grain overlays")

        warmed = self.warm_shift(raster)
        haloed = self.blend_overlay(warmed, overlays.halo, HALO_WEIGHT)
        grained = self.blend_overlay(haloed, overlays.grain, GRAIN_WEIGHT)
        logger.debug(f"filter on {raster.width}x{raster.height}")
        return grained

    # ─── HSL adjustments ──────────────────────────────────────────
    def set_hue(self, raster: Raster, hue: float) -> Raster:
        hue = self.validate_hue(hue)
        return self._set_hsl_component(raster, hue=hue)

    def set_saturation(self, raster: Raster, saturation: float) -> Raster:
        saturation = self.validate_unit("saturation", saturation)
        return self._set_hsl_component(raster, saturation=saturation)

    def set_lightness(self, raster: Raster, lightness: float) -> Raster:
        lightness = self.validate_unit("lightness", lightness)
        return self._set_hsl_component(raster, lightness=lightness)

    @staticmethod
    def validate_hue(hue: float) -> float:
        """Accepts [0, 360]; 360 wraps to 0. Anything else is rejected."""
        hue = float(hue)
        if math.isnan(hue) or not 0.0 <= hue <= 360.0:
            raise InvalidAdjustmentError(f"hue must be within [0, 360], got {hue}")
        return hue % 360.0

    @staticmethod
    def validate_unit(name: str, value: float) -> float:
        value = float(value)
        if math.isnan(value) or not 0.0 <= value <= 1.0:
            raise InvalidAdjustmentError(f"{name} must be within [0, 1], got {value}")
        return value

    def _set_hsl_component(self, raster: Raster, **component: float) -> Raster:
        # The converter expects [0, 255]; overflowed sepia / warm values are clipped first.
        rgb = np.clip(raster.pixels, 0, 255)
        hue, saturation, lightness = ColorSpaceConverter.rgb_to_hsl(rgb)

        if "hue" in component:
            hue = np.full_like(hue, component["hue"])
        if "saturation" in component:
            saturation = np.full_like(saturation, component["saturation"])
        if "lightness" in component:
            lightness = np.full_like(lightness, component["lightness"])

        logger.debug(f"set {component} on {raster.width}x{raster.height}")
        return self._derive(raster, ColorSpaceConverter.hsl_to_rgb(hue, saturation, lightness))

    # ─── Internal helpers ─────────────────────────────────────────
    @staticmethod
    def _channels(raster: Raster):
        rgb = raster.pixels.astype(np.float64)
        return rgb[..., 0], rgb[..., 1], rgb[..., 2]

    @staticmethod
    def _derive(source: Raster, pixels: np.ndarray) -> Raster:
        """Wrap *pixels* in a fresh Raster that keeps the source path only."""
        return Raster(pixels=np.array(pixels, dtype=PIXEL_DTYPE), path=source.path)
