from __future__ import annotations

from typing import Tuple

import numpy as np

from models.hsl_color import HSLColor
from models.pixel import Pixel
from models.raster import PIXEL_DTYPE

RGB_MAX = 255.0
HUE_MAX = 360.0
HUE_SECTOR = 60.0


class ColorSpaceConverter:
    """
    Bidirectional RGB <-> HSL conversion.

    *   The array forms work on whole (H, W, 3) buffers and are what the
        transform engine uses.
    *   The scalar forms (Pixel / HSLColor) delegate to the array forms, so a
        single pixel and a full raster always convert identically.
    *   Input channels are expected in [0, 255]; nothing is validated here.
    """

    # ─── Vectorised API ───────────────────────────────────────────────
    @staticmethod
    def rgb_to_hsl(rgb: np.ndarray) -> Tuple[np.ndarray, np.ndarray, np.ndarray]:
        """
        Args:
            rgb: array (..., 3) of channel values in [0, 255].

        Returns:
            (hue, saturation, lightness) float64 arrays of shape (...),
            hue in [0, 360), saturation / lightness in [0, 1].
        """
        rgb_f = np.asarray(rgb, dtype=np.float64) / RGB_MAX
        r, g, b = rgb_f[..., 0], rgb_f[..., 1], rgb_f[..., 2]

        cmax = rgb_f.max(axis=-1)
        cmin = rgb_f.min(axis=-1)
        delta = cmax - cmin
        lightness = (cmax + cmin) / 2

        chromatic = delta > 0
        safe_delta = np.where(chromatic, delta, 1.0)
        denom = 1 - np.abs(2 * lightness - 1)
        safe_denom = np.where(denom > 0, denom, 1.0)
        saturation = np.where(chromatic & (denom > 0), delta / safe_denom, 0.0)

        # Channel ordering decides the sector: red wins ties, then green.
        hue = np.select(
            [cmax == r, cmax == g],
            [
                HUE_SECTOR * (((g - b) / safe_delta) % 6),
                HUE_SECTOR * ((b - r) / safe_delta + 2),
            ],
            HUE_SECTOR * ((r - g) / safe_delta + 4),
        )
        hue = np.where(chromatic, hue % HUE_MAX, 0.0)
        return hue, saturation, lightness

    @staticmethod
    def hsl_to_rgb(hue, saturation, lightness) -> np.ndarray:
        """
        Inverse of rgb_to_hsl. Accepts scalars or arrays (broadcast together).

        Returns:
            int32 array (..., 3); each channel floor(v * 255 + 0.5), clamped
            to [0, 255].
        """
        h, s, l = np.broadcast_arrays(
            np.asarray(hue, dtype=np.float64) % HUE_MAX,
            np.asarray(saturation, dtype=np.float64),
            np.asarray(lightness, dtype=np.float64),
        )

        c = (1 - np.abs(2 * l - 1)) * s
        h_prime = h / HUE_SECTOR
        x = c * (1 - np.abs(h_prime % 2 - 1))
        m = l - c / 2
        zero = np.zeros_like(c)

        sector = np.floor(h_prime).astype(np.int64) % 6
        r = np.choose(sector, [c, x, zero, zero, x, c])
        g = np.choose(sector, [x, c, c, x, zero, zero])
        b = np.choose(sector, [zero, zero, x, c, c, x])

        rgb = np.stack([r + m, g + m, b + m], axis=-1)
        rgb = np.floor(rgb * RGB_MAX + 0.5)
        return np.clip(rgb, 0, RGB_MAX).astype(PIXEL_DTYPE)

    # ─── Scalar API ───────────────────────────────────────────────────
    @classmethod
    def to_hsl(cls, pixel: Pixel) -> HSLColor:
        hue, saturation, lightness = cls.rgb_to_hsl(np.array(pixel.as_tuple()))
        return HSLColor(float(hue), float(saturation), float(lightness))

    @classmethod
    def to_rgb(cls, color: HSLColor) -> Pixel:
        r, g, b = cls.hsl_to_rgb(color.hue, color.saturation, color.lightness)
        return Pixel(int(r), int(g), int(b))
