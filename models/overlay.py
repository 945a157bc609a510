from __future__ import annotations
from dataclasses import dataclass
from models.raster import Raster


@dataclass(frozen=True)
class OverlaySet:
    """
    The two read-only reference images used by the composite filter.
    Their dimensions need not match the target raster.
    """
    halo: Raster   # Vignette mask, blended at 35 %
    grain: Raster  # Decorative grain texture, blended at 5 %
