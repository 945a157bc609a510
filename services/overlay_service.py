from __future__ import annotations

import logging
import os

from dotenv import load_dotenv

from models.overlay import OverlaySet
from repositories.overlay_repository import OverlayRepository
from repositories.raster_repository import RasterSource

# Load environment variables
load_dotenv()

logger = logging.getLogger(__name__)


class OverlayService:
    """
    Supplies the halo / grain overlays for the composite filter.

    *   Sources are caller-supplied (path, bytes or file object); when omitted
        they fall back to HALO_IMAGE_PATH / GRAIN_IMAGE_PATH.
    *   Both overlays are loaded together and cached, so a missing asset is
        reported before any pixel work starts.
    """

    def __init__(self,
                 halo_source: RasterSource | None = None,
                 grain_source: RasterSource | None = None):
        self.halo_source = halo_source if halo_source is not None else os.getenv("HALO_IMAGE_PATH") or None
        self.grain_source = grain_source if grain_source is not None else os.getenv("GRAIN_IMAGE_PATH") or None
        self.repo = OverlayRepository()
        self._overlays: OverlaySet | None = None

    @property
    def is_configured(self) -> bool:
        return self.halo_source is not None and self.grain_source is not None

    def get_overlays(self) -> OverlaySet:
        if self._overlays is None:
            halo = self.repo.retrieve_overlay("halo", self.halo_source)
            grain = self.repo.retrieve_overlay("grain", self.grain_source)
            self._overlays = OverlaySet(halo=halo, grain=grain)
            logger.info(
                f"Overlays loaded: halo {halo.width}x{halo.height}, "
                f"grain {grain.width}x{grain.height}"
            )
        return self._overlays
