from __future__ import annotations

from pathlib import Path

from models.errors import ResourceUnavailableError
from models.raster import Raster
from repositories.raster_repository import RasterRepository, RasterSource


class OverlayRepository:
    """
    Loads overlay assets (halo / grain) from caller-supplied sources.
    Every codec failure is reported as ResourceUnavailableError.
    """

    def __init__(self) -> None:
        self.raster_repository = RasterRepository()

    @staticmethod
    def describe(source: RasterSource | None) -> str:
        if source is None:
            return "<none>"
        if isinstance(source, (str, Path)):
            return str(source)
        return f"<{type(source).__name__}>"

    def retrieve_overlay(self, name: str, source: RasterSource | None) -> Raster:
        if source is None:
            raise ResourceUnavailableError(f"No {name} overlay source configured")
        try:
            return self.raster_repository.load(source)
        except (OSError, ValueError) as err:
            raise ResourceUnavailableError(
                f"Could not load {name} overlay from {self.describe(source)}: {err}"
            ) from err
