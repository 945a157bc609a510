"""Error types surfaced by the raster transforms."""


class PixelIndexError(IndexError):
    """A coordinate outside ``[0, width) x [0, height)`` was accessed."""

    def __init__(self, x: int, y: int, width: int, height: int):
        super().__init__(f"Pixel ({x}, {y}) is outside a {width}x{height} raster")
        self.x = x
        self.y = y


class ResourceUnavailableError(RuntimeError):
    """An overlay asset needed by the composite filter could not be loaded."""


class InvalidAdjustmentError(ValueError):
    """An HSL adjustment value lies outside its documented range."""


class UnknownTransformError(KeyError):
    """A pipeline step names a transform that does not exist."""

    def __str__(self) -> str:
        return str(self.args[0]) if self.args else "Unknown transform"
