from __future__ import annotations
from dataclasses import dataclass, replace


@dataclass(frozen=True)
class HSLColor:
    """
    Transient HSL value produced by ColorSpaceConverter.to_hsl.
    hue in degrees [0, 360), saturation / lightness in [0, 1].
    """
    hue: float
    saturation: float
    lightness: float

    def with_hue(self, hue: float) -> "HSLColor":
        return replace(self, hue=hue)

    def with_saturation(self, saturation: float) -> "HSLColor":
        return replace(self, saturation=saturation)

    def with_lightness(self, lightness: float) -> "HSLColor":
        return replace(self, lightness=lightness)
