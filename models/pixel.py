from __future__ import annotations
from dataclasses import dataclass


@dataclass(frozen=True)
class Pixel:
    """
    Value-object for a single RGB sample.
    Channels are plain ints; nothing is clamped here so that the
    unclamped sepia / warm-shift results can still be represented.
    """
    red: int
    green: int
    blue: int

    def as_tuple(self) -> tuple[int, int, int]:
        return self.red, self.green, self.blue
