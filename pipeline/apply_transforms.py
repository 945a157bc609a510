# pipeline/apply_transforms.py
from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Sequence, Union
import logging
import os

from dotenv import load_dotenv

from models.errors import InvalidAdjustmentError, UnknownTransformError
from models.overlay import OverlaySet
from models.raster import Raster
from services.overlay_service import OverlayService
from services.raster_service import RasterService
from services.transform_engine import TransformEngine

# ------------------------------------------------------------------
# env‑vars
load_dotenv()
OUTPUT_EXT = os.getenv("OUTPUT_IMG_EXT", ".png")

logger = logging.getLogger(__name__)

# name -> TransformEngine method
_SIMPLE = {
    "grayscale": "grayscale",
    "invert": "invert",
    "sepia": "sepia",
    "bw": "convert_to_bw",
    "rotate": "rotate",
}
_PARAMETRIC = {
    "hue": "set_hue",
    "saturation": "set_saturation",
    "lightness": "set_lightness",
}
FILTER = "filter"

TRANSFORM_NAMES = tuple(_SIMPLE) + (FILTER,) + tuple(_PARAMETRIC)


@dataclass(frozen=True)
class TransformStep:
    """One named transform, plus its value for hue / saturation / lightness."""
    name: str
    value: float | None = None

    def __str__(self) -> str:
        return self.name if self.value is None else f"{self.name}={self.value:g}"


def parse_step(text: str) -> TransformStep:
    """
    "grayscale" -> TransformStep("grayscale")
    "hue=120"   -> TransformStep("hue", 120.0)
    """
    name, sep, raw = text.strip().partition("=")
    name = name.strip().lower()
    if not sep:
        return TransformStep(name)
    try:
        return TransformStep(name, float(raw))
    except ValueError:
        raise InvalidAdjustmentError(f"Step '{text}' has a non-numeric value") from None


def validate_steps(steps: Iterable[Union[str, TransformStep]]) -> List[TransformStep]:
    """
    Parse and check every step before any pixel is touched.
    Raises UnknownTransformError / InvalidAdjustmentError.
    """
    validated = []
    for step in steps:
        if not isinstance(step, TransformStep):
            step = parse_step(step)

        if step.name in _PARAMETRIC:
            if step.value is None:
                raise InvalidAdjustmentError(f"Step '{step.name}' needs a value, e.g. {step.name}=0.5")
            if step.name == "hue":
                TransformEngine.validate_hue(step.value)
            else:
                TransformEngine.validate_unit(step.name, step.value)
        elif step.name in _SIMPLE or step.name == FILTER:
            if step.value is not None:
                raise InvalidAdjustmentError(f"Step '{step.name}' takes no value")
        else:
            raise UnknownTransformError(
                f"Unknown transform '{step.name}'. Choose from: {', '.join(TRANSFORM_NAMES)}"
            )
        validated.append(step)
    return validated


def run_step(engine: TransformEngine, raster: Raster, step: TransformStep,
             overlays: OverlaySet | None = None) -> Raster:
    if step.name == FILTER:
        return engine.apply_filter(raster, overlays)
    if step.name in _PARAMETRIC:
        return getattr(engine, _PARAMETRIC[step.name])(raster, step.value)
    return getattr(engine, _SIMPLE[step.name])(raster)


# ------------------------------------------------------------------
def apply_transforms(
    raster: Raster,
    steps: Sequence[Union[str, TransformStep]],
    *,
    engine: TransformEngine = TransformEngine(),
    raster_service: RasterService = RasterService(),
    overlays: OverlaySet | None = None,
    overlay_service: OverlayService | None = None,
) -> Raster:
    """
    Apply *steps* to *raster* in order.

    1. parse + validate every step
    2. resolve overlays once if a "filter" step is present
    3. run each step and update the raster in-memory (preserving original)

    Steps 1 and 2 fail before any pixel changes. Returns the same Raster
    object with updated pixels.
    """
    steps = validate_steps(steps)

    if overlays is None and any(step.name == FILTER for step in steps):
        overlays = (overlay_service or OverlayService()).get_overlays()

    raster_service.preserve_original_state(raster)
    for step in steps:
        result = run_step(engine, raster, step, overlays)
        raster_service.apply_modification(raster, result.pixels)
        logger.info(f"Applied {step} -> {raster.width}x{raster.height}")

    return raster


def output_path(relative: Path, output_dir: Path, ext: str, taken: Sequence[Path]) -> Path:
    target = output_dir / relative.with_suffix(ext)
    if target in taken:
        source_ext = relative.suffix.lstrip(".").lower()
        target = output_dir / relative.with_name(f"{relative.stem}_{source_ext}{ext}")
        logger.warning(f"Output name clash for {relative}, writing {target.name}")
    if target in taken:
        raise FileExistsError(f"Two sources map to {target}")
    return target


def process_directory(
    folder: Union[str, Path],
    steps: Sequence[Union[str, TransformStep]],
    output_dir: Union[str, Path],
    *,
    recursive: bool = False,
    ext: str = OUTPUT_EXT,
    fmt: str | None = None,
    engine: TransformEngine = TransformEngine(),
    raster_service: RasterService = RasterService(),
    overlays: OverlaySet | None = None,
    overlay_service: OverlayService | None = None,
) -> List[Path]:
    """
    Run the same steps over every image in *folder*; results are written to
    *output_dir* mirroring the sub-folder layout of *folder*, with extension
    *ext* (and Pillow format *fmt* when given).

    Two sources that would map to the same output ("photo.png" and
    "photo.jpg") keep their source extension in the name: "photo_png.png".
    """
    steps = validate_steps(steps)
    if overlays is None and any(step.name == FILTER for step in steps):
        overlays = (overlay_service or OverlayService()).get_overlays()

    output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    ext = ext if ext.startswith(".") else f".{ext}"

    folder = Path(folder)
    saved = []
    for raster in raster_service.stream_directory(folder, recursive=recursive):
        apply_transforms(raster, steps, engine=engine,
                         raster_service=raster_service, overlays=overlays)
        target = output_path(raster.path.relative_to(folder), output_dir, ext, saved)
        saved.append(raster_service.save(raster, target, fmt))

    logger.info(f"Processed {len(saved)} images into {output_dir}")
    return saved
