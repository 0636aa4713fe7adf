"""
Aspect & Crop Geometry
======================
Pure functions behind the preview and the batch builder: orientation
matching of a target shape against a photo, and the centered crop rectangle
of a given aspect.

Both the preview recompute (app.state.Store) and the batch builder
(model.batch) go through `orient_pair`.
"""
from __future__ import annotations

from dataclasses import dataclass, asdict
from enum import StrEnum
from typing import Any, Dict

import numpy as np

from printprep.config import FULL_FRAME
from printprep.model.dimensions import is_positive

# Smallest crop edge (percent) that still counts as a rectangle
MIN_CROP_PERCENT = 0.01


class ProcessMode(StrEnum):
    """Output layout applied by the rendering engine."""
    CROP = "crop"
    PAD = "pad"
    RESIZE = "resize"
    BORDER = "border"


@dataclass(frozen=True)
class CropRect:
    """Crop rectangle in percent of the image (x, y = top-left corner)."""
    x: float = 0.0
    y: float = 0.0
    w: float = 100.0
    h: float = 100.0

    @classmethod
    def full(cls) -> CropRect:
        return cls(*FULL_FRAME)

    def clamped(self) -> CropRect:
        """
        Force the rectangle inside [0, 100] with a positive size.

        Non-finite components fall back to the full frame.
        """
        values = np.array([self.x, self.y, self.w, self.h], dtype=float)
        if not np.all(np.isfinite(values)):
            return CropRect.full()

        x, y = np.clip(values[:2], 0.0, 100.0 - MIN_CROP_PERCENT)
        w = np.clip(values[2], MIN_CROP_PERCENT, 100.0 - x)
        h = np.clip(values[3], MIN_CROP_PERCENT, 100.0 - y)
        return CropRect(float(x), float(y), float(w), float(h))

    def as_tuple(self) -> tuple[float, float, float, float]:
        return self.x, self.y, self.w, self.h

    def to_dict(self) -> Dict[str, float]:
        return asdict(self)

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> CropRect:
        return CropRect(
            x=float(data.get("x", 0.0)),
            y=float(data.get("y", 0.0)),
            w=float(data.get("w", 100.0)),
            h=float(data.get("h", 100.0)),
        ).clamped()


def is_landscape(width: float, height: float) -> bool:
    """Photo orientation rule: square images count as landscape."""
    return width >= height


def orient_pair(
    width: float,
    height: float,
    image_width: float,
    image_height: float,
    mode: ProcessMode,
    flipped: bool = False,
) -> tuple[float, float]:
    """
    Orient a nominal (width, height) target against the photo.

    - PAD: swap when the photo orientation (W >= H) differs from the target
      orientation (W/H > 1).
    - CROP: the same orientation match, then one more swap when the manual
      flip flag is set. The flip always wins over the automatic match.
    - RESIZE / BORDER: returned untouched, they are absolute sizes.

    An unknown photo size (non-positive) skips the orientation match; the
    manual flip still applies in crop mode.

    Args:
        width: Nominal target width (template or custom).
        height: Nominal target height.
        image_width: Photo width (pixels or cm, only the ratio matters).
        image_height: Photo height.
        mode: Processing mode.
        flipped: Manual orientation override (crop mode only).

    Returns:
        Tuple (width, height) in the orientation of the final output.
    """
    if mode not in (ProcessMode.CROP, ProcessMode.PAD):
        return width, height

    if is_positive(image_width) and is_positive(image_height) and is_positive(width) and is_positive(height):
        target_landscape = (width / height) > 1.0
        if is_landscape(image_width, image_height) != target_landscape:
            width, height = height, width

    if mode == ProcessMode.CROP and flipped:
        width, height = height, width

    return width, height


def effective_aspect(
    image_width: float,
    image_height: float,
    width: float,
    height: float,
    mode: ProcessMode,
    flipped: bool = False,
) -> float:
    """Effective W/H aspect of the crop box (crop) or canvas (pad)."""
    if not (is_positive(width) and is_positive(height)):
        return 1.0
    out_w, out_h = orient_pair(width, height, image_width, image_height, mode, flipped)
    return out_w / out_h


def crop_box(image_width: float, image_height: float, aspect: float) -> CropRect:
    """
    Largest centered rectangle of `aspect` inside the image, in percent.

    Wider targets take the full width and are centered vertically; others take
    the full height and are centered horizontally. Invalid input returns the
    full frame.
    """
    if not (is_positive(image_width) and is_positive(image_height) and is_positive(aspect)):
        return CropRect.full()

    image_aspect = image_width / image_height
    if aspect > image_aspect:
        h = 100.0 * image_aspect / aspect
        rect = CropRect(x=0.0, y=(100.0 - h) / 2.0, w=100.0, h=h)
    else:
        w = 100.0 * aspect / image_aspect
        rect = CropRect(x=(100.0 - w) / 2.0, y=0.0, w=w, h=100.0)
    return rect.clamped()
