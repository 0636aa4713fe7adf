"""
Linked Dimensions
=================
Keeps paired size fields consistent while the operator types.

Classes:
    LinkedPair: width/height with an aspect lock (template box, resize box).
    BorderMargins: four margins with a link flag forcing equality.
    DrivingField: which field drives a multi-image resize.
"""
from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from enum import StrEnum
from typing import Dict, Optional, Sequence

import numpy as np

from printprep.model.dimensions import round2, is_positive

logger = logging.getLogger(__name__)


@dataclass
class LinkedPair:
    """
    A width/height pair with its own lock state.

    While locked, editing one field drives the other through the remembered
    ratio. While unlocked, edits only move the ratio. Each instance owns its
    (locked, ratio) state; no two pairs share it.
    """
    width: float = 20.0
    height: float = 20.0
    locked: bool = True
    ratio: float = field(default=0.0)

    def __post_init__(self) -> None:
        if not is_positive(self.ratio):
            self.ratio = self._current_ratio()

    def _current_ratio(self) -> float:
        if is_positive(self.width) and is_positive(self.height):
            return self.width / self.height
        return 1.0

    def set_width(self, value: float) -> bool:
        """Edit the width. Returns False when the value was rejected."""
        if not is_positive(value):
            logger.debug(f"Rejected width {value!r}")
            return False
        self.width = float(value)
        if self.locked:
            self.height = round2(self.width / self.ratio)
        elif is_positive(self.height):
            self.ratio = self.width / self.height
        return True

    def set_height(self, value: float) -> bool:
        """Edit the height. Returns False when the value was rejected."""
        if not is_positive(value):
            logger.debug(f"Rejected height {value!r}")
            return False
        self.height = float(value)
        if self.locked:
            self.width = round2(self.height * self.ratio)
        elif is_positive(self.width):
            self.ratio = self.width / self.height
        return True

    def set_locked(self, locked: bool) -> None:
        # Locking snapshots the ratio at this instant; values stay put
        if locked and not self.locked:
            self.ratio = self._current_ratio()
        self.locked = locked

    def toggle_lock(self) -> bool:
        self.set_locked(not self.locked)
        return self.locked

    def reset(self, width: float, height: float) -> None:
        """Replace both values and re-derive the ratio (no lock change)."""
        if is_positive(width) and is_positive(height):
            self.width = float(width)
            self.height = float(height)
            self.ratio = self.width / self.height

    def as_tuple(self) -> tuple[float, float]:
        return self.width, self.height


class BorderSide(StrEnum):
    TOP = "top"
    RIGHT = "right"
    BOTTOM = "bottom"
    LEFT = "left"


@dataclass
class BorderMargins:
    """Border widths in cm. With `linked` set all four sides move together."""
    top: float = 0.0
    right: float = 0.0
    bottom: float = 0.0
    left: float = 0.0
    linked: bool = True

    def set(self, side: BorderSide | str, value: float) -> bool:
        """Edit one margin (all four when linked). Negative values are rejected."""
        side = BorderSide(side)
        try:
            number = float(value)
        except (TypeError, ValueError):
            return False
        if not math.isfinite(number) or number < 0.0:
            logger.debug(f"Rejected {side} margin {value!r}")
            return False

        if self.linked:
            self._fill(number)
        else:
            setattr(self, side.value, number)
        return True

    def set_linked(self, linked: bool) -> None:
        # Linking propagates the current top margin to every side
        if linked and not self.linked:
            self._fill(self.top)
        self.linked = linked

    def toggle_link(self) -> bool:
        self.set_linked(not self.linked)
        return self.linked

    def _fill(self, value: float) -> None:
        self.top = self.right = self.bottom = self.left = value

    def to_dict(self) -> Dict[str, float]:
        return {side.value: getattr(self, side.value) for side in BorderSide}


class DrivingField(StrEnum):
    """Field the operator types into during a multi-image resize."""
    WIDTH = "width"
    HEIGHT = "height"


def _round2_array(values: np.ndarray) -> np.ndarray:
    # Same half-away-from-zero rule as round2
    return np.sign(values) * np.floor(np.abs(values) * 100.0 + 0.5) / 100.0


def solve_driven(
    driving: DrivingField,
    value: Optional[float],
    native_sizes: Sequence[tuple[float, float]],
) -> list[tuple[float, float]]:
    """
    Per-image (width, height) for a multi-image resize.

    The driving field takes `value` for every image; the other field follows
    each image's own native aspect ratio. Images with a degenerate native
    size keep a square aspect.

    Args:
        driving: The field carrying the typed value.
        value: Typed size in cm; None or non-positive yields no result.
        native_sizes: Native (width, height) per image, in order.

    Returns:
        List of (width_cm, height_cm), same order as `native_sizes`, or an
        empty list when there is no usable driving value.
    """
    if not is_positive(value) or not native_sizes:
        return []

    sizes = np.asarray(native_sizes, dtype=float).reshape(-1, 2)
    widths, heights = sizes[:, 0], sizes[:, 1]
    valid = np.isfinite(widths) & np.isfinite(heights) & (widths > 0) & (heights > 0)
    aspects = np.where(valid, widths / np.where(valid, heights, 1.0), 1.0)

    driven = np.full(len(aspects), float(value))
    if driving == DrivingField.WIDTH:
        others = _round2_array(driven / aspects)
        pairs = np.column_stack((driven, others))
    else:
        others = _round2_array(driven * aspects)
        pairs = np.column_stack((others, driven))

    return [(float(w), float(h)) for w, h in pairs]
