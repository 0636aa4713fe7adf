"""
Image Catalogue Entries
=======================
What the layout engine knows about one loaded file. Size probing and
decoding happen elsewhere; this module only keeps their results.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, replace
from typing import Iterable, Mapping, Optional

import numpy as np

from printprep.config import SUPPORTED_EXTENSIONS
from printprep.model.dimensions import parse_size, is_positive

logger = logging.getLogger(__name__)


def is_supported_path(path: str) -> bool:
    """Only JPEG and TIFF files can be handed to the rendering engine."""
    return os.path.splitext(path)[1].lower() in SUPPORTED_EXTENSIONS


@dataclass(frozen=True)
class ImageDescriptor:
    """
    One loaded image.

    identity: Full file path, unique within the workable set.
    width_cm / height_cm: Physical print size parsed from the size probe.
    pixel_width / pixel_height: Decoded size, 0 until decoding completes.
    supported: False for formats the rendering engine cannot process.
    """
    identity: str
    width_cm: float
    height_cm: float
    pixel_width: int = 0
    pixel_height: int = 0
    supported: bool = True

    @classmethod
    def from_probe(cls, identity: str, size_text: Optional[str] = None) -> ImageDescriptor:
        width_cm, height_cm = parse_size(size_text)
        return cls(
            identity=identity,
            width_cm=width_cm,
            height_cm=height_cm,
            supported=is_supported_path(identity),
        )

    @property
    def name(self) -> str:
        return os.path.basename(self.identity)

    @property
    def has_pixels(self) -> bool:
        return is_positive(self.pixel_width) and is_positive(self.pixel_height)

    @property
    def physical_size(self) -> tuple[float, float]:
        return self.width_cm, self.height_cm

    @property
    def orientation_size(self) -> tuple[float, float]:
        """Decoded pixel size when known, physical size otherwise."""
        if self.has_pixels:
            return float(self.pixel_width), float(self.pixel_height)
        return self.physical_size

    @property
    def native_aspect(self) -> float:
        return self.width_cm / self.height_cm

    def with_pixels(self, pixel_width: int, pixel_height: int) -> ImageDescriptor:
        return replace(self, pixel_width=int(pixel_width), pixel_height=int(pixel_height))

    def with_size_text(self, size_text: Optional[str]) -> ImageDescriptor:
        width_cm, height_cm = parse_size(size_text)
        return replace(self, width_cm=width_cm, height_cm=height_cm)

    def with_identity(self, identity: str) -> ImageDescriptor:
        return replace(self, identity=identity)


def print_area_m2(
    images: Iterable[ImageDescriptor],
    quantities: Optional[Mapping[str, int]] = None,
) -> float:
    """
    Total print area in square metres, each image counted `quantity` times.

    Quantities below 1 count as 1.
    """
    quantities = quantities or {}
    rows = [
        (img.width_cm, img.height_cm, max(1, int(quantities.get(img.identity, 1))))
        for img in images
    ]
    if not rows:
        return 0.0

    data = np.asarray(rows, dtype=float)
    areas = data[:, 0] * data[:, 1] / 10_000.0
    return float(np.sum(areas * data[:, 2]))
