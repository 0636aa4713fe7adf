"""
Per-Image Layout (Data Model)
=============================
This module defines the editable layout of one image and the snapshot of the
global UI state that seeds layouts for images not edited yet.

Why is this file needed?
------------------------
1. State: LayoutConfig holds everything the operator can change per image.
2. Inheritance: A freshly viewed image copies "whatever the operator was last
   doing". That is modelled as an explicit factory over an immutable
   LayoutSnapshot, never as a shared mutable reference.
3. Preview: LayoutPreview is the derived state the UI redraws from.

Classes:
    LayoutConfig: Editable per-image layout.
    LayoutSnapshot: Frozen copy of the active global UI state.
    LayoutPreview: Derived aspect + crop rectangle for drawing.
"""
from __future__ import annotations

import copy
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from printprep.config import FREE_TEMPLATE
from printprep.model.geometry import ProcessMode, CropRect, crop_box, effective_aspect
from printprep.model.images import ImageDescriptor
from printprep.model.linked import LinkedPair, BorderMargins
from printprep.model.presets import PresetLibrary

logger = logging.getLogger(__name__)


@dataclass
class LayoutConfig:
    """
    Layout of one image.

    `custom` is the free-dimension template box, its lock is the aspect lock.
    `resize` is the pure-resize box with an independent lock.
    """
    mode: ProcessMode = ProcessMode.CROP
    template: str = FREE_TEMPLATE
    custom: LinkedPair = field(default_factory=LinkedPair)
    crop_rect: CropRect = field(default_factory=CropRect.full)
    crop_flipped: bool = False
    resize: LinkedPair = field(default_factory=LinkedPair)
    border: BorderMargins = field(default_factory=BorderMargins)

    # Rectangle shown before the last flip; a second flip restores it
    flip_undo: Optional[CropRect] = field(default=None, repr=False, compare=False)

    @property
    def is_free(self) -> bool:
        return self.template == FREE_TEMPLATE

    def nominal_size(self, presets: Optional[PresetLibrary] = None) -> tuple[float, float]:
        """Template dimensions, or the custom box for free dimension."""
        if not self.is_free and presets is not None:
            preset = presets.get(self.template)
            if preset is not None:
                return preset.width_cm, preset.height_cm
        return self.custom.as_tuple()

    def aspect_for(self, image: ImageDescriptor, presets: Optional[PresetLibrary] = None) -> float:
        width, height = self.nominal_size(presets)
        native_w, native_h = image.orientation_size
        return effective_aspect(native_w, native_h, width, height, self.mode, self.crop_flipped)

    def recenter_crop(self, image: ImageDescriptor, presets: Optional[PresetLibrary] = None) -> None:
        """Replace the crop rectangle by the centered box of the effective aspect."""
        self.crop_rect = crop_box(image.pixel_width, image.pixel_height, self.aspect_for(image, presets))
        self.flip_undo = None

    def clone(self) -> LayoutConfig:
        return copy.deepcopy(self)


@dataclass(frozen=True)
class LayoutSnapshot:
    """
    Active global UI state at one instant.

    None for custom/resize sizes means "take the image's own size".
    The manual flip is not part of the snapshot.
    """
    mode: ProcessMode = ProcessMode.CROP
    template: str = FREE_TEMPLATE
    custom_size: Optional[tuple[float, float]] = None
    custom_locked: bool = True
    resize_size: Optional[tuple[float, float]] = None
    resize_locked: bool = True
    border: tuple[float, float, float, float] = (0.0, 0.0, 0.0, 0.0)
    border_linked: bool = True

    @classmethod
    def from_config(cls, config: LayoutConfig) -> LayoutSnapshot:
        b = config.border
        return cls(
            mode=config.mode,
            template=config.template,
            custom_size=config.custom.as_tuple(),
            custom_locked=config.custom.locked,
            resize_size=config.resize.as_tuple(),
            resize_locked=config.resize.locked,
            border=(b.top, b.right, b.bottom, b.left),
            border_linked=b.linked,
        )


def config_from_snapshot(
    snapshot: LayoutSnapshot,
    image: ImageDescriptor,
    presets: Optional[PresetLibrary] = None,
) -> LayoutConfig:
    """
    Default factory for an image without a stored layout.

    Deterministic: the same snapshot, image and presets always give the same
    layout. The crop rectangle is the centered box of the effective aspect.
    """
    template = snapshot.template
    if template != FREE_TEMPLATE and (presets is None or template not in presets):
        logger.debug(f"Snapshot template '{template}' is gone, falling back to free dimension.")
        template = FREE_TEMPLATE

    custom_w, custom_h = snapshot.custom_size or image.physical_size
    resize_w, resize_h = snapshot.resize_size or image.physical_size
    top, right, bottom, left = snapshot.border

    config = LayoutConfig(
        mode=snapshot.mode,
        template=template,
        custom=LinkedPair(width=custom_w, height=custom_h, locked=snapshot.custom_locked),
        resize=LinkedPair(width=resize_w, height=resize_h, locked=snapshot.resize_locked),
        border=BorderMargins(top=top, right=right, bottom=bottom, left=left, linked=snapshot.border_linked),
    )
    config.recenter_crop(image, presets)
    return config


@dataclass(frozen=True)
class LayoutPreview:
    """Effective state returned by every store mutator."""
    identity: str
    mode: ProcessMode
    template: str
    aspect: float
    crop_rect: CropRect
    crop_flipped: bool
    custom_size: tuple[float, float]
    custom_locked: bool
    resize_size: tuple[float, float]
    resize_locked: bool
    border: Dict[str, float]
    border_linked: bool

    @classmethod
    def build(
        cls,
        image: ImageDescriptor,
        config: LayoutConfig,
        presets: Optional[PresetLibrary] = None,
    ) -> LayoutPreview:
        return cls(
            identity=image.identity,
            mode=config.mode,
            template=config.template,
            aspect=config.aspect_for(image, presets),
            crop_rect=config.crop_rect,
            crop_flipped=config.crop_flipped,
            custom_size=config.custom.as_tuple(),
            custom_locked=config.custom.locked,
            resize_size=config.resize.as_tuple(),
            resize_locked=config.resize.locked,
            border=config.border.to_dict(),
            border_linked=config.border.linked,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "identity": self.identity,
            "mode": self.mode.value,
            "template": self.template,
            "aspect": self.aspect,
            "crop_rect": self.crop_rect.to_dict(),
            "crop_flipped": self.crop_flipped,
            "custom_size": list(self.custom_size),
            "resize_size": list(self.resize_size),
            "border": dict(self.border),
        }
