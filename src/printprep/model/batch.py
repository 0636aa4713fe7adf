"""
Batch Payload
=============
Turns the selected images and their layouts into the ordered list of work
orders handed to the rendering engine.

The engine is dispatched by the caller, one order at a time and in list
order; progress is reported by position, so the output order always equals
the selection order.
"""
from __future__ import annotations

import logging
import os
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterator, MutableMapping, Optional, Sequence

from printprep.config import DEFAULT_SIZE_CM, CM_PER_INCH, OUTPUT_DPI
from printprep.model.dimensions import is_positive, round2
from printprep.model.geometry import ProcessMode, CropRect, orient_pair
from printprep.model.images import ImageDescriptor
from printprep.model.layout import LayoutConfig
from printprep.model.linked import DrivingField, solve_driven
from printprep.model.presets import PresetLibrary

logger = logging.getLogger(__name__)

ConfigFactory = Callable[[ImageDescriptor], LayoutConfig]


@dataclass(frozen=True)
class WorkOrder:
    """One normalized processing unit for the rendering engine."""
    image: str
    mode: ProcessMode
    target_width_cm: float
    target_height_cm: float
    crop_rect: CropRect = field(default_factory=CropRect.full)
    border_cm: Dict[str, float] = field(
        default_factory=lambda: {"top": 0.0, "right": 0.0, "bottom": 0.0, "left": 0.0}
    )

    def target_pixels(self, dpi: int = OUTPUT_DPI) -> tuple[int, int]:
        """Pixel canvas at `dpi` (the engine writes 300 DPI by default)."""
        width = max(1, round(self.target_width_cm / CM_PER_INCH * dpi))
        height = max(1, round(self.target_height_cm / CM_PER_INCH * dpi))
        return width, height

    def to_dict(self) -> Dict[str, Any]:
        return {
            "image": self.image,
            "mode": self.mode.value,
            "target_width_cm": self.target_width_cm,
            "target_height_cm": self.target_height_cm,
            "crop_rect": self.crop_rect.to_dict(),
            "border_cm": dict(self.border_cm),
        }


@dataclass
class BatchResize:
    """Transient multi-image resize input. Only the driving field is editable."""
    driving: DrivingField = DrivingField.WIDTH
    value: Optional[float] = None

    @property
    def is_set(self) -> bool:
        return is_positive(self.value)

    def clear(self) -> None:
        self.value = None


@dataclass
class BatchProgress:
    current: int
    total: int
    current_name: str = ""
    status_message: str = ""

    @property
    def percentage(self) -> float:
        return (self.current / self.total) * 100.0 if self.total > 0 else 0.0


def _safe_size(width: float, height: float) -> tuple[float, float]:
    if is_positive(width) and is_positive(height):
        return float(width), float(height)
    logger.warning(f"Degenerate target size ({width}, {height}), using default.")
    return DEFAULT_SIZE_CM


def build_work_order(
    image: ImageDescriptor,
    config: LayoutConfig,
    presets: Optional[PresetLibrary] = None,
    resize_override: Optional[tuple[float, float]] = None,
) -> WorkOrder:
    """
    Normalize one image's layout into a work order.

    Args:
        image: The image.
        config: Its layout.
        presets: Library used to resolve the template label.
        resize_override: Per-image size from a multi-image resize.

    Returns:
        WorkOrder with positive target size and a crop rectangle in [0, 100].
    """
    mode = config.mode
    crop_rect = CropRect.full()
    border = {"top": 0.0, "right": 0.0, "bottom": 0.0, "left": 0.0}

    if mode in (ProcessMode.CROP, ProcessMode.PAD):
        # Output size must follow the final pixel orientation
        nominal_w, nominal_h = _safe_size(*config.nominal_size(presets))
        native_w, native_h = image.orientation_size
        target = orient_pair(nominal_w, nominal_h, native_w, native_h, mode, config.crop_flipped)
        if mode == ProcessMode.CROP:
            crop_rect = config.crop_rect.clamped()
    elif mode == ProcessMode.RESIZE:
        target = resize_override or config.resize.as_tuple()
    else:
        # Borders augment the photo, the photo itself keeps its size
        target = image.physical_size
        border = {side: float(value or 0.0) for side, value in config.border.to_dict().items()}

    width, height = _safe_size(round2(target[0]), round2(target[1]))
    return WorkOrder(
        image=image.identity,
        mode=mode,
        target_width_cm=width,
        target_height_cm=height,
        crop_rect=crop_rect,
        border_cm=border,
    )


def build_batch(
    images: Sequence[ImageDescriptor],
    configs: MutableMapping[str, LayoutConfig],
    default_factory: ConfigFactory,
    presets: Optional[PresetLibrary] = None,
    batch_resize: Optional[BatchResize] = None,
) -> list[WorkOrder]:
    """
    Build one work order per image, in the given order.

    Images without a stored layout get one from `default_factory`, and it is
    written back to `configs` so repeated builds agree.

    A multi-image selection containing resize layouts needs a driving value;
    without one the build is a no-op: an empty list, transient input cleared.
    """
    if not images:
        return []

    resolved: list[tuple[ImageDescriptor, LayoutConfig]] = []
    for image in images:
        config = configs.get(image.identity)
        if config is None:
            config = default_factory(image)
            configs[image.identity] = config
            logger.debug(f"Synthesized layout for {image.name}")
        resolved.append((image, config))

    overrides: Dict[str, tuple[float, float]] = {}
    resize_items = [(img, cfg) for img, cfg in resolved if cfg.mode == ProcessMode.RESIZE]
    if len(images) > 1 and resize_items:
        if batch_resize is None or not batch_resize.is_set:
            logger.info("Batch resize without a driving value, nothing to build.")
            if batch_resize is not None:
                batch_resize.clear()
            return []
        sizes = solve_driven(
            batch_resize.driving,
            batch_resize.value,
            [img.physical_size for img, _ in resize_items],
        )
        overrides = {img.identity: size for (img, _), size in zip(resize_items, sizes)}

    orders = [
        build_work_order(img, cfg, presets, overrides.get(img.identity))
        for img, cfg in resolved
    ]
    logger.info(f"Built {len(orders)} work orders.")
    return orders


def iter_progress(orders: Sequence[WorkOrder]) -> Iterator[tuple[WorkOrder, BatchProgress]]:
    """Pair each order with its positional progress (1-based)."""
    total = len(orders)
    for index, order in enumerate(orders, start=1):
        name = os.path.basename(order.image)
        yield order, BatchProgress(
            current=index,
            total=total,
            current_name=name,
            status_message=f"Processing {name} ({order.mode.value})",
        )
