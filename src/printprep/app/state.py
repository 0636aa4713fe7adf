from __future__ import annotations

import logging
from dataclasses import replace
from enum import StrEnum
from typing import Iterable, Optional, Sequence

from PySide6.QtCore import QObject, Signal

from printprep.config import FREE_TEMPLATE
from printprep.model.batch import BatchResize, WorkOrder, build_batch
from printprep.model.geometry import ProcessMode, CropRect
from printprep.model.images import ImageDescriptor, print_area_m2
from printprep.model.io import PresetIO, SettingsAccessor
from printprep.model.layout import LayoutConfig, LayoutSnapshot, LayoutPreview, config_from_snapshot
from printprep.model.linked import BorderSide, DrivingField, solve_driven
from printprep.model.presets import PresetError

logger = logging.getLogger(__name__)


class LockTarget(StrEnum):
    """Which linked pair a lock toggle addresses."""
    ASPECT = "aspect"
    RESIZE = "resize"


class Store(QObject):
    """
    Central state store: loaded images, selection, per-image layouts and
    presets, with signals for panel/preview sync.

    Every mutator is synchronous and returns the updated LayoutPreview, or
    None when the request was a no-op (unknown image, image outside the
    selection, rejected value).
    """
    images_changed = Signal(object)
    selection_changed = Signal(object)
    config_changed = Signal(str, object)
    presets_changed = Signal(object)
    preset_rejected = Signal(str)
    batch_resize_changed = Signal(object)

    def __init__(self, settings: Optional[SettingsAccessor] = None) -> None:
        super().__init__()
        self._settings = settings
        self._images: dict[str, ImageDescriptor] = {}
        self._selected: set[str] = set()
        self._configs: dict[str, LayoutConfig] = {}
        self._quantities: dict[str, int] = {}
        self._active = LayoutSnapshot()

        self.preset_library = PresetIO.load(settings)
        self.batch_resize = BatchResize()

    # ---- images ----

    def images(self) -> list[ImageDescriptor]:
        return list(self._images.values())

    def image(self, identity: str) -> Optional[ImageDescriptor]:
        return self._images.get(identity)

    def add_images(self, paths: Iterable[str]) -> list[ImageDescriptor]:
        """Register dropped files. Paths already loaded are ignored."""
        added = []
        for path in paths:
            if path in self._images:
                continue
            image = ImageDescriptor.from_probe(path)
            self._images[path] = image
            added.append(image)
            if not image.supported:
                logger.warning(f"Unsupported file format: {image.name}")

        if added:
            logger.info(f"Added {len(added)} images ({len(self._images)} loaded).")
            self.images_changed.emit(self.images())
        return added

    def set_size_text(self, identity: str, size_text: Optional[str]) -> Optional[ImageDescriptor]:
        """Store the probed physical size ("21.0 x 29.7 cm")."""
        image = self._images.get(identity)
        if image is None:
            return None
        image = image.with_size_text(size_text)
        self._images[identity] = image
        self.images_changed.emit(self.images())
        return image

    def set_pixel_size(self, identity: str, pixel_width: int, pixel_height: int) -> Optional[LayoutPreview]:
        """
        Decoding finished. Creates the layout on first discovery and
        recomputes the crop box for the real pixel size.
        """
        image = self._images.get(identity)
        if image is None:
            return None
        image = image.with_pixels(pixel_width, pixel_height)
        self._images[identity] = image

        config = self._configs.get(identity)
        if config is None:
            config = self._ensure_config(image)
        elif config.mode == ProcessMode.CROP:
            config.recenter_crop(image, self.preset_library)

        logger.debug(f"Pixel size of {image.name}: {pixel_width} x {pixel_height}")
        return self._emit_config(image, config)

    def remove_images(self, identities: Iterable[str]) -> int:
        """Drop images from the workable set; their layouts are destroyed."""
        removed = 0
        for identity in list(identities):
            if self._images.pop(identity, None) is None:
                continue
            self._configs.pop(identity, None)
            self._quantities.pop(identity, None)
            self._selected.discard(identity)
            removed += 1

        if removed:
            logger.info(f"Removed {removed} images.")
            self.images_changed.emit(self.images())
            self.selection_changed.emit(self.selected_identities())
        return removed

    def remove_selected(self) -> int:
        return self.remove_images(self.selected_identities())

    def clear(self) -> None:
        self._images.clear()
        self._configs.clear()
        self._quantities.clear()
        self._selected.clear()
        logger.info("All images cleared.")
        self.images_changed.emit(self.images())
        self.selection_changed.emit([])

    def remap_key(self, old: str, new: str) -> bool:
        """
        Move an image and everything keyed by it to a new identity
        (after an external rename). Load order and selection are kept.
        """
        if old == new:
            return old in self._images
        if old not in self._images or new in self._images:
            logger.warning(f"Cannot remap '{old}' to '{new}'.")
            return False

        self._images = {
            (new if key == old else key): (img.with_identity(new) if key == old else img)
            for key, img in self._images.items()
        }
        if old in self._configs:
            self._configs[new] = self._configs.pop(old)
        if old in self._quantities:
            self._quantities[new] = self._quantities.pop(old)
        if old in self._selected:
            self._selected.discard(old)
            self._selected.add(new)

        logger.debug(f"Remapped '{old}' -> '{new}'")
        return True

    def apply_renames(self, renames: Sequence[tuple[str, str]]) -> int:
        """Apply (old_path, new_path) pairs reported by the renaming step."""
        count = sum(1 for old, new in renames if self.remap_key(old, new))
        if count:
            self.images_changed.emit(self.images())
            self.selection_changed.emit(self.selected_identities())
        return count

    # ---- selection ----

    def selected(self) -> list[ImageDescriptor]:
        """Selected images in load order."""
        return [img for key, img in self._images.items() if key in self._selected]

    def selected_identities(self) -> list[str]:
        return [img.identity for img in self.selected()]

    def current(self) -> Optional[ImageDescriptor]:
        """The image being edited: only defined for a single selection."""
        selected = self.selected()
        return selected[0] if len(selected) == 1 else None

    def is_batch(self) -> bool:
        return len(self._selected) > 1

    def toggle_select(self, identity: str) -> bool:
        image = self._images.get(identity)
        if image is None or not image.supported:
            return False
        if identity in self._selected:
            self._selected.discard(identity)
        else:
            self._selected.add(identity)
        self.selection_changed.emit(self.selected_identities())
        return identity in self._selected

    def select_all(self) -> None:
        self._selected = {key for key, img in self._images.items() if img.supported}
        self.selection_changed.emit(self.selected_identities())

    def deselect_all(self) -> None:
        self._selected.clear()
        self.selection_changed.emit([])

    # ---- per-image layouts ----

    def snapshot(self) -> LayoutSnapshot:
        """Currently active global UI state."""
        return self._active

    def _default_config(self, image: ImageDescriptor) -> LayoutConfig:
        return config_from_snapshot(self._active, image, self.preset_library)

    def _ensure_config(self, image: ImageDescriptor) -> LayoutConfig:
        config = self._configs.get(image.identity)
        if config is None:
            config = self._default_config(image)
            self._configs[image.identity] = config
            logger.debug(f"Layout created for {image.name} ({config.mode}, {config.template})")
        return config

    def has_config(self, identity: str) -> bool:
        return identity in self._configs

    def config_for(self, identity: str) -> Optional[LayoutConfig]:
        """Stored layout, created on demand from the active UI state."""
        image = self._images.get(identity)
        if image is None:
            return None
        return self._ensure_config(image)

    def preview(self, identity: str) -> Optional[LayoutPreview]:
        image = self._images.get(identity)
        if image is None:
            return None
        return LayoutPreview.build(image, self._ensure_config(image), self.preset_library)

    def _editable(self, identity: str) -> Optional[tuple[ImageDescriptor, LayoutConfig]]:
        if identity not in self._selected or identity not in self._images:
            logger.debug(f"Ignoring edit for '{identity}': not in the current selection.")
            return None
        image = self._images[identity]
        return image, self._ensure_config(image)

    def _emit_config(self, image: ImageDescriptor, config: LayoutConfig) -> LayoutPreview:
        preview = LayoutPreview.build(image, config, self.preset_library)
        self.config_changed.emit(image.identity, preview)
        return preview

    def _commit(self, image: ImageDescriptor, config: LayoutConfig) -> LayoutPreview:
        # The edited layout becomes what unseen images inherit
        self._active = LayoutSnapshot.from_config(config)
        return self._emit_config(image, config)

    def _recenter_if_crop(self, image: ImageDescriptor, config: LayoutConfig) -> None:
        if config.mode == ProcessMode.CROP:
            config.recenter_crop(image, self.preset_library)

    def set_mode(self, identity: str, mode: ProcessMode | str) -> Optional[LayoutPreview]:
        edit = self._editable(identity)
        if edit is None:
            return None
        image, config = edit
        try:
            mode = ProcessMode(mode)
        except ValueError:
            logger.warning(f"Unknown mode {mode!r}")
            return None

        if config.mode != mode:
            config.mode = mode
            self._recenter_if_crop(image, config)
        return self._commit(image, config)

    def set_template(self, identity: str, label: str) -> Optional[LayoutPreview]:
        """
        Pick a preset (or FREE_TEMPLATE). Changing the template resets the
        manual flip; editing free dimensions does not.
        """
        edit = self._editable(identity)
        if edit is None:
            return None
        image, config = edit
        if label != FREE_TEMPLATE and label not in self.preset_library:
            logger.warning(f"Unknown preset '{label}'")
            return None

        if config.template != label:
            config.template = label
            config.crop_flipped = False
        self._recenter_if_crop(image, config)
        return self._commit(image, config)

    def set_custom_dim(self, identity: str, field: str, value: float) -> Optional[LayoutPreview]:
        """Edit the free-dimension box ("width" or "height") under the aspect lock."""
        edit = self._editable(identity)
        if edit is None:
            return None
        image, config = edit

        if not self._apply_pair_edit(config.custom, field, value):
            return None
        config.template = FREE_TEMPLATE
        self._recenter_if_crop(image, config)
        return self._commit(image, config)

    def set_crop_rect(self, identity: str, rect: CropRect) -> Optional[LayoutPreview]:
        """Operator-drawn rectangle, clamped into the image."""
        edit = self._editable(identity)
        if edit is None:
            return None
        image, config = edit
        config.crop_rect = rect.clamped()
        config.flip_undo = None
        return self._commit(image, config)

    def toggle_flip(self, identity: str) -> Optional[LayoutPreview]:
        """
        Manual orientation override (crop mode only). Two consecutive toggles
        restore the previous rectangle exactly.
        """
        edit = self._editable(identity)
        if edit is None:
            return None
        image, config = edit
        if config.mode != ProcessMode.CROP:
            logger.debug("Flip is only available in crop mode.")
            return None

        previous = config.crop_rect
        restore = config.flip_undo
        config.crop_flipped = not config.crop_flipped
        if restore is not None:
            config.crop_rect = restore
        else:
            config.recenter_crop(image, self.preset_library)
        config.flip_undo = previous
        return self._commit(image, config)

    def set_resize_dim(self, identity: str, field: str, value: float) -> Optional[LayoutPreview]:
        """Edit the pure-resize box ("width" or "height") under its own lock."""
        edit = self._editable(identity)
        if edit is None:
            return None
        image, config = edit
        if not self._apply_pair_edit(config.resize, field, value):
            return None
        return self._commit(image, config)

    def set_border(self, identity: str, side: BorderSide | str, value: float) -> Optional[LayoutPreview]:
        edit = self._editable(identity)
        if edit is None:
            return None
        image, config = edit
        try:
            accepted = config.border.set(side, value)
        except ValueError:
            logger.warning(f"Unknown border side {side!r}")
            return None
        if not accepted:
            return None
        return self._commit(image, config)

    def toggle_lock(self, identity: str, target: LockTarget | str = LockTarget.ASPECT) -> Optional[LayoutPreview]:
        edit = self._editable(identity)
        if edit is None:
            return None
        image, config = edit
        try:
            target = LockTarget(target)
        except ValueError:
            logger.warning(f"Unknown lock target {target!r}")
            return None

        pair = config.custom if target == LockTarget.ASPECT else config.resize
        pair.toggle_lock()
        return self._commit(image, config)

    def toggle_border_link(self, identity: str) -> Optional[LayoutPreview]:
        edit = self._editable(identity)
        if edit is None:
            return None
        image, config = edit
        config.border.toggle_link()
        return self._commit(image, config)

    @staticmethod
    def _apply_pair_edit(pair, field: str, value: float) -> bool:
        if field == "width":
            return pair.set_width(value)
        if field == "height":
            return pair.set_height(value)
        logger.warning(f"Unknown dimension field {field!r}")
        return False

    # ---- multi-image resize ----

    def set_batch_driving(self, driving: DrivingField | str) -> DrivingField:
        """Pick the driving field. Unknown names leave the current one in place."""
        try:
            self.batch_resize.driving = DrivingField(driving)
        except ValueError:
            logger.warning(f"Unknown driving field {driving!r}")
            return self.batch_resize.driving
        self.batch_resize_changed.emit(self.batch_resize)
        return self.batch_resize.driving

    def set_batch_value(self, value: Optional[float], field: Optional[DrivingField | str] = None) -> bool:
        """
        Type into the batch-resize box. Only the driving field accepts input;
        the other one is computed per image.
        """
        if field is not None:
            try:
                field = DrivingField(field)
            except ValueError:
                logger.warning(f"Unknown batch field {field!r}")
                return False
            if field != self.batch_resize.driving:
                logger.debug(f"Batch field '{field}' is not driving, edit ignored.")
                return False
        self.batch_resize.value = value
        self.batch_resize_changed.emit(self.batch_resize)
        return True

    def batch_sizes(self) -> list[tuple[float, float]]:
        """
        Sizes the batch resize would produce for the selected resize-mode
        images, in selection order.
        """
        resized = [
            img for img in self.selected()
            if self._ensure_config(img).mode == ProcessMode.RESIZE
        ]
        return solve_driven(
            self.batch_resize.driving,
            self.batch_resize.value,
            [img.physical_size for img in resized],
        )

    # ---- batch ----

    def build_batch(self, selection: Optional[Sequence[str]] = None) -> list[WorkOrder]:
        """
        Work orders for `selection` (identities, in order) or for the current
        selection. Unknown and unsupported entries are skipped.
        """
        if selection is None:
            images = self.selected()
        else:
            images = []
            for identity in selection:
                image = self._images.get(identity)
                if image is None or not image.supported:
                    logger.warning(f"Skipping '{identity}': not a workable image.")
                    continue
                images.append(image)

        snapshot = self._active
        presets = self.preset_library
        orders = build_batch(
            images,
            self._configs,
            lambda image: config_from_snapshot(snapshot, image, presets),
            presets,
            self.batch_resize,
        )
        if not orders and images and not self.batch_resize.is_set:
            self.batch_resize_changed.emit(self.batch_resize)
        return orders

    # ---- presets ----

    def presets(self) -> list[dict]:
        return self.preset_library.to_list()

    def add_preset(self, label: str, width_cm: float, height_cm: float) -> bool:
        try:
            self.preset_library.add(label, width_cm, height_cm)
        except PresetError as e:
            logger.warning(f"Preset rejected: {e}")
            self.preset_rejected.emit(str(e))
            return False
        PresetIO.save(self._settings, self.preset_library)
        self.presets_changed.emit(self.presets())
        return True

    def remove_preset(self, label: str) -> bool:
        """
        Delete a preset. Layouts using it switch to free dimension with the
        preset's size so their output does not change.
        """
        preset = self.preset_library.get(label)
        if preset is None or not self.preset_library.remove(label):
            return False

        for identity, config in self._configs.items():
            if config.template == label:
                config.template = FREE_TEMPLATE
                config.custom.reset(preset.width_cm, preset.height_cm)
                self.config_changed.emit(identity, self.preview(identity))
        if self._active.template == label:
            self._active = replace(
                self._active,
                template=FREE_TEMPLATE,
                custom_size=(preset.width_cm, preset.height_cm),
            )

        PresetIO.save(self._settings, self.preset_library)
        self.presets_changed.emit(self.presets())
        return True

    # ---- print quote ----

    def set_quantity(self, identity: str, quantity: int) -> int:
        if identity not in self._images:
            return 0
        try:
            quantity = int(quantity)
        except (TypeError, ValueError, OverflowError):
            logger.warning(f"Rejected quantity {quantity!r} for {identity}")
            return self.quantity(identity)
        self._quantities[identity] = max(1, quantity)
        return self._quantities[identity]

    def quantity(self, identity: str) -> int:
        return self._quantities.get(identity, 1)

    def print_quote(self, identities: Optional[Sequence[str]] = None) -> float:
        """Total print area in m2 (all loaded images unless `identities` is given)."""
        if identities is None:
            images = self.images()
        else:
            images = [self._images[i] for i in identities if i in self._images]
        return print_area_m2(images, self._quantities)
