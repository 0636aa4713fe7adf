"""
Template Presets
================
Named physical width x height pairs that define the crop/pad shape.
The library is seeded with common print sizes and then fully user-managed.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Iterable

from printprep.config import FREE_TEMPLATE
from printprep.model.dimensions import is_positive

logger = logging.getLogger(__name__)


class PresetError(ValueError):
    """Rejected preset edit. The message is meant for the operator."""


@dataclass(frozen=True)
class Preset:
    label: str
    width_cm: float
    height_cm: float

    @property
    def aspect(self) -> float:
        return self.width_cm / self.height_cm

    def to_dict(self) -> Dict[str, Any]:
        """Exposed shape: {label, w, h}."""
        return {"label": self.label, "w": self.width_cm, "h": self.height_cm}

    @staticmethod
    def from_dict(data: Dict[str, Any]) -> Preset:
        return Preset(
            label=str(data["label"]),
            width_cm=float(data["w"]),
            height_cm=float(data["h"]),
        )


BUILTIN_PRESETS: tuple[Preset, ...] = (
    Preset("A4", 21.0, 29.7),
    Preset("A3", 29.7, 42.0),
    Preset("6 inch", 10.2, 15.2),
    Preset("10 inch", 20.3, 25.4),
)


class PresetLibrary:
    """
    Ordered collection of presets with unique labels.
    Persistence is not handled here, see model.io.PresetIO.
    """
    def __init__(self, presets: Optional[Iterable[Preset]] = None) -> None:
        self.presets: Dict[str, Preset] = {}
        if presets is None:
            self._init_defaults()
        else:
            for preset in presets:
                self.presets.setdefault(preset.label, preset)

    def _init_defaults(self) -> None:
        for preset in BUILTIN_PRESETS:
            self.presets[preset.label] = preset

    def add(self, label: str, width_cm: float, height_cm: float) -> Preset:
        """
        Create a preset.

        Raises:
            PresetError: empty label, reserved or duplicate label, or a
                non-positive dimension.
        """
        label = (label or "").strip()
        if not label:
            raise PresetError("Preset name cannot be empty.")
        if label == FREE_TEMPLATE:
            raise PresetError(f"'{label}' is reserved for custom dimensions.")
        if label in self.presets:
            raise PresetError(f"Preset '{label}' already exists.")
        if not (is_positive(width_cm) and is_positive(height_cm)):
            raise PresetError("Preset width and height must be greater than zero.")

        preset = Preset(label, float(width_cm), float(height_cm))
        self.presets[label] = preset
        logger.info(f"Preset added: {label} ({width_cm} x {height_cm} cm)")
        return preset

    def remove(self, label: str) -> bool:
        if self.presets.pop(label, None) is None:
            return False
        logger.info(f"Preset removed: {label}")
        return True

    def get(self, label: str) -> Optional[Preset]:
        return self.presets.get(label)

    def get_labels(self) -> List[str]:
        return list(self.presets.keys())

    def to_list(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.presets.values()]

    def __contains__(self, label: object) -> bool:
        return label in self.presets

    def __len__(self) -> int:
        return len(self.presets)
