"""
Preset Persistence
Loads and saves the preset library through a key-value settings accessor.

The accessor is injected. In the application it is a QSettings instance; any
object exposing `value(key, default)` and `setValue(key, value)` works.
"""
import json
import logging
from typing import Any, Optional, Protocol

from printprep.config import SETTINGS_PRESETS_KEY
from printprep.model.presets import Preset, PresetLibrary

logger = logging.getLogger(__name__)


class SettingsAccessor(Protocol):
    def value(self, key: str, defaultValue: Any = None) -> Any: ...
    def setValue(self, key: str, value: Any) -> None: ...


class PresetIO:
    key: str = SETTINGS_PRESETS_KEY

    @staticmethod
    def load(settings: Optional[SettingsAccessor]) -> PresetLibrary:
        """
        Read the library from settings.
        Missing or unreadable data falls back to the built-in presets.
        """
        if settings is None:
            return PresetLibrary()

        raw = settings.value(PresetIO.key, None)
        if not raw:
            logger.debug("No stored presets, using built-in defaults.")
            return PresetLibrary()

        try:
            data = json.loads(raw) if isinstance(raw, (str, bytes)) else raw
            presets = [Preset.from_dict(item) for item in data]
        except (TypeError, ValueError, KeyError) as e:
            logger.warning(f"Stored presets are unreadable, using defaults: {e}")
            return PresetLibrary()

        valid = [p for p in presets if p.label and p.width_cm > 0 and p.height_cm > 0]
        if len(valid) != len(presets):
            logger.warning(f"Skipped {len(presets) - len(valid)} invalid stored presets.")
        presets = valid

        logger.debug(f"Loaded {len(presets)} presets from settings.")
        return PresetLibrary(presets)

    @staticmethod
    def save(settings: Optional[SettingsAccessor], library: PresetLibrary) -> None:
        if settings is None:
            return
        settings.setValue(PresetIO.key, json.dumps(library.to_list(), ensure_ascii=False))
        if hasattr(settings, "sync"):
            settings.sync()
        logger.info(f"Saved {len(library)} presets.")
