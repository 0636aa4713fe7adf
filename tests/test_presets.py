import json

import pytest
from PySide6.QtCore import QSettings

from printprep.config import FREE_TEMPLATE, SETTINGS_PRESETS_KEY
from printprep.model.io import PresetIO
from printprep.model.presets import PresetLibrary, Preset, PresetError, BUILTIN_PRESETS

from conftest import DictSettings


def test_library_starts_with_builtin_sizes():
    library = PresetLibrary()
    assert library.get_labels() == [p.label for p in BUILTIN_PRESETS]
    assert library.get("A4") == Preset("A4", 21.0, 29.7)
    assert library.to_list()[0] == {"label": "A4", "w": 21.0, "h": 29.7}


def test_add_and_remove_preset():
    library = PresetLibrary()
    library.add("  13x18 ", 13, 18)
    assert "13x18" in library
    assert library.get("13x18").aspect == pytest.approx(13 / 18)
    assert library.remove("13x18")
    assert not library.remove("13x18")


@pytest.mark.parametrize("label, width, height", [
    ("A4", 10, 10),
    ("", 10, 10),
    ("   ", 10, 10),
    (FREE_TEMPLATE, 10, 10),
    ("Strip", 0, 10),
    ("Strip", 10, -2),
])
def test_invalid_presets_are_rejected_without_change(label, width, height):
    library = PresetLibrary()
    before = library.to_list()
    with pytest.raises(PresetError):
        library.add(label, width, height)
    assert library.to_list() == before


def test_duplicate_message_names_the_preset():
    library = PresetLibrary()
    with pytest.raises(PresetError, match="'A3' already exists"):
        library.add("A3", 1, 1)


def test_io_round_trip_through_accessor():
    settings = DictSettings()
    library = PresetLibrary()
    library.add("Panorama", 90, 30)
    library.remove("A3")
    PresetIO.save(settings, library)

    loaded = PresetIO.load(settings)
    assert loaded.to_list() == library.to_list()


def test_io_without_stored_data_uses_defaults():
    assert PresetIO.load(DictSettings()).get_labels() == [p.label for p in BUILTIN_PRESETS]
    assert len(PresetIO.load(None)) == len(BUILTIN_PRESETS)


def test_io_corrupt_data_falls_back_to_defaults():
    settings = DictSettings({SETTINGS_PRESETS_KEY: "{not json"})
    assert PresetIO.load(settings).get_labels() == [p.label for p in BUILTIN_PRESETS]

    settings = DictSettings({SETTINGS_PRESETS_KEY: json.dumps([{"label": "x"}])})
    assert PresetIO.load(settings).get_labels() == [p.label for p in BUILTIN_PRESETS]


def test_io_skips_invalid_entries():
    raw = json.dumps([{"label": "ok", "w": 10, "h": 15}, {"label": "bad", "w": 0, "h": 15}])
    loaded = PresetIO.load(DictSettings({SETTINGS_PRESETS_KEY: raw}))
    assert loaded.get_labels() == ["ok"]


def test_io_with_qsettings_ini_file(tmp_path):
    path = str(tmp_path / "presets.ini")
    library = PresetLibrary()
    library.add("Vertical 30x90", 30, 90)
    PresetIO.save(QSettings(path, QSettings.Format.IniFormat), library)

    loaded = PresetIO.load(QSettings(path, QSettings.Format.IniFormat))
    assert loaded.get("Vertical 30x90") == Preset("Vertical 30x90", 30.0, 90.0)
    assert loaded.get_labels() == library.get_labels()
