"""
Pytest fixtures shared by the test modules.
"""
from __future__ import annotations

from typing import Any, Optional

import pytest
from PySide6.QtCore import QCoreApplication

from printprep.app.state import Store
from printprep.model.images import ImageDescriptor


class DictSettings:
    """In-memory stand-in for QSettings (same value/setValue interface)."""
    def __init__(self, data: Optional[dict[str, Any]] = None) -> None:
        self.data: dict[str, Any] = dict(data or {})

    def value(self, key: str, defaultValue: Any = None) -> Any:
        return self.data.get(key, defaultValue)

    def setValue(self, key: str, value: Any) -> None:
        self.data[key] = value


@pytest.fixture(scope="session", autouse=True)
def qt_core_app() -> QCoreApplication:
    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication([])
    return app


@pytest.fixture
def settings() -> DictSettings:
    return DictSettings()


@pytest.fixture
def store(settings: DictSettings) -> Store:
    return Store(settings=settings)


def load_image(
    store: Store,
    path: str,
    size_text: str,
    pixels: Optional[tuple[int, int]] = None,
    select: bool = True,
) -> ImageDescriptor:
    """Drop, probe and (optionally) decode one image, as the ingestion layer would."""
    store.add_images([path])
    store.set_size_text(path, size_text)
    if pixels is not None:
        store.set_pixel_size(path, *pixels)
    if select:
        store.toggle_select(path)
    return store.image(path)
