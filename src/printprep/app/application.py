from PySide6.QtCore import QCoreApplication, QSettings

import os
import sys
from typing import Optional

from printprep.app.state import Store
from printprep.config import ORG_ID, APP_ID, VISIBLE_APP_NAME


def create_app(argv: Optional[list[str]] = None) -> QCoreApplication:
    """
    Create (or reuse) the Qt application and configure where QSettings
    stores the preset library.
    """
    QCoreApplication.setOrganizationName(ORG_ID)
    QCoreApplication.setApplicationName(APP_ID)
    QSettings.setDefaultFormat(QSettings.Format.IniFormat)

    app = QCoreApplication.instance()
    if app is None:
        app = QCoreApplication(argv if argv is not None else sys.argv)
    app.setProperty("displayName", VISIBLE_APP_NAME)
    return app


def create_settings(path: Optional[str] = None) -> QSettings:
    """Settings accessor for presets; an explicit INI path overrides the default location."""
    if path:
        os.makedirs(os.path.dirname(os.path.abspath(path)), exist_ok=True)
        return QSettings(path, QSettings.Format.IniFormat)
    return QSettings()


def create_store(settings_path: Optional[str] = None) -> Store:
    """Wire the store to its persistent preset settings."""
    return Store(settings=create_settings(settings_path))
