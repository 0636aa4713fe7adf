"""
Configuration & Constants
=========================
This module serves as the central registry for global constants shared by the
model and application layers.

Why is this file needed?
------------------------
1. Abstraction: It prevents magic numbers (default sizes, DPI, settings keys)
   scattered throughout the code.
2. Consistency: The layout engine and the hand-off to the rendering engine
   must agree on units and defaults.

Exports:
    DEFAULT_SIZE_CM (tuple): Fallback physical size for unparsable descriptors.
    OUTPUT_DPI (int): Resolution the rendering engine writes at.
    SUPPORTED_EXTENSIONS (frozenset): File suffixes the engine accepts.
    FREE_TEMPLATE (str): Sentinel template label for user-entered dimensions.
"""
from __future__ import annotations

# Application identity (used for QSettings storage location)
ORG_ID = "printprep"
APP_ID = "printprep"
VISIBLE_APP_NAME = "Print Prep"

# Physical defaults
DEFAULT_SIZE_CM: tuple[float, float] = (20.0, 20.0)
CM_PER_INCH: float = 2.54
OUTPUT_DPI: int = 300

# Only formats the rendering engine can write back losslessly
SUPPORTED_EXTENSIONS: frozenset[str] = frozenset({".jpg", ".jpeg", ".tif", ".tiff"})

# Template sentinel: the crop/pad shape comes from custom width/height
FREE_TEMPLATE: str = "free dimension"

# Full-frame crop rectangle in percent (x, y, w, h)
FULL_FRAME: tuple[float, float, float, float] = (0.0, 0.0, 100.0, 100.0)

# QSettings keys
SETTINGS_PRESETS_KEY: str = "presets/list"
