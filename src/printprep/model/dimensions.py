"""
Dimension Parsing
=================
Turns the textual size descriptor reported by the image probe
(e.g. "21.0 x 29.7 cm") into a usable (width, height) pair in centimetres.
"""
from __future__ import annotations

import logging
import math
import re
from typing import Optional

from printprep.config import DEFAULT_SIZE_CM

logger = logging.getLogger(__name__)

# "<w> x <h>" with optional decimals (dot or comma) and any surrounding text
_SIZE_PATTERN = re.compile(
    r"(\d+(?:[.,]\d+)?)\s*[xX×*]\s*(\d+(?:[.,]\d+)?)"
)


def round2(value: float) -> float:
    """
    Round to the 2 decimals shown in the size fields.

    Halves go away from zero (0.125 -> 0.13), unlike the built-in round().
    Non-finite values are returned unchanged.
    """
    number = float(value)
    if not math.isfinite(number):
        return number
    return math.copysign(math.floor(abs(number) * 100.0 + 0.5) / 100.0, number)


def is_positive(value: Optional[float]) -> bool:
    """True for finite numbers strictly greater than zero."""
    if value is None:
        return False
    try:
        number = float(value)
    except (TypeError, ValueError):
        return False
    return math.isfinite(number) and number > 0.0


def parse_size(text: Optional[str]) -> tuple[float, float]:
    """
    Extract (width, height) in cm from a free-text size descriptor.

    Never fails: anything without a positive numeric pair resolves to
    DEFAULT_SIZE_CM so downstream aspect math always has a usable pair.

    Args:
        text: Descriptor such as "29.7 x 21.0 cm" or "10,2×15,2".

    Returns:
        Tuple (width_cm, height_cm).
    """
    if not text:
        return DEFAULT_SIZE_CM

    match = _SIZE_PATTERN.search(str(text))
    if match is None:
        logger.debug(f"No size pair in descriptor {text!r}, using default.")
        return DEFAULT_SIZE_CM

    width, height = (float(group.replace(",", ".")) for group in match.groups())
    if not (is_positive(width) and is_positive(height)):
        logger.debug(f"Degenerate size pair in descriptor {text!r}, using default.")
        return DEFAULT_SIZE_CM

    return width, height


def format_size(width_cm: float, height_cm: float) -> str:
    """Render a size pair the same way the image probe reports it."""
    return f"{width_cm:.1f} x {height_cm:.1f} cm"
