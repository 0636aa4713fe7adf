"""
Headless Manifest Loading
=========================
Replays a JSON manifest (what the UI would have produced through drops,
probing and edits) into a Store, so batches can be planned without a window.

Manifest layout:
    {
      "images": [
        {"path": "/photos/a.jpg", "size": "21.0 x 29.7 cm", "pixels": [2480, 3508],
         "quantity": 2,
         "layout": {"mode": "pad", "template": "A4"}}
      ],
      "selection": ["/photos/a.jpg"],
      "batch_resize": {"driving": "width", "value": 30}
    }
"""
from __future__ import annotations

import json
import logging
from typing import Any, Dict

from printprep.app.state import Store, LockTarget
from printprep.model.geometry import CropRect

logger = logging.getLogger(__name__)


def load_manifest(path: str) -> Dict[str, Any]:
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict) or not isinstance(data.get("images", []), list):
        raise ValueError(f"Manifest '{path}' must be an object with an 'images' list.")
    return data


def _apply_layout(store: Store, identity: str, layout: Dict[str, Any]) -> None:
    # Order matters: locks before sizes, mode last so the crop box is final
    if "template" in layout:
        store.set_template(identity, layout["template"])

    custom = layout.get("custom", {})
    if "locked" in custom and custom["locked"] != store.config_for(identity).custom.locked:
        store.toggle_lock(identity, LockTarget.ASPECT)
    for field in ("width", "height"):
        if field in custom:
            store.set_custom_dim(identity, field, custom[field])

    resize = layout.get("resize", {})
    if "locked" in resize and resize["locked"] != store.config_for(identity).resize.locked:
        store.toggle_lock(identity, LockTarget.RESIZE)
    for field in ("width", "height"):
        if field in resize:
            store.set_resize_dim(identity, field, resize[field])

    if "border_linked" in layout and layout["border_linked"] != store.config_for(identity).border.linked:
        store.toggle_border_link(identity)
    for side, value in layout.get("border", {}).items():
        store.set_border(identity, side, value)

    if "mode" in layout:
        store.set_mode(identity, layout["mode"])
    if layout.get("flip"):
        store.toggle_flip(identity)
    if "crop_rect" in layout:
        store.set_crop_rect(identity, CropRect.from_dict(layout["crop_rect"]))


def apply_manifest(store: Store, data: Dict[str, Any]) -> list[str]:
    """
    Load every manifest entry into `store` and select the manifest selection
    (all supported images when absent).

    Returns:
        The selected identities in manifest selection order (load order
        when the manifest has no selection).
    """
    entries = data.get("images", [])
    store.add_images(entry["path"] for entry in entries)

    for entry in entries:
        identity = entry["path"]
        store.set_size_text(identity, entry.get("size"))
        if "quantity" in entry:
            store.set_quantity(identity, entry["quantity"])
        pixels = entry.get("pixels")
        if pixels:
            store.set_pixel_size(identity, int(pixels[0]), int(pixels[1]))

    # Edits only reach selected images, so edit each one on its own
    for entry in entries:
        layout = entry.get("layout")
        if not layout:
            continue
        store.deselect_all()
        if store.toggle_select(entry["path"]):
            _apply_layout(store, entry["path"], layout)

    store.deselect_all()
    selection = data.get("selection")
    if selection is None:
        store.select_all()
        ordered = store.selected_identities()
    else:
        ordered = []
        for identity in selection:
            if identity not in ordered and store.toggle_select(identity):
                ordered.append(identity)

    batch = data.get("batch_resize")
    if batch:
        store.set_batch_driving(batch.get("driving", "width"))
        store.set_batch_value(batch.get("value"))

    logger.info(f"Manifest applied: {len(entries)} images, {len(store.selected())} selected.")
    return ordered
