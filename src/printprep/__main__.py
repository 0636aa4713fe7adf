"""
Command-line interface.

    python -m printprep plan manifest.json
    python -m printprep presets list
    python -m printprep presets add "13x18" 13 18
"""
from __future__ import annotations

import argparse
import json
import logging
import sys
from typing import Optional

from printprep.app.application import create_app, create_store
from printprep.app.manifest import load_manifest, apply_manifest
from printprep.logging_config import setup_logging
from printprep.model.batch import iter_progress

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="printprep", description="Plan print pre-press work orders.")
    parser.add_argument("--log-level", default="WARNING", help="DEBUG, INFO, WARNING or ERROR")
    parser.add_argument("--log-file", default=None)
    parser.add_argument("--settings", default=None, help="INI file holding the preset library")

    sub = parser.add_subparsers(dest="command", required=True)

    plan = sub.add_parser("plan", help="Build the work orders of a manifest")
    plan.add_argument("manifest")
    plan.add_argument("--dpi", type=int, default=None, help="Also report target pixels at this DPI")

    presets = sub.add_parser("presets", help="Manage template presets")
    presets_sub = presets.add_subparsers(dest="action", required=True)
    presets_sub.add_parser("list")
    add = presets_sub.add_parser("add")
    add.add_argument("label")
    add.add_argument("width", type=float)
    add.add_argument("height", type=float)
    remove = presets_sub.add_parser("remove")
    remove.add_argument("label")

    return parser


def run_plan(store, manifest_path: str, dpi: Optional[int]) -> int:
    selection = apply_manifest(store, load_manifest(manifest_path))
    orders = store.build_batch(selection)

    rows = []
    for order, progress in iter_progress(orders):
        row = order.to_dict()
        row["position"] = progress.current
        if dpi:
            row["target_pixels"] = list(order.target_pixels(dpi))
        rows.append(row)

    print(json.dumps({"orders": rows, "print_area_m2": store.print_quote(selection)}, indent=2))
    return 0


def run_presets(store, args: argparse.Namespace) -> int:
    if args.action == "add":
        messages: list[str] = []
        store.preset_rejected.connect(messages.append)
        if not store.add_preset(args.label, args.width, args.height):
            print(messages[-1] if messages else "Preset rejected.", file=sys.stderr)
            return 1
    elif args.action == "remove":
        if not store.remove_preset(args.label):
            print(f"Preset '{args.label}' not found.", file=sys.stderr)
            return 1

    print(json.dumps(store.presets(), indent=2, ensure_ascii=False))
    return 0


def main(argv: Optional[list[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(level=getattr(logging, str(args.log_level).upper(), logging.WARNING), log_file=args.log_file)

    create_app([sys.argv[0]])
    store = create_store(args.settings)

    try:
        if args.command == "plan":
            return run_plan(store, args.manifest, args.dpi)
        return run_presets(store, args)
    except (OSError, ValueError, KeyError) as e:
        logger.error(f"{args.command} failed: {e}")
        print(f"Error: {e}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    sys.exit(main())
